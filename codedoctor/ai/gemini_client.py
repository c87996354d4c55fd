# codedoctor/ai/gemini_client.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from codedoctor.domain.errors import EmptyResponseError, MissingCredentialError


@dataclass(frozen=True)
class GeminiConfig:
    api_key: str
    model: str = "gemini-2.5-flash"
    temperature: float = 0.4
    max_output_tokens: Optional[int] = None


class GeminiClient:
    """
    Client basato sul nuovo SDK google.genai (pacchetto: google-genai).
    Chiede sempre una risposta JSON vincolata a uno schema e restituisce
    il testo grezzo: il parsing lo fa ai/response_parser.py.
    """

    def __init__(self, cfg: GeminiConfig):
        if not cfg.api_key:
            raise MissingCredentialError("GEMINI_API_KEY non è impostata.")
        self.cfg = cfg

        # Import SOLO nuovo SDK
        from google import genai  # type: ignore
        from google.genai import types  # type: ignore

        self._types = types
        self._client = genai.Client(api_key=cfg.api_key)

    def generate(
        self,
        prompt: str,
        system_instruction: str,
        output_schema: Dict[str, Any],
        temperature: Optional[float] = None,
    ) -> str:
        """
        Una sola chiamata al modello, nessun retry (quello è compito della pipeline).
        """
        types = self._types
        resp = self._client.models.generate_content(
            model=self.cfg.model,
            contents=prompt,
            config=types.GenerateContentConfig(
                system_instruction=system_instruction,
                response_mime_type="application/json",
                response_schema=output_schema,
                temperature=self.cfg.temperature if temperature is None else temperature,
                max_output_tokens=self.cfg.max_output_tokens,
            ),
        )
        text = (resp.text or "").strip()
        if not text:
            raise EmptyResponseError("Risposta vuota da Gemini.")
        return text
