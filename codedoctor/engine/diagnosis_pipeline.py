# codedoctor/engine/diagnosis_pipeline.py
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol

from codedoctor.ai.prompt_builder import (
    DIAGNOSIS_SCHEMA,
    PromptBuildConfig,
    build_diagnosis_prompt,
    build_system_instruction,
    sanitize_code,
)
from codedoctor.ai.response_parser import ResponseParseError, parse_diagnosis_text
from codedoctor.domain.errors import AnalysisFailedError, EmptyInputError, MissingCredentialError
from codedoctor.domain.models import DiagnosisResult


class Generator(Protocol):
    def generate(
        self,
        prompt: str,
        system_instruction: str,
        output_schema: Dict[str, Any],
        temperature: Optional[float] = None,
    ) -> str: ...


@dataclass(frozen=True)
class RetryPolicy:
    """
    Backoff esponenziale: prima del tentativo n+1 si aspetta base_delay_ms * 2^(n-1).
    Con i default: 1000, 2000, 4000, 8000 ms e 5 tentativi in tutto.
    """
    max_attempts: int = 5
    base_delay_ms: int = 1000

    def delay_ms(self, failed_attempts: int) -> int:
        return self.base_delay_ms * (2 ** (failed_attempts - 1))


class DiagnosisPipeline:
    def __init__(
        self,
        generator: Generator,
        prompt_cfg: PromptBuildConfig = PromptBuildConfig(),
        retry: RetryPolicy = RetryPolicy(),
        temperature: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.generator = generator
        self.prompt_cfg = prompt_cfg
        self.retry = retry
        self.temperature = temperature
        self._sleep = sleep
        self._system_instruction = build_system_instruction(prompt_cfg)

    def submit(self, code: str) -> DiagnosisResult:
        """
        Codice -> diagnosi strutturata.
        Solleva EmptyInputError (nessuna chiamata di rete) oppure
        AnalysisFailedError dopo retry.max_attempts tentativi falliti.
        """
        if not code or not code.strip():
            raise EmptyInputError("Il codice da analizzare è vuoto.")

        cleaned = sanitize_code(code)
        prompt = build_diagnosis_prompt(cleaned, self.prompt_cfg)
        print(f"[PIPELINE] Avvio analisi. Lunghezza codice: {len(cleaned)}")

        failures: List[Exception] = []
        for attempt in range(1, self.retry.max_attempts + 1):
            print(f"[PIPELINE] Tentativo {attempt}/{self.retry.max_attempts} - invio richiesta a Gemini...")
            try:
                raw = self.generator.generate(
                    prompt,
                    self._system_instruction,
                    DIAGNOSIS_SCHEMA,
                    self.temperature,
                )
                print(f"[PIPELINE] Risposta ricevuta. Lunghezza: {len(raw or '')}")
                result = parse_diagnosis_text(raw)
                print(f"[PIPELINE] JSON valido. Passi trace: {len(result.trace)}")
                return result
            except MissingCredentialError:
                raise
            except ResponseParseError as e:
                print(f"[PIPELINE] Risposta non valida (tentativo {attempt}): {e}")
                failures.append(e)
            except Exception as e:
                print(f"[PIPELINE] Errore di trasporto (tentativo {attempt}): {e!r}")
                failures.append(e)

            if attempt < self.retry.max_attempts:
                backoff = self.retry.delay_ms(attempt)
                print(f"[PIPELINE] Attendo {backoff}ms prima di riprovare...")
                self._sleep(backoff / 1000.0)

        print("[PIPELINE] Tentativi esauriti.")
        raise AnalysisFailedError(
            "Analisi fallita dopo diversi tentativi. Riprova.",
            attempts=len(failures),
        ) from failures[-1]
