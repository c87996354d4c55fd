# codedoctor/ai/response_parser.py
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from codedoctor.domain.enums import TraceStatus
from codedoctor.domain.errors import TransientRequestError
from codedoctor.domain.models import DiagnosisResult, FlashcardDraft, TraceStep


class ResponseParseError(TransientRequestError):
    pass


def parse_diagnosis_text(raw: str) -> DiagnosisResult:
    """
    Testo grezzo del modello -> DiagnosisResult.
    Qualsiasi problema (JSON rotto, forma sbagliata) diventa ResponseParseError,
    che la pipeline tratta come un errore di rete: si ritenta.
    """
    json_text = _extract_json_text(raw)
    try:
        data = json.loads(json_text)
    except ValueError as e:
        raise ResponseParseError(
            "JSON non valido da Gemini.\n"
            f"RAW (inizio): {raw[:800]}"
        ) from e
    return parse_diagnosis(data)


def parse_diagnosis(data: Any) -> DiagnosisResult:
    if not isinstance(data, dict):
        raise ResponseParseError("La risposta non è un oggetto JSON")

    raw_error = _require_str(data, "rawError")
    if not raw_error:
        raise ResponseParseError("rawError vuoto")

    trace_raw = data.get("trace")
    if not isinstance(trace_raw, list):
        raise ResponseParseError("Manca trace (lista)")

    trace = [_parse_step(x) for x in trace_raw if isinstance(x, dict)]
    drafts = _parse_drafts(data.get("generatedFlashcards"))

    return DiagnosisResult(raw_error=raw_error, trace=trace, generated_flashcards=drafts)


def _parse_step(data: Dict[str, Any]) -> TraceStep:
    try:
        status = TraceStatus(str(data.get("status", "")).strip().lower())
    except ValueError:
        status = TraceStatus.WARNING

    is_error = data.get("isError")
    if not isinstance(is_error, bool):
        is_error = status == TraceStatus.ERROR

    description = _optional_str(data, "desc")
    if description is None:
        description = _optional_str(data, "description") or ""

    return TraceStep(
        status=status,
        title=_optional_str(data, "title") or "",
        description=description,
        is_error=is_error,
        bad_code=_optional_str(data, "badCode"),
        good_code=_optional_str(data, "goodCode"),
        error_highlight=_optional_str(data, "errorHighlight"),
        reason=_optional_str(data, "reason"),
        tip=_optional_str(data, "tip"),
    )


def _parse_drafts(raw: Any) -> List[FlashcardDraft]:
    # generatedFlashcards è opzionale: assente o non-lista -> nessuna card
    if not isinstance(raw, list):
        return []

    drafts: List[FlashcardDraft] = []
    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            print(f"[PARSER] Flashcard #{i} ignorata: non è un oggetto")
            continue
        try:
            drafts.append(
                FlashcardDraft(
                    concept=_require_str(item, "concept"),
                    front_code=_require_str(item, "frontCode"),
                    back_code=_require_str(item, "backCode"),
                    explanation=_require_str(item, "explanation"),
                    error_highlight=_optional_str(item, "errorHighlight"),
                )
            )
        except ResponseParseError as e:
            print(f"[PARSER] Flashcard #{i} ignorata: {e}")
    return drafts


# --- Helpers ---
def _require_str(data: Dict[str, Any], key: str) -> str:
    v = data.get(key)
    if not isinstance(v, str):
        raise ResponseParseError(f"Manca {key}")
    return v.strip()


def _optional_str(data: Dict[str, Any], key: str) -> Optional[str]:
    v = data.get(key)
    if not isinstance(v, str) or not v.strip():
        return None
    return v


def _extract_json_text(raw: str) -> str:
    """
    Estrae JSON da:
    - raw JSON puro
    - raw con ```json ... ```
    - raw con testo extra (cerchiamo la prima { e l'ultima })
    """
    s = (raw or "").strip()

    # Caso 1: blocco markdown ```json
    if s.startswith("```"):
        s = s.strip("`").strip()
        if s.lower().startswith("json"):
            s = s.split("\n", 1)[-1].strip()

    # Caso 2: già JSON
    if s.startswith("{") and s.endswith("}"):
        return s

    # Caso 3: estrai tra prima { e ultima }
    first = s.find("{")
    last = s.rfind("}")
    if first != -1 and last != -1 and last > first:
        return s[first : last + 1]

    # fallback: lasciamo fallire json.loads con errore chiaro
    return s
