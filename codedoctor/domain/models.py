# codedoctor/domain/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from codedoctor.domain.enums import CardStatus, DiagnosisStatus, TraceStatus


@dataclass(frozen=True)
class TraceStep:
    """Un passo della traccia di esecuzione, così come lo giudica il modello."""
    status: TraceStatus
    title: str
    description: str
    is_error: bool
    bad_code: Optional[str] = None
    good_code: Optional[str] = None
    error_highlight: Optional[str] = None
    reason: Optional[str] = None
    tip: Optional[str] = None

    @property
    def has_fix(self) -> bool:
        # badCode/goodCode possono mancare anche quando is_error è True
        return bool(self.bad_code) and bool(self.good_code)


@dataclass(frozen=True)
class FlashcardDraft:
    concept: str
    front_code: str
    back_code: str
    explanation: str
    error_highlight: Optional[str] = None


@dataclass(frozen=True)
class DiagnosisResult:
    raw_error: str
    trace: List[TraceStep] = field(default_factory=list)
    generated_flashcards: List[FlashcardDraft] = field(default_factory=list)


@dataclass(frozen=True)
class CardStats:
    correct_streak: int = 0
    incorrect_count: int = 0
    status: CardStatus = CardStatus.NEW


@dataclass(frozen=True)
class Flashcard:
    """
    Flashcard persistente. Immutabile: ogni risposta produce una copia
    con stats nuove (vedi domain/rules.apply_answer).
    """
    id: str
    concept: str
    front_code: str
    back_code: str
    explanation: str
    error_highlight: Optional[str] = None
    stats: CardStats = field(default_factory=CardStats)

    @classmethod
    def from_draft(cls, card_id: str, draft: FlashcardDraft) -> "Flashcard":
        return cls(
            id=card_id,
            concept=draft.concept,
            front_code=draft.front_code,
            back_code=draft.back_code,
            explanation=draft.explanation,
            error_highlight=draft.error_highlight,
        )

    @property
    def is_mastered(self) -> bool:
        return self.stats.status == CardStatus.MASTERED

    # --- formato JSON dello store (chiavi camelCase) ---
    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "concept": self.concept,
            "frontCode": self.front_code,
            "backCode": self.back_code,
            "explanation": self.explanation,
            "stats": {
                "correctStreak": self.stats.correct_streak,
                "incorrectCount": self.stats.incorrect_count,
                "status": self.stats.status.value,
            },
        }
        if self.error_highlight is not None:
            data["errorHighlight"] = self.error_highlight
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Flashcard":
        """
        Ricostruisce una flashcard dallo store.
        Solleva ValueError/KeyError/TypeError se il record è rotto.
        """
        raw_stats = data.get("stats") or {}
        if not isinstance(raw_stats, dict):
            raise TypeError("stats non è un oggetto")
        stats = CardStats(
            correct_streak=max(0, int(raw_stats.get("correctStreak", 0))),
            incorrect_count=max(0, int(raw_stats.get("incorrectCount", 0))),
            status=CardStatus(raw_stats.get("status", CardStatus.NEW.value)),
        )
        highlight = data.get("errorHighlight")
        return cls(
            id=str(data["id"]),
            concept=str(data["concept"]),
            front_code=str(data["frontCode"]),
            back_code=str(data["backCode"]),
            explanation=str(data.get("explanation", "")),
            error_highlight=str(highlight) if highlight else None,
            stats=stats,
        )


@dataclass
class DiagnosisState:
    status: DiagnosisStatus = DiagnosisStatus.IDLE
    result: Optional[DiagnosisResult] = None
    error: Optional[str] = None

    # ultimo codice inviato: serve per "Riprova"
    submission: Optional[str] = None
