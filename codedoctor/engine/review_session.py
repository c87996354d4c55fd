# codedoctor/engine/review_session.py
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from codedoctor.domain.models import Flashcard
from codedoctor.domain.rules import answers_match
from codedoctor.engine.mastery_engine import MasteryEngine


def next_active(cards: List[Flashcard], current_id: Optional[str]) -> Optional[str]:
    """
    Prossima carta attiva dopo current_id, ricalcolata SEMPRE dalla collezione
    completa (niente indici vecchi). Gira in tondo; None se non resta nulla.

    - current_id ancora attivo -> la carta attiva successiva (o la prima)
    - current_id appena diventato mastered -> la prima attiva dopo la sua posizione
    - current_id sconosciuto / None -> la prima attiva
    """
    active = [c for c in cards if not c.is_mastered]
    if not active:
        return None
    if current_id is None:
        return active[0].id

    ids = [c.id for c in cards]
    if current_id not in ids:
        return active[0].id

    pos = ids.index(current_id)
    n = len(cards)
    for step in range(1, n + 1):
        candidate = cards[(pos + step) % n]
        if not candidate.is_mastered:
            return candidate.id
    return None


@dataclass(frozen=True)
class CheckResult:
    card: Flashcard
    is_correct: bool


class ReviewSession:
    """
    Sessione di ripasso (mai salvata). Lavora sulle carte non mastered del
    MasteryEngine e tiene solo: carta corrente, risposta in bozza, esito mostrato.
    """

    def __init__(self, engine: MasteryEngine):
        self.engine = engine
        self.draft_answer: str = ""
        self.result: Optional[CheckResult] = None
        self._current_id: Optional[str] = next_active(engine.all_cards(), None)

    @property
    def completed(self) -> bool:
        return not self.engine.active_cards()

    def current(self) -> Optional[Flashcard]:
        """
        La carta corrente. Se nel frattempo è stata rimossa dalla collezione
        si riparte dalla prima attiva.
        """
        cards = self.engine.all_cards()
        by_id = {c.id: c for c in cards}
        card = by_id.get(self._current_id) if self._current_id else None

        # una carta appena padroneggiata resta visibile finché l'esito è mostrato
        if card is not None and (not card.is_mastered or self.result is not None):
            return card

        self._current_id = next_active(cards, self._current_id)
        self._reset_visit()
        return by_id.get(self._current_id) if self._current_id else None

    def position(self) -> Tuple[int, int]:
        """(posizione 1-based, totale) sulle carte attive, per la barra di avanzamento."""
        active = self.engine.active_cards()
        ids = [c.id for c in active]
        if self._current_id in ids:
            return ids.index(self._current_id) + 1, len(ids)
        return (1 if ids else 0), len(ids)

    def check(self, answer: str) -> CheckResult:
        if self.result is not None:
            raise RuntimeError("Risposta già verificata per questa carta: usa advance().")
        card = self.current()
        if card is None:
            raise RuntimeError("Sessione completata: nessuna carta da ripassare.")

        self.draft_answer = answer
        is_correct = answers_match(answer, card.back_code)
        print(f'[REVIEW] Concetto: "{card.concept}" | Esito: {"PASS" if is_correct else "FAIL"}')

        updated = self.engine.record_answer(card.id, is_correct)
        self.result = CheckResult(card=updated, is_correct=is_correct)
        return self.result

    def advance(self) -> Optional[Flashcard]:
        self._current_id = next_active(self.engine.all_cards(), self._current_id)
        self._reset_visit()
        return self.current()

    def _reset_visit(self) -> None:
        self.draft_answer = ""
        self.result = None
