# codedoctor/engine/mastery_engine.py
from __future__ import annotations

import threading
import time
from dataclasses import dataclass, replace
from typing import Callable, Iterable, List, Optional, Set

from codedoctor.domain.enums import CardStatus
from codedoctor.domain.errors import CardNotFoundError
from codedoctor.domain.models import Flashcard, FlashcardDraft
from codedoctor.domain.rules import DEFAULT_RULES, MasteryRules, apply_answer
from codedoctor.engine.flashcard_store import FlashcardStore


@dataclass(frozen=True)
class DeckCounts:
    total: int
    active: int
    mastered: int
    critical: int


class MasteryEngine:
    """
    Proprietario unico della collezione di flashcard.
    Tutte le modifiche passano da qui (ingest / record_answer / purge_mastered)
    e ognuna riscrive lo store per intero.
    """

    def __init__(
        self,
        store: Optional[FlashcardStore] = None,
        rules: MasteryRules = DEFAULT_RULES,
        clock_ms: Callable[[], int] = lambda: int(time.time() * 1000),
    ):
        self.store = store
        self.rules = rules
        self._clock_ms = clock_ms
        self._lock = threading.RLock()
        self._cards: List[Flashcard] = store.load() if store is not None else []

    # --- LETTURA ---
    def all_cards(self) -> List[Flashcard]:
        with self._lock:
            return list(self._cards)

    def get(self, card_id: str) -> Flashcard:
        with self._lock:
            return self._cards[self._index_of(card_id)]

    def active_cards(self) -> List[Flashcard]:
        """Carte non mastered, in ordine di inserimento."""
        with self._lock:
            return [c for c in self._cards if not c.is_mastered]

    def mastered_cards(self) -> List[Flashcard]:
        with self._lock:
            return [c for c in self._cards if c.is_mastered]

    def counts(self) -> DeckCounts:
        with self._lock:
            mastered = sum(1 for c in self._cards if c.is_mastered)
            critical = sum(1 for c in self._cards if c.stats.status == CardStatus.CRITICAL)
            return DeckCounts(
                total=len(self._cards),
                active=len(self._cards) - mastered,
                mastered=mastered,
                critical=critical,
            )

    # --- SCRITTURA ---
    def ingest(self, drafts: Iterable[FlashcardDraft]) -> List[Flashcard]:
        drafts = list(drafts)
        if not drafts:
            print("[DECK] Nessuna nuova flashcard nella risposta.")
            return []

        with self._lock:
            stamp = self._clock_ms()
            taken = {c.id for c in self._cards}
            created: List[Flashcard] = []
            for index, draft in enumerate(drafts):
                card_id = _unique_id(f"{stamp}-{index}", taken)
                taken.add(card_id)
                created.append(Flashcard.from_draft(card_id, draft))

            self._cards.extend(created)
            print(f"[DECK] Aggiunte {len(created)} nuove flashcard.")
            self._persist()
            return created

    def record_answer(self, card_id: str, is_correct: bool) -> Flashcard:
        with self._lock:
            idx = self._index_of(card_id)
            card = self._cards[idx]
            stats = apply_answer(card.stats, is_correct, self.rules)
            updated = replace(card, stats=stats)
            self._cards[idx] = updated

            print(f"[DECK] Card {card_id} - corretta: {is_correct} -> {stats.status.value}")
            if stats.status != card.stats.status:
                if stats.status == CardStatus.MASTERED:
                    print(f"[DECK] Card {card_id} padroneggiata!")
                elif stats.status == CardStatus.CRITICAL:
                    print(f"[DECK] Card {card_id} segnata come critica.")

            self._persist()
            return updated

    def purge_mastered(self) -> int:
        with self._lock:
            before = len(self._cards)
            self._cards = [c for c in self._cards if not c.is_mastered]
            removed = before - len(self._cards)
            print(f"[DECK] Rimosse {removed} flashcard padroneggiate ({before} -> {len(self._cards)}).")
            if removed:
                self._persist()
            return removed

    # --- INTERNI ---
    def _index_of(self, card_id: str) -> int:
        for i, c in enumerate(self._cards):
            if c.id == card_id:
                return i
        raise CardNotFoundError(card_id)

    def _persist(self) -> None:
        # La collezione in memoria resta valida anche se il disco non risponde
        if self.store is None:
            return
        try:
            self.store.save(self._cards)
        except OSError as e:
            print(f"[DECK] Salvataggio fallito, continuo in memoria: {e}")


def _unique_id(candidate: str, taken: Set[str]) -> str:
    if candidate not in taken:
        return candidate
    n = 1
    while f"{candidate}-{n}" in taken:
        n += 1
    return f"{candidate}-{n}"
