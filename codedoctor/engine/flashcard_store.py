# codedoctor/engine/flashcard_store.py
from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import List, Union

from codedoctor.domain.models import Flashcard

DEFAULT_STORE_PATH = Path.home() / ".codedoctor" / "flashcards.json"


class FlashcardStore:
    """
    Un solo "slot" chiave-valore: un file JSON con l'intera collezione.
    Si legge una volta all'avvio, si riscrive per intero a ogni modifica.
    """

    def __init__(self, path: Union[str, Path] = DEFAULT_STORE_PATH):
        self.path = Path(path)

    def load(self) -> List[Flashcard]:
        """
        File mancante o illeggibile -> collezione vuota (non è un errore fatale).
        Record singoli rotti vengono saltati.
        """
        if not self.path.exists():
            print("[STORE] Nessuna flashcard salvata.")
            return []

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            print(f"[STORE] Errore lettura {self.path}: {e}")
            return []

        if not isinstance(data, list):
            print(f"[STORE] Formato non valido in {self.path}: attesa una lista")
            return []

        cards: List[Flashcard] = []
        for i, row in enumerate(data):
            try:
                cards.append(Flashcard.from_dict(row))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                print(f"[STORE] Record #{i} ignorato: {e!r}")
        print(f"[STORE] Caricate {len(cards)} flashcard.")
        return cards

    def save(self, cards: List[Flashcard]) -> None:
        """
        Scrittura atomica: file temporaneo nella stessa cartella + os.replace.
        Un crash a metà lascia intatto il file precedente.
        Gli OSError vengono propagati al chiamante.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = [c.to_dict() for c in cards]

        fd, tmp_name = tempfile.mkstemp(prefix=".flashcards-", suffix=".tmp", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise
        print(f"[STORE] Sincronizzate {len(cards)} flashcard su {self.path}.")
