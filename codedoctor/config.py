# codedoctor/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from codedoctor.engine.flashcard_store import DEFAULT_STORE_PATH


def _get_env(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip()


def _get_float(name: str, default: float) -> float:
    raw = _get_env(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        print(f"[CONFIG] {name}={raw!r} non è un numero, uso {default}")
        return default


@dataclass(frozen=True)
class AppConfig:
    api_key: str
    model: str = "gemini-2.5-flash"
    temperature: float = 0.4
    language: str = "English"
    store_path: Path = DEFAULT_STORE_PATH

    @staticmethod
    def from_env() -> "AppConfig":
        """
        Legge l'ambiente. La chiave mancante NON è un errore qui:
        lo diventa solo quando si costruisce il client Gemini.
        """
        store = _get_env("CODEDOCTOR_STORE")
        return AppConfig(
            api_key=_get_env("GEMINI_API_KEY") or _get_env("API_KEY"),
            model=_get_env("GEMINI_MODEL", "gemini-2.5-flash") or "gemini-2.5-flash",
            temperature=_get_float("GEMINI_TEMPERATURE", 0.4),
            language=_get_env("CODEDOCTOR_LANGUAGE", "English") or "English",
            store_path=Path(store).expanduser() if store else DEFAULT_STORE_PATH,
        )
