# codedoctor/domain/rules.py
from __future__ import annotations

import re
from dataclasses import dataclass, replace

from codedoctor.domain.enums import CardStatus
from codedoctor.domain.models import CardStats

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class MasteryRules:
    """
    Soglie della macchina a stati delle flashcard.
    - mastered: mastery_streak risposte corrette DI FILA
    - critical: critical_misses errori CUMULATIVI
    """
    mastery_streak: int = 3
    critical_misses: int = 3


DEFAULT_RULES = MasteryRules()


def apply_answer(stats: CardStats, is_correct: bool, rules: MasteryRules = DEFAULT_RULES) -> CardStats:
    """
    Unica funzione di transizione delle stats.

    Corretta: streak +1, mastered se streak >= soglia, altrimenti learning.
    Errata: streak a 0, errori +1, critical se errori >= soglia, altrimenti
    lo status resta quello di prima (un learning non torna new).
    Mastered è "appiccicoso": i contatori cambiano ma lo status no.
    """
    if is_correct:
        streak = stats.correct_streak + 1
        status = CardStatus.MASTERED if streak >= rules.mastery_streak else CardStatus.LEARNING
        new_stats = replace(stats, correct_streak=streak, status=status)
    else:
        misses = stats.incorrect_count + 1
        status = CardStatus.CRITICAL if misses >= rules.critical_misses else stats.status
        new_stats = replace(stats, correct_streak=0, incorrect_count=misses, status=status)

    if stats.status == CardStatus.MASTERED:
        return replace(new_stats, status=CardStatus.MASTERED)
    return new_stats


def normalize_answer(text: str) -> str:
    """Toglie TUTTI gli spazi bianchi (anche interni), non solo ai bordi."""
    return _WHITESPACE_RE.sub("", text or "")


def answers_match(user_answer: str, back_code: str) -> bool:
    """
    Confronto permissivo sulla formattazione, stretto sui token:
    "x = 1" == " x=1 ", ma "X=1" != "x=1".
    """
    return normalize_answer(user_answer) == normalize_answer(back_code)
