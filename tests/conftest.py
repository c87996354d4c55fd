from __future__ import annotations

import json
from typing import Any

import pytest

from codedoctor.domain.models import FlashcardDraft


def diagnosis_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "rawError": "The loop reads one element past the end of the list.",
        "trace": [
            {"status": "success", "title": "Define list", "desc": "nums holds three items", "isError": False},
            {
                "status": "error",
                "title": "Index out of range",
                "desc": "range(len(nums) + 1) goes one step too far",
                "isError": True,
                "badCode": "for i in range(len(nums) + 1):",
                "goodCode": "for i in range(len(nums)):",
                "errorHighlight": "+ 1",
                "reason": "Indexes stop at len - 1",
                "tip": "Iterate over the list directly",
            },
        ],
        "generatedFlashcards": [
            {
                "concept": "List index bounds",
                "frontCode": "for i in range(len(nums) + 1):",
                "errorHighlight": "+ 1",
                "backCode": "for i in range(len(nums)):",
                "explanation": "The last valid index is len(nums) - 1.",
            }
        ],
    }
    payload.update(overrides)
    return payload


class FakeGenerator:
    """Stand-in for GeminiClient: returns/raises the scripted outcomes in order."""

    def __init__(self, *outcomes: Any) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[tuple[str, str, dict, Any]] = []

    def generate(self, prompt: str, system_instruction: str, output_schema: dict, temperature: Any = None) -> str:
        self.calls.append((prompt, system_instruction, output_schema, temperature))
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, dict):
            return json.dumps(outcome)
        return outcome


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def make_draft():
    def _make(concept: str = "Off-by-one", back_code: str = "x = 1") -> FlashcardDraft:
        return FlashcardDraft(
            concept=concept,
            front_code="x = 2",
            back_code=back_code,
            explanation="x must start at 1",
            error_highlight="2",
        )

    return _make
