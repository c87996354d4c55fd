# codedoctor/ai/prompt_builder.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class PromptBuildConfig:
    language: str = "English"  # lingua delle spiegazioni
    code_language: str = "Python"


def sanitize_code(code: str) -> str:
    """
    Rimuove i "gremlins" del copia-incolla dal web (spazi non separabili U+00A0)
    e gli spazi ai bordi. Non cambia la semantica del programma.
    """
    return code.replace("\u00a0", " ").strip()


# Schema di output (formato OpenAPI accettato da google-genai).
# È un contratto col modello: lato nostro validiamo solo i campi obbligatori.
DIAGNOSIS_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "rawError": {
            "type": "STRING",
            "description": "A one-sentence summary of the main pain point.",
        },
        "trace": {
            "type": "ARRAY",
            "description": "The logic execution steps.",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "status": {"type": "STRING", "enum": ["success", "warning", "error"]},
                    "title": {"type": "STRING"},
                    "desc": {"type": "STRING"},
                    "isError": {"type": "BOOLEAN"},
                    "badCode": {"type": "STRING"},
                    "errorHighlight": {
                        "type": "STRING",
                        "description": "The exact substring in badCode to highlight as the error source",
                    },
                    "goodCode": {"type": "STRING"},
                    "reason": {"type": "STRING"},
                    "tip": {"type": "STRING"},
                },
                "required": ["status", "title", "desc", "isError"],
            },
        },
        "generatedFlashcards": {
            "type": "ARRAY",
            "description": "List of flashcards generated from the errors found.",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "concept": {
                        "type": "STRING",
                        "description": "The abstract concept name (e.g. Variable Naming)",
                    },
                    "frontCode": {"type": "STRING", "description": "The specific line of code with the error"},
                    "errorHighlight": {
                        "type": "STRING",
                        "description": "The exact substring in frontCode to highlight",
                    },
                    "backCode": {"type": "STRING", "description": "The corrected line of code"},
                    "explanation": {"type": "STRING", "description": "Why the fix works"},
                },
                "required": ["concept", "frontCode", "backCode", "explanation"],
            },
        },
    },
    "required": ["rawError", "trace"],
}


def build_system_instruction(cfg: PromptBuildConfig = PromptBuildConfig()) -> str:
    return f"""
You are 'Code Doctor', a {cfg.code_language} teaching expert for absolute beginners.

CORE TASK:
1. Diagnose the logic of the code.
2. For every LOGIC ERROR you find, generate one FLASHCARD.
   - A flashcard contains: the core concept name, the faulty code snippet,
     the corrected code snippet and a one-sentence explanation of the principle.

OUTPUT RULES:
- Avoid obscure jargon. Prefer metaphors.
- The 'trace' array is the execution flow, in execution order.
- The 'generatedFlashcards' array holds the practice cards for the errors.
- For faulty code ALWAYS provide 'errorHighlight': the exact substring that causes the error.
""".strip()


def build_diagnosis_prompt(code: str, cfg: PromptBuildConfig = PromptBuildConfig()) -> str:
    """
    Prompt utente. Il codice deve essere già passato da sanitize_code().
    """
    return f"""
Analyze this {cfg.code_language} snippet for a beginner.

CODE TO ANALYZE:
\"\"\"
{code}
\"\"\"

TASKS:
1. Trace the logic flow and find the errors.
2. If errors are found, generate "learning flashcard" data. Abstract each concrete
   error into a concept (e.g. a KeyError on "df['a']" becomes "DataFrame column indexing").
3. Return the structured diagnosis JSON. Write all text in {cfg.language}.
""".strip()
