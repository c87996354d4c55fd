# codedoctor/main.py
from __future__ import annotations

from typing import Callable, List, Optional

from codedoctor.ai.gemini_client import GeminiClient, GeminiConfig
from codedoctor.ai.prompt_builder import PromptBuildConfig
from codedoctor.config import AppConfig
from codedoctor.domain.enums import CardStatus, DiagnosisStatus, TraceStatus
from codedoctor.domain.errors import MissingCredentialError, RequestInFlightError
from codedoctor.domain.models import DiagnosisResult, Flashcard, TraceStep
from codedoctor.engine.diagnosis_pipeline import DiagnosisPipeline
from codedoctor.engine.flashcard_store import FlashcardStore
from codedoctor.engine.mastery_engine import MasteryEngine
from codedoctor.engine.session_engine import SessionEngine

STATUS_LABEL = {
    TraceStatus.SUCCESS: "OK",
    TraceStatus.WARNING: "ATTENZIONE",
    TraceStatus.ERROR: "ERRORE",
}


def highlight(code: str, fragment: Optional[str]) -> str:
    """Evidenzia il frammento con >>> <<<; se non compare nel codice lo ignora."""
    if not fragment or fragment not in code:
        return code
    return code.replace(fragment, f">>>{fragment}<<<")


def render_step(index: int, step: TraceStep) -> str:
    lines = [f"[{index}] {STATUS_LABEL.get(step.status, step.status.value)} - {step.title}"]
    if step.description:
        lines.append(f"    {step.description}")
    # i campi opzionali possono mancare anche con is_error=True
    if step.is_error and step.has_fix:
        lines.append("    Codice errato:")
        lines.extend("      " + ln for ln in highlight(step.bad_code or "", step.error_highlight).splitlines())
        lines.append("    Codice corretto:")
        lines.extend("      " + ln for ln in (step.good_code or "").splitlines())
    if step.reason:
        lines.append(f"    Perché: {step.reason}")
    if step.tip:
        lines.append(f"    Suggerimento: {step.tip}")
    return "\n".join(lines)


def render_diagnosis(result: DiagnosisResult) -> str:
    out = ["=" * 80, f"Diagnosi: {result.raw_error}", "-" * 80]
    if not result.trace:
        out.append("(nessun passo nella traccia)")
    out.extend(render_step(i, s) for i, s in enumerate(result.trace, start=1))
    out.append("=" * 80)
    return "\n".join(out)


def render_card(card: Flashcard, position: int, total: int) -> str:
    mode = "CRITICAL_MODE" if card.stats.status == CardStatus.CRITICAL else "CONCEPT_CARD"
    dots = "".join("●" if i < card.stats.correct_streak else "○" for i in range(3))
    return "\n".join([
        "=" * 80,
        f"{mode} {position}/{total} | {card.concept} | {dots}",
        "-" * 80,
        highlight(card.front_code, card.error_highlight),
        "-" * 80,
    ])


def _read_code(read: Optional[Callable[[str], str]] = None) -> str:
    read = read or input
    print("Incolla il codice. Termina con una riga contenente solo END.")
    lines: List[str] = []
    while True:
        line = read("")
        if line.strip() == "END":
            break
        lines.append(line)
    return "\n".join(lines)


def _review(session: SessionEngine, read: Optional[Callable[[str], str]] = None) -> None:
    read = read or input
    review = session.start_review()
    while True:
        card = review.current()
        if card is None or review.completed:
            print("\nSfida completata! Tutte le carte sono state padroneggiate.")
            return

        pos, total = review.position()
        print(render_card(card, pos, total))
        answer = read("Scrivi il codice corretto (Q=esci): ")
        if answer.strip().lower() in ("q", "quit", "exit"):
            return

        res = review.check(answer)
        if res.is_correct:
            print("Corretto! Streak:", res.card.stats.correct_streak)
        else:
            print("Sbagliato. Soluzione:")
            print(card.back_code)
        print(f"Spiegazione: {card.explanation}")
        review.advance()


def _print_counts(session: SessionEngine) -> None:
    c = session.mastery.counts()
    print(f"Flashcard: {c.total} | da ripassare: {c.active} | padroneggiate: {c.mastered} | critiche: {c.critical}")


def build_session(cfg: AppConfig) -> SessionEngine:
    mastery = MasteryEngine(FlashcardStore(cfg.store_path))
    try:
        gemini = GeminiClient(GeminiConfig(api_key=cfg.api_key, model=cfg.model, temperature=cfg.temperature))
    except MissingCredentialError as e:
        print(f"ERRORE: {e} La diagnosi è disattivata, il ripasso funziona.")
        return SessionEngine(None, mastery)

    pipeline = DiagnosisPipeline(gemini, PromptBuildConfig(language=cfg.language))
    return SessionEngine(pipeline, mastery)


def main() -> int:
    cfg = AppConfig.from_env()
    session = build_session(cfg)

    print("CODE DOCTOR (CLI)")
    print(f"- Model: {cfg.model}")
    print(f"- Store: {cfg.store_path}")

    while True:
        _print_counts(session)
        choice = input("[D]iagnosi  [R]ipasso  [P]ulisci padroneggiate  [Q]uit: ").strip().lower()

        if choice in ("q", "quit", "exit"):
            session.close()
            print("Uscita.")
            return 0

        if choice == "d":
            try:
                state = session.analyze(_read_code())
            except RequestInFlightError as e:
                print(e)
                continue
            if state.status == DiagnosisStatus.COMPLETE and state.result is not None:
                print(render_diagnosis(state.result))
            elif state.status == DiagnosisStatus.ERROR:
                print(f"ERRORE: {state.error}")
                if input("Riprovare? (s/N): ").strip().lower() == "s":
                    state = session.retry()
                    if state.result is not None:
                        print(render_diagnosis(state.result))
                    else:
                        print(f"ERRORE: {state.error}")
        elif choice == "r":
            _review(session)
        elif choice == "p":
            removed = session.mastery.purge_mastered()
            print(f"Rimosse {removed} flashcard padroneggiate.")


if __name__ == "__main__":
    raise SystemExit(main())
