# codedoctor/engine/session_engine.py
import threading
from typing import Callable, Optional

from codedoctor.domain.enums import DiagnosisStatus
from codedoctor.domain.errors import (
    AnalysisFailedError,
    MissingCredentialError,
    RequestInFlightError,
)
from codedoctor.domain.models import DiagnosisState
from codedoctor.engine.diagnosis_pipeline import DiagnosisPipeline
from codedoctor.engine.mastery_engine import MasteryEngine
from codedoctor.engine.review_session import ReviewSession


class SessionEngine:
    """
    Collega la pipeline di diagnosi al mazzo di flashcard.

    Una sola richiesta alla volta (slot singolo, niente coda) e un contatore
    di "generazione": un risultato arrivato dopo reset()/close() viene scartato.
    """

    def __init__(self, pipeline: Optional[DiagnosisPipeline], mastery: MasteryEngine):
        # pipeline None = credenziale mancante: il ripasso funziona lo stesso
        self.pipeline = pipeline
        self.mastery = mastery
        self.state = DiagnosisState()
        self._slot = threading.Lock()
        self._generation = 0
        self._gen_lock = threading.Lock()

    @property
    def is_busy(self) -> bool:
        return self._slot.locked()

    # --- DIAGNOSI ---
    def analyze(self, code: str) -> DiagnosisState:
        if not code or not code.strip():
            print("[SESSION] Diagnosi bloccata: codice vuoto.")
            return self.state

        if not self._slot.acquire(blocking=False):
            raise RequestInFlightError("Un'analisi è già in corso.")
        try:
            generation = self._next_generation()
            self.state = DiagnosisState(status=DiagnosisStatus.ANALYZING, submission=code)
            print("[SESSION] Diagnosi avviata.")

            try:
                if self.pipeline is None:
                    raise MissingCredentialError("GEMINI_API_KEY non è impostata.")
                result = self.pipeline.submit(code)
            except (AnalysisFailedError, MissingCredentialError) as e:
                if self._is_stale(generation):
                    print("[SESSION] Errore arrivato in ritardo: scartato.")
                    return self.state
                print(f"[SESSION] Errore diagnosi: {e}")
                self.state = DiagnosisState(status=DiagnosisStatus.ERROR, error=str(e), submission=code)
                return self.state

            if self._is_stale(generation):
                print("[SESSION] Risultato arrivato in ritardo: scartato.")
                return self.state

            self.state = DiagnosisState(status=DiagnosisStatus.COMPLETE, result=result, submission=code)
            print("[SESSION] Diagnosi completata.")
            self.mastery.ingest(result.generated_flashcards)
            return self.state
        finally:
            self._slot.release()

    def analyze_in_background(
        self,
        code: str,
        on_done: Optional[Callable[[DiagnosisState], None]] = None,
    ) -> threading.Thread:
        """Come analyze(), ma su un thread daemon (per front-end interattivi)."""
        if self.is_busy:
            raise RequestInFlightError("Un'analisi è già in corso.")

        def _worker():
            try:
                state = self.analyze(code)
            except RequestInFlightError as e:
                print(f"[SESSION] {e}")
                return
            if on_done is not None:
                on_done(state)

        t = threading.Thread(target=_worker, daemon=True)
        t.start()
        return t

    def retry(self) -> DiagnosisState:
        """Riesegue tutta la pipeline sull'ultimo codice inviato."""
        if not self.state.submission:
            print("[SESSION] Niente da riprovare.")
            return self.state
        return self.analyze(self.state.submission)

    def reset(self) -> None:
        print("[SESSION] Reset vista.")
        self._next_generation()
        self.state = DiagnosisState()

    def close(self) -> None:
        # nessuna cancellazione vera: la richiesta in volo viene solo abbandonata
        self._next_generation()

    # --- RIPASSO ---
    def start_review(self) -> ReviewSession:
        return ReviewSession(self.mastery)

    # --- UTILS ---
    def _next_generation(self) -> int:
        with self._gen_lock:
            self._generation += 1
            return self._generation

    def _is_stale(self, generation: int) -> bool:
        with self._gen_lock:
            return generation != self._generation
