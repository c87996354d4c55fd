# codedoctor/domain/errors.py
from __future__ import annotations


class CodeDoctorError(Exception):
    pass


class EmptyInputError(CodeDoctorError):
    """Codice vuoto (o solo spazi): nessuna chiamata al modello."""


class MissingCredentialError(CodeDoctorError):
    pass


class TransientRequestError(CodeDoctorError):
    """
    Errore "ritentabile" della pipeline: rete, risposta vuota, JSON non valido.
    Non arriva mai al chiamante: dopo l'ultimo tentativo diventa AnalysisFailedError.
    """


class EmptyResponseError(TransientRequestError):
    pass


class AnalysisFailedError(CodeDoctorError):
    def __init__(self, message: str, attempts: int):
        super().__init__(message)
        self.attempts = attempts


class CardNotFoundError(CodeDoctorError, KeyError):
    def __init__(self, card_id: str):
        super().__init__(card_id)
        self.card_id = card_id

    def __str__(self) -> str:
        return f"Flashcard non trovata: {self.card_id}"


class RequestInFlightError(CodeDoctorError):
    pass
