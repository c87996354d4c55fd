# codedoctor/domain/enums.py
from __future__ import annotations

from enum import Enum


class TraceStatus(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class CardStatus(str, Enum):
    NEW = "new"
    LEARNING = "learning"
    CRITICAL = "critical"
    MASTERED = "mastered"


class DiagnosisStatus(str, Enum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    COMPLETE = "complete"
    ERROR = "error"
