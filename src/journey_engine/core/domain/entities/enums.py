"""
Enumerações fechadas do domínio de jornadas.

Tipos de etapa, estados e buckets de SLA são conjuntos fechados: valores
desconhecidos são rejeitados na validação, nunca tratados como texto livre.
"""
from __future__ import annotations

from enum import Enum


class StageType(str, Enum):
    DOCUMENT_REQUEST = "document_request"
    FORM = "form"
    TASK = "task"
    MEETING = "meeting"
    NOTIFICATION = "notification"
    MANUAL_REVIEW = "manual_review"
    LESSON = "lesson"


class StageStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    SKIPPED = "skipped"
    BLOCKED = "blocked"

    @property
    def is_finished(self) -> bool:
        return self in (StageStatus.COMPLETED, StageStatus.SKIPPED)


class StageOutcome(str, Enum):
    COMPLETED = "completed"
    SKIPPED = "skipped"
    BLOCKED = "blocked"


class InstanceStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SlaBucket(str, Enum):
    OVERDUE = "overdue"
    DUE_LT_24H = "due_<24h"
    DUE_24_72H = "due_24_72h"
    DUE_GT_72H = "due_>72h"
    ON_TRACK = "on_track"


class NextActionPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
