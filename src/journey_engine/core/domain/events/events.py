from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime


def _utcnow() -> datetime:
    return datetime.now(UTC)


# ───────────────────────────────────────────────
# Event Base e Domain Events
# ───────────────────────────────────────────────
@dataclass(frozen=True, kw_only=True)
class DomainEvent:
    event_id: uuid.UUID = field(default_factory=uuid.uuid4)
    occurred_at: datetime = field(default_factory=_utcnow)

# ╭──────────────────────────────────────────────╮
# │ 1. Catálogo de Templates                     │
# ╰──────────────────────────────────────────────╯
@dataclass(frozen=True, kw_only=True)
class JourneyTemplateCreatedEvent(DomainEvent):
    template_id: uuid.UUID
    niche: str
    steps_count: int
    duplicated_from: uuid.UUID | None = None

# ╭──────────────────────────────────────────────╮
# │ 2. Instâncias de Jornada                     │
# ╰──────────────────────────────────────────────╯
@dataclass(frozen=True, kw_only=True)
class JourneyStartedEvent(DomainEvent):
    instance_id: uuid.UUID
    template_id: uuid.UUID
    client_id: str
    owner: str

@dataclass(frozen=True, kw_only=True)
class StageAdvancedEvent(DomainEvent):
    instance_id: uuid.UUID
    stage_progress_id: uuid.UUID
    template_stage_id: uuid.UUID
    position: int
    outcome: str
    actor: str
    sla_bucket: str

@dataclass(frozen=True, kw_only=True)
class StageActivatedEvent(DomainEvent):
    instance_id: uuid.UUID
    stage_progress_id: uuid.UUID
    position: int
    sla_due_at: datetime

@dataclass(frozen=True, kw_only=True)
class JourneyStatusChangedEvent(DomainEvent):
    instance_id: uuid.UUID
    previous: str
    current: str
    actor: str | None = None

# ╭──────────────────────────────────────────────╮
# │ 3. Cobrança por marcos                       │
# ╰──────────────────────────────────────────────╯
@dataclass(frozen=True, kw_only=True)
class MilestoneRuleFiredEvent(DomainEvent):
    link_id: uuid.UUID
    instance_id: uuid.UUID
    plan_id: uuid.UUID
    rule: str
    installment_id: uuid.UUID | None = None

@dataclass(frozen=True, kw_only=True)
class PlanStatusChangedEvent(DomainEvent):
    plan_id: uuid.UUID
    previous: str
    current: str
    reason: str
