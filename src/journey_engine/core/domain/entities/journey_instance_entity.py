from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from journey_engine.core.domain.entities._base import EntityMixin
from journey_engine.core.domain.entities.enums import InstanceStatus, SlaBucket, StageStatus, StageType


@dataclass(slots=True)
class StageProgressEntity(EntityMixin):
    """Snapshot de uma etapa do template + seu estado dentro da instância."""
    id: uuid.UUID
    instance_id: uuid.UUID
    template_stage_id: uuid.UUID
    position: int
    title: str
    type: StageType
    mandatory: bool
    sla_hours: int
    status: StageStatus = StageStatus.PENDING
    description: str = ""
    config: dict[str, Any] = field(default_factory=dict)
    started_at: datetime | None = None
    completed_at: datetime | None = None
    sla_due_at: datetime | None = None
    completed_by: str | None = None
    notes: str | None = None
    version: int = 0
    sla_bucket: SlaBucket = SlaBucket.ON_TRACK

    def __post_init__(self) -> None:
        self.type = StageType(self.type)
        self.status = StageStatus(self.status)
        self.sla_bucket = SlaBucket(self.sla_bucket)


@dataclass(slots=True)
class JourneyInstanceEntity(EntityMixin):
    id: uuid.UUID
    template_id: uuid.UUID
    client_id: str
    owner: str
    status: InstanceStatus
    started_at: datetime
    matter_id: str | None = None
    template_name: str = ""
    niche: str = ""
    current_stage_position: int | None = None
    progress_pct: float = 0.0
    next_action: dict[str, Any] | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    stages: list[StageProgressEntity] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        self.status = InstanceStatus(self.status)

    # ─── helpers de leitura ─────────────────────────────────────────
    def stage(self, stage_progress_id: uuid.UUID | str) -> StageProgressEntity | None:
        return next((s for s in self.stages if str(s.id) == str(stage_progress_id)), None)

    def active_stage(self) -> StageProgressEntity | None:
        if self.current_stage_position is None:
            return None
        return next(
            (s for s in self.stages if s.position == self.current_stage_position),
            None,
        )

    def compute_progress(self) -> float:
        """Percentual de etapas concluídas ou puladas sobre o total."""
        if not self.stages:
            return 0.0
        done = sum(1 for s in self.stages if s.status.is_finished)
        return round(done / len(self.stages) * 100, 2)

    def mandatory_all_completed(self) -> bool:
        return all(s.status == StageStatus.COMPLETED for s in self.stages if s.mandatory)
