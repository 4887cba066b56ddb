from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from journey_engine.core.domain.entities._base import EntityMixin
from journey_engine.core.domain.entities.enums import StageType


@dataclass(slots=True)
class TemplateStageEntity(EntityMixin):
    id: uuid.UUID
    template_id: uuid.UUID
    position: int
    title: str
    type: StageType
    description: str = ""
    mandatory: bool = True
    sla_hours: int = 24
    config: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.type = StageType(self.type)


@dataclass(slots=True)
class JourneyTemplateEntity(EntityMixin):
    id: uuid.UUID
    name: str
    niche: str
    stages: list[TemplateStageEntity] = field(default_factory=list)
    description: str = ""
    tags: list[str] = field(default_factory=list)
    eta_days: int = 0
    steps_count: int = 0
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @staticmethod
    def estimate_eta_days(sla_hours: list[int]) -> int:
        """Soma dos SLAs em dias, arredondada para cima."""
        return math.ceil(sum(sla_hours) / 24)

    def stage_at(self, position: int) -> TemplateStageEntity | None:
        return next((s for s in self.stages if s.position == position), None)
