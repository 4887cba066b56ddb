from __future__ import annotations

from typing import Protocol

from journey_engine.core.domain.entities.journey_instance_entity import (
    JourneyInstanceEntity,
    StageProgressEntity,
)
from journey_engine.core.domain.events.events import DomainEvent


class MilestoneEvaluator(Protocol):
    """
    Porta para o motor de cobrança por marcos.
    Chamado dentro da transação do avanço de etapa; devolve os eventos a
    publicar após o commit.
    """

    def evaluate_stage_completion(
        self,
        instance: JourneyInstanceEntity,
        stage: StageProgressEntity,
    ) -> list[DomainEvent]: ...
