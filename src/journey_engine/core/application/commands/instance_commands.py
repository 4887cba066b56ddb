from dataclasses import dataclass

from journey_engine.core.application.cqrs import CommandDTO
from journey_engine.core.application.dtos.journey_instance_dto import AdvanceStageDTO, StartJourneyInstanceDTO


@dataclass(frozen=True)
class StartJourneyInstanceCommand(CommandDTO):
    payload: StartJourneyInstanceDTO

@dataclass(frozen=True)
class AdvanceStageCommand(CommandDTO):
    """Avança a etapa ativa (completed | skipped | blocked)."""
    instance_id: str
    stage_progress_id: str
    payload: AdvanceStageDTO

@dataclass(frozen=True)
class ReopenStageCommand(CommandDTO):
    instance_id: str
    stage_progress_id: str
    actor: str

@dataclass(frozen=True)
class PauseJourneyInstanceCommand(CommandDTO):
    id: str
    actor: str | None = None

@dataclass(frozen=True)
class ResumeJourneyInstanceCommand(CommandDTO):
    id: str
    actor: str | None = None

@dataclass(frozen=True)
class CancelJourneyInstanceCommand(CommandDTO):
    id: str
    actor: str | None = None
