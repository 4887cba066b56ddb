from dataclasses import dataclass

from journey_engine.core.application.cqrs import CommandDTO
from journey_engine.core.application.dtos.journey_template_dto import JourneyTemplateDTO


@dataclass(frozen=True)
class CreateJourneyTemplateCommand(CommandDTO):
    payload: JourneyTemplateDTO
    created_by: str | None = None

@dataclass(frozen=True)
class UpdateJourneyTemplateCommand(CommandDTO):
    id: str
    payload: JourneyTemplateDTO

@dataclass(frozen=True)
class DeleteJourneyTemplateCommand(CommandDTO):
    id: str

@dataclass(frozen=True)
class DuplicateJourneyTemplateCommand(CommandDTO):
    id: str
    created_by: str | None = None
