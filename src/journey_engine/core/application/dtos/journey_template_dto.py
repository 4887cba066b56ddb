from typing import Any

from pydantic import BaseModel, Field


class TemplateStageDTO(BaseModel):
    position: int
    title: str
    type: str
    description: str = ""
    mandatory: bool = True
    sla_hours: int = Field(default=24, ge=0)
    config: dict[str, Any] = Field(default_factory=dict)


class JourneyTemplateDTO(BaseModel):
    """
    Payload de criação/edição de template de jornada.
    """
    name: str
    niche: str
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    stages: list[TemplateStageDTO]
