from datetime import date

from pydantic import BaseModel


class StartJourneyInstanceDTO(BaseModel):
    template_id: str
    client_id: str
    owner: str
    matter_id: str | None = None


class AdvanceStageDTO(BaseModel):
    outcome: str
    actor: str
    notes: str | None = None


class SlaReportFilterDTO(BaseModel):
    niche: str | None = None
    start: date | None = None
    end: date | None = None
