from dataclasses import dataclass
from typing import Any

from journey_engine.core.application.cqrs import QueryDTO


@dataclass(frozen=True, slots=True)
class ListJourneyTemplatesQuery(QueryDTO):
    """Lista templates (filtros: niche, tag, search) com paginação."""
    filtros: dict[str, Any]
    page: int = 1
    page_size: int = 50


@dataclass(frozen=True, slots=True)
class GetJourneyTemplateQuery(QueryDTO):
    id: str
    filtros: dict[str, Any]
