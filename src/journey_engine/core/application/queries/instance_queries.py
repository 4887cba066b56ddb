from dataclasses import dataclass
from typing import Any

from journey_engine.core.application.cqrs import QueryDTO


@dataclass(frozen=True, slots=True)
class ListJourneyInstancesQuery(QueryDTO):
    """
    Lista instâncias com paginação.
    Filtros: status, template_id, niche, client_id, matter_id, owner,
    started_from, started_to.
    """
    filtros: dict[str, Any]
    page: int = 1
    page_size: int = 50


@dataclass(frozen=True, slots=True)
class GetJourneyInstanceQuery(QueryDTO):
    """Recupera uma instância (buckets de SLA derivados na leitura)."""
    id: str
    filtros: dict[str, Any]
