from dataclasses import dataclass
from typing import Any

from journey_engine.core.application.cqrs import QueryDTO


@dataclass(frozen=True, slots=True)
class ListPaymentPlansQuery(QueryDTO):
    """Lista planos (filtros: status, client_id, journey_instance_id)."""
    filtros: dict[str, Any]
    page: int = 1
    page_size: int = 50


@dataclass(frozen=True, slots=True)
class GetPaymentPlanQuery(QueryDTO):
    id: str
    filtros: dict[str, Any]


@dataclass(frozen=True, slots=True)
class ListStagePaymentLinksQuery(QueryDTO):
    plan_id: str
    filtros: dict[str, Any]
