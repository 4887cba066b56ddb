from dataclasses import dataclass
from typing import Any

from journey_engine.core.application.cqrs import QueryDTO
from journey_engine.core.application.dtos.journey_instance_dto import SlaReportFilterDTO


@dataclass(frozen=True, slots=True)
class GetSlaReportQuery(QueryDTO):
    payload: SlaReportFilterDTO
    filtros: dict[str, Any]
