from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from journey_engine.core.application.cqrs import PagedResult
from journey_engine.core.domain.entities.journey_instance_entity import JourneyInstanceEntity


class JourneyInstanceRepository(ABC):
    @abstractmethod
    def create(self, instance: JourneyInstanceEntity) -> JourneyInstanceEntity:
        """Persiste a instância e o snapshot de etapas."""
        ...

    @abstractmethod
    def find_by_id(self, instance_id: str) -> JourneyInstanceEntity | None:
        ...

    @abstractmethod
    def find_for_update(self, instance_id: str) -> JourneyInstanceEntity | None:
        """Carrega a instância com lock de linha (usar dentro de transação)."""
        ...

    @abstractmethod
    def compare_and_set_stage(self, stage_progress_id: str, expected_version: int, **changes: Any) -> bool:
        """
        Atualiza a etapa apenas se ainda estiver em andamento na versão esperada.
        Retorna False quando outro escritor chegou antes.
        """
        ...

    @abstractmethod
    def activate_stage(self, stage_progress_id: str, started_at: datetime, sla_due_at: datetime) -> None:
        ...

    @abstractmethod
    def save_state(self, instance: JourneyInstanceEntity) -> None:
        """Grava status, posição atual, progresso e próxima ação."""
        ...

    @abstractmethod
    def list(self, filtros: dict[str, Any] | None, page: int, page_size: int) -> PagedResult[JourneyInstanceEntity]:
        ...

    @abstractmethod
    def list_for_report(self, filtros: dict[str, Any]) -> list[JourneyInstanceEntity]:
        """Instâncias (com etapas) para relatórios, sem paginação."""
        ...
