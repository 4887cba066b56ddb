from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from typing import Any

from journey_engine.core.application.cqrs import PagedResult
from journey_engine.core.domain.entities.journey_template_entity import JourneyTemplateEntity


class JourneyTemplateRepository(ABC):
    @abstractmethod
    def create(self, template: JourneyTemplateEntity) -> JourneyTemplateEntity:
        """Persiste template + etapas numa única operação."""
        ...

    @abstractmethod
    def update(self, template: JourneyTemplateEntity) -> JourneyTemplateEntity:
        """Substitui metadados e etapas do template."""
        ...

    @abstractmethod
    def find_by_id(self, template_id: str) -> JourneyTemplateEntity | None:
        ...

    @abstractmethod
    def delete(self, template_id: str) -> None:
        ...

    @abstractmethod
    def has_instances(self, template_id: str) -> bool:
        """True se alguma instância referencia o template."""
        ...

    @abstractmethod
    def linked_stage_ids(self, template_id: str) -> set[uuid.UUID]:
        """Ids das etapas do template referenciadas por vínculos de cobrança."""
        ...

    @abstractmethod
    def list(self, filtros: dict[str, Any] | None, page: int, page_size: int) -> PagedResult[JourneyTemplateEntity]:
        ...
