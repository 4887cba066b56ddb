from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from journey_engine.core.application.cqrs import PagedResult
from milestone_billing.core.domain.entities.enums import PlanStatus
from milestone_billing.core.domain.entities.payment_plan_entity import PaymentPlanEntity


class PaymentPlanRepository(ABC):
    @abstractmethod
    def create(self, plan: PaymentPlanEntity) -> PaymentPlanEntity:
        """Persiste o plano e suas parcelas iniciais."""
        ...

    @abstractmethod
    def find_by_id(self, plan_id: str) -> PaymentPlanEntity | None:
        ...

    @abstractmethod
    def find_for_update(self, plan_id: str, skip_locked: bool = False) -> PaymentPlanEntity | None:
        """Carrega o plano com lock de linha; None se inexistente (ou travado com skip_locked)."""
        ...

    @abstractmethod
    def list_for_instance(self, instance_id: str) -> list[PaymentPlanEntity]:
        ...

    @abstractmethod
    def attach_to_instance(self, plan_id: str, instance_id: str) -> None:
        ...

    @abstractmethod
    def set_status(self, plan_id: str, status: PlanStatus) -> None:
        ...

    @abstractmethod
    def increment_installments_count(self, plan_id: str) -> None:
        ...

    @abstractmethod
    def ids_for_sweep(self, today) -> list[str]:
        """Planos com parcela pendente vencida ou plano ativo com parcela vencida."""
        ...

    @abstractmethod
    def list(self, filtros: dict[str, Any] | None, page: int, page_size: int) -> PagedResult[PaymentPlanEntity]:
        ...
