from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Any

from milestone_billing.core.domain.entities.payment_plan_entity import InstallmentEntity


class InstallmentRepository(ABC):
    @abstractmethod
    def find_for_update(self, installment_id: str) -> InstallmentEntity | None:
        ...

    @abstractmethod
    def next_sequence(self, plan_id: str) -> int:
        """max(sequence_number) + 1 (1 para plano sem parcelas)."""
        ...

    @abstractmethod
    def add(
        self,
        plan_id: str,
        sequence_number: int,
        due_date: date,
        amount: Decimal,
        triggered_by_stage_id: str | None = None,
    ) -> InstallmentEntity:
        ...

    @abstractmethod
    def first_untriggered_pending(self, plan_id: str) -> InstallmentEntity | None:
        """Parcela pendente mais antiga ainda não tocada por marco."""
        ...

    @abstractmethod
    def update(self, installment_id: str, **changes: Any) -> None:
        ...

    @abstractmethod
    def mark_overdue(self, plan_id: str, today: date) -> int:
        """pendente com due_date < today → vencida. Retorna quantas mudaram."""
        ...

    @abstractmethod
    def count_by_status(self, plan_id: str) -> dict[str, int]:
        ...
