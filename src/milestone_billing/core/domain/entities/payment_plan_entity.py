from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from journey_engine.core.domain.entities._base import EntityMixin
from milestone_billing.core.domain.entities.enums import InstallmentStatus, PlanStatus


@dataclass(slots=True)
class InstallmentEntity(EntityMixin):
    id: uuid.UUID
    plan_id: uuid.UUID
    sequence_number: int
    due_date: date
    amount: Decimal
    status: InstallmentStatus = InstallmentStatus.PENDENTE
    paid_at: datetime | None = None
    payment_method: str | None = None
    triggered_by_stage_id: uuid.UUID | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        self.status = InstallmentStatus(self.status)


@dataclass(slots=True)
class PaymentPlanEntity(EntityMixin):
    id: uuid.UUID
    client_id: str
    amount_total: Decimal
    installments_count: int
    status: PlanStatus = PlanStatus.ATIVO
    journey_instance_id: uuid.UUID | None = None
    created_by: str | None = None
    installments: list[InstallmentEntity] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        self.status = PlanStatus(self.status)

    @property
    def amount_paid(self) -> Decimal:
        return sum(
            (i.amount for i in self.installments if i.status == InstallmentStatus.PAGA),
            Decimal("0"),
        )

    @property
    def amount_overdue(self) -> Decimal:
        return sum(
            (i.amount for i in self.installments if i.status == InstallmentStatus.VENCIDA),
            Decimal("0"),
        )
