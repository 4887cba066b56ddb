from dataclasses import dataclass

from journey_engine.core.application.cqrs import CommandDTO
from milestone_billing.core.application.dtos.payment_plan_dto import (
    AttachPaymentPlanDTO,
    InstallmentPaymentDTO,
    PaymentPlanDTO,
    StagePaymentLinkDTO,
)


@dataclass(frozen=True)
class CreatePaymentPlanCommand(CommandDTO):
    payload: PaymentPlanDTO
    created_by: str | None = None

@dataclass(frozen=True)
class AttachPaymentPlanCommand(CommandDTO):
    instance_id: str
    payload: AttachPaymentPlanDTO
    created_by: str | None = None

@dataclass(frozen=True)
class AddStagePaymentLinkCommand(CommandDTO):
    plan_id: str
    payload: StagePaymentLinkDTO

@dataclass(frozen=True)
class PausePaymentPlanCommand(CommandDTO):
    id: str
    actor: str | None = None

@dataclass(frozen=True)
class ReactivatePaymentPlanCommand(CommandDTO):
    id: str
    actor: str | None = None

@dataclass(frozen=True)
class MarkInstallmentPaidCommand(CommandDTO):
    installment_id: str
    payload: InstallmentPaymentDTO

@dataclass(frozen=True)
class CancelInstallmentCommand(CommandDTO):
    installment_id: str
    notes: str | None = None
