from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field


class PaymentPlanDTO(BaseModel):
    """
    Dados de um novo plano de pagamento.
    `installments_count = 0` cria um plano alimentado apenas por marcos.
    """
    client_id: str | None = None
    amount_total: Decimal = Field(gt=0)
    installments_count: int = Field(default=0, ge=0)
    first_due_date: date | None = None
    journey_instance_id: str | None = None


class AttachPaymentPlanDTO(BaseModel):
    plan_id: str | None = None
    plan: PaymentPlanDTO | None = None


class StagePaymentLinkDTO(BaseModel):
    stage_template_id: str
    rule: str
    installment_amount: Decimal | None = None
    days_after_completion: int | None = None
    recipient: str | None = None
    message_template: str | None = None


class InstallmentPaymentDTO(BaseModel):
    payment_method: str | None = None
