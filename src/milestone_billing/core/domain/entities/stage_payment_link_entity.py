from __future__ import annotations

import uuid
from dataclasses import dataclass
from decimal import Decimal

from journey_engine.core.domain.entities._base import EntityMixin
from journey_engine.core.domain.events.exceptions import BillingRuleError
from milestone_billing.core.domain.entities.enums import PaymentRule


@dataclass(slots=True)
class StagePaymentLinkEntity(EntityMixin):
    """
    Vínculo etapa (do template) → regra de cobrança de um plano.
    `rule` fica como texto cru: a validação acontece em `validate()`.
    """
    id: uuid.UUID
    plan_id: uuid.UUID
    stage_template_id: uuid.UUID
    rule: str
    installment_amount: Decimal | None = None
    days_after_completion: int | None = None
    recipient: str | None = None
    message_template: str | None = None

    def validate(self) -> PaymentRule:
        """Retorna a regra tipada ou levanta BillingRuleError se malformado."""
        try:
            rule = PaymentRule(self.rule)
        except ValueError as exc:
            raise BillingRuleError(f"regra desconhecida: {self.rule}") from exc

        if rule == PaymentRule.CREATE_INSTALLMENT:
            if self.installment_amount is None or Decimal(self.installment_amount) <= 0:
                raise BillingRuleError("create_installment exige installment_amount > 0")
        elif rule == PaymentRule.ACTIVATE_INSTALLMENT:
            if self.days_after_completion is None or self.days_after_completion < 0:
                raise BillingRuleError("activate_installment exige days_after_completion >= 0")
        elif rule == PaymentRule.SEND_NOTIFICATION:
            if not (self.recipient or "").strip():
                raise BillingRuleError("send_notification exige recipient")
        return rule
