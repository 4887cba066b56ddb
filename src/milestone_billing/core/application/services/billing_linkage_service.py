from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import structlog
from django.db import transaction

from journey_engine.core.domain.entities.journey_instance_entity import (
    JourneyInstanceEntity,
    StageProgressEntity,
)
from journey_engine.core.domain.events.events import DomainEvent, MilestoneRuleFiredEvent
from journey_engine.core.domain.events.exceptions import BillingRuleError, ExternalDispatchError
from journey_engine.core.domain.services.clock import Clock
from milestone_billing.core.domain.entities.enums import PaymentRule
from milestone_billing.core.domain.entities.payment_plan_entity import PaymentPlanEntity
from milestone_billing.core.domain.entities.stage_payment_link_entity import StagePaymentLinkEntity
from milestone_billing.core.domain.repositories.installment_repository import InstallmentRepository
from milestone_billing.core.domain.repositories.payment_plan_repository import PaymentPlanRepository
from milestone_billing.core.domain.repositories.stage_payment_link_repository import StagePaymentLinkRepository
from milestone_billing.core.domain.services.notification_dispatcher import NotificationDispatcher
from milestone_billing.core.utils.message_formatting import format_currency, render_message

log = structlog.get_logger(__name__)

DEFAULT_MESSAGE = "A etapa \"{{ stage_title }}\" da sua jornada foi concluída."


class BillingLinkageService:
    """
    Avalia vínculos etapa→pagamento quando uma etapa é concluída.

    Cada vínculo roda num savepoint próprio junto com o marcador de disparo:
    o efeito da regra e o marcador são gravados (ou descartados) juntos, então
    reexecuções não duplicam parcelas. Vínculos malformados são logados e
    pulados sem afetar o avanço da etapa.
    """

    def __init__(
        self,
        plan_repo: PaymentPlanRepository,
        installment_repo: InstallmentRepository,
        link_repo: StagePaymentLinkRepository,
        notifier: NotificationDispatcher,
        clock: Clock,
    ) -> None:
        self.plan_repo = plan_repo
        self.installment_repo = installment_repo
        self.link_repo = link_repo
        self.notifier = notifier
        self.clock = clock

    # ─── API pública ────────────────────────────────────────────────
    def evaluate_stage_completion(
        self,
        instance: JourneyInstanceEntity,
        stage: StageProgressEntity,
    ) -> list[DomainEvent]:
        plans = {str(p.id): p for p in self.plan_repo.list_for_instance(str(instance.id))}
        if not plans:
            return []

        links = self.link_repo.list_unfired(list(plans), str(stage.template_stage_id), str(instance.id))
        events: list[DomainEvent] = []
        for link in links:
            plan = plans[str(link.plan_id)]
            try:
                with transaction.atomic():
                    if not self.link_repo.record_firing(
                        str(link.id), str(instance.id), str(stage.id), self.clock.now()
                    ):
                        continue
                    evt = self._apply(link, plan, instance, stage)
            except BillingRuleError as exc:
                log.warning(
                    "billing.rule_error",
                    link_id=str(link.id),
                    plan_id=str(plan.id),
                    instance_id=str(instance.id),
                    error=str(exc),
                )
                continue
            if evt is not None:
                events.append(evt)
        return events

    # ─── Regras ────────────────────────────────────────────────────
    def _apply(
        self,
        link: StagePaymentLinkEntity,
        plan: PaymentPlanEntity,
        instance: JourneyInstanceEntity,
        stage: StageProgressEntity,
    ) -> DomainEvent | None:
        rule = link.validate()
        if rule == PaymentRule.CREATE_INSTALLMENT:
            return self._create_installment(link, plan, instance, stage)
        if rule == PaymentRule.ACTIVATE_INSTALLMENT:
            return self._activate_installment(link, plan, instance, stage)
        return self._send_notification(link, plan, instance, stage)

    def _create_installment(self, link, plan, instance, stage) -> DomainEvent:
        seq = self.installment_repo.next_sequence(str(plan.id))
        inst = self.installment_repo.add(
            str(plan.id),
            sequence_number=seq,
            due_date=self.clock.today(),
            amount=Decimal(link.installment_amount),
            triggered_by_stage_id=str(stage.template_stage_id),
        )
        self.plan_repo.increment_installments_count(str(plan.id))
        log.info(
            "billing.installment_created",
            plan_id=str(plan.id),
            installment_id=str(inst.id),
            sequence=seq,
            amount=str(inst.amount),
        )
        return MilestoneRuleFiredEvent(
            link_id=link.id,
            instance_id=instance.id,
            plan_id=plan.id,
            rule=PaymentRule.CREATE_INSTALLMENT.value,
            installment_id=inst.id,
        )

    def _activate_installment(self, link, plan, instance, stage) -> DomainEvent | None:
        target = self.installment_repo.first_untriggered_pending(str(plan.id))
        if target is None:
            # marcador fica gravado: não há o que ativar neste plano
            log.info("billing.no_installment_to_activate", plan_id=str(plan.id), link_id=str(link.id))
            return None
        due = self.clock.today() + timedelta(days=link.days_after_completion)
        self.installment_repo.update(
            str(target.id),
            due_date=due,
            triggered_by_stage_id=stage.template_stage_id,
        )
        log.info(
            "billing.installment_activated",
            plan_id=str(plan.id),
            installment_id=str(target.id),
            due_date=due.isoformat(),
        )
        return MilestoneRuleFiredEvent(
            link_id=link.id,
            instance_id=instance.id,
            plan_id=plan.id,
            rule=PaymentRule.ACTIVATE_INSTALLMENT.value,
            installment_id=target.id,
        )

    def _send_notification(self, link, plan, instance, stage) -> DomainEvent:
        recipient = link.recipient.strip()
        context = {
            "client_id": instance.client_id,
            "matter_id": instance.matter_id or "",
            "stage_title": stage.title,
            "journey": instance.template_name,
            "amount_total": format_currency(plan.amount_total),
        }
        message = render_message(link.message_template or DEFAULT_MESSAGE, context)
        try:
            self.notifier.send(recipient, stage.title, message)
        except ExternalDispatchError as exc:
            log.error(
                "billing.notification_failed",
                link_id=str(link.id),
                recipient=recipient,
                error=str(exc),
            )
        return MilestoneRuleFiredEvent(
            link_id=link.id,
            instance_id=instance.id,
            plan_id=plan.id,
            rule=PaymentRule.SEND_NOTIFICATION.value,
        )
