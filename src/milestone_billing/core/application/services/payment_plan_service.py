from __future__ import annotations

import calendar
import uuid
from datetime import date
from decimal import ROUND_DOWN, Decimal

import structlog
from django.db import transaction

from journey_engine.core.domain.events.events import PlanStatusChangedEvent
from journey_engine.core.domain.events.exceptions import NotFoundError, StateConflict, ValidationError
from journey_engine.core.domain.repositories.journey_instance_repository import JourneyInstanceRepository
from journey_engine.core.domain.services.clock import Clock
from journey_engine.core.domain.services.event_dispatcher import EventDispatcher
from milestone_billing.core.domain.entities.enums import InstallmentStatus, PlanStatus
from milestone_billing.core.domain.entities.payment_plan_entity import InstallmentEntity, PaymentPlanEntity
from milestone_billing.core.domain.entities.stage_payment_link_entity import StagePaymentLinkEntity
from milestone_billing.core.domain.repositories.installment_repository import InstallmentRepository
from milestone_billing.core.domain.repositories.payment_plan_repository import PaymentPlanRepository
from milestone_billing.core.domain.repositories.stage_payment_link_repository import StagePaymentLinkRepository

log = structlog.get_logger(__name__)

CENT = Decimal("0.01")


def add_months(d: date, months: int) -> date:
    """Soma meses preservando o dia quando possível (31/01 + 1 → 28/02)."""
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def split_amount(total: Decimal, count: int) -> list[Decimal]:
    """Divide em `count` parcelas iguais; o resto dos centavos vai na última."""
    if count <= 0:
        return []
    base = (total / count).quantize(CENT, rounding=ROUND_DOWN)
    amounts = [base] * count
    amounts[-1] = total - base * (count - 1)
    return amounts


class PaymentPlanService:
    """
    Planos de pagamento, parcelas e vínculos etapa→pagamento.

    Transições de plano:
        ativo → concluido      (todas as parcelas não canceladas pagas)
        inadimplente → ativo   (somente ação manual: reactivate_plan)
        qualquer → pausado     (ação manual)
    """

    def __init__(
        self,
        plan_repo: PaymentPlanRepository,
        installment_repo: InstallmentRepository,
        link_repo: StagePaymentLinkRepository,
        instance_repo: JourneyInstanceRepository,
        dispatcher: EventDispatcher,
        clock: Clock,
    ) -> None:
        self.plan_repo = plan_repo
        self.installment_repo = installment_repo
        self.link_repo = link_repo
        self.instance_repo = instance_repo
        self.dispatcher = dispatcher
        self.clock = clock

    # ─── Planos ─────────────────────────────────────────────────────
    def create_plan(
        self,
        client_id: str,
        amount_total: Decimal,
        installments_count: int,
        first_due_date: date | None = None,
        journey_instance_id: str | None = None,
        created_by: str | None = None,
    ) -> PaymentPlanEntity:
        if not (client_id or "").strip():
            raise ValidationError("client_id é obrigatório", field="client_id")
        amount_total = Decimal(amount_total).quantize(CENT)
        if amount_total <= 0:
            raise ValidationError("amount_total deve ser positivo", field="amount_total")
        if installments_count < 0:
            raise ValidationError("installments_count não pode ser negativo", field="installments_count")

        first_due = first_due_date or self.clock.today()
        plan_id = uuid.uuid4()
        installments = [
            InstallmentEntity(
                id=uuid.uuid4(),
                plan_id=plan_id,
                sequence_number=n,
                due_date=add_months(first_due, n - 1),
                amount=amount,
            )
            for n, amount in enumerate(split_amount(amount_total, installments_count), start=1)
        ]
        plan = PaymentPlanEntity(
            id=plan_id,
            client_id=client_id,
            amount_total=amount_total,
            installments_count=installments_count,
            journey_instance_id=journey_instance_id,
            created_by=created_by,
            installments=installments,
        )
        with transaction.atomic():
            saved = self.plan_repo.create(plan)
        log.info(
            "billing.plan_created",
            plan_id=str(saved.id),
            client_id=client_id,
            amount_total=str(amount_total),
            installments=installments_count,
        )
        return saved

    def attach_payment_plan(
        self,
        instance_id: str,
        plan_id: str | None = None,
        new_plan: dict | None = None,
        created_by: str | None = None,
    ) -> PaymentPlanEntity:
        """
        Vincula um plano existente (plan_id) ou cria um novo (new_plan) à instância.
        """
        instance = self.instance_repo.find_by_id(instance_id)
        if instance is None:
            raise NotFoundError("JourneyInstance", instance_id)
        if bool(plan_id) == bool(new_plan):
            raise ValidationError("informe plan_id OU os dados de um novo plano", field="plan")

        if new_plan:
            return self.create_plan(
                client_id=new_plan.get("client_id") or instance.client_id,
                amount_total=Decimal(str(new_plan["amount_total"])),
                installments_count=int(new_plan.get("installments_count", 0)),
                first_due_date=new_plan.get("first_due_date"),
                journey_instance_id=str(instance.id),
                created_by=created_by,
            )

        with transaction.atomic():
            plan = self.plan_repo.find_for_update(plan_id)
            if plan is None:
                raise NotFoundError("PaymentPlan", plan_id)
            if plan.journey_instance_id and str(plan.journey_instance_id) != str(instance.id):
                raise StateConflict(StateConflict.INVALID_TRANSITION, "plano já vinculado a outra jornada")
            if plan.client_id != instance.client_id:
                raise ValidationError("plano pertence a outro cliente", field="client_id")
            self.plan_repo.attach_to_instance(str(plan.id), str(instance.id))

        log.info("billing.plan_attached", plan_id=str(plan_id), instance_id=str(instance.id))
        return self.get_plan(str(plan_id))

    def get_plan(self, plan_id: str) -> PaymentPlanEntity:
        plan = self.plan_repo.find_by_id(plan_id)
        if plan is None:
            raise NotFoundError("PaymentPlan", plan_id)
        return plan

    def pause_plan(self, plan_id: str, actor: str | None = None) -> PaymentPlanEntity:
        return self._set_plan_status(plan_id, PlanStatus.PAUSADO, allowed=None, reason=f"pausa manual ({actor})")

    def reactivate_plan(self, plan_id: str, actor: str | None = None) -> PaymentPlanEntity:
        """Reativação e eventual conclusão do plano são gravadas juntas."""
        with transaction.atomic():
            self._set_plan_status(
                plan_id,
                PlanStatus.ATIVO,
                allowed={PlanStatus.INADIMPLENTE, PlanStatus.PAUSADO},
                reason=f"reativação manual ({actor})",
            )
            self._refresh_completion(plan_id)
        return self.get_plan(plan_id)

    # ─── Vínculos etapa → pagamento ────────────────────────────────
    def add_payment_link(
        self,
        plan_id: str,
        stage_template_id: str,
        rule: str,
        installment_amount: Decimal | None = None,
        days_after_completion: int | None = None,
        recipient: str | None = None,
        message_template: str | None = None,
    ) -> StagePaymentLinkEntity:
        plan = self.get_plan(plan_id)
        if not self.link_repo.template_stage_exists(stage_template_id):
            raise NotFoundError("TemplateStage", stage_template_id)
        link = StagePaymentLinkEntity(
            id=uuid.uuid4(),
            plan_id=plan.id,
            stage_template_id=uuid.UUID(str(stage_template_id)),
            rule=rule,
            installment_amount=Decimal(str(installment_amount)) if installment_amount is not None else None,
            days_after_completion=days_after_completion,
            recipient=recipient,
            message_template=message_template,
        )
        link.validate()
        saved = self.link_repo.create(link)
        log.info("billing.link_created", plan_id=str(plan.id), link_id=str(saved.id), rule=rule)
        return saved

    def list_links(self, plan_id: str) -> list[StagePaymentLinkEntity]:
        self.get_plan(plan_id)
        return self.link_repo.list_for_plan(plan_id)

    # ─── Parcelas ──────────────────────────────────────────────────
    def mark_installment_paid(
        self,
        installment_id: str,
        payment_method: str | None = None,
    ) -> PaymentPlanEntity:
        with transaction.atomic():
            inst = self._installment_for_update(installment_id)
            if inst.status not in (InstallmentStatus.PENDENTE, InstallmentStatus.VENCIDA):
                raise StateConflict(StateConflict.INVALID_TRANSITION, f"parcela em {inst.status.value}")
            self.installment_repo.update(
                str(inst.id),
                status=InstallmentStatus.PAGA.value,
                paid_at=self.clock.now(),
                payment_method=payment_method,
            )
            self._refresh_completion(str(inst.plan_id))
        log.info("billing.installment_paid", installment_id=str(inst.id), plan_id=str(inst.plan_id))
        return self.get_plan(str(inst.plan_id))

    def cancel_installment(self, installment_id: str, notes: str | None = None) -> PaymentPlanEntity:
        with transaction.atomic():
            inst = self._installment_for_update(installment_id)
            if inst.status not in (InstallmentStatus.PENDENTE, InstallmentStatus.VENCIDA):
                raise StateConflict(StateConflict.INVALID_TRANSITION, f"parcela em {inst.status.value}")
            self.installment_repo.update(str(inst.id), status=InstallmentStatus.CANCELADA.value, notes=notes)
            self._refresh_completion(str(inst.plan_id))
        log.info("billing.installment_cancelled", installment_id=str(inst.id), plan_id=str(inst.plan_id))
        return self.get_plan(str(inst.plan_id))

    # ─── Helpers ───────────────────────────────────────────────────
    def _installment_for_update(self, installment_id: str) -> InstallmentEntity:
        inst = self.installment_repo.find_for_update(installment_id)
        if inst is None:
            raise NotFoundError("Installment", installment_id)
        return inst

    def _refresh_completion(self, plan_id: str) -> None:
        """Plano ativo sem parcelas em aberto vira concluido."""
        plan = self.plan_repo.find_for_update(plan_id)
        if plan is None or plan.status != PlanStatus.ATIVO:
            return
        counts = self.installment_repo.count_by_status(plan_id)
        open_count = counts.get(InstallmentStatus.PENDENTE.value, 0) + counts.get(InstallmentStatus.VENCIDA.value, 0)
        if counts.get(InstallmentStatus.PAGA.value, 0) and not open_count:
            self.plan_repo.set_status(plan_id, PlanStatus.CONCLUIDO)
            self.dispatcher.publish_on_commit(
                [
                    PlanStatusChangedEvent(
                        plan_id=plan.id,
                        previous=PlanStatus.ATIVO.value,
                        current=PlanStatus.CONCLUIDO.value,
                        reason="todas as parcelas pagas",
                    )
                ]
            )
            log.info("billing.plan_concluded", plan_id=str(plan_id))

    def _set_plan_status(
        self,
        plan_id: str,
        target: PlanStatus,
        allowed: set[PlanStatus] | None,
        reason: str,
    ) -> PaymentPlanEntity:
        with transaction.atomic():
            plan = self.plan_repo.find_for_update(plan_id)
            if plan is None:
                raise NotFoundError("PaymentPlan", plan_id)
            if allowed is not None and plan.status not in allowed:
                raise StateConflict(
                    StateConflict.INVALID_TRANSITION,
                    f"{plan.status.value} → {target.value} não permitido",
                )
            previous = plan.status
            self.plan_repo.set_status(plan_id, target)
            self.dispatcher.publish_on_commit(
                [PlanStatusChangedEvent(plan_id=plan.id, previous=previous.value, current=target.value, reason=reason)]
            )

        log.info("billing.plan_status_changed", plan_id=str(plan_id), previous=previous.value, current=target.value)
        return self.get_plan(plan_id)
