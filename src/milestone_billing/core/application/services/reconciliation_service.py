from __future__ import annotations

from dataclasses import dataclass, field

import structlog
from django.db import transaction

from journey_engine.core.domain.events.events import DomainEvent, PlanStatusChangedEvent
from journey_engine.core.domain.services.clock import Clock
from journey_engine.core.domain.services.event_dispatcher import EventDispatcher
from milestone_billing.core.domain.entities.enums import InstallmentStatus, PlanStatus
from milestone_billing.core.domain.repositories.installment_repository import InstallmentRepository
from milestone_billing.core.domain.repositories.payment_plan_repository import PaymentPlanRepository

log = structlog.get_logger(__name__)


@dataclass
class SweepResult:
    plans_checked: int = 0
    installments_aged: int = 0
    plans_defaulted: int = 0
    failed_plan_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "plans_checked": self.plans_checked,
            "installments_aged": self.installments_aged,
            "plans_defaulted": self.plans_defaulted,
            "failed_plan_ids": list(self.failed_plan_ids),
        }


class ReconciliationService:
    """
    Varredura periódica de cobrança.

    Só move estados para frente (pendente → vencida, ativo → inadimplente),
    uma transação por plano com lock de linha; planos travados por outro
    escritor ficam para a próxima execução. Falha de um plano não aborta os demais.
    """

    def __init__(
        self,
        plan_repo: PaymentPlanRepository,
        installment_repo: InstallmentRepository,
        dispatcher: EventDispatcher,
        clock: Clock,
    ) -> None:
        self.plan_repo = plan_repo
        self.installment_repo = installment_repo
        self.dispatcher = dispatcher
        self.clock = clock

    def run_sweep(self) -> SweepResult:
        today = self.clock.today()
        result = SweepResult()
        events: list[DomainEvent] = []
        plan_ids = self.plan_repo.ids_for_sweep(today)
        log.info("sweep.start", today=today.isoformat(), candidates=len(plan_ids))

        for plan_id in plan_ids:
            result.plans_checked += 1
            try:
                aged, evt = self._sweep_plan(plan_id, today)
            except Exception as exc:
                log.error("sweep.plan_failed", plan_id=plan_id, error=str(exc), exc_info=True)
                result.failed_plan_ids.append(plan_id)
                continue
            result.installments_aged += aged
            if evt is not None:
                result.plans_defaulted += 1
                events.append(evt)

        self.dispatcher.publish_on_commit(events)
        log.info("sweep.done", **result.to_dict())
        return result

    def _sweep_plan(self, plan_id: str, today) -> tuple[int, DomainEvent | None]:
        with transaction.atomic():
            plan = self.plan_repo.find_for_update(plan_id, skip_locked=True)
            if plan is None:
                log.info("sweep.plan_locked_or_gone", plan_id=plan_id)
                return 0, None

            aged = self.installment_repo.mark_overdue(plan_id, today)
            if plan.status != PlanStatus.ATIVO:
                return aged, None

            counts = self.installment_repo.count_by_status(plan_id)
            if not counts.get(InstallmentStatus.VENCIDA.value):
                return aged, None

            self.plan_repo.set_status(plan_id, PlanStatus.INADIMPLENTE)
            log.info("sweep.plan_defaulted", plan_id=plan_id, overdue=counts[InstallmentStatus.VENCIDA.value])
            return aged, PlanStatusChangedEvent(
                plan_id=plan.id,
                previous=PlanStatus.ATIVO.value,
                current=PlanStatus.INADIMPLENTE.value,
                reason="parcela vencida",
            )
