from __future__ import annotations

from journey_engine.core.application.cqrs import CommandHandler, PagedResult, QueryHandler
from milestone_billing.core.application.services.payment_plan_service import PaymentPlanService
from milestone_billing.core.application.services.reconciliation_service import ReconciliationService, SweepResult
from milestone_billing.core.domain.entities.payment_plan_entity import PaymentPlanEntity
from milestone_billing.core.domain.entities.stage_payment_link_entity import StagePaymentLinkEntity
from milestone_billing.core.domain.repositories.payment_plan_repository import PaymentPlanRepository

from ..commands.payment_plan_commands import (
    AddStagePaymentLinkCommand,
    AttachPaymentPlanCommand,
    CancelInstallmentCommand,
    CreatePaymentPlanCommand,
    MarkInstallmentPaidCommand,
    PausePaymentPlanCommand,
    ReactivatePaymentPlanCommand,
)
from ..commands.reconciliation_commands import RunReconciliationSweepCommand
from ..queries.payment_plan_queries import GetPaymentPlanQuery, ListPaymentPlansQuery, ListStagePaymentLinksQuery


class CreatePaymentPlanHandler(CommandHandler[CreatePaymentPlanCommand]):
    def __init__(self, plan_service: PaymentPlanService):
        self.plan_service = plan_service

    def handle(self, cmd: CreatePaymentPlanCommand) -> PaymentPlanEntity:
        p = cmd.payload
        return self.plan_service.create_plan(
            client_id=p.client_id or "",
            amount_total=p.amount_total,
            installments_count=p.installments_count,
            first_due_date=p.first_due_date,
            journey_instance_id=p.journey_instance_id,
            created_by=cmd.created_by,
        )


class AttachPaymentPlanHandler(CommandHandler[AttachPaymentPlanCommand]):
    def __init__(self, plan_service: PaymentPlanService):
        self.plan_service = plan_service

    def handle(self, cmd: AttachPaymentPlanCommand) -> PaymentPlanEntity:
        p = cmd.payload
        return self.plan_service.attach_payment_plan(
            cmd.instance_id,
            plan_id=p.plan_id,
            new_plan=p.plan.model_dump() if p.plan else None,
            created_by=cmd.created_by,
        )


class AddStagePaymentLinkHandler(CommandHandler[AddStagePaymentLinkCommand]):
    def __init__(self, plan_service: PaymentPlanService):
        self.plan_service = plan_service

    def handle(self, cmd: AddStagePaymentLinkCommand) -> StagePaymentLinkEntity:
        return self.plan_service.add_payment_link(cmd.plan_id, **cmd.payload.model_dump())


class PausePaymentPlanHandler(CommandHandler[PausePaymentPlanCommand]):
    def __init__(self, plan_service: PaymentPlanService):
        self.plan_service = plan_service

    def handle(self, cmd: PausePaymentPlanCommand) -> PaymentPlanEntity:
        return self.plan_service.pause_plan(cmd.id, cmd.actor)


class ReactivatePaymentPlanHandler(CommandHandler[ReactivatePaymentPlanCommand]):
    def __init__(self, plan_service: PaymentPlanService):
        self.plan_service = plan_service

    def handle(self, cmd: ReactivatePaymentPlanCommand) -> PaymentPlanEntity:
        return self.plan_service.reactivate_plan(cmd.id, cmd.actor)


class MarkInstallmentPaidHandler(CommandHandler[MarkInstallmentPaidCommand]):
    def __init__(self, plan_service: PaymentPlanService):
        self.plan_service = plan_service

    def handle(self, cmd: MarkInstallmentPaidCommand) -> PaymentPlanEntity:
        return self.plan_service.mark_installment_paid(cmd.installment_id, cmd.payload.payment_method)


class CancelInstallmentHandler(CommandHandler[CancelInstallmentCommand]):
    def __init__(self, plan_service: PaymentPlanService):
        self.plan_service = plan_service

    def handle(self, cmd: CancelInstallmentCommand) -> PaymentPlanEntity:
        return self.plan_service.cancel_installment(cmd.installment_id, cmd.notes)


class RunReconciliationSweepHandler(CommandHandler[RunReconciliationSweepCommand]):
    def __init__(self, reconciliation_service: ReconciliationService, logger):
        self.reconciliation_service = reconciliation_service
        self.logger = logger

    def handle(self, cmd: RunReconciliationSweepCommand) -> SweepResult:
        self.logger.info("sweep.requested", triggered_by=cmd.triggered_by)
        return self.reconciliation_service.run_sweep()


class ListPaymentPlansHandler(QueryHandler[ListPaymentPlansQuery, PagedResult[PaymentPlanEntity]]):
    def __init__(self, repo: PaymentPlanRepository):
        self.repo = repo

    def handle(self, q: ListPaymentPlansQuery) -> PagedResult[PaymentPlanEntity]:
        return self.repo.list(q.filtros, q.page, q.page_size)


class GetPaymentPlanHandler(QueryHandler[GetPaymentPlanQuery, PaymentPlanEntity]):
    def __init__(self, plan_service: PaymentPlanService):
        self.plan_service = plan_service

    def handle(self, q: GetPaymentPlanQuery) -> PaymentPlanEntity:
        return self.plan_service.get_plan(q.id)


class ListStagePaymentLinksHandler(QueryHandler[ListStagePaymentLinksQuery, list[StagePaymentLinkEntity]]):
    def __init__(self, plan_service: PaymentPlanService):
        self.plan_service = plan_service

    def handle(self, q: ListStagePaymentLinksQuery) -> list[StagePaymentLinkEntity]:
        return self.plan_service.list_links(q.plan_id)
