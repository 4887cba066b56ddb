"""
Montagem dos serviços com os repositórios reais (ORM) e colaboradores
determinísticos, sem passar pelos containers de DI.
"""
from dataclasses import dataclass

from journey_engine.adapters.repositories.journey_instance_repo_impl import JourneyInstanceRepoImpl
from journey_engine.adapters.repositories.journey_template_repo_impl import JourneyTemplateRepoImpl
from journey_engine.core.application.services.journey_instance_service import JourneyInstanceService
from journey_engine.core.application.services.sla_report_service import SlaReportService
from journey_engine.core.application.services.template_catalog_service import TemplateCatalogService
from milestone_billing.adapters.repositories.installment_repo_impl import InstallmentRepoImpl
from milestone_billing.adapters.repositories.payment_plan_repo_impl import PaymentPlanRepoImpl
from milestone_billing.adapters.repositories.stage_payment_link_repo_impl import StagePaymentLinkRepoImpl
from milestone_billing.core.application.services.billing_linkage_service import BillingLinkageService
from milestone_billing.core.application.services.payment_plan_service import PaymentPlanService
from milestone_billing.core.application.services.reconciliation_service import ReconciliationService
from tests.helpers.clock import ManualClock
from tests.helpers.fakes import RecordingDispatcher, RecordingNotifier


@dataclass
class Engine:
    clock: ManualClock
    dispatcher: RecordingDispatcher
    notifier: RecordingNotifier
    catalog: TemplateCatalogService
    instances: JourneyInstanceService
    reports: SlaReportService
    plans: PaymentPlanService
    linkage: BillingLinkageService
    reconciliation: ReconciliationService
    instance_repo: JourneyInstanceRepoImpl
    plan_repo: PaymentPlanRepoImpl


def build_engine(clock: ManualClock | None = None, notifier: RecordingNotifier | None = None) -> Engine:
    clock = clock or ManualClock()
    dispatcher = RecordingDispatcher()
    notifier = notifier or RecordingNotifier()

    template_repo = JourneyTemplateRepoImpl()
    instance_repo = JourneyInstanceRepoImpl()
    plan_repo = PaymentPlanRepoImpl()
    installment_repo = InstallmentRepoImpl()
    link_repo = StagePaymentLinkRepoImpl()

    linkage = BillingLinkageService(plan_repo, installment_repo, link_repo, notifier, clock)
    return Engine(
        clock=clock,
        dispatcher=dispatcher,
        notifier=notifier,
        catalog=TemplateCatalogService(template_repo, dispatcher),
        instances=JourneyInstanceService(template_repo, instance_repo, linkage, dispatcher, clock),
        reports=SlaReportService(instance_repo, clock),
        plans=PaymentPlanService(plan_repo, installment_repo, link_repo, instance_repo, dispatcher, clock),
        linkage=linkage,
        reconciliation=ReconciliationService(plan_repo, installment_repo, dispatcher, clock),
        instance_repo=instance_repo,
        plan_repo=plan_repo,
    )


def stages_spec(*sla_hours: int, types: tuple[str, ...] = (), optional: tuple[int, ...] = ()) -> list[dict]:
    """Etapas 1..n com os SLAs dados; `optional` lista posições não obrigatórias."""
    out = []
    for pos, sla in enumerate(sla_hours, start=1):
        out.append({
            "position": pos,
            "title": f"Etapa {pos}",
            "type": types[pos - 1] if len(types) >= pos else "task",
            "sla_hours": sla,
            "mandatory": pos not in optional,
        })
    return out
