from prometheus_client import Counter

from journey_engine.core.domain.events.events import PlanStatusChangedEvent

PLAN_STATUS_CHANGES = Counter(
    "payment_plan_status_changes_total",
    "Transições de status de planos de pagamento",
    ["previous", "current"],
)

SWEEP_RUNS = Counter(
    "reconciliation_sweep_runs_total",
    "Execuções da varredura de cobrança",
    ["outcome"],
)

SWEEP_INSTALLMENTS_AGED = Counter(
    "reconciliation_installments_aged_total",
    "Parcelas movidas para vencida pela varredura",
)


def on_plan_status_changed(event: PlanStatusChangedEvent) -> None:
    PLAN_STATUS_CHANGES.labels(event.previous, event.current).inc()


def observe_sweep(result) -> None:
    SWEEP_RUNS.labels("partial" if result.failed_plan_ids else "ok").inc()
    SWEEP_INSTALLMENTS_AGED.inc(result.installments_aged)
