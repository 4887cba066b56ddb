from prometheus_client import Counter, Histogram

from journey_engine.core.domain.events.events import (
    JourneyStartedEvent,
    JourneyStatusChangedEvent,
    MilestoneRuleFiredEvent,
    StageAdvancedEvent,
)

JOURNEYS_STARTED = Counter(
    "journey_instances_started_total",
    "Jornadas iniciadas",
)

STAGE_TRANSITIONS = Counter(
    "journey_stage_transitions_total",
    "Etapas finalizadas por resultado e faixa de SLA",
    ["outcome", "sla_bucket"],
)

JOURNEY_STATUS_CHANGES = Counter(
    "journey_status_changes_total",
    "Mudanças de status de jornadas",
    ["current"],
)

MILESTONE_RULES_FIRED = Counter(
    "milestone_rules_fired_total",
    "Regras de cobrança disparadas por conclusão de etapa",
    ["rule"],
)

BUS_MESSAGE_DURATION = Histogram(
    "cqrs_message_duration_seconds",
    "Tempo de execução de comandos e queries por resultado",
    ["kind", "message", "outcome"],
)


def observe_bus(kind: str, message: str, elapsed: float, error_code: str | None) -> None:
    BUS_MESSAGE_DURATION.labels(kind, message, error_code or "ok").observe(elapsed)


def on_journey_started(event: JourneyStartedEvent) -> None:
    JOURNEYS_STARTED.inc()


def on_stage_advanced(event: StageAdvancedEvent) -> None:
    STAGE_TRANSITIONS.labels(event.outcome, event.sla_bucket).inc()


def on_status_changed(event: JourneyStatusChangedEvent) -> None:
    JOURNEY_STATUS_CHANGES.labels(event.current).inc()


def on_milestone_fired(event: MilestoneRuleFiredEvent) -> None:
    MILESTONE_RULES_FIRED.labels(event.rule).inc()


SUBSCRIPTIONS = (
    (JourneyStartedEvent, on_journey_started),
    (StageAdvancedEvent, on_stage_advanced),
    (JourneyStatusChangedEvent, on_status_changed),
    (MilestoneRuleFiredEvent, on_milestone_fired),
)
