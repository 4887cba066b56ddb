"""
Classificação de SLA: função pura que posiciona um prazo em relação ao "agora".

    sem prazo                → on_track
    agora > prazo            → overdue
    faltam < 24h             → due_<24h
    faltam entre 24h e 72h   → due_24_72h
    faltam > 72h             → due_>72h
"""
from __future__ import annotations

from datetime import datetime, timedelta

from journey_engine.core.domain.entities.enums import SlaBucket, StageStatus

DUE_SOON = timedelta(hours=24)
DUE_LATER = timedelta(hours=72)
CRITICAL_FACTOR = 2


def classify(sla_due_at: datetime | None, now: datetime) -> SlaBucket:
    if sla_due_at is None:
        return SlaBucket.ON_TRACK
    if now > sla_due_at:
        return SlaBucket.OVERDUE
    remaining = sla_due_at - now
    if remaining < DUE_SOON:
        return SlaBucket.DUE_LT_24H
    if remaining <= DUE_LATER:
        return SlaBucket.DUE_24_72H
    return SlaBucket.DUE_GT_72H


def classify_stage(status: StageStatus | str, sla_due_at: datetime | None, now: datetime) -> SlaBucket:
    """Só etapas em andamento têm prazo correndo; as demais ficam on_track."""
    if StageStatus(status) != StageStatus.IN_PROGRESS:
        return SlaBucket.ON_TRACK
    return classify(sla_due_at, now)


def is_critical(started_at: datetime | None, sla_hours: int, now: datetime) -> bool:
    """Etapa ativa há mais que o dobro do seu SLA."""
    if started_at is None or sla_hours <= 0:
        return False
    return now - started_at > timedelta(hours=sla_hours * CRITICAL_FACTOR)
