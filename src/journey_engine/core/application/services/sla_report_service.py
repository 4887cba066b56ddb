from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Any

import structlog

from journey_engine.core.domain.entities.enums import InstanceStatus, SlaBucket, StageStatus
from journey_engine.core.domain.events.exceptions import ValidationError
from journey_engine.core.domain.repositories.journey_instance_repository import JourneyInstanceRepository
from journey_engine.core.domain.services.clock import Clock
from journey_engine.core.domain.services.sla_classifier import classify, is_critical

log = structlog.get_logger(__name__)


class SlaReportService:
    """Relatório somente-leitura de SLA e conclusão por nicho."""

    def __init__(self, instance_repo: JourneyInstanceRepository, clock: Clock) -> None:
        self.instance_repo = instance_repo
        self.clock = clock

    def get_sla_report(
        self,
        niche: str | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> dict[str, Any]:
        if start and end and start > end:
            raise ValidationError("início do período posterior ao fim", field="date_range")

        now = self.clock.now()
        instances = self.instance_repo.list_for_report(
            {"niche": niche, "started_from": start, "started_to": end}
        )

        buckets = {b.value: 0 for b in SlaBucket if b != SlaBucket.ON_TRACK}
        total_stages = active_stages = critical = within = late = 0
        durations_h: list[float] = []
        per_niche: dict[str, dict[str, Any]] = defaultdict(lambda: {"total": 0, "completed": 0, "days": []})

        for inst in instances:
            row = per_niche[inst.niche]
            row["total"] += 1
            if inst.status == InstanceStatus.COMPLETED and inst.completed_at:
                row["completed"] += 1
                row["days"].append((inst.completed_at - inst.started_at).total_seconds() / 86400)

            for s in inst.stages:
                total_stages += 1
                if s.status == StageStatus.IN_PROGRESS and inst.status == InstanceStatus.ACTIVE:
                    active_stages += 1
                    bucket = classify(s.sla_due_at, now)
                    if bucket in (SlaBucket.OVERDUE, SlaBucket.DUE_LT_24H, SlaBucket.DUE_24_72H, SlaBucket.DUE_GT_72H):
                        buckets[bucket.value] += 1
                    if is_critical(s.started_at, s.sla_hours, now):
                        critical += 1
                elif s.status == StageStatus.COMPLETED and s.started_at and s.completed_at:
                    durations_h.append((s.completed_at - s.started_at).total_seconds() / 3600)
                    if s.sla_due_at is None or s.completed_at <= s.sla_due_at:
                        within += 1
                    else:
                        late += 1

        finished = within + late
        report = {
            "filters": {
                "niche": niche,
                "start": start.isoformat() if start else None,
                "end": end.isoformat() if end else None,
            },
            "generated_at": now.isoformat(),
            "instances": len(instances),
            "total_stages": total_stages,
            "active_stages": active_stages,
            "buckets": buckets,
            "overdue": buckets[SlaBucket.OVERDUE.value],
            "critical_overdue": critical,
            "completed_within_sla": within,
            "completed_late": late,
            "sla_compliance_pct": round(within / finished * 100, 2) if finished else None,
            "avg_completion_time_hours": round(sum(durations_h) / len(durations_h), 2) if durations_h else None,
            "by_niche": [
                {
                    "niche": name,
                    "total_journeys": data["total"],
                    "completed_journeys": data["completed"],
                    "completion_rate": round(data["completed"] / data["total"] * 100, 2) if data["total"] else 0.0,
                    "avg_days_to_complete": round(sum(data["days"]) / len(data["days"]), 2) if data["days"] else None,
                }
                for name, data in sorted(per_niche.items())
            ],
        }
        log.info("report.sla_built", niche=niche, instances=len(instances), active=active_stages)
        return report
