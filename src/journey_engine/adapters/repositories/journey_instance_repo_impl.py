from __future__ import annotations

from datetime import datetime
from typing import Any

import structlog
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import F

from journey_engine.core.application.cqrs import PagedResult
from journey_engine.core.domain.entities.enums import StageStatus
from journey_engine.core.domain.entities.journey_instance_entity import (
    JourneyInstanceEntity,
    StageProgressEntity,
)
from journey_engine.core.domain.repositories.journey_instance_repository import (
    JourneyInstanceRepository,
)
from plugins.django_interface.models import JourneyInstance as JourneyInstanceModel
from plugins.django_interface.models import StageProgress as StageProgressModel

log = structlog.get_logger(__name__)

# filtro da API → lookup do ORM
_FILTER_LOOKUPS = {
    "status": "status",
    "template_id": "template_id",
    "niche": "template__niche",
    "client_id": "client_id",
    "matter_id": "matter_id",
    "owner": "owner",
    "started_from": "started_at__date__gte",
    "started_to": "started_at__date__lte",
}


class JourneyInstanceRepoImpl(JourneyInstanceRepository):
    """Implementação baseada nos models Django."""

    @staticmethod
    def _to_entity(m: JourneyInstanceModel) -> JourneyInstanceEntity:
        stages = [StageProgressEntity.from_model(s) for s in sorted(m.stages.all(), key=lambda s: s.position)]
        return JourneyInstanceEntity.from_model(
            m,
            stages=stages,
            template_name=m.template.name,
            niche=m.template.niche,
        )

    def _base_qs(self):
        return JourneyInstanceModel.objects.select_related("template").prefetch_related("stages")

    # ─── escrita ───────────────────────────────────────────────────
    @transaction.atomic
    def create(self, instance: JourneyInstanceEntity) -> JourneyInstanceEntity:
        m = JourneyInstanceModel.objects.create(
            id=instance.id,
            template_id=instance.template_id,
            client_id=instance.client_id,
            matter_id=instance.matter_id,
            owner=instance.owner,
            status=instance.status.value,
            started_at=instance.started_at,
            current_stage_position=instance.current_stage_position,
            progress_pct=instance.progress_pct,
            next_action=instance.next_action,
        )
        StageProgressModel.objects.bulk_create(
            [
                StageProgressModel(
                    id=s.id,
                    instance=m,
                    template_stage_id=s.template_stage_id,
                    position=s.position,
                    title=s.title,
                    description=s.description,
                    type=s.type.value,
                    mandatory=s.mandatory,
                    sla_hours=s.sla_hours,
                    config=s.config,
                    status=s.status.value,
                    started_at=s.started_at,
                    sla_due_at=s.sla_due_at,
                )
                for s in instance.stages
            ]
        )
        return self._to_entity(self._base_qs().get(id=m.id))

    def compare_and_set_stage(self, stage_progress_id: str, expected_version: int, **changes: Any) -> bool:
        updated = StageProgressModel.objects.filter(
            id=stage_progress_id,
            status=StageStatus.IN_PROGRESS.value,
            version=expected_version,
        ).update(version=F("version") + 1, **changes)
        if not updated:
            log.warning("stage.cas_lost", stage_progress_id=str(stage_progress_id), version=expected_version)
        return bool(updated)

    def activate_stage(self, stage_progress_id: str, started_at: datetime, sla_due_at: datetime) -> None:
        StageProgressModel.objects.filter(id=stage_progress_id).update(
            status=StageStatus.IN_PROGRESS.value,
            started_at=started_at,
            sla_due_at=sla_due_at,
            completed_at=None,
            version=F("version") + 1,
        )

    def save_state(self, instance: JourneyInstanceEntity) -> None:
        JourneyInstanceModel.objects.filter(id=instance.id).update(
            status=instance.status.value,
            current_stage_position=instance.current_stage_position,
            progress_pct=instance.progress_pct,
            next_action=instance.next_action,
            completed_at=instance.completed_at,
            cancelled_at=instance.cancelled_at,
        )

    # ─── leitura ───────────────────────────────────────────────────
    def find_by_id(self, instance_id: str) -> JourneyInstanceEntity | None:
        try:
            return self._to_entity(self._base_qs().get(id=instance_id))
        except (JourneyInstanceModel.DoesNotExist, ValueError, DjangoValidationError):
            return None

    def find_for_update(self, instance_id: str) -> JourneyInstanceEntity | None:
        try:
            m = JourneyInstanceModel.objects.select_for_update().get(id=instance_id)
        except (JourneyInstanceModel.DoesNotExist, ValueError, DjangoValidationError):
            return None
        return self._to_entity(self._base_qs().get(id=m.id))

    def _filtered(self, filtros: dict[str, Any] | None):
        qs = self._base_qs()
        for key, value in (filtros or {}).items():
            lookup = _FILTER_LOOKUPS.get(key)
            if lookup is None or value in (None, ""):
                continue
            qs = qs.filter(**{lookup: value})
        return qs

    def list(
        self, filtros: dict[str, Any] | None, page: int, page_size: int
    ) -> PagedResult[JourneyInstanceEntity]:
        qs = self._filtered(filtros)
        total = qs.count()
        offset = (page - 1) * page_size
        objs_page = qs.order_by("-started_at")[offset : offset + page_size]

        items = [self._to_entity(obj) for obj in objs_page]
        return PagedResult(items=items, total=total, page=page, page_size=page_size)

    def list_for_report(self, filtros: dict[str, Any]) -> list[JourneyInstanceEntity]:
        return [self._to_entity(obj) for obj in self._filtered(filtros).order_by("started_at")]
