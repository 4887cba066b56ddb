from __future__ import annotations

import uuid
from typing import Any

import structlog
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import Q

from journey_engine.core.application.cqrs import PagedResult
from journey_engine.core.domain.entities.journey_template_entity import (
    JourneyTemplateEntity,
    TemplateStageEntity,
)
from journey_engine.core.domain.repositories.journey_template_repository import (
    JourneyTemplateRepository,
)
from plugins.django_interface.models import JourneyInstance as JourneyInstanceModel
from plugins.django_interface.models import JourneyTemplate as JourneyTemplateModel
from plugins.django_interface.models import StagePaymentLink as StagePaymentLinkModel
from plugins.django_interface.models import TemplateStage as TemplateStageModel

log = structlog.get_logger(__name__)


class JourneyTemplateRepoImpl(JourneyTemplateRepository):
    """Implementação baseada nos models Django."""

    # ─── mapeamento ────────────────────────────────────────────────
    @staticmethod
    def _to_entity(m: JourneyTemplateModel) -> JourneyTemplateEntity:
        stages = [
            TemplateStageEntity.from_model(s, type=s.type)
            for s in sorted(m.stages.all(), key=lambda s: s.position)
        ]
        return JourneyTemplateEntity.from_model(m, stages=stages, tags=list(m.tags or []))

    @staticmethod
    def _stage_fields(s: TemplateStageEntity) -> dict[str, Any]:
        return {
            "position": s.position,
            "title": s.title,
            "description": s.description,
            "type": s.type.value,
            "mandatory": s.mandatory,
            "sla_hours": s.sla_hours,
            "config": s.config,
        }

    def _write_stages(self, model: JourneyTemplateModel, stages: list[TemplateStageEntity]) -> None:
        TemplateStageModel.objects.bulk_create(
            [TemplateStageModel(id=s.id, template=model, **self._stage_fields(s)) for s in stages]
        )

    # ─── escrita ───────────────────────────────────────────────────
    @transaction.atomic
    def create(self, template: JourneyTemplateEntity) -> JourneyTemplateEntity:
        m = JourneyTemplateModel.objects.create(
            id=template.id,
            name=template.name,
            description=template.description,
            niche=template.niche,
            tags=template.tags,
            eta_days=template.eta_days,
            steps_count=template.steps_count,
            created_by=template.created_by,
        )
        self._write_stages(m, template.stages)
        log.info("template.persisted", template_id=str(m.id), stages=len(template.stages))
        return self._to_entity(m)

    @transaction.atomic
    def update(self, template: JourneyTemplateEntity) -> JourneyTemplateEntity:
        m = JourneyTemplateModel.objects.select_for_update().get(id=template.id)
        m.name = template.name
        m.description = template.description
        m.niche = template.niche
        m.tags = template.tags
        m.eta_days = template.eta_days
        m.steps_count = template.steps_count
        m.save()

        # etapas que mantêm o id são atualizadas no lugar: vínculos de cobrança apontam para elas
        m.stages.exclude(id__in=[s.id for s in template.stages]).delete()
        existing = set(m.stages.values_list("id", flat=True))
        for s in template.stages:
            if s.id in existing:
                TemplateStageModel.objects.filter(id=s.id).update(**self._stage_fields(s))
        self._write_stages(m, [s for s in template.stages if s.id not in existing])
        return self._to_entity(m)

    def delete(self, template_id: str) -> None:
        JourneyTemplateModel.objects.filter(id=template_id).delete()

    # ─── leitura ───────────────────────────────────────────────────
    def find_by_id(self, template_id: str) -> JourneyTemplateEntity | None:
        try:
            m = JourneyTemplateModel.objects.prefetch_related("stages").get(id=template_id)
            return self._to_entity(m)
        except (JourneyTemplateModel.DoesNotExist, ValueError, DjangoValidationError):
            return None

    def has_instances(self, template_id: str) -> bool:
        return JourneyInstanceModel.objects.filter(template_id=template_id).exists()

    def linked_stage_ids(self, template_id: str) -> set[uuid.UUID]:
        return set(
            StagePaymentLinkModel.objects.filter(stage_template__template_id=template_id)
            .values_list("stage_template_id", flat=True)
        )

    def list(
        self, filtros: dict[str, Any] | None, page: int, page_size: int
    ) -> PagedResult[JourneyTemplateEntity]:
        """
        Filtros aceitos: niche, tag, search (nome/descrição).
        """
        filtros = dict(filtros or {})
        qs = JourneyTemplateModel.objects.all()

        niche = filtros.pop("niche", None)
        tag = filtros.pop("tag", None)
        search = (filtros.pop("search", "") or "").strip()
        if niche:
            qs = qs.filter(niche=niche)
        if search:
            qs = qs.filter(Q(name__icontains=search) | Q(description__icontains=search))

        items = [self._to_entity(m) for m in qs.order_by("name")]
        if tag:
            # JSONField `contains` não é suportado em todos os backends
            items = [t for t in items if tag in t.tags]

        total = len(items)
        offset = (page - 1) * page_size
        return PagedResult(items=items[offset : offset + page_size], total=total, page=page, page_size=page_size)
