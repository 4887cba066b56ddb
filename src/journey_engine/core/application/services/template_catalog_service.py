from __future__ import annotations

import uuid
from typing import Any

import structlog
from django.db import transaction

from journey_engine.core.domain.entities.enums import StageType
from journey_engine.core.domain.entities.journey_template_entity import (
    JourneyTemplateEntity,
    TemplateStageEntity,
)
from journey_engine.core.domain.events.events import JourneyTemplateCreatedEvent
from journey_engine.core.domain.events.exceptions import NotFoundError, StateConflict, ValidationError
from journey_engine.core.domain.repositories.journey_template_repository import JourneyTemplateRepository
from journey_engine.core.domain.services.event_dispatcher import EventDispatcher

log = structlog.get_logger(__name__)

COPY_SUFFIX = " (Cópia)"


class TemplateCatalogService:
    """
    Catálogo de templates de jornada.

    Um template é imutável a partir do momento em que alguma instância o
    referencia; alterações passam a exigir duplicação. Etapas com vínculos
    de cobrança não podem ser removidas.
    """

    def __init__(self, template_repo: JourneyTemplateRepository, dispatcher: EventDispatcher) -> None:
        self.template_repo = template_repo
        self.dispatcher = dispatcher

    # ─── API pública ────────────────────────────────────────────────
    def create_template(
        self,
        name: str,
        niche: str,
        stages: list[dict[str, Any]],
        description: str = "",
        tags: list[str] | None = None,
        created_by: str | None = None,
    ) -> JourneyTemplateEntity:
        template_id = uuid.uuid4()
        entity = self._build(template_id, name, niche, stages, description, tags, created_by)
        saved = self.template_repo.create(entity)
        log.info("template.created", template_id=str(saved.id), niche=niche, steps=saved.steps_count)
        self.dispatcher.publish_on_commit(
            [JourneyTemplateCreatedEvent(template_id=saved.id, niche=saved.niche, steps_count=saved.steps_count)]
        )
        return saved

    def duplicate_template(self, template_id: str, created_by: str | None = None) -> JourneyTemplateEntity:
        source = self.get_template(template_id)
        new_id = uuid.uuid4()
        copy = JourneyTemplateEntity(
            id=new_id,
            name=f"{source.name}{COPY_SUFFIX}",
            niche=source.niche,
            description=source.description,
            tags=list(source.tags),
            eta_days=source.eta_days,
            steps_count=source.steps_count,
            created_by=created_by or source.created_by,
            stages=[
                TemplateStageEntity(
                    id=uuid.uuid4(),
                    template_id=new_id,
                    position=s.position,
                    title=s.title,
                    type=s.type,
                    description=s.description,
                    mandatory=s.mandatory,
                    sla_hours=s.sla_hours,
                    config=dict(s.config),
                )
                for s in source.stages
            ],
        )
        saved = self.template_repo.create(copy)
        log.info("template.duplicated", source_id=str(source.id), template_id=str(saved.id))
        self.dispatcher.publish_on_commit(
            [
                JourneyTemplateCreatedEvent(
                    template_id=saved.id,
                    niche=saved.niche,
                    steps_count=saved.steps_count,
                    duplicated_from=source.id,
                )
            ]
        )
        return saved

    def get_template(self, template_id: str) -> JourneyTemplateEntity:
        template = self.template_repo.find_by_id(template_id)
        if template is None:
            raise NotFoundError("JourneyTemplate", template_id)
        return template

    @transaction.atomic
    def update_template(
        self,
        template_id: str,
        name: str,
        niche: str,
        stages: list[dict[str, Any]],
        description: str = "",
        tags: list[str] | None = None,
    ) -> JourneyTemplateEntity:
        current = self.get_template(template_id)
        self._ensure_not_in_use(template_id)
        entity = self._build(current.id, name, niche, stages, description, tags, current.created_by)

        # posição preservada mantém o id da etapa, e com ele os vínculos de cobrança
        for stage in entity.stages:
            previous = current.stage_at(stage.position)
            if previous is not None:
                stage.id = previous.id
        removed = {s.id for s in current.stages} - {s.id for s in entity.stages}
        if removed & self.template_repo.linked_stage_ids(template_id):
            raise StateConflict(StateConflict.TEMPLATE_IN_USE, "etapa removida possui vínculos de cobrança")

        saved = self.template_repo.update(entity)
        log.info("template.updated", template_id=str(saved.id), steps=saved.steps_count)
        return saved

    @transaction.atomic
    def delete_template(self, template_id: str) -> None:
        self.get_template(template_id)
        self._ensure_not_in_use(template_id)
        if self.template_repo.linked_stage_ids(template_id):
            raise StateConflict(StateConflict.TEMPLATE_IN_USE, "template possui vínculos de cobrança")
        self.template_repo.delete(template_id)
        log.info("template.deleted", template_id=str(template_id))

    # ─── Helpers ───────────────────────────────────────────────────
    def _ensure_not_in_use(self, template_id: str) -> None:
        if self.template_repo.has_instances(template_id):
            raise StateConflict(StateConflict.TEMPLATE_IN_USE, "template já possui instâncias")

    def _build(
        self,
        template_id: uuid.UUID,
        name: str,
        niche: str,
        stages: list[dict[str, Any]],
        description: str,
        tags: list[str] | None,
        created_by: str | None,
    ) -> JourneyTemplateEntity:
        if not (name or "").strip():
            raise ValidationError("nome do template é obrigatório", field="name")
        if not (niche or "").strip():
            raise ValidationError("nicho do template é obrigatório", field="niche")
        stage_entities = validate_stages(template_id, stages)
        return JourneyTemplateEntity(
            id=template_id,
            name=name.strip(),
            niche=niche.strip(),
            description=description or "",
            tags=list(tags or []),
            stages=stage_entities,
            steps_count=len(stage_entities),
            eta_days=JourneyTemplateEntity.estimate_eta_days([s.sla_hours for s in stage_entities]),
            created_by=created_by,
        )


def validate_stages(template_id: uuid.UUID, stages: list[dict[str, Any]]) -> list[TemplateStageEntity]:
    """
    Valida e normaliza a lista de etapas:
    não vazia, posições únicas e contíguas a partir de 1, tipo conhecido,
    título preenchido, SLA não negativo e ao menos uma etapa obrigatória.
    """
    if not stages:
        raise ValidationError("template precisa de ao menos uma etapa", field="stages")

    positions = [s.get("position") for s in stages]
    if any(not isinstance(p, int) or isinstance(p, bool) for p in positions):
        raise ValidationError("posição de etapa ausente ou inválida", field="stages.position")
    if len(set(positions)) != len(positions):
        raise ValidationError("posições de etapa duplicadas", field="stages.position")
    if sorted(positions) != list(range(1, len(positions) + 1)):
        raise ValidationError("posições devem ser contíguas a partir de 1", field="stages.position")

    entities: list[TemplateStageEntity] = []
    for raw in sorted(stages, key=lambda s: s["position"]):
        title = (raw.get("title") or "").strip()
        if not title:
            raise ValidationError(f"etapa {raw['position']} sem título", field="stages.title")
        try:
            stage_type = StageType(raw.get("type"))
        except ValueError as exc:
            raise ValidationError(f"tipo de etapa desconhecido: {raw.get('type')}", field="stages.type") from exc
        sla_hours = raw.get("sla_hours", 24)
        if not isinstance(sla_hours, int) or sla_hours < 0:
            raise ValidationError(f"sla_hours inválido na etapa {raw['position']}", field="stages.sla_hours")
        entities.append(
            TemplateStageEntity(
                id=uuid.uuid4(),
                template_id=template_id,
                position=raw["position"],
                title=title,
                type=stage_type,
                description=raw.get("description") or "",
                mandatory=bool(raw.get("mandatory", True)),
                sla_hours=sla_hours,
                config=dict(raw.get("config") or {}),
            )
        )

    if not any(s.mandatory for s in entities):
        raise ValidationError("template precisa de ao menos uma etapa obrigatória", field="stages.mandatory")
    return entities
