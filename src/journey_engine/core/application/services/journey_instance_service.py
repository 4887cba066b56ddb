from __future__ import annotations

import uuid
from datetime import timedelta

import structlog
from django.db import transaction

from journey_engine.core.application.services.next_action_service import compute_next_action
from journey_engine.core.domain.entities.enums import (
    InstanceStatus,
    StageOutcome,
    StageStatus,
)
from journey_engine.core.domain.entities.journey_instance_entity import (
    JourneyInstanceEntity,
    StageProgressEntity,
)
from journey_engine.core.domain.events.events import (
    DomainEvent,
    JourneyStartedEvent,
    JourneyStatusChangedEvent,
    StageActivatedEvent,
    StageAdvancedEvent,
)
from journey_engine.core.domain.events.exceptions import NotFoundError, StateConflict, ValidationError
from journey_engine.core.domain.repositories.journey_instance_repository import JourneyInstanceRepository
from journey_engine.core.domain.repositories.journey_template_repository import JourneyTemplateRepository
from journey_engine.core.domain.services.clock import Clock
from journey_engine.core.domain.services.event_dispatcher import EventDispatcher
from journey_engine.core.domain.services.milestone_evaluator import MilestoneEvaluator
from journey_engine.core.domain.services.sla_classifier import classify, classify_stage

log = structlog.get_logger(__name__)

# transições manuais de status da instância: ação → (origens permitidas, destino)
_STATUS_TRANSITIONS: dict[str, tuple[set[InstanceStatus], InstanceStatus]] = {
    "pause":  ({InstanceStatus.ACTIVE}, InstanceStatus.PAUSED),
    "resume": ({InstanceStatus.PAUSED}, InstanceStatus.ACTIVE),
    "cancel": ({InstanceStatus.ACTIVE, InstanceStatus.PAUSED}, InstanceStatus.CANCELLED),
}


class JourneyInstanceService:
    """
    Motor de instâncias de jornada.

    `advance_stage` é o único caminho disputado: lock de linha na instância
    + compare-and-swap na versão da etapa, tudo numa transação que inclui a
    avaliação dos vínculos de cobrança. Eventos só são publicados após o commit.
    """

    def __init__(
        self,
        template_repo: JourneyTemplateRepository,
        instance_repo: JourneyInstanceRepository,
        milestone_evaluator: MilestoneEvaluator,
        dispatcher: EventDispatcher,
        clock: Clock,
    ) -> None:
        self.template_repo = template_repo
        self.instance_repo = instance_repo
        self.milestone_evaluator = milestone_evaluator
        self.dispatcher = dispatcher
        self.clock = clock

    # ─── API pública ────────────────────────────────────────────────
    def start_instance(
        self,
        template_id: str,
        client_id: str,
        owner: str,
        matter_id: str | None = None,
    ) -> JourneyInstanceEntity:
        if not (client_id or "").strip():
            raise ValidationError("client_id é obrigatório", field="client_id")
        if not (owner or "").strip():
            raise ValidationError("owner é obrigatório", field="owner")

        template = self.template_repo.find_by_id(template_id)
        if template is None:
            raise NotFoundError("JourneyTemplate", template_id)

        now = self.clock.now()
        instance_id = uuid.uuid4()
        stages = [
            StageProgressEntity(
                id=uuid.uuid4(),
                instance_id=instance_id,
                template_stage_id=s.id,
                position=s.position,
                title=s.title,
                type=s.type,
                mandatory=s.mandatory,
                sla_hours=s.sla_hours,
                description=s.description,
                config=dict(s.config),
            )
            for s in template.stages
        ]
        first = stages[0]
        first.status = StageStatus.IN_PROGRESS
        first.started_at = now
        first.sla_due_at = now + timedelta(hours=first.sla_hours)

        instance = JourneyInstanceEntity(
            id=instance_id,
            template_id=template.id,
            client_id=client_id,
            matter_id=matter_id,
            owner=owner,
            status=InstanceStatus.ACTIVE,
            started_at=now,
            template_name=template.name,
            niche=template.niche,
            current_stage_position=first.position,
            progress_pct=0.0,
            stages=stages,
        )
        instance.next_action = compute_next_action(instance, now)

        with transaction.atomic():
            saved = self.instance_repo.create(instance)

        log.info(
            "journey.started",
            instance_id=str(saved.id),
            template_id=str(template.id),
            client_id=client_id,
            stages=len(stages),
        )
        self.dispatcher.publish_on_commit(
            [JourneyStartedEvent(instance_id=saved.id, template_id=template.id, client_id=client_id, owner=owner)]
        )
        return self._with_buckets(saved)

    def advance_stage(
        self,
        instance_id: str,
        stage_progress_id: str,
        outcome: StageOutcome | str,
        actor: str,
        notes: str | None = None,
    ) -> JourneyInstanceEntity:
        try:
            outcome = StageOutcome(outcome)
        except ValueError as exc:
            raise ValidationError(f"resultado inválido: {outcome}", field="outcome") from exc

        events: list[DomainEvent] = []
        with transaction.atomic():
            instance = self.instance_repo.find_for_update(instance_id)
            if instance is None:
                raise NotFoundError("JourneyInstance", instance_id)
            stage = instance.stage(stage_progress_id)
            if stage is None:
                raise NotFoundError("StageProgress", stage_progress_id)

            self._guard_advance(instance, stage, outcome)

            now = self.clock.now()
            bucket = classify(stage.sla_due_at, now)
            new_status = StageStatus(outcome.value)
            completed_at = now if new_status.is_finished else None

            swapped = self.instance_repo.compare_and_set_stage(
                str(stage.id),
                expected_version=stage.version,
                status=new_status.value,
                completed_at=completed_at,
                completed_by=actor,
                notes=notes,
            )
            if not swapped:
                raise StateConflict(StateConflict.STAGE_ALREADY_COMPLETED, "etapa avançada por outro escritor")

            stage.status = new_status
            stage.completed_at = completed_at
            stage.completed_by = actor
            stage.notes = notes
            stage.version += 1
            events.append(
                StageAdvancedEvent(
                    instance_id=instance.id,
                    stage_progress_id=stage.id,
                    template_stage_id=stage.template_stage_id,
                    position=stage.position,
                    outcome=outcome.value,
                    actor=actor,
                    sla_bucket=bucket.value,
                )
            )

            if outcome == StageOutcome.COMPLETED:
                events.extend(self.milestone_evaluator.evaluate_stage_completion(instance, stage))

            if outcome != StageOutcome.BLOCKED:
                events.extend(self._activate_next_or_complete(instance, stage, now, actor))

            instance.progress_pct = instance.compute_progress()
            instance.next_action = compute_next_action(instance, now)
            self.instance_repo.save_state(instance)

        log.info(
            "journey.stage_advanced",
            instance_id=str(instance.id),
            position=stage.position,
            outcome=outcome.value,
            actor=actor,
            sla_bucket=bucket.value,
            progress_pct=instance.progress_pct,
            status=instance.status.value,
        )
        self.dispatcher.publish_on_commit(events)
        return self.get_instance(str(instance.id))

    def reopen_stage(self, instance_id: str, stage_progress_id: str, actor: str) -> JourneyInstanceEntity:
        """Única saída de `blocked`: a etapa volta a `in_progress` com novo prazo."""
        with transaction.atomic():
            instance = self.instance_repo.find_for_update(instance_id)
            if instance is None:
                raise NotFoundError("JourneyInstance", instance_id)
            stage = instance.stage(stage_progress_id)
            if stage is None:
                raise NotFoundError("StageProgress", stage_progress_id)
            if instance.status != InstanceStatus.ACTIVE:
                raise StateConflict(StateConflict.INSTANCE_NOT_ACTIVE, instance.status.value)
            if stage.status != StageStatus.BLOCKED:
                raise StateConflict(StateConflict.INVALID_TRANSITION, f"etapa em {stage.status.value}")

            now = self.clock.now()
            stage.status = StageStatus.IN_PROGRESS
            stage.started_at = now
            stage.sla_due_at = now + timedelta(hours=stage.sla_hours)
            self.instance_repo.activate_stage(str(stage.id), stage.started_at, stage.sla_due_at)
            instance.next_action = compute_next_action(instance, now)
            self.instance_repo.save_state(instance)

        log.info("journey.stage_reopened", instance_id=str(instance.id), position=stage.position, actor=actor)
        self.dispatcher.publish_on_commit(
            [
                StageActivatedEvent(
                    instance_id=instance.id,
                    stage_progress_id=stage.id,
                    position=stage.position,
                    sla_due_at=stage.sla_due_at,
                )
            ]
        )
        return self.get_instance(str(instance.id))

    def pause_instance(self, instance_id: str, actor: str | None = None) -> JourneyInstanceEntity:
        return self._change_status(instance_id, "pause", actor)

    def resume_instance(self, instance_id: str, actor: str | None = None) -> JourneyInstanceEntity:
        return self._change_status(instance_id, "resume", actor)

    def cancel_instance(self, instance_id: str, actor: str | None = None) -> JourneyInstanceEntity:
        return self._change_status(instance_id, "cancel", actor)

    def get_instance(self, instance_id: str) -> JourneyInstanceEntity:
        instance = self.instance_repo.find_by_id(instance_id)
        if instance is None:
            raise NotFoundError("JourneyInstance", instance_id)
        return self._with_buckets(instance)

    def list_instances(self, filtros: dict | None, page: int, page_size: int):
        result = self.instance_repo.list(filtros, page, page_size)
        for item in result.items:
            self._with_buckets(item)
        return result

    # ─── Helpers ───────────────────────────────────────────────────
    @staticmethod
    def _guard_advance(instance: JourneyInstanceEntity, stage: StageProgressEntity, outcome: StageOutcome) -> None:
        # etapa já finalizada primeiro: o escritor que perdeu a corrida vê este código
        if stage.status.is_finished or stage.status == StageStatus.BLOCKED:
            raise StateConflict(StateConflict.STAGE_ALREADY_COMPLETED, f"etapa em {stage.status.value}")
        if instance.status != InstanceStatus.ACTIVE:
            raise StateConflict(StateConflict.INSTANCE_NOT_ACTIVE, instance.status.value)
        if stage.position != instance.current_stage_position:
            raise StateConflict(
                StateConflict.STAGE_OUT_OF_ORDER,
                f"etapa ativa é {instance.current_stage_position}, recebida {stage.position}",
            )
        if stage.status != StageStatus.IN_PROGRESS:
            raise StateConflict(StateConflict.STAGE_ALREADY_COMPLETED, f"etapa em {stage.status.value}")
        if outcome == StageOutcome.SKIPPED and stage.mandatory:
            raise StateConflict(StateConflict.MANDATORY_STAGE_PENDING, "etapa obrigatória não pode ser pulada")

    def _activate_next_or_complete(
        self,
        instance: JourneyInstanceEntity,
        stage: StageProgressEntity,
        now,
        actor: str,
    ) -> list[DomainEvent]:
        remaining_mandatory = any(
            s.mandatory and s.position > stage.position and s.status == StageStatus.PENDING
            for s in instance.stages
        )
        nxt = next((s for s in instance.stages if s.position == stage.position + 1), None)

        if remaining_mandatory and nxt is not None:
            nxt.status = StageStatus.IN_PROGRESS
            nxt.started_at = now
            nxt.sla_due_at = now + timedelta(hours=nxt.sla_hours)
            nxt.version += 1
            self.instance_repo.activate_stage(str(nxt.id), nxt.started_at, nxt.sla_due_at)
            instance.current_stage_position = nxt.position
            return [
                StageActivatedEvent(
                    instance_id=instance.id,
                    stage_progress_id=nxt.id,
                    position=nxt.position,
                    sla_due_at=nxt.sla_due_at,
                )
            ]

        previous = instance.status
        instance.status = InstanceStatus.COMPLETED
        instance.completed_at = now
        instance.current_stage_position = None
        log.info("journey.completed", instance_id=str(instance.id))
        return [
            JourneyStatusChangedEvent(
                instance_id=instance.id,
                previous=previous.value,
                current=InstanceStatus.COMPLETED.value,
                actor=actor,
            )
        ]

    def _change_status(self, instance_id: str, action: str, actor: str | None) -> JourneyInstanceEntity:
        allowed, target = _STATUS_TRANSITIONS[action]
        with transaction.atomic():
            instance = self.instance_repo.find_for_update(instance_id)
            if instance is None:
                raise NotFoundError("JourneyInstance", instance_id)
            if instance.status not in allowed:
                raise StateConflict(
                    StateConflict.INVALID_TRANSITION,
                    f"{action} não permitido a partir de {instance.status.value}",
                )
            now = self.clock.now()
            previous = instance.status
            instance.status = target
            if target == InstanceStatus.CANCELLED:
                instance.cancelled_at = now
            instance.next_action = compute_next_action(instance, now)
            self.instance_repo.save_state(instance)

        log.info("journey.status_changed", instance_id=str(instance.id), previous=previous.value, current=target.value)
        self.dispatcher.publish_on_commit(
            [
                JourneyStatusChangedEvent(
                    instance_id=instance.id,
                    previous=previous.value,
                    current=target.value,
                    actor=actor,
                )
            ]
        )
        return self.get_instance(str(instance.id))

    def _with_buckets(self, instance: JourneyInstanceEntity) -> JourneyInstanceEntity:
        """
        SLA é derivado na leitura. A próxima ação é recalculada junto, já que
        prioridade e o sufixo "(Atrasado)" dependem da faixa de SLA no momento.
        """
        now = self.clock.now()
        for s in instance.stages:
            s.sla_bucket = classify_stage(s.status, s.sla_due_at, now)
        instance.next_action = compute_next_action(instance, now)
        return instance
