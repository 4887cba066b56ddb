from datetime import datetime

import structlog
from django.core.exceptions import ValidationError as DjangoValidationError

from milestone_billing.core.domain.entities.stage_payment_link_entity import StagePaymentLinkEntity
from milestone_billing.core.domain.repositories.stage_payment_link_repository import (
    StagePaymentLinkRepository,
)
from plugins.django_interface.models import StagePaymentLink as StagePaymentLinkModel
from plugins.django_interface.models import StagePaymentLinkFiring as StagePaymentLinkFiringModel
from plugins.django_interface.models import TemplateStage as TemplateStageModel

log = structlog.get_logger(__name__)


class StagePaymentLinkRepoImpl(StagePaymentLinkRepository):
    """Implementação baseada nos models Django."""

    def create(self, link: StagePaymentLinkEntity) -> StagePaymentLinkEntity:
        m = StagePaymentLinkModel.objects.create(
            id=link.id,
            plan_id=link.plan_id,
            stage_template_id=link.stage_template_id,
            rule=link.rule,
            installment_amount=link.installment_amount,
            days_after_completion=link.days_after_completion,
            recipient=link.recipient,
            message_template=link.message_template,
        )
        return StagePaymentLinkEntity.from_model(m)

    def list_for_plan(self, plan_id: str) -> list[StagePaymentLinkEntity]:
        qs = StagePaymentLinkModel.objects.filter(plan_id=plan_id).order_by("created_at")
        return [StagePaymentLinkEntity.from_model(m) for m in qs]

    def list_unfired(self, plan_ids: list[str], stage_template_id: str, instance_id: str) -> list[StagePaymentLinkEntity]:
        qs = (
            StagePaymentLinkModel.objects.filter(plan_id__in=plan_ids, stage_template_id=stage_template_id)
            .exclude(firings__instance_id=instance_id)
            .order_by("created_at", "id")
        )
        return [StagePaymentLinkEntity.from_model(m) for m in qs]

    def record_firing(self, link_id: str, instance_id: str, stage_progress_id: str, fired_at: datetime) -> bool:
        _obj, created = StagePaymentLinkFiringModel.objects.get_or_create(
            link_id=link_id,
            instance_id=instance_id,
            defaults={"stage_progress_id": stage_progress_id, "fired_at": fired_at},
        )
        if not created:
            log.info("billing.link_already_fired", link_id=str(link_id), instance_id=str(instance_id))
        return created

    def template_stage_exists(self, stage_template_id: str) -> bool:
        try:
            return TemplateStageModel.objects.filter(id=stage_template_id).exists()
        except (ValueError, DjangoValidationError):
            return False
