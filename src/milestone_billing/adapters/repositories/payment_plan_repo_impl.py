from __future__ import annotations

from datetime import date
from typing import Any

import structlog
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import F, Q

from journey_engine.core.application.cqrs import PagedResult
from milestone_billing.core.domain.entities.enums import InstallmentStatus, PlanStatus
from milestone_billing.core.domain.entities.payment_plan_entity import InstallmentEntity, PaymentPlanEntity
from milestone_billing.core.domain.repositories.payment_plan_repository import PaymentPlanRepository
from plugins.django_interface.models import Installment as InstallmentModel
from plugins.django_interface.models import PaymentPlan as PaymentPlanModel

log = structlog.get_logger(__name__)


class PaymentPlanRepoImpl(PaymentPlanRepository):
    """Implementação baseada nos models Django."""

    @staticmethod
    def _to_entity(m: PaymentPlanModel) -> PaymentPlanEntity:
        installments = [
            InstallmentEntity.from_model(i)
            for i in sorted(m.installments.all(), key=lambda i: i.sequence_number)
        ]
        return PaymentPlanEntity.from_model(m, installments=installments)

    def _base_qs(self):
        return PaymentPlanModel.objects.prefetch_related("installments")

    @transaction.atomic
    def create(self, plan: PaymentPlanEntity) -> PaymentPlanEntity:
        m = PaymentPlanModel.objects.create(
            id=plan.id,
            client_id=plan.client_id,
            journey_instance_id=plan.journey_instance_id,
            amount_total=plan.amount_total,
            installments_count=plan.installments_count,
            status=plan.status.value,
            created_by=plan.created_by,
        )
        InstallmentModel.objects.bulk_create(
            [
                InstallmentModel(
                    id=i.id,
                    plan=m,
                    sequence_number=i.sequence_number,
                    due_date=i.due_date,
                    amount=i.amount,
                    status=i.status.value,
                )
                for i in plan.installments
            ]
        )
        return self._to_entity(self._base_qs().get(id=m.id))

    def find_by_id(self, plan_id: str) -> PaymentPlanEntity | None:
        try:
            return self._to_entity(self._base_qs().get(id=plan_id))
        except (PaymentPlanModel.DoesNotExist, ValueError, DjangoValidationError):
            return None

    def find_for_update(self, plan_id: str, skip_locked: bool = False) -> PaymentPlanEntity | None:
        m = (
            PaymentPlanModel.objects.select_for_update(skip_locked=skip_locked)
            .filter(id=plan_id)
            .first()
        )
        if m is None:
            return None
        return self._to_entity(self._base_qs().get(id=m.id))

    def list_for_instance(self, instance_id: str) -> list[PaymentPlanEntity]:
        return [self._to_entity(m) for m in self._base_qs().filter(journey_instance_id=instance_id)]

    def attach_to_instance(self, plan_id: str, instance_id: str) -> None:
        PaymentPlanModel.objects.filter(id=plan_id).update(journey_instance_id=instance_id)

    def set_status(self, plan_id: str, status: PlanStatus) -> None:
        PaymentPlanModel.objects.filter(id=plan_id).update(status=status.value)

    def increment_installments_count(self, plan_id: str) -> None:
        PaymentPlanModel.objects.filter(id=plan_id).update(installments_count=F("installments_count") + 1)

    def ids_for_sweep(self, today: date) -> list[str]:
        qs = PaymentPlanModel.objects.filter(
            Q(installments__status=InstallmentStatus.PENDENTE.value, installments__due_date__lt=today)
            | Q(status=PlanStatus.ATIVO.value, installments__status=InstallmentStatus.VENCIDA.value)
        ).distinct()
        return [str(pk) for pk in qs.values_list("id", flat=True)]

    def list(
        self, filtros: dict[str, Any] | None, page: int, page_size: int
    ) -> PagedResult[PaymentPlanEntity]:
        allowed = {"status", "client_id", "journey_instance_id"}
        qs = self._base_qs().filter(**{k: v for k, v in (filtros or {}).items() if k in allowed and v})

        total = qs.count()
        offset = (page - 1) * page_size
        objs_page = qs.order_by("-created_at")[offset : offset + page_size]

        items = [self._to_entity(obj) for obj in objs_page]
        return PagedResult(items=items, total=total, page=page, page_size=page_size)
