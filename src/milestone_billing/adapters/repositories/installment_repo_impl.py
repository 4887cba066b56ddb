from datetime import date
from decimal import Decimal
from typing import Any

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import Count, Max

from milestone_billing.core.domain.entities.enums import InstallmentStatus
from milestone_billing.core.domain.entities.payment_plan_entity import InstallmentEntity
from milestone_billing.core.domain.repositories.installment_repository import InstallmentRepository
from plugins.django_interface.models import Installment as InstallmentModel


class InstallmentRepoImpl(InstallmentRepository):
    """Implementação baseada nos models Django."""

    def find_for_update(self, installment_id: str) -> InstallmentEntity | None:
        try:
            m = InstallmentModel.objects.select_for_update().get(id=installment_id)
            return InstallmentEntity.from_model(m)
        except (InstallmentModel.DoesNotExist, ValueError, DjangoValidationError):
            return None

    def next_sequence(self, plan_id: str) -> int:
        current = InstallmentModel.objects.filter(plan_id=plan_id).aggregate(m=Max("sequence_number"))["m"]
        return (current or 0) + 1

    def add(
        self,
        plan_id: str,
        sequence_number: int,
        due_date: date,
        amount: Decimal,
        triggered_by_stage_id: str | None = None,
    ) -> InstallmentEntity:
        m = InstallmentModel.objects.create(
            plan_id=plan_id,
            sequence_number=sequence_number,
            due_date=due_date,
            amount=amount,
            status=InstallmentStatus.PENDENTE.value,
            triggered_by_stage_id=triggered_by_stage_id,
        )
        return InstallmentEntity.from_model(m)

    def first_untriggered_pending(self, plan_id: str) -> InstallmentEntity | None:
        m = (
            InstallmentModel.objects.select_for_update()
            .filter(
                plan_id=plan_id,
                status=InstallmentStatus.PENDENTE.value,
                triggered_by_stage_id__isnull=True,
            )
            .order_by("sequence_number")
            .first()
        )
        return InstallmentEntity.from_model(m) if m else None

    def update(self, installment_id: str, **changes: Any) -> None:
        InstallmentModel.objects.filter(id=installment_id).update(**changes)

    def mark_overdue(self, plan_id: str, today: date) -> int:
        ids = list(
            InstallmentModel.objects.select_for_update(skip_locked=True)
            .filter(plan_id=plan_id, status=InstallmentStatus.PENDENTE.value, due_date__lt=today)
            .values_list("id", flat=True)
        )
        if not ids:
            return 0
        # o filtro de status é repetido para nunca regredir uma parcela já paga/cancelada
        return InstallmentModel.objects.filter(
            id__in=ids, status=InstallmentStatus.PENDENTE.value
        ).update(status=InstallmentStatus.VENCIDA.value)

    def count_by_status(self, plan_id: str) -> dict[str, int]:
        rows = (
            InstallmentModel.objects.filter(plan_id=plan_id)
            .values("status")
            .annotate(total=Count("id"))
        )
        return {r["status"]: r["total"] for r in rows}
