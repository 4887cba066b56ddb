"""
Domínio → ORM
Jornadas jurídicas (templates, instâncias, etapas) e cobrança por marcos
(planos, parcelas, vínculos etapa→pagamento).

⚑ UUID como PK em todas as tabelas
⚑ Snapshot das etapas na instância (edições no template não retroagem)
⚑ Unicidade de posição/sequência e de disparo por (vínculo, instância)
⚑ `version` em StageProgress para compare-and-swap
"""

from __future__ import annotations

import uuid

from django.db import models
from django.db.models import Index, Q, UniqueConstraint


# ╭──────────────────────────────────────────────╮
# │ 1. Catálogo de Templates                    │
# ╰──────────────────────────────────────────────╯
class StageType(models.TextChoices):
    DOCUMENT_REQUEST = "document_request", "Solicitação de documento"
    FORM = "form", "Formulário"
    TASK = "task", "Tarefa"
    MEETING = "meeting", "Reunião"
    NOTIFICATION = "notification", "Notificação"
    MANUAL_REVIEW = "manual_review", "Revisão manual"
    LESSON = "lesson", "Conteúdo educativo"


class JourneyTemplate(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    niche = models.CharField(max_length=100, db_index=True)
    tags = models.JSONField(default=list, blank=True)
    eta_days = models.PositiveIntegerField(default=0)
    steps_count = models.PositiveIntegerField(default=0)
    created_by = models.CharField(max_length=100, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "journey_templates"
        ordering = ["name"]

    def __str__(self) -> str:
        return f"{self.name} ({self.niche})"


class TemplateStage(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    template = models.ForeignKey(
        JourneyTemplate,
        on_delete=models.CASCADE,
        related_name="stages",
    )
    position = models.PositiveIntegerField()
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    type = models.CharField(max_length=30, choices=StageType.choices)
    mandatory = models.BooleanField(default=True)
    sla_hours = models.PositiveIntegerField(default=24)
    config = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = "journey_template_stages"
        ordering = ["template", "position"]
        constraints = [
            UniqueConstraint(fields=["template", "position"], name="uniq_template_stage_position"),
        ]

    def __str__(self) -> str:
        return f"{self.position}. {self.title}"


# ╭──────────────────────────────────────────────╮
# │ 2. Instâncias de Jornada                    │
# ╰──────────────────────────────────────────────╯
class JourneyInstance(models.Model):
    class Status(models.TextChoices):
        ACTIVE = "active", "Ativa"
        PAUSED = "paused", "Pausada"
        COMPLETED = "completed", "Concluída"
        CANCELLED = "cancelled", "Cancelada"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    template = models.ForeignKey(
        JourneyTemplate,
        on_delete=models.PROTECT,
        related_name="instances",
    )
    client_id = models.CharField(max_length=100, db_index=True)
    matter_id = models.CharField(max_length=100, null=True, blank=True, db_index=True)
    owner = models.CharField(max_length=100, db_index=True)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.ACTIVE,
        db_index=True,
    )
    started_at = models.DateTimeField()
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    current_stage_position = models.PositiveIntegerField(null=True, blank=True)
    progress_pct = models.FloatField(default=0.0)
    next_action = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "journey_instances"
        ordering = ["-started_at"]
        indexes = [
            Index(fields=["status", "started_at"], name="instance_status_started_idx"),
        ]

    def __str__(self) -> str:
        return f"Jornada {self.id} – cliente {self.client_id}"


class StageProgress(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", "Pendente"
        IN_PROGRESS = "in_progress", "Em andamento"
        COMPLETED = "completed", "Concluída"
        SKIPPED = "skipped", "Pulada"
        BLOCKED = "blocked", "Bloqueada"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    instance = models.ForeignKey(
        JourneyInstance,
        on_delete=models.CASCADE,
        related_name="stages",
    )
    # snapshot da etapa do template no momento da criação da instância
    template_stage_id = models.UUIDField(db_index=True)
    position = models.PositiveIntegerField()
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    type = models.CharField(max_length=30, choices=StageType.choices)
    mandatory = models.BooleanField(default=True)
    sla_hours = models.PositiveIntegerField(default=24)
    config = models.JSONField(default=dict, blank=True)

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
    )
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    sla_due_at = models.DateTimeField(null=True, blank=True)
    completed_by = models.CharField(max_length=100, null=True, blank=True)
    notes = models.TextField(null=True, blank=True)
    version = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "journey_stage_progress"
        ordering = ["instance", "position"]
        constraints = [
            UniqueConstraint(fields=["instance", "position"], name="uniq_instance_stage_position"),
        ]
        indexes = [
            Index(fields=["status", "sla_due_at"], name="stage_status_due_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.instance_id}#{self.position} [{self.status}]"


# ╭──────────────────────────────────────────────╮
# │ 3. Planos de Pagamento / Parcelas           │
# ╰──────────────────────────────────────────────╯
class PaymentPlan(models.Model):
    class Status(models.TextChoices):
        ATIVO = "ativo", "Ativo"
        PAUSADO = "pausado", "Pausado"
        CONCLUIDO = "concluido", "Concluído"
        INADIMPLENTE = "inadimplente", "Inadimplente"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    client_id = models.CharField(max_length=100, db_index=True)
    journey_instance = models.ForeignKey(
        JourneyInstance,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="payment_plans",
    )
    amount_total = models.DecimalField(max_digits=14, decimal_places=2)
    installments_count = models.PositiveIntegerField(default=0)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.ATIVO,
        db_index=True,
    )
    created_by = models.CharField(max_length=100, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "payment_plans"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Plano {self.id} – {self.client_id} [{self.status}]"


class Installment(models.Model):
    class Status(models.TextChoices):
        PENDENTE = "pendente", "Pendente"
        VENCIDA = "vencida", "Vencida"
        PAGA = "paga", "Paga"
        CANCELADA = "cancelada", "Cancelada"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    plan = models.ForeignKey(
        PaymentPlan,
        on_delete=models.CASCADE,
        related_name="installments",
    )
    sequence_number = models.PositiveIntegerField()
    due_date = models.DateField(db_index=True)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDENTE,
        db_index=True,
    )
    paid_at = models.DateTimeField(null=True, blank=True)
    payment_method = models.CharField(max_length=50, null=True, blank=True)
    # etapa do TEMPLATE que criou/ativou a parcela (null = nunca tocada por marco)
    triggered_by_stage_id = models.UUIDField(null=True, blank=True)
    notes = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "payment_installments"
        ordering = ["plan", "sequence_number"]
        constraints = [
            UniqueConstraint(fields=["plan", "sequence_number"], name="uniq_plan_sequence"),
        ]
        indexes = [
            Index(
                fields=["due_date"],
                name="installment_pending_due_idx",
                condition=Q(status="pendente"),
            ),
        ]

    def __str__(self) -> str:
        return f"{self.plan_id} #{self.sequence_number} – {self.amount} [{self.status}]"


class StagePaymentLink(models.Model):
    class Rule(models.TextChoices):
        CREATE_INSTALLMENT = "create_installment", "Criar parcela"
        ACTIVATE_INSTALLMENT = "activate_installment", "Ativar parcela"
        SEND_NOTIFICATION = "send_notification", "Enviar notificação"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    plan = models.ForeignKey(
        PaymentPlan,
        on_delete=models.CASCADE,
        related_name="payment_links",
    )
    stage_template = models.ForeignKey(
        TemplateStage,
        on_delete=models.PROTECT,
        related_name="payment_links",
    )
    rule = models.CharField(max_length=30, choices=Rule.choices)
    installment_amount = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    days_after_completion = models.IntegerField(null=True, blank=True)
    recipient = models.CharField(max_length=255, null=True, blank=True)
    message_template = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "stage_payment_links"
        ordering = ["plan", "created_at"]

    def __str__(self) -> str:
        return f"{self.rule} @ {self.stage_template_id}"


class StagePaymentLinkFiring(models.Model):
    """
    Marcador de disparo: garante no máximo um disparo por (vínculo, instância).
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    link = models.ForeignKey(
        StagePaymentLink,
        on_delete=models.CASCADE,
        related_name="firings",
    )
    instance = models.ForeignKey(
        JourneyInstance,
        on_delete=models.CASCADE,
        related_name="payment_link_firings",
    )
    stage_progress_id = models.UUIDField()
    fired_at = models.DateTimeField()

    class Meta:
        db_table = "stage_payment_link_firings"
        constraints = [
            UniqueConstraint(fields=["link", "instance"], name="uniq_link_firing_per_instance"),
        ]

    def __str__(self) -> str:
        return f"{self.link_id} → {self.instance_id}"
