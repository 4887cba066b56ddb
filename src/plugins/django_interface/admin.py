"""
Admin site registry
-------------------
Registra os modelos de jornadas e cobrança de forma dinâmica.
"""

import structlog
from django.contrib import admin as django_admin

from . import models

logger = structlog.get_logger(__name__)

# ╭──────────────────────────────────────────────╮
# │ Configuração de cada ModelAdmin             │
# ╰──────────────────────────────────────────────╯
MODEL_ADMIN_REGISTRY: dict[type[models.models.Model], dict] = {
    # 1. Catálogo
    models.JourneyTemplate: dict(
        list_display=("name", "niche", "steps_count", "eta_days", "created_at"),
        list_filter=("niche",),
        search_fields=("name", "description"),
    ),
    models.TemplateStage: dict(
        list_display=("template", "position", "title", "type", "mandatory", "sla_hours"),
        list_filter=("type", "mandatory"),
        search_fields=("title",),
    ),
    # 2. Jornadas em execução
    models.JourneyInstance: dict(
        list_display=("template", "client_id", "matter_id", "owner", "status", "progress_pct", "started_at"),
        list_filter=("status", "template__niche"),
        search_fields=("client_id", "matter_id", "owner"),
    ),
    models.StageProgress: dict(
        list_display=("instance", "position", "title", "status", "sla_due_at", "completed_at"),
        list_filter=("status", "type"),
    ),
    # 3. Cobrança
    models.PaymentPlan: dict(
        list_display=("client_id", "journey_instance", "amount_total", "installments_count", "status"),
        list_filter=("status",),
        search_fields=("client_id",),
    ),
    models.Installment: dict(
        list_display=("plan", "sequence_number", "due_date", "amount", "status"),
        list_filter=("status",),
    ),
    models.StagePaymentLink: dict(
        list_display=("plan", "stage_template", "rule", "installment_amount", "days_after_completion"),
        list_filter=("rule",),
    ),
    models.StagePaymentLinkFiring: dict(
        list_display=("link", "instance", "fired_at"),
    ),
}

# ╭──────────────────────────────────────────────╮
# │ Registro dinâmico                           │
# ╰──────────────────────────────────────────────╯
for model, opts in MODEL_ADMIN_REGISTRY.items():
    admin_class = type(f"{model.__name__}Admin", (django_admin.ModelAdmin,), opts)
    django_admin.site.register(model, admin_class)
    logger.debug("admin.model_registered", model=model.__name__)
