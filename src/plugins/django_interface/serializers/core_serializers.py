# =========================================================
# Serializers de saída compatíveis com as *entities*
# (não com os modelos Django). A entrada é validada pelos
# DTOs pydantic da camada de aplicação.
# =========================================================
from rest_framework import serializers


class EnumValueField(serializers.Field):
    """Serializa Enum pelo `.value` (aceita também str cru)."""

    def __init__(self, **kwargs):
        kwargs.setdefault("read_only", True)
        super().__init__(**kwargs)

    def to_representation(self, value):
        return getattr(value, "value", value)


# ───────────────────────────────────────────────
# Templates de jornada
# ───────────────────────────────────────────────
class TemplateStageSerializer(serializers.Serializer):
    id          = serializers.UUIDField()
    position    = serializers.IntegerField()
    title       = serializers.CharField()
    type        = EnumValueField()
    description = serializers.CharField(allow_blank=True)
    mandatory   = serializers.BooleanField()
    sla_hours   = serializers.IntegerField()
    config      = serializers.DictField()


class JourneyTemplateSerializer(serializers.Serializer):
    id          = serializers.UUIDField()
    name        = serializers.CharField()
    niche       = serializers.CharField()
    description = serializers.CharField(allow_blank=True)
    tags        = serializers.ListField(child=serializers.CharField())
    eta_days    = serializers.IntegerField()
    steps_count = serializers.IntegerField()
    created_by  = serializers.CharField(allow_null=True)
    stages      = TemplateStageSerializer(many=True)
    created_at  = serializers.DateTimeField(allow_null=True)
    updated_at  = serializers.DateTimeField(allow_null=True)


class JourneyTemplateSummarySerializer(serializers.Serializer):
    id          = serializers.UUIDField()
    name        = serializers.CharField()
    niche       = serializers.CharField()
    tags        = serializers.ListField(child=serializers.CharField())
    eta_days    = serializers.IntegerField()
    steps_count = serializers.IntegerField()
    updated_at  = serializers.DateTimeField(allow_null=True)


# ───────────────────────────────────────────────
# Instâncias & etapas
# ───────────────────────────────────────────────
class StageProgressSerializer(serializers.Serializer):
    id                = serializers.UUIDField()
    template_stage_id = serializers.UUIDField()
    position          = serializers.IntegerField()
    title             = serializers.CharField()
    type              = EnumValueField()
    mandatory         = serializers.BooleanField()
    sla_hours         = serializers.IntegerField()
    status            = EnumValueField()
    sla_bucket        = EnumValueField()
    started_at        = serializers.DateTimeField(allow_null=True)
    completed_at      = serializers.DateTimeField(allow_null=True)
    sla_due_at        = serializers.DateTimeField(allow_null=True)
    completed_by      = serializers.CharField(allow_null=True)
    notes             = serializers.CharField(allow_null=True)
    version           = serializers.IntegerField()


class JourneyInstanceSerializer(serializers.Serializer):
    id                     = serializers.UUIDField()
    template_id            = serializers.UUIDField()
    template_name          = serializers.CharField(allow_blank=True)
    niche                  = serializers.CharField(allow_blank=True)
    client_id              = serializers.CharField()
    matter_id              = serializers.CharField(allow_null=True)
    owner                  = serializers.CharField()
    status                 = EnumValueField()
    started_at             = serializers.DateTimeField()
    completed_at           = serializers.DateTimeField(allow_null=True)
    cancelled_at           = serializers.DateTimeField(allow_null=True)
    current_stage_position = serializers.IntegerField(allow_null=True)
    progress_pct           = serializers.FloatField()
    next_action            = serializers.DictField(allow_null=True)
    stages                 = StageProgressSerializer(many=True)


class JourneyInstanceSummarySerializer(serializers.Serializer):
    id                     = serializers.UUIDField()
    template_id            = serializers.UUIDField()
    template_name          = serializers.CharField(allow_blank=True)
    client_id              = serializers.CharField()
    matter_id              = serializers.CharField(allow_null=True)
    owner                  = serializers.CharField()
    status                 = EnumValueField()
    progress_pct           = serializers.FloatField()
    current_stage_position = serializers.IntegerField(allow_null=True)
    next_action            = serializers.DictField(allow_null=True)
    started_at             = serializers.DateTimeField()


# ───────────────────────────────────────────────
# Cobrança
# ───────────────────────────────────────────────
class InstallmentSerializer(serializers.Serializer):
    id                    = serializers.UUIDField()
    sequence_number       = serializers.IntegerField()
    due_date              = serializers.DateField()
    amount                = serializers.DecimalField(max_digits=14, decimal_places=2)
    status                = EnumValueField()
    paid_at               = serializers.DateTimeField(allow_null=True)
    payment_method        = serializers.CharField(allow_null=True)
    triggered_by_stage_id = serializers.UUIDField(allow_null=True)
    notes                 = serializers.CharField(allow_null=True)


class PaymentPlanSerializer(serializers.Serializer):
    id                  = serializers.UUIDField()
    client_id           = serializers.CharField()
    journey_instance_id = serializers.UUIDField(allow_null=True)
    amount_total        = serializers.DecimalField(max_digits=14, decimal_places=2)
    installments_count  = serializers.IntegerField()
    status              = EnumValueField()
    amount_paid         = serializers.DecimalField(max_digits=14, decimal_places=2)
    amount_overdue      = serializers.DecimalField(max_digits=14, decimal_places=2)
    created_by          = serializers.CharField(allow_null=True)
    installments        = InstallmentSerializer(many=True)
    created_at          = serializers.DateTimeField(allow_null=True)


class StagePaymentLinkSerializer(serializers.Serializer):
    id                    = serializers.UUIDField()
    plan_id               = serializers.UUIDField()
    stage_template_id     = serializers.UUIDField()
    rule                  = serializers.CharField()
    installment_amount    = serializers.DecimalField(max_digits=14, decimal_places=2, allow_null=True)
    days_after_completion = serializers.IntegerField(allow_null=True)
    recipient             = serializers.CharField(allow_null=True)
    message_template      = serializers.CharField(allow_null=True)
