class JourneyError(Exception):
    """Classe base para todas as exceções do motor de jornadas e cobrança."""
    pass

class ValidationError(JourneyError):
    """
    Entrada malformada de template/etapa/plano.
    Exemplos:
    - Lista de etapas vazia, posições duplicadas ou com lacunas.
    - Tipo de etapa fora do conjunto fechado.
    """
    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field

class StateConflict(JourneyError):
    """
    Violação de ordem ou concorrência numa transição de estado.
    `code` identifica o conflito (StageOutOfOrder, StageAlreadyCompleted,
    MandatoryStagePending, InstanceNotActive, TemplateInUse, InvalidTransition).
    """
    STAGE_OUT_OF_ORDER = "StageOutOfOrder"
    STAGE_ALREADY_COMPLETED = "StageAlreadyCompleted"
    MANDATORY_STAGE_PENDING = "MandatoryStagePending"
    INSTANCE_NOT_ACTIVE = "InstanceNotActive"
    TEMPLATE_IN_USE = "TemplateInUse"
    INVALID_TRANSITION = "InvalidTransition"

    def __init__(self, code: str, detail: str = "") -> None:
        super().__init__(f"{code}: {detail}" if detail else code)
        self.code = code
        self.detail = detail

class NotFoundError(JourneyError):
    """Template, instância, plano, parcela ou etapa inexistente."""
    def __init__(self, entity: str, entity_id: object) -> None:
        super().__init__(f"{entity} {entity_id} não encontrado")
        self.entity = entity
        self.entity_id = str(entity_id)

class BillingRuleError(JourneyError):
    """
    Configuração malformada de StagePaymentLink.
    Durante a avaliação de marcos é apenas logada: nunca bloqueia o avanço da etapa.
    """
    pass

class ExternalDispatchError(JourneyError):
    """Falha ao entregar/enfileirar uma notificação no dispatcher externo."""
    pass
