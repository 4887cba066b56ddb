"""
Projeção "próxima ação" de uma jornada.

Função pura: lê a etapa ativa (tipo + config) e o bucket de SLA e devolve
um dicionário de exibição. Nunca altera estado.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any

from journey_engine.core.domain.entities.enums import (
    InstanceStatus,
    NextActionPriority,
    SlaBucket,
    StageStatus,
    StageType,
)
from journey_engine.core.domain.entities.journey_instance_entity import JourneyInstanceEntity
from journey_engine.core.domain.services.sla_classifier import classify

# tipo de etapa → (verbo do título, call-to-action)
_ACTION_BY_TYPE: dict[StageType, tuple[str, str]] = {
    StageType.DOCUMENT_REQUEST: ("Solicitar documentos", "Enviar documentos"),
    StageType.FORM:             ("Preencher formulário", "Abrir formulário"),
    StageType.TASK:             ("Executar tarefa", "Concluir tarefa"),
    StageType.MEETING:          ("Agendar reunião", "Agendar"),
    StageType.NOTIFICATION:     ("Enviar notificação", "Notificar cliente"),
    StageType.MANUAL_REVIEW:    ("Revisar manualmente", "Iniciar revisão"),
    StageType.LESSON:           ("Apresentar conteúdo", "Abrir conteúdo"),
}

_PRIORITY_BY_BUCKET: dict[SlaBucket, NextActionPriority] = {
    SlaBucket.OVERDUE:    NextActionPriority.HIGH,
    SlaBucket.DUE_LT_24H: NextActionPriority.HIGH,
    SlaBucket.DUE_24_72H: NextActionPriority.MEDIUM,
    SlaBucket.DUE_GT_72H: NextActionPriority.LOW,
    SlaBucket.ON_TRACK:   NextActionPriority.LOW,
}


def _describe(stage_type: StageType, config: dict[str, Any], fallback: str) -> str:
    """Descrição específica do tipo a partir da config da etapa."""
    if stage_type == StageType.DOCUMENT_REQUEST and config.get("documents"):
        return "Documentos: " + ", ".join(str(d) for d in config["documents"])
    if stage_type == StageType.MEETING and config.get("duration_minutes"):
        return f"Reunião de {config['duration_minutes']} min"
    if stage_type == StageType.FORM and config.get("form_id"):
        return f"Formulário {config['form_id']}"
    if stage_type == StageType.NOTIFICATION and config.get("channel"):
        return f"Canal: {config['channel']}"
    return fallback


def _terminal(title: str, description: str) -> dict[str, Any]:
    return {
        "type": "none",
        "title": title,
        "description": description,
        "cta": None,
        "stage_progress_id": None,
        "due_at": None,
        "priority": NextActionPriority.LOW.value,
    }


def compute_next_action(instance: JourneyInstanceEntity, now: datetime) -> dict[str, Any]:
    if instance.status == InstanceStatus.COMPLETED:
        return _terminal("Jornada Concluída", "Todas as etapas obrigatórias foram concluídas.")
    if instance.status == InstanceStatus.CANCELLED:
        return _terminal("Jornada Cancelada", "Nenhuma ação pendente.")

    stage = instance.active_stage()
    if stage is None:
        return _terminal("Aguardando próxima etapa", "")

    if instance.status == InstanceStatus.PAUSED:
        return {
            "type": "resume",
            "title": "Jornada pausada",
            "description": f"Retome a jornada para continuar em: {stage.title}",
            "cta": "Retomar jornada",
            "stage_progress_id": str(stage.id),
            "due_at": None,
            "priority": NextActionPriority.LOW.value,
        }

    if stage.status == StageStatus.BLOCKED:
        return {
            "type": "unblock",
            "title": f"{stage.title} (Bloqueada)",
            "description": stage.notes or "Etapa bloqueada aguardando resolução.",
            "cta": "Reabrir etapa",
            "stage_progress_id": str(stage.id),
            "due_at": None,
            "priority": NextActionPriority.HIGH.value,
        }

    verb, cta = _ACTION_BY_TYPE[stage.type]
    bucket = classify(stage.sla_due_at, now)
    title = f"{verb}: {stage.title}"
    if bucket == SlaBucket.OVERDUE:
        title += " (Atrasado)"
    config = stage.config or {}
    return {
        "type": stage.type.value,
        "title": title,
        "description": _describe(stage.type, config, stage.description),
        "cta": config.get("cta") or cta,
        "stage_progress_id": str(stage.id),
        "due_at": stage.sla_due_at.isoformat() if stage.sla_due_at else None,
        "priority": _PRIORITY_BY_BUCKET[bucket].value,
    }
