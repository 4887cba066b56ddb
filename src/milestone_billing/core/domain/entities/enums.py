from __future__ import annotations

from enum import Enum


class PlanStatus(str, Enum):
    ATIVO = "ativo"
    PAUSADO = "pausado"
    CONCLUIDO = "concluido"
    INADIMPLENTE = "inadimplente"


class InstallmentStatus(str, Enum):
    PENDENTE = "pendente"
    VENCIDA = "vencida"
    PAGA = "paga"
    CANCELADA = "cancelada"


class PaymentRule(str, Enum):
    CREATE_INSTALLMENT = "create_installment"
    ACTIVATE_INSTALLMENT = "activate_installment"
    SEND_NOTIFICATION = "send_notification"
