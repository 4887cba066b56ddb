from abc import ABC, abstractmethod
from datetime import datetime

from milestone_billing.core.domain.entities.stage_payment_link_entity import StagePaymentLinkEntity


class StagePaymentLinkRepository(ABC):
    @abstractmethod
    def create(self, link: StagePaymentLinkEntity) -> StagePaymentLinkEntity:
        ...

    @abstractmethod
    def list_for_plan(self, plan_id: str) -> list[StagePaymentLinkEntity]:
        ...

    @abstractmethod
    def list_unfired(self, plan_ids: list[str], stage_template_id: str, instance_id: str) -> list[StagePaymentLinkEntity]:
        """Vínculos da etapa ainda não disparados para a instância."""
        ...

    @abstractmethod
    def record_firing(self, link_id: str, instance_id: str, stage_progress_id: str, fired_at: datetime) -> bool:
        """Grava o marcador de disparo; False se já existia."""
        ...

    @abstractmethod
    def template_stage_exists(self, stage_template_id: str) -> bool:
        ...
