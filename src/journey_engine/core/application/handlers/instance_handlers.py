from __future__ import annotations

from journey_engine.core.application.cqrs import CommandHandler, PagedResult, QueryHandler
from journey_engine.core.application.services.journey_instance_service import JourneyInstanceService
from journey_engine.core.application.services.sla_report_service import SlaReportService
from journey_engine.core.domain.entities.journey_instance_entity import JourneyInstanceEntity

from ..commands.instance_commands import (
    AdvanceStageCommand,
    CancelJourneyInstanceCommand,
    PauseJourneyInstanceCommand,
    ReopenStageCommand,
    ResumeJourneyInstanceCommand,
    StartJourneyInstanceCommand,
)
from ..queries.instance_queries import GetJourneyInstanceQuery, ListJourneyInstancesQuery
from ..queries.sla_report_queries import GetSlaReportQuery


class StartJourneyInstanceHandler(CommandHandler[StartJourneyInstanceCommand]):
    def __init__(self, instance_service: JourneyInstanceService):
        self.instance_service = instance_service

    def handle(self, cmd: StartJourneyInstanceCommand) -> JourneyInstanceEntity:
        p = cmd.payload
        return self.instance_service.start_instance(
            template_id=p.template_id,
            client_id=p.client_id,
            owner=p.owner,
            matter_id=p.matter_id,
        )


class AdvanceStageHandler(CommandHandler[AdvanceStageCommand]):
    def __init__(self, instance_service: JourneyInstanceService):
        self.instance_service = instance_service

    def handle(self, cmd: AdvanceStageCommand) -> JourneyInstanceEntity:
        return self.instance_service.advance_stage(
            cmd.instance_id,
            cmd.stage_progress_id,
            outcome=cmd.payload.outcome,
            actor=cmd.payload.actor,
            notes=cmd.payload.notes,
        )


class ReopenStageHandler(CommandHandler[ReopenStageCommand]):
    def __init__(self, instance_service: JourneyInstanceService):
        self.instance_service = instance_service

    def handle(self, cmd: ReopenStageCommand) -> JourneyInstanceEntity:
        return self.instance_service.reopen_stage(cmd.instance_id, cmd.stage_progress_id, cmd.actor)


class PauseJourneyInstanceHandler(CommandHandler[PauseJourneyInstanceCommand]):
    def __init__(self, instance_service: JourneyInstanceService):
        self.instance_service = instance_service

    def handle(self, cmd: PauseJourneyInstanceCommand) -> JourneyInstanceEntity:
        return self.instance_service.pause_instance(cmd.id, cmd.actor)


class ResumeJourneyInstanceHandler(CommandHandler[ResumeJourneyInstanceCommand]):
    def __init__(self, instance_service: JourneyInstanceService):
        self.instance_service = instance_service

    def handle(self, cmd: ResumeJourneyInstanceCommand) -> JourneyInstanceEntity:
        return self.instance_service.resume_instance(cmd.id, cmd.actor)


class CancelJourneyInstanceHandler(CommandHandler[CancelJourneyInstanceCommand]):
    def __init__(self, instance_service: JourneyInstanceService):
        self.instance_service = instance_service

    def handle(self, cmd: CancelJourneyInstanceCommand) -> JourneyInstanceEntity:
        return self.instance_service.cancel_instance(cmd.id, cmd.actor)


class ListJourneyInstancesHandler(QueryHandler[ListJourneyInstancesQuery, PagedResult[JourneyInstanceEntity]]):
    def __init__(self, instance_service: JourneyInstanceService):
        self.instance_service = instance_service

    def handle(self, q: ListJourneyInstancesQuery) -> PagedResult[JourneyInstanceEntity]:
        return self.instance_service.list_instances(q.filtros, q.page, q.page_size)


class GetJourneyInstanceHandler(QueryHandler[GetJourneyInstanceQuery, JourneyInstanceEntity]):
    def __init__(self, instance_service: JourneyInstanceService):
        self.instance_service = instance_service

    def handle(self, q: GetJourneyInstanceQuery) -> JourneyInstanceEntity:
        return self.instance_service.get_instance(q.id)


class GetSlaReportHandler(QueryHandler[GetSlaReportQuery, dict]):
    def __init__(self, report_service: SlaReportService):
        self.report_service = report_service

    def handle(self, q: GetSlaReportQuery) -> dict:
        p = q.payload
        return self.report_service.get_sla_report(niche=p.niche, start=p.start, end=p.end)
