from __future__ import annotations

from journey_engine.core.application.cqrs import CommandHandler, PagedResult, QueryHandler
from journey_engine.core.application.services.template_catalog_service import TemplateCatalogService
from journey_engine.core.domain.entities.journey_template_entity import JourneyTemplateEntity
from journey_engine.core.domain.repositories.journey_template_repository import JourneyTemplateRepository

from ..commands.template_commands import (
    CreateJourneyTemplateCommand,
    DeleteJourneyTemplateCommand,
    DuplicateJourneyTemplateCommand,
    UpdateJourneyTemplateCommand,
)
from ..queries.template_queries import GetJourneyTemplateQuery, ListJourneyTemplatesQuery


class CreateJourneyTemplateHandler(CommandHandler[CreateJourneyTemplateCommand]):
    def __init__(self, catalog: TemplateCatalogService):
        self.catalog = catalog

    def handle(self, cmd: CreateJourneyTemplateCommand) -> JourneyTemplateEntity:
        p = cmd.payload
        return self.catalog.create_template(
            name=p.name,
            niche=p.niche,
            stages=[s.model_dump() for s in p.stages],
            description=p.description,
            tags=p.tags,
            created_by=cmd.created_by,
        )


class UpdateJourneyTemplateHandler(CommandHandler[UpdateJourneyTemplateCommand]):
    def __init__(self, catalog: TemplateCatalogService):
        self.catalog = catalog

    def handle(self, cmd: UpdateJourneyTemplateCommand) -> JourneyTemplateEntity:
        p = cmd.payload
        return self.catalog.update_template(
            cmd.id,
            name=p.name,
            niche=p.niche,
            stages=[s.model_dump() for s in p.stages],
            description=p.description,
            tags=p.tags,
        )


class DeleteJourneyTemplateHandler(CommandHandler[DeleteJourneyTemplateCommand]):
    def __init__(self, catalog: TemplateCatalogService):
        self.catalog = catalog

    def handle(self, cmd: DeleteJourneyTemplateCommand) -> None:
        self.catalog.delete_template(cmd.id)


class DuplicateJourneyTemplateHandler(CommandHandler[DuplicateJourneyTemplateCommand]):
    def __init__(self, catalog: TemplateCatalogService):
        self.catalog = catalog

    def handle(self, cmd: DuplicateJourneyTemplateCommand) -> JourneyTemplateEntity:
        return self.catalog.duplicate_template(cmd.id, created_by=cmd.created_by)


class ListJourneyTemplatesHandler(QueryHandler[ListJourneyTemplatesQuery, PagedResult[JourneyTemplateEntity]]):
    def __init__(self, repo: JourneyTemplateRepository):
        self.repo = repo

    def handle(self, q: ListJourneyTemplatesQuery) -> PagedResult[JourneyTemplateEntity]:
        return self.repo.list(q.filtros, q.page, q.page_size)


class GetJourneyTemplateHandler(QueryHandler[GetJourneyTemplateQuery, JourneyTemplateEntity]):
    def __init__(self, catalog: TemplateCatalogService):
        self.catalog = catalog

    def handle(self, q: GetJourneyTemplateQuery) -> JourneyTemplateEntity:
        return self.catalog.get_template(q.id)
