from dependency_injector import containers, providers

container = None

def setup_di_container_from_settings(settings):
    """
    Inicializa o container de jornadas.
    Depende do container de cobrança, que fornece o avaliador de marcos.
    """
    global container  # noqa: PLW0603
    if container is not None:
        import structlog
        structlog.get_logger().debug("DI container de jornadas já inicializado.")
        return container

    import structlog

    from milestone_billing.adapters.config.composition_root import (
        setup_di_container_from_settings as build_billing_container,
    )

    # ------- ADAPTERS -------
    from journey_engine.adapters.observability.metrics import SUBSCRIPTIONS, observe_bus
    from journey_engine.adapters.repositories.journey_instance_repo_impl import JourneyInstanceRepoImpl
    from journey_engine.adapters.repositories.journey_template_repo_impl import JourneyTemplateRepoImpl

    # ------- CORE -------
    from journey_engine.core.application.commands.instance_commands import (
        AdvanceStageCommand,
        CancelJourneyInstanceCommand,
        PauseJourneyInstanceCommand,
        ReopenStageCommand,
        ResumeJourneyInstanceCommand,
        StartJourneyInstanceCommand,
    )
    from journey_engine.core.application.commands.template_commands import (
        CreateJourneyTemplateCommand,
        DeleteJourneyTemplateCommand,
        DuplicateJourneyTemplateCommand,
        UpdateJourneyTemplateCommand,
    )
    from journey_engine.core.application.cqrs import CommandBusImpl, QueryBusImpl
    from journey_engine.core.application.handlers import (
        AdvanceStageHandler,
        CancelJourneyInstanceHandler,
        CreateJourneyTemplateHandler,
        DeleteJourneyTemplateHandler,
        DuplicateJourneyTemplateHandler,
        GetJourneyInstanceHandler,
        GetJourneyTemplateHandler,
        GetSlaReportHandler,
        ListJourneyInstancesHandler,
        ListJourneyTemplatesHandler,
        PauseJourneyInstanceHandler,
        ReopenStageHandler,
        ResumeJourneyInstanceHandler,
        StartJourneyInstanceHandler,
        UpdateJourneyTemplateHandler,
    )
    from journey_engine.core.application.queries.instance_queries import (
        GetJourneyInstanceQuery,
        ListJourneyInstancesQuery,
    )
    from journey_engine.core.application.queries.sla_report_queries import GetSlaReportQuery
    from journey_engine.core.application.queries.template_queries import (
        GetJourneyTemplateQuery,
        ListJourneyTemplatesQuery,
    )
    from journey_engine.core.application.services.journey_instance_service import JourneyInstanceService
    from journey_engine.core.application.services.sla_report_service import SlaReportService
    from journey_engine.core.application.services.template_catalog_service import TemplateCatalogService
    from journey_engine.core.domain.services.clock import SystemClock
    from journey_engine.core.domain.services.event_dispatcher import EventDispatcher

    billing_container = build_billing_container(settings)

    # ------- DECLARAÇÃO DO CONTAINER -------
    class Container(containers.DeclarativeContainer):
        config = providers.Configuration()

        logger = providers.Singleton(structlog.get_logger)
        event_dispatcher = providers.Singleton(EventDispatcher)
        clock = providers.Singleton(SystemClock)

        # CQRS
        command_bus = providers.Singleton(CommandBusImpl, observer=observe_bus)
        query_bus = providers.Singleton(QueryBusImpl, observer=observe_bus)

        # Repositórios
        template_repo = providers.Singleton(JourneyTemplateRepoImpl)
        instance_repo = providers.Singleton(JourneyInstanceRepoImpl)

        # Cobrança por marcos (contexto milestone_billing)
        milestone_evaluator = providers.Object(billing_container.billing_linkage_service())

        # Serviços
        template_catalog = providers.Singleton(
            TemplateCatalogService,
            template_repo=template_repo,
            dispatcher=event_dispatcher,
        )
        instance_service = providers.Singleton(
            JourneyInstanceService,
            template_repo=template_repo,
            instance_repo=instance_repo,
            milestone_evaluator=milestone_evaluator,
            dispatcher=event_dispatcher,
            clock=clock,
        )
        report_service = providers.Singleton(SlaReportService, instance_repo=instance_repo, clock=clock)

        # Handlers de templates
        create_template_handler = providers.Factory(CreateJourneyTemplateHandler, catalog=template_catalog)
        update_template_handler = providers.Factory(UpdateJourneyTemplateHandler, catalog=template_catalog)
        delete_template_handler = providers.Factory(DeleteJourneyTemplateHandler, catalog=template_catalog)
        duplicate_template_handler = providers.Factory(DuplicateJourneyTemplateHandler, catalog=template_catalog)
        list_templates_handler = providers.Factory(ListJourneyTemplatesHandler, repo=template_repo)
        get_template_handler = providers.Factory(GetJourneyTemplateHandler, catalog=template_catalog)

        # Handlers de instâncias
        start_instance_handler = providers.Factory(StartJourneyInstanceHandler, instance_service=instance_service)
        advance_stage_handler = providers.Factory(AdvanceStageHandler, instance_service=instance_service)
        reopen_stage_handler = providers.Factory(ReopenStageHandler, instance_service=instance_service)
        pause_instance_handler = providers.Factory(PauseJourneyInstanceHandler, instance_service=instance_service)
        resume_instance_handler = providers.Factory(ResumeJourneyInstanceHandler, instance_service=instance_service)
        cancel_instance_handler = providers.Factory(CancelJourneyInstanceHandler, instance_service=instance_service)
        list_instances_handler = providers.Factory(ListJourneyInstancesHandler, instance_service=instance_service)
        get_instance_handler = providers.Factory(GetJourneyInstanceHandler, instance_service=instance_service)
        sla_report_handler = providers.Factory(GetSlaReportHandler, report_service=report_service)

        def init(self):
            bus = self.command_bus()
            # Templates
            bus.register(CreateJourneyTemplateCommand, self.create_template_handler())
            bus.register(UpdateJourneyTemplateCommand, self.update_template_handler())
            bus.register(DeleteJourneyTemplateCommand, self.delete_template_handler())
            bus.register(DuplicateJourneyTemplateCommand, self.duplicate_template_handler())
            # Instâncias
            bus.register(StartJourneyInstanceCommand, self.start_instance_handler())
            bus.register(AdvanceStageCommand, self.advance_stage_handler())
            bus.register(ReopenStageCommand, self.reopen_stage_handler())
            bus.register(PauseJourneyInstanceCommand, self.pause_instance_handler())
            bus.register(ResumeJourneyInstanceCommand, self.resume_instance_handler())
            bus.register(CancelJourneyInstanceCommand, self.cancel_instance_handler())

            qb = self.query_bus()
            qb.register(ListJourneyTemplatesQuery, self.list_templates_handler())
            qb.register(GetJourneyTemplateQuery, self.get_template_handler())
            qb.register(ListJourneyInstancesQuery, self.list_instances_handler())
            qb.register(GetJourneyInstanceQuery, self.get_instance_handler())
            qb.register(GetSlaReportQuery, self.sla_report_handler())

            # Observabilidade
            dispatcher = self.event_dispatcher()
            for event_type, handler in SUBSCRIPTIONS:
                dispatcher.subscribe(event_type, handler)

    # ------- INSTANCIAÇÃO -------
    container = Container()
    container.config.default_page_size.from_value(settings.DEFAULT_PAGE_SIZE)

    Container.init(container)
    return container
