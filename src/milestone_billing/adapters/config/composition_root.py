from dependency_injector import containers, providers

container = None

def setup_di_container_from_settings(settings):
    """Inicializa o container de cobrança após o Django carregar os settings."""
    global container  # noqa: PLW0603
    if container is not None:
        import structlog
        structlog.get_logger().debug("DI container de cobrança já inicializado.")
        return container

    import structlog

    # ------- ADAPTERS -------
    from journey_engine.adapters.observability.metrics import observe_bus
    from journey_engine.adapters.repositories.journey_instance_repo_impl import JourneyInstanceRepoImpl
    from milestone_billing.adapters.dispatch.celery_notification_dispatcher import CeleryNotificationDispatcher
    from milestone_billing.adapters.observability.metrics import on_plan_status_changed
    from milestone_billing.adapters.repositories.installment_repo_impl import InstallmentRepoImpl
    from milestone_billing.adapters.repositories.payment_plan_repo_impl import PaymentPlanRepoImpl
    from milestone_billing.adapters.repositories.stage_payment_link_repo_impl import StagePaymentLinkRepoImpl

    # ------- CORE -------
    from journey_engine.core.application.cqrs import CommandBusImpl, QueryBusImpl
    from journey_engine.core.domain.events.events import PlanStatusChangedEvent
    from journey_engine.core.domain.services.clock import SystemClock
    from journey_engine.core.domain.services.event_dispatcher import EventDispatcher
    from milestone_billing.core.application.commands.payment_plan_commands import (
        AddStagePaymentLinkCommand,
        AttachPaymentPlanCommand,
        CancelInstallmentCommand,
        CreatePaymentPlanCommand,
        MarkInstallmentPaidCommand,
        PausePaymentPlanCommand,
        ReactivatePaymentPlanCommand,
    )
    from milestone_billing.core.application.commands.reconciliation_commands import RunReconciliationSweepCommand
    from milestone_billing.core.application.handlers.payment_plan_handlers import (
        AddStagePaymentLinkHandler,
        AttachPaymentPlanHandler,
        CancelInstallmentHandler,
        CreatePaymentPlanHandler,
        GetPaymentPlanHandler,
        ListPaymentPlansHandler,
        ListStagePaymentLinksHandler,
        MarkInstallmentPaidHandler,
        PausePaymentPlanHandler,
        ReactivatePaymentPlanHandler,
        RunReconciliationSweepHandler,
    )
    from milestone_billing.core.application.queries.payment_plan_queries import (
        GetPaymentPlanQuery,
        ListPaymentPlansQuery,
        ListStagePaymentLinksQuery,
    )
    from milestone_billing.core.application.services.billing_linkage_service import BillingLinkageService
    from milestone_billing.core.application.services.payment_plan_service import PaymentPlanService
    from milestone_billing.core.application.services.reconciliation_service import ReconciliationService

    # ------- DECLARAÇÃO DO CONTAINER -------
    class Container(containers.DeclarativeContainer):
        logger = providers.Singleton(structlog.get_logger)
        event_dispatcher = providers.Singleton(EventDispatcher)
        clock = providers.Singleton(SystemClock)

        # CQRS
        command_bus = providers.Singleton(CommandBusImpl, observer=observe_bus)
        query_bus = providers.Singleton(QueryBusImpl, observer=observe_bus)

        # Repositórios
        plan_repo = providers.Singleton(PaymentPlanRepoImpl)
        installment_repo = providers.Singleton(InstallmentRepoImpl)
        link_repo = providers.Singleton(StagePaymentLinkRepoImpl)
        instance_repo = providers.Singleton(JourneyInstanceRepoImpl)

        # Despacho externo
        notification_dispatcher = providers.Singleton(CeleryNotificationDispatcher)

        # Serviços
        billing_linkage_service = providers.Singleton(
            BillingLinkageService,
            plan_repo=plan_repo,
            installment_repo=installment_repo,
            link_repo=link_repo,
            notifier=notification_dispatcher,
            clock=clock,
        )
        payment_plan_service = providers.Singleton(
            PaymentPlanService,
            plan_repo=plan_repo,
            installment_repo=installment_repo,
            link_repo=link_repo,
            instance_repo=instance_repo,
            dispatcher=event_dispatcher,
            clock=clock,
        )
        reconciliation_service = providers.Singleton(
            ReconciliationService,
            plan_repo=plan_repo,
            installment_repo=installment_repo,
            dispatcher=event_dispatcher,
            clock=clock,
        )

        # Handlers
        create_plan_handler = providers.Factory(CreatePaymentPlanHandler, plan_service=payment_plan_service)
        attach_plan_handler = providers.Factory(AttachPaymentPlanHandler, plan_service=payment_plan_service)
        add_link_handler = providers.Factory(AddStagePaymentLinkHandler, plan_service=payment_plan_service)
        pause_plan_handler = providers.Factory(PausePaymentPlanHandler, plan_service=payment_plan_service)
        reactivate_plan_handler = providers.Factory(ReactivatePaymentPlanHandler, plan_service=payment_plan_service)
        pay_installment_handler = providers.Factory(MarkInstallmentPaidHandler, plan_service=payment_plan_service)
        cancel_installment_handler = providers.Factory(CancelInstallmentHandler, plan_service=payment_plan_service)
        sweep_handler = providers.Factory(
            RunReconciliationSweepHandler,
            reconciliation_service=reconciliation_service,
            logger=logger,
        )
        list_plans_handler = providers.Factory(ListPaymentPlansHandler, repo=plan_repo)
        get_plan_handler = providers.Factory(GetPaymentPlanHandler, plan_service=payment_plan_service)
        list_links_handler = providers.Factory(ListStagePaymentLinksHandler, plan_service=payment_plan_service)

        def init(self):
            bus = self.command_bus()
            bus.register(CreatePaymentPlanCommand, self.create_plan_handler())
            bus.register(AttachPaymentPlanCommand, self.attach_plan_handler())
            bus.register(AddStagePaymentLinkCommand, self.add_link_handler())
            bus.register(PausePaymentPlanCommand, self.pause_plan_handler())
            bus.register(ReactivatePaymentPlanCommand, self.reactivate_plan_handler())
            bus.register(MarkInstallmentPaidCommand, self.pay_installment_handler())
            bus.register(CancelInstallmentCommand, self.cancel_installment_handler())
            bus.register(RunReconciliationSweepCommand, self.sweep_handler())

            qb = self.query_bus()
            qb.register(ListPaymentPlansQuery, self.list_plans_handler())
            qb.register(GetPaymentPlanQuery, self.get_plan_handler())
            qb.register(ListStagePaymentLinksQuery, self.list_links_handler())

            # Observabilidade
            self.event_dispatcher().subscribe(PlanStatusChangedEvent, on_plan_status_changed)

    # ------- INSTANCIAÇÃO -------
    container = Container()

    Container.init(container)
    return container
