# ╭────────────────────────────────────────────────────────────────────────────╮
# │  ViewSets REST – Planos de pagamento, parcelas e varredura de cobrança     │
# ╰────────────────────────────────────────────────────────────────────────────╯
from __future__ import annotations

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from journey_engine.adapters.observability.decorators import track_http
from journey_engine.core.application.cqrs import CommandBusImpl, QueryBusImpl
from milestone_billing.adapters.config.composition_root import container as billing_container
from milestone_billing.adapters.observability.metrics import observe_sweep
from milestone_billing.core.application.commands.payment_plan_commands import (
    AddStagePaymentLinkCommand,
    CancelInstallmentCommand,
    CreatePaymentPlanCommand,
    MarkInstallmentPaidCommand,
    PausePaymentPlanCommand,
    ReactivatePaymentPlanCommand,
)
from milestone_billing.core.application.commands.reconciliation_commands import RunReconciliationSweepCommand
from milestone_billing.core.application.dtos.payment_plan_dto import (
    InstallmentPaymentDTO,
    PaymentPlanDTO,
    StagePaymentLinkDTO,
)
from milestone_billing.core.application.queries.payment_plan_queries import (
    GetPaymentPlanQuery,
    ListPaymentPlansQuery,
    ListStagePaymentLinksQuery,
)

from ..serializers.core_serializers import PaymentPlanSerializer, StagePaymentLinkSerializer
from .journey_views import PaginationFilterMixin

billing_command_bus: CommandBusImpl = billing_container.command_bus()
billing_query_bus: QueryBusImpl = billing_container.query_bus()


class PaymentPlanViewSet(PaginationFilterMixin, viewsets.ViewSet):

    @track_http("PaymentPlanViewSet_list")
    def list(self, request):
        page, page_size = self._pagination(request)
        res = billing_query_bus.dispatch(
            ListPaymentPlansQuery(filtros=self._filters(request), page=page, page_size=page_size)
        )
        return Response(self._paged_payload(res, PaymentPlanSerializer, page, page_size))

    @track_http("PaymentPlanViewSet_retrieve")
    def retrieve(self, request, pk=None):
        plan = billing_query_bus.dispatch(GetPaymentPlanQuery(id=str(pk), filtros={}))
        return Response(PaymentPlanSerializer(plan).data)

    @track_http("PaymentPlanViewSet_create")
    def create(self, request):
        data = dict(request.data)
        created_by = data.pop("created_by", None)
        plan = billing_command_bus.dispatch(
            CreatePaymentPlanCommand(payload=PaymentPlanDTO(**data), created_by=created_by)
        )
        return Response(PaymentPlanSerializer(plan).data, status=status.HTTP_201_CREATED)

    @track_http("PaymentPlanViewSet_links")
    @action(detail=True, methods=["get", "post"])
    def links(self, request, pk=None):
        if request.method == "GET":
            links = billing_query_bus.dispatch(ListStagePaymentLinksQuery(plan_id=str(pk), filtros={}))
            return Response(StagePaymentLinkSerializer(links, many=True).data)

        link = billing_command_bus.dispatch(
            AddStagePaymentLinkCommand(plan_id=str(pk), payload=StagePaymentLinkDTO(**request.data))
        )
        return Response(StagePaymentLinkSerializer(link).data, status=status.HTTP_201_CREATED)

    @track_http("PaymentPlanViewSet_pause")
    @action(detail=True, methods=["post"])
    def pause(self, request, pk=None):
        plan = billing_command_bus.dispatch(PausePaymentPlanCommand(id=str(pk), actor=request.data.get("actor")))
        return Response(PaymentPlanSerializer(plan).data)

    @track_http("PaymentPlanViewSet_reactivate")
    @action(detail=True, methods=["post"])
    def reactivate(self, request, pk=None):
        plan = billing_command_bus.dispatch(
            ReactivatePaymentPlanCommand(id=str(pk), actor=request.data.get("actor"))
        )
        return Response(PaymentPlanSerializer(plan).data)


class InstallmentViewSet(viewsets.ViewSet):
    """Somente ações de baixa/cancelamento; a leitura vem pelo plano."""

    @track_http("InstallmentViewSet_pay")
    @action(detail=True, methods=["post"])
    def pay(self, request, pk=None):
        plan = billing_command_bus.dispatch(
            MarkInstallmentPaidCommand(installment_id=str(pk), payload=InstallmentPaymentDTO(**request.data))
        )
        return Response(PaymentPlanSerializer(plan).data)

    @track_http("InstallmentViewSet_cancel")
    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        plan = billing_command_bus.dispatch(
            CancelInstallmentCommand(installment_id=str(pk), notes=request.data.get("notes"))
        )
        return Response(PaymentPlanSerializer(plan).data)


class ReconciliationSweepView(APIView):

    @track_http("ReconciliationSweepView_post")
    def post(self, request):
        result = billing_command_bus.dispatch(RunReconciliationSweepCommand(triggered_by="api"))
        observe_sweep(result)
        return Response(result.to_dict())
