# ╭────────────────────────────────────────────────────────────────────────────╮
# │  ViewSets REST – Catálogo de templates, jornadas em execução e SLA        │
# │                                                                            │
# │  • Filtro seguro   → remove “page” / “page_size” antes de passar ao repo   │
# │  • Paginação DRY   → mix-in centralizado                                   │
# │  • Métrica trace   → decorator `track_http`                                │
# ╰────────────────────────────────────────────────────────────────────────────╯
from __future__ import annotations

import math
from typing import Any

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from journey_engine.adapters.config.composition_root import container as journey_container
from journey_engine.adapters.observability.decorators import track_http
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
from journey_engine.core.application.cqrs import CommandBusImpl, PagedResult, QueryBusImpl
from journey_engine.core.application.dtos.journey_instance_dto import (
    AdvanceStageDTO,
    SlaReportFilterDTO,
    StartJourneyInstanceDTO,
)
from journey_engine.core.application.dtos.journey_template_dto import JourneyTemplateDTO
from journey_engine.core.application.queries.instance_queries import GetJourneyInstanceQuery, ListJourneyInstancesQuery
from journey_engine.core.application.queries.sla_report_queries import GetSlaReportQuery
from journey_engine.core.application.queries.template_queries import GetJourneyTemplateQuery, ListJourneyTemplatesQuery
from milestone_billing.adapters.config.composition_root import container as billing_container
from milestone_billing.core.application.commands.payment_plan_commands import AttachPaymentPlanCommand
from milestone_billing.core.application.dtos.payment_plan_dto import AttachPaymentPlanDTO

from ..serializers.core_serializers import (
    JourneyInstanceSerializer,
    JourneyInstanceSummarySerializer,
    JourneyTemplateSerializer,
    JourneyTemplateSummarySerializer,
    PaymentPlanSerializer,
)

# ───────────────────────────────  CQRS Buses  ────────────────────────────────
journey_command_bus: CommandBusImpl = journey_container.command_bus()
journey_query_bus: QueryBusImpl = journey_container.query_bus()
billing_command_bus: CommandBusImpl = billing_container.command_bus()


# ╭──────────────────────────────────────────────────────────────────────────╮
# │ Helper mix-in – paginação + filtros                                      │
# ╰──────────────────────────────────────────────────────────────────────────╯
class PaginationFilterMixin:
    """Remove page/page_size do QueryDict e devolve filtros limpos."""

    @staticmethod
    def _pagination(request) -> tuple[int, int]:
        default_size = journey_container.config.default_page_size() or 50
        page = int(request.query_params.get("page", 1))
        size = int(request.query_params.get("page_size", default_size))
        return max(page, 1), max(size, 1)

    @staticmethod
    def _filters(request) -> dict[str, Any]:
        params = request.query_params.copy()
        params.pop("page", None)
        params.pop("page_size", None)

        clean: dict[str, Any] = {}
        for key in params:
            values = params.getlist(key)
            clean[key] = values[0] if len(values) == 1 else values
        return clean

    @staticmethod
    def _paged_payload(res: PagedResult, serializer_cls, page: int, page_size: int) -> dict[str, Any]:
        return {
            "results": serializer_cls(res.items, many=True).data,
            "total_items": res.total,
            "page": page,
            "page_size": page_size,
            "total_pages": math.ceil(res.total / page_size) if page_size else 1,
            "items_on_page": len(res.items),
        }


# ╭──────────────────────────────────────────────╮
# │  Catálogo de templates                       │
# ╰──────────────────────────────────────────────╯
class JourneyTemplateViewSet(PaginationFilterMixin, viewsets.ViewSet):

    @track_http("JourneyTemplateViewSet_list")
    def list(self, request):
        page, page_size = self._pagination(request)
        res = journey_query_bus.dispatch(
            ListJourneyTemplatesQuery(filtros=self._filters(request), page=page, page_size=page_size)
        )
        return Response(self._paged_payload(res, JourneyTemplateSummarySerializer, page, page_size))

    @track_http("JourneyTemplateViewSet_retrieve")
    def retrieve(self, request, pk=None):
        tpl = journey_query_bus.dispatch(GetJourneyTemplateQuery(id=str(pk), filtros={}))
        return Response(JourneyTemplateSerializer(tpl).data)

    @track_http("JourneyTemplateViewSet_create")
    def create(self, request):
        data = dict(request.data)
        created_by = data.pop("created_by", None)
        tpl = journey_command_bus.dispatch(
            CreateJourneyTemplateCommand(payload=JourneyTemplateDTO(**data), created_by=created_by)
        )
        return Response(JourneyTemplateSerializer(tpl).data, status=status.HTTP_201_CREATED)

    @track_http("JourneyTemplateViewSet_update")
    def update(self, request, pk=None):
        tpl = journey_command_bus.dispatch(
            UpdateJourneyTemplateCommand(id=str(pk), payload=JourneyTemplateDTO(**request.data))
        )
        return Response(JourneyTemplateSerializer(tpl).data)

    @track_http("JourneyTemplateViewSet_destroy")
    def destroy(self, request, pk=None):
        journey_command_bus.dispatch(DeleteJourneyTemplateCommand(id=str(pk)))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @track_http("JourneyTemplateViewSet_duplicate")
    @action(detail=True, methods=["post"])
    def duplicate(self, request, pk=None):
        tpl = journey_command_bus.dispatch(
            DuplicateJourneyTemplateCommand(id=str(pk), created_by=request.data.get("created_by"))
        )
        return Response(JourneyTemplateSerializer(tpl).data, status=status.HTTP_201_CREATED)


# ╭──────────────────────────────────────────────╮
# │  Jornadas em execução                        │
# ╰──────────────────────────────────────────────╯
class JourneyInstanceViewSet(PaginationFilterMixin, viewsets.ViewSet):

    @track_http("JourneyInstanceViewSet_list")
    def list(self, request):
        page, page_size = self._pagination(request)
        res = journey_query_bus.dispatch(
            ListJourneyInstancesQuery(filtros=self._filters(request), page=page, page_size=page_size)
        )
        return Response(self._paged_payload(res, JourneyInstanceSummarySerializer, page, page_size))

    @track_http("JourneyInstanceViewSet_retrieve")
    def retrieve(self, request, pk=None):
        inst = journey_query_bus.dispatch(GetJourneyInstanceQuery(id=str(pk), filtros={}))
        return Response(JourneyInstanceSerializer(inst).data)

    @track_http("JourneyInstanceViewSet_create")
    def create(self, request):
        inst = journey_command_bus.dispatch(
            StartJourneyInstanceCommand(payload=StartJourneyInstanceDTO(**request.data))
        )
        return Response(JourneyInstanceSerializer(inst).data, status=status.HTTP_201_CREATED)

    @track_http("JourneyInstanceViewSet_advance")
    @action(detail=True, methods=["post"], url_path=r"stages/(?P<stage_id>[^/.]+)/advance")
    def advance(self, request, pk=None, stage_id=None):
        inst = journey_command_bus.dispatch(
            AdvanceStageCommand(
                instance_id=str(pk),
                stage_progress_id=str(stage_id),
                payload=AdvanceStageDTO(**request.data),
            )
        )
        return Response(JourneyInstanceSerializer(inst).data)

    @track_http("JourneyInstanceViewSet_reopen")
    @action(detail=True, methods=["post"], url_path=r"stages/(?P<stage_id>[^/.]+)/reopen")
    def reopen(self, request, pk=None, stage_id=None):
        inst = journey_command_bus.dispatch(
            ReopenStageCommand(
                instance_id=str(pk),
                stage_progress_id=str(stage_id),
                actor=request.data.get("actor") or "api",
            )
        )
        return Response(JourneyInstanceSerializer(inst).data)

    @track_http("JourneyInstanceViewSet_pause")
    @action(detail=True, methods=["post"])
    def pause(self, request, pk=None):
        inst = journey_command_bus.dispatch(PauseJourneyInstanceCommand(id=str(pk), actor=request.data.get("actor")))
        return Response(JourneyInstanceSerializer(inst).data)

    @track_http("JourneyInstanceViewSet_resume")
    @action(detail=True, methods=["post"])
    def resume(self, request, pk=None):
        inst = journey_command_bus.dispatch(ResumeJourneyInstanceCommand(id=str(pk), actor=request.data.get("actor")))
        return Response(JourneyInstanceSerializer(inst).data)

    @track_http("JourneyInstanceViewSet_cancel")
    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        inst = journey_command_bus.dispatch(CancelJourneyInstanceCommand(id=str(pk), actor=request.data.get("actor")))
        return Response(JourneyInstanceSerializer(inst).data)

    @track_http("JourneyInstanceViewSet_payment_plan")
    @action(detail=True, methods=["post"], url_path="payment-plan")
    def payment_plan(self, request, pk=None):
        data = dict(request.data)
        created_by = data.pop("created_by", None)
        plan = billing_command_bus.dispatch(
            AttachPaymentPlanCommand(instance_id=str(pk), payload=AttachPaymentPlanDTO(**data), created_by=created_by)
        )
        return Response(PaymentPlanSerializer(plan).data, status=status.HTTP_201_CREATED)


# ╭──────────────────────────────────────────────╮
# │  Relatório de SLA                            │
# ╰──────────────────────────────────────────────╯
class SlaReportView(APIView):

    @track_http("SlaReportView_get")
    def get(self, request):
        params = {k: v for k, v in request.query_params.items() if v}
        report = journey_query_bus.dispatch(
            GetSlaReportQuery(payload=SlaReportFilterDTO(**params), filtros={})
        )
        return Response(report)
