from django.conf import settings
from django.urls import include, path
from drf_yasg import openapi
from drf_yasg.views import get_schema_view
from rest_framework import permissions

from .routers import build_router
from .views.billing_views import ReconciliationSweepView
from .views.health_views import HealthCheckView
from .views.journey_views import SlaReportView

swagger_permissions = [permissions.IsAdminUser] if not settings.DEBUG else [permissions.AllowAny]

schema_view = get_schema_view(
    openapi.Info(
        title="LegalFlow Jornadas",
        default_version="v1",
        description="Orquestração de jornadas e cobrança por marcos (CQRS + Bus)",
        license=openapi.License(name="BSD License"),
    ),
    public=settings.DEBUG,
    permission_classes=swagger_permissions,
)

router = build_router()

urlpatterns = [
    path("healthz/", HealthCheckView.as_view(), name="healthz"),
    path("reports/sla/", SlaReportView.as_view(), name="sla-report"),
    path("billing/reconciliation-sweep/", ReconciliationSweepView.as_view(), name="reconciliation-sweep"),

    path("swagger/",     schema_view.with_ui("swagger", cache_timeout=0), name="swagger-ui"),
    path("swagger.json", schema_view.without_ui(cache_timeout=0),         name="swagger-json"),
    path("redoc/",       schema_view.with_ui("redoc",   cache_timeout=0), name="redoc-ui"),

    path("", include(router.urls)),
]
