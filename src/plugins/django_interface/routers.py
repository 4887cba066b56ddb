from rest_framework.routers import DefaultRouter

from .views.billing_views import InstallmentViewSet, PaymentPlanViewSet
from .views.journey_views import JourneyInstanceViewSet, JourneyTemplateViewSet

# lista de (rota, ViewSet)
RESOURCES = [
    ("journey-templates", JourneyTemplateViewSet),
    ("journey-instances", JourneyInstanceViewSet),
    ("payment-plans",     PaymentPlanViewSet),
    ("installments",      InstallmentViewSet),
]

def build_router() -> DefaultRouter:
    router = DefaultRouter(trailing_slash=False)
    for prefix, viewset in RESOURCES:
        router.register(prefix, viewset, basename=prefix.replace('-', '_'))
    return router
