import structlog
from django.db import connection
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

logger = structlog.get_logger(__name__)


class HealthCheckView(APIView):
    authentication_classes: list = []
    permission_classes: list = []

    def get(self, request):
        try:
            with connection.cursor() as cursor:
                cursor.execute("SELECT 1")
        except Exception as exc:
            logger.error("healthz.db_unavailable", error=str(exc))
            return Response({"status": "degraded", "database": "down"}, status=status.HTTP_503_SERVICE_UNAVAILABLE)
        return Response({"status": "ok", "database": "up"})
