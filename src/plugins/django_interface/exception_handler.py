"""
Tradução das exceções de domínio para respostas HTTP.

    ValidationError / BillingRuleError / pydantic → 400
    NotFoundError                                 → 404
    StateConflict                                 → 409  {"error": <código>, "detail": ...}
"""
import pydantic
import structlog
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from journey_engine.core.domain.events.exceptions import (
    BillingRuleError,
    NotFoundError,
    StateConflict,
    ValidationError,
)

logger = structlog.get_logger(__name__)


def journey_exception_handler(exc, context):
    if isinstance(exc, StateConflict):
        logger.info("http.state_conflict", code=exc.code, detail=exc.detail)
        return Response({"error": exc.code, "detail": exc.detail}, status=status.HTTP_409_CONFLICT)

    if isinstance(exc, NotFoundError):
        return Response(
            {"error": "NotFound", "detail": str(exc)},
            status=status.HTTP_404_NOT_FOUND,
        )

    if isinstance(exc, ValidationError):
        return Response(
            {"error": "ValidationError", "detail": str(exc), "field": exc.field},
            status=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(exc, BillingRuleError):
        return Response({"error": "BillingRuleError", "detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, pydantic.ValidationError):
        return Response(
            {"error": "ValidationError", "detail": exc.errors(include_url=False, include_context=False)},
            status=status.HTTP_400_BAD_REQUEST,
        )

    return drf_exception_handler(exc, context)
