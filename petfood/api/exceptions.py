"""
DRF exception handler for the analysis API.

Maps service errors to responses:
- InvalidRequestError / ValidationError -> 400 with field errors
- AnalysisNotFoundError -> 404
- FeedbackConflictError -> 409
- ExternalDependencyError -> 503, retryable, no internal details
- anything unexpected -> 500, logged and sent to Sentry
"""

import logging

from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

from petfood.exceptions import (
    AnalysisNotFoundError,
    ExternalDependencyError,
    FeedbackConflictError,
    InvalidRequestError,
    ScrapingError,
)
from petfood.monitoring import capture_service_error

logger = logging.getLogger(__name__)


def petfood_exception_handler(exc, context):
    if isinstance(exc, InvalidRequestError):
        return Response(
            {"error": exc.message, "errors": exc.errors},
            status=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(exc, AnalysisNotFoundError):
        return Response({"error": str(exc)}, status=status.HTTP_404_NOT_FOUND)

    if isinstance(exc, FeedbackConflictError):
        return Response({"error": str(exc)}, status=status.HTTP_409_CONFLICT)

    if isinstance(exc, ExternalDependencyError):
        # Already logged and captured where it was raised
        data = {
            "error": "The analysis service is temporarily unavailable. Please try again.",
            "retryable": exc.retryable,
        }
        if isinstance(exc, ScrapingError):
            data["error"] = (
                "The product page could not be read. Please try again or enter "
                "the ingredients manually."
            )
            data["manual_entry_available"] = True
        return Response(data, status=status.HTTP_503_SERVICE_UNAVAILABLE)

    response = exception_handler(exc, context)
    if response is not None:
        if isinstance(exc, ValidationError):
            response.data = {"error": "Invalid request.", "errors": response.data}
        return response

    view = context.get("view")
    logger.error(
        f"Unhandled error in {type(view).__name__ if view else 'API'}: {exc}",
        exc_info=exc,
    )
    request = context.get("request")
    user = getattr(request, "user", None)
    capture_service_error(
        exc,
        operation="api",
        user_id=getattr(user, "pk", None),
        extra_context={"path": getattr(request, "path", None)},
    )
    return Response(
        {"error": "An unexpected error occurred."},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
