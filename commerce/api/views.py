"""
GraphQL view with request-id and logging support.
"""
import json
import logging
from uuid import uuid4

from ariadne import graphql_sync
from django.conf import settings
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from commerce.api.middleware import ErrorHandler, ValidationError
from commerce.api.schema import schema
from commerce.infra.pii_masker import mask_pii_in_dict

logger = logging.getLogger(__name__)


class StorefrontGraphQLView:
    """GraphQL view with structured logging."""

    def dispatch(self, request, *args, **kwargs):
        """Handle GraphQL request."""
        request_id = request.headers.get("X-Request-ID") or str(uuid4())

        try:
            response = self._process_graphql_request(request, request_id)
        except Exception as e:
            response = ErrorHandler.handle_error(e)
            logger.warning(
                "graphql_error",
                extra={
                    "request_id": request_id,
                    "error": str(e),
                }
            )

        # Log response
        logger.info(
            "graphql_response",
            extra={
                "request_id": request_id,
                "status": response.status_code,
            }
        )
        response["X-Request-ID"] = request_id
        return response

    def _process_graphql_request(self, request, request_id: str):
        """Process GraphQL request."""
        if request.method == "GET":
            return JsonResponse({"message": "GraphQL endpoint. Use POST for queries."})

        try:
            data = json.loads(request.body)
        except json.JSONDecodeError:
            raise ValidationError("Invalid JSON")
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")

        # Log request (with PII masking)
        logger.info(
            "graphql_request",
            extra={
                "request_id": request_id,
                "operation": data.get("operationName") or "graphql",
                "variables": mask_pii_in_dict(data.get("variables") or {}),
            }
        )

        success, result = graphql_sync(
            schema,
            data,
            context_value={"request": request, "request_id": request_id},
            debug=settings.DEBUG,
            error_formatter=ErrorHandler.format_graphql_error,
        )

        status_code = 200
        if not success or result.get("errors"):
            code = result["errors"][0].get("extensions", {}).get("code", "")
            status_code = ErrorHandler.status_for(code)
        return JsonResponse(result, status=status_code)


@csrf_exempt
@require_http_methods(["GET", "POST"])
def graphql_view(request):
    """GraphQL endpoint."""
    view = StorefrontGraphQLView()
    return view.dispatch(request)
