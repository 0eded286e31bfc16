"""
Request validation and error handling for the API.
"""
import logging
from decimal import InvalidOperation

from ariadne import format_error
from django.http import JsonResponse
from graphql import GraphQLError

from commerce.domain.order_status import InvalidTransitionError
from commerce.services import DiscountRejectedError, NotFoundError

logger = logging.getLogger(__name__)


class ValidationError(Exception):
    """Custom validation error."""
    def __init__(self, message: str, code: str = "VALIDATION_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)


class ErrorHandler:
    """Error handler for API responses."""

    ERROR_CODES = {
        "VALIDATION_ERROR": 400,
        "NOT_FOUND": 404,
        "INVALID_STATE": 400,
        "DISCOUNT_REJECTED": 400,
        "INTERNAL_ERROR": 500,
    }

    @classmethod
    def code_for(cls, error: Exception | None) -> str:
        """Map an exception raised by a resolver to an error code."""
        if isinstance(error, ValidationError):
            return error.code
        if isinstance(error, InvalidTransitionError):
            return "INVALID_STATE"
        if isinstance(error, NotFoundError):
            return "NOT_FOUND"
        if isinstance(error, DiscountRejectedError):
            return "DISCOUNT_REJECTED"
        if error is None or isinstance(error, (ValueError, InvalidOperation)):
            # None is a query the schema itself rejected
            return "VALIDATION_ERROR"
        return "INTERNAL_ERROR"

    @classmethod
    def status_for(cls, code: str) -> int:
        return cls.ERROR_CODES.get(code, 400)

    @classmethod
    def format_graphql_error(cls, error: GraphQLError, debug: bool = False) -> dict:
        """Ariadne error formatter adding ``extensions.code``."""
        formatted = format_error(error, debug)
        code = cls.code_for(error.original_error)
        if code == "INTERNAL_ERROR":
            logger.error(
                "unexpected_error",
                extra={"error": str(error.original_error), "error_code": code},
                exc_info=error.original_error,
            )
            if not debug:
                formatted["message"] = "An internal error occurred"
        extensions = formatted.setdefault("extensions", {})
        extensions["code"] = code
        return formatted

    @classmethod
    def handle_error(cls, error: Exception) -> JsonResponse:
        """Handle error and return JSON response."""
        if isinstance(error, ValidationError):
            return JsonResponse(
                {
                    "error": {
                        "code": error.code,
                        "message": error.message,
                    }
                },
                status=cls.status_for(error.code),
            )

        # Log unexpected errors
        logger.error(
            "unexpected_error",
            extra={"error": str(error), "error_code": "INTERNAL_ERROR"},
            exc_info=True,
        )

        return JsonResponse(
            {
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An internal error occurred",
                }
            },
            status=500,
        )
