"""
Error handling and sanitization

- Storefront errors → structured JSON with their code
- Unhandled exceptions → generic message, full traceback logged only
- Validation errors → left to FastAPI (safe to expose)
"""
import logging
import traceback
from typing import Union

from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from storefront_shipping.core.exceptions import (
    StorefrontBaseError,
    ShippingOptionUnavailableError,
    RuleStoreError,
)

logger = logging.getLogger(__name__)

# Patterns that indicate internal/sensitive error information
SENSITIVE_PATTERNS = [
    "password",
    "secret",
    "token",
    "key",
    "credential",
    "firestore.googleapis",
    "traceback",
    "file \"",
    "line ",
    "/storefront_shipping/",
    "\\storefront_shipping\\",
]

GENERIC_MESSAGE = "An internal error occurred. Please try again later."


def is_sensitive_error(message: str) -> bool:
    """Check if error message contains sensitive information."""
    message_lower = message.lower()
    return any(pattern in message_lower for pattern in SENSITIVE_PATTERNS)


def sanitize_error_message(error: Union[str, Exception], debug: bool = False) -> str:
    """
    Sanitize an error message for safe client exposure.

    Args:
        error: The error string or exception
        debug: Return the message untouched when True

    Returns:
        Sanitized error message safe for client
    """
    message = error if isinstance(error, str) else str(error)

    if debug:
        return message

    if is_sensitive_error(message):
        return GENERIC_MESSAGE

    # Truncate very long messages
    if len(message) > 200:
        return message[:200] + "..."

    return message


def status_for_error(error: StorefrontBaseError) -> int:
    """HTTP status code for a storefront error."""
    if isinstance(error, ShippingOptionUnavailableError):
        return 404
    if isinstance(error, RuleStoreError):
        return 503
    return 400


def storefront_error_response(error: StorefrontBaseError, debug: bool = False) -> JSONResponse:
    """Render a storefront error as the standard JSON error body."""
    status_code = status_for_error(error)
    if status_code >= 500:
        logger.error(f"{error.code}: {error.message} details={error.details}")
    else:
        logger.info(f"{error.code}: {error.message}")

    return JSONResponse(
        status_code=status_code,
        content={
            "error": "shipping_error",
            "code": error.code,
            "message": sanitize_error_message(error.message, debug=debug),
        },
    )


class ErrorSanitizationMiddleware(BaseHTTPMiddleware):
    """
    Catch unhandled exceptions and sanitize error responses.

    - In production: Returns generic error, logs full details
    - In debug mode: Returns full error for debugging
    """

    def __init__(self, app, debug: bool = False):
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next):
        try:
            response = await call_next(request)
            return response
        except HTTPException:
            # Let FastAPI handle HTTPExceptions normally
            raise
        except StorefrontBaseError as e:
            return storefront_error_response(e, debug=self.debug)
        except Exception as e:
            error_id = f"{request.client.host if request.client else 'unknown'}-{id(e)}"
            logger.error(
                f"Unhandled exception [{error_id}]: {type(e).__name__}: {str(e)}\n"
                f"Path: {request.url.path}\n"
                f"Method: {request.method}\n"
                f"Traceback:\n{traceback.format_exc()}"
            )

            if self.debug:
                return JSONResponse(
                    status_code=500,
                    content={
                        "error": "internal_error",
                        "message": str(e),
                        "type": type(e).__name__,
                        "error_id": error_id,
                    }
                )
            return JSONResponse(
                status_code=500,
                content={
                    "error": "internal_error",
                    "message": "An unexpected error occurred. Please try again later.",
                    "error_id": error_id,
                }
            )
