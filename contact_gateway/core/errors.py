"""
=============================================================================
CONTACT GATEWAY - ERROR HANDLING MODULE
=============================================================================
Rejection taxonomy for the contact pipeline and the global exception
handlers that turn it into user-facing responses.

Every gate failure is a ContactError subclass carrying its HTTP status and
a short public message. Internal detail (SMTP errors, Turnstile error codes)
is logged server-side and never rendered.

Usage:
    # In main.py
    from contact_gateway.core.errors import register_exception_handlers
    register_exception_handlers(app)
=============================================================================
"""

import logging
import traceback
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse

from contact_gateway.core.config import settings

logger = logging.getLogger(__name__)


class ContactError(Exception):
    """Base class for every contact pipeline rejection."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    public_message: str = "Requête invalide."
    code: str = "CONTACT_ERROR"

    def __init__(self, detail: Optional[str] = None, public_message: Optional[str] = None):
        super().__init__(detail or self.code)
        self.detail = detail
        if public_message is not None:
            self.public_message = public_message


class RateLimited(ContactError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    public_message = "Trop de requêtes. Réessayez plus tard."
    code = "RATE_LIMITED"


class MalformedInput(ContactError):
    public_message = "Champs invalides"
    code = "MALFORMED_INPUT"


class ValidationFailed(ContactError):
    public_message = "Champs invalides"
    code = "VALIDATION_FAILED"


class ChallengeFailed(ContactError):
    public_message = "Vérification Turnstile échouée."
    code = "CHALLENGE_FAILED"


class ContentRejected(ContactError):
    code = "CONTENT_REJECTED"

    _MESSAGES = {
        "blacklist": "Ce nom n'est pas autorisé.",
        "alphabet": "Cet alphabet n'est pas autorisé.",
        "link": "L'envoi de liens n'est pas autorisé.",
    }

    def __init__(self, reason: str):
        super().__init__(
            detail=f"content check failed: {reason}",
            public_message=self._MESSAGES.get(reason, "Message refusé."),
        )
        self.reason = reason


class DeliveryFailed(ContactError):
    """Administrator notification could not be sent; the only server-side fault."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    public_message = "Erreur lors de l'envoi."
    code = "DELIVERY_FAILED"


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(ContactError)
    async def contact_error_handler(request: Request, exc: ContactError):
        # Rejections were already logged by the pipeline with their stage
        return PlainTextResponse(exc.public_message, status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all handler for unhandled exceptions.

        - Logs the full traceback for debugging
        - Returns a generic error message to prevent info leakage
        - In debug mode, includes more details
        """
        logger.error(
            f"Unhandled exception on {request.method} {request.url.path}:\n"
            f"{traceback.format_exc()}"
        )

        if settings.DEBUG:
            return JSONResponse(
                status_code=500,
                content={
                    "detail": "Internal Server Error",
                    "error_type": type(exc).__name__,
                    "message": str(exc),
                    "path": request.url.path,
                },
            )
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal Server Error",
                "message": "An unexpected error occurred. Please try again later.",
            },
        )
