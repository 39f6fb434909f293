"""
Exception Handler Module
Provides the integration error taxonomy and the boundary that turns it into
the uniform {success: false, error} envelope
"""

import logging
import functools
from typing import Any, Callable, Dict, Iterable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "Internal server error. Check server logs for details."


class IntegrationError(Exception):
    """Base error for every failure the gateway reports to a client"""

    default_status = 400

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code or self.default_status
        super().__init__(message)

    def to_envelope(self) -> Dict[str, Any]:
        return {"success": False, "error": self.message}


class ValidationError(IntegrationError):
    """Malformed or missing client input"""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message, 400)


class PathTraversalError(ValidationError):
    """Upload path tried to escape its folder"""

    def __init__(self, message: str = "Upload path cannot contain traversal segments."):
        super().__init__(message, field="path")


class UnsupportedProviderError(IntegrationError):
    """Provider identifier has no registered adapter"""

    def __init__(self, provider: str, kind: str = "payment"):
        self.provider = provider
        super().__init__(f"Unsupported {kind} provider: {provider}.", 400)


class ConfigurationError(IntegrationError):
    """Server-side credentials or settings are missing.

    Only the environment key names are reported, never their values.
    """

    default_status = 500

    def __init__(self, message: str, missing_keys: Iterable[str] = ()):
        self.missing_keys = tuple(missing_keys)
        super().__init__(message, 500)


class UpstreamError(IntegrationError):
    """Third-party API answered with a failure or could not be reached"""

    default_status = 500

    def __init__(self, message: str, status_code: Optional[int] = None, provider: Optional[str] = None):
        self.provider = provider
        super().__init__(message, status_code or 500)


class UnresolvableKeyError(IntegrationError):
    """A storage key could not be derived from a public URL"""

    def __init__(self, message: str = "Unable to derive S3 key from the provided URL"):
        super().__init__(message, 400)


class NotFoundError(IntegrationError):
    """Backend object is absent"""

    default_status = 404

    def __init__(self, message: str = "File not found."):
        super().__init__(message, 404)


class StorageError(IntegrationError):
    """Storage backend failure other than not-found"""

    default_status = 500

    def __init__(self, message: str):
        super().__init__(message, 500)


def error_response(error: IntegrationError) -> JSONResponse:
    return JSONResponse(content=error.to_envelope(), status_code=error.status_code)


def log_integration_error(error: IntegrationError, context: str):
    """Server errors are logged as errors, client mistakes as warnings"""
    if error.status_code >= 500:
        logger.error(f"{context}: {type(error).__name__} ({error.status_code}): {error.message}")
    else:
        logger.warning(f"{context}: {type(error).__name__} ({error.status_code}): {error.message}")


def json_error_boundary(context: str, generic_message: str = GENERIC_SERVER_ERROR) -> Callable:
    """
    Decorator for route handlers.
    Converts IntegrationError into its envelope and any unexpected exception
    into a logged, non-leaking 500 envelope.
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            try:
                return await func(*args, **kwargs)
            except IntegrationError as e:
                log_integration_error(e, context)
                return error_response(e)
            except Exception:
                logger.exception(f"{context}: unexpected error")
                return JSONResponse(
                    content={"success": False, "error": generic_message},
                    status_code=500,
                )

        return wrapper

    return decorator


def install_exception_handlers(app: FastAPI):
    """Last line of defence for errors escaping a route"""

    @app.exception_handler(IntegrationError)
    async def handle_integration_error(request: Request, exc: IntegrationError):
        log_integration_error(exc, f"{request.method} {request.url.path}")
        return error_response(exc)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            f"Unhandled error on {request.method} {request.url.path}: {type(exc).__name__}",
            exc_info=exc,
        )
        return JSONResponse(
            content={"success": False, "error": GENERIC_SERVER_ERROR},
            status_code=500,
        )
