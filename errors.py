"""Exception types and error handlers for the API.

Every handler raises one of the ``APIError`` subclasses below; the handlers
registered by ``register_error_handlers`` turn them into a uniform JSON body.
"""

import logging
import traceback
from typing import Any, Dict, List, Optional, Union

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class ErrorResponseModel(BaseModel):
    """Error response model."""

    error: str = Field(..., description="Error message")
    details: Optional[Union[str, List[Dict[str, Any]]]] = Field(
        None, description="Additional error details"
    )
    status_code: int = Field(400, description="HTTP status code")


class ConfigurationError(RuntimeError):
    """Raised at startup when required settings are missing."""


class APIError(Exception):
    """Base class for all API errors."""

    status_code = 500
    default_message = "An unexpected error occurred"
    headers: Optional[Dict[str, str]] = None

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Union[str, List[Dict[str, Any]]]] = None,
    ):
        """Initialize the API error.

        Args:
            message: Custom error message (uses default_message if None)
            details: Additional error details
        """
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_response(self) -> JSONResponse:
        """Convert to a JSON response."""
        error_model = ErrorResponseModel(
            error=self.message, details=self.details, status_code=self.status_code
        )
        return JSONResponse(
            status_code=self.status_code,
            content=error_model.model_dump(),
            headers=self.headers,
        )


class ValidationError(APIError):
    """Error for missing or malformed request data."""

    status_code = 400
    default_message = "Invalid request data"


class AuthError(APIError):
    """Error for bad credentials or a missing/invalid token."""

    status_code = 401
    default_message = "Not authorized"
    headers = {"WWW-Authenticate": "Bearer"}


class ConflictError(APIError):
    """Error for a resource that already exists."""

    status_code = 409
    default_message = "Resource already exists"


class NotFoundError(APIError):
    """Error for a resource that is absent or not owned by the caller."""

    status_code = 404
    default_message = "Resource not found"


class ServerError(APIError):
    """Error from the store or any unexpected failure."""

    status_code = 500
    default_message = "Server error"


def register_error_handlers(app: FastAPI) -> None:
    """Register error handlers with the FastAPI application."""

    @app.exception_handler(APIError)
    async def handle_api_error(request: Request, error: APIError) -> JSONResponse:
        if error.status_code >= 500:
            logger.error(f"API error ({error.__class__.__name__}): {error.message}")
        else:
            logger.warning(f"{error.__class__.__name__} on {request.url.path}: {error.message}")
        return error.to_response()

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(
        request: Request, error: RequestValidationError
    ) -> JSONResponse:
        logger.warning(f"Validation error on {request.url.path}: {error}")

        # Convert errors to a string representation for consistency
        error_details = "\n".join([str(e) for e in error.errors()])
        return ValidationError("Validation error", details=error_details).to_response()

    @app.exception_handler(Exception)
    async def handle_exception(request: Request, error: Exception) -> JSONResponse:
        logger.error(f"Unhandled exception on {request.url.path}: {str(error)}")
        logger.error(traceback.format_exc())
        return ServerError().to_response()
