"""Error taxonomy and the standardized error response body.

Domain exceptions raised by the services:

- ``NotFoundError``: a record or link is absent. Reads turn this into an
  empty/omitted result; mutations surface it (404).
- ``StoreUnavailableError``: the store is unreachable or rejected the
  request (503). Never retried.
- ``DecisionValidationError``: a precondition failed before any store call
  (422).
- ``NotAuthenticatedError``: a mutation was attempted with no current actor
  (401).

Every HTTP error is rendered as:
{
    "error": "ValidationError",
    "message": "Decision title must not be empty",
    "details": {"field": "title"},
    "request_id": "abc-123-def-456",
    "timestamp": "2026-01-29T12:00:00Z",
    "path": "/api/decisions"
}
"""

from datetime import UTC, datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class DecisionMemoryError(Exception):
    """Base class for errors raised by the decision services."""

    error_type = "InternalError"
    status_code = 500

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(DecisionMemoryError):
    error_type = "NotFound"
    status_code = 404

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            f"{resource} not found",
            details={"resource": resource, "id": resource_id},
        )
        self.resource = resource
        self.resource_id = resource_id


class StoreUnavailableError(DecisionMemoryError):
    error_type = "ServiceUnavailable"
    status_code = 503


class DecisionValidationError(DecisionMemoryError):
    error_type = "ValidationError"
    status_code = 422

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, details={"field": field} if field else None)
        self.field = field


class NotAuthenticatedError(DecisionMemoryError):
    error_type = "Unauthorized"
    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class ErrorResponse(BaseModel):
    """Standard error response schema for all API endpoints."""

    error: str = Field(
        ...,
        description="Error type/code (e.g., 'ValidationError', 'NotFound')",
        examples=["ValidationError", "NotFound", "ServiceUnavailable"],
    )
    message: str = Field(..., description="Human-readable error message")
    details: Optional[dict[str, Any]] = Field(
        default=None, description="Additional error context"
    )
    request_id: Optional[str] = Field(
        default=None, description="Request correlation ID for tracing"
    )
    timestamp: str = Field(
        default_factory=lambda: datetime.now(UTC).isoformat(),
        description="When the error occurred (ISO 8601)",
    )
    path: Optional[str] = Field(
        default=None,
        description="Request path that caused the error",
        examples=["/api/decisions/123"],
    )


class ValidationErrorDetail(BaseModel):
    field: str
    message: str
    type: str


class ValidationErrorResponse(ErrorResponse):
    error: str = "ValidationError"
    validation_errors: list[ValidationErrorDetail] = Field(default_factory=list)


class ErrorType:
    """Standard error type codes."""

    VALIDATION_ERROR = "ValidationError"
    NOT_FOUND = "NotFound"
    UNAUTHORIZED = "Unauthorized"
    BAD_REQUEST = "BadRequest"
    SERVICE_UNAVAILABLE = "ServiceUnavailable"
    INTERNAL_ERROR = "InternalError"


def create_error_response(
    error: str,
    message: str,
    details: Optional[dict[str, Any]] = None,
    request_id: Optional[str] = None,
    path: Optional[str] = None,
) -> dict[str, Any]:
    """Build a JSON-ready error body, omitting empty fields."""
    response = ErrorResponse(
        error=error,
        message=message,
        details=details,
        request_id=request_id,
        path=path,
    )
    return response.model_dump(exclude_none=True)


def create_validation_error_response(
    message: str,
    errors: list[dict[str, str]],
    request_id: Optional[str] = None,
    path: Optional[str] = None,
) -> dict[str, Any]:
    """Build a validation error body from ``{"field", "message", "type"}`` dicts."""
    response = ValidationErrorResponse(
        message=message,
        validation_errors=[
            ValidationErrorDetail(
                field=e.get("field", "unknown"),
                message=e.get("message", "Validation failed"),
                type=e.get("type", "value_error"),
            )
            for e in errors
        ],
        request_id=request_id,
        path=path,
    )
    return response.model_dump(exclude_none=True)
