"""
Custom exceptions and error handlers for consistent error responses.

Domain errors all derive from DomainError and carry an ErrorKind, so
callers (services, handlers, tests) branch on ``exc.kind`` rather than on
the concrete exception class.
"""

import enum
import logging
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Any, Dict, List, Optional

logger = logging.getLogger("transport")


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ErrorKind(str, enum.Enum):
    """Stable error kinds returned to callers of trip operations."""
    VALIDATION = "VALIDATION"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    MISSING_RESOURCE = "MISSING_RESOURCE"
    RESOURCE_UNAVAILABLE = "RESOURCE_UNAVAILABLE"
    ELIGIBILITY = "ELIGIBILITY"
    COMPUTATION = "COMPUTATION"
    NOT_FOUND = "NOT_FOUND"


KIND_STATUS = {
    ErrorKind.VALIDATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.INVALID_TRANSITION: status.HTTP_409_CONFLICT,
    ErrorKind.MISSING_RESOURCE: status.HTTP_409_CONFLICT,
    ErrorKind.RESOURCE_UNAVAILABLE: status.HTTP_409_CONFLICT,
    ErrorKind.ELIGIBILITY: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.COMPUTATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
}


class DomainError(AppException):
    """Expected, recoverable business-rule failure."""

    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code=f"ERR_{self.kind.value}",
            status_code=KIND_STATUS[self.kind],
            details=details,
        )


class ValidationError(DomainError):
    """Malformed or out-of-range input field."""

    kind = ErrorKind.VALIDATION

    def __init__(self, field: str, value: Any, rule: str):
        self.field = field
        self.value = value
        self.rule = rule
        super().__init__(
            message=f"Invalid {field}: {rule}",
            details={"field": field, "value": _jsonable(value), "rule": rule},
        )


class InvalidTransitionError(DomainError):
    """Operation not allowed from the trip's current status."""

    kind = ErrorKind.INVALID_TRANSITION

    def __init__(self, operation: str, current_status: Any, trip_id: Any = None):
        self.operation = operation
        self.current_status = current_status
        status_value = getattr(current_status, "value", current_status)
        super().__init__(
            message=f"Cannot {operation} a trip in status {status_value}",
            details={"trip_id": trip_id, "status": status_value, "operation": operation},
        )


class MissingResourceError(DomainError):
    """A required driver and/or vehicle has not been assigned."""

    kind = ErrorKind.MISSING_RESOURCE

    def __init__(self, missing: List[str]):
        self.missing = missing
        super().__init__(
            message=f"Trip requires assigned {' and '.join(missing)}",
            details={"missing": missing},
        )


class ResourceUnavailableError(DomainError):
    """Driver or vehicle already committed to another trip."""

    kind = ErrorKind.RESOURCE_UNAVAILABLE

    def __init__(self, resource: str, resource_id: Any = None):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(
            message=f"{resource} {resource_id} is not available",
            details={"resource": resource, "id": resource_id},
        )


class EligibilityError(DomainError):
    """License/category mismatch or expired documentation."""

    kind = ErrorKind.ELIGIBILITY

    def __init__(self, failures: List[str]):
        self.failures = failures
        super().__init__(
            message="Resource assignment not eligible: " + "; ".join(failures),
            details={"failures": failures},
        )


class ComputationError(DomainError):
    """Fare could not be computed."""

    kind = ErrorKind.COMPUTATION

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(message=f"Fare computation failed: {reason}", details={"reason": reason})


class ResourceNotFoundError(DomainError):
    """Raised when requested resource is not found."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(message=message, details={"resource": resource, "id": resource_id})


class AuthenticationError(AppException):
    """Raised for authentication failures."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(
            message=message,
            error_code="ERR_AUTH_001",
            status_code=status.HTTP_401_UNAUTHORIZED
        )


def _jsonable(value: Any) -> Optional[Any]:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        401: "ERR_UNAUTHORIZED",
        403: "ERR_FORBIDDEN",
        404: "ERR_NOT_FOUND",
        409: "ERR_CONFLICT",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": exc.detail,
            "details": {}
        },
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "ERR_VALIDATION",
            "message": "Validation error",
            "details": {
                "errors": [
                    {"loc": list(err.get("loc", [])), "msg": err.get("msg"), "type": err.get("type")}
                    for err in exc.errors()
                ]
            }
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "An internal server error occurred",
            "details": {}
        }
    )
