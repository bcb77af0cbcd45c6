"""Custom exception handlers for consistent error responses.

Every failure leaves the API in the same envelope:

    {"error": {"code": "...", "message": "...", "details": {...}}}

Severity follows the error class rather than the status code: guard
refusals are expected user-facing outcomes (INFO), business and conflict
errors are handled faults (WARNING), integrity failures need manual
repair (ERROR, opaque message to the client).
"""

import logging

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


# ── Application errors ───────────────────────────────────────

class FreightOpsException(Exception):
    """Base exception for FreightOps application errors."""

    log_level = logging.WARNING

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str = "INTERNAL_ERROR",
        details: dict | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)


class BusinessLogicError(FreightOpsException):
    """Exception for business logic violations."""

    def __init__(
        self,
        message: str,
        error_code: str = "BUSINESS_LOGIC_ERROR",
        details: dict | None = None,
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_code=error_code,
            details=details,
        )


class ReferenceDataError(FreightOpsException):
    """An id or code that does not resolve against reference lookups.

    Kept apart from validation errors so clients know to reload lookups.
    """

    def __init__(self, field: str, value: str):
        super().__init__(
            message=f"Unknown reference for {field}: {value}",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_code="UNKNOWN_REFERENCE",
            details={"field": field, "value": value},
        )


class ResourceNotFoundError(FreightOpsException):
    """Exception for resources not found."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(
            message=f"{resource} not found: {identifier}",
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="RESOURCE_NOT_FOUND",
        )


class GuardViolationError(FreightOpsException):
    """A delete refused because dependent financial records exist."""

    log_level = logging.INFO

    def __init__(self, error_code: str, reason: str):
        super().__init__(
            message=reason,
            status_code=status.HTTP_409_CONFLICT,
            error_code=error_code,
            details={"allowed": False, "reason": reason},
        )


class FieldLockedError(FreightOpsException):
    """An update touching a field frozen by an issued document."""

    def __init__(self, field: str, locked_by: str, unlock_hint: str | None = None):
        details = {"field": field, "locked_by": locked_by}
        message = f"{field} is locked: {locked_by}"
        if unlock_hint:
            details["unlock_hint"] = unlock_hint
            message = f"{message}. {unlock_hint}"
        super().__init__(
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            error_code="FIELD_LOCKED",
            details=details,
        )


class ConflictError(FreightOpsException):
    """Concurrent modification detected; safe for the caller to re-fetch and retry."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            error_code="CONFLICT",
            details={"retryable": True, **(details or {})},
        )


class IntegrityViolationError(FreightOpsException):
    """Costing flags and billing documents disagree.

    The message is logged in full; the client only sees a generic retry
    prompt.
    """

    log_level = logging.ERROR

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code="INTEGRITY_FAILURE",
            details=details,
        )


class PermissionDeniedError(FreightOpsException):
    """Exception for permission denied."""

    def __init__(self, message: str = "Permission denied"):
        super().__init__(
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            error_code="PERMISSION_DENIED",
        )


# ── Envelope ─────────────────────────────────────────────────

def create_error_response(
    status_code: int,
    message: str,
    error_code: str = "ERROR",
    details: dict | list | None = None,
) -> JSONResponse:
    """Wrap a failure in the ``{"error": {...}}`` envelope; empty details are omitted."""
    error = {"code": error_code, "message": message}
    if details:
        error["details"] = details
    return JSONResponse(status_code=status_code, content={"error": error})


def _request_context(request: Request, **extra) -> dict:
    return {"path": request.url.path, "method": request.method, **extra}


# ── Handlers ─────────────────────────────────────────────────

async def freightops_exception_handler(request: Request, exc: FreightOpsException) -> JSONResponse:
    logger.log(
        exc.log_level,
        f"{exc.error_code}: {exc.message}",
        extra=_request_context(request, error_code=exc.error_code, details=exc.details),
    )
    if isinstance(exc, IntegrityViolationError):
        # Full detail stays in the log for manual repair
        return create_error_response(
            exc.status_code, "The operation failed. Please try again.", exc.error_code,
        )
    return create_error_response(exc.status_code, exc.message, exc.error_code, exc.details)


async def http_exception_handler(
    request: Request,
    exc: HTTPException | StarletteHTTPException,
) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"HTTP {exc.status_code}: {exc.detail}", extra=_request_context(request))
    response = create_error_response(exc.status_code, str(exc.detail), f"HTTP_{exc.status_code}")
    if getattr(exc, "headers", None):
        response.headers.update(exc.headers)
    return response


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError | ValidationError,
) -> JSONResponse:
    """Malformed input, reported field by field before anything is written."""
    errors = [
        {
            "field": " -> ".join(str(part) for part in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.warning(
        f"Validation error on {request.url.path}",
        extra=_request_context(request, errors=errors),
    )
    return create_error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Validation error",
        "VALIDATION_ERROR",
        {"errors": errors},
    )


# Constraint hint → (code, message).  Hints match both the PostgreSQL
# constraint/index name and SQLite's "table.column" wording.
_CONSTRAINT_ERRORS = [
    (("uq_shipment_party_category", "shipment_parties."),
     "DUPLICATE_PARTY", "Customer is already attached to this shipment in that category"),
    (("customers_code", "customers.code"),
     "DUPLICATE_CUSTOMER_CODE", "A customer with this code already exists"),
    (("uq_document_sequence", "_number"),
     "DUPLICATE_DOCUMENT_NUMBER", "Document number already issued; please retry"),
]


async def database_exception_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """Constraint violations that slipped past the service-level checks."""
    raw = str(getattr(exc, "orig", exc))
    logger.error(f"Integrity error on {request.url.path}: {raw}", extra=_request_context(request))

    lowered = raw.lower()
    for hints, code, message in _CONSTRAINT_ERRORS:
        if any(hint in lowered for hint in hints):
            return create_error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, message, code)

    if "unique" in lowered:
        code, message = "DUPLICATE_RECORD", "A record with this value already exists"
    elif "foreign key" in lowered:
        code, message = "FOREIGN_KEY_VIOLATION", "Referenced record does not exist"
    elif "not null" in lowered:
        code, message = "NULL_VALUE_NOT_ALLOWED", "Required field is missing"
    else:
        code, message = "INTEGRITY_ERROR", "Database constraint violation"
    return create_error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, message, code)


async def operational_exception_handler(request: Request, exc: OperationalError) -> JSONResponse:
    logger.error(f"Database unavailable on {request.url.path}: {exc}", extra=_request_context(request))
    return create_error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "Database temporarily unavailable. Please try again.",
        "DATABASE_UNAVAILABLE",
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled exception on {request.url.path}: {exc}",
        extra=_request_context(request),
        exc_info=True,
    )
    return create_error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An unexpected error occurred. Please try again later.",
        "INTERNAL_SERVER_ERROR",
    )


def register_exception_handlers(app) -> None:
    for exc_class, handler in (
        (FreightOpsException, freightops_exception_handler),
        (HTTPException, http_exception_handler),
        (StarletteHTTPException, http_exception_handler),
        (RequestValidationError, validation_exception_handler),
        (ValidationError, validation_exception_handler),
        (IntegrityError, database_exception_handler),
        (OperationalError, operational_exception_handler),
        (Exception, general_exception_handler),
    ):
        app.add_exception_handler(exc_class, handler)
