"""Global exception handlers that map domain exceptions to HTTP responses."""

from fastapi import Request, status
from fastapi.responses import JSONResponse

from app.errors import (
    ALREADY_CLOSED,
    CONFLICT,
    DUPLICATE_RESOURCE,
    FORBIDDEN,
    INVALID_RECORD,
    NOT_FOUND,
    UNAUTHORIZED,
    VALIDATION_ERROR,
    VEHICLE_BUSY,
    AlreadyClosedError,
    ConflictError,
    DomainValidationError,
    DuplicateResourceError,
    ForbiddenError,
    InvalidRecordError,
    NotFoundError,
    UnauthorizedError,
    VehicleBusyError,
)
from app.schemas.error import ErrorResponse


def _error_response(status_code: int, detail: str, code: str) -> JSONResponse:
    """Return a standardized error response with detail and machine-readable code."""
    body = ErrorResponse(detail=detail, code=code)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def domain_validation_error_handler(
    _request: Request, exc: DomainValidationError
) -> JSONResponse:
    return _error_response(status.HTTP_400_BAD_REQUEST, str(exc), VALIDATION_ERROR)


def duplicate_resource_error_handler(
    _request: Request, exc: DuplicateResourceError
) -> JSONResponse:
    return _error_response(status.HTTP_409_CONFLICT, str(exc), DUPLICATE_RESOURCE)


def not_found_error_handler(_request: Request, exc: NotFoundError) -> JSONResponse:
    return _error_response(status.HTTP_404_NOT_FOUND, str(exc), NOT_FOUND)


def invalid_record_error_handler(_request: Request, exc: InvalidRecordError) -> JSONResponse:
    return _error_response(status.HTTP_404_NOT_FOUND, str(exc), INVALID_RECORD)


def forbidden_error_handler(_request: Request, exc: ForbiddenError) -> JSONResponse:
    return _error_response(status.HTTP_403_FORBIDDEN, str(exc), FORBIDDEN)


def unauthorized_error_handler(_request: Request, exc: UnauthorizedError) -> JSONResponse:
    return _error_response(status.HTTP_401_UNAUTHORIZED, str(exc), UNAUTHORIZED)


def vehicle_busy_error_handler(_request: Request, exc: VehicleBusyError) -> JSONResponse:
    return _error_response(status.HTTP_409_CONFLICT, str(exc), VEHICLE_BUSY)


def already_closed_error_handler(_request: Request, exc: AlreadyClosedError) -> JSONResponse:
    return _error_response(status.HTTP_409_CONFLICT, str(exc), ALREADY_CLOSED)


def conflict_error_handler(_request: Request, exc: ConflictError) -> JSONResponse:
    return _error_response(status.HTTP_409_CONFLICT, str(exc), CONFLICT)


def register_exception_handlers(app):
    """Register domain exception handlers on the FastAPI app."""
    app.add_exception_handler(DomainValidationError, domain_validation_error_handler)
    app.add_exception_handler(DuplicateResourceError, duplicate_resource_error_handler)
    app.add_exception_handler(ForbiddenError, forbidden_error_handler)
    app.add_exception_handler(NotFoundError, not_found_error_handler)
    app.add_exception_handler(InvalidRecordError, invalid_record_error_handler)
    app.add_exception_handler(UnauthorizedError, unauthorized_error_handler)
    app.add_exception_handler(VehicleBusyError, vehicle_busy_error_handler)
    app.add_exception_handler(AlreadyClosedError, already_closed_error_handler)
    app.add_exception_handler(ConflictError, conflict_error_handler)
