"""Custom domain exceptions for the application."""

# Stable, machine-readable error codes for API consumers.
NOT_FOUND = "NOT_FOUND"
INVALID_RECORD = "INVALID_RECORD"
DUPLICATE_RESOURCE = "DUPLICATE_RESOURCE"
VALIDATION_ERROR = "VALIDATION_ERROR"
FORBIDDEN = "FORBIDDEN"
UNAUTHORIZED = "UNAUTHORIZED"
VEHICLE_BUSY = "VEHICLE_BUSY"
ALREADY_CLOSED = "ALREADY_CLOSED"
CONFLICT = "CONFLICT"


class DomainError(Exception):
    """Base exception for domain/business logic errors."""

    pass


class NotFoundError(DomainError):
    """Raised when a requested resource does not exist."""

    pass


class InvalidRecordError(NotFoundError):
    """Raised when an operation references a rental record that does not exist."""

    pass


class DuplicateResourceError(DomainError):
    """Raised when attempting to create or update a resource that would violate a uniqueness constraint."""

    pass


class DomainValidationError(DomainError):
    """Raised when business rules or domain validation fail (e.g. wrong role, resource still in use)."""

    pass


class ForbiddenError(DomainError):
    """Raised when the current user may not access the requested resource."""

    pass


class UnauthorizedError(DomainError):
    """Raised when credentials are missing or wrong."""

    pass


class VehicleBusyError(DomainError):
    """Raised when a vehicle has an open rental that blocks the requested transition."""

    pass


class AlreadyClosedError(DomainError):
    """Raised when returning a vehicle whose latest rental is already closed."""

    pass


class ConflictError(DomainError):
    """Raised when a concurrent write won the race for the vehicle's open rental slot."""

    pass


class OpenRentalConflictError(Exception):
    """Storage-level failure: the database refused a second open rental for a car.

    Raised by the rental repository, never by the service layer.
    """

    def __init__(self, car_id: int):
        self.car_id = car_id
        super().__init__(f"Car {car_id} already has an open rental")
