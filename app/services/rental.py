"""Rental service: the pipeline between the API layer and the rental rule engine.

Each write runs: resolve referenced records -> rule engine -> translate a
failed RuleResult into a domain error -> invalidate the read cache.
Authorization and input validation happen before this layer, in the routers.
"""

import logging
from datetime import datetime, timezone

from pydantic import TypeAdapter
from sqlalchemy.orm import Session

import app.repositories.car as car_repo
import app.repositories.rental as rental_repo
import app.repositories.user as user_repo
from app.core.cache import rental_cache
from app.core.performance import log_slow_operation
from app.db.models.user import User as UserModel
from app.domain.rental_rules import ReasonCode, RentalRequest, RentalRuleEngine, RuleResult
from app.errors import (
    AlreadyClosedError,
    ConflictError,
    DomainValidationError,
    ForbiddenError,
    InvalidRecordError,
    NotFoundError,
    VehicleBusyError,
)
from app.repositories.rental import SqlAlchemyRentalRepository
from app.schemas.rental import Rental, RentalDetail, VehicleAvailability

logger = logging.getLogger(__name__)

CUSTOMER_ROLE = "customer"

# Serializers for cached reads.
_RENTAL_ADAPTER = TypeAdapter(Rental | None)
_RENTAL_PAGE_ADAPTER = TypeAdapter(tuple[list[Rental], int])

_ERRORS_BY_REASON = {
    ReasonCode.VEHICLE_BUSY: VehicleBusyError,
    ReasonCode.INVALID_RECORD: InvalidRecordError,
    ReasonCode.ALREADY_CLOSED: AlreadyClosedError,
    ReasonCode.NOT_FOUND: NotFoundError,
    ReasonCode.CONFLICT: ConflictError,
}


def build_engine(db: Session) -> RentalRuleEngine:
    """Create a rule engine bound to the request's database session."""
    return RentalRuleEngine(SqlAlchemyRentalRepository(db))


def _raise_for_failure(result: RuleResult) -> None:
    if not result.success:
        raise _ERRORS_BY_REASON[result.reason_code](result.message)


def _ensure_car_exists(db: Session, car_id: int) -> None:
    if not car_repo.get_car_by_id(db, car_id):
        raise NotFoundError(f"Car with id {car_id} not found")


def _ensure_customer(db: Session, customer_id: int) -> None:
    customer = user_repo.get_user_by_id(db, customer_id)
    if not customer:
        raise NotFoundError(f"User with id {customer_id} not found")
    if customer.role.name != CUSTOMER_ROLE:
        raise DomainValidationError(
            f"User with id {customer_id} must have '{CUSTOMER_ROLE}' role"
        )


def create_rental(
    db: Session,
    car_id: int,
    customer_id: int,
    rent_date: datetime | None = None,
) -> Rental:
    """
    Open a new rental for a car.

    - Validates car exists and customer exists with the "customer" role
    - Rejects the rental while the car has an open rental (VehicleBusyError)
    - Reports a lost concurrent race as ConflictError
    """
    _ensure_car_exists(db, car_id)
    _ensure_customer(db, customer_id)

    request = RentalRequest(
        car_id=car_id,
        customer_id=customer_id,
        rent_date=rent_date or datetime.now(timezone.utc),
    )
    result = build_engine(db).add_rental(request)
    _raise_for_failure(result)
    rental_cache.invalidate()
    return Rental.model_validate(result.payload)


def return_car(db: Session, car_id: int) -> Rental:
    """
    Close the car's latest rental by setting its return date to now.

    Raises:
        NotFoundError: If the car doesn't exist or has never been rented
        AlreadyClosedError: If the latest rental is already closed
    """
    _ensure_car_exists(db, car_id)
    result = build_engine(db).close_rental(car_id)
    _raise_for_failure(result)
    rental_cache.invalidate()
    return Rental.model_validate(result.payload)


def update_rental(db: Session, rental_id: int, **update_fields) -> Rental:
    """
    Update passthrough fields of a rental (customer_id, rent_date).

    Only fields explicitly provided in update_fields are updated.
    """
    if update_fields.get("customer_id") is not None:
        _ensure_customer(db, update_fields["customer_id"])

    result = build_engine(db).update_rental(rental_id, **update_fields)
    _raise_for_failure(result)
    rental_cache.invalidate()
    return Rental.model_validate(result.payload)


def delete_rental(db: Session, rental_id: int) -> None:
    """
    Delete a closed rental.

    Raises:
        InvalidRecordError: If the rental doesn't exist
        VehicleBusyError: If the rental is still open
    """
    result = build_engine(db).delete_rental(rental_id)
    _raise_for_failure(result)
    rental_cache.invalidate()


def get_availability(db: Session, car_id: int) -> VehicleAvailability:
    """Report whether a car can be rented right now."""
    _ensure_car_exists(db, car_id)
    engine = build_engine(db)
    return VehicleAvailability(
        car_id=car_id,
        available=not engine.is_vehicle_currently_open(car_id),
        last_rental_closed=engine.is_last_rental_closed(car_id).success,
    )


def get_rental(db: Session, rental_id: int, current_user: UserModel) -> Rental:
    """
    Get a rental by ID (cached).

    - Admin and Employee: can see any rental
    - Customer: can only see their own rentals
    """
    with log_slow_operation("get_rental"):
        rental = rental_cache.get_or_load(
            ("rental", rental_id), lambda: _load_rental(db, rental_id), _RENTAL_ADAPTER
        )

    if rental is None:
        raise NotFoundError("Rental not found")

    if current_user.role.name == CUSTOMER_ROLE and rental.customer_id != current_user.id:
        raise ForbiddenError("Not enough permissions")

    return rental


def _load_rental(db: Session, rental_id: int) -> Rental | None:
    rental = rental_repo.get_rental_by_id(db, rental_id)
    return Rental.model_validate(rental) if rental else None


def list_rentals(
    db: Session,
    current_user: UserModel,
    page: int = 1,
    page_size: int = 100,
    car_id: int | None = None,
    customer_id: int | None = None,
    open: bool | None = None,
) -> tuple[list[Rental], int]:
    """
    List rentals with pagination and filters (cached).

    Customers always get only their own rentals, whatever customer_id says.
    """
    if current_user.role.name == CUSTOMER_ROLE:
        customer_id = current_user.id

    def load() -> tuple[list[Rental], int]:
        rentals, total = rental_repo.get_all_rentals_paginated(
            db,
            page=page,
            page_size=page_size,
            car_id=car_id,
            customer_id=customer_id,
            open=open,
        )
        return [Rental.model_validate(rental) for rental in rentals], total

    with log_slow_operation("list_rentals"):
        return rental_cache.get_or_load(
            ("rentals", page, page_size, car_id, customer_id, open), load, _RENTAL_PAGE_ADAPTER
        )


def list_rental_details(
    db: Session,
    car_id: int | None = None,
    open: bool | None = None,
) -> list[RentalDetail]:
    """List rentals joined with car brand/model and customer name."""
    rows = rental_repo.get_rental_details(db, car_id=car_id, open=open)
    return [
        RentalDetail(
            id=rental.id,
            car_id=car.id,
            brand=car.brand,
            model=car.model,
            customer_id=customer.id,
            customer_name=customer.name,
            rent_date=rental.rent_date,
            return_date=rental.return_date,
        )
        for rental, car, customer in rows
    ]
