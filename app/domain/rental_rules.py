"""Rental rule engine: decides which rental state transitions are allowed.

The engine owns a single invariant: a car has at most one open rental
(``return_date is None``) at any time. It owns no storage; every read and
write goes through a :class:`RentalRepository`.

Per car the state is derived from its history::

    NoHistory --add--> Open --close--> Closed --add--> Open ...

Deletion is allowed from ``Closed`` only. Every operation returns a
:class:`RuleResult`; expected business conditions never raise.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Generic, Protocol, TypeVar

from app.core.locks import VehicleLocks, vehicle_locks
from app.domain.rental_status import RENTAL_STATUS
from app.errors import NotFoundError, OpenRentalConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Human-readable message keys returned alongside reason codes.
RENTAL_ADDED = "Rental added"
RENTAL_UPDATED = "Rental updated"
RENTAL_DELETED = "Rental deleted"
RENTAL_CLOSED = "Car returned"
RENTAL_BUSY = "Car is currently rented and has not been returned"
RENTAL_RECORD_INVALID = "Rental record not found"
RENTAL_ALREADY_CLOSED = "Latest rental for this car is already closed"
RENTAL_NO_HISTORY = "Car has no rental history"
RENTAL_CONFLICT = "Another rental for this car was created concurrently"


class ReasonCode(str, enum.Enum):
    VEHICLE_BUSY = "VEHICLE_BUSY"
    INVALID_RECORD = "INVALID_RECORD"
    ALREADY_CLOSED = "ALREADY_CLOSED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"


@dataclass(frozen=True, slots=True)
class RuleResult(Generic[T]):
    """Uniform outcome of every engine operation."""

    success: bool
    reason_code: ReasonCode | None = None
    message: str | None = None
    payload: T | None = None

    @classmethod
    def ok(cls, message: str | None = None, payload: T | None = None) -> "RuleResult[T]":
        return cls(success=True, message=message, payload=payload)

    @classmethod
    def fail(cls, reason_code: ReasonCode, message: str) -> "RuleResult[T]":
        return cls(success=False, reason_code=reason_code, message=message)


@dataclass(frozen=True, slots=True)
class RentalRequest:
    """Data needed to open a rental. Fields other than car_id are passthrough."""

    car_id: int
    customer_id: int
    rent_date: datetime


class RentalRecord(Protocol):
    id: int
    car_id: int
    return_date: datetime | None


class RentalRepository(Protocol):
    """Storage collaborator consumed by the engine.

    ``list_for_car`` returns rentals in ascending creation sequence, so the
    last element is the car's current rental. ``insert_open`` must be a
    conditional write raising :class:`OpenRentalConflictError` when the car
    already has an open rental. ``close_open`` is conditional too: it sets the
    return date only if the rental is still open and returns None otherwise.
    """

    def get_by_id(self, rental_id: int) -> RentalRecord | None: ...

    def find_open_for_car(self, car_id: int) -> RentalRecord | None: ...

    def list_for_car(self, car_id: int) -> list[RentalRecord]: ...

    def insert_open(self, request: RentalRequest) -> RentalRecord: ...

    def update(self, rental: RentalRecord, **fields: Any) -> RentalRecord: ...

    def close_open(self, rental: RentalRecord, return_date: datetime) -> RentalRecord | None: ...

    def delete(self, rental: RentalRecord) -> None: ...


def first_failure(*checks: Callable[[], RuleResult]) -> RuleResult | None:
    """Run checks in order and return the first failed result, or None."""
    for check in checks:
        result = check()
        if not result.success:
            return result
    return None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RentalRuleEngine:
    """Applies rental transitions against a repository.

    Transitions touching a car's open slot (add, close, delete) run under the
    car's lock from ``locks``; the repository's conditional insert backs this
    up across processes.
    """

    def __init__(
        self,
        repository: RentalRepository,
        *,
        clock: Callable[[], datetime] = _utcnow,
        locks: VehicleLocks | None = None,
    ):
        self._repository = repository
        self._clock = clock
        self._locks = locks if locks is not None else vehicle_locks

    # Pure queries

    def is_vehicle_currently_open(self, car_id: int) -> bool:
        return self._repository.find_open_for_car(car_id) is not None

    def is_last_rental_closed(self, car_id: int) -> RuleResult[None]:
        last = self._last_rental(car_id)
        if last is None or RENTAL_STATUS.is_closed(return_date=last.return_date):
            return RuleResult.ok()
        return RuleResult.fail(ReasonCode.VEHICLE_BUSY, RENTAL_BUSY)

    def is_add_eligible(self, car_id: int) -> RuleResult[None]:
        failure = first_failure(
            lambda: self._check_car_not_in_use(car_id),
            lambda: self.is_last_rental_closed(car_id),
        )
        return failure or RuleResult.ok()

    # Transitions

    def add_rental(self, request: RentalRequest) -> RuleResult[RentalRecord]:
        with self._locks.hold(request.car_id):
            eligibility = self.is_add_eligible(request.car_id)
            if not eligibility.success:
                logger.info(
                    "Rejected rental for car %s: %s",
                    request.car_id,
                    eligibility.reason_code.value,
                )
                return RuleResult.fail(eligibility.reason_code, eligibility.message)

            try:
                rental = self._repository.insert_open(request)
            except OpenRentalConflictError:
                logger.warning("Lost open-rental race for car %s", request.car_id)
                return RuleResult.fail(ReasonCode.CONFLICT, RENTAL_CONFLICT)

        logger.info("Opened rental %s for car %s", rental.id, rental.car_id)
        return RuleResult.ok(RENTAL_ADDED, rental)

    def close_rental(self, car_id: int) -> RuleResult[RentalRecord]:
        with self._locks.hold(car_id):
            last = self._last_rental(car_id)
            if last is None:
                logger.info("Cannot return car %s: no rental history", car_id)
                return RuleResult.fail(ReasonCode.NOT_FOUND, RENTAL_NO_HISTORY)
            if RENTAL_STATUS.is_closed(return_date=last.return_date):
                logger.info("Cannot return car %s: rental %s already closed", car_id, last.id)
                return RuleResult.fail(ReasonCode.ALREADY_CLOSED, RENTAL_ALREADY_CLOSED)

            rental = self._repository.close_open(last, self._clock())
            if rental is None:
                logger.warning("Lost close race for rental %s of car %s", last.id, car_id)
                return RuleResult.fail(ReasonCode.ALREADY_CLOSED, RENTAL_ALREADY_CLOSED)

        logger.info("Closed rental %s for car %s", rental.id, car_id)
        return RuleResult.ok(RENTAL_CLOSED, rental)

    def delete_rental(self, rental_id: int) -> RuleResult[None]:
        rental = self._repository.get_by_id(rental_id)
        if rental is None:
            return RuleResult.fail(ReasonCode.INVALID_RECORD, RENTAL_RECORD_INVALID)

        with self._locks.hold(rental.car_id):
            # Re-read under the lock; the rental may have changed meanwhile.
            rental = self._repository.get_by_id(rental_id)
            if rental is None:
                return RuleResult.fail(ReasonCode.INVALID_RECORD, RENTAL_RECORD_INVALID)
            if RENTAL_STATUS.is_open(return_date=rental.return_date):
                logger.info("Rejected deletion of open rental %s", rental_id)
                return RuleResult.fail(ReasonCode.VEHICLE_BUSY, RENTAL_BUSY)
            self._repository.delete(rental)

        logger.info("Deleted rental %s", rental_id)
        return RuleResult.ok(RENTAL_DELETED)

    def update_rental(self, rental_id: int, **fields: Any) -> RuleResult[RentalRecord]:
        """Persist passthrough field changes. ``car_id`` and ``return_date`` are not updatable."""
        forbidden = {"car_id", "return_date"} & fields.keys()
        if forbidden:
            raise ValueError(f"Fields cannot be updated directly: {', '.join(sorted(forbidden))}")

        rental = self._repository.get_by_id(rental_id)
        if rental is None:
            return RuleResult.fail(ReasonCode.INVALID_RECORD, RENTAL_RECORD_INVALID)

        try:
            rental = self._repository.update(rental, **fields)
        except NotFoundError:
            # Deleted between the read and the write.
            return RuleResult.fail(ReasonCode.INVALID_RECORD, RENTAL_RECORD_INVALID)
        return RuleResult.ok(RENTAL_UPDATED, rental)

    # Helpers

    def _check_car_not_in_use(self, car_id: int) -> RuleResult[None]:
        if self.is_vehicle_currently_open(car_id):
            return RuleResult.fail(ReasonCode.VEHICLE_BUSY, RENTAL_BUSY)
        return RuleResult.ok()

    def _last_rental(self, car_id: int) -> RentalRecord | None:
        history = self._repository.list_for_car(car_id)
        return history[-1] if history else None
