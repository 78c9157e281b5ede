from typing import Any

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.db.models.car import Car as CarModel
from app.db.models.rental import Rental as RentalModel
from app.db.models.user import User as UserModel
from app.domain.rental_rules import RentalRequest
from app.domain.rental_status import RENTAL_STATUS
from app.errors import NotFoundError, OpenRentalConflictError

# Fields a caller may change through update_rental.
# return_date is only set once, by close_open_rental.
UPDATABLE_FIELDS = ("customer_id", "rent_date")


def get_rental_by_id(db: Session, rental_id: int) -> RentalModel | None:
    """Get a rental by ID."""
    return db.query(RentalModel).filter(RentalModel.id == rental_id).first()


def get_rentals_by_car_id(db: Session, car_id: int) -> list[RentalModel]:
    """Get all rentals of a car, oldest first (ascending creation sequence)."""
    return (
        db.query(RentalModel)
        .filter(RentalModel.car_id == car_id)
        .order_by(RentalModel.id.asc())
        .all()
    )


def get_open_rental_by_car_id(db: Session, car_id: int) -> RentalModel | None:
    """Get the open rental of a car, if any."""
    return (
        db.query(RentalModel)
        .filter(
            RentalModel.car_id == car_id,
            RENTAL_STATUS.sqlalchemy_open_predicate(return_col=RentalModel.return_date),
        )
        .first()
    )


def create_open_rental(
    db: Session,
    car_id: int,
    customer_id: int,
    rent_date,
) -> RentalModel:
    """
    Insert a rental without a return date.

    The partial unique index uq_rentals_open_car makes this a conditional
    write: if the car already has an open rental the insert fails and
    OpenRentalConflictError is raised. Other integrity errors propagate.
    """
    db_rental = RentalModel(
        car_id=car_id,
        customer_id=customer_id,
        rent_date=rent_date,
        return_date=None,
    )
    db.add(db_rental)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        if get_open_rental_by_car_id(db, car_id) is not None:
            raise OpenRentalConflictError(car_id)
        raise
    db.refresh(db_rental)
    return db_rental


def update_rental(db: Session, rental_id: int, **kwargs) -> RentalModel:
    """
    Update a rental. Only updates fields that are explicitly provided.

    Pure data access - the rule engine decides whether the change is allowed.
    """
    rental = get_rental_by_id(db, rental_id)
    if not rental:
        raise NotFoundError("Rental not found")

    for name in UPDATABLE_FIELDS:
        if name in kwargs:
            setattr(rental, name, kwargs[name])

    db.commit()
    db.refresh(rental)
    return rental


def close_open_rental(db: Session, rental_id: int, return_date) -> RentalModel | None:
    """
    Set the return date of a rental that is still open.

    The UPDATE only matches while return_date IS NULL, so of two concurrent
    closes only one changes the row. Returns None when nothing was updated
    (the rental was already closed or no longer exists).
    """
    result = db.execute(
        update(RentalModel)
        .where(
            RentalModel.id == rental_id,
            RENTAL_STATUS.sqlalchemy_open_predicate(return_col=RentalModel.return_date),
        )
        .values(return_date=return_date)
        .execution_options(synchronize_session=False)
    )
    updated = result.rowcount
    db.commit()
    if updated == 0:
        return None

    rental = get_rental_by_id(db, rental_id)
    db.refresh(rental)
    return rental


def delete_rental(db: Session, rental_id: int) -> None:
    """Delete a rental from the database. Pure data access - no business logic."""
    rental = get_rental_by_id(db, rental_id)
    if not rental:
        raise NotFoundError("Rental not found")

    db.delete(rental)
    db.commit()


def get_all_rentals_paginated(
    db: Session,
    page: int = 1,
    page_size: int = 100,
    car_id: int | None = None,
    customer_id: int | None = None,
    open: bool | None = None,
) -> tuple[list[RentalModel], int]:
    """
    Get all rentals with pagination and optional filters.

    Args:
        page: Page number (1-indexed)
        page_size: Number of items per page
        car_id: Optional filter by car ID
        customer_id: Optional filter by customer ID
        open: None for all rentals, True for open only, False for closed only.
              The "open" definition lives in RentalStatusPolicy.

    Returns:
        Tuple of (list of rentals, total count)
    """
    query = db.query(RentalModel)

    if car_id is not None:
        query = query.filter(RentalModel.car_id == car_id)

    if customer_id is not None:
        query = query.filter(RentalModel.customer_id == customer_id)

    if open is True:
        query = query.filter(
            RENTAL_STATUS.sqlalchemy_open_predicate(return_col=RentalModel.return_date)
        )
    elif open is False:
        query = query.filter(
            RENTAL_STATUS.sqlalchemy_closed_predicate(return_col=RentalModel.return_date)
        )

    total = query.count()
    skip = (page - 1) * page_size
    rentals = query.order_by(RentalModel.id.desc()).offset(skip).limit(page_size).all()
    return rentals, total


def get_rental_details(
    db: Session,
    car_id: int | None = None,
    open: bool | None = None,
) -> list[tuple[RentalModel, CarModel, UserModel]]:
    """Get rentals joined with their car and customer, newest first."""
    query = (
        db.query(RentalModel, CarModel, UserModel)
        .join(CarModel, RentalModel.car_id == CarModel.id)
        .join(UserModel, RentalModel.customer_id == UserModel.id)
    )
    if car_id is not None:
        query = query.filter(RentalModel.car_id == car_id)
    if open is True:
        query = query.filter(
            RENTAL_STATUS.sqlalchemy_open_predicate(return_col=RentalModel.return_date)
        )
    elif open is False:
        query = query.filter(
            RENTAL_STATUS.sqlalchemy_closed_predicate(return_col=RentalModel.return_date)
        )
    return query.order_by(RentalModel.id.desc()).all()


class SqlAlchemyRentalRepository:
    """Rental repository for the rule engine, bound to one database session."""

    def __init__(self, db: Session):
        self._db = db

    def get_by_id(self, rental_id: int) -> RentalModel | None:
        return get_rental_by_id(self._db, rental_id)

    def find_open_for_car(self, car_id: int) -> RentalModel | None:
        return get_open_rental_by_car_id(self._db, car_id)

    def list_for_car(self, car_id: int) -> list[RentalModel]:
        return get_rentals_by_car_id(self._db, car_id)

    def insert_open(self, request: RentalRequest) -> RentalModel:
        return create_open_rental(
            self._db,
            car_id=request.car_id,
            customer_id=request.customer_id,
            rent_date=request.rent_date,
        )

    def update(self, rental: RentalModel, **fields: Any) -> RentalModel:
        return update_rental(self._db, rental.id, **fields)

    def close_open(self, rental: RentalModel, return_date) -> RentalModel | None:
        return close_open_rental(self._db, rental.id, return_date)

    def delete(self, rental: RentalModel) -> None:
        delete_rental(self._db, rental.id)
