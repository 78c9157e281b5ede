from sqlalchemy.orm import Session

import app.repositories.car as car_repo
import app.repositories.rental as rental_repo
from app.db.models.car import Car as CarModel
from app.errors import DomainValidationError, NotFoundError


def get_car(db: Session, car_id: int) -> CarModel:
    """Get a car by ID or raise NotFoundError."""
    car = car_repo.get_car_by_id(db, car_id)
    if not car:
        raise NotFoundError("Car not found")
    return car


def update_car(db: Session, car_id: int, **update_fields) -> CarModel:
    """
    Update a car. Only fields explicitly provided in update_fields are updated.

    Raises:
        NotFoundError: If car doesn't exist
        DomainValidationError: If a required field is explicitly cleared
    """
    get_car(db, car_id)

    for name in ("brand", "model", "model_year", "daily_price"):
        if name in update_fields and update_fields[name] is None:
            raise DomainValidationError(f"{name} cannot be null")

    return car_repo.update_car(db, car_id, **update_fields)


def delete_car(db: Session, car_id: int) -> None:
    """
    Delete a car with business logic validation.

    - Validates car exists
    - Validates car has no rentals (rental history must be kept)

    Raises:
        NotFoundError: If car doesn't exist
        DomainValidationError: If car has rentals
    """
    get_car(db, car_id)

    rentals = rental_repo.get_rentals_by_car_id(db, car_id)
    if rentals:
        raise DomainValidationError("Cannot delete car: car has associated rentals")

    car_repo.delete_car(db, car_id)
