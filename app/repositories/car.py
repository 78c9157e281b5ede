from decimal import Decimal

from sqlalchemy.orm import Session

from app.db.models.car import Car as CarModel
from app.errors import NotFoundError


def get_car_by_id(db: Session, car_id: int) -> CarModel | None:
    """Get a car by ID."""
    return db.query(CarModel).filter(CarModel.id == car_id).first()


def get_all_cars(db: Session) -> list[CarModel]:
    """Get all cars ordered by brand and model."""
    return db.query(CarModel).order_by(CarModel.brand, CarModel.model, CarModel.id).all()


def create_car(
    db: Session,
    brand: str,
    model: str,
    model_year: int,
    daily_price: Decimal,
    description: str | None = None,
) -> CarModel:
    """Create a new car in the database. Pure data access - no business logic."""
    db_car = CarModel(
        brand=brand,
        model=model,
        model_year=model_year,
        daily_price=daily_price,
        description=description,
    )
    db.add(db_car)
    db.commit()
    db.refresh(db_car)
    return db_car


def update_car(db: Session, car_id: int, **kwargs) -> CarModel:
    """
    Update a car. Only updates fields that are explicitly provided.

    To clear description (set to None), explicitly pass it with None value.
    """
    car = get_car_by_id(db, car_id)
    if not car:
        raise NotFoundError("Car not found")

    for name in ("brand", "model", "model_year", "daily_price", "description"):
        if name in kwargs:
            setattr(car, name, kwargs[name])

    db.commit()
    db.refresh(car)
    return car


def delete_car(db: Session, car_id: int) -> None:
    """Delete a car from the database. Pure data access - no business logic."""
    car = get_car_by_id(db, car_id)
    if not car:
        raise NotFoundError("Car not found")

    db.delete(car)
    db.commit()
