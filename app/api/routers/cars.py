from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import RENTAL_MANAGER_ROLES, get_db, get_current_user, require_roles
from app.db.models.user import User
import app.repositories.car as car_repo
from app.services.car import delete_car, get_car, update_car
from app.schemas.car import Car, CarCreate, CarUpdate

router = APIRouter(prefix="/cars", tags=["cars"])


@router.post("", response_model=Car, status_code=status.HTTP_201_CREATED)
def create_new_car(
    car_data: CarCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*RENTAL_MANAGER_ROLES)),
):
    """
    Create a new car. Admin and employee users only.
    """
    car = car_repo.create_car(
        db,
        brand=car_data.brand,
        model=car_data.model,
        model_year=car_data.model_year,
        daily_price=car_data.daily_price,
        description=car_data.description,
    )
    return Car.model_validate(car)


@router.get("", response_model=list[Car])
def get_all_cars(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Get all cars. Any authenticated user."""
    return [Car.model_validate(car) for car in car_repo.get_all_cars(db)]


@router.get("/{car_id}", response_model=Car)
def get_car_by_id(
    car_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Get a car by ID. Any authenticated user."""
    return Car.model_validate(get_car(db, car_id))


@router.put("/{car_id}", response_model=Car)
def update_car_by_id(
    car_id: int,
    car_data: CarUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*RENTAL_MANAGER_ROLES)),
):
    """
    Update a car. Admin and employee users only.

    Fields not included in the request are not updated.
    """
    car = update_car(db, car_id, **car_data.model_dump(exclude_unset=True))
    return Car.model_validate(car)


@router.delete("/{car_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_car_by_id(
    car_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles("admin")),
):
    """
    Delete a car by ID. Only admin users can delete cars.

    A car can only be deleted if it has never been rented.
    """
    delete_car(db, car_id)
