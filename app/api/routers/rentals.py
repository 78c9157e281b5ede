from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import RENTAL_MANAGER_ROLES, get_db, get_current_user, require_roles
from app.db.models.user import User
from app.schemas.pagination import PaginatedResponse
from app.schemas.rental import (
    Rental,
    RentalCreate,
    RentalDetail,
    RentalUpdate,
    VehicleAvailability,
)
from app.services import rental as rental_service

router = APIRouter(prefix="/rentals", tags=["rentals"])


@router.post("", response_model=Rental, status_code=status.HTTP_201_CREATED)
def create_new_rental(
    rental_data: RentalCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*RENTAL_MANAGER_ROLES)),
):
    """
    Rent a car to a customer. Admin and employee users only.

    Fails with 409 VEHICLE_BUSY while the car has not been returned.
    """
    return rental_service.create_rental(
        db,
        car_id=rental_data.car_id,
        customer_id=rental_data.customer_id,
        rent_date=rental_data.rent_date,
    )


@router.get("", response_model=PaginatedResponse[Rental])
def get_all_rentals(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    page_size: int = Query(100, ge=1, le=1000, description="Number of items per page"),
    car: int | None = Query(None, description="Filter rentals by car ID"),
    customer: int | None = Query(
        None, description="Filter rentals by customer ID (ignored for customers)"
    ),
    open: bool | None = Query(
        None, description="True: only open rentals, False: only returned rentals"
    ),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Get all rentals with pagination and optional filters.
    - Admin and Employee: can see all rentals
    - Customer: only their own rentals
    """
    rentals, total = rental_service.list_rentals(
        db,
        current_user,
        page=page,
        page_size=page_size,
        car_id=car,
        customer_id=customer,
        open=open,
    )
    return PaginatedResponse(items=rentals, total=total, page=page, page_size=page_size)


@router.get("/details", response_model=list[RentalDetail])
def get_rental_details(
    car: int | None = Query(None, description="Filter rentals by car ID"),
    open: bool | None = Query(None, description="Filter by open status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*RENTAL_MANAGER_ROLES)),
):
    """Rentals with car brand/model and customer name. Admin and employee users only."""
    return rental_service.list_rental_details(db, car_id=car, open=open)


@router.get("/vehicles/{car_id}/availability", response_model=VehicleAvailability)
def get_vehicle_availability(
    car_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Tell whether a car can be rented right now."""
    return rental_service.get_availability(db, car_id)


@router.post("/vehicles/{car_id}/return", response_model=Rental)
def return_vehicle(
    car_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*RENTAL_MANAGER_ROLES)),
):
    """
    Return a car: closes its latest rental with the current time.

    - 404 if the car has never been rented
    - 409 ALREADY_CLOSED if the latest rental was already returned
    """
    return rental_service.return_car(db, car_id)


@router.get("/{rental_id}", response_model=Rental)
def get_rental_by_id(
    rental_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Get a rental by ID.
    - Admin and Employee: any rental
    - Customer: only their own rentals
    """
    return rental_service.get_rental(db, rental_id, current_user)


@router.put("/{rental_id}", response_model=Rental)
def update_rental_by_id(
    rental_id: int,
    rental_data: RentalUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*RENTAL_MANAGER_ROLES)),
):
    """
    Update a rental's customer or rent date. Admin and employee users only.

    The return date is only set through the return endpoint.
    """
    update_data = rental_data.model_dump(exclude_unset=True)
    return rental_service.update_rental(db, rental_id, **update_data)


@router.delete("/{rental_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_rental_by_id(
    rental_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*RENTAL_MANAGER_ROLES)),
):
    """
    Delete a rental. Admin and employee users only.

    Only returned rentals can be deleted; an open rental yields 409 VEHICLE_BUSY.
    """
    rental_service.delete_rental(db, rental_id)
