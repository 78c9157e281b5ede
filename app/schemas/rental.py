from datetime import datetime

from pydantic import BaseModel, ConfigDict, model_validator


class Rental(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    car_id: int
    customer_id: int
    rent_date: datetime
    return_date: datetime | None = None


class RentalCreate(BaseModel):
    car_id: int
    customer_id: int
    rent_date: datetime | None = None  # Defaults to now


class RentalUpdate(BaseModel):
    """Passthrough fields only: the car and the return date change through dedicated transitions."""

    model_config = ConfigDict(extra="forbid")

    customer_id: int | None = None
    rent_date: datetime | None = None

    @model_validator(mode="after")
    def validate_not_null(self):
        """customer_id and rent_date can be omitted but not cleared."""
        for name in ("customer_id", "rent_date"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class RentalDetail(BaseModel):
    """Rental joined with its car and customer for listings."""

    id: int
    car_id: int
    brand: str
    model: str
    customer_id: int
    customer_name: str
    rent_date: datetime
    return_date: datetime | None = None


class VehicleAvailability(BaseModel):
    car_id: int
    available: bool
    last_rental_closed: bool
