from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Car(BaseModel):
    model_config = ConfigDict(from_attributes=True, protected_namespaces=())

    id: int
    brand: str
    model: str
    model_year: int
    daily_price: Decimal
    description: str | None = None


class CarCreate(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    brand: str = Field(..., min_length=1, max_length=100)
    model: str = Field(..., min_length=1, max_length=100)
    model_year: int = Field(..., ge=1900, description="Model year")
    daily_price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    description: str | None = Field(None, max_length=500)

    @field_validator("model_year")
    @classmethod
    def validate_model_year(cls, v: int) -> int:
        if v > date.today().year + 1:
            raise ValueError("model_year cannot be more than one year in the future")
        return v


class CarUpdate(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    brand: str | None = Field(None, min_length=1, max_length=100)
    model: str | None = Field(None, min_length=1, max_length=100)
    model_year: int | None = Field(None, ge=1900)
    daily_price: Decimal | None = Field(None, gt=0, max_digits=10, decimal_places=2)
    description: str | None = Field(None, max_length=500)

    @field_validator("model_year")
    @classmethod
    def validate_model_year(cls, v: int | None) -> int | None:
        if v is not None and v > date.today().year + 1:
            raise ValueError("model_year cannot be more than one year in the future")
        return v
