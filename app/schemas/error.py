"""Error body returned for every domain exception."""

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """4xx body: a message for people and a stable code for clients.

    Rental transitions use VEHICLE_BUSY, ALREADY_CLOSED, INVALID_RECORD and
    CONFLICT; the remaining codes are shared with cars and users.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "detail": "Car is currently rented and has not been returned",
                "code": "VEHICLE_BUSY",
            }
        }
    )

    detail: str = Field(..., description="Human-readable error message")
    code: str = Field(..., description="Machine-readable error code")
