from datetime import date
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from .roles import TIME_SLOTS


class _Request(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True, extra="ignore")


class EditReservationRequest(_Request):
    reservation_date: date = Field(..., alias="date")
    time_slot: str = Field(..., alias="timeSlot")
    # range is a booking rule, reported alongside the other violations
    guests: int

    @field_validator("time_slot")
    @classmethod
    def validate_time_slot(cls, v: str):
        if v not in TIME_SLOTS:
            raise ValueError(f"Time slot must be one of {', '.join(TIME_SLOTS)}.")
        return v

class CreateReservationRequest(EditReservationRequest):
    customer_id: int | None = Field(None, alias="customerId")

class AvailabilityQuery(_Request):
    reservation_date: date = Field(..., alias="date")
    guests: int = Field(2, ge=1)

class CustomerRequest(_Request):
    name: str = Field(..., min_length=1, max_length=120)
    phone: str = Field(..., min_length=1, max_length=32)
    email: EmailStr | None = None

class CustomerUpdateRequest(_Request):
    name: str | None = Field(None, min_length=1, max_length=120)
    phone: str | None = Field(None, min_length=1, max_length=32)

class TableRequest(_Request):
    capacity: int = Field(..., gt=0)

class StaffRequest(_Request):
    name: str = Field(..., min_length=1, max_length=120)
    email: EmailStr

class StaffUpdateRequest(_Request):
    name: str | None = Field(None, min_length=1, max_length=120)
    email: EmailStr | None = None
