from datetime import datetime

from pydantic import AliasChoices, Field, field_validator

from trainhub.models.booking import BOOKING_STATUSES, MAX_BOOKING_MINUTES
from trainhub.schemas.common import CamelModel


def _validate_status(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized not in BOOKING_STATUSES:
        raise ValueError('status must be one of: ' + ', '.join(BOOKING_STATUSES))
    return normalized


class CreateBookingRequest(CamelModel):
    trainer_id: int | None = None
    client_id: int | None = None
    service_id: int | None = None
    scheduled_at: datetime
    duration_minutes: int = Field(
        le=MAX_BOOKING_MINUTES,
        validation_alias=AliasChoices('duration', 'durationMinutes', 'duration_minutes'),
    )
    status: str = 'confirmed'
    hold_expiry: datetime | None = None
    notes: str | None = None

    @field_validator('status')
    @classmethod
    def validate_status(cls, value: str) -> str:
        return _validate_status(value)


class UpdateBookingRequest(CamelModel):
    status: str | None = None
    scheduled_at: datetime | None = None
    duration_minutes: int | None = Field(
        default=None,
        le=MAX_BOOKING_MINUTES,
        validation_alias=AliasChoices('duration', 'durationMinutes', 'duration_minutes'),
    )
    notes: str | None = None

    @field_validator('status')
    @classmethod
    def validate_status(cls, value: str | None) -> str | None:
        return _validate_status(value)


class BookingResponse(CamelModel):
    id: int
    trainer_id: int = Field(validation_alias=AliasChoices('provider_id', 'trainerId', 'trainer_id'))
    studio_id: int | None = None
    client_id: int | None = None
    service_id: int | None = None
    booking_request_id: int | None = None
    scheduled_at: datetime
    duration: int = Field(validation_alias=AliasChoices('duration_minutes', 'duration'))
    status: str
    hold_expiry: datetime | None = None
    notes: str | None = None


class ExistingBookingResponse(CamelModel):
    id: int
    trainer_id: int = Field(validation_alias=AliasChoices('provider_id', 'trainerId', 'trainer_id'))
    scheduled_at: datetime
    duration: int = Field(validation_alias=AliasChoices('duration_minutes', 'duration'))
    status: str


class BookingEnvelope(CamelModel):
    booking: BookingResponse


class BookingListEnvelope(CamelModel):
    bookings: list[BookingResponse]
