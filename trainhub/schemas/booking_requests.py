from datetime import datetime
from typing import Literal

from pydantic import AliasChoices, Field, field_validator

from trainhub.schemas.bookings import BookingResponse
from trainhub.schemas.common import CamelModel


class CreateBookingRequestBody(CamelModel):
    client_id: int | None = None
    trainer_id: int | None = None
    service_id: int | None = None
    preferred_times: list[datetime] | None = None
    notes: str | None = None
    expires_at: datetime | None = None

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        return normalized or None


class UpdateBookingRequestBody(CamelModel):
    id: int
    status: Literal['accepted', 'declined']
    accepted_time: datetime | None = None


class BookingRequestResponse(CamelModel):
    id: int
    trainer_id: int | None = Field(
        default=None,
        validation_alias=AliasChoices('provider_id', 'trainerId', 'trainer_id'),
    )
    studio_id: int | None = None
    client_id: int
    service_id: int | None = None
    preferred_times: list[datetime]
    notes: str | None = None
    status: str
    expires_at: datetime
    accepted_time: datetime | None = None
    booking_id: int | None = None
    created_at: datetime | None = None


class BookingRequestEnvelope(CamelModel):
    request: BookingRequestResponse
    booking: BookingResponse | None = None


class BookingRequestListEnvelope(CamelModel):
    requests: list[BookingRequestResponse]
