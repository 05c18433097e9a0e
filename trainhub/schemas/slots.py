from datetime import date, datetime

from pydantic import AliasChoices, Field

from trainhub.schemas.bookings import ExistingBookingResponse
from trainhub.schemas.common import CamelModel


class SlotResponse(CamelModel):
    provider_id: int
    start_time: datetime
    end_time: datetime
    available: bool


class ClientAvailabilitySlot(CamelModel):
    id: int
    trainer_id: int = Field(validation_alias=AliasChoices('provider_id', 'trainerId', 'trainer_id'))
    trainer_name: str
    day_of_week: int | None = None
    start_hour: int | None = None
    start_minute: int | None = None
    end_hour: int | None = None
    end_minute: int | None = None
    recurrence: str
    specific_date: date | None = None


class ClientStudioAvailabilityResponse(CamelModel):
    availability: list[ClientAvailabilitySlot]
    existing_bookings: list[ExistingBookingResponse]
