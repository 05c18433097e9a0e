from datetime import date

from pydantic import AliasChoices, Field, field_validator

from trainhub.models.availability import BLOCK_TYPES, RECURRENCES
from trainhub.schemas.common import CamelModel


def _specific_date_field():
    return Field(
        default=None,
        validation_alias=AliasChoices('specificDate', 'date', 'specific_date'),
        serialization_alias='specificDate',
    )


def _normalize_choice(value: str | None, choices: tuple[str, ...], field_name: str) -> str | None:
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized == 'one-off':
        normalized = 'once'
    if normalized not in choices:
        raise ValueError(f'{field_name} must be one of: ' + ', '.join(choices))
    return normalized


class AvailabilityBlockFields(CamelModel):
    recurrence: str | None = None
    day_of_week: int | None = Field(default=None, ge=0, le=6)
    start_hour: int | None = Field(default=None, ge=0, le=23)
    start_minute: int | None = Field(default=None, ge=0, le=59)
    end_hour: int | None = Field(default=None, ge=0, le=24)
    end_minute: int | None = Field(default=None, ge=0, le=59)
    specific_date: date | None = _specific_date_field()
    end_date: date | None = None
    reason: str | None = None
    notes: str | None = None

    @field_validator('recurrence')
    @classmethod
    def validate_recurrence(cls, value: str | None) -> str | None:
        return _normalize_choice(value, RECURRENCES, 'recurrence')


class CreateAvailabilityRequest(AvailabilityBlockFields):
    block_type: str
    trainer_id: int | None = None

    @field_validator('block_type')
    @classmethod
    def validate_block_type(cls, value: str) -> str:
        return _normalize_choice(value, BLOCK_TYPES, 'blockType')


class UpdateAvailabilityRequest(AvailabilityBlockFields):
    id: int
    block_type: str | None = None

    @field_validator('block_type')
    @classmethod
    def validate_block_type(cls, value: str | None) -> str | None:
        return _normalize_choice(value, BLOCK_TYPES, 'blockType')


class ReplaceScheduleRequest(CamelModel):
    trainer_id: int | None = None
    blocks: list[CreateAvailabilityRequest]


class AvailabilityBlockResponse(CamelModel):
    id: int
    trainer_id: int = Field(validation_alias=AliasChoices('provider_id', 'trainerId', 'trainer_id'))
    studio_id: int | None = None
    block_type: str
    recurrence: str
    day_of_week: int | None = None
    start_hour: int | None = None
    start_minute: int | None = None
    end_hour: int | None = None
    end_minute: int | None = None
    specific_date: date | None = _specific_date_field()
    end_date: date | None = None
    reason: str | None = None
    notes: str | None = None


class AvailabilityEnvelope(CamelModel):
    availability: AvailabilityBlockResponse


class AvailabilityListEnvelope(CamelModel):
    availability: list[AvailabilityBlockResponse]
