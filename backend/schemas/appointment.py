from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from backend.core import config
from backend.models.enums import AppointmentStatus, Mode


def _normalize_reason(value: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError('Reason is required.')
    if len(normalized) > config.MAX_REASON_LENGTH:
        raise ValueError(f'Reason must be {config.MAX_REASON_LENGTH} characters or fewer.')
    return normalized


class AppointmentRequest(BaseModel):
    faculty_id: int = Field(alias='facultyId')
    mode: Mode
    reason: str

    class Config:
        populate_by_name = True

    @field_validator('mode', mode='before')
    @classmethod
    def normalize_mode(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, value: str) -> str:
        return _normalize_reason(value)


class ReasonUpdateRequest(BaseModel):
    reason: str | None = None

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _normalize_reason(value)


class StatusUpdateRequest(BaseModel):
    status: AppointmentStatus

    @field_validator('status', mode='before')
    @classmethod
    def normalize_status(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


class AppointmentResponse(BaseModel):
    id: int
    student_id: int
    faculty_id: int
    mode: Mode
    status: AppointmentStatus
    reason: str
    created_at: datetime

    class Config:
        from_attributes = True
