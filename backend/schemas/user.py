from pydantic import BaseModel, field_validator

from backend.models.enums import Mode, Role


class CurrentUserResponse(BaseModel):
    id: int
    email: str | None = None
    role: Role
    mode: Mode

    class Config:
        from_attributes = True


class FacultyResponse(BaseModel):
    id: int
    name: str
    department: str | None = None
    mode: Mode


class ModeUpdateRequest(BaseModel):
    mode: Mode

    @field_validator('mode', mode='before')
    @classmethod
    def normalize_mode(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value
