"""
schemas.py - Request payloads accepted by the JSON blueprints

Each operation has its own model; payloads are validated here before any
service is called.
"""
from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from services.errors import ValidationError

PeriodName = Literal['WEEK', 'MONTH', 'YEAR']


# ---- Auth ----
class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class ChangePasswordRequest(BaseModel):
    new_password: str
    confirm_password: str


# ---- Scores ----
class ScoreEntryCreate(BaseModel):
    """Payload for recording a violation/merit against a class."""

    week_id: str = Field(min_length=1)
    class_id: str = Field(min_length=1)
    violation_id: str = Field(min_length=1)
    student_count: int = Field(default=1, ge=1, description="Number of students involved.")
    note: str = ''


class OverrideConfirm(BaseModel):
    reason: str = ''


class LockChange(BaseModel):
    target_type: PeriodName
    target_id: str = Field(min_length=1)
    status: Literal['OPEN', 'LOCKED']


# ---- Reports ----
class PeriodQuery(BaseModel):
    """Window for rankings and statistics. target_id defaults to the active year for YEAR."""

    period: PeriodName = 'WEEK'
    target_id: Optional[str] = None


# ---- Management ----
class YearPayload(BaseModel):
    name: str = Field(min_length=1)


class ActiveYearPayload(BaseModel):
    school_year_id: str = Field(min_length=1)


class MonthPayload(BaseModel):
    name: str = Field(min_length=1)
    month_number: int = Field(ge=1, le=12)
    school_year_id: Optional[str] = None


class WeekPayload(BaseModel):
    name: str = Field(min_length=1)
    month_id: str = Field(min_length=1)
    week_number: int = Field(ge=1)


class ClassPayload(BaseModel):
    name: str = Field(min_length=1)
    grade: int = Field(ge=1)


class ViolationPayload(BaseModel):
    name: str = Field(min_length=1)
    points: float = Field(allow_inf_nan=False)


class UserPayload(BaseModel):
    name: str = Field(min_length=1)
    role: Literal['ADMIN', 'DUTY_TEACHER', 'TEACHER']
    username: str = Field(min_length=1)
    password: Optional[str] = None
    phone: str = ''
    email: str = ''


def parse(schema, data):
    """
    Validate a payload dict against a schema.

    Raises:
        ValidationError: with the first problem pydantic reported
    """
    try:
        return schema.model_validate(data or {})
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = '.'.join(str(part) for part in first.get('loc', ())) or 'payload'
        raise ValidationError(f"Invalid {field}: {first.get('msg', 'invalid value')}") from e
