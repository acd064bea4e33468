import re
from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Upper bound of a 32-bit signed INTEGER column
MAX_STEPS = 2**31 - 1


def parse_step_date(value: str) -> date:
    """Parse a strict ``YYYY-MM-DD`` string into a date."""
    if not DATE_PATTERN.match(value):
        raise ValueError("Date must be in YYYY-MM-DD format")
    return date.fromisoformat(value)


def check_step_count(value) -> int:
    """Whole, non-negative step count that fits the ``steps`` column."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("steps must be an integer")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError("steps must be an integer")
        value = int(value)
    if value < 0:
        raise ValueError("steps must be non-negative")
    if value > MAX_STEPS:
        raise ValueError(f"steps must be at most {MAX_STEPS}")
    return value


class _UserScoped(BaseModel):
    user_id: str = Field(..., min_length=1)

    @field_validator("user_id")
    @classmethod
    def validate_user_id(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("user_id must not be empty")
        return value


class DailyStepsCreate(_UserScoped):
    date: str
    steps: int

    @field_validator("date")
    @classmethod
    def validate_date(cls, value: str) -> str:
        parse_step_date(value)
        return value

    @field_validator("steps", mode="before")
    @classmethod
    def validate_steps(cls, value) -> int:
        return check_step_count(value)


class DailyStepsUpdate(BaseModel):
    steps: int

    @field_validator("steps", mode="before")
    @classmethod
    def validate_steps(cls, value) -> int:
        return check_step_count(value)


class UserStepsQuery(_UserScoped):
    start_date: str | None = None
    end_date: str | None = None

    @field_validator("start_date", "end_date")
    @classmethod
    def validate_bounds(cls, value: str | None) -> str | None:
        if value is None:
            return None
        parse_step_date(value)
        return value


class StepsByDateQuery(_UserScoped):
    date: str

    @field_validator("date")
    @classmethod
    def validate_date(cls, value: str) -> str:
        parse_step_date(value)
        return value


class SummaryQuery(_UserScoped):
    pass


class DailyStepsResponse(BaseModel):
    id: int
    user_id: str
    date: date
    steps: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class StepsSummaryEntry(BaseModel):
    date: date
    steps: int
    milestone: str


class StepsSummaryResponse(BaseModel):
    goal: int
    days_recorded: int
    weekly_total: int
    average_daily: int
    highest_day: int
    goal_days: int
    entries: list[StepsSummaryEntry]
