"""Domain Value Objects"""
import re
from datetime import datetime, timedelta
from typing import List

from pydantic import BaseModel, validator

from domain.enums import AvailabilityStatus
from domain.exceptions import InvalidLocationFormatError, ValidationError

MIN_DURATION_MINUTES = 30
MAX_DURATION_MINUTES = 120
SLOT_MINUTES = (0, 30)

LOCATION_PATTERN = re.compile(r"[A-Z]{2,10}-\d{2}-\d{2,4}")


def _as_local(value: datetime) -> datetime:
    """Drop timezone info, converting aware timestamps to local wall time"""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def _require_aligned(field: str, value: datetime) -> datetime:
    if value.second != 0 or value.microsecond != 0:
        raise ValidationError(f"{field} must have zero seconds and microseconds")
    if value.minute not in SLOT_MINUTES:
        raise ValidationError(f"{field} must align to 30-minute slots")
    return value


class TimeRange(BaseModel):
    """Value Object for a bookable time window.

    Windows are half-open: a range ending at 11:00 does not overlap one
    starting at 11:00.
    """
    start_time: datetime
    end_time: datetime

    @validator('start_time')
    def start_time_aligned(cls, v):
        return _require_aligned("start_time", _as_local(v))

    @validator('end_time')
    def end_time_within_bounds(cls, v, values):
        v = _as_local(v)
        start_time = values.get('start_time')
        if start_time is None:
            raise ValidationError("start_time and end_time are required")
        if v <= start_time:
            raise ValidationError("end_time must be after start_time")

        minutes = (v - start_time) / timedelta(minutes=1)
        if minutes < MIN_DURATION_MINUTES:
            raise ValidationError(f"Booking duration must be at least {MIN_DURATION_MINUTES} minutes")
        if minutes > MAX_DURATION_MINUTES:
            raise ValidationError(f"Booking duration must be at most {MAX_DURATION_MINUTES} minutes")

        return _require_aligned("end_time", v)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check whether two ranges intersect"""
        return self.start_time < other.end_time and other.start_time < self.end_time

    def duration_minutes(self) -> int:
        """Length of the range in minutes"""
        return int((self.end_time - self.start_time) / timedelta(minutes=1))

    def has_started(self, now: datetime) -> bool:
        return self.start_time <= now

    def has_ended(self, now: datetime) -> bool:
        return self.end_time <= now

    class Config:
        frozen = True


class RoomLocation(BaseModel):
    """Value Object for a room location code such as LIB-03-12"""
    value: str

    @validator('value')
    def matches_location_pattern(cls, v):
        if not v or not v.strip():
            raise ValidationError("Room location is required")
        if not LOCATION_PATTERN.fullmatch(v):
            raise InvalidLocationFormatError(v)
        return v

    def __str__(self) -> str:
        return self.value

    class Config:
        frozen = True


class RoomAvailability(BaseModel):
    """Availability of one room for one requested window"""
    room_id: int
    start_time: datetime
    end_time: datetime
    status: AvailabilityStatus

    class Config:
        frozen = True


class AvailabilitySlot(BaseModel):
    start_time: datetime
    end_time: datetime
    available: bool

    class Config:
        frozen = True


class DailyRoomAvailability(BaseModel):
    """Slot-by-slot availability of one room across a business day"""
    room_id: int
    room_location: str
    name: str
    slots: List[AvailabilitySlot]

    class Config:
        frozen = True
