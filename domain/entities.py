"""Domain Entities - Aggregates"""
from datetime import date, datetime, timedelta
from typing import Optional

from pydantic import BaseModel, Field, validator

from domain.enums import ActivityStatus, BookingStatus, OperationalStatus, RoomType
from domain.exceptions import (
    AlreadyInStateError,
    IllegalTransitionError,
    RoomActiveError,
    RoomDisabledError,
    StateConflictError,
    ValidationError,
)
from domain.value_objects import RoomLocation, TimeRange

ANONYMOUS_OWNER = "anonymous"


class Room(BaseModel):
    """Room Aggregate Root Entity"""

    # Identity (assigned by the repository)
    room_id: Optional[int] = None

    # Profile
    name: str
    location: RoomLocation = Field(frozen=True)
    room_type: RoomType

    # Status
    operational_status: OperationalStatus = OperationalStatus.ENABLED
    activity_status: ActivityStatus = ActivityStatus.INACTIVE

    # Metadata
    created_at: datetime = Field(default_factory=datetime.now)
    modified_at: datetime = Field(default_factory=datetime.now)
    version: int = 0

    class Config:
        from_attributes = True

    @validator('name')
    def name_not_blank(cls, v):
        if not v or not v.strip():
            raise ValidationError("Room name is required")
        return v.strip()

    # ==================== FACTORY METHOD ====================
    @staticmethod
    def create(name: str, location: str, room_type: RoomType) -> "Room":
        """Create a new, enabled and unoccupied room"""
        return Room(
            name=name,
            location=RoomLocation(value=location),
            room_type=room_type,
        )

    # ==================== STATUS TOGGLES ====================
    def enable(self) -> "Room":
        if self.is_enabled:
            raise AlreadyInStateError("Room is already enabled")
        self.operational_status = OperationalStatus.ENABLED
        self._touch()
        return self

    def disable(self) -> "Room":
        if not self.is_enabled:
            raise AlreadyInStateError("Room is already disabled")
        self.operational_status = OperationalStatus.DISABLED
        self._touch()
        return self

    def activate(self) -> "Room":
        """Mark the room as occupied by a checked-in booking"""
        if self.is_active:
            raise AlreadyInStateError("Room is already active")
        self.activity_status = ActivityStatus.ACTIVE
        self._touch()
        return self

    def deactivate(self) -> "Room":
        if not self.is_active:
            raise AlreadyInStateError("Room is already inactive")
        self.activity_status = ActivityStatus.INACTIVE
        self._touch()
        return self

    def ensure_removable(self) -> None:
        """Rooms must be disabled and unoccupied before deletion"""
        if self.is_enabled:
            raise RoomActiveError("Cannot remove an enabled room. Please disable it first.")
        if self.is_active:
            raise RoomActiveError("Cannot remove a room with a checked-in booking")

    # ==================== QUERY METHODS ====================
    @property
    def is_enabled(self) -> bool:
        return self.operational_status == OperationalStatus.ENABLED

    @property
    def is_active(self) -> bool:
        return self.activity_status == ActivityStatus.ACTIVE

    def _touch(self) -> None:
        self.modified_at = datetime.now()


class Booking(BaseModel):
    """Booking Aggregate Root Entity

    Status changes go through the transition methods below; each one checks
    the current status against the BookingStatus transition table and raises
    IllegalTransitionError instead of silently doing nothing.
    """

    # Identity (assigned by the repository)
    booking_id: Optional[int] = None

    # References to other aggregates
    room_id: int
    booked_by: str = ANONYMOUS_OWNER

    # Value Objects
    time_range: TimeRange = Field(frozen=True)
    booking_date: date

    # Status
    status: BookingStatus = BookingStatus.CONFIRMED

    # Metadata
    created_at: datetime = Field(default_factory=datetime.now)
    modified_at: datetime = Field(default_factory=datetime.now)
    version: int = 0

    class Config:
        from_attributes = True

    # ==================== FACTORY METHOD ====================
    @staticmethod
    def create(
        room: Room,
        time_range: TimeRange,
        now: datetime,
        booked_by: Optional[str] = None
    ) -> "Booking":
        """Create a confirmed booking for an enabled room.

        Overlap checking needs the booking repository and is done by the
        caller while it holds the room lock.
        """
        if room.room_id is None:
            raise ValidationError("room_id is required")
        if not room.is_enabled:
            raise RoomDisabledError("Cannot create booking for a disabled room")
        if time_range.start_time < now:
            raise ValidationError("start_time must not be in the past")

        owner = booked_by.strip() if booked_by else ""
        return Booking(
            room_id=room.room_id,
            booked_by=owner or ANONYMOUS_OWNER,
            time_range=time_range,
            booking_date=now.date(),
            status=BookingStatus.CONFIRMED,
            created_at=now,
            modified_at=now,
        )

    # ==================== STATE TRANSITION METHODS ====================
    def require_check_in(self) -> None:
        """Start time reached: the booker now has to check in"""
        self._transition("require check-in for", BookingStatus.CHECK_IN_REQUIRED)

    def check_in(self) -> None:
        self._transition("check in", BookingStatus.CHECKED_IN)

    def mark_no_show(self) -> None:
        self._transition("mark no-show for", BookingStatus.NO_SHOW)

    def complete(self) -> None:
        self._transition("complete", BookingStatus.COMPLETED)

    def cancel(self, now: datetime) -> None:
        if not self.status.can_transition_to(BookingStatus.CANCELLED):
            raise IllegalTransitionError("cancel", self.status)
        if self.time_range.has_ended(now):
            raise StateConflictError("Cannot cancel after end time")
        self._apply(BookingStatus.CANCELLED)

    # ==================== QUERY METHODS ====================
    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def is_blocking(self) -> bool:
        return self.status.is_blocking

    def is_owned_by(self, username: str) -> bool:
        return self.booked_by == username

    def no_show_due(self, now: datetime, grace_period: timedelta) -> bool:
        """Grace period after start has fully elapsed without a check-in"""
        return now >= self.time_range.start_time + grace_period

    # ==================== PRIVATE METHODS ====================
    def _transition(self, action: str, target: BookingStatus) -> None:
        if not self.status.can_transition_to(target):
            raise IllegalTransitionError(action, self.status)
        self._apply(target)

    def _apply(self, target: BookingStatus) -> None:
        self.status = target
        self.modified_at = datetime.now()
