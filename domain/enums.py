"""Domain Enums"""
from enum import Enum


class BookingStatus(str, Enum):
    CONFIRMED = "CONFIRMED"
    CHECK_IN_REQUIRED = "CHECK_IN_REQUIRED"
    CHECKED_IN = "CHECKED_IN"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"

    @property
    def is_terminal(self) -> bool:
        """Terminal statuses accept no further transitions"""
        return not _ALLOWED_TRANSITIONS[self]

    @property
    def is_blocking(self) -> bool:
        """Blocking statuses count towards room conflicts"""
        return self in BLOCKING_STATUSES

    def can_transition_to(self, target: "BookingStatus") -> bool:
        return target in _ALLOWED_TRANSITIONS[self]


_ALLOWED_TRANSITIONS = {
    BookingStatus.CONFIRMED: {BookingStatus.CHECK_IN_REQUIRED, BookingStatus.CANCELLED},
    BookingStatus.CHECK_IN_REQUIRED: {
        BookingStatus.CHECKED_IN,
        BookingStatus.NO_SHOW,
        BookingStatus.CANCELLED,
    },
    BookingStatus.CHECKED_IN: {BookingStatus.COMPLETED, BookingStatus.CANCELLED},
    BookingStatus.COMPLETED: set(),
    BookingStatus.CANCELLED: set(),
    BookingStatus.NO_SHOW: set(),
}

BLOCKING_STATUSES = frozenset({
    BookingStatus.CONFIRMED,
    BookingStatus.CHECK_IN_REQUIRED,
    BookingStatus.CHECKED_IN,
})


class RoomType(str, Enum):
    STUDY_ROOM = "STUDY_ROOM"
    MEETING_ROOM = "MEETING_ROOM"
    CONFERENCE_ROOM = "CONFERENCE_ROOM"


class OperationalStatus(str, Enum):
    ENABLED = "ENABLED"
    DISABLED = "DISABLED"


class ActivityStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class AvailabilityStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    UNAVAILABLE = "UNAVAILABLE"
