"""Domain Events raised by Booking status changes and room registry changes"""
from datetime import datetime
from typing import Dict, Type

from pydantic import BaseModel, Field

from domain.entities import Booking
from domain.enums import BookingStatus, OperationalStatus, RoomType


class DomainEvent(BaseModel):
    occurred_at: datetime = Field(default_factory=datetime.now)

    class Config:
        frozen = True


class BookingEvent(DomainEvent):
    booking_id: int
    room_id: int

    @classmethod
    def of(cls, booking: Booking, occurred_at: datetime) -> "BookingEvent":
        return cls(booking_id=booking.booking_id, room_id=booking.room_id, occurred_at=occurred_at)


class BookingCheckedIn(BookingEvent):
    """Booking reached CHECKED_IN"""


class BookingCancelled(BookingEvent):
    pass


class BookingNoShow(BookingEvent):
    pass


class BookingCompleted(BookingEvent):
    pass


_EVENT_FOR_STATUS: Dict[BookingStatus, Type[BookingEvent]] = {
    BookingStatus.CHECKED_IN: BookingCheckedIn,
    BookingStatus.CANCELLED: BookingCancelled,
    BookingStatus.NO_SHOW: BookingNoShow,
    BookingStatus.COMPLETED: BookingCompleted,
}


def event_for(booking: Booking, occurred_at: datetime):
    """Event announcing the booking's current status, or None if nobody listens for it"""
    event_type = _EVENT_FOR_STATUS.get(booking.status)
    if event_type is None:
        return None
    return event_type.of(booking, occurred_at)


# ==================== ROOM REGISTRY EVENTS ====================
class RoomEvent(DomainEvent):
    room_id: int


class RoomAdded(RoomEvent):
    name: str
    room_location: str
    room_type: RoomType
    operational_status: OperationalStatus


class RoomRemoved(RoomEvent):
    pass


class RoomOperationalStatusChanged(RoomEvent):
    """Room was enabled or disabled by staff"""
    operational_status: OperationalStatus
