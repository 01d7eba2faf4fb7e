"""Keeps a room's activity status in step with its bookings"""
import logging

from application.events import EventBus
from domain.enums import BookingStatus
from domain.events import BookingCancelled, BookingCheckedIn, BookingCompleted, BookingEvent, BookingNoShow
from domain.exceptions import AlreadyInStateError
from domain.repositories import BookingRepository, RoomRepository

logger = logging.getLogger(__name__)


class RoomBookingBridge:
    """
    Activates a room when one of its bookings is checked in and deactivates
    it once the booking is cancelled, marked no-show or completed.

    Both handlers are idempotent. Activating an already active room is a
    no-op. Deactivation is best effort: failures are logged and never reach
    the booking write that triggered them, the next sweep or check-in
    brings the room back in line.
    """

    def __init__(self, room_repository: RoomRepository, booking_repository: BookingRepository):
        self.room_repository = room_repository
        self.booking_repository = booking_repository

    def register(self, bus: EventBus) -> None:
        bus.subscribe(BookingCheckedIn, self.on_checked_in)
        for event_type in (BookingCancelled, BookingNoShow, BookingCompleted):
            bus.subscribe(event_type, self.on_booking_closed)

    async def on_checked_in(self, event: BookingEvent) -> None:
        room = await self.room_repository.find_by_id(event.room_id)
        if room is None:
            logger.warning("Booking %s checked in for unknown room %s", event.booking_id, event.room_id)
            return
        try:
            room.activate()
        except AlreadyInStateError:
            logger.info("Room %s already active on check-in of booking %s", event.room_id, event.booking_id)
            return
        await self.room_repository.update(room)
        logger.info("Booking %s checked in, room %s set to ACTIVE", event.booking_id, event.room_id)

    async def on_booking_closed(self, event: BookingEvent) -> None:
        try:
            await self._deactivate_if_active(event)
        except Exception as e:
            logger.warning("Could not deactivate room %s after booking %s: %s", event.room_id, event.booking_id, e)

    async def _deactivate_if_active(self, event: BookingEvent) -> None:
        room = await self.room_repository.find_by_id(event.room_id)
        if room is None or not room.is_active:
            return

        bookings = await self.booking_repository.find_by_room_id(event.room_id)
        if any(b.status == BookingStatus.CHECKED_IN and b.booking_id != event.booking_id for b in bookings):
            logger.info("Room %s stays ACTIVE, another booking is checked in", event.room_id)
            return

        room.deactivate()
        await self.room_repository.update(room)
        logger.info("Booking %s closed, room %s set to INACTIVE", event.booking_id, event.room_id)
