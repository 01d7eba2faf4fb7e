"""Application Services - Business use cases"""
import logging
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from application.conflicts import ConflictDetector
from application.events import EventBus
from domain.auth import User, require_owner_or_staff
from domain.entities import Booking, Room
from domain.enums import AvailabilityStatus, OperationalStatus, RoomType
from domain.events import RoomAdded, RoomEvent, RoomOperationalStatusChanged, RoomRemoved, event_for
from domain.exceptions import BookingConflictError, NotFoundError, ValidationError
from domain.repositories import BookingRepository, RoomRepository
from domain.value_objects import AvailabilitySlot, DailyRoomAvailability, RoomAvailability, TimeRange
from infrastructure.clock import Clock, SystemClock

logger = logging.getLogger(__name__)


class RoomService:
    """Service for Room registry use cases"""

    def __init__(self, repository: RoomRepository, event_bus: Optional[EventBus] = None):
        self.repository = repository
        self.event_bus = event_bus

    async def add_room(self, name: str, location: str, room_type: RoomType) -> Room:
        """Register a new room; location codes are unique"""
        room = Room.create(name=name, location=location, room_type=room_type)
        saved = await self.repository.save(room)
        logger.info("Added room %s at %s (%s)", saved.room_id, saved.location, saved.room_type.value)
        await self._publish(RoomAdded(
            room_id=saved.room_id,
            name=saved.name,
            room_location=saved.location.value,
            room_type=saved.room_type,
            operational_status=saved.operational_status
        ))
        return saved

    async def remove_room(self, room_id: int) -> None:
        """Remove a room. Only disabled, unoccupied rooms can be removed."""
        room = await self._require(room_id)
        room.ensure_removable()
        await self.repository.delete(room_id)
        logger.info("Removed room %s", room_id)
        await self._publish(RoomRemoved(room_id=room_id))

    async def enable_room(self, room_id: int) -> Room:
        room = await self._require(room_id)
        room.enable()
        saved = await self.repository.update(room)
        logger.info("Room %s enabled", room_id)
        await self._publish(RoomOperationalStatusChanged(room_id=room_id, operational_status=saved.operational_status))
        return saved

    async def disable_room(self, room_id: int) -> Room:
        room = await self._require(room_id)
        room.disable()
        saved = await self.repository.update(room)
        logger.info("Room %s disabled", room_id)
        await self._publish(RoomOperationalStatusChanged(room_id=room_id, operational_status=saved.operational_status))
        return saved

    async def activate_room(self, room_id: int) -> Room:
        room = await self._require(room_id)
        room.activate()
        return await self.repository.update(room)

    async def deactivate_room(self, room_id: int) -> Room:
        room = await self._require(room_id)
        room.deactivate()
        return await self.repository.update(room)

    async def get_room(self, room_id: int) -> Optional[Room]:
        return await self.repository.find_by_id(room_id)

    async def get_room_by_location(self, location: str) -> Optional[Room]:
        return await self.repository.find_by_location(location)

    async def get_rooms_by_status(self, status: OperationalStatus) -> List[Room]:
        return await self.repository.find_by_status(status)

    async def get_enabled_rooms(self) -> List[Room]:
        return await self.repository.find_by_status(OperationalStatus.ENABLED)

    async def get_rooms_by_type(self, room_type: RoomType) -> List[Room]:
        return await self.repository.find_by_type(room_type)

    async def get_all_rooms(self) -> List[Room]:
        return await self.repository.find_all()

    async def _require(self, room_id: int) -> Room:
        room = await self.repository.find_by_id(room_id)
        if room is None:
            raise NotFoundError("Room", room_id)
        return room

    async def _publish(self, event: RoomEvent) -> None:
        if self.event_bus is None:
            return
        try:
            await self.event_bus.publish(event)
        except Exception:
            logger.exception("Event handling failed for room %s", event.room_id)


class BookingService:
    """Service for Booking use cases"""

    def __init__(
        self,
        repository: BookingRepository,
        room_repository: RoomRepository,
        conflict_detector: ConflictDetector,
        event_bus: EventBus,
        clock: Optional[Clock] = None,
        business_day_start_hour: int = 8,
        business_day_end_hour: int = 18,
    ):
        if business_day_end_hour <= business_day_start_hour:
            raise ValueError("Business day must end after it starts")
        self.repository = repository
        self.room_repository = room_repository
        self.conflict_detector = conflict_detector
        self.event_bus = event_bus
        self.clock = clock or SystemClock()
        self.business_day_start_hour = business_day_start_hour
        self.business_day_end_hour = business_day_end_hour

    async def create_booking(
        self,
        room_id: int,
        start_time: datetime,
        end_time: datetime,
        booked_by: Optional[str] = None
    ) -> Booking:
        """
        Create a booking for a room and time range.

        The room stays locked from the conflict check until the booking is
        stored, so two overlapping requests cannot both succeed.
        """
        if room_id is None:
            raise ValidationError("room_id is required")

        now = self.clock.now()
        time_range = TimeRange(start_time=start_time, end_time=end_time)
        if time_range.start_time < now:
            raise ValidationError("start_time must not be in the past")

        async with self.room_repository.lock(room_id):
            room = await self.room_repository.find_by_id(room_id)
            if room is None:
                raise NotFoundError("Room", room_id)

            booking = Booking.create(room=room, time_range=time_range, now=now, booked_by=booked_by)

            if await self.conflict_detector.has_conflict(room_id, time_range):
                raise BookingConflictError("Room is not available for the requested time range")

            saved = await self.repository.save(booking)

        logger.info(
            "Created booking %s for room %s from %s to %s",
            saved.booking_id, room_id, time_range.start_time, time_range.end_time
        )
        return saved

    async def cancel_booking(self, booking_id: int, user: Optional[User] = None) -> Booking:
        """Cancel a booking that has not ended yet"""
        booking = await self._require(booking_id, user)
        booking.cancel(self.clock.now())
        return await self._store_transition(booking)

    async def check_in(self, booking_id: int, user: Optional[User] = None) -> Booking:
        booking = await self._require(booking_id, user)
        booking.check_in()
        return await self._store_transition(booking)

    async def get_booking(self, booking_id: int) -> Optional[Booking]:
        return await self.repository.find_by_id(booking_id)

    async def get_all_bookings(self) -> List[Booking]:
        return await self.repository.find_all()

    async def get_bookings_by_room(self, room_id: int) -> List[Booking]:
        return await self.repository.find_by_room_id(room_id)

    async def fetch_room_availability(
        self,
        room_id: int,
        start_time: datetime,
        end_time: datetime
    ) -> RoomAvailability:
        """
        Availability of a room for a window. A disabled room is always
        unavailable; otherwise the room is unavailable when a blocking
        booking overlaps the window.
        """
        room = await self.room_repository.find_by_id(room_id)
        if room is None:
            raise NotFoundError("Room", room_id)

        time_range = TimeRange(start_time=start_time, end_time=end_time)

        if not room.is_enabled or await self.conflict_detector.has_conflict(room_id, time_range):
            status = AvailabilityStatus.UNAVAILABLE
        else:
            status = AvailabilityStatus.AVAILABLE

        return RoomAvailability(
            room_id=room_id,
            start_time=time_range.start_time,
            end_time=time_range.end_time,
            status=status
        )

    async def list_daily_availability(self, day: Optional[date] = None) -> List[DailyRoomAvailability]:
        """Hour-by-hour availability of every room across the business day"""
        now = self.clock.now()
        day = day or now.date()
        day_start = datetime.combine(day, time(self.business_day_start_hour))
        day_end = datetime.combine(day, time()) + timedelta(hours=self.business_day_end_hour)

        bookings = [b for b in await self.repository.find_between(day_start, day_end) if b.is_blocking]
        result = []
        for room in await self.room_repository.find_all():
            room_bookings = [b for b in bookings if b.room_id == room.room_id]
            slots = []
            slot_start = day_start
            while slot_start < day_end:
                slot_end = slot_start + timedelta(hours=1)
                occupied = any(
                    b.time_range.start_time < slot_end and slot_start < b.time_range.end_time
                    for b in room_bookings
                )
                slots.append(AvailabilitySlot(
                    start_time=slot_start,
                    end_time=slot_end,
                    available=room.is_enabled and not occupied and slot_start >= now
                ))
                slot_start = slot_end
            result.append(DailyRoomAvailability(
                room_id=room.room_id,
                room_location=room.location.value,
                name=room.name,
                slots=slots
            ))
        return result

    async def _require(self, booking_id: int, user: Optional[User]) -> Booking:
        booking = await self.repository.find_by_id(booking_id)
        if booking is None:
            raise NotFoundError("Booking", booking_id)
        if user is not None:
            require_owner_or_staff(user, booking.booked_by)
        return booking

    async def _store_transition(self, booking: Booking) -> Booking:
        saved = await self.repository.update(booking)
        logger.info("Booking %s is now %s", saved.booking_id, saved.status.value)
        event = event_for(saved, self.clock.now())
        if event is not None:
            try:
                await self.event_bus.publish(event)
            except Exception:
                # the booking write is already committed
                logger.exception("Event handling failed for booking %s", saved.booking_id)
        return saved
