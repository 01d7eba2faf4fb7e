"""In-Memory Repository Implementations

Entities are copied on the way in and on the way out, so an aggregate that
was modified but not saved never leaks into storage. Updates carry an
optimistic version check: a write based on an outdated read is rejected with
ConcurrentModificationError.
"""
import asyncio
import itertools
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Dict, Iterable, List, Optional

from domain.entities import Booking, Room
from domain.enums import BookingStatus, OperationalStatus, RoomType
from domain.exceptions import ConcurrentModificationError, DuplicateLocationError, NotFoundError
from domain.repositories import BookingRepository, RoomRepository

logger = logging.getLogger(__name__)


def _copy(entity):
    return entity.model_copy(deep=True)


class InMemoryRoomRepository(RoomRepository):
    """In-memory implementation of RoomRepository"""

    def __init__(self):
        self._storage: Dict[int, Room] = {}
        self._ids = itertools.count(1)
        self._locks: Dict[int, asyncio.Lock] = {}
        self._lock_holders: Dict[int, int] = {}

    async def save(self, room: Room) -> Room:
        """Insert room; location codes are unique"""
        if await self.exists_by_location(room.location.value):
            raise DuplicateLocationError(room.location.value)
        stored = _copy(room)
        stored.room_id = next(self._ids)
        stored.version = 0
        self._storage[stored.room_id] = stored
        return _copy(stored)

    async def find_by_id(self, room_id: int) -> Optional[Room]:
        room = self._storage.get(room_id)
        return _copy(room) if room else None

    async def find_by_location(self, location: str) -> Optional[Room]:
        for room in self._storage.values():
            if room.location.value == location:
                return _copy(room)
        return None

    async def exists_by_location(self, location: str) -> bool:
        return any(r.location.value == location for r in self._storage.values())

    async def find_by_status(self, status: OperationalStatus) -> List[Room]:
        return [_copy(r) for r in self._storage.values() if r.operational_status == status]

    async def find_by_type(self, room_type: RoomType) -> List[Room]:
        return [_copy(r) for r in self._storage.values() if r.room_type == room_type]

    async def find_all(self) -> List[Room]:
        return [_copy(r) for r in self._storage.values()]

    async def update(self, room: Room) -> Room:
        stored = self._storage.get(room.room_id)
        if stored is None:
            raise NotFoundError("Room", room.room_id)
        if stored.version != room.version:
            raise ConcurrentModificationError("Room", room.room_id)
        updated = _copy(room)
        updated.version += 1
        self._storage[room.room_id] = updated
        return _copy(updated)

    async def delete(self, room_id: int) -> bool:
        if not self._lock_holders.get(room_id):
            self._locks.pop(room_id, None)
        return self._storage.pop(room_id, None) is not None

    @asynccontextmanager
    async def lock(self, room_id: int) -> AsyncIterator[None]:
        """Per-room lock. Entries for ids with no stored room are dropped once released."""
        lock = self._locks.setdefault(room_id, asyncio.Lock())
        self._lock_holders[room_id] = self._lock_holders.get(room_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_holders[room_id] -= 1
            if not self._lock_holders[room_id]:
                del self._lock_holders[room_id]
                if room_id not in self._storage:
                    self._locks.pop(room_id, None)


class InMemoryBookingRepository(BookingRepository):
    """In-memory implementation of BookingRepository"""

    def __init__(self):
        self._storage: Dict[int, Booking] = {}
        self._ids = itertools.count(1)

    async def save(self, booking: Booking) -> Booking:
        stored = _copy(booking)
        stored.booking_id = next(self._ids)
        stored.version = 0
        self._storage[stored.booking_id] = stored
        return _copy(stored)

    async def find_by_id(self, booking_id: int) -> Optional[Booking]:
        booking = self._storage.get(booking_id)
        return _copy(booking) if booking else None

    async def find_by_room_id(self, room_id: int) -> List[Booking]:
        return [_copy(b) for b in self._storage.values() if b.room_id == room_id]

    async def find_all(self) -> List[Booking]:
        return [_copy(b) for b in self._storage.values()]

    async def find_by_status_starting_before(self, status: BookingStatus, moment: datetime) -> List[Booking]:
        return [
            _copy(b) for b in self._storage.values()
            if b.status == status and b.time_range.start_time <= moment
        ]

    async def find_by_status_ending_before(self, status: BookingStatus, moment: datetime) -> List[Booking]:
        return [
            _copy(b) for b in self._storage.values()
            if b.status == status and b.time_range.end_time <= moment
        ]

    async def find_between(self, start: datetime, end: datetime) -> List[Booking]:
        return [
            _copy(b) for b in self._storage.values()
            if b.time_range.start_time < end and start < b.time_range.end_time
        ]

    async def exists_overlapping(
        self,
        room_id: int,
        start: datetime,
        end: datetime,
        statuses: Iterable[BookingStatus]
    ) -> bool:
        wanted = set(statuses)
        return any(
            b.room_id == room_id
            and b.status in wanted
            and b.time_range.start_time < end
            and start < b.time_range.end_time
            for b in self._storage.values()
        )

    async def update(self, booking: Booking) -> Booking:
        stored = self._storage.get(booking.booking_id)
        if stored is None:
            raise NotFoundError("Booking", booking.booking_id)
        if stored.version != booking.version:
            raise ConcurrentModificationError("Booking", booking.booking_id)
        return self._write(booking)

    async def update_all(self, bookings: List[Booking]) -> List[Booking]:
        saved = []
        for booking in bookings:
            stored = self._storage.get(booking.booking_id)
            if stored is None or stored.version != booking.version:
                logger.warning("Skipping stale write for booking %s", booking.booking_id)
                continue
            saved.append(self._write(booking))
        return saved

    def _write(self, booking: Booking) -> Booking:
        updated = _copy(booking)
        updated.version += 1
        self._storage[booking.booking_id] = updated
        return _copy(updated)
