"""Domain Repository Interfaces"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import AsyncContextManager, Iterable, List, Optional

from domain.entities import Booking, Room
from domain.enums import BookingStatus, OperationalStatus, RoomType


class RoomRepository(ABC):
    """Repository interface for Room Aggregate"""

    @abstractmethod
    async def save(self, room: Room) -> Room:
        """Insert a new room and assign its id"""
        pass

    @abstractmethod
    async def find_by_id(self, room_id: int) -> Optional[Room]:
        pass

    @abstractmethod
    async def find_by_location(self, location: str) -> Optional[Room]:
        pass

    @abstractmethod
    async def exists_by_location(self, location: str) -> bool:
        pass

    @abstractmethod
    async def find_by_status(self, status: OperationalStatus) -> List[Room]:
        pass

    @abstractmethod
    async def find_by_type(self, room_type: RoomType) -> List[Room]:
        pass

    @abstractmethod
    async def find_all(self) -> List[Room]:
        pass

    @abstractmethod
    async def update(self, room: Room) -> Room:
        """Update room, rejecting stale versions"""
        pass

    @abstractmethod
    async def delete(self, room_id: int) -> bool:
        pass

    @abstractmethod
    def lock(self, room_id: int) -> AsyncContextManager[None]:
        """Exclusive lock on a room row, held across check-then-insert sequences"""
        pass


class BookingRepository(ABC):
    """Repository interface for Booking Aggregate"""

    @abstractmethod
    async def save(self, booking: Booking) -> Booking:
        """Insert a new booking and assign its id"""
        pass

    @abstractmethod
    async def find_by_id(self, booking_id: int) -> Optional[Booking]:
        pass

    @abstractmethod
    async def find_by_room_id(self, room_id: int) -> List[Booking]:
        pass

    @abstractmethod
    async def find_all(self) -> List[Booking]:
        pass

    @abstractmethod
    async def find_by_status_starting_before(self, status: BookingStatus, moment: datetime) -> List[Booking]:
        """Bookings in status whose start time is at or before moment"""
        pass

    @abstractmethod
    async def find_by_status_ending_before(self, status: BookingStatus, moment: datetime) -> List[Booking]:
        """Bookings in status whose end time is at or before moment"""
        pass

    @abstractmethod
    async def find_between(self, start: datetime, end: datetime) -> List[Booking]:
        """Bookings whose time range intersects [start, end)"""
        pass

    @abstractmethod
    async def exists_overlapping(
        self,
        room_id: int,
        start: datetime,
        end: datetime,
        statuses: Iterable[BookingStatus]
    ) -> bool:
        """Check for a booking of the room in one of statuses intersecting [start, end)"""
        pass

    @abstractmethod
    async def update(self, booking: Booking) -> Booking:
        """Update booking, rejecting stale versions"""
        pass

    @abstractmethod
    async def update_all(self, bookings: List[Booking]) -> List[Booking]:
        """Batch update. Stale bookings are skipped and left out of the result."""
        pass
