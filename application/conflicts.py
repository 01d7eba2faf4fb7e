"""Conflict detection for room bookings"""
from datetime import timedelta

from domain.enums import BLOCKING_STATUSES
from domain.repositories import BookingRepository
from domain.value_objects import TimeRange


class ConflictDetector:
    """
    Decides whether a candidate time range clashes with an existing booking
    of the same room.

    Only bookings in a blocking status (CONFIRMED, CHECK_IN_REQUIRED,
    CHECKED_IN) count. With buffer_minutes > 0 the candidate is widened on
    both sides before the check, which enforces a turnover gap between
    consecutive bookings.
    """

    def __init__(self, booking_repository: BookingRepository, buffer_minutes: int = 0):
        if buffer_minutes < 0:
            raise ValueError("buffer_minutes must not be negative")
        self.booking_repository = booking_repository
        self.buffer = timedelta(minutes=buffer_minutes)

    async def has_conflict(self, room_id: int, time_range: TimeRange) -> bool:
        return await self.booking_repository.exists_overlapping(
            room_id,
            time_range.start_time - self.buffer,
            time_range.end_time + self.buffer,
            BLOCKING_STATUSES,
        )
