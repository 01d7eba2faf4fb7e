"""Lifecycle Scheduler - advances bookings as their time windows pass"""
import asyncio
import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from pydantic import BaseModel

from application.events import EventBus
from domain.entities import Booking
from domain.enums import BookingStatus
from domain.events import event_for
from domain.exceptions import DomainError
from domain.repositories import BookingRepository
from infrastructure.clock import Clock, SystemClock

logger = logging.getLogger(__name__)


class SweepResult(BaseModel):
    """Number of bookings moved by each pass of one sweep"""
    ran_at: datetime
    check_in_required: int = 0
    no_shows: int = 0
    completed: int = 0

    @property
    def total(self) -> int:
        return self.check_in_required + self.no_shows + self.completed


class LifecycleScheduler:
    """
    Periodically drives time-based booking transitions:

    1. CONFIRMED bookings whose start has been reached -> CHECK_IN_REQUIRED
    2. CHECK_IN_REQUIRED bookings past start + grace period -> NO_SHOW
    3. CHECKED_IN bookings whose end has been reached -> COMPLETED

    Every pass selects bookings by their expected current status, so a
    booking advanced by a user request in the meantime is simply not picked
    up. Writes carry the version read, and stale ones are skipped by the
    repository.
    """

    def __init__(
        self,
        repository: BookingRepository,
        event_bus: EventBus,
        clock: Optional[Clock] = None,
        grace_period_minutes: int = 15,
        interval_seconds: float = 60.0,
    ):
        self.repository = repository
        self.event_bus = event_bus
        self.clock = clock or SystemClock()
        self.grace_period = timedelta(minutes=grace_period_minutes)
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None
        self._running = False

    # ==================== SWEEP ====================
    async def run_once(self, now: Optional[datetime] = None) -> SweepResult:
        """Run all three passes against now"""
        now = now or self.clock.now()
        result = SweepResult(
            ran_at=now,
            check_in_required=await self._require_check_ins(now),
            no_shows=await self._mark_no_shows(now),
            completed=await self._complete_checked_in(now),
        )
        if result.total:
            logger.info(
                "Lifecycle sweep at %s: %d check-in required, %d no-show, %d completed",
                now, result.check_in_required, result.no_shows, result.completed
            )
        return result

    async def _require_check_ins(self, now: datetime) -> int:
        candidates = await self.repository.find_by_status_starting_before(BookingStatus.CONFIRMED, now)
        return await self._advance(candidates, Booking.require_check_in, now)

    async def _mark_no_shows(self, now: datetime) -> int:
        candidates = await self.repository.find_by_status_starting_before(BookingStatus.CHECK_IN_REQUIRED, now)
        due = [b for b in candidates if b.no_show_due(now, self.grace_period)]
        return await self._advance(due, Booking.mark_no_show, now)

    async def _complete_checked_in(self, now: datetime) -> int:
        candidates = await self.repository.find_by_status_ending_before(BookingStatus.CHECKED_IN, now)
        return await self._advance(candidates, Booking.complete, now)

    async def _advance(self, bookings: List[Booking], transition: Callable[[Booking], None], now: datetime) -> int:
        mutated = []
        for booking in bookings:
            try:
                transition(booking)
            except DomainError as e:
                logger.warning("Skipping booking %s in lifecycle sweep: %s", booking.booking_id, e)
                continue
            mutated.append(booking)

        if not mutated:
            return 0

        saved = await self.repository.update_all(mutated)
        for booking in saved:
            event = event_for(booking, now)
            if event is None:
                continue
            try:
                await self.event_bus.publish(event)
            except Exception:
                logger.exception("Event handling failed for booking %s", booking.booking_id)
        return len(saved)

    # ==================== BACKGROUND LOOP ====================
    async def start(self) -> None:
        if self._running:
            logger.warning("Lifecycle scheduler is already running")
            return
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info("Lifecycle scheduler started (every %ss)", self.interval_seconds)

    async def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Lifecycle scheduler stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    async def _loop(self) -> None:
        while self._running:
            try:
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Lifecycle sweep failed")
            await asyncio.sleep(self.interval_seconds)
