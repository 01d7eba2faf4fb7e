import logging
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from http import HTTPStatus
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.schemas import (
    # Rooms
    AddRoomRequest, RoomResponse,
    # Bookings
    CreateBookingRequest, BookingResponse, RoomAvailabilityResponse,
    DailyAvailabilityResponse, AvailabilitySlotResponse,
    # Lifecycle
    SweepResponse,
    # Errors & Auth
    ErrorResponse, Token, UserResponse
)
from api.dependencies import (
    fake_users_db, get_user, get_current_active_user, get_current_staff_user,
    get_room_service, get_booking_service, get_lifecycle_scheduler
)
from application.conflicts import ConflictDetector
from application.consistency import RoomBookingBridge
from application.events import EventBus
from application.lifecycle import LifecycleScheduler
from application.services import BookingService, RoomService
from domain.auth import User
from domain.entities import Booking, Room
from domain.enums import BookingStatus, OperationalStatus, RoomType
from domain.exceptions import DomainError
from infrastructure.clock import Clock, SystemClock
from infrastructure.config import Settings, get_settings
from infrastructure.logging_config import configure_logging
from infrastructure.repositories.in_memory_repositories import (
    InMemoryBookingRepository, InMemoryRoomRepository
)
from infrastructure.security import verify_password, create_access_token

logger = logging.getLogger(__name__)

router = APIRouter()

# ============================================================================
# HEALTH & ENUM REFERENCE ENDPOINTS
# ============================================================================

@router.get("/api/health", tags=["Health"])
async def health_check(request: Request):
    """Health check endpoint"""
    return {
        "status": "healthy",
        "message": "API is running",
        "scheduler_running": request.app.state.lifecycle_scheduler.is_running
    }

@router.get("/api/enums/booking-status", tags=["Enum Reference"])
async def get_booking_statuses():
    """Get all BookingStatus enum values"""
    return {
        "values": [item.name for item in BookingStatus],
        "terminal": [item.name for item in BookingStatus if item.is_terminal],
        "blocking": [item.name for item in BookingStatus if item.is_blocking]
    }

@router.get("/api/enums/room-type", tags=["Enum Reference"])
async def get_room_types():
    """Get all RoomType enum values"""
    return {"values": [item.name for item in RoomType]}

@router.get("/api/enums/operational-status", tags=["Enum Reference"])
async def get_operational_statuses():
    """Get all OperationalStatus enum values"""
    return {"values": [item.name for item in OperationalStatus]}

# ============================================================================
# AUTH ENDPOINTS
# ============================================================================

@router.post("/token", response_model=Token, tags=["Auth"])
async def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends()):
    user = get_user(fake_users_db, form_data.username)
    if not user or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token = create_access_token(user.username, roles=user.roles)
    logger.info("Issued access token for %s", user.username)
    return {"access_token": access_token, "token_type": "bearer"}

@router.get("/users/me", response_model=UserResponse, tags=["Auth"])
async def read_users_me(current_user: User = Depends(get_current_active_user)):
    return current_user

# ============================================================================
# ROOM ENDPOINTS
# ============================================================================

@router.post("/rooms", response_model=RoomResponse, status_code=201, tags=["Rooms"])
async def add_room(
    request: AddRoomRequest,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(get_current_staff_user)
):
    """Add a room to the registry"""
    room = await service.add_room(
        name=request.name,
        location=request.room_location,
        room_type=request.room_type
    )
    return _room_to_response(room)

@router.get("/rooms", response_model=List[RoomResponse], tags=["Rooms"])
async def get_rooms(
    status: Optional[OperationalStatus] = None,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get all rooms, optionally filtered by operational status"""
    if status is None:
        rooms = await service.get_all_rooms()
    else:
        rooms = await service.get_rooms_by_status(status)
    return [_room_to_response(r) for r in rooms]

@router.get("/rooms/enabled", response_model=List[RoomResponse], tags=["Rooms"])
async def get_enabled_rooms(
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get rooms open for booking"""
    rooms = await service.get_enabled_rooms()
    return [_room_to_response(r) for r in rooms]

@router.get("/rooms/location/{room_location}", response_model=RoomResponse, tags=["Rooms"])
async def get_room_by_location(
    room_location: str,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get room by location code"""
    room = await service.get_room_by_location(room_location)
    if not room:
        raise HTTPException(status_code=404, detail=f"Room not found at location: {room_location}")
    return _room_to_response(room)

@router.get("/rooms/type/{room_type}", response_model=List[RoomResponse], tags=["Rooms"])
async def get_rooms_by_type(
    room_type: RoomType,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get rooms of one type"""
    rooms = await service.get_rooms_by_type(room_type)
    return [_room_to_response(r) for r in rooms]

@router.get("/rooms/{room_id}", response_model=RoomResponse, tags=["Rooms"])
async def get_room(
    room_id: int,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get room by ID"""
    room = await service.get_room(room_id)
    if not room:
        raise HTTPException(status_code=404, detail=f"Room not found with id: {room_id}")
    return _room_to_response(room)

@router.delete("/rooms/{room_id}", tags=["Rooms"])
async def remove_room(
    room_id: int,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(get_current_staff_user)
):
    """Remove a disabled room"""
    await service.remove_room(room_id)
    return {"success": True, "message": "Room removed successfully"}

@router.put("/rooms/{room_id}/enable", response_model=RoomResponse, tags=["Rooms"])
async def enable_room(
    room_id: int,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(get_current_staff_user)
):
    """Open a room for booking"""
    room = await service.enable_room(room_id)
    return _room_to_response(room)

@router.put("/rooms/{room_id}/disable", response_model=RoomResponse, tags=["Rooms"])
async def disable_room(
    room_id: int,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(get_current_staff_user)
):
    """Close a room for booking"""
    room = await service.disable_room(room_id)
    return _room_to_response(room)

# ============================================================================
# BOOKING ENDPOINTS
# ============================================================================

@router.post("/bookings", response_model=BookingResponse, status_code=201, tags=["Bookings"])
async def create_booking(
    request: CreateBookingRequest,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Create new booking"""
    booking = await service.create_booking(
        room_id=request.room_id,
        start_time=request.start_time,
        end_time=request.end_time,
        booked_by=current_user.username
    )
    return _booking_to_response(booking)

@router.get("/bookings", response_model=List[BookingResponse], tags=["Bookings"])
async def get_all_bookings(
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get all bookings"""
    bookings = await service.get_all_bookings()
    return [_booking_to_response(b) for b in bookings]

@router.get("/bookings/availability", response_model=RoomAvailabilityResponse, tags=["Bookings"])
async def get_room_availability(
    room_id: int,
    start_time: datetime,
    end_time: datetime,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Check whether a room can be booked for a time range"""
    availability = await service.fetch_room_availability(room_id, start_time, end_time)
    return RoomAvailabilityResponse(
        room_id=availability.room_id,
        start_time=availability.start_time,
        end_time=availability.end_time,
        status=availability.status
    )

@router.get("/bookings/availability/daily", response_model=List[DailyAvailabilityResponse], tags=["Bookings"])
async def get_daily_availability(
    day: Optional[date] = None,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Hourly availability of every room for a day (default today)"""
    rooms = await service.list_daily_availability(day)
    return [
        DailyAvailabilityResponse(
            room_id=r.room_id,
            room_location=r.room_location,
            name=r.name,
            slots=[
                AvailabilitySlotResponse(start_time=s.start_time, end_time=s.end_time, available=s.available)
                for s in r.slots
            ]
        )
        for r in rooms
    ]

@router.get("/bookings/room/{room_id}", response_model=List[BookingResponse], tags=["Bookings"])
async def get_room_bookings(
    room_id: int,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get all bookings for a room"""
    bookings = await service.get_bookings_by_room(room_id)
    return [_booking_to_response(b) for b in bookings]

@router.get("/bookings/{booking_id}", response_model=BookingResponse, tags=["Bookings"])
async def get_booking(
    booking_id: int,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get booking by ID"""
    booking = await service.get_booking(booking_id)
    if not booking:
        raise HTTPException(status_code=404, detail=f"Booking not found with id: {booking_id}")
    return _booking_to_response(booking)

@router.put("/bookings/{booking_id}/cancel", response_model=BookingResponse, tags=["Bookings"])
async def cancel_booking(
    booking_id: int,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Cancel booking (owner or staff)"""
    booking = await service.cancel_booking(booking_id, current_user)
    return _booking_to_response(booking)

@router.put("/bookings/{booking_id}/check-in", response_model=BookingResponse, tags=["Bookings"])
async def check_in_booking(
    booking_id: int,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Check in to a booking (owner or staff)"""
    booking = await service.check_in(booking_id, current_user)
    return _booking_to_response(booking)

# ============================================================================
# LIFECYCLE ENDPOINTS
# ============================================================================

@router.post("/api/lifecycle/sweep", response_model=SweepResponse, tags=["Lifecycle"])
async def run_lifecycle_sweep(
    scheduler: LifecycleScheduler = Depends(get_lifecycle_scheduler),
    current_user: User = Depends(get_current_staff_user)
):
    """Run one lifecycle sweep immediately"""
    result = await scheduler.run_once()
    return SweepResponse(
        ran_at=result.ran_at,
        check_in_required=result.check_in_required,
        no_shows=result.no_shows,
        completed=result.completed
    )

# ============================================================================
# ERROR HANDLERS
# ============================================================================

def _error_response(request: Request, status_code: int, message: str, headers=None) -> JSONResponse:
    body = ErrorResponse(
        timestamp=datetime.now(timezone.utc),
        status=status_code,
        error=HTTPStatus(status_code).phrase,
        message=message,
        path=request.url.path
    )
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body), headers=headers)

def _format_validation_errors(errors) -> str:
    messages = []
    for error in errors:
        field = ".".join(str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path"))
        messages.append(f"{field}: {error.get('msg', 'is invalid')}" if field else error.get("msg", "is invalid"))
    return "; ".join(sorted(messages)) or "Validation failed"

async def domain_error_handler(request: Request, exc: DomainError):
    if exc.status_code >= 500:
        logger.error("Unhandled domain error on %s: %s", request.url.path, exc)
    return _error_response(request, exc.status_code, exc.message)

async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _error_response(request, exc.status_code, str(exc.detail), getattr(exc, "headers", None))

async def request_validation_handler(request: Request, exc: RequestValidationError):
    return _error_response(request, 400, _format_validation_errors(exc.errors()))

async def pydantic_validation_handler(request: Request, exc: PydanticValidationError):
    return _error_response(request, 400, _format_validation_errors(exc.errors()))

# ============================================================================
# APPLICATION FACTORY
# ============================================================================

def create_app(settings: Optional[Settings] = None, clock: Optional[Clock] = None) -> FastAPI:
    """Wire repositories, services and the lifecycle scheduler into a FastAPI app"""
    settings = settings or get_settings()
    clock = clock or SystemClock()
    configure_logging(settings.log_level)

    room_repo = InMemoryRoomRepository()
    booking_repo = InMemoryBookingRepository()

    event_bus = EventBus()
    RoomBookingBridge(room_repo, booking_repo).register(event_bus)

    scheduler = LifecycleScheduler(
        booking_repo,
        event_bus,
        clock=clock,
        grace_period_minutes=settings.check_in_grace_minutes,
        interval_seconds=settings.lifecycle_interval_seconds
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.scheduler_enabled:
            await scheduler.start()
        try:
            yield
        finally:
            await scheduler.stop()

    app = FastAPI(
        title=settings.app_name,
        description="Room booking API: rooms, bookings, check-in and lifecycle sweeps",
        version="1.0.0",
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.clock = clock
    app.state.room_service = RoomService(room_repo, event_bus)
    app.state.booking_service = BookingService(
        booking_repo,
        room_repo,
        ConflictDetector(booking_repo, buffer_minutes=settings.buffer_minutes),
        event_bus,
        clock=clock,
        business_day_start_hour=settings.business_day_start_hour,
        business_day_end_hour=settings.business_day_end_hour
    )
    app.state.lifecycle_scheduler = scheduler

    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(PydanticValidationError, pydantic_validation_handler)

    app.include_router(router)
    return app

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def _room_to_response(room: Room) -> RoomResponse:
    """Convert Room entity to RoomResponse"""
    return RoomResponse(
        room_id=room.room_id,
        name=room.name,
        room_location=room.location.value,
        room_type=room.room_type.value,
        operational_status=room.operational_status.value,
        activity_status=room.activity_status.value,
        created_at=room.created_at,
        modified_at=room.modified_at,
        version=room.version
    )

def _booking_to_response(booking: Booking) -> BookingResponse:
    """Convert Booking entity to BookingResponse"""
    return BookingResponse(
        booking_id=booking.booking_id,
        room_id=booking.room_id,
        start_time=booking.time_range.start_time,
        end_time=booking.time_range.end_time,
        booking_date=booking.booking_date,
        status=booking.status.value,
        booked_by=booking.booked_by,
        created_at=booking.created_at,
        modified_at=booking.modified_at,
        version=booking.version
    )

app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
