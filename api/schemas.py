"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel, Field
from datetime import date, datetime
from uuid import UUID
from typing import List, Optional

from domain.enums import AvailabilityStatus, RoomType


# ============================================================================
# ROOM SCHEMAS
# ============================================================================

class AddRoomRequest(BaseModel):
    """Add room request DTO"""
    name: str = Field(min_length=1)
    room_location: str = Field(min_length=1, description="Location code, e.g. LIB-03-12")
    room_type: RoomType


class RoomResponse(BaseModel):
    """Room response DTO"""
    room_id: int
    name: str
    room_location: str
    room_type: str
    operational_status: str
    activity_status: str
    created_at: datetime
    modified_at: datetime
    version: int


# ============================================================================
# BOOKING SCHEMAS
# ============================================================================

class CreateBookingRequest(BaseModel):
    """Create booking request DTO"""
    room_id: int
    start_time: datetime
    end_time: datetime


class BookingResponse(BaseModel):
    """Booking response DTO"""
    booking_id: int
    room_id: int
    start_time: datetime
    end_time: datetime
    booking_date: date
    status: str
    booked_by: str
    created_at: datetime
    modified_at: datetime
    version: int


class RoomAvailabilityResponse(BaseModel):
    """Room availability response DTO"""
    room_id: int
    start_time: datetime
    end_time: datetime
    status: AvailabilityStatus


class AvailabilitySlotResponse(BaseModel):
    start_time: datetime
    end_time: datetime
    available: bool


class DailyAvailabilityResponse(BaseModel):
    """Daily availability of one room"""
    room_id: int
    room_location: str
    name: str
    slots: List[AvailabilitySlotResponse]


# ============================================================================
# LIFECYCLE SCHEMAS
# ============================================================================

class SweepResponse(BaseModel):
    """Lifecycle sweep summary DTO"""
    ran_at: datetime
    check_in_required: int
    no_shows: int
    completed: int


# ============================================================================
# ERROR SCHEMAS
# ============================================================================

class ErrorResponse(BaseModel):
    """Error body returned for every failed request"""
    timestamp: datetime
    status: int
    error: str
    message: str
    path: str


# ============================================================================
# AUTH SCHEMAS
# ============================================================================

class Token(BaseModel):
    """Token response DTO"""
    access_token: str
    token_type: str


class TokenData(BaseModel):
    """Token payload DTO"""
    username: Optional[str] = None


class UserResponse(BaseModel):
    """User response DTO"""
    user_id: UUID
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    disabled: bool
    roles: List[str] = []
