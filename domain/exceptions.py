"""Domain Exceptions

Every error raised by the domain and application layers derives from
DomainError. Each class carries the HTTP status the API answers with and a
stable error code, so the web layer can translate them without knowing
about individual business rules.
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Error codes exposed to API clients"""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_LOCATION_FORMAT = "INVALID_LOCATION_FORMAT"
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
    AUTHORIZATION_FAILED = "AUTHORIZATION_FAILED"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    STATE_CONFLICT = "STATE_CONFLICT"
    ILLEGAL_TRANSITION = "ILLEGAL_TRANSITION"
    BOOKING_CONFLICT = "BOOKING_CONFLICT"
    DUPLICATE_LOCATION = "DUPLICATE_LOCATION"
    ROOM_ACTIVE = "ROOM_ACTIVE"
    ROOM_DISABLED = "ROOM_DISABLED"
    ALREADY_IN_STATE = "ALREADY_IN_STATE"
    CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"


class DomainError(Exception):
    """Base class for all domain errors"""

    status_code: int = 500
    error_code: ErrorCode = ErrorCode.STATE_CONFLICT

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_code": self.error_code.value,
            "message": self.message,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r})"


class ValidationError(DomainError):
    """Malformed input: bad time alignment, missing fields, past start"""
    status_code = 400
    error_code = ErrorCode.VALIDATION_ERROR


class InvalidLocationFormatError(ValidationError):
    error_code = ErrorCode.INVALID_LOCATION_FORMAT

    def __init__(self, location: str):
        super().__init__(
            "Invalid room location format. Expected format: BUILDING-LEVEL-ROOMCODE (e.g., LIB-03-12)",
            details={"location": location},
        )


class AuthenticationError(DomainError):
    status_code = 401
    error_code = ErrorCode.AUTHENTICATION_FAILED


class AuthorizationError(DomainError):
    status_code = 403
    error_code = ErrorCode.AUTHORIZATION_FAILED


class NotFoundError(DomainError):
    status_code = 404
    error_code = ErrorCode.RESOURCE_NOT_FOUND

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            f"{resource} not found with id: {identifier}",
            details={"resource": resource, "id": identifier},
        )


class StateConflictError(DomainError):
    """Request is well formed but clashes with the current state"""
    status_code = 409
    error_code = ErrorCode.STATE_CONFLICT


class IllegalTransitionError(StateConflictError):
    error_code = ErrorCode.ILLEGAL_TRANSITION

    def __init__(self, action: str, current_status: Enum):
        super().__init__(
            f"Cannot {action} booking in status {current_status.value}",
            details={"action": action, "status": current_status.value},
        )
        self.action = action
        self.current_status = current_status


class BookingConflictError(StateConflictError):
    error_code = ErrorCode.BOOKING_CONFLICT


class DuplicateLocationError(StateConflictError):
    error_code = ErrorCode.DUPLICATE_LOCATION

    def __init__(self, location: str):
        super().__init__(
            f"Room already exists at location: {location}",
            details={"location": location},
        )


class RoomActiveError(StateConflictError):
    error_code = ErrorCode.ROOM_ACTIVE


class RoomDisabledError(StateConflictError):
    error_code = ErrorCode.ROOM_DISABLED


class AlreadyInStateError(StateConflictError):
    error_code = ErrorCode.ALREADY_IN_STATE


class ConcurrentModificationError(StateConflictError):
    error_code = ErrorCode.CONCURRENT_MODIFICATION

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            f"{resource} {identifier} was modified concurrently",
            details={"resource": resource, "id": identifier},
        )
