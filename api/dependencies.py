"""API Dependencies - Authentication and service wiring"""
from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from application.lifecycle import LifecycleScheduler
from application.services import BookingService, RoomService
from domain.auth import STAFF_ROLE, User, UserInDB, require_staff
from infrastructure.security import decode_access_token, get_password_hash
from api.schemas import TokenData

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")

# In-memory user table; the identity provider would own this in production.
# Passwords are kept in plain text here and bcrypt-hashed on first lookup.
fake_users_db = {
    "admin": {
        "username": "admin",
        "full_name": "Admin User",
        "email": "admin@example.com",
        "password": "admin123",
        "disabled": False,
        "user_id": "123e4567-e89b-12d3-a456-426614174000",
        "roles": [STAFF_ROLE],
    },
    "student": {
        "username": "student",
        "full_name": "Student User",
        "email": "student@example.com",
        "password": "student123",
        "disabled": False,
        "user_id": "123e4567-e89b-12d3-a456-426614174001",
        "roles": [],
    },
}


@lru_cache(maxsize=None)
def _hashed_password(plain: str) -> str:
    return get_password_hash(plain)


def get_user(db, username: str) -> Optional[UserInDB]:
    record = db.get(username)
    if record is None:
        return None
    fields = {k: v for k, v in record.items() if k != "password"}
    return UserInDB(**fields, hashed_password=_hashed_password(record["password"]))


async def get_current_user(token: str = Depends(oauth2_scheme)) -> UserInDB:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        token_data = TokenData(username=decode_access_token(token).get("sub"))
    except JWTError:
        raise credentials_exception
    if token_data.username is None:
        raise credentials_exception

    user = get_user(fake_users_db, token_data.username)
    if user is None:
        raise credentials_exception
    return user


async def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    if current_user.disabled:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user


async def get_current_staff_user(current_user: User = Depends(get_current_active_user)) -> User:
    require_staff(current_user)
    return current_user


# Services live on app.state, built by main.create_app
def get_room_service(request: Request) -> RoomService:
    return request.app.state.room_service


def get_booking_service(request: Request) -> BookingService:
    return request.app.state.booking_service


def get_lifecycle_scheduler(request: Request) -> LifecycleScheduler:
    return request.app.state.lifecycle_scheduler
