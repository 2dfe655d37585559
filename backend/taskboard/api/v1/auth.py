"""Authentication endpoints: register, login, password reset, current user."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.api.deps import AppSettings
from taskboard.db.session import get_db_session
from taskboard.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from taskboard.models.user import User
from taskboard.services.auth import (
    RESET_TOKEN,
    create_access_token,
    create_reset_token,
    decode_token,
    hash_password,
    token_user_id,
    verify_password,
)
from taskboard.services.sessions import SessionHistoryService

router = APIRouter()
logger = structlog.get_logger()
security = HTTPBearer(auto_error=False)


class AuthUser(BaseModel):
    """User summary returned alongside a token."""

    id: int
    username: str
    email: str

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    """JWT token response."""

    token: str
    user: AuthUser


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
    """Sign in with either username or email."""

    username: str | None = None
    email: str | None = None
    password: str | None = None


class ForgotPasswordRequest(BaseModel):
    email: str | None = None


class ResetPasswordRequest(BaseModel):
    token: str | None = None
    password: str | None = None


class UserProfileResponse(BaseModel):
    """User profile response."""

    id: int
    username: str
    email: str
    picture: str | None
    phone: str | None
    mobile_phone: str | None
    location: str | None

    class Config:
        from_attributes = True


async def get_bearer_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> str:
    """Raw bearer token from the Authorization header."""
    if not credentials:
        raise AuthenticationError("No token provided")
    return credentials.credentials


BearerToken = Annotated[str, Depends(get_bearer_token)]


async def get_current_user(
    token: BearerToken,
    settings: AppSettings,
    db: AsyncSession = Depends(get_db_session),
) -> User:
    """Get the current authenticated user from JWT token."""
    payload = decode_token(token, settings)
    user_id = token_user_id(payload)

    if await SessionHistoryService(db).is_revoked(token):
        raise AuthenticationError("Session has been logged out")

    user = await db.get(User, user_id)
    if user is None:
        raise AuthenticationError("User not found")
    return user


# Type alias for dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    settings: AppSettings,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    """Create an account and return a token for it."""
    result = await db.execute(
        select(User.id).where(or_(User.username == data.username, User.email == data.email))
    )
    if result.first() is not None:
        raise ConflictError("User already exists")

    user = User(
        username=data.username,
        email=data.email,
        password_hash=hash_password(data.password, settings.bcrypt_rounds),
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("User already exists")
    await db.refresh(user)

    logger.info("user_registered", user_id=user.id)
    return TokenResponse(
        token=create_access_token(user, settings),
        user=AuthUser.model_validate(user),
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    data: LoginRequest,
    request: Request,
    settings: AppSettings,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    """Sign in, recording a session for the calling device."""
    if not data.password or not (data.username or data.email):
        raise ValidationError("Username/email and password required")

    conditions = []
    if data.username:
        conditions.append(User.username == data.username)
    if data.email:
        conditions.append(User.email == data.email)
    result = await db.execute(select(User).where(or_(*conditions)).limit(1))
    user = result.scalar_one_or_none()

    if user is None or not verify_password(data.password, user.password_hash):
        logger.info("login_failed", username=data.username, email=data.email)
        raise AuthenticationError("Invalid credentials")

    token = create_access_token(user, settings)
    await SessionHistoryService(db).record_login(
        user_id=user.id,
        session_token=token,
        user_agent=request.headers.get("user-agent"),
        ip_address=request.client.host if request.client else None,
    )

    logger.info("user_logged_in", user_id=user.id)
    return TokenResponse(token=token, user=AuthUser.model_validate(user))


@router.post("/forgot")
async def forgot_password(
    data: ForgotPasswordRequest,
    settings: AppSettings,
    db: AsyncSession = Depends(get_db_session),
) -> dict[str, str]:
    """Issue a short-lived reset token for an email address.

    Delivering it by email is out of scope; the token is returned directly.
    """
    if not data.email:
        raise ValidationError("Email required")

    result = await db.execute(select(User).where(User.email == data.email))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User")

    logger.info("password_reset_token_issued", user_id=user.id)
    return {"resetToken": create_reset_token(user, settings)}


@router.post("/reset")
async def reset_password(
    data: ResetPasswordRequest,
    settings: AppSettings,
    db: AsyncSession = Depends(get_db_session),
) -> dict[str, bool]:
    """Set a new password using a reset token."""
    if not data.token or not data.password:
        raise ValidationError("Token and new password required")

    try:
        payload = decode_token(data.token, settings, expected_type=RESET_TOKEN)
        user_id = token_user_id(payload)
    except PermissionDeniedError:
        raise ValidationError("Invalid or expired token")

    user = await db.get(User, user_id)
    if user is None:
        raise ValidationError("Invalid or expired token")

    user.password_hash = hash_password(data.password, settings.bcrypt_rounds)
    await db.commit()

    logger.info("password_reset", user_id=user_id)
    return {"success": True}


@router.get("/me", response_model=UserProfileResponse)
async def get_me(current_user: CurrentUser) -> User:
    """Get the signed-in user's profile."""
    return current_user
