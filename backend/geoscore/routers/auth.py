from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..database import get_session
from ..models import User
from ..schemas.auth import LoginRequest, RegisterRequest, Token
from ..schemas.user import UserPublic
from ..security import create_access_token, verify_password
from ..services.user_service import UserService

router = APIRouter(prefix="/auth", tags=["auth"])
settings = get_settings()


def issue_token(user: User) -> Token:
    expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    token_value = create_access_token(user.id, expires_delta)
    return Token(
        access_token=token_value,
        expires_at=datetime.now(timezone.utc) + expires_delta,
        user=UserPublic.model_validate(user),
    )


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
async def register_user(payload: RegisterRequest, session: AsyncSession = Depends(get_session)):
    try:
        user = await UserService(session).create_user(
            username=payload.username,
            password=payload.password,
            display_name=payload.display_name,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return issue_token(user)


@router.post("/login", response_model=Token)
async def login(payload: LoginRequest, session: AsyncSession = Depends(get_session)):
    user = await UserService(session).get_by_username(payload.username.strip())
    if not user or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid username or password.")
    return issue_token(user)


@router.post("", status_code=status.HTTP_410_GONE)
@router.delete("", status_code=status.HTTP_410_GONE)
async def legacy_auth():
    raise HTTPException(
        status_code=status.HTTP_410_GONE,
        detail="Legacy auth is no longer supported. Use /auth/login instead.",
    )
