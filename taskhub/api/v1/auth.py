"""Account registration and token endpoints."""
from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.exceptions import UnauthorizedError
from taskhub.database import get_db
from taskhub.dependencies import get_current_active_user
from taskhub.models.user import User
from taskhub.schemas.auth import RefreshTokenRequest, RefreshTokenResponse, TokenResponse
from taskhub.schemas.user import UserCreate, UserResponse
from taskhub.services.auth_service import AuthService

router = APIRouter()


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(payload: UserCreate, db: AsyncSession = Depends(get_db)):
    return await AuthService.register_user(db, payload)


@router.post("/login", response_model=TokenResponse)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
):
    """OAuth2 password flow. The form's ``username`` field carries the email."""
    account = await AuthService.authenticate_user(db, form_data.username, form_data.password)
    if account is None:
        raise UnauthorizedError(message_key="errors.invalid_credentials")
    return TokenResponse(**await AuthService.create_tokens(account))


@router.post("/refresh", response_model=RefreshTokenResponse)
async def refresh(payload: RefreshTokenRequest, db: AsyncSession = Depends(get_db)):
    return RefreshTokenResponse(**await AuthService.refresh_access_token(db, payload.refresh_token))


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_active_user)):
    return current_user
