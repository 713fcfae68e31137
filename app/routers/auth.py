"""
Users router — registration, login and profile.

Endpoints:
  POST /users/register  — Register a new user and get a token (public)
  POST /users/login     — Authenticate and get a token (public)
  GET  /users/profile   — The authenticated user's profile

Security notes:
  - Plaintext passwords exist only in memory during request processing;
    they are hashed before any database operation and never logged.
  - No request body logging middleware is installed.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.auth import (
    UserRegisterRequest,
    UserLoginRequest,
    TokenResponse,
    RegisterResponse,
)
from app.schemas.user import UserResponse
from app.services import auth_service

router = APIRouter()


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
async def register(
    request: UserRegisterRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Register a new user. Returns a JWT token so the user is immediately
    logged in.

    - **email**: Must be a valid email and not already registered
    - **password**: Minimum 8 characters
    - **name**: Display name
    """
    user, token = await auth_service.register(
        db=db,
        email=request.email,
        password=request.password,
        name=request.name,
    )

    return RegisterResponse(
        user_id=user.id,
        email=user.email,
        name=user.name,
        token=token,
    )


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Authenticate and get a token",
)
async def login(
    request: UserLoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Authenticate with email and password.

    Include the returned token on every other request:

        Authorization: Bearer <token>
    """
    _, token = await auth_service.login(
        db=db,
        email=request.email,
        password=request.password,
    )

    return TokenResponse(token=token)


@router.get(
    "/profile",
    response_model=UserResponse,
    summary="Get your profile",
)
async def get_profile(user: User = Depends(get_current_user)):
    return user
