"""
Pydantic schemas for the user endpoints (register, login, profile).

Pydantic validates incoming data automatically: if a required field is
missing or the wrong type, FastAPI returns a 422 before our code runs.
"""

import uuid

from pydantic import BaseModel, EmailStr, Field


class UserRegisterRequest(BaseModel):
    """Request body for POST /users/register."""
    email: EmailStr
    password: str = Field(min_length=8)
    name: str = Field(min_length=1, max_length=200)


class UserLoginRequest(BaseModel):
    """Request body for POST /users/login."""
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    """Response body for successful login: contains the JWT."""
    token: str
    token_type: str = "bearer"


class RegisterResponse(BaseModel):
    """Response body for successful registration: user info + JWT."""
    user_id: uuid.UUID
    email: str
    name: str
    token: str
    token_type: str = "bearer"
