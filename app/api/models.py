from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    """Registration inputs; validated by the service so errors map to 400."""
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    """Login inputs."""
    email: Optional[str] = None
    password: Optional[str] = None


class PublicUser(BaseModel):
    """Short user view returned alongside a token."""
    id: str
    username: str
    email: str
    role: str


class AuthResponse(BaseModel):
    """A user plus the bearer token issued for it."""
    user: PublicUser
    token: str


class ProfileResponse(BaseModel):
    """Stored user minus the password hash."""
    id: str = Field(..., serialization_alias="_id")
    username: str
    email: str
    role: str
    is_active: bool = Field(..., serialization_alias="isActive")
    created_at: int = Field(..., serialization_alias="createdAt")


class HealthResponse(BaseModel):
    status: str
    timestamp: str


class ApiTestResponse(BaseModel):
    message: str
