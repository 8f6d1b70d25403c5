"""Pydantic request/response schemas."""

from pathfinder.schemas.auth import (
    AuthResponse,
    CurrentUser,
    LoginRequest,
    PublicRegisterRequest,
    RefreshResponse,
    RegisterRequest,
    UserSummary,
    UsersListResponse,
)
from pathfinder.schemas.health import HealthResponse

__all__ = [
    "AuthResponse",
    "CurrentUser",
    "HealthResponse",
    "LoginRequest",
    "PublicRegisterRequest",
    "RefreshResponse",
    "RegisterRequest",
    "UserSummary",
    "UsersListResponse",
]
