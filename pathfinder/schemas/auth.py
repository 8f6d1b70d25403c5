"""Request/response schemas for auth endpoints and services."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pathfinder.models.user import Role

# Roles a visitor may pick for themselves; the rest come from create_user.
SELF_SERVICE_ROLES = frozenset({Role.BUYER, Role.SELLER})


class RegisterRequest(BaseModel):
    """New account. Password length is checked by the service, not here."""

    email: str = Field(..., min_length=3, max_length=255, description="Login email")
    password: str = Field(..., max_length=128, description="Password (min 8 chars)")
    first_name: str | None = Field(default=None, max_length=255)
    last_name: str | None = Field(default=None, max_length=255)
    role: Role = Field(default=Role.BUYER, description="buyer or seller")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("email must contain '@'")
        return v


class PublicRegisterRequest(RegisterRequest):
    """Registration body accepted over HTTP: privileged roles are rejected."""

    @field_validator("role")
    @classmethod
    def reject_privileged_role(cls, v: Role) -> Role:
        if v not in SELF_SERVICE_ROLES:
            raise ValueError("role must be 'buyer' or 'seller'")
        return v


class LoginRequest(BaseModel):
    """Credentials for login; missing fields are reported by the service."""

    email: str | None = Field(default=None, max_length=255)
    password: str | None = Field(default=None, max_length=128)


class UserSummary(BaseModel):
    """Denormalized user returned with issued tokens."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str | None = None
    last_name: str | None = None
    email: str
    role: Role


class AuthResponse(BaseModel):
    """Tokens issued on register or login, plus who they belong to."""

    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")
    token_type: str = Field(default="bearer", description="Token type")
    user: UserSummary


class RefreshResponse(BaseModel):
    """New access token and the refresh token to keep using."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class CurrentUser(BaseModel):
    """Authenticated identity passed explicitly to route handlers."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    role: Role


class UsersListResponse(BaseModel):
    """Response for GET /auth/users (manager or admin only)."""

    users: list[UserSummary]
