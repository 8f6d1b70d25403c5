"""Register, login and refresh endpoints plus auth dependencies (get_current_user, require_role)."""

from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, Cookie, Depends, HTTPException, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from pathfinder.core.config import Settings, get_settings
from pathfinder.core.database import get_db
from pathfinder.core.security import TokenCodec, get_token_codec
from pathfinder.models import Role, TokenType
from pathfinder.schemas.auth import (
    AuthResponse,
    CurrentUser,
    LoginRequest,
    PublicRegisterRequest,
    RefreshResponse,
    UserSummary,
    UsersListResponse,
)
from pathfinder.services import auth as auth_service
from pathfinder.services.credentials import get_user_by_id, list_users
from pathfinder.services.errors import (
    DuplicateIdentityError,
    InvalidCredentialsError,
    InvalidTokenError,
    MissingCredentialsError,
    MissingRefreshTokenError,
    UnknownIdentityError,
    WeakCredentialError,
)
from pathfinder.services.token_store import find_by_token

router = APIRouter()
security = HTTPBearer(auto_error=False)

REFRESH_COOKIE_NAME = "refresh_token"
LOGIN_FAILED_DETAIL = "Invalid email or password."
REFRESH_FAILED_DETAIL = "Invalid or expired refresh token."


def _set_refresh_cookie(
    response: Response, refresh_token: str, codec: TokenCodec, settings: Settings
) -> None:
    response.set_cookie(
        key=REFRESH_COOKIE_NAME,
        value=refresh_token,
        max_age=int(codec.lifetime(TokenType.REFRESH).total_seconds()),
        httponly=True,
        secure=settings.REFRESH_COOKIE_SECURE,
        samesite="lax",
    )


@router.post("/register", response_model=AuthResponse)
def register(
    body: PublicRegisterRequest,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    codec: Annotated[TokenCodec, Depends(get_token_codec)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AuthResponse:
    """
    Create a buyer or seller account and return an access/refresh token pair.
    The refresh token is also set as an HTTP-only cookie.
    """
    try:
        result = auth_service.register(db, codec, body)
    except WeakCredentialError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.message) from e
    except DuplicateIdentityError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message) from e
    _set_refresh_cookie(response, result.refresh_token, codec, settings)
    return result


@router.post("/authenticate", response_model=AuthResponse)
def authenticate(
    body: LoginRequest,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    codec: Annotated[TokenCodec, Depends(get_token_codec)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AuthResponse:
    """
    Authenticate with email and password. Previous access tokens of the user
    are revoked. Include the access token as: Bearer <access_token>
    """
    try:
        result = auth_service.authenticate(db, codec, body)
    except MissingCredentialsError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    except (UnknownIdentityError, InvalidCredentialsError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=LOGIN_FAILED_DETAIL,
        ) from e
    _set_refresh_cookie(response, result.refresh_token, codec, settings)
    return result


@router.post("/refresh-token", response_model=RefreshResponse)
def refresh_token(
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    codec: Annotated[TokenCodec, Depends(get_token_codec)],
    settings: Annotated[Settings, Depends(get_settings)],
    refresh_token: Annotated[str | None, Cookie(alias=REFRESH_COOKIE_NAME)] = None,
) -> RefreshResponse | Response:
    """
    Issue a new access token from the refresh_token cookie (never the body or a header).
    Missing cookie: 403 with an empty body.
    """
    try:
        result = auth_service.refresh(db, codec, settings, refresh_token)
    except MissingRefreshTokenError:
        return Response(status_code=status.HTTP_403_FORBIDDEN)
    except (InvalidTokenError, UnknownIdentityError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=REFRESH_FAILED_DETAIL,
        ) from e
    _set_refresh_cookie(response, result.refresh_token, codec, settings)
    return result


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
    codec: Annotated[TokenCodec, Depends(get_token_codec)],
) -> CurrentUser:
    """Dependency: require a valid, unrevoked Bearer access token and return its user. Raises 401 otherwise."""
    if credentials is None:
        raise _unauthorized("Not authenticated")
    token = credentials.credentials
    try:
        user_id = codec.extract_identity(token)
    except InvalidTokenError:
        raise _unauthorized("Invalid or expired token")
    user = get_user_by_id(db, user_id)
    if user is None:
        raise _unauthorized("User not found")
    if not codec.is_valid(token, user):
        raise _unauthorized("Invalid or expired token")
    # Refresh tokens whose row was never stored are caught by lifetime.
    if not codec.matches_kind(token, TokenType.ACCESS):
        raise _unauthorized("Invalid or expired token")
    record = find_by_token(db, token)
    if record is not None and (
        record.revoked or record.token_type != TokenType.ACCESS.value
    ):
        raise _unauthorized("Token revoked")
    return CurrentUser.model_validate(user)


def require_role(*roles: Role) -> Callable[..., CurrentUser]:
    """Dependency factory: allow only users whose role is in roles. Raises 403 otherwise."""
    allowed = frozenset(roles)

    def checker(
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
    ) -> CurrentUser:
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient role",
            )
        return current_user

    return checker


@router.get("/me", response_model=CurrentUser)
def me(current_user: Annotated[CurrentUser, Depends(get_current_user)]) -> CurrentUser:
    """Return the identity behind the Bearer token."""
    return current_user


@router.get("/users", response_model=UsersListResponse)
def get_users(
    _staff: Annotated[CurrentUser, Depends(require_role(Role.MANAGER, Role.ADMIN))],
    db: Annotated[Session, Depends(get_db)],
) -> UsersListResponse:
    """List all users (manager or admin only)."""
    return UsersListResponse(
        users=[UserSummary.model_validate(u) for u in list_users(db)]
    )
