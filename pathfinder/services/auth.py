"""Registration, login and refresh: orchestrates credentials, codec and token store."""

import logging
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from pathfinder.core.security import (
    PASSWORD_MIN_LEN,
    TokenCodec,
    dummy_password_hash,
    verify_password,
)
from pathfinder.models import TokenType, User
from pathfinder.schemas.auth import (
    AuthResponse,
    LoginRequest,
    RefreshResponse,
    RegisterRequest,
    UserSummary,
)
from pathfinder.services.credentials import (
    DUPLICATE_EMAIL_MESSAGE,
    create_user,
    get_user_by_email,
    get_user_by_id,
)
from pathfinder.services.errors import (
    DuplicateIdentityError,
    InvalidCredentialsError,
    InvalidTokenError,
    MissingCredentialsError,
    MissingRefreshTokenError,
    UnknownIdentityError,
    WeakCredentialError,
)
from pathfinder.services.token_store import (
    find_by_token,
    revoke_all_access_tokens,
    revoke_token,
    save_token,
    sweep_expired,
)

if TYPE_CHECKING:
    from pathfinder.core.config import Settings

logger = logging.getLogger(__name__)


def _issue_pair(session: Session, codec: TokenCodec, user: User) -> tuple[str, str]:
    access_token = codec.issue(user, TokenType.ACCESS)
    refresh_token = codec.issue(user, TokenType.REFRESH)
    save_token(session, user, access_token, TokenType.ACCESS)
    save_token(session, user, refresh_token, TokenType.REFRESH)
    return access_token, refresh_token


def _commit(session: Session) -> None:
    try:
        session.commit()
    except Exception:
        session.rollback()
        raise


def register(session: Session, codec: TokenCodec, body: RegisterRequest) -> AuthResponse:
    """
    Create a user and issue an access/refresh pair.

    Raises WeakCredentialError for passwords under PASSWORD_MIN_LEN and
    DuplicateIdentityError when the email is taken (including a lost race on
    the unique index). Token persistence failures do not fail registration.
    """
    if len(body.password) < PASSWORD_MIN_LEN:
        raise WeakCredentialError(
            f"Password must be at least {PASSWORD_MIN_LEN} characters long."
        )
    if get_user_by_email(session, body.email) is not None:
        raise DuplicateIdentityError(DUPLICATE_EMAIL_MESSAGE)

    user = create_user(
        session,
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        role=body.role,
    )
    access_token, refresh_token = _issue_pair(session, codec, user)
    _commit(session)

    logger.info("User registered", extra={"user_id": user.id, "role": user.role})
    return AuthResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        user=UserSummary.model_validate(user),
    )


def authenticate(session: Session, codec: TokenCodec, body: LoginRequest) -> AuthResponse:
    """
    Log a user in: sweep expired tokens, check credentials, revoke the user's
    live access tokens and issue a fresh pair in one commit.

    UnknownIdentityError and InvalidCredentialsError stay distinct here; the
    HTTP layer reports both with the same message.
    """
    sweep_expired(session, codec)

    if not body.email or not body.password:
        raise MissingCredentialsError("Email and password are required.")

    user = get_user_by_email(session, body.email)
    if user is None:
        # Same bcrypt cost as a real check so response time does not reveal the email.
        verify_password(body.password, dummy_password_hash())
        logger.warning("Login failed", extra={"reason": "unknown_email"})
        raise UnknownIdentityError("No user found with this email. Please try again.")

    if not verify_password(body.password, user.password_hash):
        logger.warning("Login failed", extra={"user_id": user.id, "reason": "bad_password"})
        raise InvalidCredentialsError("Incorrect email or password. Please try again.")

    revoked = revoke_all_access_tokens(session, user)
    access_token, refresh_token = _issue_pair(session, codec, user)
    _commit(session)

    logger.info("User logged in", extra={"user_id": user.id, "tokens_revoked": revoked})
    return AuthResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        user=UserSummary.model_validate(user),
    )


def refresh(
    session: Session,
    codec: TokenCodec,
    settings: "Settings",
    refresh_token: str | None,
) -> RefreshResponse:
    """
    Issue a new access token for the owner of a valid refresh token.

    Raises MissingRefreshTokenError when no token is given, InvalidTokenError
    when it is malformed, expired, revoked or not a refresh token, and
    UnknownIdentityError when its user no longer exists. Nothing is issued in
    any of those cases. With ROTATE_REFRESH_TOKENS the presented refresh token
    is revoked and replaced in the same commit.
    """
    if not refresh_token:
        raise MissingRefreshTokenError("Refresh token is required.")

    user_id = codec.extract_identity(refresh_token)
    user = get_user_by_id(session, user_id)
    if user is None:
        raise UnknownIdentityError("No user found for this token.")

    if not codec.is_valid(refresh_token, user):
        logger.info("Refresh rejected", extra={"user_id": user.id, "reason": "expired_or_foreign"})
        raise InvalidTokenError("Invalid or expired refresh token.")

    record = find_by_token(session, refresh_token)
    if not codec.matches_kind(refresh_token, TokenType.REFRESH) or (
        record is not None
        and (record.revoked or record.token_type != TokenType.REFRESH.value)
    ):
        logger.warning("Refresh rejected", extra={"user_id": user.id, "reason": "revoked_or_wrong_type"})
        raise InvalidTokenError("Invalid or expired refresh token.")

    sweep_expired(session, codec)

    access_token = codec.issue(user, TokenType.ACCESS)
    save_token(session, user, access_token, TokenType.ACCESS)

    if settings.ROTATE_REFRESH_TOKENS:
        if record is None:
            # Never stored: record it now so the revocation sticks.
            record = save_token(session, user, refresh_token, TokenType.REFRESH)
        if record is not None:
            revoke_token(record)
        refresh_token = codec.issue(user, TokenType.REFRESH)
        save_token(session, user, refresh_token, TokenType.REFRESH)

    _commit(session)

    logger.info("Token refreshed", extra={"user_id": user.id})
    return RefreshResponse(access_token=access_token, refresh_token=refresh_token)
