"""Token store: persist, revoke and sweep issued tokens."""

import logging
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pathfinder.models import Token, TokenType, User

if TYPE_CHECKING:
    from pathfinder.core.security import TokenCodec

logger = logging.getLogger(__name__)


def save_token(session: Session, user: User, token: str, kind: TokenType) -> Token | None:
    """
    Record an issued token inside a savepoint.

    A failed insert (e.g. a duplicate token string) only rolls back the
    savepoint; it is logged and None is returned so the caller's flow goes on.
    """
    record = Token(
        user_id=user.id,
        token=token,
        token_type=TokenType(kind).value,
        revoked=False,
    )
    try:
        with session.begin_nested():
            session.add(record)
    except SQLAlchemyError as e:
        logger.warning(
            "Failed to persist issued token",
            extra={
                "user_id": user.id,
                "token_type": TokenType(kind).value,
                "reason": type(e).__name__,
            },
        )
        return None
    return record


def find_by_token(session: Session, token: str) -> Token | None:
    return session.query(Token).filter(Token.token == token).first()


def find_valid_access_tokens(session: Session, user_id: int) -> list[Token]:
    """Non-revoked ACCESS tokens of one user."""
    return (
        session.query(Token)
        .filter(
            Token.user_id == user_id,
            Token.token_type == TokenType.ACCESS.value,
            Token.revoked.is_(False),
        )
        .all()
    )


def revoke_token(record: Token) -> None:
    record.revoked = True


def revoke_all_access_tokens(session: Session, user: User) -> int:
    """Mark every live access token of user revoked and flush. Caller commits."""
    records = find_valid_access_tokens(session, user.id)
    if not records:
        return 0
    for record in records:
        revoke_token(record)
    session.flush()
    return len(records)


def sweep_expired(session: Session, codec: "TokenCodec") -> int:
    """
    Delete every stored token the codec reports as expired.

    Malformed tokens count as expired. Idempotent: a second run at the same
    instant deletes nothing. Commits and returns the number deleted.
    """
    deleted_count = 0
    for record in session.query(Token).all():
        if codec.is_expired(record.token):
            session.delete(record)
            deleted_count += 1
    session.commit()

    if deleted_count > 0:
        logger.info("Token sweep run", extra={"tokens_deleted": deleted_count})
    return deleted_count
