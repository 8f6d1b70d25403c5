"""Credential store: user lookup and creation."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pathfinder.core.security import hash_password
from pathfinder.models import Role, User
from pathfinder.services.errors import DuplicateIdentityError

logger = logging.getLogger(__name__)

DUPLICATE_EMAIL_MESSAGE = "User with this email already exists. Try another one."


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user_by_email(session: Session, email: str) -> User | None:
    return session.query(User).filter(User.email == normalize_email(email)).first()


def get_user_by_id(session: Session, user_id: int) -> User | None:
    return session.get(User, user_id)


def list_users(session: Session) -> list[User]:
    return session.query(User).order_by(User.id).all()


def create_user(
    session: Session,
    *,
    email: str,
    password: str,
    first_name: str | None = None,
    last_name: str | None = None,
    role: Role = Role.BUYER,
) -> User:
    """
    Add a user with a hashed password and flush so the id is assigned.

    A concurrent insert of the same email loses on the unique index; that
    IntegrityError is rolled back and surfaced as DuplicateIdentityError.
    The caller commits.
    """
    user = User(
        email=normalize_email(email),
        password_hash=hash_password(password),
        first_name=first_name,
        last_name=last_name,
        role=Role(role).value,
    )
    session.add(user)
    try:
        session.flush()
    except IntegrityError as e:
        session.rollback()
        logger.info("Duplicate email on insert", extra={"reason": type(e).__name__})
        raise DuplicateIdentityError(DUPLICATE_EMAIL_MESSAGE) from e
    return user
