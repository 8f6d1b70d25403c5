"""ORM model for marketplace users (credentials and role)."""

from enum import Enum

from sqlalchemy import Column, DateTime, Integer, String, func
from sqlalchemy.orm import relationship

from pathfinder.models.base import Base


class Role(str, Enum):
    """Marketplace roles; manager and admin are never self-registered."""

    BUYER = "buyer"
    SELLER = "seller"
    MANAGER = "manager"
    ADMIN = "admin"


class User(Base):
    """
    User account for login, token issuance and role-based access control.

    password_hash holds a salted bcrypt hash; the plain password is never stored.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default=Role.BUYER.value)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    tokens = relationship(
        "Token",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
