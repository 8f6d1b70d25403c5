"""ORM model for issued access and refresh tokens."""

from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from pathfinder.models.base import Base


class TokenType(str, Enum):
    ACCESS = "ACCESS"
    REFRESH = "REFRESH"


class Token(Base):
    """
    One row per token handed to a user.

    revoked only ever moves from False to True. Rows are removed by the expiry
    sweep or together with their user.
    """

    __tablename__ = "tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    token = Column(String(2048), nullable=False, unique=True)
    token_type = Column(String(16), nullable=False, default=TokenType.ACCESS.value)
    revoked = Column(Boolean, nullable=False, default=False)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    user = relationship("User", back_populates="tokens")
