"""SQLAlchemy ORM models."""

from pathfinder.models.base import Base
from pathfinder.models.token import Token, TokenType
from pathfinder.models.user import Role, User

__all__ = ["Base", "Role", "Token", "TokenType", "User"]
