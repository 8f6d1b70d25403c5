"""Core configuration, database session and token/password security."""

from pathfinder.core.config import get_settings, settings
from pathfinder.core.database import SessionLocal, get_db

__all__ = ["SessionLocal", "get_db", "get_settings", "settings"]
