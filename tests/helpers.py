"""Shared fixtures: in-memory SQLite sessions, a controllable clock and a codec bound to it."""

from datetime import UTC, datetime, timedelta

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pathfinder.core.database import enable_sqlite_savepoints
from pathfinder.core.security import TokenCodec
from pathfinder.models import Base

TEST_SECRET = "unit-test-secret-0123456789abcdef0123456789"
ACCESS_LIFETIME = timedelta(minutes=15)
REFRESH_LIFETIME = timedelta(days=7)


class FakeClock:
    """Callable clock that only moves when advance() is called."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 3, 1, 12, 0, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


def make_engine() -> Engine:
    """One shared in-memory connection with FKs and SAVEPOINT support, schema created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(engine)
    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


def make_codec(clock: FakeClock | None = None, secret: str = TEST_SECRET) -> TokenCodec:
    return TokenCodec(
        secret=secret,
        algorithm="HS256",
        access_lifetime=ACCESS_LIFETIME,
        refresh_lifetime=REFRESH_LIFETIME,
        clock=clock or FakeClock(),
    )
