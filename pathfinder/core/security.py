"""Password hashing and the JWT codec for access and refresh tokens."""

import uuid
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import TYPE_CHECKING, Any

import bcrypt
import jwt

from pathfinder.core.config import get_settings
from pathfinder.models.token import TokenType
from pathfinder.services.errors import InvalidTokenError

if TYPE_CHECKING:
    from pathfinder.core.config import Settings
    from pathfinder.models.user import User

# Password length bounds (registration and the create_user CLI).
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128


def _utcnow() -> datetime:
    return datetime.now(UTC)


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    rounds = get_settings().BCRYPT_ROUNDS
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash (constant-time compare)."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


@lru_cache
def dummy_password_hash() -> str:
    """Hash checked against when the email is unknown, so both paths pay for bcrypt."""
    return hash_password(uuid.uuid4().hex)


class TokenCodec:
    """
    Issue and verify signed, expiring JWTs carrying a user id in ``sub``.

    Access and refresh tokens differ only in lifetime. Nothing here touches
    storage; the clock is injectable so expiry can be simulated.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        access_lifetime: timedelta = timedelta(minutes=60),
        refresh_lifetime: timedelta = timedelta(days=7),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not secret:
            raise ValueError("Token secret must be non-empty")
        self._secret = secret
        self._algorithm = algorithm
        self._lifetimes = {
            TokenType.ACCESS: access_lifetime,
            TokenType.REFRESH: refresh_lifetime,
        }
        self.clock = clock

    @classmethod
    def from_settings(
        cls,
        settings: "Settings",
        clock: Callable[[], datetime] = _utcnow,
    ) -> "TokenCodec":
        return cls(
            secret=settings.JWT_SECRET.get_secret_value(),
            algorithm=settings.JWT_ALGORITHM,
            access_lifetime=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_lifetime=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
            clock=clock,
        )

    def lifetime(self, kind: TokenType) -> timedelta:
        return self._lifetimes[TokenType(kind)]

    def issue(self, user: "User", kind: TokenType) -> str:
        """Create a signed token for user with sub, iat, exp and a random jti."""
        now = self.clock()
        expire = now + self.lifetime(kind)
        payload: dict[str, Any] = {
            "sub": str(user.id),
            "iat": int(now.timestamp()),
            "exp": int(expire.timestamp()),
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def _decode(self, token: str) -> dict[str, Any]:
        # Expiry is judged against self.clock, not PyJWT's wall clock.
        return jwt.decode(
            token,
            self._secret,
            algorithms=[self._algorithm],
            options={
                "verify_exp": False,
                "verify_iat": False,
                "verify_nbf": False,
                "require": ["sub", "exp"],
            },
        )

    def extract_identity(self, token: str) -> int:
        """
        Return the user id embedded in token.

        Verifies signature and structure but not expiry.
        Raises InvalidTokenError on anything malformed.
        """
        try:
            payload = self._decode(token)
            return int(payload["sub"])
        except (jwt.PyJWTError, TypeError, ValueError) as e:
            raise InvalidTokenError("Invalid token.") from e

    def is_expired(self, token: str) -> bool:
        """True if token is past exp. Unparsable tokens count as expired."""
        try:
            exp = int(self._decode(token)["exp"])
        except (jwt.PyJWTError, TypeError, ValueError, KeyError):
            return True
        return datetime.fromtimestamp(exp, UTC) <= self.clock()

    def matches_kind(self, token: str, kind: TokenType) -> bool:
        """
        True if the token's issued lifetime (exp - iat) fits kind.

        Access tokens live at most the access lifetime and refresh tokens at
        least the refresh lifetime, so the kinds can be told apart without a
        stored record. Unparsable tokens or tokens without iat match nothing.
        """
        try:
            payload = self._decode(token)
            span = timedelta(seconds=int(payload["exp"]) - int(payload["iat"]))
        except (jwt.PyJWTError, TypeError, ValueError, KeyError):
            return False
        if TokenType(kind) is TokenType.ACCESS:
            return span <= self._lifetimes[TokenType.ACCESS]
        return span >= self._lifetimes[TokenType.REFRESH]

    def is_valid(self, token: str, user: "User") -> bool:
        """True iff token belongs to user and has not expired."""
        try:
            user_id = self.extract_identity(token)
        except InvalidTokenError:
            return False
        return user_id == user.id and not self.is_expired(token)


@lru_cache
def get_token_codec() -> TokenCodec:
    """Return the codec built from cached settings (usable as a dependency)."""
    return TokenCodec.from_settings(get_settings())
