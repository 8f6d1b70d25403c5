"""Errors raised by the authentication services."""


class AuthError(Exception):
    """Base class for registration, login and token failures."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class WeakCredentialError(AuthError):
    """Raised when a password is shorter than the minimum length."""


class DuplicateIdentityError(AuthError):
    """Raised when a user with the same email already exists."""


class MissingCredentialsError(AuthError):
    """Raised when email or password is absent on login."""


class UnknownIdentityError(AuthError):
    """Raised when no user matches the email or the id carried by a token."""


class InvalidCredentialsError(AuthError):
    """Raised when the password does not match the stored hash."""


class InvalidTokenError(AuthError):
    """Raised when a token is malformed, unverifiable, expired or revoked."""


class MissingRefreshTokenError(AuthError):
    """Raised when a refresh is requested without a refresh token."""
