"""Auth failure kinds.

Callers at the HTTP edge collapse every `InvalidCredentialsError` into one
generic 401 so responses never reveal whether a username exists. The concrete
subclasses only exist so server-side logs can tell the cases apart.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for authentication failures."""


class InvalidCredentialsError(AuthError):
    pass


class UnknownUserError(InvalidCredentialsError):
    pass


class PasswordMismatchError(InvalidCredentialsError):
    pass


class InvalidTokenError(AuthError):
    """Bad signature, malformed payload or missing claims."""


class TokenExpiredError(InvalidTokenError):
    pass


class UserExistsError(ValueError):
    pass


class ProtectedUserError(ValueError):
    """Raised when an operation targets a user that must never be removed."""
