"""Authentication / authorization.

Two independent schemes guard different route groups:

- `Authorization: Bearer <token>` (JWT issued by `/login`) for the API
- HTTP Basic credentials checked against the users table for the admin console

Both are `Gateway` dependencies, so routes only depend on "give me an identity
or reject the request".
"""

from .crud import CredentialStore, User
from .deps import BasicGateway, BearerGateway, Gateway, Identity
from .security import PasswordHasher, TokenClaims, TokenService

__all__ = [
    "BasicGateway",
    "BearerGateway",
    "CredentialStore",
    "Gateway",
    "Identity",
    "PasswordHasher",
    "TokenClaims",
    "TokenService",
    "User",
]
