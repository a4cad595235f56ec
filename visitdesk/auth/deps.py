import base64
import binascii
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from fastapi import HTTPException, Request
from fastapi.security.utils import get_authorization_scheme_param

from .crud import CredentialStore, normalize_username
from .errors import InvalidTokenError, PasswordMismatchError, UnknownUserError
from .security import PasswordHasher, TokenService


_BEARER_PREFIX = "Bearer "


def _debug(msg: str) -> None:
    print(f"[auth] {msg}")


def _client_addr(request: Request) -> str:
    client = request.client
    if client is None:
        return "unknown"
    return f"{client.host}:{client.port}" if client.port else str(client.host)


@dataclass(frozen=True)
class Identity:
    username: str
    scheme: str


class Gateway:
    """A request policy that either returns the caller's identity or raises a 401.

    Instances are plain FastAPI dependencies: `Depends(gateway)`. When the
    dependency raises, FastAPI never calls the route handler.
    """

    def authorize(self, request: Request) -> Identity:
        raise NotImplementedError

    def __call__(self, request: Request) -> Identity:
        return self.authorize(request)


class BearerGateway(Gateway):
    """Authorization: Bearer <jwt>. Trusts the signature, never hits storage."""

    def __init__(self, tokens: TokenService):
        self.tokens = tokens

    def _reject(self, request: Request, detail: str, reason: str) -> HTTPException:
        _debug(f"Bearer auth failed: {reason} (IP: {_client_addr(request)})")
        return HTTPException(status_code=401, detail=detail, headers={"WWW-Authenticate": "Bearer"})

    def authorize(self, request: Request) -> Identity:
        header = request.headers.get("Authorization")
        if not header:
            raise self._reject(request, "Authorization header required", "no Authorization header")

        # Case-sensitive, replaced once. "bearer xyz" is left untouched and fails to verify.
        token = header.replace(_BEARER_PREFIX, "", 1)
        try:
            claims = self.tokens.verify(token)
        except InvalidTokenError as e:
            raise self._reject(request, "Invalid token", f"{type(e).__name__}: {e}")

        request.state.username = claims.username
        return Identity(username=claims.username, scheme="bearer")


def parse_basic_credentials(header: Optional[str]) -> Optional[Tuple[str, str]]:
    """Decode an `Authorization: Basic ...` header into (username, password)."""
    scheme, param = get_authorization_scheme_param(header)
    if not header or scheme.lower() != "basic" or not param:
        return None
    try:
        decoded = base64.b64decode(param, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    username, sep, password = decoded.partition(":")
    if not sep:
        return None
    return username, password


class BasicGateway(Gateway):
    """HTTP Basic credentials checked against the users table on every request.

    Unknown user and wrong password produce byte-identical responses. Only
    the server log says which one it was.
    """

    def __init__(self, store: CredentialStore, hasher: PasswordHasher, *, realm: str = "Restricted"):
        self.store = store
        self.hasher = hasher
        self.realm = realm

    @property
    def _challenge(self) -> Dict[str, str]:
        return {"WWW-Authenticate": f'Basic realm="{self.realm}"'}

    def _reject(self, request: Request, reason: str) -> HTTPException:
        _debug(f"Auth failed: {reason} (IP: {_client_addr(request)})")
        return HTTPException(status_code=401, detail="Unauthorized", headers=self._challenge)

    def _check(self, username: str, password: str) -> None:
        stored_hash = self.store.get_password_hash(username)
        if stored_hash is None:
            self.hasher.dummy_verify()
            raise UnknownUserError(username)
        if not self.hasher.verify(stored_hash, password):
            raise PasswordMismatchError(username)

    def authorize(self, request: Request) -> Identity:
        creds = parse_basic_credentials(request.headers.get("Authorization"))
        if creds is None:
            raise self._reject(request, "No basic auth credentials provided")
        username, password = creds

        try:
            self._check(username, password)
        except UnknownUserError:
            raise self._reject(request, f"User '{username}' not found")
        except PasswordMismatchError:
            raise self._reject(request, f"Invalid password for user '{username}'")
        except Exception as e:
            _debug(f"Auth lookup error for user '{username}' (IP: {_client_addr(request)}): {e!r}")
            raise HTTPException(status_code=500, detail="Database error")

        return Identity(username=normalize_username(username), scheme="basic")
