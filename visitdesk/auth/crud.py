from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from visitdesk.db import connect
from visitdesk.util.time import utcnow_iso

from .errors import (
    PasswordMismatchError,
    ProtectedUserError,
    UnknownUserError,
    UserExistsError,
)
from .security import PasswordHasher


ADMIN_USERNAME = "admin"


def _debug(msg: str) -> None:
    print(f"[auth] {msg}")


def normalize_username(username: str) -> str:
    return (username or "").strip()


@dataclass(frozen=True)
class User:
    username: str
    created_at: str

    def to_public(self) -> Dict[str, Any]:
        return {"username": self.username, "created_at": self.created_at}


def _row_to_user(row: Any) -> User:
    return User(username=str(row["username"]), created_at=str(row["created_at"]))


class CredentialStore:
    """Users table access. Every call opens its own connection/transaction.

    Nothing is cached: each lookup hits the database, so deletes take effect on
    the next Basic-authenticated request.
    """

    def __init__(self, db_dsn: str, hasher: Optional[PasswordHasher] = None):
        self.db_dsn = db_dsn
        self.hasher = hasher or PasswordHasher()

    def get_password_hash(self, username: str) -> Optional[str]:
        u = normalize_username(username)
        if not u:
            return None
        with connect(self.db_dsn) as conn:
            row = conn.execute(
                "SELECT password_hash FROM users WHERE username=?",
                (u,),
            ).fetchone()
        if row is None:
            return None
        return str(row["password_hash"])

    def get_user(self, username: str) -> Optional[User]:
        u = normalize_username(username)
        if not u:
            return None
        with connect(self.db_dsn) as conn:
            row = conn.execute(
                "SELECT username, created_at FROM users WHERE username=?",
                (u,),
            ).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_users(self) -> List[User]:
        with connect(self.db_dsn) as conn:
            rows = conn.execute(
                "SELECT username, created_at FROM users ORDER BY created_at, username"
            ).fetchall()
        return [_row_to_user(r) for r in rows]

    def count_users(self) -> int:
        with connect(self.db_dsn) as conn:
            row = conn.execute("SELECT COUNT(*) AS n FROM users").fetchone()
        return int(row["n"])

    def authenticate(self, username: str, password: str) -> User:
        """Return the user for valid credentials.

        Raises UnknownUserError / PasswordMismatchError. Callers must not expose
        which one happened.
        """
        u = normalize_username(username)
        with connect(self.db_dsn) as conn:
            row = conn.execute(
                "SELECT username, password_hash, created_at FROM users WHERE username=?",
                (u,),
            ).fetchone() if u else None
        if row is None:
            self.hasher.dummy_verify()
            raise UnknownUserError(u)
        if not self.hasher.verify(str(row["password_hash"]), password):
            raise PasswordMismatchError(u)
        return _row_to_user(row)

    def create_user(self, username: str, password: str) -> User:
        u = normalize_username(username)
        if not u:
            raise ValueError("username_blank")
        if not password:
            raise ValueError("password_blank")

        password_hash = self.hasher.hash(password)
        now = utcnow_iso()
        with connect(self.db_dsn) as conn:
            existing = conn.execute("SELECT 1 FROM users WHERE username=?", (u,)).fetchone()
            if existing is not None:
                raise UserExistsError("username_exists")
            conn.execute(
                "INSERT INTO users (username, password_hash, created_at) VALUES (?,?,?)",
                (u, password_hash, now),
            )
        return User(username=u, created_at=now)

    def delete_user(self, username: str) -> bool:
        """Delete a user by name. Returns False when no row matched."""
        u = normalize_username(username)
        if u == ADMIN_USERNAME:
            raise ProtectedUserError("cannot_delete_admin")
        with connect(self.db_dsn) as conn:
            cur = conn.execute("DELETE FROM users WHERE username=?", (u,))
            deleted = cur.rowcount > 0
        return deleted

    def bootstrap_admin_if_needed(self, username: str, password: str) -> Optional[User]:
        """Create the first admin user if the users table is empty.

        Gives a fresh database a deterministic way into the admin console.
        Returns None when users already exist or when username/password are blank.
        """
        if self.count_users() > 0:
            return None

        u = normalize_username(username) or ADMIN_USERNAME
        if not password:
            return None
        user = self.create_user(u, password)
        _debug(f"Bootstrapped initial admin user: username={user.username}")
        return user
