"""
Shared fixtures.

Every test gets its own SQLite file under tmp_path and its own signing secret,
so nothing leaks between tests.
"""

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
from fastapi.testclient import TestClient

from visitdesk.api.server import create_app
from visitdesk.auth import CredentialStore, PasswordHasher, TokenService
from visitdesk.config import Config
from visitdesk.db import init_db


TEST_SECRET = "test-secret-0123456789abcdef0123456789abcdef"
ADMIN_PASSWORD = "admin-pw"


@pytest.fixture()
def db_dsn(tmp_path: Path) -> str:
    dsn = str(tmp_path / "visitdesk-test.sqlite")
    init_db(dsn)
    return dsn


class CountingHasher(PasswordHasher):
    """Records how often a lookup miss burned a decoy hash check."""

    def __init__(self, rounds: int = 1000):
        super().__init__(rounds=rounds)
        self.dummy_calls = 0

    def dummy_verify(self) -> bool:
        self.dummy_calls += 1
        return super().dummy_verify()


@pytest.fixture()
def hasher() -> PasswordHasher:
    # Low round count keeps the suite fast; production default is much higher.
    return PasswordHasher(rounds=1000)


@pytest.fixture()
def store(db_dsn: str, hasher: PasswordHasher) -> CredentialStore:
    return CredentialStore(db_dsn, hasher=hasher)


@pytest.fixture()
def tokens() -> TokenService:
    return TokenService(secret=TEST_SECRET)


def make_config(db_dsn: str, **overrides) -> Config:
    values = dict(
        DB_DSN=db_dsn,
        AUTH_JWT_SECRET=TEST_SECRET,
        AUTH_TOKEN_TTL_SECONDS=86400,
        AUTH_PASSWORD_ROUNDS=1000,
        AUTH_BASIC_REALM="Restricted",
        AUTH_BOOTSTRAP_ADMIN_USERNAME="admin",
        AUTH_BOOTSTRAP_ADMIN_PASSWORD=ADMIN_PASSWORD,
        VISITS_REQUIRE_AUTH=False,
        CORS_ALLOW_ORIGINS="",
    )
    values.update(overrides)
    return Config(**values)


@pytest.fixture()
def cfg(tmp_path: Path) -> Config:
    return make_config(str(tmp_path / "visitdesk-app.sqlite"))


@pytest.fixture()
def client(cfg: Config):
    # Context manager runs the lifespan: schema init + admin bootstrap.
    with TestClient(create_app(cfg)) as test_client:
        yield test_client


@pytest.fixture()
def admin_auth():
    return ("admin", ADMIN_PASSWORD)
