import os
from dataclasses import dataclass
from typing import Optional

# Optional: load a local .env file if present.
try:
    from dotenv import load_dotenv

    load_dotenv()
except Exception:
    # If python-dotenv isn't installed or .env isn't present, that's fine.
    pass


def _env_bool(name: str, default: Optional[bool] = None) -> Optional[bool]:
    """Parse a boolean environment variable.

    Returns:
      - True/False if the env var is set to a recognizable value
      - default if unset or unrecognized

    Accepted truthy: 1, true, yes, y, on
    Accepted falsy:  0, false, no, n, off
    """

    raw = os.environ.get(name)
    if raw is None:
        return default
    v = raw.strip().lower()
    if v in ("1", "true", "yes", "y", "on"):
        return True
    if v in ("0", "false", "no", "n", "off"):
        return False
    return default


@dataclass(frozen=True)
class Config:
    """Runtime configuration.

    Everything is read from the environment (or a .env file) once, when the
    dataclass is instantiated. Tests build their own instance with explicit
    values instead of touching the environment.
    """

    # -----------------
    # Storage
    # -----------------
    # Preferred: set VISITDESK_DATABASE_URL (or DATABASE_URL) to use Postgres.
    # Fallback: VISITDESK_DB_PATH for SQLite.
    DB_DSN: str = (
        os.environ.get("VISITDESK_DATABASE_URL")
        or os.environ.get("DATABASE_URL")
        or os.environ.get("VISITDESK_DB_PATH", "./visitdesk.sqlite")
    )

    # -----------------
    # Auth (JWT)
    # -----------------
    # NOTE: In dev, this defaults to a fixed string so you can get started.
    # In production, you MUST set AUTH_JWT_SECRET to a strong random value.
    # Changing it invalidates every outstanding token.
    AUTH_JWT_SECRET: str = os.environ.get("AUTH_JWT_SECRET", "dev_change_me")
    AUTH_TOKEN_TTL_SECONDS: int = int(os.environ.get("AUTH_TOKEN_TTL_SECONDS", "86400"))  # 24 hours

    # pbkdf2_sha256 rounds; higher is slower for attackers and for us.
    AUTH_PASSWORD_ROUNDS: int = int(os.environ.get("AUTH_PASSWORD_ROUNDS", "29000"))

    # Realm advertised in WWW-Authenticate for the admin console.
    AUTH_BASIC_REALM: str = os.environ.get("AUTH_BASIC_REALM", "Restricted")

    # Bootstrap first admin user if users table is empty
    AUTH_BOOTSTRAP_ADMIN_USERNAME: str = os.environ.get("AUTH_BOOTSTRAP_ADMIN_USERNAME", "admin")
    AUTH_BOOTSTRAP_ADMIN_PASSWORD: str = os.environ.get("AUTH_BOOTSTRAP_ADMIN_PASSWORD", "admin")

    # -----------------
    # Visit counter
    # -----------------
    # When enabled, GET / requires a bearer token (the console frontend always sends one).
    VISITS_REQUIRE_AUTH: bool = _env_bool("VISITS_REQUIRE_AUTH", True) is True

    # -----------------
    # CORS (development)
    # -----------------
    # If you develop the frontend with Vite on :5173 and the API on :8080, allow that origin.
    # In production (same origin behind a reverse proxy) CORS is not required.
    CORS_ALLOW_ORIGINS: str = os.environ.get(
        "CORS_ALLOW_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173",
    )


def load_config() -> Config:
    return Config()
