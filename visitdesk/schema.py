"""Database schema for visitdesk.

Timestamps are ISO-8601 TEXT (UTC, with 'Z') so the same queries work on SQLite and
Postgres, and ISO strings sort lexicographically in time order (the admin listing
relies on that for ORDER BY created_at).

NOTE: The Postgres schema is generated from the SQLite schema with a small set of
transformations (autoincrement + upsert syntax is already portable).
"""

from __future__ import annotations

import re


SCHEMA_SQLITE = r"""
PRAGMA foreign_keys = ON;

-- Users / Auth
-- Only password hashes are stored, tokens are stateless JWTs.
-- NOTE: keep semicolons out of comments, the Postgres path splits on them.
CREATE TABLE IF NOT EXISTS users (
    username TEXT PRIMARY KEY,
    password_hash TEXT NOT NULL,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_users_created_at ON users (created_at);

-- Visits: append-only event log, one row per visit.
CREATE TABLE IF NOT EXISTS visits (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    visited_at TEXT NOT NULL
);

-- Running total for the visits log. Updated in the same transaction as each
-- insert into visits so that count == number of rows in visits.
CREATE TABLE IF NOT EXISTS visit_counter (
    name TEXT PRIMARY KEY,
    count INTEGER NOT NULL DEFAULT 0
);
"""


def _sqlite_to_postgres(ddl: str) -> str:
    # Remove SQLite pragmas
    lines: list[str] = []
    for line in ddl.splitlines():
        if line.strip().upper().startswith("PRAGMA "):
            continue
        lines.append(line)
    out = "\n".join(lines)

    # AUTOINCREMENT primary keys
    out = re.sub(
        r"INTEGER\s+PRIMARY\s+KEY\s+AUTOINCREMENT",
        "BIGSERIAL PRIMARY KEY",
        out,
        flags=re.IGNORECASE,
    )
    out = re.sub(r"\bAUTOINCREMENT\b", "", out, flags=re.IGNORECASE)

    return out


SCHEMA_POSTGRES = _sqlite_to_postgres(SCHEMA_SQLITE)


def get_schema_sql(dialect: str) -> str:
    d = (dialect or "").lower()
    if d.startswith("post"):
        return SCHEMA_POSTGRES
    return SCHEMA_SQLITE
