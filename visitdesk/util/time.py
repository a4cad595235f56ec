from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def utcnow_iso() -> str:
    """Current UTC time as ISO-8601 string with Z.

    Always carries six fractional digits so values sort lexicographically in time order.
    """
    return utcnow().isoformat(timespec="microseconds").replace("+00:00", "Z")
