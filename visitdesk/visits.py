"""Visit counter.

The total is the number of rows in the append-only `visits` log. Recording a
visit bumps the `visit_counter` row and appends to the log inside one
transaction. The UPDATE takes a write lock on the counter row (Postgres) or
the database (SQLite), so concurrent callers are serialized and every caller
gets a distinct value.
"""

from __future__ import annotations

from visitdesk.db import connect
from visitdesk.util.time import utcnow_iso


COUNTER_NAME = "visits"


class VisitCounter:
    def __init__(self, db_dsn: str):
        self.db_dsn = db_dsn

    def record_visit(self) -> int:
        """Append one visit and return the new total (rows before insert + 1)."""
        with connect(self.db_dsn) as conn:
            # fetchall() so the RETURNING statement is fully stepped before the insert/commit.
            rows = conn.execute(
                "UPDATE visit_counter SET count = count + 1 WHERE name=? RETURNING count",
                (COUNTER_NAME,),
            ).fetchall()
            if not rows:
                raise RuntimeError("visit_counter_missing (was init_db run?)")
            conn.execute("INSERT INTO visits (visited_at) VALUES (?)", (utcnow_iso(),))
        return int(rows[0]["count"])

    def current_count(self) -> int:
        with connect(self.db_dsn) as conn:
            row = conn.execute(
                "SELECT count FROM visit_counter WHERE name=?",
                (COUNTER_NAME,),
            ).fetchone()
        return int(row["count"]) if row is not None else 0
