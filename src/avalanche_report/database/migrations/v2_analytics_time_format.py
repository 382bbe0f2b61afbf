"""Rewrite analytics times to ISO 8601 with millisecond precision.

Older rows were stored as ``2023-02-07 15:00:00.123456 +04:00``.
"""

import sqlite3
from datetime import datetime

from avalanche_report.utils.time_utils import format_datetime


OLD_FORMAT = "%Y-%m-%d %H:%M:%S.%f %z"

def run(conn: sqlite3.Connection) -> None:
    conn.execute("ALTER TABLE analytics RENAME COLUMN time TO old_time")
    conn.execute("ALTER TABLE analytics ADD COLUMN time TEXT")

    rows = conn.execute("SELECT id, old_time FROM analytics WHERE old_time IS NOT NULL").fetchall()
    for row_id, old_time in rows:
        time = datetime.strptime(old_time, OLD_FORMAT)
        conn.execute(
            "UPDATE analytics SET time = ? WHERE id = ?",
            (format_datetime(time), row_id)
        )

    conn.execute("ALTER TABLE analytics DROP COLUMN old_time")
