"""Strip query strings from stored analytics URIs, keeping the path."""

import sqlite3
from urllib.parse import urlsplit


def run(conn: sqlite3.Connection) -> None:
    rows = conn.execute("SELECT id, uri FROM analytics WHERE uri IS NOT NULL").fetchall()
    for row_id, uri in rows:
        path = urlsplit(uri).path
        if path != uri:
            conn.execute("UPDATE analytics SET uri = ? WHERE id = ?", (path, row_id))
