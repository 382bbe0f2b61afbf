"""SQLite storage shared by every service."""

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from avalanche_report.exceptions import DatabaseError
from avalanche_report.utils.logging_utils import LoggerMixin


class Database(LoggerMixin):
    """Opens short lived connections to the SQLite database file.

    SQLite serializes writers, so concurrent callers each open their own
    connection and rely on the busy timeout instead of explicit locks.
    """

    BUSY_TIMEOUT = 30.0

    def __init__(self, path: str | Path):
        super().__init__()
        self.path = Path(path)

    @classmethod
    def open(cls, data_dir: str | Path) -> "Database":
        """Database at ``data_dir/db.sqlite3``, creating the directory."""
        data_dir = Path(data_dir)
        data_dir.mkdir(parents=True, exist_ok=True)
        database = cls(data_dir / "db.sqlite3")
        with database.connection() as conn:
            conn.execute("PRAGMA journal_mode=WAL")
        return database

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Connection committed on success and rolled back on error."""
        try:
            conn = sqlite3.connect(self.path, timeout=self.BUSY_TIMEOUT)
        except sqlite3.Error as e:
            raise DatabaseError(f"Unable to open database {self.path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except BaseException:
            conn.rollback()
            raise
        finally:
            conn.close()
