"""Schema migrations.

Migrations are applied in ascending version order, each one recorded in
``schema_history`` once it has run. A migration is either a SQL script
shipped beside this module or a Python function taking a connection.
"""

import base64
import hashlib
import sqlite3
from collections.abc import Callable
from dataclasses import dataclass
from importlib import resources

from avalanche_report.database import Database
from avalanche_report.database.migrations import v2_analytics_time_format
from avalanche_report.database.migrations import v3_analytics_uri_parameters
from avalanche_report.exceptions import MigrationError
from avalanche_report.utils.logging_utils import get_logger
from avalanche_report.utils.time_utils import format_datetime
from avalanche_report.utils.time_utils import utc_now


logger = get_logger(__name__)

@dataclass(frozen=True)
class SqlMigration:
    sql: str

    @property
    def checksum(self) -> str:
        """SHA-256 of the script, base64 encoded without padding."""
        digest = hashlib.sha256(self.sql.encode("utf-8")).digest()
        return base64.b64encode(digest).decode("ascii").rstrip("=")

    def run(self, conn: sqlite3.Connection) -> None:
        # executescript commits any pending transaction before it starts,
        # so the transaction has to be opened inside the script.
        conn.executescript("BEGIN;\n" + self.sql)

@dataclass(frozen=True)
class CodeMigration:
    function: Callable[[sqlite3.Connection], None]

    @property
    def checksum(self) -> None:
        return None

    def run(self, conn: sqlite3.Connection) -> None:
        conn.execute("BEGIN")
        self.function(conn)

@dataclass(frozen=True)
class Migration:
    version: int
    name: str
    kind: SqlMigration | CodeMigration

    def run(self, conn: sqlite3.Connection) -> None:
        """Run inside a transaction left open for the caller to commit."""
        self.kind.run(conn)

def _sql(file_name: str) -> SqlMigration:
    script = resources.files(__name__).joinpath(file_name).read_text(encoding="utf-8")
    return SqlMigration(script)

def migrations() -> list[Migration]:
    """All migrations in version order."""
    return [
        Migration(0, "schema_history", _sql("v0_schema_history.sql")),
        Migration(1, "analytics", _sql("v1_analytics.sql")),
        Migration(2, "analytics_time_format", CodeMigration(v2_analytics_time_format.run)),
        Migration(3, "analytics_uri_parameters", CodeMigration(v3_analytics_uri_parameters.run)),
        Migration(4, "forecast_files", _sql("v4_forecast_files.sql")),
        Migration(5, "forecast_json_cache", _sql("v5_forecast_json_cache.sql")),
        Migration(6, "current_weather_cache", _sql("v6_current_weather_cache.sql")),
        Migration(7, "forecast_areas", _sql("v7_forecast_areas.sql")),
        Migration(8, "analytics_not_null", _sql("v8_analytics_not_null.sql")),
        Migration(9, "forecast_files_parsed_forecast", _sql("v9_forecast_files_parsed_forecast.sql")),
    ]

def current_version(conn: sqlite3.Connection) -> int | None:
    """Latest applied version, ``None`` for a database without history."""
    probe = conn.execute(
        "SELECT name FROM pragma_table_info('schema_history') LIMIT 1"
    ).fetchone()
    if probe is None:
        return None
    row = conn.execute("SELECT MAX(version) FROM schema_history").fetchone()
    return row[0]

def record_migration(conn: sqlite3.Connection, migration: Migration) -> None:
    conn.execute(
        "INSERT INTO schema_history (version, name, applied_on, checksum) VALUES (?, ?, ?, ?)",
        (migration.version, migration.name, format_datetime(utc_now()), migration.kind.checksum)
    )

def run_migrations(
    database: Database,
    all_migrations: list[Migration] | None = None
) -> list[Migration]:
    """Apply every migration newer than the database's current version.

    Returns the migrations that were applied. Raises ``MigrationError``
    on the first failure; migrations applied before it stay recorded.
    """
    all_migrations = migrations() if all_migrations is None else all_migrations
    applied = []

    with database.connection() as conn:
        version = current_version(conn)
        pending = [
            migration for migration in all_migrations
            if version is None or migration.version > version
        ]

        for migration in pending:
            logger.info("Running migration %d %s", migration.version, migration.name)
            try:
                migration.run(conn)
                record_migration(conn, migration)
                conn.commit()
            except (sqlite3.Error, ValueError) as e:
                conn.rollback()
                raise MigrationError(
                    f"Migration {migration.version} {migration.name} failed: {e}",
                    migration.version,
                    migration.name
                ) from e
            applied.append(migration)

    logger.info("All migrations completed successfully.")
    return applied
