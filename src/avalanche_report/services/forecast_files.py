"""Local cache of forecast files downloaded from Google Drive.

A cached row is valid only while its ``last_modified`` equals the
modified time Google Drive reports for the file. Drive occasionally
changes a spreadsheet's content without updating its modified time; such
edits stay invisible until the file is modified again.
"""

import json
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from avalanche_report.api.google_drive import SPREADSHEET_MIME_TYPE
from avalanche_report.api.google_drive import XLSX_MIME_TYPE
from avalanche_report.api.google_drive import FileMetadata
from avalanche_report.api.google_drive import GoogleDriveClient
from avalanche_report.database import Database
from avalanche_report.exceptions import UnsupportedMimeTypeError
from avalanche_report.spreadsheet.registry import ForecastSchemas
from avalanche_report.spreadsheet.types import Forecast
from avalanche_report.spreadsheet.version import Version
from avalanche_report.utils.logging_utils import LoggerMixin
from avalanche_report.utils.logging_utils import log_execution
from avalanche_report.utils.time_utils import format_datetime
from avalanche_report.utils.time_utils import parse_datetime


SPREADSHEET_MIME_TYPES = frozenset({SPREADSHEET_MIME_TYPE, XLSX_MIME_TYPE})

class FetchMode(Enum):
    FORECAST = "forecast"
    FILE = "file"

@dataclass
class CachedFile:
    google_drive_id: str
    last_modified: datetime
    file_blob: bytes
    parsed_forecast: str | None = None
    schema_version: str | None = None

class ForecastFileCache(LoggerMixin):
    """Fetches forecast files through the cache in ``forecast_files``.

    Concurrent misses for the same file may each fetch and store it; the
    last write wins.
    """

    def __init__(self, database: Database, client: GoogleDriveClient, schemas: ForecastSchemas):
        super().__init__()
        self.database = database
        self.client = client
        self.schemas = schemas

    def get_cached(self, google_drive_id: str) -> CachedFile | None:
        with self.database.connection() as conn:
            row = conn.execute(
                "SELECT google_drive_id, last_modified, file_blob, parsed_forecast, schema_version "
                "FROM forecast_files WHERE google_drive_id = ?",
                (google_drive_id,)
            ).fetchone()
        if row is None:
            return None
        return CachedFile(
            google_drive_id=row["google_drive_id"],
            last_modified=parse_datetime(row["last_modified"]),
            file_blob=row["file_blob"],
            parsed_forecast=row["parsed_forecast"],
            schema_version=row["schema_version"],
        )

    def store(self, cached: CachedFile) -> None:
        with self.database.connection() as conn:
            conn.execute(
                "INSERT INTO forecast_files "
                "(google_drive_id, last_modified, file_blob, parsed_forecast, schema_version) "
                "VALUES (?, ?, ?, ?, ?) "
                "ON CONFLICT(google_drive_id) DO UPDATE SET "
                "last_modified = excluded.last_modified, "
                "file_blob = excluded.file_blob, "
                "parsed_forecast = excluded.parsed_forecast, "
                "schema_version = excluded.schema_version",
                (
                    cached.google_drive_id,
                    format_datetime(cached.last_modified),
                    cached.file_blob,
                    cached.parsed_forecast,
                    cached.schema_version,
                )
            )

    def _store_parsed(self, google_drive_id: str, parsed_forecast: str, schema_version: str) -> None:
        with self.database.connection() as conn:
            conn.execute(
                "UPDATE forecast_files SET parsed_forecast = ?, schema_version = ? "
                "WHERE google_drive_id = ?",
                (parsed_forecast, schema_version, google_drive_id)
            )

    @log_execution()
    def _fetch(self, file: FileMetadata, mode: FetchMode) -> bytes:
        if mode == FetchMode.FORECAST:
            if file.mime_type == SPREADSHEET_MIME_TYPE:
                return self.client.export_file(file.id, XLSX_MIME_TYPE).read()
            if file.mime_type == XLSX_MIME_TYPE:
                return self.client.get_file(file.id).read()
            raise UnsupportedMimeTypeError(file.mime_type, file.name)
        return self.client.get_file(file.id).read()

    def _parse(self, data: bytes) -> tuple[Forecast, str, str]:
        forecast, options = self.schemas.parse(data)
        return forecast, json.dumps(forecast.to_dict()), str(options.schema_version)

    def _reusable(self, cached: CachedFile) -> Forecast | None:
        """Previously parsed forecast, when the schema that produced it still applies."""
        if cached.parsed_forecast is None or cached.schema_version is None:
            return None
        try:
            forecast = Forecast.from_dict(json.loads(cached.parsed_forecast))
        except (KeyError, TypeError, ValueError) as e:
            self.warning("Discarding unreadable parsed forecast", file=cached.google_drive_id, error=str(e))
            return None
        options = self.schemas.for_template(forecast.template_version)
        if options is None or options.schema_version != Version.parse(cached.schema_version):
            return None
        return forecast

    def get_or_fetch(self, file: FileMetadata, mode: FetchMode) -> Forecast | bytes:
        """Cached forecast or file bytes, fetching from Google Drive when stale."""
        if mode == FetchMode.FORECAST and file.mime_type not in SPREADSHEET_MIME_TYPES:
            raise UnsupportedMimeTypeError(file.mime_type, file.name)

        cached = self.get_cached(file.id)
        if cached is not None and cached.last_modified == file.modified_time:
            self.debug("Forecast file cache hit", file=file.name)
            if mode == FetchMode.FILE:
                return cached.file_blob
            forecast = self._reusable(cached)
            if forecast is not None:
                return forecast
            forecast, parsed, schema_version = self._parse(cached.file_blob)
            self._store_parsed(file.id, parsed, schema_version)
            return forecast

        self.info(
            "Fetching forecast file",
            file=file.name,
            modified=file.modified_time.isoformat(),
            cached=cached is not None
        )
        data = self._fetch(file, mode)
        entry = CachedFile(google_drive_id=file.id, last_modified=file.modified_time, file_blob=data)

        if mode == FetchMode.FILE:
            self.store(entry)
            return data

        try:
            forecast, entry.parsed_forecast, entry.schema_version = self._parse(data)
        finally:
            self.store(entry)
        return forecast
