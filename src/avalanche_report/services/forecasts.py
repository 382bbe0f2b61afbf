"""Resolve published forecast files and prepare them for display."""

from collections.abc import Callable
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from datetime import datetime
from datetime import timedelta
from datetime import timezone
from enum import Enum
from typing import Any
from zoneinfo import ZoneInfo

from avalanche_report.api.google_drive import PDF_MIME_TYPE
from avalanche_report.api.google_drive import FileMetadata
from avalanche_report.api.google_drive import GoogleDriveClient
from avalanche_report.exceptions import ForecastNameError
from avalanche_report.exceptions import ForecastNotFoundError
from avalanche_report.exceptions import UnsupportedMimeTypeError
from avalanche_report.services.forecast_files import SPREADSHEET_MIME_TYPES
from avalanche_report.services.forecast_files import FetchMode
from avalanche_report.services.forecast_files import ForecastFileCache
from avalanche_report.spreadsheet.parser import is_language_identifier
from avalanche_report.spreadsheet.types import Forecast
from avalanche_report.utils.logging_utils import LoggerMixin
from avalanche_report.utils.time_utils import utc_now


NAME_TIME_FORMAT = "%Y-%m-%dT%H:%M"
DISPLAY_TIME_FORMAT = "%H:%M %A %d %B %Y"
JSON_SUFFIX = ".json"

class ForecastView(Enum):
    HTML = "html"
    JSON = "json"
    DOWNLOAD = "download"

@dataclass(frozen=True)
class ForecastDetails:
    area: str
    time: datetime
    forecaster: str

@dataclass(frozen=True)
class ForecastFileDetails:
    forecast: ForecastDetails
    language: str | None = None

def anchor_local_time(naive: datetime, zone: ZoneInfo) -> datetime:
    """Attach ``zone`` to a wall clock time.

    The time is first read at the zone's standard offset and then
    converted to the offset actually in force at that instant, so wall
    times skipped by a daylight saving transition land after it.
    """
    probe = naive.replace(tzinfo=zone)
    standard = probe.utcoffset() - (probe.dst() or timedelta(0))
    return naive.replace(tzinfo=timezone(standard)).astimezone(zone)

def parse_forecast_name(
    file_name: str,
    area_names: Mapping[str, str],
    time_zones: Mapping[str, str]
) -> ForecastFileDetails:
    """Parse ``Area_YYYY-MM-DDTHH:MM_Forecaster[.lang].ext``."""
    name_parts = file_name.split('.')
    details = name_parts[0]
    if not details:
        raise ForecastNameError("File name is empty", file_name)

    details_split = details.split('_')
    if len(details_split) < 2 or not details_split[1]:
        raise ForecastNameError("No time specified", file_name)
    if len(details_split) < 3 or not details_split[2]:
        raise ForecastNameError("No forecaster specified", file_name)
    area, time_string, forecaster = details_split[:3]

    area_id = area_names.get(area)
    if area_id is None:
        raise ForecastNameError(f"Unknown area {area!r}", file_name)
    zone_name = time_zones.get(area_id)
    if zone_name is None:
        raise ForecastNameError(f"No time zone configured for area {area_id!r}", file_name)

    try:
        naive = datetime.strptime(time_string, NAME_TIME_FORMAT)
    except ValueError as e:
        raise ForecastNameError(f"Error parsing time {time_string!r}", file_name) from e
    time = anchor_local_time(naive, ZoneInfo(zone_name))

    language = None
    if len(name_parts) > 2:
        language = name_parts[1]
        if not is_language_identifier(language):
            raise ForecastNameError(f"Unable to parse language {language!r}", file_name)

    return ForecastFileDetails(
        forecast=ForecastDetails(area=area, time=time, forecaster=forecaster),
        language=language,
    )

@dataclass
class FormattedForecast:
    """Forecast with the values templates need precomputed."""
    forecast: Forecast
    is_current: bool
    formatted_time: str
    formatted_valid_until: str
    map: dict[str, Any] = field(default_factory=dict)

    def context(self) -> dict[str, Any]:
        return {
            "forecast": self.forecast.to_dict(),
            "is_current": self.is_current,
            "formatted_time": self.formatted_time,
            "formatted_valid_until": self.formatted_valid_until,
            "map": self.map,
        }

def format_forecast(
    forecast: Forecast,
    now: datetime,
    map_config: dict[str, Any] | None = None,
    time_zone: ZoneInfo | None = None
) -> FormattedForecast:
    local_time = forecast.time.astimezone(time_zone) if time_zone else forecast.time
    local_valid_until = local_time + forecast.valid_for
    return FormattedForecast(
        forecast=forecast,
        is_current=forecast.is_current(now),
        formatted_time=local_time.strftime(DISPLAY_TIME_FORMAT),
        formatted_valid_until=local_valid_until.strftime(DISPLAY_TIME_FORMAT),
        map=dict(map_config or {}),
    )

@dataclass
class ForecastResponse:
    view: ForecastView
    file: FileMetadata
    forecast: Forecast | None = None
    formatted: FormattedForecast | None = None
    data: bytes | None = None

@dataclass
class ForecastIndexFile:
    name: str
    mime_type: str
    language: str | None

@dataclass
class ForecastGroup:
    details: ForecastDetails
    files: list[ForecastIndexFile] = field(default_factory=list)

@dataclass
class ForecastIndex:
    forecasts: list[ForecastGroup]
    errors: list[ForecastNameError]

class ForecastService(LoggerMixin):
    """Serves files from the published Google Drive folder.

    Only names present in the published folder listing can be requested.
    """

    def __init__(
        self,
        client: GoogleDriveClient,
        cache: ForecastFileCache,
        published_folder_id: str,
        area_names: Mapping[str, str],
        time_zones: Mapping[str, str],
        map_config: dict[str, Any] | None = None,
        clock: Callable[[], datetime] = utc_now
    ):
        super().__init__()
        self.client = client
        self.cache = cache
        self.published_folder_id = published_folder_id
        self.area_names = dict(area_names)
        self.time_zones = dict(time_zones)
        self.map_config = map_config or {}
        self._clock = clock

    def list_published(self) -> list[FileMetadata]:
        return self.client.list_files(self.published_folder_id)

    def _time_zone(self, area_id: str) -> ZoneInfo | None:
        zone = self.time_zones.get(area_id)
        return ZoneInfo(zone) if zone else None

    def get_forecast_file(self, file_name: str) -> ForecastResponse:
        json_view = file_name.endswith(JSON_SUFFIX)
        if json_view:
            file_name = file_name[:-len(JSON_SUFFIX)]

        file = next((f for f in self.list_published() if f.name == file_name), None)
        if file is None:
            raise ForecastNotFoundError(file_name)

        if file.mime_type in SPREADSHEET_MIME_TYPES:
            view = ForecastView.JSON if json_view else ForecastView.HTML
        elif file.mime_type == PDF_MIME_TYPE and not json_view:
            view = ForecastView.DOWNLOAD
        else:
            raise UnsupportedMimeTypeError(file.mime_type, file.name)

        if view == ForecastView.DOWNLOAD:
            data = self.cache.get_or_fetch(file, FetchMode.FILE)
            return ForecastResponse(view=view, file=file, data=data)

        forecast = self.cache.get_or_fetch(file, FetchMode.FORECAST)
        response = ForecastResponse(view=view, file=file, forecast=forecast)
        if view == ForecastView.HTML:
            response.formatted = format_forecast(
                forecast,
                self._clock(),
                self.map_config,
                self._time_zone(forecast.area),
            )
        return response

    def list_forecasts(self) -> ForecastIndex:
        """Published forecasts grouped by area, time and forecaster, newest first."""
        groups: dict[ForecastDetails, ForecastGroup] = {}
        errors = []
        for file in self.list_published():
            try:
                details = parse_forecast_name(file.name, self.area_names, self.time_zones)
            except ForecastNameError as e:
                self.warning("Unable to parse forecast file name", file=file.name, error=e.message)
                errors.append(e)
                continue
            group = groups.setdefault(details.forecast, ForecastGroup(details=details.forecast))
            group.files.append(ForecastIndexFile(
                name=file.name,
                mime_type=file.mime_type,
                language=details.language,
            ))

        forecasts = sorted(groups.values(), key=lambda group: group.details.time, reverse=True)
        return ForecastIndex(forecasts=forecasts, errors=errors)
