"""Configuration type definitions."""

from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from typing import Any


DEFAULT_PUBLISHED_FOLDER_ID = "1so1EaO5clMvBUecCszKlruxnf0XpbWgr"

@dataclass
class LoggingOptions:
    """Logging configuration."""
    level: str = "INFO"
    file: str | None = None
    max_size: int = 10  # in MB
    backup_count: int = 5

@dataclass
class GoogleDriveOptions:
    """Document store configuration."""
    published_folder_id: str = DEFAULT_PUBLISHED_FOLDER_ID

@dataclass
class AmbientWeatherSource:
    """Credentials of a station reporting to Ambient Weather."""
    api_key: str
    application_key: str
    device_mac_address: str

    def __repr__(self) -> str:
        return f"AmbientWeatherSource(device_mac_address={self.device_mac_address!r})"

@dataclass
class WeatherStationOptions:
    """A weather station and its data source."""
    id: str
    source: AmbientWeatherSource

@dataclass
class CurrentWeatherOptions:
    """Polling schedule for weather stations, in seconds."""
    interval: float = 300.0
    each_station_interval: float = 5.0

@dataclass
class BackupScheduleOptions:
    """Backup schedule, in seconds between runs."""
    interval: float = 24 * 60 * 60

@dataclass
class BackupOptions:
    """Off-site database backup configuration."""
    s3_endpoint: str
    s3_bucket_name: str
    s3_bucket_region: str
    aws_access_key_id: str
    schedule: BackupScheduleOptions = field(default_factory=BackupScheduleOptions)

@dataclass
class AdminOptions:
    """Admin surface configuration."""
    enabled: bool = False

@dataclass
class Options:
    """Global options for the application."""
    data_dir: Path = Path("data")
    base_url: str = "http://localhost:3000/"
    listen_host: str = "127.0.0.1"
    listen_port: int = 3000
    analytics_batch_rate: int = 60
    default_language: str = "en-UK"
    secrets_dir: Path = Path("secrets")
    logging: LoggingOptions = field(default_factory=LoggingOptions)
    google_drive: GoogleDriveOptions = field(default_factory=GoogleDriveOptions)
    admin: AdminOptions = field(default_factory=AdminOptions)
    weather_stations: list[WeatherStationOptions] = field(default_factory=list)
    current_weather: CurrentWeatherOptions = field(default_factory=CurrentWeatherOptions)
    backup: BackupOptions | None = None
    # area id -> IANA time zone name
    time_zones: dict[str, str] = field(default_factory=lambda: {"gudauri": "Asia/Tbilisi"})
    # area name used in file names -> area id
    area_names: dict[str, str] = field(default_factory=lambda: {"Gudauri": "gudauri"})
    map: dict[str, Any] = field(default_factory=dict)

    @property
    def listen_address(self) -> str:
        return f"{self.listen_host}:{self.listen_port}"

    @property
    def database_path(self) -> Path:
        return self.data_dir / "db.sqlite3"
