"""Application initialization."""

from dataclasses import dataclass
from dataclasses import field

from fastapi import FastAPI

from avalanche_report.api.ambient_weather import AmbientWeatherClient
from avalanche_report.api.google_drive import GoogleDriveClient
from avalanche_report.config.secrets import Secrets
from avalanche_report.config.types import Options
from avalanche_report.database import Database
from avalanche_report.database.backup import BackupScheduler
from avalanche_report.database.backup import S3BackupUploader
from avalanche_report.database.migrations import run_migrations
from avalanche_report.exceptions import ConfigError
from avalanche_report.server import AppState
from avalanche_report.server import create_app
from avalanche_report.services.analytics import AnalyticsPipeline
from avalanche_report.services.current_weather import CurrentWeatherCacheService
from avalanche_report.services.current_weather import WeatherStation
from avalanche_report.services.forecast_files import ForecastFileCache
from avalanche_report.services.forecasts import ForecastService
from avalanche_report.spreadsheet.registry import ForecastSchemas
from avalanche_report.utils.logging_utils import LoggerMixin


@dataclass
class Application(LoggerMixin):
    """Owns the database, the background workers and the web app."""
    options: Options
    secrets: Secrets
    database: Database
    schemas: ForecastSchemas
    analytics: AnalyticsPipeline
    forecasts: ForecastService
    weather: CurrentWeatherCacheService | None = None
    backup: BackupScheduler | None = None
    web: FastAPI = field(init=False)

    def __post_init__(self) -> None:
        super().__init__()
        self.web = create_app(AppState(
            database=self.database,
            forecasts=self.forecasts,
            analytics=self.analytics,
            schemas=self.schemas,
            secret_values=self.secrets.values(),
            admin_enabled=self.options.admin.enabled,
        ))

    @classmethod
    def build(cls, options: Options, secrets: Secrets) -> "Application":
        """Open the database, run migrations and wire up the services."""
        if secrets.google_drive_api_key is None:
            raise ConfigError("GOOGLE_DRIVE_API_KEY is required to serve forecasts")

        database = Database.open(options.data_dir)
        run_migrations(database)

        schemas = ForecastSchemas.load_packaged()
        client = GoogleDriveClient(secrets.google_drive_api_key.get_secret_value())
        forecasts = ForecastService(
            client,
            ForecastFileCache(database, client, schemas),
            options.google_drive.published_folder_id,
            options.area_names,
            options.time_zones,
            map_config=options.map,
        )

        weather = None
        if options.weather_stations:
            weather = CurrentWeatherCacheService(
                database,
                [
                    WeatherStation(id=station.id, source=AmbientWeatherClient(station.source))
                    for station in options.weather_stations
                ],
                options.current_weather.interval,
                options.current_weather.each_station_interval,
            )

        backup = None
        if options.backup is not None:
            if secrets.aws_secret_access_key is None:
                raise ConfigError("AWS_SECRET_ACCESS_KEY is required when backup is configured")
            backup = BackupScheduler(
                database,
                options.backup,
                S3BackupUploader(options.backup, secrets.aws_secret_access_key),
            )

        return cls(
            options=options,
            secrets=secrets,
            database=database,
            schemas=schemas,
            analytics=AnalyticsPipeline(database, options.analytics_batch_rate),
            forecasts=forecasts,
            weather=weather,
            backup=backup,
        )

    def start(self) -> None:
        self.analytics.start()
        if self.weather is not None:
            self.weather.start()
        if self.backup is not None:
            self.backup.start()
        self.info("Background workers started", weather=self.weather is not None, backup=self.backup is not None)

    def stop(self) -> None:
        if self.backup is not None:
            self.backup.stop()
        if self.weather is not None:
            self.weather.stop()
        self.analytics.stop()
        self.info("Background workers stopped")
