"""Configuration loading for the avalanche report service.

Values are resolved with the precedence environment > config file >
defaults. The config file is YAML, found through the
``AVALANCHE_REPORT_CONFIG`` environment variable or as
``avalanche-report.yaml`` in the working directory.
"""

import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo
from zoneinfo import ZoneInfoNotFoundError

import yaml
from dotenv import load_dotenv

from avalanche_report.config.env import EnvConfig
from avalanche_report.config.types import AdminOptions
from avalanche_report.config.types import AmbientWeatherSource
from avalanche_report.config.types import BackupOptions
from avalanche_report.config.types import BackupScheduleOptions
from avalanche_report.config.types import DEFAULT_PUBLISHED_FOLDER_ID
from avalanche_report.config.types import CurrentWeatherOptions
from avalanche_report.config.types import GoogleDriveOptions
from avalanche_report.config.types import LoggingOptions
from avalanche_report.config.types import Options
from avalanche_report.config.types import WeatherStationOptions
from avalanche_report.config.utils import deep_merge
from avalanche_report.config.utils import resolve_path
from avalanche_report.exceptions import ConfigError


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "avalanche-report.yaml"

def _default_config() -> dict[str, Any]:
    defaults = Options()
    return {
        'data_dir': str(defaults.data_dir),
        'base_url': defaults.base_url,
        'listen_address': defaults.listen_address,
        'analytics_batch_rate': defaults.analytics_batch_rate,
        'default_language': defaults.default_language,
        'secrets_dir': str(defaults.secrets_dir),
        'logging': asdict(defaults.logging),
        'google_drive': asdict(defaults.google_drive),
        'admin': asdict(defaults.admin),
        'current_weather': asdict(defaults.current_weather),
        'time_zones': dict(defaults.time_zones),
        'area_names': dict(defaults.area_names),
        'map': {},
    }

def _get_config_file(config_file: str | Path | None) -> Path | None:
    if config_file is not None:
        path = resolve_path(config_file)
        if not path.is_file():
            raise ConfigError(f"Configuration file not found: {path}")
        return path
    from_env = EnvConfig.get_env_value(EnvConfig.CONFIG_FILE_VAR)
    if from_env:
        path = resolve_path(from_env)
        if not path.is_file():
            raise ConfigError(
                f"Configuration file named by {EnvConfig.CONFIG_FILE_VAR} not found: {path}"
            )
        return path
    default = Path(DEFAULT_CONFIG_FILE)
    return default if default.is_file() else None

def load_raw_config(config_file: str | Path | None = None) -> dict[str, Any]:
    """Load the merged configuration dictionary before validation."""
    load_dotenv()
    config = _default_config()

    path = _get_config_file(config_file)
    if path is not None:
        with open(path, encoding="utf-8") as f:
            try:
                loaded_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        if not isinstance(loaded_config, dict):
            raise ConfigError(f"Configuration file {path} must contain a mapping")
        config = deep_merge(config, loaded_config)
        logger.info("Configuration loaded from %s", path)
    else:
        logger.info("No configuration file found, using defaults")

    EnvConfig.update_config_from_env(config)
    return config

def _parse_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ('1', 'true', 'yes', 'on'):
        return True
    if isinstance(value, str) and value.lower() in ('0', 'false', 'no', 'off'):
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")

def _parse_positive_int(value: Any, name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from e
    if number <= 0:
        raise ConfigError(f"{name} must be positive, got {number}")
    return number

def _parse_seconds(value: Any, name: str) -> float:
    try:
        seconds = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name} must be a number of seconds, got {value!r}") from e
    if seconds < 0:
        raise ConfigError(f"{name} must not be negative, got {seconds}")
    return seconds

def _parse_listen_address(value: str) -> tuple[str, int]:
    host, sep, port = str(value).rpartition(':')
    if not sep or not host:
        raise ConfigError(f"listen_address must be host:port, got {value!r}")
    try:
        return host, int(port)
    except ValueError as e:
        raise ConfigError(f"listen_address has an invalid port: {value!r}") from e

def _parse_weather_stations(raw: dict[str, Any]) -> list[WeatherStationOptions]:
    stations = []
    for station_id, station in raw.items():
        source = (station or {}).get('source', {})
        ambient = source.get('ambient_weather') if isinstance(source, dict) else None
        if not ambient:
            raise ConfigError(
                f"Weather station {station_id!r} needs an ambient_weather source",
                {"station": station_id}
            )
        try:
            stations.append(WeatherStationOptions(
                id=str(station_id),
                source=AmbientWeatherSource(
                    api_key=ambient['api_key'],
                    application_key=ambient['application_key'],
                    device_mac_address=ambient['device_mac_address'],
                ),
            ))
        except KeyError as e:
            raise ConfigError(
                f"Weather station {station_id!r} is missing {e.args[0]!r}",
                {"station": station_id}
            ) from e
    return stations

def _parse_backup(raw: dict[str, Any] | None) -> BackupOptions | None:
    if not raw:
        return None
    try:
        schedule = raw.get('schedule') or {}
        return BackupOptions(
            s3_endpoint=raw['s3_endpoint'],
            s3_bucket_name=raw['s3_bucket_name'],
            s3_bucket_region=raw['s3_bucket_region'],
            aws_access_key_id=raw['aws_access_key_id'],
            schedule=BackupScheduleOptions(
                interval=_parse_seconds(
                    schedule.get('interval', BackupScheduleOptions.interval),
                    'backup.schedule.interval'
                )
            ),
        )
    except KeyError as e:
        raise ConfigError(f"backup configuration is missing {e.args[0]!r}") from e

def _validate_time_zones(time_zones: dict[str, str]) -> dict[str, str]:
    for area, zone in time_zones.items():
        try:
            ZoneInfo(zone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigError(
                f"Unknown time zone {zone!r} for area {area!r}",
                {"area": area}
            ) from e
    return dict(time_zones)

def build_options(config: dict[str, Any]) -> Options:
    """Validate a merged configuration dictionary into ``Options``."""
    host, port = _parse_listen_address(config['listen_address'])
    logging_config = config.get('logging') or {}
    current_weather = config.get('current_weather') or {}

    return Options(
        data_dir=Path(config['data_dir']),
        base_url=str(config['base_url']),
        listen_host=host,
        listen_port=port,
        analytics_batch_rate=_parse_positive_int(
            config['analytics_batch_rate'], 'analytics_batch_rate'
        ),
        default_language=str(config['default_language']),
        secrets_dir=Path(config['secrets_dir']),
        logging=LoggingOptions(
            level=str(logging_config.get('level', 'INFO')).upper(),
            file=logging_config.get('file'),
            max_size=_parse_positive_int(logging_config.get('max_size', 10), 'logging.max_size'),
            backup_count=int(logging_config.get('backup_count', 5)),
        ),
        google_drive=GoogleDriveOptions(
            published_folder_id=str(
                (config.get('google_drive') or {}).get('published_folder_id', DEFAULT_PUBLISHED_FOLDER_ID)
            )
        ),
        admin=AdminOptions(
            enabled=_parse_bool((config.get('admin') or {}).get('enabled', False), 'admin.enabled')
        ),
        weather_stations=_parse_weather_stations(config.get('weather_stations') or {}),
        current_weather=CurrentWeatherOptions(
            interval=_parse_seconds(
                current_weather.get('interval', CurrentWeatherOptions.interval),
                'current_weather.interval'
            ),
            each_station_interval=_parse_seconds(
                current_weather.get('each_station_interval', CurrentWeatherOptions.each_station_interval),
                'current_weather.each_station_interval'
            ),
        ),
        backup=_parse_backup(config.get('backup')),
        time_zones=_validate_time_zones(config.get('time_zones') or {}),
        area_names=dict(config.get('area_names') or {}),
        map=dict(config.get('map') or {}),
    )

def load_config(config_file: str | Path | None = None) -> Options:
    """Load and validate application options."""
    return build_options(load_raw_config(config_file))
