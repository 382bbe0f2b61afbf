"""Tests for configuration loading."""

from pathlib import Path

import pytest
import yaml

from avalanche_report.config.settings import load_config
from avalanche_report.exceptions import ConfigError


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path

def write_config(path: Path, data: dict) -> Path:
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path

def test_defaults(workdir):
    options = load_config()

    assert options.data_dir == Path("data")
    assert options.listen_host == "127.0.0.1"
    assert options.listen_port == 3000
    assert options.analytics_batch_rate == 60
    assert options.admin.enabled is False
    assert options.backup is None
    assert options.weather_stations == []
    assert options.time_zones == {"gudauri": "Asia/Tbilisi"}
    assert options.database_path == Path("data") / "db.sqlite3"

def test_config_file_overrides_defaults(workdir):
    path = write_config(workdir / "config.yaml", {
        "listen_address": "0.0.0.0:8080",
        "logging": {"level": "debug"},
        "area_names": {"Bakuriani": "bakuriani"},
        "time_zones": {"bakuriani": "Asia/Tbilisi"},
    })

    options = load_config(path)

    assert options.listen_address == "0.0.0.0:8080"
    assert options.logging.level == "DEBUG"
    assert options.logging.backup_count == 5
    assert options.area_names == {"Gudauri": "gudauri", "Bakuriani": "bakuriani"}

def test_default_config_file_in_working_directory(workdir):
    write_config(workdir / "avalanche-report.yaml", {"base_url": "https://example.org/"})

    assert load_config().base_url == "https://example.org/"

def test_config_file_from_environment(workdir, monkeypatch):
    path = write_config(workdir / "other.yaml", {"default_language": "ka"})
    monkeypatch.setenv("AVALANCHE_REPORT_CONFIG", str(path))

    assert load_config().default_language == "ka"

def test_environment_overrides_config_file(workdir, monkeypatch):
    path = write_config(workdir / "config.yaml", {
        "analytics_batch_rate": 10,
        "admin": {"enabled": False},
    })
    monkeypatch.setenv("AVALANCHE_REPORT_ANALYTICS_BATCH_RATE", "30")
    monkeypatch.setenv("AVALANCHE_REPORT_ADMIN_ENABLED", "true")
    monkeypatch.setenv("AVALANCHE_REPORT_DATA_DIR", str(workdir / "state"))

    options = load_config(path)

    assert options.analytics_batch_rate == 30
    assert options.admin.enabled is True
    assert options.data_dir == workdir / "state"

def test_weather_stations_and_backup(workdir):
    path = write_config(workdir / "config.yaml", {
        "weather_stations": {
            "gudauri": {
                "source": {
                    "ambient_weather": {
                        "api_key": "api-key",
                        "application_key": "app-key",
                        "device_mac_address": "00:11:22:33:44:55",
                    }
                }
            }
        },
        "current_weather": {"interval": 600},
        "backup": {
            "s3_endpoint": "https://s3.example.org",
            "s3_bucket_name": "backups",
            "s3_bucket_region": "eu-central-1",
            "aws_access_key_id": "AKIAEXAMPLE",
            "schedule": {"interval": 3600},
        },
    })

    options = load_config(path)

    station = options.weather_stations[0]
    assert station.id == "gudauri"
    assert station.source.device_mac_address == "00:11:22:33:44:55"
    assert "api-key" not in repr(station.source)
    assert options.current_weather.interval == 600
    assert options.current_weather.each_station_interval == 5
    assert options.backup.s3_bucket_name == "backups"
    assert options.backup.schedule.interval == 3600

@pytest.mark.parametrize("data", [
    {"listen_address": "3000"},
    {"listen_address": "localhost:http"},
    {"analytics_batch_rate": 0},
    {"analytics_batch_rate": "often"},
    {"admin": {"enabled": "maybe"}},
    {"current_weather": {"interval": -1}},
    {"time_zones": {"gudauri": "Mars/Olympus_Mons"}},
    {"weather_stations": {"gudauri": {"source": {}}}},
    {"weather_stations": {"gudauri": {"source": {"ambient_weather": {"api_key": "x"}}}}},
    {"backup": {"s3_endpoint": "https://s3.example.org"}},
])
def test_invalid_values(workdir, data):
    path = write_config(workdir / "config.yaml", data)

    with pytest.raises(ConfigError):
        load_config(path)

def test_missing_config_file(workdir):
    with pytest.raises(ConfigError, match="not found"):
        load_config(workdir / "missing.yaml")

def test_invalid_yaml(workdir):
    path = workdir / "config.yaml"
    path.write_text("listen_address: [unclosed", encoding="utf-8")

    with pytest.raises(ConfigError, match="Invalid YAML"):
        load_config(path)

def test_config_must_be_a_mapping(workdir):
    path = workdir / "config.yaml"
    path.write_text("- one\n- two\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="mapping"):
        load_config(path)

def test_config_file_path_expands_home(workdir, monkeypatch):
    monkeypatch.setenv("HOME", str(workdir))
    write_config(workdir / "config.yaml", {"base_url": "https://example.org/"})

    assert load_config("~/config.yaml").base_url == "https://example.org/"
