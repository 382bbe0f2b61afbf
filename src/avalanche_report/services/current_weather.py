"""Background polling of weather stations into ``current_weather_cache``."""

import json
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from avalanche_report.database import Database
from avalanche_report.exceptions import ConfigError
from avalanche_report.exceptions import WeatherError
from avalanche_report.exceptions import handle_errors
from avalanche_report.services.weather_types import WeatherDataItem
from avalanche_report.utils.logging_utils import LoggerMixin


class WeatherSource(Protocol):
    def fetch(self) -> list[WeatherDataItem]:
        ...

@dataclass
class WeatherStation:
    id: str
    source: WeatherSource

def store_current_weather(database: Database, station_id: str, items: list[WeatherDataItem]) -> None:
    data = json.dumps([item.to_dict() for item in items])
    with database.connection() as conn:
        conn.execute(
            "INSERT INTO current_weather_cache (weather_station_id, data) VALUES (?, ?) "
            "ON CONFLICT(weather_station_id) DO UPDATE SET data = excluded.data",
            (station_id, data)
        )

def get_current_weather(database: Database, station_id: str) -> list[WeatherDataItem] | None:
    """Most recently cached measurements of a station, ``None`` if never fetched."""
    with database.connection() as conn:
        row = conn.execute(
            "SELECT data FROM current_weather_cache WHERE weather_station_id = ?",
            (station_id,)
        ).fetchone()
    if row is None:
        return None
    return [WeatherDataItem.from_dict(item) for item in json.loads(row["data"])]

class CurrentWeatherCacheService(LoggerMixin):
    """Polls every station once per ``interval`` seconds.

    Stations are queried ``each_station_interval`` seconds apart, which
    means ``each_station_interval * len(stations)`` must fit in ``interval``.
    """

    def __init__(
        self,
        database: Database,
        stations: list[WeatherStation],
        interval: float,
        each_station_interval: float,
        clock: Callable[[], float] = time.monotonic
    ):
        super().__init__()
        if each_station_interval * len(stations) > interval:
            raise ConfigError(
                "each_station_interval multiplied by the number of stations exceeds interval",
                {
                    "interval": interval,
                    "each_station_interval": each_station_interval,
                    "stations": len(stations),
                }
            )
        self.database = database
        self.stations = stations
        self.interval = interval
        self.each_station_interval = each_station_interval
        self._clock = clock
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self.set_log_context(service="current_weather")

    def update_station(self, station: WeatherStation) -> bool:
        """Fetch and store one station, returns False when it failed."""
        failed: list[str] = []
        with handle_errors(
            WeatherError, "current_weather", f"update_station({station.id})",
            fallback=lambda: failed.append(station.id)
        ):
            items = station.source.fetch()
            store_current_weather(self.database, station.id, items)
            self.debug("Updated weather station", station=station.id, items=len(items))
        return not failed

    def run_cycle(self) -> float:
        """Update every station once, returning the seconds to wait afterwards."""
        start = self._clock()
        for index, station in enumerate(self.stations):
            if index > 0 and self._stop.wait(self.each_station_interval):
                break
            self.update_station(station)
        elapsed = self._clock() - start
        return max(self.interval - elapsed, self.each_station_interval)

    def run(self) -> None:
        while not self._stop.is_set():
            wait = self.run_cycle()
            self._stop.wait(wait)

    def start(self) -> None:
        if not self.stations:
            self.info("No weather stations configured")
            return
        self._thread = threading.Thread(target=self.run, name="current-weather", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
