"""Weather station data types."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass
class WeatherDataItem:
    """One station measurement in metric units."""
    time: datetime
    temperature_celcius: float | None = None
    wind_speed_ms: float | None = None
    wind_direction_degrees: float | None = None
    humidity_percent: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "time": self.time.isoformat(),
            "temperature_celcius": self.temperature_celcius,
            "wind_speed_ms": self.wind_speed_ms,
            "wind_direction_degrees": self.wind_direction_degrees,
            "humidity_percent": self.humidity_percent,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WeatherDataItem":
        return cls(
            time=datetime.fromisoformat(data["time"]),
            temperature_celcius=data.get("temperature_celcius"),
            wind_speed_ms=data.get("wind_speed_ms"),
            wind_direction_degrees=data.get("wind_direction_degrees"),
            humidity_percent=data.get("humidity_percent"),
        )
