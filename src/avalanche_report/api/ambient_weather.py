"""Ambient Weather client for live weather station data."""

from datetime import datetime
from typing import Any

import requests

from avalanche_report.api.base_api import BaseAPI
from avalanche_report.config.types import AmbientWeatherSource
from avalanche_report.exceptions import APIValidationError
from avalanche_report.services.weather_types import WeatherDataItem


AMBIENT_WEATHER_API_URL = "https://rt.ambientweather.net/v1/"

def fahrenheit_to_celsius(value: float) -> float:
    return (value - 32.0) * 5.0 / 9.0

def mph_to_ms(value: float) -> float:
    return value * 0.44704

def _optional_float(item: dict[str, Any], key: str) -> float | None:
    value = item.get(key)
    return None if value is None else float(value)

def convert_item(item: dict[str, Any]) -> WeatherDataItem:
    """Convert one Ambient Weather measurement to metric units."""
    temperature = _optional_float(item, "tempf")
    wind_speed = _optional_float(item, "windspeedmph")
    return WeatherDataItem(
        time=datetime.fromisoformat(item["date"]),
        temperature_celcius=None if temperature is None else fahrenheit_to_celsius(temperature),
        wind_speed_ms=None if wind_speed is None else mph_to_ms(wind_speed),
        wind_direction_degrees=_optional_float(item, "winddir"),
        humidity_percent=_optional_float(item, "humidity"),
    )

class AmbientWeatherClient(BaseAPI):
    """Fetches recent measurements of one Ambient Weather device."""

    def __init__(
        self,
        source: AmbientWeatherSource,
        session: requests.Session | None = None,
        base_url: str = AMBIENT_WEATHER_API_URL
    ):
        super().__init__(
            base_url,
            session=session,
            secrets=[source.api_key, source.application_key]
        )
        self.source = source

    def fetch(self) -> list[WeatherDataItem]:
        data = self._get_json(
            f"devices/{self.source.device_mac_address}",
            params={
                "apiKey": self.source.api_key,
                "applicationKey": self.source.application_key,
            },
        )
        if not isinstance(data, list):
            raise APIValidationError("Expected a list of measurements from Ambient Weather")
        try:
            return [convert_item(item) for item in data]
        except (KeyError, TypeError, ValueError) as e:
            raise APIValidationError(f"Unexpected Ambient Weather measurement: {e}") from e
