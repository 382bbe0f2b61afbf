"""GeoJSON outlines of forecast areas."""

import json
from typing import Any

from avalanche_report.database import Database
from avalanche_report.exceptions import ValidationError


def list_forecast_areas(database: Database) -> list[str]:
    with database.connection() as conn:
        rows = conn.execute("SELECT id FROM forecast_areas ORDER BY id").fetchall()
    return [row["id"] for row in rows]

def get_forecast_area(database: Database, area_id: str) -> str | None:
    """Stored GeoJSON text of an area."""
    with database.connection() as conn:
        row = conn.execute("SELECT geojson FROM forecast_areas WHERE id = ?", (area_id,)).fetchone()
    return None if row is None else row["geojson"]

def upsert_forecast_area(database: Database, area_id: str, geojson: str | dict[str, Any]) -> None:
    if isinstance(geojson, str):
        try:
            parsed = json.loads(geojson)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid GeoJSON for area {area_id}: {e}") from e
    else:
        parsed = geojson
    if not isinstance(parsed, dict) or "type" not in parsed:
        raise ValidationError(f"GeoJSON for area {area_id} must be an object with a type")

    with database.connection() as conn:
        conn.execute(
            "INSERT INTO forecast_areas (id, geojson) VALUES (?, ?) "
            "ON CONFLICT(id) DO UPDATE SET geojson = excluded.geojson",
            (area_id, json.dumps(parsed))
        )
