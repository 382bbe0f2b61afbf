"""Tests for the HTTP routes."""

import json
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from unittest.mock import Mock

from avalanche_report.api.google_drive import PDF_MIME_TYPE
from avalanche_report.api.google_drive import XLSX_MIME_TYPE
from avalanche_report.api.google_drive import FileMetadata
from avalanche_report.exceptions import GoogleDriveTransportError
from avalanche_report.server import AppState
from avalanche_report.server import content_disposition
from avalanche_report.server import create_app
from avalanche_report.services.analytics import AnalyticsPipeline
from avalanche_report.services.current_weather import store_current_weather
from avalanche_report.services.forecast_areas import upsert_forecast_area
from avalanche_report.services.forecast_files import ForecastFileCache
from avalanche_report.services.forecasts import ForecastService
from avalanche_report.services.weather_types import WeatherDataItem

API_KEY = "drive-api-key"
MODIFIED = datetime(2023, 2, 7, 15, 0, tzinfo=timezone.utc)
XLSX_NAME = "Gudauri_2023-02-07T19:00_LS.en.xlsx"
PDF_NAME = "Gudauri_2023-02-07T19:00_LS.en.pdf"

@pytest.fixture
def drive(forecast_workbook):
    client = Mock()
    client.list_files.return_value = [
        FileMetadata(id="xlsx", name=XLSX_NAME, mime_type=XLSX_MIME_TYPE, modified_time=MODIFIED),
        FileMetadata(id="pdf", name=PDF_NAME, mime_type=PDF_MIME_TYPE, modified_time=MODIFIED),
    ]

    def get_file(file_id):
        body = Mock()
        body.read.return_value = forecast_workbook() if file_id == "xlsx" else b"%PDF-1.7"
        return body

    client.get_file.side_effect = get_file
    return client

@pytest.fixture
def state(database, drive, schemas):
    return AppState(
        database=database,
        forecasts=ForecastService(
            drive,
            ForecastFileCache(database, drive, schemas),
            "folder-1",
            {"Gudauri": "gudauri"},
            {"gudauri": "Asia/Tbilisi"},
            clock=lambda: datetime(2023, 2, 7, 16, 0, tzinfo=timezone.utc),
        ),
        analytics=AnalyticsPipeline(database),
        schemas=schemas,
        secret_values=[API_KEY],
        admin_enabled=True,
    )

@pytest.fixture
def client(state):
    return TestClient(create_app(state))

def visits(database):
    with database.connection() as conn:
        rows = conn.execute("SELECT uri, SUM(visits) AS visits FROM analytics GROUP BY uri").fetchall()
    return {row["uri"]: row["visits"] for row in rows}

def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "0.3.0" in data["schema_versions"]

def test_index_json(client):
    response = client.get("/index.json")

    assert response.status_code == 200
    data = response.json()
    assert len(data["forecasts"]) == 1
    group = data["forecasts"][0]
    assert group["area"] == "Gudauri"
    assert group["forecaster"] == "LS"
    assert {file["name"] for file in group["files"]} == {XLSX_NAME, PDF_NAME}

def test_index_html(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert f'href="/forecasts/{PDF_NAME}"' in response.text

def test_forecast_json(client):
    response = client.get(f"/forecasts/{XLSX_NAME}.json")

    assert response.status_code == 200
    data = response.json()
    assert data["area"] == "gudauri"
    assert data["forecaster"] == {"name": "Levi Seiferheld", "organisation": "Vagabond Gudauri"}
    assert data["time"] == "2023-02-07T19:00:00+04:00"

def test_forecast_html(client):
    response = client.get(f"/forecasts/{XLSX_NAME}")

    assert response.status_code == 200
    assert "Levi Seiferheld" in response.text
    assert "19:00 Tuesday 07 February 2023" in response.text

def test_forecast_pdf(client):
    response = client.get(f"/forecasts/{PDF_NAME}")

    assert response.status_code == 200
    assert response.headers["content-type"] == PDF_MIME_TYPE
    assert response.content == b"%PDF-1.7"

def test_forecast_cached_between_requests(client, drive):
    client.get(f"/forecasts/{XLSX_NAME}.json")
    client.get(f"/forecasts/{XLSX_NAME}.json")

    assert drive.get_file.call_count == 1

def test_forecast_not_found(client):
    response = client.get("/forecasts/Gudauri_2020-01-01T00:00_XX.en.pdf")

    assert response.status_code == 404
    assert response.json()["error"] == "forecast_not_found"

def test_parse_error_reports_position(client, drive, forecast_workbook):
    drive.get_file.side_effect = lambda file_id: Mock(read=Mock(return_value=forecast_workbook({"B3": "Nowhere"})))

    response = client.get(f"/forecasts/{XLSX_NAME}.json")

    assert response.status_code == 500
    assert response.json()["position"] == "Form!B3"

def test_drive_errors_are_redacted(client, drive):
    drive.list_files.side_effect = GoogleDriveTransportError(f"connection refused for key={API_KEY}")

    response = client.get(f"/forecasts/{XLSX_NAME}")

    assert response.status_code == 500
    assert API_KEY not in response.text

def test_unknown_path_records_404(client, state):
    assert client.get("/does-not-exist?x=1").status_code == 404
    client.get("/health")

    state.analytics.run_once()

    assert visits(state.database) == {"/404": 1, "/health": 1}

def test_forecast_area(client, database):
    upsert_forecast_area(database, "gudauri", {"type": "Point", "coordinates": [44.47, 42.47]})

    response = client.get("/forecast-areas/gudauri/area.geojson")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/geo+json"
    assert json.loads(response.text)["type"] == "Point"
    assert client.get("/forecast-areas").json() == ["gudauri"]
    assert client.get("/forecast-areas/missing/area.geojson").status_code == 404

def test_current_weather(client, database):
    store_current_weather(database, "gudauri", [
        WeatherDataItem(time=MODIFIED, temperature_celcius=-4.5),
    ])

    response = client.get("/current-weather/gudauri.json")

    assert response.status_code == 200
    assert response.json()[0]["temperature_celcius"] == -4.5
    assert client.get("/current-weather/unknown.json").status_code == 404

def test_admin_analytics(client, state):
    client.get("/health")
    state.analytics.run_once()

    response = client.get("/admin/analytics", params={"duration": "all-time"})

    assert response.status_code == 200
    data = response.json()
    assert data["from"] is None
    assert data["summaries"] == [{"uri": "/health", "visits": 1}]
    assert sum(bucket["visits"] for bucket in data["graph"]) == 1

def test_admin_analytics_bad_query(client):
    response = client.get("/admin/analytics", params={"duration": "fortnight"})

    assert response.status_code == 400
    assert response.json()["error"] == "analytics_query_invalid"

def test_admin_disabled(state):
    state.admin_enabled = False
    client = TestClient(create_app(state))

    assert client.get("/admin/analytics").status_code == 404

def test_download_with_non_ascii_name(client, drive):
    name = "Mt Hōtham_2023-02-07T19:00_LS.en.pdf"
    drive.list_files.return_value.append(
        FileMetadata(id="pdf", name=name, mime_type=PDF_MIME_TYPE, modified_time=MODIFIED)
    )

    response = client.get(f"/forecasts/{name}")

    assert response.status_code == 200
    assert response.headers["content-disposition"] == (
        "inline; filename=\"Mt H?tham_2023-02-07T19:00_LS.en.pdf\"; "
        "filename*=utf-8''Mt%20H%C5%8Dtham_2023-02-07T19%3A00_LS.en.pdf"
    )

def test_content_disposition_plain_name():
    assert content_disposition("forecast.pdf") == "inline; filename=\"forecast.pdf\""
