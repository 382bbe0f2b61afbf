"""Tests for forecast file naming and the forecast service."""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest
from unittest.mock import Mock

from avalanche_report.api.google_drive import PDF_MIME_TYPE
from avalanche_report.api.google_drive import SPREADSHEET_MIME_TYPE
from avalanche_report.api.google_drive import FileMetadata
from avalanche_report.exceptions import ForecastNameError
from avalanche_report.exceptions import ForecastNotFoundError
from avalanche_report.exceptions import UnsupportedMimeTypeError
from avalanche_report.services.forecast_files import FetchMode
from avalanche_report.services.forecasts import ForecastService
from avalanche_report.services.forecasts import ForecastView
from avalanche_report.services.forecasts import anchor_local_time
from avalanche_report.services.forecasts import format_forecast
from avalanche_report.services.forecasts import parse_forecast_name

AREA_NAMES = {"Gudauri": "gudauri", "Melbourne": "melbourne"}
TIME_ZONES = {"gudauri": "Asia/Tbilisi", "melbourne": "Australia/Melbourne"}
MODIFIED = datetime(2023, 1, 24, 13, 0, tzinfo=timezone.utc)

def test_parse_name():
    details = parse_forecast_name("Gudauri_2023-01-24T17:00_LF.en.pdf", AREA_NAMES, TIME_ZONES)

    assert details.forecast.area == "Gudauri"
    assert details.forecast.time == datetime(2023, 1, 24, 17, 0, tzinfo=timezone(timedelta(hours=4)))
    assert details.forecast.time.isoformat() == "2023-01-24T17:00:00+04:00"
    assert details.forecast.forecaster == "LF"
    assert details.language == "en"

def test_parse_name_without_language():
    details = parse_forecast_name("Gudauri_2023-01-24T17:00_LF.xlsx", AREA_NAMES, TIME_ZONES)
    assert details.language is None

def test_parse_name_daylight_saving():
    before = parse_forecast_name("Melbourne_2023-10-01T01:00_AB.pdf", AREA_NAMES, TIME_ZONES)
    after = parse_forecast_name("Melbourne_2023-10-01T02:00_AB.pdf", AREA_NAMES, TIME_ZONES)

    assert before.forecast.time.isoformat() == "2023-10-01T01:00:00+10:00"
    assert after.forecast.time.utcoffset() == timedelta(hours=11)
    assert after.forecast.time.astimezone(timezone.utc) == datetime(2023, 9, 30, 16, 0, tzinfo=timezone.utc)

def test_skipped_wall_time_lands_after_transition():
    zone = ZoneInfo("Australia/Melbourne")
    time = anchor_local_time(datetime(2022, 10, 2, 2, 30), zone)

    assert time.utcoffset() == timedelta(hours=11)
    assert time.astimezone(timezone.utc) == datetime(2022, 10, 1, 16, 30, tzinfo=timezone.utc)
    assert (time.hour, time.minute) == (3, 30)

@pytest.mark.parametrize("name", [
    ".pdf",
    "Gudauri.pdf",
    "Gudauri_2023-01-24T17:00.pdf",
    "Gudauri_2023-01-24 17:00_LF.pdf",
    "Bakuriani_2023-01-24T17:00_LF.pdf",
    "Gudauri_2023-01-24T17:00_LF.english_uk.pdf",
])
def test_parse_name_errors(name):
    with pytest.raises(ForecastNameError):
        parse_forecast_name(name, AREA_NAMES, TIME_ZONES)

def metadata(name, mime_type=PDF_MIME_TYPE, file_id=None):
    return FileMetadata(id=file_id or name, name=name, mime_type=mime_type, modified_time=MODIFIED)

@pytest.fixture
def files():
    return [
        metadata("Gudauri_2023-01-24T17:00_LF.en.pdf"),
        metadata("Gudauri_2023-01-24T17:00_LF.ka.pdf"),
        metadata("Gudauri_2023-02-07T19:00_LS", SPREADSHEET_MIME_TYPE),
        metadata("notes.txt", "text/plain"),
    ]

@pytest.fixture
def service(files):
    client = Mock()
    client.list_files.return_value = files
    cache = Mock()
    return ForecastService(
        client,
        cache,
        "folder-1",
        AREA_NAMES,
        TIME_ZONES,
        clock=lambda: datetime(2023, 2, 7, 16, 0, tzinfo=timezone.utc),
    )

def test_list_forecasts_groups_files(service):
    index = service.list_forecasts()

    assert [group.details.forecaster for group in index.forecasts] == ["LS", "LF"]
    assert [file.language for file in index.forecasts[1].files] == ["en", "ka"]
    assert [error.file_name for error in index.errors] == ["notes.txt"]

def test_unknown_name_is_not_found(service):
    with pytest.raises(ForecastNotFoundError):
        service.get_forecast_file("Gudauri_2023-01-01T17:00_XX.en.pdf")

def test_pdf_download(service):
    service.cache.get_or_fetch.return_value = b"%PDF"

    response = service.get_forecast_file("Gudauri_2023-01-24T17:00_LF.en.pdf")

    assert response.view == ForecastView.DOWNLOAD
    assert response.data == b"%PDF"
    assert service.cache.get_or_fetch.call_args.args[1] == FetchMode.FILE

def test_pdf_has_no_json_view(service):
    with pytest.raises(UnsupportedMimeTypeError):
        service.get_forecast_file("Gudauri_2023-01-24T17:00_LF.en.pdf.json")

def test_unsupported_mime_type(service):
    with pytest.raises(UnsupportedMimeTypeError):
        service.get_forecast_file("notes.txt")

def test_spreadsheet_views(service, schemas, forecast_workbook):
    forecast, _ = schemas.parse(forecast_workbook())
    service.cache.get_or_fetch.return_value = forecast

    html = service.get_forecast_file("Gudauri_2023-02-07T19:00_LS")
    data = service.get_forecast_file("Gudauri_2023-02-07T19:00_LS.json")

    assert html.view == ForecastView.HTML
    assert html.formatted.is_current
    assert html.formatted.formatted_time == "19:00 Tuesday 07 February 2023"
    assert data.view == ForecastView.JSON
    assert data.formatted is None
    assert data.forecast is forecast

def test_format_expired_forecast(schemas, forecast_workbook):
    forecast, _ = schemas.parse(forecast_workbook())

    formatted = format_forecast(forecast, datetime(2023, 2, 9, tzinfo=timezone.utc))

    assert not formatted.is_current
    assert formatted.formatted_valid_until == "19:00 Wednesday 08 February 2023"
