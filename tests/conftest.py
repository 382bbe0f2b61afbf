"""Pytest configuration and shared fixtures."""

import io
from datetime import datetime
from datetime import time
from datetime import timezone
from typing import Any

import pytest
from openpyxl import Workbook

from avalanche_report.api.google_drive import XLSX_MIME_TYPE
from avalanche_report.api.google_drive import FileMetadata
from avalanche_report.config.env import EnvConfig
from avalanche_report.config.secrets import ADMIN_PASSWORD_HASH
from avalanche_report.config.secrets import AWS_SECRET_ACCESS_KEY
from avalanche_report.config.secrets import GOOGLE_DRIVE_API_KEY
from avalanche_report.database import Database
from avalanche_report.database.migrations import run_migrations
from avalanche_report.spreadsheet.registry import ForecastSchemas


FORECAST_CELLS: dict[str, Any] = {
    "B1": "0.3.3",
    "B2": "English",
    "B3": "Gudauri",
    "B4": "2800m,1800m",
    "B5": "Levi Seiferheld",
    "B6": "Vagabond Gudauri",
    "B7": datetime(2023, 2, 7),
    "B8": time(19, 0),
    "B9": 24,
    "B11": "Several natural wind slabs observed on north aspects.",
    "B14": "Wind slabs are the main concern above treeline.",
    "A17": "Overall", "B17": "Considerable", "C17": "Steady", "D17": "Moderate",
    "A18": "High Alpine", "B18": "Considerable", "C18": "Steady", "D18": "Moderate",
    "A19": "Alpine", "B19": "Moderate", "C19": "Improving", "D19": "High",
    "A20": "Sub Alpine", "B20": "Low", "C20": "Steady",
    "A23": "Problem 1", "B23": "Yes", "C23": "Wind Slab",
    "D23": "Yes", "E23": "N, NE, E",
    "D24": "Yes", "E24": "NE",
    "D25": "No",
    "F23": "Moderate", "G23": "Reactive", "H23": "Large", "I23": "Specific",
    "J23": "All Day", "K23": "Steady",
    "A27": "Problem 2", "B27": "No", "C27": "Persistent Slab",
}

SECRET_NAMES = (GOOGLE_DRIVE_API_KEY, ADMIN_PASSWORD_HASH, AWS_SECRET_ACCESS_KEY)

def build_workbook(overrides: dict[str, Any] | None = None, sheet: str = "Form") -> bytes:
    """Forecast workbook in the 0.3 template layout.

    ``overrides`` replaces cells, a ``None`` value leaves the cell blank.
    """
    cells = {**FORECAST_CELLS, **(overrides or {})}
    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = sheet
    for address, value in cells.items():
        if value is not None:
            worksheet[address] = value
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()

@pytest.fixture
def forecast_workbook():
    """Factory producing forecast workbook bytes."""
    return build_workbook

@pytest.fixture(scope="session")
def schemas():
    return ForecastSchemas.load_packaged()

@pytest.fixture
def database(tmp_path):
    """Fully migrated database in a temporary directory."""
    database = Database.open(tmp_path / "data")
    run_migrations(database)
    return database

@pytest.fixture
def xlsx_file():
    return FileMetadata(
        id="file-1",
        name="Gudauri_2023-02-07T19:00_LS.en.xlsx",
        mime_type=XLSX_MIME_TYPE,
        modified_time=datetime(2023, 2, 7, 15, 0, tzinfo=timezone.utc),
    )

@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's environment out of configuration tests."""
    for name in [*EnvConfig.ENV_MAPPING, EnvConfig.CONFIG_FILE_VAR, *SECRET_NAMES]:
        monkeypatch.delenv(name, raising=False)
