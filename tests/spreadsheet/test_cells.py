"""Tests for cell decoding."""

from datetime import date
from datetime import datetime
from datetime import time

import pytest

from avalanche_report.spreadsheet.cells import CellData
from avalanche_report.spreadsheet.cells import CellKind
from avalanche_report.spreadsheet.cells import Workbook
from avalanche_report.spreadsheet.cells import datetime_from_excel
from avalanche_report.spreadsheet.cells import time_from_fraction
from avalanche_report.spreadsheet.cells import to_excel_serial
from avalanche_report.spreadsheet.errors import MissingSheetError
from avalanche_report.spreadsheet.errors import ParseCellError
from avalanche_report.spreadsheet.errors import ParseErrorKind
from avalanche_report.spreadsheet.errors import WorkbookError
from avalanche_report.spreadsheet.position import SheetCellPosition


def test_excel_epoch():
    assert datetime_from_excel(0.0) == datetime(1899, 12, 30)

def test_excel_date_time():
    assert datetime_from_excel(44963.79166666667) == datetime(2023, 2, 7, 19, 0)

def test_excel_serial_round_trip():
    value = datetime(2023, 2, 7, 19, 0)
    assert datetime_from_excel(to_excel_serial(value)) == value
    assert to_excel_serial(date(2023, 2, 7)) == 44963.0
    assert to_excel_serial(time(12, 0)) == 0.5

def test_time_from_fraction():
    assert time_from_fraction(0.0) == (0, 0, 0, 0)
    assert time_from_fraction(0.5) == (12, 0, 0, 0)
    assert time_from_fraction(0.75 + 1 / 86_400_000) == (18, 0, 0, 1)

def test_time_from_fraction_out_of_range():
    assert time_from_fraction(1.0) is None

def test_invalid_serial():
    assert datetime_from_excel(float("nan")) is None

@pytest.mark.parametrize("value,kind", [
    (None, CellKind.EMPTY),
    ("", CellKind.EMPTY),
    ("text", CellKind.STRING),
    (True, CellKind.BOOL),
    (3, CellKind.INT),
    (2.5, CellKind.FLOAT),
    (datetime(2023, 2, 7), CellKind.DATETIME),
    ("#N/A", CellKind.ERROR),
])
def test_cell_kinds(value, kind):
    assert CellData.from_value(value).kind == kind

@pytest.fixture
def workbook():
    return Workbook({"Form": {
        (0, 0): CellData(CellKind.STRING, "hello"),
        (1, 0): CellData(CellKind.FLOAT, 0.5),
        (2, 0): CellData(CellKind.INT, 24),
        (3, 0): CellData(CellKind.DATETIME, 44963.0),
    }})

def test_read_string(workbook):
    assert workbook.read_string(SheetCellPosition.parse("Form!A1")) == "hello"

def test_read_string_wrong_type(workbook):
    with pytest.raises(ParseCellError) as exc_info:
        workbook.read_string(SheetCellPosition.parse("Form!B1"))
    assert exc_info.value.kind == ParseErrorKind.INCORRECT_DATA_TYPE
    assert str(exc_info.value.position) == "Form!B1"

def test_read_missing(workbook):
    with pytest.raises(ParseCellError) as exc_info:
        workbook.read_float(SheetCellPosition.parse("Form!Z9"))
    assert exc_info.value.kind == ParseErrorKind.MISSING_VALUE
    assert workbook.read_optional_string(SheetCellPosition.parse("Form!Z9")) is None

def test_read_numbers_and_times(workbook):
    assert workbook.read_float(SheetCellPosition.parse("Form!C1")) == 24.0
    assert workbook.read_time(SheetCellPosition.parse("Form!B1")) == time(12, 0)
    assert workbook.read_datetime(SheetCellPosition.parse("Form!D1")) == datetime(2023, 2, 7)

def test_read_parsed_format_error(workbook):
    with pytest.raises(ParseCellError) as exc_info:
        workbook.read_parsed(SheetCellPosition.parse("Form!A1"), int)
    assert exc_info.value.kind == ParseErrorKind.INCORRECT_FORMAT

def test_missing_sheet(workbook):
    with pytest.raises(MissingSheetError):
        workbook.cell(SheetCellPosition.parse("Other!A1"))

def test_from_bytes(forecast_workbook):
    workbook = Workbook.from_bytes(forecast_workbook())
    assert workbook.sheet_names == ["Form"]
    assert workbook.read_string(SheetCellPosition.parse("Form!B5")) == "Levi Seiferheld"
    assert workbook.read_time(SheetCellPosition.parse("Form!B8")) == time(19, 0)

def test_from_bytes_invalid():
    with pytest.raises(WorkbookError):
        Workbook.from_bytes(b"not a workbook")
