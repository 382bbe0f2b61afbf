"""Typed access to workbook cells.

Cell values coming out of openpyxl are normalized into ``CellData``, a
tagged value. Date and time cells are kept as Excel serial numbers
(days since 1899-12-30) so that every date decodes through the same
arithmetic regardless of how the cell was formatted.
"""

import io
import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from datetime import datetime
from datetime import time
from datetime import timedelta
from enum import Enum
from typing import Any
from typing import TypeVar
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from avalanche_report.spreadsheet.errors import MissingSheetError
from avalanche_report.spreadsheet.errors import ParseCellError
from avalanche_report.spreadsheet.errors import ParseErrorKind
from avalanche_report.spreadsheet.errors import WorkbookError
from avalanche_report.spreadsheet.position import SheetCellPosition


T = TypeVar('T')

EXCEL_EPOCH = datetime(1899, 12, 30)
MS_PER_DAY = 86_400_000

EXCEL_ERRORS = frozenset({
    '#NULL!', '#DIV/0!', '#VALUE!', '#REF!', '#NAME?', '#NUM!', '#N/A', '#GETTING_DATA'
})

class CellKind(Enum):
    EMPTY = "empty"
    STRING = "string"
    FLOAT = "float"
    INT = "int"
    BOOL = "bool"
    DATETIME = "datetime"
    ERROR = "error"

def to_excel_serial(value: datetime | date | time) -> float:
    """Convert a date, time or date-time to an Excel serial number."""
    if isinstance(value, datetime):
        return (value.replace(tzinfo=None) - EXCEL_EPOCH) / timedelta(days=1)
    if isinstance(value, date):
        return float((value - EXCEL_EPOCH.date()).days)
    seconds = value.hour * 3600 + value.minute * 60 + value.second + value.microsecond / 1_000_000
    return seconds / 86_400

@dataclass(frozen=True)
class CellData:
    """A single cell value with its kind."""
    kind: CellKind
    value: Any = None

    @classmethod
    def from_value(cls, value: Any, data_type: str | None = None) -> "CellData":
        if value is None or value == "":
            return cls(CellKind.EMPTY)
        if data_type == 'e' or (isinstance(value, str) and value in EXCEL_ERRORS):
            return cls(CellKind.ERROR, str(value))
        if isinstance(value, bool):
            return cls(CellKind.BOOL, value)
        if isinstance(value, int):
            return cls(CellKind.INT, value)
        if isinstance(value, float):
            return cls(CellKind.FLOAT, value)
        if isinstance(value, (datetime, date, time)):
            return cls(CellKind.DATETIME, to_excel_serial(value))
        if isinstance(value, timedelta):
            return cls(CellKind.FLOAT, value / timedelta(days=1))
        return cls(CellKind.STRING, str(value))

    @property
    def is_empty(self) -> bool:
        return self.kind == CellKind.EMPTY

    def as_string(self) -> str | None:
        return self.value if self.kind == CellKind.STRING else None

    def as_float(self) -> float | None:
        if self.kind in (CellKind.FLOAT, CellKind.INT):
            return float(self.value)
        return None

    def as_bool(self) -> bool | None:
        return self.value if self.kind == CellKind.BOOL else None

    def as_datetime(self) -> float | None:
        """Excel serial number of a date-time or numeric cell."""
        if self.kind in (CellKind.DATETIME, CellKind.FLOAT, CellKind.INT):
            return float(self.value)
        return None

    def __str__(self) -> str:
        if self.kind == CellKind.EMPTY:
            return "<empty>"
        return f"{self.kind.value}({self.value!r})"

def time_from_fraction(fraction: float) -> tuple[int, int, int, int] | None:
    """Split a fraction of a day into ``(hour, minute, second, millisecond)``.

    Returns ``None`` when a component falls outside its valid range.
    """
    total_ms = round(fraction * MS_PER_DAY)
    hour = total_ms // 3_600_000
    minute = (total_ms - hour * 3_600_000) // 60_000
    second = (total_ms - hour * 3_600_000 - minute * 60_000) // 1000
    millisecond = total_ms - hour * 3_600_000 - minute * 60_000 - second * 1000
    if not (0 <= hour < 24 and 0 <= minute < 60 and 0 <= second < 60 and 0 <= millisecond < 1000):
        return None
    return hour, minute, second, millisecond

def datetime_from_excel(serial: float) -> datetime | None:
    """Decode an Excel serial number into a naive datetime."""
    if math.isnan(serial) or math.isinf(serial):
        return None
    days = math.floor(serial)
    components = time_from_fraction(serial - days)
    if components is None:
        return None
    hour, minute, second, millisecond = components
    try:
        day = EXCEL_EPOCH + timedelta(days=days)
        return day.replace(hour=hour, minute=minute, second=second, microsecond=millisecond * 1000)
    except OverflowError:
        return None

class Workbook:
    """Read-only view of a workbook with typed cell readers.

    Every reader takes an absolute ``SheetCellPosition`` and raises
    ``ParseCellError`` carrying that position when the cell can't be read.
    """

    def __init__(self, sheets: dict[str, dict[tuple[int, int], CellData]]):
        self._sheets = sheets

    @classmethod
    def from_bytes(cls, data: bytes) -> "Workbook":
        try:
            workbook = load_workbook(io.BytesIO(data), data_only=True)
        except (BadZipFile, InvalidFileException, KeyError, OSError) as e:
            raise WorkbookError(f"Unable to open workbook: {e}") from e

        try:
            sheets = {}
            for worksheet in workbook.worksheets:
                cells: dict[tuple[int, int], CellData] = {}
                for row in worksheet.iter_rows():
                    for cell in row:
                        data = CellData.from_value(cell.value, cell.data_type)
                        if not data.is_empty:
                            cells[(cell.column - 1, cell.row - 1)] = data
                sheets[worksheet.title] = cells
        finally:
            workbook.close()
        return cls(sheets)

    @property
    def sheet_names(self) -> list[str]:
        return list(self._sheets)

    def cell(self, position: SheetCellPosition) -> CellData:
        """Raw cell data, empty when nothing is stored at the position."""
        sheet = self._sheets.get(position.sheet)
        if sheet is None:
            raise MissingSheetError(position.sheet)
        return sheet.get((position.position.column, position.position.row), CellData(CellKind.EMPTY))

    def _require(self, position: SheetCellPosition) -> CellData:
        data = self.cell(position)
        if data.is_empty:
            raise ParseCellError(position, ParseErrorKind.MISSING_VALUE)
        return data

    def read_string(self, position: SheetCellPosition) -> str:
        data = self._require(position)
        value = data.as_string()
        if value is None:
            raise ParseCellError(
                position, ParseErrorKind.INCORRECT_DATA_TYPE, data.kind.value,
                message="expected a string cell"
            )
        return value

    def read_optional_string(self, position: SheetCellPosition) -> str | None:
        if self.cell(position).is_empty:
            return None
        return self.read_string(position)

    def read_parsed(self, position: SheetCellPosition, parse: Callable[[str], T]) -> T:
        """Read a string cell and convert it with ``parse``.

        ``ValueError`` raised by ``parse`` becomes an ``INCORRECT_FORMAT``
        error on this cell.
        """
        text = self.read_string(position)
        try:
            return parse(text)
        except ValueError as e:
            raise ParseCellError(position, ParseErrorKind.INCORRECT_FORMAT, text, message=str(e)) from e

    def read_float(self, position: SheetCellPosition) -> float:
        data = self._require(position)
        value = data.as_float()
        if value is None:
            raise ParseCellError(
                position, ParseErrorKind.INCORRECT_DATA_TYPE, data.kind.value,
                message="expected a number cell"
            )
        return value

    def read_bool(self, position: SheetCellPosition) -> bool:
        data = self._require(position)
        value = data.as_bool()
        if value is None:
            raise ParseCellError(
                position, ParseErrorKind.INCORRECT_DATA_TYPE, data.kind.value,
                message="expected a boolean cell"
            )
        return value

    def read_time(self, position: SheetCellPosition) -> time:
        """Read a time of day stored as a fraction of a day."""
        data = self._require(position)
        if data.kind not in (CellKind.FLOAT, CellKind.DATETIME):
            raise ParseCellError(
                position, ParseErrorKind.INCORRECT_DATA_TYPE, data.kind.value,
                message="expected a time or number cell"
            )
        fraction = float(data.value) - math.floor(float(data.value))
        components = time_from_fraction(fraction)
        if components is None:
            raise ParseCellError(position, ParseErrorKind.COMPONENT_RANGE, data.value)
        hour, minute, second, millisecond = components
        return time(hour, minute, second, millisecond * 1000)

    def read_datetime(self, position: SheetCellPosition) -> datetime:
        """Read a naive date-time from an Excel serial number cell."""
        data = self._require(position)
        if data.kind not in (CellKind.FLOAT, CellKind.INT, CellKind.DATETIME):
            raise ParseCellError(
                position, ParseErrorKind.INCORRECT_DATA_TYPE, data.kind.value,
                message="expected a date or number cell"
            )
        value = datetime_from_excel(float(data.value))
        if value is None:
            raise ParseCellError(position, ParseErrorKind.COMPONENT_RANGE, data.value)
        return value
