"""Errors raised while reading forecast workbooks."""

from enum import Enum
from typing import Any

from avalanche_report.error_codes import ErrorCode
from avalanche_report.exceptions import AvalancheReportError


class ParseErrorKind(Enum):
    """What went wrong with a particular cell."""
    MISSING_VALUE = "missing_value"
    INCORRECT_DATA_TYPE = "incorrect_data_type"
    INCORRECT_FORMAT = "incorrect_format"
    COMPONENT_RANGE = "component_range"
    UNKNOWN_LANGUAGE = "unknown_language"
    INVALID_LANGUAGE_IDENTIFIER = "invalid_language_identifier"
    UNKNOWN_AREA = "unknown_area"
    UNKNOWN_CONFIDENCE = "unknown_confidence"
    UNKNOWN_HAZARD_RATING = "unknown_hazard_rating"
    UNKNOWN_TREND = "unknown_trend"
    UNKNOWN_PROBLEM_KIND = "unknown_problem_kind"
    UNKNOWN_DISTRIBUTION = "unknown_distribution"
    UNKNOWN_SENSITIVITY = "unknown_sensitivity"
    UNKNOWN_SIZE = "unknown_size"
    UNKNOWN_TIME_OF_DAY = "unknown_time_of_day"
    UNKNOWN_ASPECT = "unknown_aspect"
    ELEVATION_BANDS_MISMATCH = "elevation_bands_mismatch"

class SpreadsheetError(AvalancheReportError):
    """Base class for workbook parsing errors."""
    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.FORECAST_PARSE_ERROR, details)

class CellPositionParseError(SpreadsheetError):
    """A cell address is not in ``A1`` or ``Sheet!A1`` form."""
    def __init__(self, text: str, reason: str):
        super().__init__(f"Invalid cell position {text!r}: {reason}", {"position": text})
        self.text = text
        self.reason = reason

class WorkbookError(SpreadsheetError):
    """The bytes could not be opened as a workbook."""

class MissingSheetError(SpreadsheetError):
    """The workbook has no sheet with the requested name."""
    def __init__(self, sheet: str):
        super().__init__(f"Sheet {sheet!r} not found in workbook", {"sheet": sheet})
        self.sheet = sheet

class UnsupportedTemplateVersionError(SpreadsheetError):
    """No schema options are known for the workbook's template version."""
    def __init__(self, version: str, supported: list[str]):
        super().__init__(
            f"Unsupported template version {version}",
            {"version": version, "supported": supported}
        )
        self.version = version

class ParseCellError(SpreadsheetError):
    """A cell holds a value that could not be turned into forecast data.

    ``position`` is the absolute address of the offending cell, ``value`` the
    observed content (or its kind for data type mismatches).
    """
    def __init__(
        self,
        position: Any,
        kind: ParseErrorKind,
        value: Any = None,
        message: str | None = None
    ):
        text = message or kind.value.replace('_', ' ')
        if value is not None:
            text = f"{text}: {value!r}"
        super().__init__(
            f"Error parsing cell {position}: {text}",
            {"position": str(position), "kind": kind.value, "value": None if value is None else str(value)}
        )
        self.position = position
        self.kind = kind
        self.value = value
