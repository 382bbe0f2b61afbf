"""Forecast spreadsheet parsing."""

from avalanche_report.spreadsheet.cells import Workbook
from avalanche_report.spreadsheet.errors import ParseCellError
from avalanche_report.spreadsheet.errors import SpreadsheetError
from avalanche_report.spreadsheet.options import SchemaOptions
from avalanche_report.spreadsheet.parser import parse_excel_spreadsheet
from avalanche_report.spreadsheet.registry import ForecastSchemas
from avalanche_report.spreadsheet.types import Forecast
from avalanche_report.spreadsheet.version import Version

__all__ = [
    'Forecast',
    'ForecastSchemas',
    'ParseCellError',
    'SchemaOptions',
    'SpreadsheetError',
    'Version',
    'Workbook',
    'parse_excel_spreadsheet',
]
