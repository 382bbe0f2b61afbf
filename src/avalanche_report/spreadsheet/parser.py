"""Parse forecast workbooks into ``Forecast`` objects.

The parser is a pure function of the workbook bytes and the schema
options. Any failure is reported as ``ParseCellError`` pointing at the
offending cell.
"""

import re
from collections.abc import Mapping
from datetime import datetime
from datetime import timedelta
from enum import Enum
from typing import TypeVar

from avalanche_report.spreadsheet.cells import CellKind
from avalanche_report.spreadsheet.cells import Workbook
from avalanche_report.spreadsheet.errors import ParseCellError
from avalanche_report.spreadsheet.errors import ParseErrorKind
from avalanche_report.spreadsheet.options import AvalancheProblemOptions
from avalanche_report.spreadsheet.options import SchemaOptions
from avalanche_report.spreadsheet.position import SheetCellPosition
from avalanche_report.spreadsheet.types import Aspect
from avalanche_report.spreadsheet.types import AvalancheProblem
from avalanche_report.spreadsheet.types import ElevationRange
from avalanche_report.spreadsheet.types import Forecast
from avalanche_report.spreadsheet.types import Forecaster
from avalanche_report.spreadsheet.types import HazardRating
from avalanche_report.spreadsheet.types import HazardRatingKind
from avalanche_report.spreadsheet.types import Size
from avalanche_report.spreadsheet.version import Version


E = TypeVar('E', bound=Enum)

LANGUAGE_IDENTIFIER = re.compile(
    r"^[A-Za-z]{2,3}"
    r"(-[A-Za-z]{4})?"
    r"(-(?:[A-Za-z]{2}|[0-9]{3}))?"
    r"(-(?:[A-Za-z0-9]{5,8}|[0-9][A-Za-z0-9]{3}))*$"
)

TRUE_LABELS = frozenset({'yes', 'true', 'y', 'x'})
FALSE_LABELS = frozenset({'no', 'false', 'n'})

def is_language_identifier(text: str) -> bool:
    """Check BCP-47 style ``language[-Script][-REGION][-variant]`` syntax."""
    return LANGUAGE_IDENTIFIER.match(text) is not None

def _lookup(
    workbook: Workbook,
    position: SheetCellPosition,
    table: Mapping[str, E],
    kind: ParseErrorKind
) -> E:
    label = workbook.read_string(position).strip()
    try:
        return table[label]
    except KeyError:
        raise ParseCellError(position, kind, label) from None

def _optional_lookup(
    workbook: Workbook,
    position: SheetCellPosition | None,
    table: Mapping[str, E],
    kind: ParseErrorKind
) -> E | None:
    if position is None or workbook.cell(position).is_empty:
        return None
    return _lookup(workbook, position, table, kind)

def _read_flag(workbook: Workbook, position: SheetCellPosition) -> bool:
    """Checkbox style cell, blank means unchecked."""
    data = workbook.cell(position)
    if data.is_empty:
        return False
    if data.kind == CellKind.BOOL:
        return data.value
    if data.kind == CellKind.STRING:
        label = data.value.strip().lower()
        if label in TRUE_LABELS:
            return True
        if label in FALSE_LABELS or not label:
            return False
        raise ParseCellError(position, ParseErrorKind.INCORRECT_FORMAT, data.value)
    raise ParseCellError(
        position, ParseErrorKind.INCORRECT_DATA_TYPE, data.kind.value,
        message="expected a boolean cell"
    )

def _read_size(
    workbook: Workbook,
    position: SheetCellPosition | None,
    table: Mapping[str, Size]
) -> Size | None:
    if position is None:
        return None
    data = workbook.cell(position)
    if data.is_empty:
        return None
    number = data.as_float()
    if number is not None:
        if not number.is_integer():
            raise ParseCellError(position, ParseErrorKind.UNKNOWN_SIZE, data.value)
        try:
            return Size(int(number))
        except ValueError:
            raise ParseCellError(position, ParseErrorKind.UNKNOWN_SIZE, data.value) from None
    label = workbook.read_string(position).strip()
    if label in table:
        return table[label]
    if label.isdigit() and 1 <= int(label) <= 5:
        return Size(int(label))
    raise ParseCellError(position, ParseErrorKind.UNKNOWN_SIZE, label)

def _parse_aspects(text: str) -> set[Aspect]:
    aspects = set()
    for part in text.split(','):
        part = part.strip().upper()
        if not part:
            continue
        try:
            aspects.add(Aspect(part))
        except ValueError:
            raise ValueError(f"unknown aspect {part!r}") from None
    return aspects

def _parse_elevation(text: str) -> int:
    text = text.strip().lower()
    if text.endswith('m'):
        text = text[:-1].strip()
    return int(text)

def _parse_elevation_bands(workbook: Workbook, options: SchemaOptions) -> dict[str, ElevationRange]:
    boundaries_options = options.area.elevation_band_boundaries
    position = boundaries_options.position
    text = workbook.read_optional_string(position) or ""
    try:
        boundaries = [_parse_elevation(part) for part in text.split(',') if part.strip()]
    except ValueError:
        raise ParseCellError(
            position, ParseErrorKind.INCORRECT_FORMAT, text,
            message="expected comma separated elevations such as 1800m,2800m"
        ) from None

    if len(boundaries) != len(options.elevation_bands) - 1:
        raise ParseCellError(
            position, ParseErrorKind.ELEVATION_BANDS_MISMATCH, text,
            message=f"expected {len(options.elevation_bands) - 1} boundaries"
        )
    if boundaries_options.reverse:
        boundaries.reverse()

    lowest_first = list(reversed(options.elevation_bands))
    ranges = {}
    for index, band in enumerate(lowest_first):
        ranges[band] = ElevationRange(
            upper=boundaries[index] if index < len(boundaries) else None,
            lower=boundaries[index - 1] if index > 0 else None,
        )
    return {band: ranges[band] for band in options.elevation_bands}

def _parse_problem(
    workbook: Workbook,
    options: SchemaOptions,
    problem: AvalancheProblemOptions
) -> AvalancheProblem | None:
    root = problem.root
    if not _read_flag(workbook, root.offset(problem.enabled)):
        return None

    def at(offset):
        return None if offset is None else root.offset(offset)

    terms = options.terms
    aspect_elevation = {}
    for band, band_options in problem.aspect_elevation.items():
        if not _read_flag(workbook, root.offset(band_options.enabled)):
            continue
        aspects_position = root.offset(band_options.aspects)
        if workbook.cell(aspects_position).is_empty:
            aspect_elevation[band] = set()
            continue
        text = workbook.read_string(aspects_position)
        try:
            aspect_elevation[band] = _parse_aspects(text)
        except ValueError:
            raise ParseCellError(aspects_position, ParseErrorKind.UNKNOWN_ASPECT, text) from None

    return AvalancheProblem(
        kind=_lookup(
            workbook, root.offset(problem.kind), terms.avalanche_problem_kind,
            ParseErrorKind.UNKNOWN_PROBLEM_KIND
        ),
        aspect_elevation=aspect_elevation,
        confidence=_optional_lookup(
            workbook, at(problem.confidence), terms.confidence, ParseErrorKind.UNKNOWN_CONFIDENCE
        ),
        sensitivity=_optional_lookup(
            workbook, at(problem.sensitivity), terms.sensitivity, ParseErrorKind.UNKNOWN_SENSITIVITY
        ),
        size=_read_size(workbook, at(problem.size), terms.size),
        distribution=_optional_lookup(
            workbook, at(problem.distribution), terms.distribution, ParseErrorKind.UNKNOWN_DISTRIBUTION
        ),
        time_of_day=_optional_lookup(
            workbook, at(problem.time_of_day), terms.time_of_day, ParseErrorKind.UNKNOWN_TIME_OF_DAY
        ),
        trend=_optional_lookup(workbook, at(problem.trend), terms.trend, ParseErrorKind.UNKNOWN_TREND),
    )

def _read_text(
    workbook: Workbook,
    position: SheetCellPosition | None,
    language: str
) -> dict[str, str] | None:
    if position is None:
        return None
    text = workbook.read_optional_string(position)
    if text is None or not text.strip():
        return None
    return {language: text.strip()}

def read_template_version(workbook: Workbook, options: SchemaOptions) -> Version:
    """Template version stored in the workbook, it must be a text cell."""
    return workbook.read_parsed(options.template_version, Version.parse)

def parse_workbook(workbook: Workbook, options: SchemaOptions) -> Forecast:
    template_version = read_template_version(workbook, options)

    language_position = options.language.position
    language_name = workbook.read_string(language_position).strip()
    language = options.language.map.get(language_name)
    if language is None:
        raise ParseCellError(language_position, ParseErrorKind.UNKNOWN_LANGUAGE, language_name)
    if not is_language_identifier(language):
        raise ParseCellError(language_position, ParseErrorKind.INVALID_LANGUAGE_IDENTIFIER, language)

    area_position = options.area.position
    area_name = workbook.read_string(area_position).strip()
    area = options.area.map.get(area_name)
    if area is None:
        raise ParseCellError(area_position, ParseErrorKind.UNKNOWN_AREA, area_name)
    definition = options.area_definitions.get(area)
    if definition is None:
        raise ParseCellError(
            area_position, ParseErrorKind.UNKNOWN_AREA, area,
            message="no area definition for area id"
        )

    elevation_bands = _parse_elevation_bands(workbook, options)

    forecaster = Forecaster(
        name=workbook.read_string(options.forecaster.name).strip(),
        organisation=workbook.read_string(options.forecaster.organisation).strip(),
    )

    day = workbook.read_datetime(options.time.date).date()
    time_of_day = workbook.read_time(options.time.time)
    time = datetime.combine(day, time_of_day, tzinfo=definition.time_zone)

    valid_for_hours = workbook.read_float(options.valid_for)
    if valid_for_hours < 0:
        raise ParseCellError(options.valid_for, ParseErrorKind.COMPONENT_RANGE, valid_for_hours)

    terms = options.terms
    hazard_ratings: dict[HazardRatingKind, HazardRating] = {}
    for kind, rating in options.hazard_ratings.items():
        root = rating.root
        hazard_ratings[kind] = HazardRating(
            value=_lookup(
                workbook, root.offset(rating.value), terms.hazard_rating,
                ParseErrorKind.UNKNOWN_HAZARD_RATING
            ),
            trend=_optional_lookup(
                workbook, None if rating.trend is None else root.offset(rating.trend),
                terms.trend, ParseErrorKind.UNKNOWN_TREND
            ),
            confidence=_optional_lookup(
                workbook, None if rating.confidence is None else root.offset(rating.confidence),
                terms.confidence, ParseErrorKind.UNKNOWN_CONFIDENCE
            ),
        )

    avalanche_problems = []
    for problem_options in options.avalanche_problems:
        problem = _parse_problem(workbook, options, problem_options)
        if problem is not None:
            avalanche_problems.append(problem)

    return Forecast(
        area=area,
        forecaster=forecaster,
        time=time,
        template_version=template_version,
        language=language,
        hazard_ratings=hazard_ratings,
        avalanche_problems=avalanche_problems,
        elevation_bands=elevation_bands,
        valid_for=timedelta(hours=valid_for_hours),
        recent_observations=_read_text(workbook, options.recent_observations, language),
        forecast_changes=_read_text(workbook, options.forecast_changes, language),
        weather_forecast=_read_text(workbook, options.weather_forecast, language),
        description=_read_text(workbook, options.description, language),
    )

def parse_excel_spreadsheet(data: bytes, options: SchemaOptions) -> Forecast:
    """Parse xlsx ``data`` with the given schema options."""
    return parse_workbook(Workbook.from_bytes(data), options)
