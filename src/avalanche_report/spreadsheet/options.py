"""Schema options describing where a template version keeps its data.

One options document exists per supported template version. Absolute
addresses use the ``Sheet!A1`` form; positions inside hazard rating and
avalanche problem blocks are ``A1`` offsets from the block root, where
``A1`` is the root itself.
"""

import json
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo

from avalanche_report.exceptions import ConfigError
from avalanche_report.spreadsheet.errors import CellPositionParseError
from avalanche_report.spreadsheet.position import CellPosition
from avalanche_report.spreadsheet.position import SheetCellPosition
from avalanche_report.spreadsheet.types import Confidence
from avalanche_report.spreadsheet.types import Distribution
from avalanche_report.spreadsheet.types import HazardRatingKind
from avalanche_report.spreadsheet.types import HazardRatingValue
from avalanche_report.spreadsheet.types import ProblemKind
from avalanche_report.spreadsheet.types import Sensitivity
from avalanche_report.spreadsheet.types import Size
from avalanche_report.spreadsheet.types import TimeOfDay
from avalanche_report.spreadsheet.types import Trend
from avalanche_report.spreadsheet.version import Version


@dataclass
class LanguageOptions:
    position: SheetCellPosition
    # language name in the spreadsheet -> BCP-47 identifier
    map: dict[str, str]

@dataclass
class ElevationBandBoundaries:
    """Comma separated boundaries such as ``"1800m,2800m"``.

    There is one boundary fewer than there are elevation bands. Boundaries
    are listed lowest first unless ``reverse`` is set.
    """
    position: SheetCellPosition
    reverse: bool = False

@dataclass
class AreaOptions:
    position: SheetCellPosition
    # area name in the spreadsheet -> area id
    map: dict[str, str]
    elevation_band_boundaries: ElevationBandBoundaries

@dataclass
class AreaDefinition:
    time_zone: ZoneInfo

@dataclass
class ForecasterOptions:
    name: SheetCellPosition
    organisation: SheetCellPosition

@dataclass
class TimeOptions:
    date: SheetCellPosition
    time: SheetCellPosition

@dataclass
class HazardRatingInput:
    root: SheetCellPosition
    value: CellPosition
    trend: CellPosition | None = None
    confidence: CellPosition | None = None

@dataclass
class AspectElevationOptions:
    enabled: CellPosition
    aspects: CellPosition

@dataclass
class AvalancheProblemOptions:
    root: SheetCellPosition
    enabled: CellPosition
    kind: CellPosition
    aspect_elevation: dict[str, AspectElevationOptions]
    confidence: CellPosition | None = None
    sensitivity: CellPosition | None = None
    size: CellPosition | None = None
    distribution: CellPosition | None = None
    time_of_day: CellPosition | None = None
    trend: CellPosition | None = None

@dataclass
class Terms:
    """Lookup tables from spreadsheet labels to enum values."""
    confidence: dict[str, Confidence] = field(default_factory=dict)
    hazard_rating: dict[str, HazardRatingValue] = field(default_factory=dict)
    trend: dict[str, Trend] = field(default_factory=dict)
    avalanche_problem_kind: dict[str, ProblemKind] = field(default_factory=dict)
    distribution: dict[str, Distribution] = field(default_factory=dict)
    time_of_day: dict[str, TimeOfDay] = field(default_factory=dict)
    sensitivity: dict[str, Sensitivity] = field(default_factory=dict)
    size: dict[str, Size] = field(default_factory=dict)

@dataclass
class SchemaOptions:
    schema_version: Version
    template_version: SheetCellPosition
    language: LanguageOptions
    area: AreaOptions
    area_definitions: dict[str, AreaDefinition]
    forecaster: ForecasterOptions
    time: TimeOptions
    valid_for: SheetCellPosition
    hazard_ratings: dict[HazardRatingKind, HazardRatingInput]
    avalanche_problems: list[AvalancheProblemOptions]
    # band ids listed highest first
    elevation_bands: list[str]
    terms: Terms
    recent_observations: SheetCellPosition | None = None
    forecast_changes: SheetCellPosition | None = None
    weather_forecast: SheetCellPosition | None = None
    description: SheetCellPosition | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SchemaOptions":
        try:
            return _schema_from_dict(data)
        except (KeyError, TypeError, ValueError, CellPositionParseError) as e:
            raise ConfigError(f"Invalid schema options: {e}") from e

    @classmethod
    def from_json(cls, text: str) -> "SchemaOptions":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in schema options: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: str | Path) -> "SchemaOptions":
        with open(path, encoding="utf-8") as f:
            return cls.from_json(f.read())

def _sheet_position(value: str) -> SheetCellPosition:
    return SheetCellPosition.parse(value)

def _optional_sheet_position(value: str | None) -> SheetCellPosition | None:
    return None if value is None else SheetCellPosition.parse(value)

def _optional_offset(value: str | None) -> CellPosition | None:
    return None if value is None else CellPosition.from_a1(value)

def _terms(data: dict[str, Any]) -> Terms:
    def table(name: str, enum_type: Any) -> dict[str, Any]:
        return {label: enum_type(value) for label, value in data.get(name, {}).items()}

    return Terms(
        confidence=table("confidence", Confidence),
        hazard_rating=table("hazard_rating", HazardRatingValue),
        trend=table("trend", Trend),
        avalanche_problem_kind=table("avalanche_problem_kind", ProblemKind),
        distribution=table("distribution", Distribution),
        time_of_day=table("time_of_day", TimeOfDay),
        sensitivity=table("sensitivity", Sensitivity),
        size=table("size", Size),
    )

def _schema_from_dict(data: dict[str, Any]) -> SchemaOptions:
    area = data["area"]
    boundaries = area["elevation_band_boundaries"]
    time = data["time"]

    elevation_bands = list(data["elevation_bands"])
    if len(set(elevation_bands)) != len(elevation_bands):
        raise ValueError("elevation_bands must not contain duplicates")

    return SchemaOptions(
        schema_version=Version.parse(data["schema_version"]),
        template_version=_sheet_position(data["template_version"]),
        language=LanguageOptions(
            position=_sheet_position(data["language"]["position"]),
            map=dict(data["language"]["map"]),
        ),
        area=AreaOptions(
            position=_sheet_position(area["position"]),
            map=dict(area["map"]),
            elevation_band_boundaries=ElevationBandBoundaries(
                position=_sheet_position(boundaries["position"]),
                reverse=bool(boundaries.get("reverse", False)),
            ),
        ),
        area_definitions={
            area_id: AreaDefinition(time_zone=ZoneInfo(definition["time_zone"]))
            for area_id, definition in data["area_definitions"].items()
        },
        forecaster=ForecasterOptions(
            name=_sheet_position(data["forecaster"]["name"]),
            organisation=_sheet_position(data["forecaster"]["organisation"]),
        ),
        time=TimeOptions(
            date=_sheet_position(time["date"]),
            time=_sheet_position(time["time"]),
        ),
        valid_for=_sheet_position(data["valid_for"]),
        hazard_ratings={
            HazardRatingKind(kind): HazardRatingInput(
                root=_sheet_position(rating["root"]),
                value=CellPosition.from_a1(rating["value"]),
                trend=_optional_offset(rating.get("trend")),
                confidence=_optional_offset(rating.get("confidence")),
            )
            for kind, rating in data["hazard_ratings"]["inputs"].items()
        },
        avalanche_problems=[
            AvalancheProblemOptions(
                root=_sheet_position(problem["root"]),
                enabled=CellPosition.from_a1(problem["enabled"]),
                kind=CellPosition.from_a1(problem["kind"]),
                aspect_elevation={
                    band: AspectElevationOptions(
                        enabled=CellPosition.from_a1(aspect_elevation["enabled"]),
                        aspects=CellPosition.from_a1(aspect_elevation["aspects"]),
                    )
                    for band, aspect_elevation in problem["aspect_elevation"].items()
                },
                confidence=_optional_offset(problem.get("confidence")),
                sensitivity=_optional_offset(problem.get("sensitivity")),
                size=_optional_offset(problem.get("size")),
                distribution=_optional_offset(problem.get("distribution")),
                time_of_day=_optional_offset(problem.get("time_of_day")),
                trend=_optional_offset(problem.get("trend")),
            )
            for problem in data.get("avalanche_problems", [])
        ],
        elevation_bands=elevation_bands,
        terms=_terms(data["terms"]),
        recent_observations=_optional_sheet_position(data.get("recent_observations")),
        forecast_changes=_optional_sheet_position(data.get("forecast_changes")),
        weather_forecast=_optional_sheet_position(data.get("weather_forecast")),
        description=_optional_sheet_position(data.get("description")),
    )
