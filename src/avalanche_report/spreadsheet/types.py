"""Forecast domain model."""

from dataclasses import dataclass
from dataclasses import field
from datetime import datetime
from datetime import timedelta
from enum import Enum
from typing import Any

from avalanche_report.spreadsheet.version import Version


class HazardRatingKind(Enum):
    OVERALL = "overall"
    HIGH_ALPINE = "high-alpine"
    ALPINE = "alpine"
    SUB_ALPINE = "sub-alpine"

class HazardRatingValue(Enum):
    LOW = "low"
    MODERATE = "moderate"
    CONSIDERABLE = "considerable"
    HIGH = "high"
    EXTREME = "extreme"
    NO_RATING = "no-rating"

class Trend(Enum):
    IMPROVING = "improving"
    STEADY = "steady"
    DETERIORATING = "deteriorating"

class Confidence(Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"

class ProblemKind(Enum):
    WIND_SLAB = "wind-slab"
    STORM_SLAB = "storm-slab"
    WET_SLAB = "wet-slab"
    PERSISTENT_SLAB = "persistent-slab"
    DEEP_PERSISTENT_SLAB = "deep-persistent-slab"
    LOOSE_WET = "loose-wet"
    LOOSE_DRY = "loose-dry"
    CORNICE = "cornice"
    GLIDE = "glide"

class Sensitivity(Enum):
    UNREACTIVE = "unreactive"
    STUBBORN = "stubborn"
    REACTIVE = "reactive"
    TOUCHY = "touchy"

class Distribution(Enum):
    ISOLATED = "isolated"
    SPECIFIC = "specific"
    WIDESPREAD = "widespread"

class Size(Enum):
    ONE = 1
    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5

class TimeOfDay(Enum):
    ALL_DAY = "all-day"
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"

class Aspect(Enum):
    N = "N"
    NE = "NE"
    E = "E"
    SE = "SE"
    S = "S"
    SW = "SW"
    W = "W"
    NW = "NW"

ASPECT_ORDER = list(Aspect)

class Probability(Enum):
    UNLIKELY = "unlikely"
    POSSIBLE = "possible"
    LIKELY = "likely"
    VERY_LIKELY = "very-likely"

    @classmethod
    def calculate(cls, sensitivity: Sensitivity, distribution: Distribution) -> "Probability":
        """Likelihood of triggering from sensitivity and spatial distribution."""
        return PROBABILITY_MATRIX[sensitivity][distribution]

_U = Probability.UNLIKELY
_P = Probability.POSSIBLE
_L = Probability.LIKELY
_VL = Probability.VERY_LIKELY

PROBABILITY_MATRIX: dict[Sensitivity, dict[Distribution, Probability]] = {
    sensitivity: dict(zip(Distribution, row))
    for sensitivity, row in zip(Sensitivity, [
        # Isolated, Specific, Widespread
        [_U, _U, _U],    # Unreactive
        [_U, _P, _P],    # Stubborn
        [_P, _P, _L],    # Reactive
        [_P, _L, _VL],   # Touchy
    ])
}

def _enum_value(value: Enum | None) -> Any:
    return None if value is None else value.value

def _enum_or_none(enum_type: type[Enum], value: Any) -> Any:
    return None if value is None else enum_type(value)

@dataclass
class Forecaster:
    name: str
    organisation: str

@dataclass
class HazardRating:
    value: HazardRatingValue
    trend: Trend | None = None
    confidence: Confidence | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "value": self.value.value,
            "trend": _enum_value(self.trend),
            "confidence": _enum_value(self.confidence),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HazardRating":
        return cls(
            value=HazardRatingValue(data["value"]),
            trend=_enum_or_none(Trend, data.get("trend")),
            confidence=_enum_or_none(Confidence, data.get("confidence")),
        )

@dataclass
class ElevationRange:
    """Bounds of an elevation band in metres, open ended where ``None``."""
    upper: int | None = None
    lower: int | None = None

@dataclass
class AvalancheProblem:
    kind: ProblemKind
    aspect_elevation: dict[str, set[Aspect]] = field(default_factory=dict)
    confidence: Confidence | None = None
    sensitivity: Sensitivity | None = None
    size: Size | None = None
    distribution: Distribution | None = None
    time_of_day: TimeOfDay | None = None
    trend: Trend | None = None

    @property
    def probability(self) -> Probability | None:
        if self.sensitivity is None or self.distribution is None:
            return None
        return Probability.calculate(self.sensitivity, self.distribution)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "aspect_elevation": {
                band: [aspect.value for aspect in ASPECT_ORDER if aspect in aspects]
                for band, aspects in self.aspect_elevation.items()
            },
            "confidence": _enum_value(self.confidence),
            "sensitivity": _enum_value(self.sensitivity),
            "size": _enum_value(self.size),
            "distribution": _enum_value(self.distribution),
            "time_of_day": _enum_value(self.time_of_day),
            "trend": _enum_value(self.trend),
            "probability": _enum_value(self.probability),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AvalancheProblem":
        return cls(
            kind=ProblemKind(data["kind"]),
            aspect_elevation={
                band: {Aspect(aspect) for aspect in aspects}
                for band, aspects in data.get("aspect_elevation", {}).items()
            },
            confidence=_enum_or_none(Confidence, data.get("confidence")),
            sensitivity=_enum_or_none(Sensitivity, data.get("sensitivity")),
            size=_enum_or_none(Size, data.get("size")),
            distribution=_enum_or_none(Distribution, data.get("distribution")),
            time_of_day=_enum_or_none(TimeOfDay, data.get("time_of_day")),
            trend=_enum_or_none(Trend, data.get("trend")),
        )

@dataclass
class Forecast:
    """A parsed avalanche forecast."""
    area: str
    forecaster: Forecaster
    time: datetime
    template_version: Version
    language: str
    hazard_ratings: dict[HazardRatingKind, HazardRating]
    avalanche_problems: list[AvalancheProblem]
    elevation_bands: dict[str, ElevationRange]
    valid_for: timedelta
    recent_observations: dict[str, str] | None = None
    forecast_changes: dict[str, str] | None = None
    weather_forecast: dict[str, str] | None = None
    description: dict[str, str] | None = None

    @property
    def valid_until(self) -> datetime:
        return self.time + self.valid_for

    def is_current(self, now: datetime) -> bool:
        return now <= self.valid_until

    def to_dict(self) -> dict[str, Any]:
        """JSON compatible representation."""
        return {
            "area": self.area,
            "forecaster": {"name": self.forecaster.name, "organisation": self.forecaster.organisation},
            "time": self.time.isoformat(),
            "template_version": str(self.template_version),
            "language": self.language,
            "hazard_ratings": {
                kind.value: rating.to_dict() for kind, rating in self.hazard_ratings.items()
            },
            "avalanche_problems": [problem.to_dict() for problem in self.avalanche_problems],
            "elevation_bands": {
                band: {"upper": bounds.upper, "lower": bounds.lower}
                for band, bounds in self.elevation_bands.items()
            },
            "valid_for": int(self.valid_for.total_seconds()),
            "recent_observations": self.recent_observations,
            "forecast_changes": self.forecast_changes,
            "weather_forecast": self.weather_forecast,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Forecast":
        return cls(
            area=data["area"],
            forecaster=Forecaster(**data["forecaster"]),
            time=datetime.fromisoformat(data["time"]),
            template_version=Version.parse(data["template_version"]),
            language=data["language"],
            hazard_ratings={
                HazardRatingKind(kind): HazardRating.from_dict(rating)
                for kind, rating in data["hazard_ratings"].items()
            },
            avalanche_problems=[
                AvalancheProblem.from_dict(problem) for problem in data["avalanche_problems"]
            ],
            elevation_bands={
                band: ElevationRange(upper=bounds.get("upper"), lower=bounds.get("lower"))
                for band, bounds in data["elevation_bands"].items()
            },
            valid_for=timedelta(seconds=data["valid_for"]),
            recent_observations=data.get("recent_observations"),
            forecast_changes=data.get("forecast_changes"),
            weather_forecast=data.get("weather_forecast"),
            description=data.get("description"),
        )
