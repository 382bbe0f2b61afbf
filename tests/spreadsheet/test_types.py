"""Tests for the forecast model."""

from datetime import datetime
from datetime import timedelta
from datetime import timezone

import pytest

from avalanche_report.spreadsheet.types import AvalancheProblem
from avalanche_report.spreadsheet.types import Distribution
from avalanche_report.spreadsheet.types import Forecast
from avalanche_report.spreadsheet.types import Forecaster
from avalanche_report.spreadsheet.types import HazardRating
from avalanche_report.spreadsheet.types import HazardRatingKind
from avalanche_report.spreadsheet.types import HazardRatingValue
from avalanche_report.spreadsheet.types import Probability
from avalanche_report.spreadsheet.types import ProblemKind
from avalanche_report.spreadsheet.types import Sensitivity
from avalanche_report.spreadsheet.version import Version


@pytest.mark.parametrize("sensitivity,distribution,expected", [
    (Sensitivity.UNREACTIVE, Distribution.ISOLATED, Probability.UNLIKELY),
    (Sensitivity.UNREACTIVE, Distribution.WIDESPREAD, Probability.UNLIKELY),
    (Sensitivity.STUBBORN, Distribution.ISOLATED, Probability.UNLIKELY),
    (Sensitivity.STUBBORN, Distribution.SPECIFIC, Probability.POSSIBLE),
    (Sensitivity.REACTIVE, Distribution.SPECIFIC, Probability.POSSIBLE),
    (Sensitivity.REACTIVE, Distribution.WIDESPREAD, Probability.LIKELY),
    (Sensitivity.TOUCHY, Distribution.ISOLATED, Probability.POSSIBLE),
    (Sensitivity.TOUCHY, Distribution.SPECIFIC, Probability.LIKELY),
    (Sensitivity.TOUCHY, Distribution.WIDESPREAD, Probability.VERY_LIKELY),
])
def test_probability_matrix(sensitivity, distribution, expected):
    assert Probability.calculate(sensitivity, distribution) == expected

def test_probability_needs_both_inputs():
    problem = AvalancheProblem(kind=ProblemKind.CORNICE, sensitivity=Sensitivity.TOUCHY)
    assert problem.probability is None

@pytest.fixture
def forecast():
    return Forecast(
        area="gudauri",
        forecaster=Forecaster(name="Levi Seiferheld", organisation="Vagabond Gudauri"),
        time=datetime(2023, 2, 7, 15, 0, tzinfo=timezone.utc),
        template_version=Version(0, 3, 3),
        language="en-UK",
        hazard_ratings={HazardRatingKind.OVERALL: HazardRating(HazardRatingValue.HIGH)},
        avalanche_problems=[],
        elevation_bands={},
        valid_for=timedelta(hours=24),
    )

def test_is_current(forecast):
    assert forecast.is_current(datetime(2023, 2, 8, 14, 0, tzinfo=timezone.utc))
    assert forecast.is_current(datetime(2023, 2, 8, 15, 0, tzinfo=timezone.utc))
    assert not forecast.is_current(datetime(2023, 2, 8, 15, 0, 1, tzinfo=timezone.utc))

def test_dict_round_trip(forecast):
    assert Forecast.from_dict(forecast.to_dict()) == forecast
