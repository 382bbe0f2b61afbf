"""Pydantic models for JSON responses."""

from datetime import datetime

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


class ErrorResponse(BaseModel):
    error: str
    message: str
    position: str | None = None

class HealthResponse(BaseModel):
    status: str
    version: str
    schema_versions: list[str]

class ForecastFileEntry(BaseModel):
    name: str
    mime_type: str
    language: str | None = None

class ForecastGroupEntry(BaseModel):
    area: str
    time: datetime
    forecaster: str
    files: list[ForecastFileEntry]

class ForecastIndexResponse(BaseModel):
    forecasts: list[ForecastGroupEntry]
    errors: list[str]

class AnalyticsSummaryEntry(BaseModel):
    uri: str
    visits: int

class AnalyticsGraphEntry(BaseModel):
    start: datetime
    end: datetime
    visits: int

class AnalyticsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: datetime | None = Field(default=None, alias="from")
    to: datetime
    summaries: list[AnalyticsSummaryEntry]
    graph: list[AnalyticsGraphEntry]
