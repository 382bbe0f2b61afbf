"""HTTP surface of the avalanche report service."""

import logging
from dataclasses import dataclass
from dataclasses import field
from datetime import datetime
from typing import Any
from urllib.parse import quote

from fastapi import APIRouter
from fastapi import FastAPI
from fastapi import HTTPException
from fastapi import Query
from fastapi import Request
from fastapi.responses import HTMLResponse
from fastapi.responses import JSONResponse
from fastapi.responses import Response

from avalanche_report import __version__
from avalanche_report.config.secrets import redact
from avalanche_report.database import Database
from avalanche_report.exceptions import AnalyticsQueryError
from avalanche_report.exceptions import AvalancheReportError
from avalanche_report.exceptions import ForecastNotFoundError
from avalanche_report.responses import AnalyticsGraphEntry
from avalanche_report.responses import AnalyticsResponse
from avalanche_report.responses import AnalyticsSummaryEntry
from avalanche_report.responses import ErrorResponse
from avalanche_report.responses import ForecastFileEntry
from avalanche_report.responses import ForecastGroupEntry
from avalanche_report.responses import ForecastIndexResponse
from avalanche_report.responses import HealthResponse
from avalanche_report.services.analytics import AnalyticsPipeline
from avalanche_report.services.analytics import DEFAULT_GRAPH_RESOLUTION
from avalanche_report.services.analytics import get_summaries
from avalanche_report.services.analytics import graph_analytics
from avalanche_report.services.analytics import resolve_window
from avalanche_report.services.current_weather import get_current_weather
from avalanche_report.services.forecast_areas import get_forecast_area
from avalanche_report.services.forecast_areas import list_forecast_areas
from avalanche_report.services.forecasts import ForecastService
from avalanche_report.services.forecasts import ForecastView
from avalanche_report.spreadsheet.errors import ParseCellError
from avalanche_report.spreadsheet.registry import ForecastSchemas
from avalanche_report.templates import BasicRenderer
from avalanche_report.templates import TemplateRenderer


logger = logging.getLogger(__name__)

GEOJSON_MEDIA_TYPE = "application/geo+json"

def content_disposition(file_name: str) -> str:
    """Inline disposition, adding an RFC 5987 UTF-8 name when the name needs quoting."""
    quoted = quote(file_name)
    if quoted == file_name:
        return f"inline; filename=\"{file_name}\""
    fallback = file_name.encode("ascii", "replace").decode("ascii").replace("\"", "")
    return f"inline; filename=\"{fallback}\"; filename*=utf-8''{quoted}"

@dataclass
class AppState:
    """Everything request handlers need, built once at startup."""
    database: Database
    forecasts: ForecastService
    analytics: AnalyticsPipeline
    schemas: ForecastSchemas
    renderer: TemplateRenderer = field(default_factory=BasicRenderer)
    secret_values: list[str] = field(default_factory=list)
    admin_enabled: bool = False

def _index_response(state: AppState) -> ForecastIndexResponse:
    index = state.forecasts.list_forecasts()
    return ForecastIndexResponse(
        forecasts=[
            ForecastGroupEntry(
                area=group.details.area,
                time=group.details.time,
                forecaster=group.details.forecaster,
                files=[
                    ForecastFileEntry(name=file.name, mime_type=file.mime_type, language=file.language)
                    for file in group.files
                ],
            )
            for group in index.forecasts
        ],
        errors=[f"{error.file_name}: {error.message}" for error in index.errors],
    )

def _admin_router(state: AppState) -> APIRouter:
    router = APIRouter(prefix="/admin", tags=["admin"])

    @router.get("/analytics", response_model=AnalyticsResponse)
    def analytics(
        duration: str | None = None,
        from_: datetime | None = Query(default=None, alias="from"),
        to: datetime | None = None,
        uri: str | None = None,
        resolution: int = Query(default=DEFAULT_GRAPH_RESOLUTION, gt=0, le=4096),
    ) -> AnalyticsResponse:
        window_from, window_to = resolve_window(duration, from_, to)
        summaries = get_summaries(state.database, window_from, window_to, uri)
        graph = graph_analytics(state.database, window_from, window_to, uri, resolution)
        return AnalyticsResponse(
            from_=window_from,
            to=window_to,
            summaries=[AnalyticsSummaryEntry(uri=s.uri, visits=s.visits) for s in summaries],
            graph=[AnalyticsGraphEntry(start=b.start, end=b.end, visits=b.visits) for b in graph],
        )

    return router

def create_app(state: AppState) -> FastAPI:
    """Create FastAPI application.

    Handlers are plain functions so FastAPI runs them on its worker
    thread pool; they block on Google Drive and SQLite freely.
    """
    app = FastAPI(
        title="Avalanche Report",
        version=__version__,
        docs_url=None,
        redoc_url=None,
    )
    app.state.avalanche_report = state

    @app.middleware("http")
    async def record_analytics(request: Request, call_next: Any) -> Response:
        response = await call_next(request)
        state.analytics.record(request.url.path, response.status_code)
        return response

    @app.exception_handler(ForecastNotFoundError)
    async def not_found_handler(request: Request, exc: ForecastNotFoundError) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content=ErrorResponse(error=exc.code.value, message=exc.message).model_dump(),
        )

    @app.exception_handler(AnalyticsQueryError)
    async def query_error_handler(request: Request, exc: AnalyticsQueryError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(error=exc.code.value, message=exc.message).model_dump(),
        )

    @app.exception_handler(AvalancheReportError)
    async def error_handler(request: Request, exc: AvalancheReportError) -> JSONResponse:
        message = redact(exc.message, state.secret_values)
        position = str(exc.position) if isinstance(exc, ParseCellError) else None
        logger.error("Error handling %s: %s", request.url.path, message)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error=exc.code.value, message=message, position=position).model_dump(),
        )

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="healthy", version=__version__, schema_versions=state.schemas.versions)

    @app.get("/", response_class=HTMLResponse)
    def index() -> HTMLResponse:
        index = _index_response(state)
        context = {
            "forecasts": [
                {
                    "area": group.area,
                    "time": group.time.isoformat(),
                    "forecaster": group.forecaster,
                    "files": [file.model_dump() for file in group.files],
                }
                for group in index.forecasts
            ],
            "errors": index.errors,
        }
        return HTMLResponse(state.renderer.render("index.html", context))

    @app.get("/index.json", response_model=ForecastIndexResponse)
    def index_json() -> ForecastIndexResponse:
        return _index_response(state)

    @app.get("/forecasts/{file_name}")
    def forecast(file_name: str) -> Response:
        result = state.forecasts.get_forecast_file(file_name)
        if result.view == ForecastView.JSON:
            return JSONResponse(result.forecast.to_dict())
        if result.view == ForecastView.HTML:
            return HTMLResponse(state.renderer.render("forecast.html", result.formatted.context()))
        return Response(
            content=result.data,
            media_type=result.file.mime_type,
            headers={"Content-Disposition": content_disposition(result.file.name)},
        )

    @app.get("/forecast-areas")
    def forecast_areas() -> list[str]:
        return list_forecast_areas(state.database)

    @app.get("/forecast-areas/{area_id}/area.geojson")
    def forecast_area(area_id: str) -> Response:
        geojson = get_forecast_area(state.database, area_id)
        if geojson is None:
            raise HTTPException(status_code=404, detail=f"Forecast area {area_id!r} not found")
        return Response(content=geojson, media_type=GEOJSON_MEDIA_TYPE)

    @app.get("/current-weather/{station_id}.json")
    def current_weather(station_id: str) -> JSONResponse:
        items = get_current_weather(state.database, station_id)
        if items is None:
            raise HTTPException(status_code=404, detail=f"Weather station {station_id!r} not found")
        return JSONResponse([item.to_dict() for item in items])

    if state.admin_enabled:
        app.include_router(_admin_router(state))

    return app
