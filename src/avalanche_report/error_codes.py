"""Error codes for the avalanche report service."""

from enum import Enum

class ErrorCode(Enum):
    """Enumeration of all possible error codes."""
    # API Errors
    REQUEST_FAILED = "request_failed"
    TIMEOUT = "timeout"
    SERVER_ERROR = "server_error"

    # Data Errors
    INVALID_RESPONSE = "invalid_response"
    MISSING_DATA = "missing_data"
    VALIDATION_FAILED = "validation_failed"

    # Configuration Errors
    CONFIG_INVALID = "config_invalid"
    CONFIG_MISSING = "config_missing"

    # Service Errors
    SERVICE_UNAVAILABLE = "service_unavailable"
    SERVICE_ERROR = "service_error"

    # Forecast Errors
    FORECAST_NOT_FOUND = "forecast_not_found"
    FORECAST_PARSE_ERROR = "forecast_parse_error"
    FORECAST_NAME_INVALID = "forecast_name_invalid"
    UNSUPPORTED_MIME_TYPE = "unsupported_mime_type"
    UNSUPPORTED_TEMPLATE = "unsupported_template"

    # Document Store Errors
    DRIVE_TRANSPORT_ERROR = "drive_transport_error"
    DRIVE_RESPONSE_ERROR = "drive_response_error"

    # Database Errors
    DATABASE_ERROR = "database_error"
    MIGRATION_FAILED = "migration_failed"
    BACKUP_FAILED = "backup_failed"

    # Analytics Errors
    ANALYTICS_QUERY_INVALID = "analytics_query_invalid"

    # Weather Errors
    WEATHER_ERROR = "weather_error"
