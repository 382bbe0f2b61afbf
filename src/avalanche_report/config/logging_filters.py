"""Logging filters."""

import logging
from typing import Any

from avalanche_report.config.secrets import redact


class SensitiveDataFilter(logging.Filter):
    """Filter to mask sensitive data in logs.

    Masks structured ``extra_fields`` whose key looks sensitive and replaces
    known secret values anywhere in the rendered message.
    """

    def __init__(
        self,
        sensitive_fields: set[str] | None = None,
        secret_values: list[str] | None = None
    ):
        """Initialize filter.

        Args:
            sensitive_fields: Set of field names to mask
            secret_values: Literal secret values to scrub from messages
        """
        super().__init__()
        self.sensitive_fields = sensitive_fields or {
            'password', 'password_hash', 'token', 'api_key', 'apikey', 'key',
            'application_key', 'secret', 'aws_secret_access_key', 'auth', 'cookie'
        }
        self.secret_values = secret_values or []

    def _mask_sensitive_data(self, obj: Any) -> Any:
        """Recursively mask sensitive data in object."""
        if isinstance(obj, dict):
            return {
                k: '***MASKED***' if k.lower() in self.sensitive_fields else self._mask_sensitive_data(v)
                for k, v in obj.items()
            }
        if isinstance(obj, list):
            return [self._mask_sensitive_data(item) for item in obj]
        return obj

    def filter(self, record: logging.LogRecord) -> bool:
        """Mask sensitive data in log record."""
        if hasattr(record, 'extra_fields'):
            record.extra_fields = self._mask_sensitive_data(record.extra_fields)
        if self.secret_values:
            message = record.getMessage()
            scrubbed = redact(message, self.secret_values)
            if scrubbed != message:
                record.msg = scrubbed
                record.args = None
        return True
