"""
Base API client for the avalanche report service.
"""

import time
from typing import Any
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from avalanche_report.config.secrets import redact
from avalanche_report.exceptions import APIError
from avalanche_report.exceptions import APIResponseError
from avalanche_report.exceptions import APITimeoutError
from avalanche_report.exceptions import APIValidationError
from avalanche_report.utils.logging_utils import LoggerMixin


# Longest piece of an error body kept in error messages
BODY_SNIPPET_LENGTH = 500

def create_session(
    retry_total: int = 3,
    backoff_factor: float = 0.5,
    status_forcelist: tuple[int, ...] = (408, 429, 500, 502, 503, 504)
) -> requests.Session:
    """Create a requests session with retry strategy.

    Sessions are meant to be shared so that one connection pool serves
    the whole process.
    """
    session = requests.Session()

    retry_strategy = Retry(
        total=retry_total,
        backoff_factor=backoff_factor,
        status_forcelist=list(status_forcelist),
        allowed_methods=["GET"]
    )

    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("http://", adapter)
    session.mount("https://", adapter)

    return session

class BaseAPI(LoggerMixin):
    """Base class for API clients."""

    # Default timeouts (connection timeout, read timeout)
    DEFAULT_TIMEOUT = (7, 20)

    def __init__(
        self,
        base_url: str,
        session: requests.Session | None = None,
        secrets: list[str] | None = None
    ):
        """Initialize API client.

        Args:
            base_url: Base URL for API
            session: Shared session, a new one with retries is created if omitted
            secrets: Values redacted from every error message and log line
        """
        super().__init__()
        self.base_url = base_url.rstrip("/") + "/"
        self.session = session or create_session()
        self._secrets = [secret for secret in (secrets or []) if secret]

    def _redact(self, text: str) -> str:
        return redact(text, self._secrets)

    def _transport_error(self, message: str, timeout: bool = False) -> APIError:
        if timeout:
            return APITimeoutError(message)
        return APIResponseError(message)

    def _response_error(self, response: requests.Response) -> APIError:
        body = self._redact(response.text[:BODY_SNIPPET_LENGTH])
        return APIResponseError(
            f"Request failed: HTTP {response.status_code}",
            response=response,
            details={"status": response.status_code, "body": body}
        )

    def _validate_response(self, response: requests.Response) -> None:
        """Raise the client's response error for non-success statuses."""
        if not response.ok:
            error = self._response_error(response)
            response.close()
            raise error

    def _parse_response(self, response: requests.Response) -> Any:
        """Parse a JSON response body.

        Raises:
            APIValidationError: If response cannot be parsed
        """
        try:
            return response.json()
        except ValueError as e:
            content = self._redact(response.text.strip()[:100])
            raise APIValidationError(f"Failed to parse response: {content}") from e

    def _request(
        self,
        endpoint: str,
        params: dict[str, str] | None = None,
        stream: bool = False,
        timeout: tuple[int, int] | None = None
    ) -> requests.Response:
        """Make a GET request and return the validated response.

        Raises:
            APITimeoutError: If request times out
            APIResponseError: If request fails
        """
        start_time = time.time()
        url = urljoin(self.base_url, endpoint)

        if timeout is None:
            timeout = self.DEFAULT_TIMEOUT

        try:
            response = self.session.get(url, params=params, stream=stream, timeout=timeout)
        except requests.exceptions.Timeout as e:
            elapsed = time.time() - start_time
            message = self._redact(f"Request timed out after {elapsed:.2f} seconds: {e}")
            self.logger.error(message)
            raise self._transport_error(message, timeout=True) from None
        except requests.exceptions.RequestException as e:
            elapsed = time.time() - start_time
            message = self._redact(f"Request failed after {elapsed:.2f} seconds: {e}")
            self.logger.error(message)
            raise self._transport_error(message) from None

        self._validate_response(response)
        self.logger.debug(
            "GET %s completed in %.2f seconds", endpoint, time.time() - start_time
        )
        return response

    def _get_json(self, endpoint: str, params: dict[str, str] | None = None) -> Any:
        response = self._request(endpoint, params=params)
        return self._parse_response(response)
