"""Google Drive client for listing and downloading forecast files."""

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import requests

from avalanche_report.api.base_api import BODY_SNIPPET_LENGTH
from avalanche_report.api.base_api import BaseAPI
from avalanche_report.exceptions import APIError
from avalanche_report.exceptions import APIValidationError
from avalanche_report.exceptions import GoogleDriveResponseError
from avalanche_report.exceptions import GoogleDriveTransportError


GOOGLE_DRIVE_API_URL = "https://www.googleapis.com/drive/v3/"

SPREADSHEET_MIME_TYPE = "application/vnd.google-apps.spreadsheet"
XLSX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PDF_MIME_TYPE = "application/pdf"

LIST_FIELDS = "files(mimeType, id, name, modifiedTime)"

@dataclass(frozen=True)
class FileMetadata:
    """Descriptor of a file stored in Google Drive."""
    id: str
    name: str
    mime_type: str
    modified_time: datetime

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "FileMetadata":
        return cls(
            id=data["id"],
            name=data["name"],
            mime_type=data["mimeType"],
            modified_time=datetime.fromisoformat(data["modifiedTime"]),
        )

class DriveFile:
    """Streaming body of a downloaded or exported file."""

    CHUNK_SIZE = 64 * 1024

    def __init__(self, response: requests.Response):
        self._response = response

    @property
    def content_type(self) -> str | None:
        return self._response.headers.get("Content-Type")

    def iter_content(self) -> Iterator[bytes]:
        try:
            yield from self._response.iter_content(chunk_size=self.CHUNK_SIZE)
        finally:
            self._response.close()

    def read(self) -> bytes:
        return b"".join(self.iter_content())

class GoogleDriveClient(BaseAPI):
    """Read-only access to files in Google Drive using an API key.

    The client holds no state beyond its HTTP session.
    """

    def __init__(
        self,
        api_key: str,
        session: requests.Session | None = None,
        base_url: str = GOOGLE_DRIVE_API_URL
    ):
        super().__init__(base_url, session=session, secrets=[api_key])
        self._api_key = api_key

    def _transport_error(self, message: str, timeout: bool = False) -> APIError:
        return GoogleDriveTransportError(message)

    def _response_error(self, response: requests.Response) -> APIError:
        body = self._redact(response.text[:BODY_SNIPPET_LENGTH])
        envelope = None
        message = f"Google Drive request failed: HTTP {response.status_code}"
        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict) and isinstance(data.get("error"), dict):
            error = data["error"]
            envelope = {
                "code": error.get("code"),
                "message": self._redact(str(error.get("message", ""))),
                "errors": error.get("errors", []),
            }
            if envelope["message"]:
                message = f"{message}: {envelope['message']}"
        return GoogleDriveResponseError(message, response.status_code, body, envelope)

    def list_files(self, folder_id: str) -> list[FileMetadata]:
        """List the non-trashed files directly inside ``folder_id``."""
        data = self._get_json("files", params={
            "q": f"'{folder_id}' in parents and trashed = false",
            "fields": LIST_FIELDS,
            "key": self._api_key,
        })
        try:
            files = [FileMetadata.from_api(item) for item in data.get("files", [])]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise APIValidationError(f"Unexpected file list response: {e}") from e
        self.logger.debug("Listed %d files in folder %s", len(files), folder_id)
        return files

    def get_file(self, file_id: str) -> DriveFile:
        """Download the raw contents of a file."""
        response = self._request(
            f"files/{file_id}",
            params={"alt": "media", "key": self._api_key},
            stream=True,
        )
        return DriveFile(response)

    def export_file(self, file_id: str, mime_type: str) -> DriveFile:
        """Export a Google Workspace document to ``mime_type``."""
        response = self._request(
            f"files/{file_id}/export",
            params={"mimeType": mime_type, "key": self._api_key},
            stream=True,
        )
        return DriveFile(response)
