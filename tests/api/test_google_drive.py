"""Tests for the Google Drive client."""

from datetime import datetime, timezone

import pytest
import requests
from unittest.mock import MagicMock, Mock

from avalanche_report.api.google_drive import GoogleDriveClient
from avalanche_report.api.google_drive import LIST_FIELDS
from avalanche_report.api.google_drive import XLSX_MIME_TYPE
from avalanche_report.exceptions import GoogleDriveResponseError
from avalanche_report.exceptions import GoogleDriveTransportError

API_KEY = "drive-api-key"

def make_response(status_code=200, json_data=None, text="", chunks=()):
    response = Mock(spec=requests.Response)
    response.status_code = status_code
    response.ok = status_code < 400
    response.text = text
    response.headers = {"Content-Type": XLSX_MIME_TYPE}
    response.iter_content.return_value = iter(chunks)
    if json_data is None:
        response.json.side_effect = ValueError("No JSON")
    else:
        response.json.return_value = json_data
    return response

@pytest.fixture
def mock_session():
    return MagicMock(spec=requests.Session)

@pytest.fixture
def client(mock_session):
    return GoogleDriveClient(API_KEY, session=mock_session)

def test_list_files(client, mock_session):
    mock_session.get.return_value = make_response(json_data={"files": [{
        "id": "abc",
        "name": "Gudauri_2023-01-24T17:00_LF.en.pdf",
        "mimeType": "application/pdf",
        "modifiedTime": "2023-01-24T13:05:10.123Z",
    }]})

    files = client.list_files("folder-1")

    assert len(files) == 1
    assert files[0].id == "abc"
    assert files[0].mime_type == "application/pdf"
    assert files[0].modified_time == datetime(2023, 1, 24, 13, 5, 10, 123000, tzinfo=timezone.utc)

    url = mock_session.get.call_args.args[0]
    params = mock_session.get.call_args.kwargs["params"]
    assert url == "https://www.googleapis.com/drive/v3/files"
    assert params["q"] == "'folder-1' in parents and trashed = false"
    assert params["fields"] == LIST_FIELDS
    assert params["key"] == API_KEY

def test_get_file_streams_content(client, mock_session):
    response = make_response(chunks=[b"PK", b"\x03\x04"])
    mock_session.get.return_value = response

    drive_file = client.get_file("abc")

    assert drive_file.content_type == XLSX_MIME_TYPE
    assert drive_file.read() == b"PK\x03\x04"
    assert mock_session.get.call_args.kwargs["params"]["alt"] == "media"
    assert mock_session.get.call_args.kwargs["stream"] is True
    response.close.assert_called_once()

def test_export_file(client, mock_session):
    mock_session.get.return_value = make_response(chunks=[b"data"])

    assert client.export_file("abc", XLSX_MIME_TYPE).read() == b"data"
    assert mock_session.get.call_args.args[0].endswith("files/abc/export")
    assert mock_session.get.call_args.kwargs["params"]["mimeType"] == XLSX_MIME_TYPE

def test_error_envelope(client, mock_session):
    mock_session.get.return_value = make_response(
        403,
        json_data={"error": {
            "code": 403,
            "message": f"API key {API_KEY} not valid",
            "errors": [{"reason": "forbidden"}],
        }},
        text=f'{{"error": "API key {API_KEY} not valid"}}',
    )

    with pytest.raises(GoogleDriveResponseError) as exc_info:
        client.list_files("folder-1")

    error = exc_info.value
    assert error.status == 403
    assert error.envelope["code"] == 403
    assert error.envelope["errors"] == [{"reason": "forbidden"}]
    assert API_KEY not in error.envelope["message"]
    assert API_KEY not in error.body
    assert API_KEY not in str(error)

def test_transport_error(client, mock_session):
    mock_session.get.side_effect = requests.exceptions.ConnectionError(
        f"https://www.googleapis.com/drive/v3/files?key={API_KEY}"
    )

    with pytest.raises(GoogleDriveTransportError) as exc_info:
        client.list_files("folder-1")
    assert API_KEY not in str(exc_info.value)
