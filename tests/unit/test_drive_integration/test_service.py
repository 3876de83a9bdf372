"""
Tests for the Drive service layer.
"""

import json

import httpx
import pytest

from drive_manager.core.exceptions import UpstreamFailureError, ValidationError
from drive_manager.drive_integration import DriveService


FILES_PATH = "/drive/v3/files"
UPLOAD_PATH = "/upload/drive/v3/files"


@pytest.fixture
def service(drive_client):
    return DriveService(drive_client)


class TestUpload:
    """Test uploads with optional folders."""

    def test_upload_to_root(self, service, drive_api):
        drive_api.add("POST", UPLOAD_PATH, httpx.Response(200, json={"id": "f1", "name": "notes.txt"}))

        uploaded = service.upload(b"notes", "notes.txt", "text/plain")

        assert uploaded.id == "f1"
        assert drive_api.calls("GET") == []
        metadata = json.loads(drive_api.multipart_parts(drive_api.requests[0])["metadata"][1])
        assert "parents" not in metadata

    def test_blank_folder_name_uploads_to_root(self, service, drive_api):
        drive_api.add("POST", UPLOAD_PATH, httpx.Response(200, json={"id": "f1"}))

        service.upload(b"notes", "notes.txt", "text/plain", folder_name="   ")

        assert drive_api.calls("GET") == []

    def test_upload_into_existing_folder(self, service, drive_api):
        drive_api.add("GET", FILES_PATH, httpx.Response(200, json={"files": [{"id": "folder-9"}]}))
        drive_api.add("POST", UPLOAD_PATH, httpx.Response(200, json={"id": "f1"}))

        service.upload(b"notes", "notes.txt", "text/plain", folder_name="Reports")

        upload = drive_api.calls("POST", UPLOAD_PATH)[0]
        assert json.loads(drive_api.multipart_parts(upload)["metadata"][1])["parents"] == ["folder-9"]

    def test_upload_into_new_folder(self, service, drive_api):
        drive_api.add("GET", FILES_PATH, httpx.Response(200, json={"files": []}))
        drive_api.add("POST", FILES_PATH, httpx.Response(200, json={"id": "created"}))
        drive_api.add("POST", UPLOAD_PATH, httpx.Response(200, json={"id": "f1"}))

        service.upload(b"notes", "notes.txt", "text/plain", folder_name="Reports")

        upload = drive_api.calls("POST", UPLOAD_PATH)[0]
        assert json.loads(drive_api.multipart_parts(upload)["metadata"][1])["parents"] == ["created"]

    def test_missing_name_and_type_use_defaults(self, service, drive_api):
        drive_api.add("POST", UPLOAD_PATH, httpx.Response(200, json={"id": "f1"}))

        service.upload(b"\x00", None, "")

        metadata = json.loads(drive_api.multipart_parts(drive_api.requests[0])["metadata"][1])
        assert metadata == {"name": "Untitled", "mimeType": "application/octet-stream"}

    def test_folder_failure_stops_upload(self, service, drive_api):
        drive_api.add("GET", FILES_PATH, httpx.Response(500))

        with pytest.raises(UpstreamFailureError):
            service.upload(b"notes", "notes.txt", "text/plain", folder_name="Reports")

        assert drive_api.calls("POST") == []

    def test_missing_content(self, service):
        with pytest.raises(ValidationError):
            service.upload(None, "notes.txt")
