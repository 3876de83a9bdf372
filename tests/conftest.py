"""
Pytest configuration and fixtures for Drive Manager tests.
"""

from email import policy
from email.parser import BytesParser
from pathlib import Path
from typing import Callable, Dict, Generator, List, Tuple, Union
import tempfile

import httpx
import pytest

from drive_manager.drive_integration import GoogleDriveClient
from drive_manager.settings import AppSettings, GoogleDriveSettings


ACCESS_TOKEN = "test_access_token"

Responder = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


class MockDriveAPI:
    """
    Canned Drive API responses keyed by (method, path), with a request log.

    Queued responses are consumed in order; the last one is reused. A
    request with no queued response fails the test.
    """

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self._routes: Dict[Tuple[str, str], List[Responder]] = {}

    def add(self, method: str, path: str, *responses: Responder) -> None:
        self._routes.setdefault((method, path), []).extend(responses)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self._routes.get((request.method, request.url.path))
        if not queue:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        responder = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(responder):
            return responder(request)
        return responder

    def calls(self, method: str, path: str = None) -> List[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method and (path is None or r.url.path == path)
        ]

    @staticmethod
    def multipart_parts(request: httpx.Request) -> Dict[str, Tuple[str, bytes]]:
        """Split a multipart request into {part name: (content type, payload)}."""
        raw = b"Content-Type: " + request.headers["content-type"].encode() + b"\r\n\r\n" + request.content
        message = BytesParser(policy=policy.HTTP).parsebytes(raw)
        parts = {}
        for part in message.iter_parts():
            name = part.get_param("name", header="content-disposition")
            parts[name] = (part.get_content_type(), part.get_payload(decode=True))
        return parts


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_settings() -> AppSettings:
    """Create test settings with minimal configuration."""
    return AppSettings(
        name="TestDriveManager",
        version="0.1.0-test",
        debug=True
    )


@pytest.fixture
def drive_settings() -> GoogleDriveSettings:
    return GoogleDriveSettings(
        api_base_url="https://www.googleapis.com/drive/v3",
        upload_base_url="https://www.googleapis.com/upload/drive/v3",
        client_id="test-client-id",
        client_secret="test-client-secret",
        redirect_uri="http://localhost:8080/auth/callback",
    )


@pytest.fixture
def drive_api() -> MockDriveAPI:
    return MockDriveAPI()


@pytest.fixture
def http_client(drive_api: MockDriveAPI) -> Generator[httpx.Client, None, None]:
    with httpx.Client(transport=httpx.MockTransport(drive_api.handler)) as client:
        yield client


@pytest.fixture
def drive_client(
    http_client: httpx.Client,
    drive_settings: GoogleDriveSettings
) -> GoogleDriveClient:
    return GoogleDriveClient(ACCESS_TOKEN, drive_settings, http_client)


@pytest.fixture
def sample_env_file(temp_dir: Path) -> Path:
    """Create a sample .env file for testing."""
    env_file = temp_dir / ".env"
    env_content = """
GOOGLE_CLIENT_ID=env-client-id
LOG_LEVEL=DEBUG
"""
    env_file.write_text(env_content.strip())
    return env_file


@pytest.fixture
def sample_yaml_config(temp_dir: Path) -> Path:
    """Create a sample YAML config file for testing."""
    yaml_file = temp_dir / "settings.yaml"
    yaml_content = """
app:
  name: "TestDriveManager"
  version: "0.1.0-test"
  debug: true

google_drive:
  client_id: "yaml-client-id"
  upload_base_url: "https://uploads.example.test/drive/v3/"
  timeout: 10

web:
  port: 9000
  title: "Test Files"

logging:
  level: "WARNING"
"""
    yaml_file.write_text(yaml_content.strip())
    return yaml_file
