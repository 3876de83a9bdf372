"""
Unit tests for settings module.
"""

import json

import pytest
from pydantic import ValidationError

from drive_manager.settings import (
    AppSettings,
    GoogleDriveSettings,
    WebSettings,
    LoggingSettings,
    load_settings
)


ENV_KEYS = [
    "GOOGLE_CLIENT_ID", "GOOGLE_CLIENT_SECRET", "GOOGLE_TIMEOUT", "GOOGLE_SCOPES",
    "WEB_PORT", "LOG_LEVEL", "LOG_FILE",
]


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """Start without app variables and drop anything a test loads from .env."""
    for name in ENV_KEYS:
        # setenv records the original state so teardown removes values set by load_dotenv
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


class TestGoogleDriveSettings:
    """Test Google Drive configuration."""

    def test_default_values(self):
        """Test default Drive settings."""
        settings = GoogleDriveSettings()
        assert settings.api_base_url == "https://www.googleapis.com/drive/v3"
        assert settings.upload_base_url == "https://www.googleapis.com/upload/drive/v3"
        assert "https://www.googleapis.com/auth/drive" in settings.scopes
        assert settings.has_oauth_client is False

    def test_timeout_validation(self):
        """Test timeout must be positive."""
        assert GoogleDriveSettings().timeout == 30.0

        with pytest.raises(ValidationError):
            GoogleDriveSettings(timeout=0)

    def test_trailing_slash_removed(self):
        settings = GoogleDriveSettings(api_base_url="https://example.test/drive/v3/")
        assert settings.api_base_url == "https://example.test/drive/v3"

    def test_scopes_from_environment(self, monkeypatch):
        """Test comma-separated scopes are split."""
        monkeypatch.setenv("GOOGLE_SCOPES", "openid, https://www.googleapis.com/auth/drive.file")
        settings = GoogleDriveSettings()
        assert settings.scopes == ["openid", "https://www.googleapis.com/auth/drive.file"]

    def test_client_config_from_fields(self):
        settings = GoogleDriveSettings(client_id="id", client_secret="secret")
        config = settings.client_config()
        assert settings.has_oauth_client is True
        assert config["web"]["client_id"] == "id"
        assert config["web"]["client_secret"] == "secret"
        assert config["web"]["redirect_uris"] == [settings.redirect_uri]

    def test_client_config_from_file(self, temp_dir):
        """Test the client secrets file wins over individual fields."""
        secrets_file = temp_dir / "client_secret.json"
        secrets_file.write_text(json.dumps({"web": {"client_id": "from-file", "client_secret": "s"}}))

        settings = GoogleDriveSettings(client_id="id", client_secrets_file=secrets_file)

        assert settings.has_oauth_client is True
        assert settings.client_config()["web"]["client_id"] == "from-file"


class TestLoggingSettings:
    """Test logging configuration."""

    def test_default_values(self):
        """Test default logging settings."""
        settings = LoggingSettings()
        assert settings.level == "INFO"
        assert settings.file is None

    def test_log_level_validation(self):
        """Test log level validation."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

        for level in valid_levels:
            settings = LoggingSettings(level=level)
            assert settings.level == level

        # Test case insensitive
        settings = LoggingSettings(level="debug")
        assert settings.level == "DEBUG"

        # Test invalid level
        with pytest.raises(ValidationError):
            LoggingSettings(level="INVALID")


class TestAppSettings:
    """Test main application settings."""

    def test_default_initialization(self):
        """Test default app settings initialization."""
        settings = AppSettings()
        assert settings.name == "DriveManager"
        assert settings.version == "0.1.0"
        assert settings.debug is False

    def test_nested_settings(self):
        """Test nested settings configuration."""
        settings = AppSettings()
        assert isinstance(settings.google_drive, GoogleDriveSettings)
        assert isinstance(settings.web, WebSettings)
        assert isinstance(settings.logging, LoggingSettings)

    def test_explicit_values(self, test_settings):
        """Test values passed at construction win over defaults."""
        assert test_settings.name == "TestDriveManager"
        assert test_settings.version == "0.1.0-test"
        assert test_settings.debug is True
        assert test_settings.web.title == "My Drive Files"

    def test_web_port_validation(self):
        with pytest.raises(ValidationError):
            WebSettings(port=0)


class TestLoadSettings:
    """Test settings loading functionality."""

    def test_load_from_yaml(self, sample_yaml_config):
        """Test loading settings from YAML file."""
        settings = AppSettings.from_yaml(sample_yaml_config)
        assert settings.name == "TestDriveManager"
        assert settings.debug is True
        assert settings.google_drive.timeout == 10.0
        assert settings.web.port == 9000
        assert settings.logging.level == "WARNING"

    def test_load_nonexistent_yaml(self, temp_dir):
        """Test loading from non-existent YAML file."""
        nonexistent_file = temp_dir / "nonexistent.yaml"
        with pytest.raises(FileNotFoundError):
            AppSettings.from_yaml(nonexistent_file)

    def test_environment_overrides_yaml(self, sample_yaml_config, sample_env_file):
        """Test load_settings gives environment values priority over YAML."""
        settings = load_settings(yaml_path=sample_yaml_config, env_file=sample_env_file)

        assert settings.name == "TestDriveManager"  # From YAML
        assert settings.web.port == 9000  # From YAML
        assert settings.google_drive.upload_base_url == "https://uploads.example.test/drive/v3"  # From YAML
        assert settings.google_drive.client_id == "env-client-id"  # From .env
        assert settings.logging.level == "DEBUG"  # From .env

    def test_load_without_yaml(self, temp_dir):
        settings = load_settings(yaml_path=None, env_file=temp_dir / "missing.env")
        assert isinstance(settings, AppSettings)
        assert settings.logging.file is None
