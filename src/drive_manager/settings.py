"""
Global application settings and configuration management.

This module provides centralized configuration management using Pydantic Settings
with support for environment variables, YAML configuration files, and validation.
"""

import json
from pathlib import Path
from typing import Optional, List, Dict, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import yaml
from dotenv import load_dotenv


class GoogleDriveSettings(BaseSettings):
    """Google Drive API and OAuth client configuration."""

    api_base_url: str = Field(
        default="https://www.googleapis.com/drive/v3",
        description="Base URL of the Drive v3 REST API"
    )
    upload_base_url: str = Field(
        default="https://www.googleapis.com/upload/drive/v3",
        description="Base URL of the Drive v3 upload endpoint"
    )
    timeout: float = Field(
        default=30.0,
        gt=0,
        description="HTTP timeout in seconds for Drive requests"
    )

    # OAuth client
    client_id: str = Field(default="", description="OAuth client ID")
    client_secret: str = Field(default="", description="OAuth client secret")
    client_secrets_file: Optional[Path] = Field(
        default=None,
        description="Path to an OAuth client JSON downloaded from Google Cloud Console"
    )
    redirect_uri: str = Field(
        default="http://localhost:8080/auth/callback",
        description="OAuth redirect URI registered for the web client"
    )
    scopes: List[str] = Field(
        default=["openid", "email", "https://www.googleapis.com/auth/drive"],
        description="OAuth scopes requested at sign-in (comma-separated)"
    )

    model_config = SettingsConfigDict(env_prefix="GOOGLE_")

    @field_validator("api_base_url", "upload_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URLs so paths can be appended with '/'."""
        return v.rstrip("/")

    @field_validator("scopes", mode="before")
    @classmethod
    def parse_scopes(cls, v):
        """Parse comma-separated scopes from environment variable."""
        if isinstance(v, str):
            return [scope.strip() for scope in v.split(",") if scope.strip()]
        return v

    @field_validator("client_secrets_file")
    @classmethod
    def validate_client_secrets_file(cls, v: Optional[Path]) -> Optional[Path]:
        """Resolve the client secrets path."""
        if v is None:
            return None
        return Path(v).resolve()

    def client_config(self) -> Dict[str, Any]:
        """
        Build the OAuth client configuration in Google's "web" format.

        The client secrets file wins over the individual client_id and
        client_secret fields when both are configured.
        """
        if self.client_secrets_file and self.client_secrets_file.exists():
            with open(self.client_secrets_file, "r", encoding="utf-8") as f:
                return json.load(f)

        return {
            "web": {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "auth_uri": "https://accounts.google.com/o/oauth2/auth",
                "token_uri": "https://oauth2.googleapis.com/token",
                "redirect_uris": [self.redirect_uri],
            }
        }

    @property
    def has_oauth_client(self) -> bool:
        """Check whether an OAuth client is configured."""
        if self.client_secrets_file and self.client_secrets_file.exists():
            return True
        return bool(self.client_id and self.client_secret)


class WebSettings(BaseSettings):
    """Web UI configuration."""

    host: str = Field(default="127.0.0.1", description="Bind address")
    port: int = Field(default=8080, ge=1, le=65535, description="Bind port")
    title: str = Field(default="My Drive Files", description="Browser tab title")
    storage_secret: str = Field(
        default="change-me",
        description="Secret used to sign the browser session cookie"
    )

    model_config = SettingsConfigDict(env_prefix="WEB_")


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    file: Optional[Path] = Field(
        default=None,
        description="Log file path"
    )

    model_config = SettingsConfigDict(env_prefix="LOG_")

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v

    @field_validator("file")
    @classmethod
    def validate_log_file(cls, v: Optional[Path]) -> Optional[Path]:
        """Resolve the log file path."""
        if v is None:
            return None
        return Path(v).resolve()


class AppSettings(BaseSettings):
    """Main application settings."""

    name: str = Field(default="DriveManager", description="Application name")
    version: str = Field(default="0.1.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")

    # Sub-configurations
    google_drive: GoogleDriveSettings = Field(default_factory=GoogleDriveSettings)
    web: WebSettings = Field(default_factory=WebSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore"
    )

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "AppSettings":
        """Load settings from YAML file."""
        if not yaml_path.exists():
            raise FileNotFoundError(f"Settings file not found: {yaml_path}")

        with open(yaml_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        sections = {
            "google_drive": GoogleDriveSettings,
            "web": WebSettings,
            "logging": LoggingSettings,
        }

        settings_data = {}
        for key, value in data.items():
            if key in sections and isinstance(value, dict):
                settings_data[key] = sections[key](**value)
            elif key == "app" and isinstance(value, dict):
                settings_data.update(value)
            else:
                settings_data[key] = value

        return cls(**settings_data)


def load_settings(
    yaml_path: Optional[Path] = None,
    env_file: Optional[Path] = None
) -> AppSettings:
    """
    Load application settings from multiple sources.

    Priority order:
    1. Environment variables
    2. YAML configuration file
    3. Default values

    Args:
        yaml_path: Path to YAML configuration file
        env_file: Path to environment file (.env)

    Returns:
        Configured AppSettings instance
    """
    if env_file and env_file.exists():
        load_dotenv(env_file)
    else:
        load_dotenv()

    if yaml_path and yaml_path.exists():
        # Values explicitly set through the environment win over YAML
        yaml_data = AppSettings.from_yaml(yaml_path).model_dump()
        env_data = _changed_values(AppSettings().model_dump(), _default_values())
        return AppSettings(**_deep_merge(yaml_data, env_data))

    return AppSettings()


def _default_values() -> Dict[str, Any]:
    return AppSettings.model_construct(
        google_drive=GoogleDriveSettings.model_construct(),
        web=WebSettings.model_construct(),
        logging=LoggingSettings.model_construct(),
    ).model_dump()


def _changed_values(current: Dict[str, Any], defaults: Dict[str, Any]) -> Dict[str, Any]:
    changed = {}
    for key, value in current.items():
        default = defaults.get(key)
        if isinstance(value, dict) and isinstance(default, dict):
            nested = _changed_values(value, default)
            if nested:
                changed[key] = nested
        elif value != default:
            changed[key] = value
    return changed


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


# Global settings instance
_settings: Optional[AppSettings] = None


def get_settings() -> AppSettings:
    """Get global settings instance (singleton pattern)."""
    global _settings
    if _settings is None:
        yaml_path = Path("configs/settings.yaml")
        env_path = Path(".env")
        _settings = load_settings(
            yaml_path=yaml_path if yaml_path.exists() else None,
            env_file=env_path if env_path.exists() else None
        )
    return _settings


def reload_settings(
    yaml_path: Optional[Path] = None,
    env_file: Optional[Path] = None
) -> AppSettings:
    """Reload settings from files (useful for testing or runtime config changes)."""
    global _settings
    _settings = load_settings(yaml_path=yaml_path, env_file=env_file)
    return _settings
