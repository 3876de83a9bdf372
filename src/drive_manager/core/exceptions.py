"""
Custom exceptions for the Drive Manager application.

This module defines application-specific exceptions that carry enough
context (operation, file id, upstream status) for the web and CLI layers
to map them to a user-facing response.
"""

from typing import Optional, Dict, Any


class DriveManagerError(Exception):
    """Base exception for all Drive Manager application errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class ConfigurationError(DriveManagerError):
    """Raised when there are configuration-related errors."""

    def __init__(self, message: str, config_key: Optional[str] = None) -> None:
        super().__init__(message, "CONFIG_ERROR")
        self.config_key = config_key


class AuthenticationError(DriveManagerError):
    """Raised when signing in or refreshing the user's credentials fails."""

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        auth_type: Optional[str] = None
    ) -> None:
        super().__init__(message, "AUTH_ERROR")
        self.service = service
        self.auth_type = auth_type


class ValidationError(DriveManagerError):
    """Raised when caller input is invalid."""

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        invalid_value: Optional[Any] = None
    ) -> None:
        super().__init__(message, "VALIDATION_ERROR")
        self.field_name = field_name
        self.invalid_value = invalid_value


class DriveIntegrationError(DriveManagerError):
    """Raised when Google Drive operations fail."""

    error_code = "DRIVE_ERROR"

    def __init__(
        self,
        message: str,
        drive_error: Optional[str] = None,
        file_id: Optional[str] = None,
        operation: Optional[str] = None,
        status_code: Optional[int] = None
    ) -> None:
        super().__init__(
            message,
            self.error_code,
            {"operation": operation, "file_id": file_id, "status_code": status_code}
        )
        self.drive_error = drive_error
        self.file_id = file_id
        self.operation = operation
        self.status_code = status_code


class AuthRejectedError(DriveIntegrationError):
    """Raised when Google Drive rejects the access token (401/403)."""

    error_code = "DRIVE_AUTH_REJECTED"


class DriveFileNotFoundError(DriveIntegrationError):
    """Raised when the requested file no longer exists (404)."""

    error_code = "DRIVE_NOT_FOUND"


class UnsupportedExportError(DriveIntegrationError):
    """Raised for Google-native files that have no export target."""

    error_code = "DRIVE_UNSUPPORTED_EXPORT"


class UpstreamFailureError(DriveIntegrationError):
    """Raised for any other non-success status or transport error."""

    error_code = "DRIVE_UPSTREAM_FAILURE"
