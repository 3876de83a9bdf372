"""Google Drive integration module for file operations."""

from .client import GoogleDriveClient
from .service import DriveService
from .schemas import DriveFile, DriveFileType, UploadRequest, DownloadResult
from .auth import DriveAuthenticator

__all__ = [
    "GoogleDriveClient",
    "DriveService",
    "DriveFile",
    "DriveFileType",
    "UploadRequest",
    "DownloadResult",
    "DriveAuthenticator"
]
