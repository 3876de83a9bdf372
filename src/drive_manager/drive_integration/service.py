"""
Google Drive service layer.

Combines client calls for the flows the web UI and CLI share.
"""

from typing import Optional

from ..core.logging import get_logger
from ..core.exceptions import ValidationError
from .client import GoogleDriveClient
from .schemas import DriveFile, DriveFileType, UploadRequest


logger = get_logger(__name__)


class DriveService:
    """High-level Drive operations built on a per-user GoogleDriveClient."""

    def __init__(self, client: GoogleDriveClient) -> None:
        self.client = client

    def upload(
        self,
        content: bytes,
        file_name: Optional[str] = None,
        mime_type: Optional[str] = None,
        folder_name: Optional[str] = None
    ) -> DriveFile:
        """
        Upload content, optionally into a folder found or created by name.

        Blank names and MIME types fall back to the upload defaults; a blank
        folder name uploads to the Drive root.

        Raises:
            ValidationError: If no content is given
            DriveIntegrationError: If any Drive call fails
        """
        if content is None:
            raise ValidationError("File is required", field_name="file")

        parents = None
        if folder_name and folder_name.strip():
            folder_id = self.client.get_or_create_folder(folder_name.strip())
            parents = [folder_id]

        upload_request = UploadRequest(
            name=file_name or "Untitled",
            mime_type=mime_type or DriveFileType.OCTET_STREAM.value,
            parents=parents
        )

        uploaded = self.client.upload_file(content, upload_request)
        if parents:
            logger.info(f"Uploaded {upload_request.name} into folder {folder_name.strip()}")
        return uploaded
