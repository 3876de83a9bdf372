"""
Pydantic schemas for Google Drive integration.

This module defines data models for Google Drive API responses
and the transient structures passed to and returned from the client.
"""

import unicodedata
from enum import Enum
from typing import List, Optional, Dict, Any
from urllib.parse import quote

from pydantic import BaseModel, Field, ConfigDict


GOOGLE_APPS_PREFIX = "application/vnd.google-apps."


class DriveFileType(str, Enum):
    """Google Drive file types."""
    DOCUMENT = "application/vnd.google-apps.document"
    SPREADSHEET = "application/vnd.google-apps.spreadsheet"
    PRESENTATION = "application/vnd.google-apps.presentation"
    FOLDER = "application/vnd.google-apps.folder"
    PDF = "application/pdf"
    XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    PPTX = "application/vnd.openxmlformats-officedocument.presentationml.presentation"
    OCTET_STREAM = "application/octet-stream"


# Google-native types and the format they are exported to on download
EXPORT_MIME_TYPES: Dict[str, str] = {
    DriveFileType.DOCUMENT.value: DriveFileType.PDF.value,
    DriveFileType.SPREADSHEET.value: DriveFileType.XLSX.value,
    DriveFileType.PRESENTATION.value: DriveFileType.PPTX.value,
}


class DriveFile(BaseModel):
    """
    Google Drive file descriptor.

    Fields use the API's camelCase names as aliases and unknown fields are
    kept, so ``to_api()`` returns the provider's JSON unchanged.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    id: str = Field(description="File ID")
    name: Optional[str] = Field(default=None, description="File name")
    mime_type: Optional[str] = Field(default=None, alias="mimeType", description="MIME type")
    modified_time: Optional[str] = Field(
        default=None,
        alias="modifiedTime",
        description="Last modification time as returned by the API (RFC 3339)"
    )

    @property
    def is_folder(self) -> bool:
        """Check if this is a folder."""
        return self.mime_type == DriveFileType.FOLDER.value

    @property
    def is_google_doc(self) -> bool:
        """Check if this is a Google-native file without raw bytes."""
        return bool(self.mime_type) and self.mime_type.startswith(GOOGLE_APPS_PREFIX)

    @property
    def type_label(self) -> str:
        """Short type label shown in listings (MIME subtype)."""
        if not self.mime_type:
            return ""
        return self.mime_type.split("/", 1)[-1]

    def to_api(self) -> Dict[str, Any]:
        """Serialize back to the API's JSON shape."""
        return self.model_dump(by_alias=True, exclude_unset=True)


class UploadRequest(BaseModel):
    """Metadata for a file upload; content travels separately."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(default="Untitled", description="Name of the file in Drive")
    mime_type: str = Field(
        default=DriveFileType.OCTET_STREAM.value,
        alias="mimeType",
        description="MIME type of the content"
    )
    parents: Optional[List[str]] = Field(default=None, description="Parent folder IDs")

    def metadata(self) -> Dict[str, Any]:
        """Metadata JSON part of the multipart upload; parents omitted when unset."""
        return self.model_dump(by_alias=True, exclude_none=True)


class DownloadResult(BaseModel):
    """Downloaded or exported file content."""

    content: bytes = Field(description="File content as bytes")
    headers: Dict[str, str] = Field(default_factory=dict, description="Upstream response headers")
    file_name: str = Field(description="File name to offer the user")

    @property
    def content_type(self) -> str:
        """Upstream content type, falling back to octet-stream."""
        for key, value in self.headers.items():
            if key.lower() == "content-type" and value:
                return value
        return DriveFileType.OCTET_STREAM.value

    @property
    def content_disposition(self) -> str:
        """
        Attachment header value carrying the file name.

        Header values must be Latin-1, so non-ASCII names get an ASCII
        ``filename`` fallback plus an RFC 5987 ``filename*`` parameter.
        """
        try:
            self.file_name.encode("ascii")
            fallback, encoded = self.file_name, None
        except UnicodeEncodeError:
            decomposed = unicodedata.normalize("NFKD", self.file_name)
            fallback = decomposed.encode("ascii", "ignore").decode("ascii").strip() or "download"
            encoded = quote(self.file_name, safe="")

        # Control characters would break the header line
        fallback = "".join(ch for ch in fallback if ch.isprintable())
        fallback = fallback.replace("\\", "\\\\").replace('"', '\\"')
        value = f'attachment; filename="{fallback}"'
        if encoded:
            value += f"; filename*=UTF-8''{encoded}"
        return value
