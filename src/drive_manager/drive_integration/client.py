"""
Google Drive API client.

This module provides a thin client over the Drive v3 REST API for one
signed-in user: listing, trashing, uploading, folder lookup/creation and
downloading (with export of Google-native documents).
"""

import json
import time
from typing import List, Optional, Dict, Any, Union
from urllib.parse import quote

import httpx

from ..core.logging import get_logger, log_api_call
from ..core.exceptions import (
    AuthRejectedError, DriveFileNotFoundError, UnsupportedExportError,
    UpstreamFailureError
)
from ..settings import GoogleDriveSettings
from .schemas import (
    DriveFile, DriveFileType, DownloadResult, UploadRequest,
    EXPORT_MIME_TYPES, GOOGLE_APPS_PREFIX
)


logger = get_logger(__name__)

LIST_FIELDS = "nextPageToken,files(id,name,mimeType,modifiedTime)"
LIST_PAGE_SIZE = 1000


def escape_query_value(value: str) -> str:
    """Escape a string literal for the Drive search query language."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


class GoogleDriveClient:
    """
    Google Drive API client bound to a single access token.

    Every request carries ``Authorization: Bearer <token>``. Failures are
    never retried: upstream 401/403 raise AuthRejectedError, 404 raises
    DriveFileNotFoundError and anything else unsuccessful raises
    UpstreamFailureError, each carrying the operation, file id and status.
    """

    def __init__(
        self,
        access_token: str,
        settings: Optional[GoogleDriveSettings] = None,
        http_client: Optional[httpx.Client] = None
    ) -> None:
        """
        Initialize the Google Drive client.

        Args:
            access_token: OAuth bearer token of the signed-in user
            settings: Google Drive settings (defaults used when omitted)
            http_client: Preconfigured HTTP client; closing it stays with the caller
        """
        self.settings = settings or GoogleDriveSettings()
        self._access_token = access_token
        self._owns_http_client = http_client is None
        self.http_client = http_client or httpx.Client(timeout=self.settings.timeout)

    def __enter__(self) -> "GoogleDriveClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http_client:
            self.http_client.close()

    def _file_url(self, file_id: str, suffix: str = "") -> str:
        return f"{self.settings.api_base_url}/files/{quote(file_id, safe='')}{suffix}"

    def _request(
        self,
        operation: str,
        method: str,
        url: str,
        file_id: Optional[str] = None,
        **kwargs: Any
    ) -> httpx.Response:
        """
        Send one request to the Drive API and classify its outcome.

        Raises:
            AuthRejectedError: On 401/403
            DriveFileNotFoundError: On 404
            UpstreamFailureError: On any other non-2xx status or transport error
        """
        headers = {"Authorization": f"Bearer {self._access_token}"}
        headers.update(kwargs.pop("headers", {}))

        start = time.monotonic()
        try:
            response = self.http_client.request(method, url, headers=headers, **kwargs)
        except httpx.RequestError as e:
            logger.error(f"{operation} request failed: {e}")
            raise UpstreamFailureError(
                f"{operation} failed{self._describe(file_id)}: {e}",
                drive_error=str(e),
                file_id=file_id,
                operation=operation
            ) from e

        log_api_call(
            "Google Drive",
            method,
            url=url,
            status_code=response.status_code,
            response_time=time.monotonic() - start
        )

        if response.is_success:
            return response

        status = response.status_code
        message = (
            f"{operation} failed{self._describe(file_id)}: "
            f"{status} {response.reason_phrase}"
        )
        error_kwargs: Dict[str, Any] = {
            "drive_error": self._error_detail(response),
            "file_id": file_id,
            "operation": operation,
            "status_code": status,
        }
        logger.error(message)

        if status in (401, 403):
            raise AuthRejectedError(message, **error_kwargs)
        if status == 404:
            raise DriveFileNotFoundError(message, **error_kwargs)
        raise UpstreamFailureError(message, **error_kwargs)

    @staticmethod
    def _describe(file_id: Optional[str]) -> str:
        return f" for file {file_id}" if file_id else ""

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        """Pull the API's error message out of a failed response."""
        try:
            error = response.json().get("error", {})
        except ValueError:
            return response.text
        if isinstance(error, dict):
            return error.get("message", "") or response.text
        return str(error)

    def list_all_files(self) -> List[DriveFile]:
        """
        List every non-trashed file in the user's Drive.

        Follows ``nextPageToken`` until the API stops returning one and
        concatenates the pages in the order they were returned.

        Returns:
            List of DriveFile descriptors

        Raises:
            DriveIntegrationError: If any page request fails; nothing is returned
        """
        files: List[DriveFile] = []
        page_token: Optional[str] = None

        while True:
            params: Dict[str, Union[str, int]] = {
                "fields": LIST_FIELDS,
                "q": "trashed = false",
                "pageSize": LIST_PAGE_SIZE,
            }
            if page_token:
                params["pageToken"] = page_token

            response = self._request("list files", "GET", f"{self.settings.api_base_url}/files", params=params)
            data = response.json()

            for item in data.get("files") or []:
                if item.get("trashed") is True:
                    continue
                files.append(DriveFile.model_validate(item))

            page_token = data.get("nextPageToken")
            if not page_token:
                break

        logger.info(f"Listed {len(files)} files")
        return files

    def delete_file(self, file_id: str) -> None:
        """
        Move a file to the trash.

        Args:
            file_id: ID of the file to trash

        Raises:
            DriveIntegrationError: If the API does not answer 200
        """
        response = self._request(
            "move file to trash",
            "PATCH",
            self._file_url(file_id),
            file_id=file_id,
            json={"trashed": True},
            headers={"Content-Type": "application/json"}
        )

        if response.status_code != 200:
            message = (
                f"Failed to move file {file_id} to trash: "
                f"{response.status_code} {response.reason_phrase}"
            )
            logger.error(message)
            raise UpstreamFailureError(
                message,
                file_id=file_id,
                operation="move file to trash",
                status_code=response.status_code
            )

        logger.info(f"Moved file to trash: {file_id}")

    def delete_all_files(self) -> None:
        """
        Trash every listed file, one at a time, in listing order.

        Stops at the first failure and re-raises it; files trashed before
        the failure stay trashed.
        """
        files = self.list_all_files()
        for drive_file in files:
            logger.debug(f"Deleting file {drive_file.id}...")
            self.delete_file(drive_file.id)

        logger.info(f"Moved {len(files)} files to trash")

    def upload_file(
        self,
        content: bytes,
        upload_request: Optional[UploadRequest] = None
    ) -> DriveFile:
        """
        Upload a file with a multipart request.

        Args:
            content: File content
            upload_request: Name, MIME type and optional parent folders

        Returns:
            DriveFile describing the created file, exactly as returned by the API

        Raises:
            DriveIntegrationError: If the upload fails
        """
        upload_request = upload_request or UploadRequest()
        metadata = upload_request.metadata()

        files = {
            "metadata": (
                None,
                json.dumps(metadata).encode("utf-8"),
                "application/json; charset=UTF-8"
            ),
            "file": (upload_request.name, content, upload_request.mime_type),
        }

        response = self._request(
            "upload file",
            "POST",
            f"{self.settings.upload_base_url}/files",
            params={"uploadType": "multipart"},
            files=files
        )

        uploaded = DriveFile.model_validate(response.json())
        logger.info(f"Uploaded file: {upload_request.name} (ID: {uploaded.id}, {len(content)} bytes)")
        return uploaded

    def _find_folder_by_name(self, folder_name: str) -> Optional[str]:
        query = (
            f"name = '{escape_query_value(folder_name)}' and "
            f"mimeType = '{DriveFileType.FOLDER.value}' and trashed = false"
        )
        response = self._request(
            "find folder",
            "GET",
            f"{self.settings.api_base_url}/files",
            params={"q": query, "fields": "files(id, name)", "spaces": "drive"}
        )

        folders = response.json().get("files") or []
        return folders[0]["id"] if folders else None

    def _create_folder(self, folder_name: str) -> str:
        response = self._request(
            "create folder",
            "POST",
            f"{self.settings.api_base_url}/files",
            json={"name": folder_name, "mimeType": DriveFileType.FOLDER.value},
            headers={"Content-Type": "application/json"}
        )
        return response.json()["id"]

    def get_or_create_folder(self, folder_name: str) -> str:
        """
        Return the ID of the non-trashed folder with this exact name,
        creating it when none exists.

        Two concurrent calls for the same name can both create a folder.
        """
        folder_id = self._find_folder_by_name(folder_name)
        if folder_id:
            logger.debug(f"Found existing folder: {folder_name} (ID: {folder_id})")
            return folder_id

        folder_id = self._create_folder(folder_name)
        logger.info(f"Created folder: {folder_name} (ID: {folder_id})")
        return folder_id

    def download_file(self, file_id: str) -> DownloadResult:
        """
        Download file content, exporting Google-native documents.

        Documents export to PDF, spreadsheets to XLSX and presentations to
        PPTX. Other Google-native types cannot be downloaded.

        Args:
            file_id: ID of the file to download

        Returns:
            DownloadResult with content, upstream headers and file name

        Raises:
            UnsupportedExportError: For Google-native types without an export target
            DriveIntegrationError: If a request fails
        """
        metadata = self._request(
            "get file metadata",
            "GET",
            self._file_url(file_id),
            file_id=file_id,
            params={"fields": "mimeType, name"}
        ).json()

        mime_type = metadata.get("mimeType") or ""
        file_name = metadata.get("name") or file_id

        if mime_type.startswith(GOOGLE_APPS_PREFIX):
            export_mime_type = EXPORT_MIME_TYPES.get(mime_type)
            if export_mime_type is None:
                message = f"Unsupported Google Docs mimeType {mime_type} for file {file_id}"
                logger.error(message)
                raise UnsupportedExportError(
                    message,
                    drive_error=mime_type,
                    file_id=file_id,
                    operation="download file"
                )
            response = self._request(
                "export file",
                "GET",
                self._file_url(file_id, "/export"),
                file_id=file_id,
                params={"mimeType": export_mime_type}
            )
        else:
            response = self._request(
                "download file",
                "GET",
                self._file_url(file_id),
                file_id=file_id,
                params={"alt": "media"}
            )

        logger.info(f"Downloaded file {file_id} ({len(response.content)} bytes)")
        return DownloadResult(
            content=response.content,
            headers=dict(response.headers),
            file_name=file_name
        )
