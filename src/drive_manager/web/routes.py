"""
HTTP routes for the web UI.

``drive_router`` exposes the Drive operations as JSON endpoints under
``/api/drive``; ``auth_router`` runs the Google sign-in flow.
"""

from typing import Optional, Dict, Any

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse, RedirectResponse, Response
from nicegui import app
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from ..core.logging import get_logger, log_error_with_context
from ..core.exceptions import (
    DriveManagerError, AuthenticationError, ConfigurationError, ValidationError,
    DriveIntegrationError, AuthRejectedError, DriveFileNotFoundError,
    UnsupportedExportError
)
from ..drive_integration import DriveService, GoogleDriveClient
from .session import (
    CREDENTIALS_KEY, OAUTH_STATE_KEY, OAUTH_VERIFIER_KEY,
    clear_session, get_authenticator, get_drive_client, store_credentials
)


logger = get_logger(__name__)

drive_router = APIRouter(prefix="/api/drive", tags=["drive"])
auth_router = APIRouter(prefix="/auth", tags=["auth"])

# Most specific first
ERROR_STATUS = [
    (AuthRejectedError, 401),
    (DriveFileNotFoundError, 404),
    (UnsupportedExportError, 415),
    (DriveIntegrationError, 502),
    (AuthenticationError, 401),
    (ValidationError, 400),
    (ConfigurationError, 500),
]


def status_for_error(error: DriveManagerError) -> int:
    """HTTP status answered for an application error."""
    for error_type, status in ERROR_STATUS:
        if isinstance(error, error_type):
            return status
    return 500


async def drive_manager_error_handler(request: Request, exc: DriveManagerError) -> JSONResponse:
    status = status_for_error(exc)
    if status >= 500:
        log_error_with_context(
            exc,
            {"method": request.method, "path": request.url.path, "status": status, **exc.details},
            module=__name__
        )
    else:
        logger.warning(f"{request.method} {request.url.path} -> {status}: {exc.message}")
    return JSONResponse({"error": exc.message}, status_code=status)


def register_error_handlers(fastapi_app) -> None:
    """Map DriveManagerError subclasses to JSON error responses."""
    fastapi_app.add_exception_handler(DriveManagerError, drive_manager_error_handler)


class FileIdRequest(BaseModel):
    fileId: Optional[str] = None


def _require_file_id(body: Optional[FileIdRequest]) -> str:
    if body is None or not body.fileId:
        raise ValidationError("File ID is required", field_name="fileId")
    return body.fileId


@drive_router.get("/list-files")
def list_files(client: GoogleDriveClient = Depends(get_drive_client)) -> Dict[str, Any]:
    files = client.list_all_files()
    return {"files": [drive_file.to_api() for drive_file in files]}


@drive_router.post("/delete-file")
def delete_file(
    body: Optional[FileIdRequest] = None,
    client: GoogleDriveClient = Depends(get_drive_client)
) -> Dict[str, Any]:
    client.delete_file(_require_file_id(body))
    return {"success": True}


@drive_router.post("/delete-all-files")
def delete_all_files(client: GoogleDriveClient = Depends(get_drive_client)) -> Dict[str, Any]:
    client.delete_all_files()
    return {"success": True}


@drive_router.post("/upload-file")
def upload_file(
    file: Optional[UploadFile] = File(default=None),
    folderName: Optional[str] = Form(default=None),
    client: GoogleDriveClient = Depends(get_drive_client)
) -> Dict[str, Any]:
    if file is None:
        raise ValidationError("File is required", field_name="file")

    uploaded = DriveService(client).upload(
        file.file.read(),
        file_name=file.filename,
        mime_type=file.content_type,
        folder_name=folderName
    )
    return {"file": uploaded.to_api()}


@drive_router.post("/download-file")
def download_file(
    body: Optional[FileIdRequest] = None,
    client: GoogleDriveClient = Depends(get_drive_client)
) -> Response:
    result = client.download_file(_require_file_id(body))
    return Response(
        content=result.content,
        headers={
            "Content-Type": result.content_type,
            "Content-Disposition": result.content_disposition,
        }
    )


@auth_router.get("/login")
async def login() -> RedirectResponse:
    auth_url, state, code_verifier = get_authenticator().get_authorization_url()
    app.storage.user[OAUTH_STATE_KEY] = state
    if code_verifier:
        app.storage.user[OAUTH_VERIFIER_KEY] = code_verifier
    return RedirectResponse(auth_url)


@auth_router.get("/callback")
async def callback(
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None
) -> RedirectResponse:
    if error:
        raise AuthenticationError(f"Google sign-in was denied: {error}", service="Google", auth_type="OAuth2")

    expected_state = app.storage.user.pop(OAUTH_STATE_KEY, None)
    code_verifier = app.storage.user.pop(OAUTH_VERIFIER_KEY, None)
    if not code or not state or state != expected_state:
        raise AuthenticationError("Invalid OAuth callback", service="Google", auth_type="OAuth2")

    credentials_json = await run_in_threadpool(
        get_authenticator().exchange_code, code, state, code_verifier
    )
    store_credentials(credentials_json)
    logger.info("User signed in")
    return RedirectResponse("/")


@auth_router.get("/logout")
async def logout() -> RedirectResponse:
    stored = app.storage.user.get(CREDENTIALS_KEY)
    if stored:
        await run_in_threadpool(get_authenticator().revoke, stored)
    clear_session()
    logger.info("User signed out")
    return RedirectResponse("/")
