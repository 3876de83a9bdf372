"""
Per-user session helpers.

The signed-in user's Google credentials live in NiceGUI's server-side user
storage, keyed by the browser session cookie.
"""

from typing import Iterator, Optional

import httpx
from fastapi import Depends
from nicegui import app
from starlette.concurrency import run_in_threadpool

from ..core.logging import get_logger
from ..core.exceptions import AuthenticationError
from ..drive_integration import DriveAuthenticator, GoogleDriveClient
from ..settings import get_settings


logger = get_logger(__name__)

CREDENTIALS_KEY = "google_credentials"
OAUTH_STATE_KEY = "oauth_state"
OAUTH_VERIFIER_KEY = "oauth_code_verifier"


def get_authenticator() -> DriveAuthenticator:
    """Build an authenticator from the current settings."""
    return DriveAuthenticator(get_settings().google_drive)


def store_credentials(credentials_json: str) -> None:
    app.storage.user[CREDENTIALS_KEY] = credentials_json


def clear_session() -> Optional[str]:
    """Forget the user's credentials; returns what was stored."""
    app.storage.user.pop(OAUTH_STATE_KEY, None)
    app.storage.user.pop(OAUTH_VERIFIER_KEY, None)
    return app.storage.user.pop(CREDENTIALS_KEY, None)


async def get_access_token() -> Optional[str]:
    """
    Return the signed-in user's access token, or None when signed out.

    Expired credentials are refreshed and written back; credentials that
    cannot be refreshed are dropped so the user is asked to sign in again.
    When Google cannot be reached the session is kept and
    UpstreamFailureError propagates.
    """
    stored = app.storage.user.get(CREDENTIALS_KEY)
    if not stored:
        return None

    try:
        token, refreshed = await run_in_threadpool(get_authenticator().ensure_fresh, stored)
    except AuthenticationError as e:
        logger.warning(f"Dropping unusable session credentials: {e.message}")
        clear_session()
        return None

    if refreshed:
        store_credentials(refreshed)
    return token


async def require_access_token(
    access_token: Optional[str] = Depends(get_access_token)
) -> str:
    """FastAPI dependency rejecting requests without a signed-in user."""
    if not access_token:
        raise AuthenticationError("Unauthorized", service="Google Drive", auth_type="Session")
    return access_token


def get_http_client() -> Optional[httpx.Client]:
    """HTTP client for Drive calls; None lets the Drive client create its own."""
    return None


def get_drive_client(
    access_token: str = Depends(require_access_token),
    http_client: Optional[httpx.Client] = Depends(get_http_client)
) -> Iterator[GoogleDriveClient]:
    """FastAPI dependency giving each request its own Drive client."""
    with GoogleDriveClient(access_token, get_settings().google_drive, http_client) as client:
        yield client
