"""
Google Drive authentication module.

This module handles the OAuth2 web flow used by the browser UI to obtain a
bearer token for the signed-in user, and the refresh of stored credentials.
"""

import json
from typing import Optional, Dict, Any, Tuple

from google.auth.exceptions import RefreshError, TransportError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow

from ..core.logging import get_logger
from ..core.exceptions import AuthenticationError, ConfigurationError, UpstreamFailureError
from ..settings import GoogleDriveSettings


logger = get_logger(__name__)


class DriveAuthenticator:
    """
    Google OAuth2 web-flow handler.

    Builds consent URLs, exchanges authorization codes for credentials and
    keeps stored credentials fresh. Credentials are handed around as the
    JSON produced by ``Credentials.to_json()`` so they can live in the
    user's session storage.
    """

    def __init__(self, settings: GoogleDriveSettings) -> None:
        """
        Initialize the Drive authenticator.

        Args:
            settings: Google Drive settings containing the OAuth client
        """
        self.settings = settings

    def _build_flow(
        self,
        state: Optional[str] = None,
        code_verifier: Optional[str] = None
    ) -> Flow:
        if not self.settings.has_oauth_client:
            raise ConfigurationError(
                "Google OAuth client is not configured. Set GOOGLE_CLIENT_ID and "
                "GOOGLE_CLIENT_SECRET or GOOGLE_CLIENT_SECRETS_FILE.",
                config_key="google_drive.client_id"
            )

        kwargs: Dict[str, Any] = {"redirect_uri": self.settings.redirect_uri}
        if state:
            kwargs["state"] = state
        if code_verifier:
            kwargs["code_verifier"] = code_verifier

        return Flow.from_client_config(
            self.settings.client_config(),
            scopes=self.settings.scopes,
            **kwargs
        )

    def get_authorization_url(self) -> Tuple[str, str, Optional[str]]:
        """
        Start the consent flow.

        Returns:
            Tuple of (authorization URL, state, PKCE code verifier); state and
            verifier must be kept until the callback arrives.

        Raises:
            AuthenticationError: If URL generation fails
        """
        flow = self._build_flow()
        try:
            auth_url, state = flow.authorization_url(
                access_type="offline",
                include_granted_scopes="true",
                prompt="consent"
            )
        except Exception as e:
            logger.error(f"Failed to generate authorization URL: {e}")
            raise AuthenticationError(
                f"Failed to generate authorization URL: {str(e)}",
                service="Google Drive",
                auth_type="OAuth2"
            ) from e

        logger.info("Generated authorization URL")
        return auth_url, state, flow.code_verifier

    def exchange_code(
        self,
        code: str,
        state: Optional[str] = None,
        code_verifier: Optional[str] = None
    ) -> str:
        """
        Exchange an authorization code for credentials.

        Args:
            code: Authorization code from the callback
            state: State returned by get_authorization_url
            code_verifier: PKCE verifier returned by get_authorization_url

        Returns:
            Credentials serialized as JSON

        Raises:
            AuthenticationError: If the exchange fails
        """
        flow = self._build_flow(state=state, code_verifier=code_verifier)
        try:
            flow.fetch_token(code=code)
        except Exception as e:
            logger.error(f"OAuth2 code exchange failed: {e}")
            raise AuthenticationError(
                f"OAuth2 code exchange failed: {str(e)}",
                service="Google Drive",
                auth_type="OAuth2"
            ) from e

        logger.info("OAuth2 flow completed successfully")
        return flow.credentials.to_json()

    def load_credentials(self, credentials_json: str) -> Credentials:
        """
        Rebuild credentials from their JSON form.

        Raises:
            AuthenticationError: If the stored JSON is unusable
        """
        try:
            info = json.loads(credentials_json)
            if info.get("refresh_token"):
                return Credentials.from_authorized_user_info(info, self.settings.scopes)
            # Without a refresh token only the bare access token is usable
            return Credentials(token=info["token"])
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Stored credentials are invalid: {e}")
            raise AuthenticationError(
                f"Stored credentials are invalid: {str(e)}",
                service="Google Drive",
                auth_type="Token Storage"
            ) from e

    def ensure_fresh(self, credentials_json: str) -> Tuple[str, Optional[str]]:
        """
        Return a usable access token, refreshing expired credentials.

        Args:
            credentials_json: Stored credentials JSON

        Returns:
            Tuple of (access token, refreshed credentials JSON or None when
            nothing changed)

        Raises:
            AuthenticationError: If the credentials cannot be refreshed
            UpstreamFailureError: If Google cannot be reached to refresh them
        """
        credentials = self.load_credentials(credentials_json)

        if credentials.token and not credentials.expired:
            return credentials.token, None

        if not credentials.refresh_token:
            raise AuthenticationError(
                "Access token expired and no refresh token is available",
                service="Google Drive",
                auth_type="OAuth2 Refresh"
            )

        try:
            logger.info("Refreshing expired credentials...")
            credentials.refresh(Request())
        except TransportError as e:
            # Google could not be reached; the stored credentials are still good
            logger.error(f"Could not reach Google to refresh credentials: {e}")
            raise UpstreamFailureError(
                f"refresh credentials failed: {e}",
                drive_error=str(e),
                operation="refresh credentials"
            ) from e
        except RefreshError as e:
            logger.error(f"Failed to refresh credentials: {e}")
            raise AuthenticationError(
                f"Failed to refresh Google Drive credentials: {str(e)}",
                service="Google Drive",
                auth_type="OAuth2 Refresh"
            ) from e

        logger.info("Credentials refreshed successfully")
        return credentials.token, credentials.to_json()

    def revoke(self, credentials_json: str) -> None:
        """
        Revoke the stored token at Google.

        Failures are logged and otherwise ignored; the caller clears the
        session either way.
        """
        try:
            token = json.loads(credentials_json).get("token")
        except ValueError:
            return
        if not token:
            return

        try:
            response = Request()(
                url="https://oauth2.googleapis.com/revoke",
                method="POST",
                body=f"token={token}",
                headers={"content-type": "application/x-www-form-urlencoded"},
            )
            if response.status != 200:
                logger.warning(f"Token revocation returned status {response.status}")
            else:
                logger.info("Credentials revoked successfully")
        except TransportError as e:
            logger.warning(f"Failed to revoke credentials: {e}")
