"""Access-token acquisition for the blogging platform.

The publish flow only needs "a bearer token for this client id and scope".
``AuthProvider`` is that port; the consent-flow implementation behind it is
swappable, and tokens are used for a single publish call and never stored.
"""

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from google_auth_oauthlib.flow import InstalledAppFlow
from oauthlib.oauth2.rfc6749.errors import OAuth2Error

from .exceptions import AuthenticationError

logger = logging.getLogger(__name__)

# Error codes raised when the calling origin or redirect is not registered
ORIGIN_ERROR_CODES = ("origin_mismatch", "redirect_uri_mismatch", "storagerelay")

GOOGLE_AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"


@dataclass
class TokenResponse:
    """Result of a token request: either an access token or an error."""

    access_token: Optional[str] = None
    error: Optional[str] = None
    error_description: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.access_token)

    @property
    def is_origin_mismatch(self) -> bool:
        text = f"{self.error or ''} {self.error_description or ''}".lower()
        return any(code in text for code in ORIGIN_ERROR_CODES)


def troubleshooting_hints(origin: str) -> List[str]:
    """Guidance shown when the consent flow rejects the calling origin."""
    return [
        f'Ensure current URL {origin} is in your "Authorized JavaScript origins".',
        "Check for mismatched http vs https.",
        "Ensure there is NO trailing slash in the origin URL.",
    ]


class AuthProvider(ABC):
    """Port for acquiring an OAuth access token."""

    @abstractmethod
    def acquire_token(self, client_id: str, scope: str) -> TokenResponse:
        """Acquire a token for a client id and scope.

        Returns:
            TokenResponse with either access_token or error set.

        Raises:
            AuthenticationError: If the consent flow cannot be started at all.
        """
        pass


class StaticTokenProvider(AuthProvider):
    """Hands out a token that was issued elsewhere.

    Defaults to the BLOGGER_ACCESS_TOKEN environment variable.
    """

    env_key = "BLOGGER_ACCESS_TOKEN"

    def __init__(self, token: Optional[str] = None):
        self._token = token

    def acquire_token(self, client_id: str, scope: str) -> TokenResponse:
        token = self._token or os.environ.get(self.env_key)
        if not token:
            return TokenResponse(
                error="missing_token",
                error_description=f"{self.env_key} is not set",
            )
        return TokenResponse(access_token=token)


class InstalledAppTokenProvider(AuthProvider):
    """Runs the Google consent flow in the local browser.

    Attributes:
        client_secret: OAuth client secret (GOOGLE_CLIENT_SECRET by default).
        port: Local redirect port, 0 picks a free one.
    """

    def __init__(self, client_secret: Optional[str] = None, port: int = 0, open_browser: bool = True):
        self.client_secret = client_secret or os.environ.get("GOOGLE_CLIENT_SECRET", "")
        self.port = port
        self.open_browser = open_browser

    def _client_config(self, client_id: str) -> dict:
        return {
            "installed": {
                "client_id": client_id,
                "client_secret": self.client_secret,
                "auth_uri": GOOGLE_AUTH_URI,
                "token_uri": GOOGLE_TOKEN_URI,
                "redirect_uris": ["http://localhost"],
            }
        }

    def acquire_token(self, client_id: str, scope: str) -> TokenResponse:
        if not client_id:
            raise AuthenticationError("OAuth client id is required")

        try:
            flow = InstalledAppFlow.from_client_config(self._client_config(client_id), scopes=[scope])
            credentials = flow.run_local_server(
                port=self.port,
                open_browser=self.open_browser,
                authorization_prompt_message="Please authorize this application to access your Blogger account.",
            )
        except OAuth2Error as e:
            logger.error(f"OAuth consent flow failed: {e.error}")
            return TokenResponse(error=e.error, error_description=e.description)
        except (OSError, ValueError) as e:
            raise AuthenticationError(f"Could not start the OAuth consent flow: {e}") from e

        return TokenResponse(access_token=credentials.token)
