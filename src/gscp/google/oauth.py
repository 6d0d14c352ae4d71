"""Google OAuth for Cloud Storage using Authlib.

This module provides the installed-app ("out-of-band code") OAuth 2.0 flow
used by gscp:
- Load and save a token in the local cache file
- Build the authorization URL the user visits to obtain a code
- Exchange that code for a token, refreshing it automatically afterwards
- Build the Cloud Storage API service

The cache file holds the token in google-auth "authorized user" layout, so
it can also be read by other Google client libraries.
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from authlib.integrations.requests_client import OAuth2Session
from authlib.oauth2 import OAuth2Error
from google.oauth2.credentials import Credentials as GoogleCredentials
from googleapiclient.discovery import build

from gscp.google.exceptions import ScopeMismatchError, TokenError

logger = logging.getLogger(__name__)

EXPIRY_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


# Cloud Storage OAuth scopes
SCOPES = {
    "full_control": "https://www.googleapis.com/auth/devstorage.full_control",
    "read_write": "https://www.googleapis.com/auth/devstorage.read_write",
    "read_only": "https://www.googleapis.com/auth/devstorage.read_only",
}


def _format_expiry(expires_at: float | None) -> str | None:
    """Format an epoch expiry the way google-auth writes authorized user files."""
    if not expires_at:
        return None
    return datetime.fromtimestamp(expires_at, timezone.utc).strftime(EXPIRY_FORMAT)


class StorageOAuth:
    """Google OAuth management for the Cloud Storage API.

    Example:
        >>> auth = StorageOAuth("client-id", "client-secret", "~/.gscp/cache.json")
        >>> if not auth.is_authorized():
        ...     print(f"Visit: {auth.get_authorization_url()}")
        ...     auth.exchange_code(input("Code: "))
        >>> service = auth.build_service("storage", "v1")
    """

    AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"
    REVOKE_URL = "https://oauth2.googleapis.com/revoke"
    REDIRECT_URI = "urn:ietf:wg:oauth:2.0:oob"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        token_path: str | Path,
        scopes: list[str] | None = None,
    ):
        """Initialize Cloud Storage OAuth.

        Args:
            client_id: OAuth client ID.
            client_secret: OAuth client secret.
            token_path: Path of the token cache file.
            scopes: List of scope names (e.g., ["full_control"]) or full URLs.
                   If None, defaults to ["full_control"].
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_path = Path(token_path).expanduser()

        # Resolve scope names to full URLs
        self.required_scopes = self._resolve_scopes(scopes or ["full_control"])

        self.session = OAuth2Session(
            client_id=self.client_id,
            client_secret=self.client_secret,
            scope=" ".join(self.required_scopes),
            redirect_uri=self.REDIRECT_URI,
            token=self._load_token(),
            update_token=self._save_token,
            token_endpoint=self.TOKEN_URL,
            grant_type="refresh_token",
            token_endpoint_auth_method="client_secret_post",
        )

    def _resolve_scopes(self, scopes: list[str]) -> list[str]:
        """Resolve scope names to full URLs."""
        resolved = []
        for scope in scopes:
            if scope.startswith("https://"):
                resolved.append(scope)
            elif scope in SCOPES:
                resolved.append(SCOPES[scope])
            else:
                raise ValueError(
                    f"Unknown scope: {scope}. Use full URL or one of: {list(SCOPES.keys())}"
                )
        return resolved

    def _load_token(self) -> dict[str, Any] | None:
        """Load token from the cache file."""
        if not self.token_path.exists():
            logger.info("No existing token found")
            return None

        try:
            raw = self.token_path.read_text()
            if not raw.strip():
                logger.info(f"Token cache {self.token_path} is empty")
                return None

            token_data = json.loads(raw)

            # Convert expiry to timestamp if in ISO format
            expiry = token_data.get("expiry")
            if expiry and isinstance(expiry, str):
                dt = datetime.fromisoformat(expiry.replace("Z", "+00:00"))
                expires_at = dt.timestamp()
            else:
                expires_at = expiry

            # Convert Google token format to Authlib format
            authlib_token = {
                "access_token": token_data.get("token"),
                "refresh_token": token_data.get("refresh_token"),
                "token_type": token_data.get("type", "Bearer"),
                "expires_at": expires_at,
                "scope": " ".join(token_data.get("scopes", [])),
            }

            current_scopes = set(token_data.get("scopes", []))
            required_scopes = set(self.required_scopes)

            if not required_scopes.issubset(current_scopes):
                missing = required_scopes - current_scopes
                logger.warning(f"Token missing required scopes: {missing}")
                return None

            logger.info(f"Loaded token with scopes: {current_scopes}")
            return authlib_token

        except (OSError, ValueError, AttributeError) as e:
            logger.warning(f"Failed to load token from {self.token_path}: {e}")
            return None

    def _save_token(
        self,
        token: dict[str, Any],
        refresh_token: str | None = None,
        access_token: str | None = None,
    ):
        """Save token to the cache file (Authlib callback)."""
        if access_token:
            token["access_token"] = access_token
        if refresh_token and not token.get("refresh_token"):
            token["refresh_token"] = refresh_token

        # Google omits scope when it matches the request
        if not token.get("scope"):
            token["scope"] = " ".join(self.required_scopes)

        token_scopes = set(token["scope"].split())
        required_scopes = set(self.required_scopes)

        if not required_scopes.issubset(token_scopes):
            missing = required_scopes - token_scopes
            raise ScopeMismatchError(missing)

        google_token = {
            "token": token["access_token"],
            "refresh_token": token.get("refresh_token"),
            "token_uri": self.TOKEN_URL,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "scopes": sorted(token_scopes),
            "type": token.get("token_type", "Bearer"),
            "expiry": _format_expiry(token.get("expires_at")),
        }

        self.token_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.token_path, "w") as f:
            json.dump(google_token, f, indent=2)

        logger.info(f"Token saved to {self.token_path}")

    def is_authorized(self) -> bool:
        """Check if we have a token with all required scopes."""
        if not self.session.token:
            return False

        token_scopes = set(self.session.token.get("scope", "").split())
        return set(self.required_scopes).issubset(token_scopes)

    def get_authorization_url(self) -> str:
        """Build the URL the user visits to obtain an authorization code."""
        authorization_url, _ = self.session.create_authorization_url(
            self.AUTHORIZE_URL,
            access_type="offline",
            prompt="consent",
        )
        return authorization_url

    def exchange_code(self, code: str) -> dict[str, Any]:
        """Exchange an out-of-band authorization code for a token.

        The token is written to the cache file.

        Raises:
            TokenError: If the token endpoint rejects the code.
            ScopeMismatchError: If fewer scopes were granted than required.
        """
        try:
            token = self.session.fetch_token(
                self.TOKEN_URL,
                grant_type="authorization_code",
                code=code.strip(),
            )
        except OAuth2Error as e:
            raise TokenError(f"Exchange: {e}") from e

        self._save_token(token)
        return token

    def get_credentials(self) -> GoogleCredentials:
        """Get Google Credentials object for API client libraries.

        Raises:
            TokenError: If not authorized or token refresh fails.
        """
        if not self.is_authorized():
            raise TokenError("Not authorized or missing required scopes")

        expires_at = self.session.token.get("expires_at", 0)
        if expires_at and expires_at < datetime.now().timestamp():
            logger.info("Token expired, refreshing...")
            try:
                self.session.refresh_token(
                    self.TOKEN_URL,
                    refresh_token=self.session.token.get("refresh_token"),
                )
            except OAuth2Error as e:
                raise TokenError(f"Failed to refresh token: {e}") from e

        return GoogleCredentials(
            token=self.session.token["access_token"],
            refresh_token=self.session.token.get("refresh_token"),
            token_uri=self.TOKEN_URL,
            client_id=self.client_id,
            client_secret=self.client_secret,
            scopes=self.required_scopes,
        )

    def build_service(self, service_name: str = "storage", version: str = "v1"):
        """Build a Google API service with current credentials."""
        creds = self.get_credentials()
        return build(service_name, version, credentials=creds, cache_discovery=False)

    def revoke_token(self):
        """Revoke the current token and clear the cache file."""
        if not self.session.token:
            logger.warning("No token to revoke")
            return

        try:
            self.session.post(
                self.REVOKE_URL,
                params={"token": self.session.token["access_token"]},
                withhold_token=True,
            )
        except Exception as e:
            logger.warning(f"Failed to revoke token remotely: {e}")

        if self.token_path.exists():
            self.token_path.write_text("")

        logger.info("Token revoked successfully")

    def get_token_info(self) -> dict[str, Any]:
        """Get information about the current token.

        Returns:
            Dictionary with token status, scopes, expiry, etc.
        """
        if not self.session.token:
            return {"status": "no_token", "cache": str(self.token_path)}

        token = self.session.token
        expires_at = token.get("expires_at", 0)

        if expires_at:
            expires_in = expires_at - datetime.now().timestamp()
            expires_str = str(timedelta(seconds=int(max(0, expires_in))))
            is_expired = expires_at < datetime.now().timestamp()
        else:
            expires_str = "unknown"
            is_expired = False

        return {
            "status": "valid" if not is_expired else "expired",
            "cache": str(self.token_path),
            "scopes": token.get("scope", "").split(),
            "expires_in": expires_str,
            "has_refresh_token": bool(token.get("refresh_token")),
        }
