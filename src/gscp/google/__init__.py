"""Google OAuth for the Cloud Storage API."""

from gscp.google.exceptions import (
    AuthorizationRequired,
    ConfigError,
    DownloadError,
    GoogleAuthError,
    GscpError,
    RemotePathError,
    ScopeMismatchError,
    TokenError,
)
from gscp.google.oauth import SCOPES, StorageOAuth

__all__ = [
    "StorageOAuth",
    "SCOPES",
    "GscpError",
    "ConfigError",
    "RemotePathError",
    "DownloadError",
    "GoogleAuthError",
    "TokenError",
    "ScopeMismatchError",
    "AuthorizationRequired",
]
