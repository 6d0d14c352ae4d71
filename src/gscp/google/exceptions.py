"""gscp exceptions."""


class GscpError(Exception):
    """Base exception for gscp errors."""

    pass


class ConfigError(GscpError):
    """Raised when required configuration is missing."""

    pass


class RemotePathError(GscpError, ValueError):
    """Raised when a remote path lacks the fields an operation needs."""

    def __init__(self, remote: str, expected: str):
        self.remote = remote
        self.expected = expected
        super().__init__(f"Remote path [{remote}] not fully specified ({expected})")


class DownloadError(GscpError):
    """Raised when a download does not match the declared content length."""

    def __init__(self, path: str, expected: int, written: int):
        self.path = path
        self.expected = expected
        self.written = written
        super().__init__(f"Incomplete download to {path}: wrote {written} of {expected} bytes")


class GoogleAuthError(GscpError):
    """Base exception for Google authentication errors."""

    pass


class TokenError(GoogleAuthError):
    """Raised when there's an issue with the OAuth token."""

    pass


class ScopeMismatchError(GoogleAuthError):
    """Raised when token scopes don't match required scopes."""

    def __init__(self, missing_scopes: set[str]):
        self.missing_scopes = missing_scopes
        super().__init__(f"Token missing required scopes: {missing_scopes}")


class AuthorizationRequired(GoogleAuthError):
    """Raised when the user must visit an authorization URL first."""

    def __init__(self, url: str, message: str | None = None):
        self.url = url
        super().__init__(
            message or "Visit URL to get a code then run again with GSCP_CODE=YOUR_CODE"
        )
