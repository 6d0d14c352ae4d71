"""Centralized configuration for gscp.

Settings come from environment variables:
    GSCP_CLIENT_ID      - OAuth client ID (required)
    GSCP_CLIENT_SECRET  - OAuth client secret (required)
    GSCP_CACHE          - Token cache file (default: ~/.gscp/cache.json)
    GSCP_CODE           - Out-of-band authorization code

Values may also be placed in ~/.gscp/.env; variables already set in the
environment take precedence over the file.
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from gscp.google.exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".gscp"
ENV_FILE = CONFIG_DIR / ".env"
DEFAULT_CACHE = CONFIG_DIR / "cache.json"


def load_env_file(env_path: Path, environ: dict[str, str] | None = None) -> dict[str, str]:
    """Load environment variables from a file.

    Args:
        env_path: Path to .env file.
        environ: Mapping to update. Defaults to os.environ.

    Returns:
        Dictionary of loaded variables.
    """
    environ = os.environ if environ is None else environ
    loaded = {}
    if not env_path.exists():
        return loaded

    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue

            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip()

            # Remove surrounding quotes
            if (value.startswith('"') and value.endswith('"')) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]

            if key and key not in environ:
                environ[key] = value
                loaded[key] = value

    return loaded


def ensure_cache_file(cache_path: Path) -> Path:
    """Create the token cache file (and its directory) if missing.

    Returns:
        Path to the cache file.
    """
    cache_path.parent.mkdir(parents=True, exist_ok=True)
    if not cache_path.exists():
        cache_path.touch(mode=0o600)
        logger.info(f"Created empty token cache at {cache_path}")
    return cache_path


@dataclass
class GscpConfig:
    """Credentials and token cache location for one process."""

    client_id: str
    client_secret: str
    cache_path: Path = DEFAULT_CACHE
    code: str | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "GscpConfig":
        """Build configuration from environment variables.

        Raises:
            ConfigError: If the client ID or secret is missing.
        """
        environ = os.environ if environ is None else environ

        client_id = environ.get("GSCP_CLIENT_ID")
        if not client_id:
            raise ConfigError("Please set GSCP_CLIENT_ID")

        client_secret = environ.get("GSCP_CLIENT_SECRET")
        if not client_secret:
            raise ConfigError("Please set GSCP_CLIENT_SECRET")

        cache = environ.get("GSCP_CACHE")
        cache_path = Path(cache).expanduser() if cache else DEFAULT_CACHE

        return cls(
            client_id=client_id,
            client_secret=client_secret,
            cache_path=cache_path,
            code=environ.get("GSCP_CODE") or None,
        )
