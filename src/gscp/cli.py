"""CLI for gscp - copy files to and from Google Cloud Storage.

Usage:
    gscp project@bucket:object file        # Download an object
    gscp file project@bucket:object        # Upload a file (creates the bucket if needed)
    gscp project@bucket                    # List objects in a bucket
    gscp project                           # List buckets in a project
    gscp --status                          # Show OAuth token status
    gscp --logout                          # Revoke OAuth token
"""

from __future__ import annotations

import argparse
import logging
import sys

from googleapiclient.errors import HttpError
from requests import RequestException

from gscp.config import ENV_FILE, GscpConfig, ensure_cache_file, load_env_file
from gscp.google.exceptions import ConfigError, GscpError, RemotePathError
from gscp.storage.client import AuthorizationNeeded, StorageClient
from gscp.storage.remote import is_remote

logger = logging.getLogger("gscp")

USAGE = """usage: gscp project@bucket:object file
       gscp file project@bucket:object
       gscp project@bucket
       gscp project"""


def authorize(client: StorageClient) -> int:
    """Authenticate, printing the authorization URL if a code is needed."""
    result = client.authenticate()
    if isinstance(result, AuthorizationNeeded):
        print("Visit URL to get a code then run again with GSCP_CODE=YOUR_CODE")
        print(result.url)
        return 1

    if result.exchanged:
        print(f"Token is cached in {client.config.cache_path}")
    return 0


def cmd_copy(client: StorageClient, source: str, destination: str, public: bool = False) -> int:
    """Upload or download depending on which side is remote."""
    if is_remote(source):
        client.get(source, destination)
        return 0

    client.put(source, destination)
    if public:
        client.chmod(destination)
    return 0


def cmd_list(client: StorageClient, target: str) -> int:
    """List objects in a bucket, or buckets in a project."""
    if is_remote(target):
        names = client.ls(target)
    else:
        names = client.buckets(target)

    for name in names:
        print(name)
    return 0


def cmd_status(client: StorageClient) -> int:
    """Show OAuth token status."""
    info = client.oauth.get_token_info()

    if info["status"] == "no_token":
        print(f"No token found in {info['cache']}")
        return 1

    print(f"Cache      : {info['cache']}")
    print(f"Status     : {info['status']}")
    print(f"Scopes     : {', '.join(info.get('scopes', []))}")
    print(f"Expires in : {info.get('expires_in', 'unknown')}")
    return 0


def cmd_logout(client: StorageClient) -> int:
    """Revoke the OAuth token and clear the cache."""
    client.oauth.revoke_token()
    print("Token revoked and local cache cleared")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gscp",
        usage=USAGE,
        description="Copy files to and from Google Cloud Storage",
    )
    parser.add_argument("paths", nargs="*", help="Source and destination, or a listing target")
    parser.add_argument(
        "--public",
        action="store_true",
        help="Grant allUsers read access to an uploaded object",
    )
    parser.add_argument("--status", action="store_true", help="Show OAuth token status")
    parser.add_argument("--logout", action="store_true", help="Revoke OAuth token")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not (args.status or args.logout) and len(args.paths) not in (1, 2):
        print(USAGE, file=sys.stderr)
        return 1

    load_env_file(ENV_FILE)
    try:
        config = GscpConfig.from_env()
        ensure_cache_file(config.cache_path)
    except (ConfigError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    client = StorageClient(config)

    if args.status:
        return cmd_status(client)
    if args.logout:
        return cmd_logout(client)

    try:
        if authorize(client):
            return 1
        if len(args.paths) == 2:
            return cmd_copy(client, args.paths[0], args.paths[1], public=args.public)
        return cmd_list(client, args.paths[0])
    except RemotePathError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (GscpError, HttpError, RequestException, OSError) as e:
        logger.error(e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
