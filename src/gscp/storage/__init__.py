"""Google Cloud Storage client with OAuth authentication.

Usage:
    from gscp.config import GscpConfig
    from gscp.storage import StorageClient

    client = StorageClient(GscpConfig.from_env())

    # Upload, creating the bucket if needed
    client.put("report.pdf", "my-project@my-bucket:reports/report.pdf")

    # Download
    client.get("my-project@my-bucket:reports/report.pdf", "out/report.pdf")

    # List
    client.buckets("my-project")
    client.ls("my-project@my-bucket")
"""

from __future__ import annotations

from gscp.storage.client import (
    AuthResult,
    Authenticated,
    AuthorizationNeeded,
    StorageClient,
    StorageObject,
    Unauthenticated,
)
from gscp.storage.remote import RemotePath, parse_bucket_path, parse_object_path, split_remote

__all__ = [
    "StorageClient",
    "StorageObject",
    "AuthResult",
    "Authenticated",
    "AuthorizationNeeded",
    "Unauthenticated",
    "RemotePath",
    "split_remote",
    "parse_object_path",
    "parse_bucket_path",
]
