"""Remote path parsing.

A remote path names a project, bucket and object as
``project@bucket:object``; the shorter forms ``project@bucket`` and
``project`` name a bucket and a project.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from gscp.google.exceptions import RemotePathError

OBJECT_FORM = "project@bucket:object"
BUCKET_FORM = "project@bucket"

_DELIMITERS = re.compile(r"[@:]")


@dataclass(frozen=True)
class RemotePath:
    """A parsed remote path."""

    project: str
    bucket: str
    object: str | None = None

    def __str__(self) -> str:
        remote = f"{self.project}@{self.bucket}"
        if self.object is not None:
            remote += f":{self.object}"
        return remote


def is_remote(arg: str) -> bool:
    """Return True if ``arg`` names a bucket or object rather than a local path."""
    return "@" in arg


def split_remote(remote: str) -> tuple[str, ...]:
    """Split a remote path on ``@`` and ``:``, dropping empty fields."""
    return tuple(field for field in _DELIMITERS.split(remote) if field)


def parse_object_path(remote: str) -> RemotePath:
    """Parse a remote path that must name an object.

    Raises:
        RemotePathError: If fewer than three fields are present.
    """
    fields = split_remote(remote)
    if len(fields) < 3:
        raise RemotePathError(remote, OBJECT_FORM)
    return RemotePath(project=fields[0], bucket=fields[1], object=fields[2])


def parse_bucket_path(remote: str) -> RemotePath:
    """Parse a remote path that must name at least a bucket.

    Raises:
        RemotePathError: If fewer than two fields are present.
    """
    fields = split_remote(remote)
    if len(fields) < 2:
        raise RemotePathError(remote, BUCKET_FORM)
    return RemotePath(
        project=fields[0],
        bucket=fields[1],
        object=fields[2] if len(fields) > 2 else None,
    )
