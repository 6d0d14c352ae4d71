"""Google Cloud Storage client implementation."""

from __future__ import annotations

import contextlib
import logging
import mimetypes
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Union

from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload

from gscp.config import GscpConfig
from gscp.google import StorageOAuth
from gscp.google.exceptions import AuthorizationRequired, DownloadError, TokenError
from gscp.storage.remote import parse_bucket_path, parse_object_path

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024
DEFAULT_CONTENT_TYPE = "application/octet-stream"
ALL_USERS = "allUsers"
READER = "READER"


@dataclass
class StorageObject:
    """Represents a Cloud Storage object."""

    name: str
    bucket: str
    size: int | None = None
    content_type: str | None = None
    media_link: str | None = None
    updated: datetime | None = None


@dataclass
class Unauthenticated:
    """No API handle has been built yet."""


@dataclass
class Authenticated:
    """Authorized API handles, built once per process."""

    service: Any
    session: Any
    exchanged: bool = False


@dataclass
class AuthorizationNeeded:
    """The user must visit ``url`` and rerun with the code it shows."""

    url: str


AuthResult = Union[Authenticated, AuthorizationNeeded]


class StorageClient:
    """Cloud Storage client with OAuth authentication.

    Usage:
        client = StorageClient(GscpConfig.from_env())

        result = client.authenticate()
        if isinstance(result, AuthorizationNeeded):
            print(result.url)

        client.put("notes.txt", "my-project@my-bucket:notes.txt")
        client.get("my-project@my-bucket:notes.txt", "copy.txt")
        client.buckets("my-project")
        client.ls("my-project@my-bucket")
        client.chmod("my-project@my-bucket:notes.txt", "allUsers", "READER")
    """

    def __init__(self, config: GscpConfig, oauth: StorageOAuth | None = None) -> None:
        """Initialize the storage client.

        Args:
            config: Credentials, token cache path and authorization code.
            oauth: OAuth helper. Built from ``config`` on first use if omitted.
        """
        self.config = config
        self._oauth = oauth
        self._state: Unauthenticated | Authenticated = Unauthenticated()

    @property
    def oauth(self) -> StorageOAuth:
        """Get or create the OAuth helper."""
        if self._oauth is None:
            self._oauth = StorageOAuth(
                client_id=self.config.client_id,
                client_secret=self.config.client_secret,
                token_path=self.config.cache_path,
            )
        return self._oauth

    @property
    def is_authenticated(self) -> bool:
        return isinstance(self._state, Authenticated)

    def authenticate(self) -> AuthResult:
        """Move from Unauthenticated to Authenticated if possible.

        Uses the cached token when one is present and still usable.
        Otherwise exchanges the configured authorization code, or returns
        the URL where the user can obtain one.

        Raises:
            TokenError: If the code exchange fails.
        """
        if isinstance(self._state, Authenticated):
            return self._state

        oauth = self.oauth
        service = None
        if oauth.is_authorized():
            try:
                service = oauth.build_service("storage", "v1")
            except TokenError as e:
                logger.warning(f"Cached token is unusable, authorization required: {e}")

        exchanged = False
        if service is None:
            if not self.config.code:
                return AuthorizationNeeded(oauth.get_authorization_url())
            oauth.exchange_code(self.config.code)
            exchanged = True
            logger.info(f"Token is cached in {oauth.token_path}")
            service = oauth.build_service("storage", "v1")

        self._state = Authenticated(
            service=service,
            session=oauth.session,
            exchanged=exchanged,
        )
        return self._state

    def _authenticated(self) -> Authenticated:
        result = self.authenticate()
        if isinstance(result, AuthorizationNeeded):
            raise AuthorizationRequired(result.url)
        return result

    def _service(self) -> Any:
        return self._authenticated().service

    # =========================================================================
    # Objects
    # =========================================================================

    def put(self, local: str | Path, remote: str) -> StorageObject:
        """Upload a local file, creating the bucket if it does not exist.

        Args:
            local: Local file to upload.
            remote: Destination as ``project@bucket:object``.

        Returns:
            The created StorageObject.
        """
        path = parse_object_path(remote)
        service = self._service()

        try:
            service.buckets().get(bucket=path.bucket).execute()
        except HttpError as e:
            logger.info(
                f"Bucket lookup for {path.bucket} failed ({e.resp.status}), "
                f"creating it in project {path.project}"
            )
            service.buckets().insert(project=path.project, body={"name": path.bucket}).execute()

        local = Path(local)
        mime_type, _ = mimetypes.guess_type(str(local))
        if mime_type is None:
            mime_type = DEFAULT_CONTENT_TYPE

        with open(local, "rb") as fh:
            media = MediaIoBaseUpload(fh, mimetype=mime_type)
            result = (
                service.objects()
                .insert(
                    bucket=path.bucket,
                    name=path.object,
                    body={"name": path.object},
                    media_body=media,
                )
                .execute()
            )

        logger.info(f"Uploaded {local} to {path}")
        return self._parse_object(result)

    def get(self, remote: str, local: str | Path) -> Path:
        """Download an object into a local file.

        Missing parent directories are created. A destination of ``.`` means
        the object name itself; an existing directory receives a file named
        after the object.

        Args:
            remote: Source as ``project@bucket:object``.
            local: Destination file.

        Returns:
            Path of the written file.

        Raises:
            DownloadError: If fewer or more bytes arrive than declared.
        """
        path = parse_object_path(remote)
        auth = self._authenticated()

        if str(local) == ".":
            destination = Path(path.object)
        else:
            destination = Path(local)
            if destination.is_dir():
                destination = destination / Path(path.object).name

        metadata = auth.service.objects().get(bucket=path.bucket, object=path.object).execute()
        stored = self._parse_object(metadata)

        destination.parent.mkdir(parents=True, exist_ok=True)
        self._download(auth.session, stored, destination)

        logger.info(f"Downloaded {path} to {destination}")
        return destination

    def _download(self, session: Any, stored: StorageObject, destination: Path) -> int:
        """Stream an object's media link into ``destination``.

        Bytes are copied as they arrive on the wire, so objects stored with
        ``Content-Encoding: gzip`` are written in their stored form and
        counted against the declared length.
        """
        response = session.get(stored.media_link, stream=True)
        try:
            response.raise_for_status()

            declared = response.headers.get("Content-Length")
            expected = int(declared) if declared is not None else stored.size

            written = 0
            with open(destination, "wb") as f:
                for chunk in response.raw.stream(CHUNK_SIZE, decode_content=False):
                    if chunk:
                        f.write(chunk)
                        written += len(chunk)
        finally:
            response.close()

        if expected is not None and written != expected:
            destination.unlink(missing_ok=True)
            raise DownloadError(str(destination), expected, written)
        return written

    def chmod(self, remote: str, entity: str = ALL_USERS, role: str = READER) -> dict[str, Any]:
        """Grant ``role`` to ``entity`` on an object.

        Args:
            remote: Object as ``project@bucket:object``.
            entity: ACL entity, e.g. "allUsers" or "user-someone@example.com".
            role: "READER" or "OWNER".

        Returns:
            The created access control resource.
        """
        path = parse_object_path(remote)
        service = self._service()

        acl = (
            service.objectAccessControls()
            .insert(
                bucket=path.bucket,
                object=path.object,
                body={"entity": entity, "role": role},
            )
            .execute()
        )

        logger.info(f"Granted {role} on {path} to {entity}")
        return acl

    # =========================================================================
    # Listings
    # =========================================================================

    def buckets(self, project: str) -> list[str]:
        """List bucket IDs owned by a project."""
        service = self._service()
        return [item["id"] for item in self._paginate(service.buckets(), project=project)]

    def ls(self, remote: str) -> list[str]:
        """List object names in the bucket named by ``project@bucket``."""
        path = parse_bucket_path(remote)
        service = self._service()
        return [item["name"] for item in self._paginate(service.objects(), bucket=path.bucket)]

    def _paginate(self, collection: Any, **kwargs: Any) -> Iterator[dict[str, Any]]:
        """Yield items from every page of a list call."""
        page_token = None
        while True:
            if page_token:
                kwargs["pageToken"] = page_token
            response = collection.list(**kwargs).execute()
            yield from response.get("items", [])

            page_token = response.get("nextPageToken")
            if not page_token:
                break

    def _parse_object(self, data: dict) -> StorageObject:
        """Parse an object resource from an API response."""
        updated = None
        if data.get("updated"):
            with contextlib.suppress(ValueError):
                updated = datetime.fromisoformat(data["updated"].replace("Z", "+00:00"))

        size = None
        if data.get("size"):
            with contextlib.suppress(ValueError):
                size = int(data["size"])

        return StorageObject(
            name=data.get("name", ""),
            bucket=data.get("bucket", ""),
            size=size,
            content_type=data.get("contentType"),
            media_link=data.get("mediaLink"),
            updated=updated,
        )
