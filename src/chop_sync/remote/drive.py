"""Google Drive backup store.

The backup is a single JSON object in the account's ``appDataFolder``: a
hidden area only this OAuth client can see, shared by every device signed
in to the same account.

The Google API client is synchronous, so every request runs in a worker
thread via ``asyncio.to_thread``.

Usage:
    from chop_sync.remote.drive import connect_drive

    remote = connect_drive(app, session, config.google)
    meta = await remote.upload(doc)
    doc = await remote.download()
"""

import asyncio
import io
import json
import logging
from typing import Any

import httplib2
from google.auth.exceptions import RefreshError, TransportError
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload
from pydantic import ValidationError

from chop_sync.backup.models import SnapshotDocument
from chop_sync.config.models import DEFAULT_BACKUP_FILENAME, GoogleSettings
from chop_sync.errors import AuthenticationError, CorruptBackupError, RemoteError
from chop_sync.remote.auth import AppCredentials, build_credentials
from chop_sync.remote.base import RemoteFile, UserInfo

logger = logging.getLogger(__name__)

APPDATA_SPACE = "appDataFolder"
BACKUP_MIME_TYPE = "application/json"
FILE_FIELDS = "id, name, modifiedTime, size"


class DriveBackupStore:
    """``BlobStore`` on Drive v3 ``appDataFolder``.

    Args:
        drive: Drive v3 service resource.
        filename: Fixed name of the backup object.
        userinfo: OAuth2 v2 service resource, used by ``user_info()``.

    Example:
        store = DriveBackupStore(build("drive", "v3", http=http))
        meta = await store.find()
    """

    def __init__(
        self,
        drive: Any,
        filename: str = DEFAULT_BACKUP_FILENAME,
        userinfo: Any = None,
    ) -> None:
        self._drive = drive
        self._userinfo = userinfo
        self.filename = filename

    async def find(self) -> RemoteFile | None:
        """Metadata of the backup object, or ``None``.

        Should more than one object carry the backup name (two devices
        racing to create it), the most recently modified one is used and the
        others are logged.
        """
        request = self._drive.files().list(
            q=f"name='{self.filename}' and trashed=false",
            spaces=APPDATA_SPACE,
            fields=f"files({FILE_FIELDS})",
            orderBy="modifiedTime desc",
        )
        response = await self._execute(request)
        files = response.get("files") or []
        if not files:
            return None

        if len(files) > 1:
            logger.warning(
                "Found %d backup objects named %s; using %s, ignoring %s",
                len(files),
                self.filename,
                files[0].get("id"),
                ", ".join(f.get("id", "?") for f in files[1:]),
            )
        return RemoteFile.model_validate(files[0])

    async def upload(self, doc: SnapshotDocument) -> RemoteFile:
        """Write *doc*, updating the existing object in place if there is one."""
        existing = await self.find()
        media = MediaIoBaseUpload(
            io.BytesIO(doc.to_json().encode("utf-8")),
            mimetype=BACKUP_MIME_TYPE,
            resumable=False,
        )

        if existing is not None:
            request = self._drive.files().update(
                fileId=existing.id,
                media_body=media,
                fields=FILE_FIELDS,
            )
        else:
            request = self._drive.files().create(
                body={
                    "name": self.filename,
                    "mimeType": BACKUP_MIME_TYPE,
                    "parents": [APPDATA_SPACE],
                },
                media_body=media,
                fields=FILE_FIELDS,
            )

        response = await self._execute(request)
        meta = RemoteFile.model_validate(response)
        logger.info(
            "%s backup %s (%s bytes)",
            "Updated" if existing else "Created",
            meta.id,
            meta.size,
        )
        return meta

    async def download(self) -> SnapshotDocument | None:
        """Fetch and decode the backup, or ``None`` when there is none.

        Raises:
            CorruptBackupError: If the content is not a snapshot document.
        """
        meta = await self.find()
        if meta is None:
            return None

        content = await self._execute(self._drive.files().get_media(fileId=meta.id))
        try:
            if isinstance(content, (bytes, bytearray)):
                content = content.decode("utf-8")
            return SnapshotDocument.model_validate(json.loads(content))
        except (UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
            raise CorruptBackupError(f"Backup {meta.id} is not a valid snapshot: {e}") from e

    async def user_info(self) -> UserInfo:
        """Profile of the signed-in account."""
        if self._userinfo is None:
            raise RemoteError("User info service not available")
        response = await self._execute(self._userinfo.userinfo().get())
        return UserInfo.model_validate(response)

    async def _execute(self, request: Any) -> Any:
        """Run a prepared API request in a worker thread, mapping failures."""
        try:
            return await asyncio.to_thread(request.execute)
        except HttpError as e:
            if e.resp.status == 401:
                raise AuthenticationError(f"Google rejected the session: {e}") from e
            raise RemoteError(f"Google Drive request failed: {e}") from e
        except RefreshError as e:
            raise AuthenticationError(f"Could not refresh the session: {e}") from e
        except (TransportError, httplib2.HttpLib2Error, OSError) as e:
            raise RemoteError(f"Google Drive unreachable: {e}") from e


def connect_drive(
    app: AppCredentials,
    session: dict[str, Any],
    settings: GoogleSettings,
) -> DriveBackupStore:
    """Build a ``DriveBackupStore`` for a saved session.

    Requests time out after ``settings.timeout`` seconds.  The service
    descriptions ship with the client library, so nothing is fetched here.
    """
    credentials = build_credentials(app, session)
    http = AuthorizedHttp(credentials, http=httplib2.Http(timeout=settings.timeout))
    drive = build("drive", "v3", http=http, cache_discovery=False)
    userinfo = build("oauth2", "v2", http=http, cache_discovery=False)
    return DriveBackupStore(drive, filename=settings.backup_filename, userinfo=userinfo)
