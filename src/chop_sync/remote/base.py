"""Remote backup store and session store protocols.

``BlobStore`` is the single-object backup area the orchestrator pushes to
and pulls from.  ``SessionStore`` holds the OAuth session (token) of the
account that owns that area.

Usage:
    from chop_sync.remote.base import BlobStore, SessionStore

    async def latest_backup_date(remote: BlobStore) -> str | None:
        doc = await remote.download()
        return doc.exported_at if doc else None
"""

from typing import Any, Protocol

from chop_sync.backup.models import CamelModel, SnapshotDocument


class RemoteFile(CamelModel):
    """Metadata of the backup object on the remote.

    Drive reports ``size`` as a decimal string; it is kept as-is.
    """

    id: str
    name: str = ""
    modified_time: str | None = None
    size: str | None = None


class UserInfo(CamelModel):
    """Profile of the account the session belongs to."""

    email: str | None = None
    name: str | None = None
    picture: str | None = None


class BlobStore(Protocol):
    """One backup object in an account-private remote area.

    Implementations raise ``AuthenticationError`` when the session is
    rejected and ``RemoteError`` on any other remote failure.
    """

    async def find(self) -> RemoteFile | None:
        """Metadata of the backup object, ``None`` when there is none."""
        ...

    async def upload(self, doc: SnapshotDocument) -> RemoteFile:
        """Write *doc*, updating the existing object in place when present."""
        ...

    async def download(self) -> SnapshotDocument | None:
        """Fetch and decode the backup, ``None`` when there is none."""
        ...

    async def user_info(self) -> UserInfo:
        """Profile of the authenticated account."""
        ...


class SessionStore(Protocol):
    """Persistent holder of the OAuth session.

    ``load()`` returns ``None`` for a missing session and for one that no
    longer grants the scopes the engine needs.
    """

    def load(self) -> dict[str, Any] | None:
        ...

    def save(self, session: dict[str, Any]) -> None:
        ...

    def clear(self) -> None:
        ...
