"""Exception hierarchy for the sync engine.

Every user-facing failure derives from ``SyncError`` so callers can catch
one type and show ``str(exc)`` directly.  Subclasses exist where the caller
has to react differently:

- ``NotConfiguredError``: no OAuth app credentials anywhere -- prompt setup.
- ``NotConnectedError``: credentials exist but there is no usable session.
- ``SessionExpiredError``: the remote rejected the session; the cached
  session has already been cleared when this is raised.
- ``NoBackupFoundError``: the remote lookup legitimately found nothing.
- ``RemoteError``: transport or remote-service failure (timeouts included).

``AuthenticationError`` is what the remote store raises; the orchestrator
translates it into ``SessionExpiredError``.
"""


class SyncError(Exception):
    """Generic sync failure.  The message is safe to display."""


class NotConfiguredError(SyncError):
    """Raised when no Google OAuth app credentials are configured."""


class InvalidCredentialsError(SyncError):
    """Raised when supplied OAuth app credentials are malformed."""


class NotConnectedError(SyncError):
    """Raised when credentials are configured but no valid session exists."""


class SessionExpiredError(NotConnectedError):
    """Raised after the remote rejected the session and it was cleared."""


class AuthenticationError(SyncError):
    """Raised by the remote store when the session is invalid or expired."""


class NoBackupFoundError(SyncError):
    """Raised when preview/import find no backup object on the remote."""


class RemoteError(SyncError):
    """Raised on remote-service or transport failures unrelated to auth."""


class CorruptBackupError(RemoteError):
    """Raised when the remote backup content cannot be decoded."""
