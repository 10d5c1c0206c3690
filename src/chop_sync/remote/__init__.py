"""Remote backup store (Google Drive) and OAuth session handling.

Usage:
    from chop_sync.remote import FileSessionStore, connect_drive, resolve_app_credentials
"""

from chop_sync.remote.auth import (
    AppCredentials,
    FileSessionStore,
    authorization_url,
    delete_app_credentials,
    exchange_code,
    resolve_app_credentials,
    save_app_credentials,
)
from chop_sync.remote.base import BlobStore, RemoteFile, SessionStore, UserInfo
from chop_sync.remote.drive import DriveBackupStore, connect_drive

__all__ = [
    "AppCredentials",
    "BlobStore",
    "DriveBackupStore",
    "FileSessionStore",
    "RemoteFile",
    "SessionStore",
    "UserInfo",
    "authorization_url",
    "connect_drive",
    "delete_app_credentials",
    "exchange_code",
    "resolve_app_credentials",
    "save_app_credentials",
]
