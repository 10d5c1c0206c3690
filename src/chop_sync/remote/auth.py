"""Google OAuth app credentials and the cached session.

App credentials (client id/secret) are looked up in this order:

1. The ``settings`` row ``google_oauth_credentials`` in the row store.
2. ``{PREFIX}GOOGLE_CLIENT_ID`` / ``{PREFIX}GOOGLE_CLIENT_SECRET`` /
   ``{PREFIX}GOOGLE_REDIRECT_URI`` environment variables.
3. The ``[google]`` section of ``chop-sync.toml``.

The session (OAuth token) lives in a ``SessionStore``; ``FileSessionStore``
keeps it as JSON on disk and drops tokens that lack the Drive app-data scope.

Usage:
    from chop_sync.remote.auth import FileSessionStore, authorization_url, exchange_code

    app = await resolve_app_credentials(adapter, config.google)
    print(authorization_url(app))
    store = FileSessionStore(config.google.token_path)
    store.save(await exchange_code(app, code))
"""

import asyncio
import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Literal

from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow
from pydantic import Field

from chop_sync.adapters.base import DatabaseClient
from chop_sync.backup.models import CamelModel
from chop_sync.config.models import DEFAULT_REDIRECT_URI, GoogleSettings
from chop_sync.errors import AuthenticationError, InvalidCredentialsError
from chop_sync.remote.base import SessionStore

logger = logging.getLogger(__name__)

APPDATA_SCOPE = "https://www.googleapis.com/auth/drive.appdata"
SCOPES = [
    APPDATA_SCOPE,
    "https://www.googleapis.com/auth/userinfo.profile",
    "https://www.googleapis.com/auth/userinfo.email",
]

GOOGLE_AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"

CREDENTIALS_SETTING_KEY = "google_oauth_credentials"
CLIENT_ID_SUFFIX = ".apps.googleusercontent.com"


class AppCredentials(CamelModel):
    """OAuth client of the installation (not the user's session)."""

    client_id: str
    client_secret: str
    redirect_uri: str = DEFAULT_REDIRECT_URI
    source: Literal["database", "environment", "config"] = Field(
        default="database", exclude=True
    )

    @property
    def masked_client_id(self) -> str:
        """First 20 characters of the client id, for display."""
        return f"{self.client_id[:20]}..."


# ============================================================================
# App credentials
# ============================================================================


async def load_stored_credentials(adapter: DatabaseClient) -> AppCredentials | None:
    """Read the app credentials saved in the ``settings`` table.

    Best-effort: a missing table, a malformed value or incomplete
    credentials all yield ``None`` (logged).
    """
    try:
        rows = await adapter.select(
            "settings", ["value"], filters={"key": CREDENTIALS_SETTING_KEY}
        )
    except Exception as e:
        logger.warning("Could not read stored OAuth credentials: %s", e)
        return None

    if not rows or not rows[0].get("value"):
        return None

    try:
        data = json.loads(rows[0]["value"])
    except (TypeError, json.JSONDecodeError) as e:
        logger.warning("Stored OAuth credentials are not valid JSON: %s", e)
        return None

    if not isinstance(data, dict) or not data.get("clientId") or not data.get("clientSecret"):
        return None

    return AppCredentials(
        client_id=data["clientId"],
        client_secret=data["clientSecret"],
        redirect_uri=data.get("redirectUri") or DEFAULT_REDIRECT_URI,
        source="database",
    )


async def resolve_app_credentials(
    adapter: DatabaseClient,
    settings: GoogleSettings,
    env_prefix: str = "",
) -> AppCredentials | None:
    """Find the OAuth app credentials (store, then environment, then config).

    Args:
        adapter: Row store holding the ``settings`` table.
        settings: ``[google]`` config section.
        env_prefix: Prefix for environment variable lookup
            (e.g. ``"CHOP_"`` reads ``CHOP_GOOGLE_CLIENT_ID``).

    Returns:
        ``AppCredentials`` or ``None`` when none of the sources has both a
        client id and a client secret.
    """
    stored = await load_stored_credentials(adapter)
    if stored is not None:
        return stored

    env_id = os.environ.get(f"{env_prefix}GOOGLE_CLIENT_ID")
    env_secret = os.environ.get(f"{env_prefix}GOOGLE_CLIENT_SECRET")
    if env_id and env_secret:
        return AppCredentials(
            client_id=env_id,
            client_secret=env_secret,
            redirect_uri=os.environ.get(f"{env_prefix}GOOGLE_REDIRECT_URI")
            or DEFAULT_REDIRECT_URI,
            source="environment",
        )

    if settings.client_id and settings.client_secret:
        return AppCredentials(
            client_id=settings.client_id,
            client_secret=settings.client_secret,
            redirect_uri=settings.redirect_uri or DEFAULT_REDIRECT_URI,
            source="config",
        )

    return None


async def save_app_credentials(
    adapter: DatabaseClient,
    client_id: str,
    client_secret: str,
    redirect_uri: str | None = None,
    session_store: SessionStore | None = None,
) -> AppCredentials:
    """Validate and store app credentials in the ``settings`` table.

    The cached session is cleared: a token issued to another client is
    useless with the new one.

    Raises:
        InvalidCredentialsError: If either value is empty or the client id
            is not a Google OAuth client id.
    """
    client_id = (client_id or "").strip()
    client_secret = (client_secret or "").strip()

    if not client_id or not client_secret:
        raise InvalidCredentialsError("Client ID and Client Secret are required")

    if not client_id.endswith(CLIENT_ID_SUFFIX):
        raise InvalidCredentialsError(
            f"Invalid Client ID format. It should end with {CLIENT_ID_SUFFIX}"
        )

    app = AppCredentials(
        client_id=client_id,
        client_secret=client_secret,
        redirect_uri=(redirect_uri or "").strip() or DEFAULT_REDIRECT_URI,
    )
    await adapter.upsert(
        "settings",
        {
            "key": CREDENTIALS_SETTING_KEY,
            "value": app.model_dump_json(by_alias=True),
            "updated_at": datetime.now(timezone.utc).isoformat(),
        },
        pk="key",
    )
    logger.info("Saved OAuth app credentials for %s", app.masked_client_id)

    if session_store is not None:
        session_store.clear()
    return app


async def delete_app_credentials(
    adapter: DatabaseClient,
    session_store: SessionStore | None = None,
) -> None:
    """Remove the stored app credentials and the cached session."""
    if session_store is not None:
        session_store.clear()
    await adapter.delete("settings", {"key": CREDENTIALS_SETTING_KEY})


# ============================================================================
# Session store
# ============================================================================


def has_appdata_scope(session: dict[str, Any]) -> bool:
    """Whether *session* grants the Drive app-data scope.

    Accepts the space-separated ``scope`` string of a token response or a
    ``scopes`` list.  A session that carries neither is treated as lacking
    the scope.
    """
    scope = session.get("scope")
    scopes = session.get("scopes")
    if isinstance(scope, str):
        granted = scope.split()
    elif isinstance(scopes, list):
        granted = [s for s in scopes if isinstance(s, str)]
    else:
        return False
    return any("drive.appdata" in s for s in granted)


class FileSessionStore:
    """``SessionStore`` backed by a JSON file.

    Args:
        path: Token file location; parent directories are created on save.

    Example:
        store = FileSessionStore("data/google-token.json")
        if store.load() is None:
            print("Not connected")
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> dict[str, Any] | None:
        """Load the saved session, clearing it if it lacks the app-data scope."""
        if not self.path.exists():
            return None

        try:
            session = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Could not read saved session %s: %s", self.path, e)
            return None

        if not isinstance(session, dict):
            logger.warning("Saved session %s is not a JSON object", self.path)
            return None

        if not has_appdata_scope(session):
            logger.info("Saved session lacks the drive.appdata scope, clearing it")
            self.clear()
            return None

        return session

    def save(self, session: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(session, indent=2), encoding="utf-8")
        logger.debug("Saved session to %s", self.path)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


# ============================================================================
# OAuth flow
# ============================================================================


def _flow(app: AppCredentials) -> Flow:
    client_config = {
        "web": {
            "client_id": app.client_id,
            "client_secret": app.client_secret,
            "auth_uri": GOOGLE_AUTH_URI,
            "token_uri": GOOGLE_TOKEN_URI,
            "redirect_uris": [app.redirect_uri],
        }
    }
    # The code is exchanged in a later process, so no PKCE verifier.
    return Flow.from_client_config(
        client_config,
        scopes=SCOPES,
        redirect_uri=app.redirect_uri,
        autogenerate_code_verifier=False,
    )


def authorization_url(app: AppCredentials) -> str:
    """Consent URL requesting offline access (a refresh token)."""
    url, _state = _flow(app).authorization_url(access_type="offline", prompt="consent")
    return url


async def exchange_code(app: AppCredentials, code: str) -> dict[str, Any]:
    """Trade an authorization code for a session dict ready to save.

    Raises:
        AuthenticationError: If Google rejects the code.
    """
    flow = _flow(app)
    try:
        token = await asyncio.to_thread(flow.fetch_token, code=code)
    except Exception as e:
        raise AuthenticationError(f"Authorization failed: {e}") from e

    granted = token.get("scope") or SCOPES
    if isinstance(granted, str):
        granted = granted.split()

    session: dict[str, Any] = {
        "access_token": token.get("access_token"),
        "refresh_token": token.get("refresh_token"),
        "token_type": token.get("token_type", "Bearer"),
        "scope": " ".join(granted),
    }
    if token.get("expires_at"):
        session["expiry"] = datetime.fromtimestamp(
            token["expires_at"], timezone.utc
        ).isoformat()
    return session


def build_credentials(app: AppCredentials, session: dict[str, Any]) -> Credentials:
    """google-auth ``Credentials`` for a saved session.

    Accepts both ``token``/``access_token`` and ISO ``expiry``/millisecond
    ``expiry_date`` spellings.
    """
    scopes = session.get("scopes")
    if not isinstance(scopes, list):
        scopes = (session.get("scope") or "").split() or None

    credentials = Credentials(
        token=session.get("token") or session.get("access_token"),
        refresh_token=session.get("refresh_token"),
        token_uri=session.get("token_uri") or GOOGLE_TOKEN_URI,
        client_id=app.client_id,
        client_secret=app.client_secret,
        scopes=scopes,
    )

    # google-auth compares expiry as naive UTC
    if session.get("expiry"):
        expiry = datetime.fromisoformat(session["expiry"])
        if expiry.tzinfo is not None:
            expiry = expiry.astimezone(timezone.utc).replace(tzinfo=None)
        credentials.expiry = expiry
    elif session.get("expiry_date"):
        credentials.expiry = datetime.fromtimestamp(
            session["expiry_date"] / 1000, timezone.utc
        ).replace(tzinfo=None)

    return credentials
