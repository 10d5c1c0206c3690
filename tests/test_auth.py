"""Tests for OAuth app credentials, the session store and the OAuth flow."""

import json
import os
from datetime import datetime
from pathlib import Path
from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

import pytest

from chop_sync.adapters.sql import AsyncSQLAdapter
from chop_sync.config.models import DEFAULT_REDIRECT_URI, GoogleSettings
from chop_sync.errors import AuthenticationError, InvalidCredentialsError
from chop_sync.remote.auth import (
    CREDENTIALS_SETTING_KEY,
    AppCredentials,
    FileSessionStore,
    authorization_url,
    build_credentials,
    delete_app_credentials,
    exchange_code,
    has_appdata_scope,
    resolve_app_credentials,
    save_app_credentials,
)

from conftest import MemorySessionStore

APPDATA = "https://www.googleapis.com/auth/drive.appdata"
CLIENT_ID = "123-abc.apps.googleusercontent.com"
APP = AppCredentials(client_id=CLIENT_ID, client_secret="s3cr3t")


@pytest.fixture
def clean_env():
    env = {k: v for k, v in os.environ.items() if "GOOGLE_" not in k}
    with patch.dict(os.environ, env, clear=True):
        yield


# ============================================================================
# Session store
# ============================================================================


class TestHasAppdataScope:
    """has_appdata_scope() accepts scope strings and scope lists."""

    def test_scope_string(self):
        assert has_appdata_scope({"scope": f"openid {APPDATA}"}) is True

    def test_scopes_list(self):
        assert has_appdata_scope({"scopes": [APPDATA]}) is True

    def test_other_scopes_only(self):
        assert has_appdata_scope({"scope": "https://www.googleapis.com/auth/drive.file"}) is False

    def test_no_scope_fields(self):
        assert has_appdata_scope({"access_token": "tok"}) is False


class TestFileSessionStore:
    """FileSessionStore load/save/clear against a temp directory."""

    def test_missing_file(self, tmp_path: Path):
        assert FileSessionStore(tmp_path / "token.json").load() is None

    def test_save_creates_parent_dirs(self, tmp_path: Path):
        path = tmp_path / "nested" / "dir" / "token.json"
        session = {"access_token": "tok", "scope": APPDATA}

        FileSessionStore(path).save(session)

        assert json.loads(path.read_text()) == session
        assert FileSessionStore(path).load() == session

    def test_scopes_list_accepted(self, tmp_path: Path):
        path = tmp_path / "token.json"
        path.write_text(json.dumps({"token": "tok", "scopes": [APPDATA]}))

        assert FileSessionStore(path).load() == {"token": "tok", "scopes": [APPDATA]}

    def test_session_without_appdata_scope_is_cleared(self, tmp_path: Path):
        path = tmp_path / "token.json"
        path.write_text(json.dumps({"access_token": "tok", "scope": "openid"}))

        assert FileSessionStore(path).load() is None
        assert not path.exists()

    def test_session_without_scope_fields_is_cleared(self, tmp_path: Path):
        path = tmp_path / "token.json"
        path.write_text(json.dumps({"access_token": "tok"}))

        assert FileSessionStore(path).load() is None
        assert not path.exists()

    def test_corrupt_file(self, tmp_path: Path):
        path = tmp_path / "token.json"
        path.write_text("{not json")

        assert FileSessionStore(path).load() is None

    def test_non_object_file(self, tmp_path: Path):
        path = tmp_path / "token.json"
        path.write_text("[1, 2]")

        assert FileSessionStore(path).load() is None

    def test_clear_is_idempotent(self, tmp_path: Path):
        store = FileSessionStore(tmp_path / "token.json")
        store.clear()
        store.save({"scope": APPDATA})
        store.clear()

        assert store.load() is None


# ============================================================================
# App credentials
# ============================================================================


class TestResolveAppCredentials:
    """resolve_app_credentials() checks the store, then env, then config."""

    @pytest.mark.asyncio
    async def test_nothing_configured(self, store: AsyncSQLAdapter, clean_env):
        assert await resolve_app_credentials(store, GoogleSettings()) is None

    @pytest.mark.asyncio
    async def test_from_config(self, store: AsyncSQLAdapter, clean_env):
        settings = GoogleSettings(client_id="cfg-id", client_secret="cfg-secret")

        app = await resolve_app_credentials(store, settings)

        assert app.client_id == "cfg-id"
        assert app.source == "config"
        assert app.redirect_uri == DEFAULT_REDIRECT_URI

    @pytest.mark.asyncio
    async def test_env_beats_config(self, store: AsyncSQLAdapter, clean_env, monkeypatch):
        monkeypatch.setenv("GOOGLE_CLIENT_ID", "env-id")
        monkeypatch.setenv("GOOGLE_CLIENT_SECRET", "env-secret")
        settings = GoogleSettings(client_id="cfg-id", client_secret="cfg-secret")

        app = await resolve_app_credentials(store, settings)

        assert app.client_id == "env-id"
        assert app.source == "environment"

    @pytest.mark.asyncio
    async def test_env_prefix(self, store: AsyncSQLAdapter, clean_env, monkeypatch):
        monkeypatch.setenv("CHOP_GOOGLE_CLIENT_ID", "prefixed-id")
        monkeypatch.setenv("CHOP_GOOGLE_CLIENT_SECRET", "prefixed-secret")
        monkeypatch.setenv("CHOP_GOOGLE_REDIRECT_URI", "http://example.com/cb")

        app = await resolve_app_credentials(store, GoogleSettings(), env_prefix="CHOP_")

        assert app.client_id == "prefixed-id"
        assert app.redirect_uri == "http://example.com/cb"

    @pytest.mark.asyncio
    async def test_incomplete_env_falls_through(self, store: AsyncSQLAdapter, clean_env,
                                                monkeypatch):
        monkeypatch.setenv("GOOGLE_CLIENT_ID", "env-id")

        assert await resolve_app_credentials(store, GoogleSettings()) is None

    @pytest.mark.asyncio
    async def test_stored_beats_env(self, store: AsyncSQLAdapter, clean_env, monkeypatch):
        monkeypatch.setenv("GOOGLE_CLIENT_ID", "env-id")
        monkeypatch.setenv("GOOGLE_CLIENT_SECRET", "env-secret")
        await save_app_credentials(store, CLIENT_ID, "db-secret")

        app = await resolve_app_credentials(store, GoogleSettings())

        assert app.client_id == CLIENT_ID
        assert app.source == "database"

    @pytest.mark.asyncio
    async def test_malformed_stored_value_is_ignored(self, store: AsyncSQLAdapter, clean_env):
        await store.upsert("settings", {"key": CREDENTIALS_SETTING_KEY, "value": "{oops"},
                           pk="key")

        assert await resolve_app_credentials(store, GoogleSettings()) is None


class TestSaveAppCredentials:
    """save_app_credentials() validates, stores camelCase JSON and drops the session."""

    @pytest.mark.asyncio
    async def test_stores_json_and_clears_session(self, store: AsyncSQLAdapter):
        sessions = MemorySessionStore({"scope": APPDATA})

        await save_app_credentials(store, f"  {CLIENT_ID} ", "s3cr3t", session_store=sessions)

        rows = await store.select("settings", ["value"], filters={"key": CREDENTIALS_SETTING_KEY})
        assert json.loads(rows[0]["value"]) == {
            "clientId": CLIENT_ID,
            "clientSecret": "s3cr3t",
            "redirectUri": DEFAULT_REDIRECT_URI,
        }
        assert sessions.cleared is True

    @pytest.mark.asyncio
    async def test_overwrites_previous_value(self, store: AsyncSQLAdapter):
        await save_app_credentials(store, CLIENT_ID, "first")
        await save_app_credentials(store, CLIENT_ID, "second", "http://example.com/cb")

        rows = await store.select("settings", ["value"], filters={"key": CREDENTIALS_SETTING_KEY})
        assert len(rows) == 1
        assert json.loads(rows[0]["value"])["clientSecret"] == "second"
        assert json.loads(rows[0]["value"])["redirectUri"] == "http://example.com/cb"

    @pytest.mark.asyncio
    async def test_requires_both_values(self, store: AsyncSQLAdapter):
        with pytest.raises(InvalidCredentialsError, match="required"):
            await save_app_credentials(store, CLIENT_ID, "   ")

    @pytest.mark.asyncio
    async def test_rejects_foreign_client_id(self, store: AsyncSQLAdapter):
        with pytest.raises(InvalidCredentialsError, match="apps.googleusercontent.com"):
            await save_app_credentials(store, "not-a-google-id", "s3cr3t")

        assert await store.select("settings") == []

    @pytest.mark.asyncio
    async def test_delete(self, store: AsyncSQLAdapter, clean_env):
        sessions = MemorySessionStore({"scope": APPDATA})
        await save_app_credentials(store, CLIENT_ID, "s3cr3t")

        await delete_app_credentials(store, sessions)

        assert await resolve_app_credentials(store, GoogleSettings()) is None
        assert sessions.cleared is True


# ============================================================================
# OAuth flow
# ============================================================================


class TestAuthorizationUrl:
    """authorization_url() asks for offline access with forced consent."""

    def test_query_parameters(self):
        query = parse_qs(urlparse(authorization_url(APP)).query)

        assert query["client_id"] == [CLIENT_ID]
        assert query["access_type"] == ["offline"]
        assert query["prompt"] == ["consent"]
        assert query["redirect_uri"] == [DEFAULT_REDIRECT_URI]
        assert APPDATA in query["scope"][0].split()
        assert "code_challenge" not in query


class TestExchangeCode:
    """exchange_code() turns the token response into a session dict."""

    @pytest.mark.asyncio
    async def test_session_fields(self):
        token = {
            "access_token": "tok",
            "refresh_token": "ref",
            "token_type": "Bearer",
            "scope": [APPDATA, "openid"],
            "expires_at": 1738411200,
        }
        with patch("chop_sync.remote.auth.Flow.fetch_token", return_value=token) as mock_fetch:
            session = await exchange_code(APP, "auth-code")

        assert mock_fetch.call_args.kwargs == {"code": "auth-code"}
        assert session == {
            "access_token": "tok",
            "refresh_token": "ref",
            "token_type": "Bearer",
            "scope": f"{APPDATA} openid",
            "expiry": "2025-02-01T12:00:00+00:00",
        }
        assert has_appdata_scope(session)

    @pytest.mark.asyncio
    async def test_rejected_code(self):
        with patch("chop_sync.remote.auth.Flow.fetch_token",
                   side_effect=ValueError("invalid_grant")):
            with pytest.raises(AuthenticationError, match="Authorization failed: invalid_grant"):
                await exchange_code(APP, "bad-code")


class TestBuildCredentials:
    """build_credentials() accepts both token spellings."""

    def test_access_token_and_iso_expiry(self):
        creds = build_credentials(APP, {
            "access_token": "tok",
            "refresh_token": "ref",
            "scope": APPDATA,
            "expiry": "2025-02-01T12:00:00+00:00",
        })

        assert creds.token == "tok"
        assert creds.refresh_token == "ref"
        assert creds.client_id == CLIENT_ID
        assert creds.scopes == [APPDATA]
        assert creds.expiry == datetime(2025, 2, 1, 12, 0, 0)

    def test_token_and_millisecond_expiry(self):
        creds = build_credentials(APP, {
            "token": "tok",
            "scopes": [APPDATA],
            "expiry_date": 1738411200000,
        })

        assert creds.token == "tok"
        assert creds.expiry == datetime(2025, 2, 1, 12, 0, 0)
