"""Row store adapter factory.

Resolves a database profile from chop-sync.toml and builds an
``AsyncSQLAdapter`` for it.  Profile selection order:

1. Explicit ``profile_name`` (the CLI ``--profile`` flag).
2. ``{env_prefix}DB_PROFILE`` environment variable.
3. ``default_profile`` in chop-sync.toml.
4. ``ProfileNotFoundError``.
"""

import os
from urllib.parse import quote

from chop_sync.adapters import AsyncSQLAdapter, DatabaseClient
from chop_sync.config.loader import load_config
from chop_sync.config.models import DatabaseProfile, SyncConfig


class ProfileNotFoundError(Exception):
    """Raised when no database profile is configured."""

    pass


def get_active_profile_name(
    env_prefix: str = "",
    config: SyncConfig | None = None,
) -> str:
    """Get active profile name from env var or the config default.

    Args:
        env_prefix: Prefix for the environment variable lookup.  With
            ``"CHOP_"`` the variable read is ``CHOP_DB_PROFILE``.
        config: Loaded config whose ``default_profile`` is the fallback.

    Returns:
        Profile name

    Raises:
        ProfileNotFoundError: If no profile is configured
    """
    env_profile = os.environ.get(f"{env_prefix}DB_PROFILE")
    if env_profile:
        return env_profile

    if config is not None and config.default_profile:
        return config.default_profile

    raise ProfileNotFoundError(
        "No database profile configured.\n"
        f"Run: {env_prefix}DB_PROFILE=<name> chop-sync status\n"
        "or set default_profile in chop-sync.toml."
    )


def get_active_profile(
    profile_name: str | None = None,
    env_prefix: str = "",
    config: SyncConfig | None = None,
) -> tuple[str, DatabaseProfile]:
    """Get active profile name and configuration.

    Returns:
        Tuple of (profile_name, DatabaseProfile)

    Raises:
        ProfileNotFoundError: If no profile configured or the name is unknown
    """
    if config is None:
        config = load_config()

    if profile_name is None:
        profile_name = get_active_profile_name(env_prefix, config)

    if profile_name not in config.profiles:
        available = ", ".join(config.profiles.keys()) or "(none)"
        raise ProfileNotFoundError(
            f"Profile '{profile_name}' not found in chop-sync.toml.\n"
            f"Available profiles: {available}"
        )

    return profile_name, config.profiles[profile_name]


def resolve_url(profile: DatabaseProfile) -> str:
    """Resolve profile URL with password substitution.

    Args:
        profile: Database profile from config

    Returns:
        Connection URL with password substituted (URL-encoded)
    """
    url = profile.url
    if profile.db_password and "[YOUR-PASSWORD]" in url:
        url = url.replace("[YOUR-PASSWORD]", quote(profile.db_password, safe=""))
    return url


async def get_adapter(
    profile_name: str | None = None,
    env_prefix: str = "",
    database_url: str | None = None,
    config: SyncConfig | None = None,
) -> DatabaseClient:
    """Create a row store adapter.

    No caching: every call builds a new adapter; the caller closes it.

    Args:
        profile_name: Profile from chop-sync.toml.  Resolved from the
            environment or the config default when ``None``.
        env_prefix: Prefix for environment variable lookup.
        database_url: Direct connection URL; skips profile resolution.
        config: Pre-loaded config (``load_config()`` when ``None``).

    Returns:
        ``AsyncSQLAdapter`` for the resolved URL.

    Raises:
        ProfileNotFoundError: If no profile can be resolved.
        FileNotFoundError: If chop-sync.toml is needed and missing.

    Example:
        >>> adapter = await get_adapter(profile_name="local")
        >>> rows = await adapter.select("interns")
        >>> await adapter.close()
    """
    if database_url is None:
        _, profile = get_active_profile(profile_name, env_prefix, config)
        database_url = resolve_url(profile)

    return AsyncSQLAdapter(database_url=database_url)
