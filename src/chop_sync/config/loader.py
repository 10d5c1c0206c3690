"""TOML configuration loader.

Usage:
    from chop_sync.config.loader import load_config

    config = load_config()                       # ./chop-sync.toml
    config = load_config(Path("/etc/chop-sync.toml"))
"""

import tomllib
from pathlib import Path

from chop_sync.config.models import DatabaseProfile, GoogleSettings, SyncConfig

CONFIG_FILENAME = "chop-sync.toml"


def load_config(config_path: Path | None = None) -> SyncConfig:
    """Load sync configuration from a TOML file.

    Args:
        config_path: Path to the TOML file.  Defaults to ``chop-sync.toml``
            in the current working directory.

    Returns:
        ``SyncConfig`` with all profiles and the ``[google]`` section.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ValueError: If the file is not valid TOML or a section is malformed.
    """
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME

    if not config_path.exists():
        raise FileNotFoundError(
            f"Sync config not found: {config_path}\n"
            f"Create {CONFIG_FILENAME} with at least one [profiles.<name>] section."
        )

    with open(config_path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML in {config_path}: {e}") from e

    profiles = {}
    for name, profile_data in data.get("profiles", {}).items():
        profiles[name] = DatabaseProfile(**profile_data)

    return SyncConfig(
        profiles=profiles,
        default_profile=data.get("default_profile"),
        google=GoogleSettings(**data.get("google", {})),
    )
