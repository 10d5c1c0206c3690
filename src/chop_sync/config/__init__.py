"""Configuration management: profiles, Google settings, TOML loading.

Usage:
    >>> from chop_sync.config import load_config, SyncConfig, DatabaseProfile
"""

from chop_sync.config.loader import load_config
from chop_sync.config.models import DatabaseProfile, GoogleSettings, SyncConfig

__all__ = ["load_config", "SyncConfig", "DatabaseProfile", "GoogleSettings"]
