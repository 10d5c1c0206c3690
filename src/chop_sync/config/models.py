"""Pydantic models for sync configuration (chop-sync.toml)."""

from pydantic import BaseModel, Field

DEFAULT_REDIRECT_URI = "http://localhost:3000/api/sync/callback"
DEFAULT_BACKUP_FILENAME = "chop-chop-backup.json"


class DatabaseProfile(BaseModel):
    """Database connection profile from chop-sync.toml."""

    url: str
    description: str = ""
    db_password: str | None = None  # For [YOUR-PASSWORD] placeholder substitution


class GoogleSettings(BaseModel):
    """``[google]`` section: OAuth app, token location and Drive options."""

    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = DEFAULT_REDIRECT_URI
    token_path: str = "data/google-token.json"
    backup_filename: str = DEFAULT_BACKUP_FILENAME
    timeout: float = Field(default=30.0, gt=0)  # seconds, per HTTP request


class SyncConfig(BaseModel):
    """Complete configuration from chop-sync.toml."""

    profiles: dict[str, DatabaseProfile] = Field(default_factory=dict)
    default_profile: str | None = None
    google: GoogleSettings = Field(default_factory=GoogleSettings)
