from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent  # spotify-sync/

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Application settings with validation.

    Every field has a working default so the core can start without a
    ``.env`` file. Client credentials are only needed for token refresh.

    Uses Pydantic v2 API:
    - model_config with SettingsConfigDict
    - @field_validator decorator
    """

    # Spotify Web API
    spotify_api_base_url: str = Field(
        default="https://api.spotify.com/v1/me/",
        pattern=r"^https?://",
        description="Root that player endpoints are resolved against",
    )
    spotify_token_url: str = Field(
        default="https://accounts.spotify.com/api/token",
        pattern=r"^https?://",
        description="OAuth token endpoint used for refresh_token grants",
    )
    spotify_client_id: str = Field(default="", description="Spotify OAuth client ID")
    spotify_client_secret: str = Field(default="", description="Spotify OAuth client secret")

    # Account used by the one-shot entry point
    spotify_account_id: str = Field(default="", description="Connected account id to poll from the command line")
    spotify_access_token: str = Field(default="", description="Access token for spotify_account_id")
    spotify_refresh_token: str = Field(default="", description="Refresh token for spotify_account_id")

    # Connected account type this core drives
    service_type: str = Field(default="spotify", min_length=1, description="Connected account type to poll")

    # Controls behaviour
    skip_previous_should_reset_progress: bool = Field(
        default=True,
        description="Skip previous restarts the track once progress passes the threshold",
    )
    skip_previous_progress_reset_threshold: float = Field(
        default=0.15,
        ge=0,
        le=1,
        description="Fraction of the track duration after which skip previous restarts the track",
    )
    notification_prefix: str = Field(default="[SpotifySync]", description="Prefix for user-visible notifications")

    # HTTP client
    http_connect_timeout: float = Field(default=5.0, gt=0, description="Connection establishment timeout")
    http_read_timeout: float = Field(default=10.0, gt=0, description="Read response timeout")

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_dir: Path | None = Field(default=None, description="Directory for JSON log files (console only if unset)")

    model_config = SettingsConfigDict(
        env_file=Path(BASE_DIR / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,  # Validate defaults too
    )

    @field_validator("spotify_api_base_url", mode="after")
    @classmethod
    def validate_spotify_api_base_url(cls, v: str) -> str:
        """Ensure the API root ends with a slash so endpoints resolve beneath it."""
        v = v.strip()
        if not v.endswith("/"):
            v += "/"
        return v

    @field_validator("log_level", mode="after")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log_level is one of the standard level names."""
        v = v.strip().upper()
        if v not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return v

    @property
    def has_client_credentials(self) -> bool:
        """Whether token refresh can authenticate against the accounts service."""
        return bool(self.spotify_client_id and self.spotify_client_secret)


# Singleton settings instance (cached for performance)
_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Get singleton Settings instance.

    Created on first use so the ``.env`` file is read once per process.

    Returns:
        Cached Settings instance
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
