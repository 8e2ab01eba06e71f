from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",
    )

    PORT: int = 8000
    APP_ENV: Literal["development", "production"] = "production"

    # TheTVDB v4
    TVDB_API_KEY: str | None = None
    TVDB_BASE_URL: str = "https://api4.thetvdb.com/v4"
    TVDB_LANGUAGE: str = "eng"
    TVDB_COUNTRY: str = "usa"
    TVDB_REQUEST_TIMEOUT_SECONDS: float = 4.5
    TVDB_LOGIN_TIMEOUT_SECONDS: float = 6.0
    # TVDB tokens live for a month; renew a few days early
    TVDB_TOKEN_TTL_SECONDS: int = 60 * 60 * 24 * 25
    TVDB_CANDIDATES_TTL_SECONDS: int = 600
    # How long the home rows wait on TVDB before falling back to library-only data
    TVDB_SECTION_TIMEOUT_SECONDS: float = 1.8

    # Optional jellyfin-web config.json, read for tvdbApiKey when TVDB_API_KEY is unset
    WEB_CONFIG_PATH: str | None = None

    # Jellyfin
    JELLYFIN_URL: str = "http://localhost:8096"
    JELLYFIN_API_KEY: str | None = None
    JELLYFIN_TIMEOUT_SECONDS: float = 10.0


settings = Settings()
