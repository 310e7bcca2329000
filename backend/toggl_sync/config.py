"""Application configuration management."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if self.debug and self.log_level.upper() not in ("TRACE", "VERBOSE"):
            self.log_level = "DEBUG"

    # Toggl account
    toggl_api_token: Optional[str] = None
    toggl_workspace_id: str = ""
    toggl_api_base_url: str = "https://api.track.toggl.com/api/v8"
    toggl_reports_base_url: str = "https://api.track.toggl.com/reports/api/v2"
    user_agent: str = "toggl-sync"
    request_timeout: float = 30.0

    # Sync
    polling_interval_seconds: int = 6
    recent_entries_days: int = 9
    status_bar_char_limit: int = 40

    # Application
    debug: bool = False
    log_level: str = "INFO"
    api_v1_str: str = "/api/v1"


# Global settings instance
settings = Settings()
