"""Centralized configuration for school-search using Pydantic Settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strictly typed configuration loaded from ``SCHOOLDIGGER_*`` environment variables.

    Credentials default to empty so the settings object can always be built;
    the engine refuses to start without them (see ``SchoolSearchEngine``).
    """

    model_config = SettingsConfigDict(
        env_prefix="SCHOOLDIGGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Directory credentials
    app_id: str = Field(default="", description="SchoolDigger application ID")
    api_key: str = Field(default="", description="SchoolDigger application key")

    # Directory endpoint
    base_url: str = Field(default="https://api.schooldigger.com", description="Directory base URL")
    api_version: str = Field(default="v2.3", description="Directory API version path segment")
    http_timeout: float = Field(default=30.0, gt=0, description="HTTP request timeout in seconds")

    # Rate limiting
    rate_limit_per_minute: int = Field(default=20, ge=1, description="Maximum directory calls per window")
    rate_limit_window_seconds: float = Field(default=60.0, gt=0, description="Rolling rate-limit window")
    rate_delay_ms: int = Field(default=100, ge=0, description="Minimum delay between directory calls")

    # Caching
    cache_ttl_seconds: float = Field(default=900.0, gt=0, description="Response cache time-to-live")

    # Search shaping
    autocomplete_return_count: int = Field(default=20, ge=1, description="Autocomplete returnCount parameter")
    per_page: int = Field(default=15, ge=1, description="perPage parameter for list searches")
    default_max_results: int = Field(default=15, ge=1, description="Default number of ranked results")

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")

    # Server settings
    host: str = Field(default="127.0.0.1", description="HTTP server host")
    port: int = Field(default=15010, ge=1, le=65535, description="HTTP server port")

    def has_credentials(self) -> bool:
        """Return True when both the app id and key are configured."""
        return bool(self.app_id.strip()) and bool(self.api_key.strip())

    def masked_app_id(self) -> str:
        """App id safe for log output."""
        if len(self.app_id) <= 4:
            return "***"
        return f"{self.app_id[:4]}***"

    @property
    def api_root(self) -> str:
        return f"{self.base_url.rstrip('/')}/{self.api_version.strip('/')}"
