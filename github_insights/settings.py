from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Values are read from process environment and optionally from `.env`.
    """

    github_api_base_url: str = "https://api.github.com"
    user_agent: str = "github-insights"
    request_timeout_seconds: float = 15.0
    events_per_page: int = 100

    cache_ttl_seconds: float = 300.0
    cache_max_entries: int | None = None
    cache_dedupe_in_flight: bool = True

    log_level: str = "INFO"
    sentry_dsn: str | None = None
    environment: str = "development"
    release: str | None = None
    sentry_traces_sample_rate: float = 0.1
    rate_limit_per_minute: int = 30
    rate_limit_window_seconds: int = 60

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
