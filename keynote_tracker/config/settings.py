"""Application settings with environment variable support."""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import model_validator
from typing import Optional
from pathlib import Path


# Project root, computed at module level
_BASE_DIR = Path(__file__).parent.parent.parent.resolve()


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="KT_",  # KT_DATA_DIR, KT_SOURCES_FILE, etc.
    )

    # Paths - cache_file defaults to <data_dir>/announcements.json
    data_dir: Path = _BASE_DIR / "data"
    cache_file: Optional[Path] = None
    sources_file: Path = Path.home() / ".config" / "keynote-tracker" / "sources.yaml"
    default_sources_file: Path = _BASE_DIR / "config" / "sources.yaml"

    # Cache
    cache_ttl_hours: float = 24

    # Ingestion
    fetch_timeout_seconds: float = 10
    source_delay_seconds: float = 0.5
    default_feed_limit: int = 20
    user_agent: str = "keynote-tracker"
    github_api_url: str = "https://api.github.com"

    @model_validator(mode="after")
    def _derive_cache_file(self) -> "Settings":
        if self.cache_file is None:
            self.cache_file = self.data_dir / "announcements.json"
        return self


settings = Settings()
