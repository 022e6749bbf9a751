"""
Maintenance Search - Configuration

Pydantic Settings for all configuration via environment variables.
"""

import logging
from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Optional, Literal
from pathlib import Path


class SearchSettings(BaseSettings):
    """Query pipeline configuration."""
    debounce_ms: int = Field(300, alias="SEARCH_DEBOUNCE_MS")
    min_query_length: int = Field(2, alias="SEARCH_MIN_QUERY_LENGTH")
    default_limit: int = Field(50, alias="SEARCH_DEFAULT_LIMIT")
    advanced_limit: int = Field(100, alias="SEARCH_ADVANCED_LIMIT")

    model_config = {"env_prefix": "", "extra": "ignore"}


class SuggestionSettings(BaseSettings):
    """Autocomplete configuration."""
    max_results: int = Field(10, alias="SUGGESTION_MAX_RESULTS")
    entity_limit: int = Field(10, alias="SUGGESTION_ENTITY_LIMIT")
    history_limit: int = Field(3, alias="SUGGESTION_HISTORY_LIMIT")

    model_config = {"env_prefix": "", "extra": "ignore"}


class HistorySettings(BaseSettings):
    """Search history configuration."""
    max_entries: int = Field(100, alias="HISTORY_MAX_ENTRIES")
    default_limit: int = Field(20, alias="HISTORY_DEFAULT_LIMIT")
    path: Optional[Path] = Field(None, alias="HISTORY_PATH")

    model_config = {"env_prefix": "", "extra": "ignore"}


class CacheSettings(BaseSettings):
    """Caching configuration."""
    enabled: bool = Field(True, alias="CACHE_ENABLED")
    ttl_options: int = Field(300, alias="CACHE_TTL_OPTIONS_SECONDS")
    max_size: int = Field(64, alias="CACHE_MAX_ENTRIES")

    model_config = {"env_prefix": "", "extra": "ignore"}


class LogSettings(BaseSettings):
    """Logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "INFO", alias="LOG_LEVEL"
    )

    model_config = {"env_prefix": "", "extra": "ignore"}


class Settings(BaseSettings):
    """Main settings aggregating all configuration."""
    search: SearchSettings = Field(default_factory=SearchSettings)
    suggestion: SuggestionSettings = Field(default_factory=SuggestionSettings)
    history: HistorySettings = Field(default_factory=HistorySettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = {"env_prefix": "", "extra": "ignore"}


def get_settings() -> Settings:
    """Load settings from environment variables."""
    from dotenv import load_dotenv
    load_dotenv()
    return Settings()


def configure_logging(settings=None) -> None:
    """Apply the configured log level to the root logger."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log.level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
