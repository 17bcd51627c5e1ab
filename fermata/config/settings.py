"""
Fermata Settings

Runtime configuration loaded from environment variables (and a local .env
file when present). Values are validated once into a pydantic model and
shared through get_settings().
"""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class FermataSettings(BaseModel):
    """Overall system configuration."""

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_dir: str = Field(default="logs", description="Directory for rotating log files")
    log_console: bool = Field(default=True, description="Mirror logs to stdout")

    # Caching
    cache_enabled: bool = Field(default=True, description="Enable the analysis cache")
    cache_dir: str = Field(default="data/cache", description="Cache directory path")
    analysis_cache_ttl: int = Field(default=90 * 60, description="Analyzer result TTL in seconds")

    # Analysis
    analyzer_timeout_seconds: float = Field(default=2.0, gt=0, description="Per-analyzer call timeout")
    max_concurrent_analyses: int = Field(
        default_factory=lambda: os.cpu_count() or 4,
        ge=1,
        description="Worker pool size for per-candidate analysis"
    )
    max_batch_size: int = Field(default=100, ge=1, description="Largest accepted candidate batch")

    # Adaptive learning
    learning_window_days: int = Field(default=30, ge=1, description="Feedback window for learned thresholds")
    learning_decay: float = Field(default=0.95, gt=0, le=1, description="Per-record recency decay")
    learning_stability_bias: float = Field(
        default=0.7, ge=0, le=1,
        description="Weight of the base threshold against the learned one"
    )

    # Quality gate
    fallback_floor_threshold: float = Field(default=0.30, ge=0, le=1, description="Emergency fallback floor")

    # Word association
    enable_word_association: bool = Field(default=False, description="Query Datamuse/ConceptNet during analysis")
    datamuse_base_url: str = Field(default="https://api.datamuse.com", description="Datamuse API base URL")
    conceptnet_base_url: str = Field(default="https://api.conceptnet.io", description="ConceptNet API base URL")
    datamuse_calls_per_second: float = Field(default=5.0, gt=0, description="Datamuse rate limit")
    conceptnet_calls_per_second: float = Field(default=1.0, gt=0, description="ConceptNet rate limit")
    http_timeout_seconds: int = Field(default=5, ge=1, description="HTTP request timeout")

    @classmethod
    def from_env(cls) -> "FermataSettings":
        """Build settings from the process environment."""
        values = {
            "log_level": os.getenv("FERMATA_LOG_LEVEL"),
            "log_dir": os.getenv("FERMATA_LOG_DIR"),
            "cache_dir": os.getenv("CACHE_DIR"),
            "analysis_cache_ttl": os.getenv("ANALYSIS_CACHE_TTL"),
            "analyzer_timeout_seconds": os.getenv("ANALYZER_TIMEOUT_SECONDS"),
            "max_concurrent_analyses": os.getenv("MAX_CONCURRENT_ANALYSES"),
            "max_batch_size": os.getenv("MAX_BATCH_SIZE"),
            "learning_window_days": os.getenv("LEARNING_WINDOW_DAYS"),
            "learning_decay": os.getenv("LEARNING_DECAY"),
            "learning_stability_bias": os.getenv("LEARNING_STABILITY_BIAS"),
            "fallback_floor_threshold": os.getenv("FALLBACK_FLOOR_THRESHOLD"),
            "datamuse_base_url": os.getenv("DATAMUSE_BASE_URL"),
            "conceptnet_base_url": os.getenv("CONCEPTNET_BASE_URL"),
            "datamuse_calls_per_second": os.getenv("DATAMUSE_CALLS_PER_SECOND"),
            "conceptnet_calls_per_second": os.getenv("CONCEPTNET_CALLS_PER_SECOND"),
            "http_timeout_seconds": os.getenv("HTTP_TIMEOUT_SECONDS"),
        }
        settings = {key: value for key, value in values.items() if value is not None}
        settings["log_console"] = _env_bool("FERMATA_LOG_CONSOLE", True)
        settings["cache_enabled"] = _env_bool("CACHE_ENABLED", True)
        settings["enable_word_association"] = _env_bool("ENABLE_WORD_ASSOCIATION", False)
        return cls(**settings)


# Global settings instance
_settings: Optional[FermataSettings] = None


def get_settings() -> FermataSettings:
    """Get global settings instance."""
    global _settings
    if _settings is None:
        _settings = FermataSettings.from_env()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
