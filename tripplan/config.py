"""Typed settings configuration - single source of truth."""

from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # LLM completion provider (OpenAI-compatible)
    llm_api_key: SecretStr | None = None
    llm_base_url: str = "https://api.siliconflow.cn/v1"
    llm_model: str = "Qwen/Qwen3-235B-A22B"
    llm_max_tokens: int = 8192
    llm_temperature: float = 0.6

    # Amap web services (POI search, geocoding, weather)
    amap_api_key: str = ""
    amap_base_url: str = "https://restapi.amap.com"

    # Timeouts (milliseconds)
    request_timeout_ms: int = 120_000

    # Retry policy - fixed delay, no jitter
    max_retry_count: int = 2
    retry_delay_ms: int = 2000

    # Pipeline policy
    allow_fallback_on_failure: bool = False
    pad_missing_days: bool = False
    decoder_structural_repair: bool = True
    attach_weather: bool = True

    # Itinerary defaults
    default_visit_duration_min: int = 120

    # Reference coordinate for synthetic locations (degrees)
    reference_longitude: float = 116.3
    reference_latitude: float = 39.9
    fallback_jitter_deg: float = 0.1


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
