"""Application settings loaded from environment variables.

Defines all environment-driven configuration used by the price discovery pipeline.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed configuration model for the application."""

    # Fetch gateway
    SCRAPER_MAX_CONCURRENT: int = 2
    SCRAPER_MIN_INTERVAL_MS: int = 400
    SCRAPER_TIMEOUT_SECONDS: float = 8.0
    SCRAPER_USER_AGENT: str = "RenovationIntelBot/1.0 (+contact@example.com)"
    SCRAPER_ACCEPT_LANGUAGE: str = "fr-FR,fr;q=0.9,en;q=0.8"

    # Orchestration
    SCRAPE_DEFAULT_LIMIT: int = 12
    SUPPLIERS_FILE: str = "data/suppliers.json"
    DOMAIN_OVERRIDES_FILE: Optional[str] = None

    # Result cache
    PRICE_CACHE_BACKEND: str = "file"
    PRICE_CACHE_FILE: str = "data/price_cache.json"
    PRICE_CACHE_TTL_HOURS: float = 12

    # Redis cache backend
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_PASSWORD: Optional[str] = None
    REDIS_SSL: bool = False

    DEBUG_SCRAPE: bool = False

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
