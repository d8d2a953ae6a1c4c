from datetime import UTC, datetime, timedelta
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "ckpricing"
    debug: bool = False

    database_url: str = "sqlite+aiosqlite:///./ckpricing.db"

    ck_pricelist_url: str = "https://api.cardkingdom.com/api/v2/pricelist"
    ck_user_agent: str = "Mozilla/5.0 (compatible; PayloadMTG/1.0)"
    ck_cache_dir: Path = Path(".ck-cache")
    ck_cache_max_age_hours: float = 24.0

    # Seconds; the full price list arrives in a single response
    ck_fetch_timeout: float = 60.0

    usd_to_sgd_rate: float = 1.3
    sync_page_size: int = 100

    # Daily sync time (UTC)
    sync_hour: int = 0
    sync_minute: int = 0


settings = Settings()


# =============================================================================
# PRICE LIST CACHE
# =============================================================================

# Cache is stale strictly after this age
CACHE_MAX_AGE = timedelta(hours=settings.ck_cache_max_age_hours)

PRICELIST_FILENAME = "pricelist.json"
META_FILENAME = "meta.json"


# =============================================================================
# PRICE SYNC
# =============================================================================

# USD -> SGD conversion rate applied to Card Kingdom retail prices
USD_TO_SGD = settings.usd_to_sgd_rate

# Products fetched per page during bulk sync
DEFAULT_PAGE_SIZE = settings.sync_page_size


def utcnow() -> datetime:
    """Current time as an aware UTC datetime; the default clock everywhere."""
    return datetime.now(UTC)
