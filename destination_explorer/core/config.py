"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes"}
_DEFAULT_USER_AGENT = "DestinationExplorer/1.0 (+https://github.com/destination-explorer)"


@dataclass(frozen=True)
class Settings:
    google_api_key: str
    database_url: str
    worker_port: int = 9000
    max_pages: int = 3
    page_token_delay_seconds: float = 2.0
    enrich_max_workers: int = 8
    use_cache: bool = True
    cache_max_age_seconds: int = 0
    wikipedia_user_agent: str = _DEFAULT_USER_AGENT


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    google_api_key = os.getenv("GOOGLE_API_KEY", "")
    database_url = os.getenv("DATABASE_URL", "")
    worker_port = int(os.getenv("WORKER_PORT", "9000"))
    max_pages = int(os.getenv("WORKER_MAX_PAGES", "3"))
    page_token_delay_seconds = float(os.getenv("PAGE_TOKEN_DELAY_SECONDS", "2.0"))
    enrich_max_workers = max(1, int(os.getenv("ENRICH_MAX_WORKERS", "8")))
    use_cache = os.getenv("USE_CACHE", "true").lower() in _TRUTHY
    cache_max_age_seconds = int(os.getenv("CACHE_MAX_AGE_SECONDS", "0"))
    wikipedia_user_agent = os.getenv("WIKIPEDIA_USER_AGENT") or _DEFAULT_USER_AGENT

    if not database_url:
        logger.warning("DATABASE_URL is not set; database operations will fail.")
    if not google_api_key:
        logger.warning("GOOGLE_API_KEY is not configured; Google Places requests will fail.")
    if not use_cache:
        logger.warning("USE_CACHE is disabled; every request will hit the external providers.")

    return Settings(
        google_api_key=google_api_key,
        database_url=database_url,
        worker_port=worker_port,
        max_pages=max_pages,
        page_token_delay_seconds=page_token_delay_seconds,
        enrich_max_workers=enrich_max_workers,
        use_cache=use_cache,
        cache_max_age_seconds=cache_max_age_seconds,
        wikipedia_user_agent=wikipedia_user_agent,
    )
