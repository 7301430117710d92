"""
Configuration management for the catalog scraper.

Supports environment variables and .env files.
"""
from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = "Catalog Scraper"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # Upstream (Banner 9 self-service)
    banner_base_url: str = "https://nubanner.neu.edu/StudentRegistrationSsb/ssb"
    legacy_catalog_url: str = "https://bnrordsp.neu.edu/ssb-prod"
    legacy_schedule_url: str = "https://wl11gp.neu.edu/udcprod8"
    host: str = "neu.edu"
    term_list_size: int = 20

    # Term selection
    number_of_terms: int = 12
    terms_to_scrape: Optional[str] = None  # comma separated term ids
    skip_failed_terms: bool = False

    # Custom (restricted) scrape
    custom_scrape: bool = False
    filter_subjects: list[str] = ["CS"]
    filter_campuses: list[str] = []  # empty = every campus
    filter_min_course_number: int = 2500

    # Fan-out
    course_concurrency: int = 500
    page_size: int = 500

    # HTTP client
    max_retries: int = 35
    retry_delay: float = 0.1  # seconds
    retry_delay_delta: float = 0.15  # seconds
    default_max_sockets: int = 50
    request_timeout: float = 15 * 60
    verify_ssl: bool = True
    analytics_interval: float = 5.0

    # Output
    output_path: str = "data/catalog.json"

    # Celery
    celery_broker_url: str = "redis://localhost:6379/0"
    celery_result_backend: str = "redis://localhost:6379/1"
    scrape_interval: int = 6 * 3600  # seconds

    @property
    def term_ids_override(self) -> Optional[list[str]]:
        """Explicit term ids from TERMS_TO_SCRAPE, if any."""
        if not self.terms_to_scrape:
            return None
        return [t.strip() for t in self.terms_to_scrape.split(",") if t.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience access
settings = get_settings()
