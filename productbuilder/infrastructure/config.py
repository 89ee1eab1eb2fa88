"""Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API
    api_version: str = "0.1.0"
    debug: bool = False

    # Database
    database_url: str = "postgresql+asyncpg://productbuilder:productbuilder_dev_password@db:5432/productbuilder"

    # Authentication
    productbuilder_api_key: str = "dev-api-key-change-in-production"

    # Shopify Admin API
    shopify_api_version: str = "2025-01"
    shopify_api_secret: str = "dev-shopify-secret-change-in-production"
    shopify_page_size: int = 250
    shopify_vendor_page_size: int = 1000
    shopify_timeout_seconds: float = 30.0
    required_scopes: list[str] = ["write_products", "read_products"]

    # Cache
    cache_backend: str = "database"  # "database" or "memory"
    cache_ttl_seconds: int = 15 * 60
    cache_stale_threshold: float = 0.8
    cache_refresh_timeout_seconds: float = 30.0

    # Variants
    size_chart_path: str | None = None

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    class Config:
        """Pydantic configuration."""

        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
