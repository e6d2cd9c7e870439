# app/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - SUPABASE_URL
      - SUPABASE_KEY (anon key)
      - DATABASE_URL (Supabase Postgres connection string)

    Optional:
      - SUPABASE_SERVICE_ROLE_KEY (storage access for original photos)
      - STRIPE_SECRET_KEY / STRIPE_WEBHOOK_SECRET (checkout)
      - PROMO_CODES, JSON object of CODE -> percent, e.g. {"SURF10": 10}
    """

    PROJECT_NAME: str = "Arode Studio API"
    API_V1_STR: str = "/api/v1"

    # Supabase / DB config
    SUPABASE_URL: str
    SUPABASE_KEY: str
    DATABASE_URL: str

    # Service role key bypasses RLS (backend only)
    SUPABASE_SERVICE_ROLE_KEY: str | None = None

    # Private bucket holding full-resolution originals
    STORAGE_BUCKET: str = "originals"
    DOWNLOAD_URL_TTL_SECONDS: int = 7 * 24 * 3600

    # Stripe
    STRIPE_SECRET_KEY: str | None = None
    STRIPE_WEBHOOK_SECRET: str | None = None
    STRIPE_CURRENCY: str = "eur"

    # Public site, used for checkout redirect URLs
    SITE_URL: str = "http://localhost:3000"

    PROMO_CODES: dict[str, int] = {}

    # In-memory cart store limits
    CART_IDLE_TTL_SECONDS: int = 24 * 3600
    MAX_ACTIVE_CARTS: int = 10_000
    # Stripe Checkout Sessions expire after 24h at most
    CHECKOUT_SNAPSHOT_TTL_SECONDS: int = 48 * 3600

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
