"""Centralized configuration via pydantic-settings.

CMS credentials, sitemap tuning and API limits live here.
Override any value via environment variable (e.g., ``SANITY_DATASET=staging``).
"""

from functools import lru_cache

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # --- Sanity CMS ---
    SANITY_PROJECT_ID: str = "e5ats5ga"
    SANITY_DATASET: str = "production"
    SANITY_API_VERSION: str = "2024-01-01"
    SANITY_READ_TOKEN: SecretStr = SecretStr("")  # Optional; public datasets need no token
    SANITY_WRITE_TOKEN: SecretStr = SecretStr("")  # Required for import_games.py mutations
    SANITY_WEBHOOK_SECRET: SecretStr = SecretStr("")  # Shared secret sent as x-sanity-webhook-secret

    # --- Sitemaps ---
    SITE_URL: str = "https://metawin.com"
    REVALIDATE_PATHS: list[str] = ["/sitemap.xml", "/sitemap-images.xml"]
    SITEMAP_CACHE_TTL_SECONDS: int = 86400  # 24 hours, matches Cache-Control max-age

    # --- MetaWin platform API ---
    METAWIN_API_BASE: str = "https://api.prod.platform.mwapp.io"
    HTTP_TIMEOUT_SECONDS: float = 10.0

    # --- API ---
    ALLOWED_ORIGINS: list[str] = ["http://localhost:3000"]
    MAX_REQUEST_BODY_SIZE: int = 65536  # 64 KB; CMS webhook bodies are small

    # --- Observability ---
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"
    VERSION: str = "0.1.0"

    model_config = {"env_prefix": "", "case_sensitive": True}

    @field_validator("SITE_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("REVALIDATE_PATHS")
    @classmethod
    def validate_revalidate_paths(cls, v: list[str]) -> list[str]:
        """Every revalidation target must be an absolute path."""
        for path in v:
            if not path.startswith("/"):
                raise ValueError(f"REVALIDATE_PATHS entry must start with '/': {path!r}")
        return v


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()
