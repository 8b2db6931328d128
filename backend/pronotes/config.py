"""
Application configuration using Pydantic Settings.
All config is loaded from environment variables / .env file.
"""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    # ── App ──────────────────────────────────────────────
    APP_NAME: str = "pronotes"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"  # comma-separated
    LOG_LEVEL: str = "INFO"

    # ── Supabase (server-side notes table) ───────────────
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""  # anon/public key
    NOTES_TABLE: str = "notes"

    # ── Client store ─────────────────────────────────────
    NOTES_BACKEND: str = "local"  # local | api
    NOTES_API_URL: str = "http://localhost:8000/api/notes"
    NOTES_API_TIMEOUT: float = 10.0  # HTTP timeout in seconds
    LOCAL_STORE_PATH: str = "pronotes.json"
    LOCAL_STORAGE_KEY: str = "stickyNotesApp.notes"

    # ── UI feedback ──────────────────────────────────────
    SAVED_INDICATOR_SECONDS: float = 1.5

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance (singleton)."""
    return Settings()
