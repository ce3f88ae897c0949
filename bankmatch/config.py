# bankmatch/config.py

from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_name: str = "Bank Matching API"
    app_env: str = "development"
    debug: bool = True
    frontend_url: str = "http://localhost:3000"
    log_level: str = "INFO"

    # Supabase
    supabase_url: str
    supabase_anon_key: str
    supabase_service_role_key: str

    # Cron trigger (Bearer token expected from the scheduler)
    cron_secret: Optional[str] = None

    # Matching config
    auto_match_threshold: float = 0.90
    auto_match_batch_limit: int = 200
    max_match_candidates: int = 5
    amount_tolerance: float = 0.01

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
