"""
config/settings.py
Application settings loaded from environment variables.
Uses Pydantic BaseSettings for validation and type safety.
"""

from functools import lru_cache
from pathlib import Path
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ──────────────────────────────────────────
    APP_NAME: str = "E-Guruji"
    APP_ENV: str = "development"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    SECRET_KEY: str

    # ── Server ───────────────────────────────────────────────
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    WORKERS: int = 1            # view registry is in-process
    SESSION_COOKIE: str = "eguruji_session"
    VIEW_IDLE_SECONDS: int = 1800
    MAX_MOUNTED_VIEWS: int = 10000

    # ── Managed backend (Supabase) ───────────────────────────
    SUPABASE_URL: str
    SUPABASE_ANON_KEY: str
    SUPABASE_JWT_SECRET: str
    SUPABASE_JWT_AUDIENCE: str = "authenticated"
    BACKEND_TIMEOUT_SECONDS: float = 10.0
    PAYMENT_FUNCTION: str = "create-payment-order"

    # ── Frontend ─────────────────────────────────────────────
    SITE_URL: str = "http://localhost:8000"
    ALLOWED_ORIGINS: str = "http://localhost:8000"
    TEMPLATES_DIR: str = str(BASE_DIR / "templates")
    MOBILE_BREAKPOINT_PX: int = 768
    CURRENCY_SYMBOL: str = "₹"

    # ── OTP ──────────────────────────────────────────────────
    OTP_LENGTH: int = 6
    OTP_RESEND_COOLDOWN_SECONDS: int = 60
    OTP_COMPLETE_REDIRECT: str = "/"

    @property
    def allowed_origins_list(self) -> List[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",")]

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def auth_url(self) -> str:
        return f"{self.SUPABASE_URL.rstrip('/')}/auth/v1"

    @property
    def rest_url(self) -> str:
        return f"{self.SUPABASE_URL.rstrip('/')}/rest/v1"

    @property
    def functions_url(self) -> str:
        return f"{self.SUPABASE_URL.rstrip('/')}/functions/v1"


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()


settings = get_settings()
