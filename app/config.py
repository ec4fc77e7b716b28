from pydantic_settings import BaseSettings, SettingsConfigDict
from datetime import datetime, timezone
from functools import lru_cache
from typing import List, Optional


class Settings(BaseSettings):
    app_name: str = "TCA Membership Backend"
    app_version: str = "1.0.0"
    debug: bool = True
    allowed_origins: str = "*"

    # Backend-as-a-service (auth + table REST APIs)
    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[str] = None
    supabase_jwt_secret: Optional[str] = None
    backend_timeout_seconds: float = 30.0

    users_table: str = "users"
    profiles_table: str = "businesses"

    site_url: str = "http://localhost:3000"
    min_password_length: int = 6

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def backend_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)

    @property
    def cors_origins(self) -> List[str]:
        if self.allowed_origins == "*":
            return ["*"]
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)
