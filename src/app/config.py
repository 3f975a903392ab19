from __future__ import annotations

from typing import Literal, Optional

from pydantic import AnyUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8-sig",
        case_sensitive=False,
        extra="ignore",
    )

    SUPABASE_URL: Optional[AnyUrl] = None
    SUPABASE_SERVICE_ROLE_KEY: str = ""
    # used for end-user sign-in calls; falls back to the service key
    SUPABASE_ANON_KEY: Optional[str] = None
    APP_ENV: str = "local"

    DATA_BACKEND: Literal["supabase", "memory"] = "supabase"
    STORAGE_BACKEND: Literal["r2", "local"] = "r2"
    MEDIA_ROOT: str = "media"
    MEDIA_BASE_URL: str = "/media"

    FRONTEND_CORS_ORIGINS: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"],
    )

    RECIPES_PAGE_SIZE: int = Field(default=12, ge=1, le=50)
    COMMENTS_PAGE_SIZE: int = Field(default=4, ge=1)
    MAX_WRITE_ATTEMPTS: int = Field(default=5, ge=1)
    MAX_IMAGE_BYTES: int = 10 * 1024 * 1024


settings = Settings()
