from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(..., alias="DATABASE_URL")

    environment: str = Field("development", alias="ENVIRONMENT")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    # Comma separated list of allowed CORS origins
    frontend_url: str = Field("http://localhost:5173", alias="FRONTEND_URL")

    session_expire_days: int = Field(7, alias="SESSION_EXPIRE_DAYS")

    rate_limit_enabled: bool = Field(True, alias="RATE_LIMIT_ENABLED")
    rate_limit_window_seconds: int = Field(60, alias="RATE_LIMIT_WINDOW_SECONDS")

    seed_admin_email: Optional[str] = Field(None, alias="SEED_ADMIN_EMAIL")
    seed_admin_password: Optional[str] = Field(None, alias="SEED_ADMIN_PASSWORD")
    seed_admin_name: str = Field("Administrator", alias="SEED_ADMIN_NAME")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"
        populate_by_name = True

    @property
    def cors_origins(self) -> List[str]:
        origins = [o.strip() for o in self.frontend_url.split(",") if o.strip()]
        if self.environment != "production":
            # Vite picks the next free port when 5173 is taken
            for dev_origin in ("http://localhost:5173", "http://localhost:5174"):
                if dev_origin not in origins:
                    origins.append(dev_origin)
        return origins


settings = Settings()
