from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # ======================
    # Database
    # ======================
    DATABASE_URL: str = Field(default="sqlite:///./careercoach.db")

    # =========
    # App
    # =========
    APP_NAME: str = "Career Coach API"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    FRONTEND_URL: str = "*"

    # =========
    # JWT (issued by the identity provider)
    # =========
    JWT_SECRET_KEY: str = Field(default="")
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: Optional[str] = None

    # =========
    # Gemini
    # =========
    GEMINI_API_KEY: str = Field(default="")
    GEMINI_MODEL: str = "gemini-2.5-flash"
    GENERATION_MAX_ATTEMPTS: int = 3
    GENERATION_BACKOFF_SECONDS: float = 2.0

    @property
    def database_url(self) -> str:
        # Hosted Postgres hands out postgres:// but SQLAlchemy needs postgresql://
        if self.DATABASE_URL.startswith("postgres://"):
            return self.DATABASE_URL.replace("postgres://", "postgresql://", 1)
        return self.DATABASE_URL


settings = Settings()
