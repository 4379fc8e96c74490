# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar, List
from pathlib import Path
from dotenv import load_dotenv

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

load_dotenv(env_path)

DEFAULT_SECRET_KEY = "dev-secret-change-me"


class Settings(BaseSettings):
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str = "sqlite:///./inventory_app.db"

    SECRET_KEY: str = DEFAULT_SECRET_KEY
    ALGORITHM: str = "HS256"
    # One day, matching the lifetime issued to the mobile and desktop clients
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    PASSWORD_MIN_LENGTH: int = 8

    # Comma separated list; "*" allows every origin
    CORS_ORIGINS: str = "*"

    # Google Sign-In is disabled while GOOGLE_CLIENT_ID is empty
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_EXTRA_IDS: str = ""
    GOOGLE_TOKENINFO_URL: str = "https://oauth2.googleapis.com/tokeninfo"
    ALLOWED_EMAIL_DOMAIN: str = "@iiitnr.edu.in"
    ALLOW_UNVERIFIED_EMAIL: bool = False

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

    @property
    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def google_client_ids(self) -> List[str]:
        extra = [c.strip() for c in self.GOOGLE_CLIENT_EXTRA_IDS.split(",") if c.strip()]
        return ([self.GOOGLE_CLIENT_ID] if self.GOOGLE_CLIENT_ID else []) + extra

    def validate_runtime(self) -> None:
        if self.APP_ENV.lower() == "production" and self.SECRET_KEY == DEFAULT_SECRET_KEY:
            raise RuntimeError("SECRET_KEY must be set in production.")


settings = Settings()
