import os
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DESCRIPTION = (
    "Discover a magical world of pets, premium food, and accessories in our enchanted forest marketplace. "
    "Every creature deserves the finest care nature can provide."
)
DEFAULT_YOUTUBE_URL = "https://www.youtube.com/embed/dQw4w9WgXcQ"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    SECRET_KEY: str = "supersecretkey"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    ADMIN_EMAIL: str = "admin@petshop.forest"
    ADMIN_PASSWORD: str = "admin123"
    ADMIN_NAME: str = "Forest Admin"

    UPLOAD_DIR: str = os.path.join("server", "uploads")
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024
    MAX_UPLOAD_FILES: int = 5

    SITE_DESCRIPTION: str = DEFAULT_DESCRIPTION
    SITE_YOUTUBE_URL: str = DEFAULT_YOUTUBE_URL

    SEED_CATALOG: bool = False
    CORS_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"
    PORT: int = 8000


def get_settings() -> Settings:
    return Settings()
