# barber_finder/config.py

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # SQLite database (file-based) unless DATABASE_URL points elsewhere
    database_url: str = "sqlite:///./barber.db"
    database_echo: bool = False  # set to True to see SQL
    create_tables: bool = True

    secret_key: str = "change-me-later"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 300  # 5h

    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"

    host: str = "127.0.0.1"
    port: int = 8000

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
