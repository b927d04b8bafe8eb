from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="VALORA_", env_file=".env", extra="ignore")

    # Parse limits
    MAX_DEPTH: int = 32
    MAX_ARRAY_LENGTH: int = 10_000

    # Messages
    LOCALE: str = "en"

    # Logging
    LOG_LEVEL: str = "WARNING"
    LOG_JSON: bool = False  # True for JSON lines, False for colored console output


@lru_cache
def get_settings() -> Settings:
    return Settings()
