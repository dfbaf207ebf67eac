from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class AppSettings(BaseSettings):
    STORAGE_S3_BUCKET: Optional[str] = None
    STORAGE_S3_REGION: Optional[str] = None
    STORAGE_LOCAL_BASE_PATH: Optional[str] = None
    BROWSER_HEADLESS: bool = False
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore' # Ignore extra fields from .env or environment
    )


def get_settings() -> AppSettings:
    """Reads settings from the environment and .env at call time."""
    return AppSettings()
