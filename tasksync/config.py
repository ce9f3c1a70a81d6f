from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    host: str = "127.0.0.1"
    port: int = 9000
    log_level: str = "INFO"
    data_file: Path = Path("tasks.json")
    notion_api_base: str = "https://api.notion.com/v1"
    notion_api_version: str = "2022-06-28"
    # Seed credentials, used only when the store has none saved
    notion_api_key: str = ""
    notion_database_id: str = ""
    sync_interval_seconds: float = 30.0
    sync_debounce_seconds: float = 1.0
    request_timeout_seconds: float = 30.0
    http_retries: int = 3
    http_backoff_factor: float = 0.5

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
