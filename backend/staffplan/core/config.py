from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    app_name: str = "Staffplan"
    app_version: str = "0.1.0"
    environment: str = "dev"
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]
    log_level: str = "INFO"

    data_dir: Path = BASE_DIR / "data"
    record_store_path: Path = BASE_DIR / "data" / "stores.json"

    traffic_api_base_url: str | None = None
    traffic_api_token: str | None = None
    traffic_fetch_timeout_seconds: float = 2.0
    traffic_fetch_concurrency: int = 6
    sync_timeout_seconds: float = 30.0

    aggregation_policy: Literal["sum", "average"] = "sum"
    fallback_baseline: Literal["same_day", "trailing_average"] = "same_day"
    trailing_weeks: int = 4

    bulk_batch_size: int = 15
    bulk_batch_pause_seconds: float = 0.05

    default_desired_attention: float = 25.0
    default_open_time: str = "09:00"
    default_close_time: str = "21:00"

    progress_history_size: int = 50
    progress_max_sessions: int = 200
    progress_idle_timeout_seconds: float = 60.0

    model_config = SettingsConfigDict(
        env_prefix="STAFFPLAN_",
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
settings.data_dir.mkdir(parents=True, exist_ok=True)
