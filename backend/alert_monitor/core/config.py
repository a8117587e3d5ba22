from pydantic import Field
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    PROJECT_NAME: str = "Alert Feed Monitor"

    # Storage
    # DATA_DIR holds alerts.json, processed_alerts.json and game_data.json
    DATA_DIR: str = "data"

    # Upstream feed
    FEED_URL: str = "https://www.oref.org.il/WarningMessages/alert/alerts.json"
    # FEED_SAMPLE_PATH: read the payload from a local JSON file instead of FEED_URL
    # (offline/demo mode). Leave unset in production.
    FEED_SAMPLE_PATH: Optional[str] = None
    FEED_TIMEOUT_SECONDS: float = 10.0
    FEED_USER_AGENT: str = "Mozilla/5.0 (compatible; AlertFeedMonitor/1.0)"
    FEED_REFERER: Optional[str] = "https://www.oref.org.il/"

    # Pipeline
    POLL_INTERVAL_SECONDS: float = Field(10.0, gt=0)
    DEDUP_WINDOW_MS: int = 5000
    RETENTION_DAYS: int = 7
    SWEEP_HOUR: int = Field(3, ge=0, le=23)  # Hour of day (server zone) for the processed-keys sweep
    SCHEDULER_ENABLED: bool = True

    # TIMEZONE: pytz zone name used for alert dates (e.g. "Asia/Jerusalem").
    # Defaults to the server's local zone when unset.
    TIMEZONE: Optional[str] = None

    # Game data blob
    GAME_DATA_MAX_BYTES: int = 1_000_000

    class Config:
        env_file = ".env"
        extra = "ignore"  # Ignore extra environment variables

settings = Settings()
