"""Application configuration using Pydantic Settings."""
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # Application
    APP_NAME: str = "AssetTrackr"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./data/assettrackr.db"
    SEED_DEMO_DATA: bool = False

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Client data source
    API_BASE_URL: str = "http://localhost:8000/api"
    DATA_SOURCE: str = "live"  # live | fake
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # Projects
    DEFAULT_BRANCH: str = "main"

    # Uploads
    MAX_UPLOAD_SIZE_MB: int = 100

    # Upload job simulator: stage offsets (seconds after job creation)
    UPLOAD_VALIDATING_DELAY: float = 2.0
    UPLOAD_CONVERTING_DELAY: float = 4.0
    UPLOAD_OPENED_PR_DELAY: float = 6.0
    UPLOAD_DONE_DELAY: float = 8.0

    # Client read cache
    UPLOAD_JOBS_POLL_INTERVAL: float = 2.0
    QUERY_STALE_SECONDS: float = 300.0   # 5 minutes
    QUERY_MAX_RETRIES: int = 3

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def upload_stage_delays(self) -> dict[str, float]:
        return {
            "validating": self.UPLOAD_VALIDATING_DELAY,
            "converting": self.UPLOAD_CONVERTING_DELAY,
            "opened_pr": self.UPLOAD_OPENED_PR_DELAY,
            "done": self.UPLOAD_DONE_DELAY,
        }

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
