"""Application configuration via environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from .env or environment."""

    DATABASE_URL: str = "sqlite:///./gatepass.db"
    CORS_ORIGINS: str = "http://localhost:5173"
    CAMPUS_TIMEZONE: str = "Asia/Kolkata"  # IANA tz used for "today" checks
    BLOB_ROOT: str = "./blobs"
    BLOB_BASE_URL: str = "http://localhost:8000/blobs"
    LOG_LEVEL: str = "INFO"
    DASHBOARD_RECENT_LIMIT: int = 5

    class Config:
        env_file = ".env"


settings = Settings()
