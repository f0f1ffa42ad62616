# vibecheck/config.py
from pydantic_settings import BaseSettings
from typing import Optional, List

class Settings(BaseSettings):
    # App
    APP_NAME: str = "VibeCheck Telemetry"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = True

    # Remote extraction endpoint (empty = local logging only)
    TRACKING_ENDPOINT_URL: Optional[str] = None
    TRACKING_TIMEOUT_SECONDS: float = 10.0

    # Local key-value storage
    VIBECHECK_STORAGE_DIR: Optional[str] = None  # None keeps everything in memory
    EVENT_LOG_KEY: str = "desidrip_extraction_v1"
    USER_PROFILE_KEY: str = "vibecheck_user"
    EXPORT_DIR: str = "exports"

    # MongoDB (collector)
    MONGODB_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "vibecheck"

    # Admin viewer
    ADMIN_TOKEN: Optional[str] = None

    # CORS
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "*"  # beacons come from any origin the app is served on
    ]

    # Pagination
    DEFAULT_PAGE_SIZE: int = 50
    MAX_PAGE_SIZE: int = 500

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"

settings = Settings()
