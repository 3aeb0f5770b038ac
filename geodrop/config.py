"""
Configuration module for the GeoDrop backend.
Loads settings from .env file and environment variables.
"""

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

# Real environment variables win over the .env file
load_dotenv(Path(__file__).parent.parent / ".env", override=False)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class Settings:
    """Application configuration loaded from environment variables."""

    def __init__(self):
        self.app_name: str = os.getenv("APP_NAME", "GeoDrop")
        self.api_version: str = os.getenv("API_VERSION", "v1")
        self.debug: bool = _env_bool("DEBUG", "false")
        self.environment: str = os.getenv("ENVIRONMENT", "development")

        # Firebase (no credentials file -> local in-memory mode)
        self.firebase_credentials_path: str = os.getenv("FIREBASE_CREDENTIALS_PATH", "")
        self.storage_bucket: str = os.getenv("STORAGE_BUCKET", "")

        # CORS
        cors_raw = os.getenv("CORS_ORIGINS", "*")
        self.cors_origins: List[str] = [s.strip() for s in cors_raw.split(",")]

        # External calls
        self.fanout_concurrency: int = int(os.getenv("FANOUT_CONCURRENCY", "8"))
        self.external_call_timeout_seconds: float = float(
            os.getenv("EXTERNAL_CALL_TIMEOUT_SECONDS", "10")
        )

        # Local mode: empty keeps everything in memory
        self.local_data_dir: str = os.getenv("LOCAL_DATA_DIR", "")

        # Unlock policy
        self.disclose_unlock_distance: bool = _env_bool("DISCLOSE_UNLOCK_DISTANCE", "false")
        self.unlock_max_attempts: int = int(os.getenv("UNLOCK_MAX_ATTEMPTS", "5"))
        self.unlock_window_seconds: float = float(os.getenv("UNLOCK_WINDOW_SECONDS", "60"))

        if self.fanout_concurrency < 1:
            raise ValueError("FANOUT_CONCURRENCY must be at least 1")
        if self.external_call_timeout_seconds <= 0:
            raise ValueError("EXTERNAL_CALL_TIMEOUT_SECONDS must be positive")
        if self.unlock_max_attempts < 1:
            raise ValueError("UNLOCK_MAX_ATTEMPTS must be at least 1")
        if self.unlock_window_seconds <= 0:
            raise ValueError("UNLOCK_WINDOW_SECONDS must be positive")


_settings = None


def get_settings() -> Settings:
    """Get application settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
