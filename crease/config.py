"""
Application configuration
"""
import os
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Settings from environment variables"""

    # Storage
    DATABASE_PATH: str = os.getenv("CREASE_DATABASE_PATH", "crease.db")

    # Logging
    LOG_LEVEL: str = os.getenv("CREASE_LOG_LEVEL", "INFO").upper()

    # Extra CORS origins (comma-separated)
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "")

    # Match defaults
    DEFAULT_OVERS_PER_INNINGS: int = int(os.getenv("CREASE_DEFAULT_OVERS", "20"))
    MAX_OVERS_PER_INNINGS: int = int(os.getenv("CREASE_MAX_OVERS", "50"))

    # Tournament used when none is given
    DEFAULT_TOURNAMENT_ID: str = os.getenv("CREASE_TOURNAMENT_ID", "vcl2026")


settings = Settings()
