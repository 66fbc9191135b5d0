"""
Application configuration.

Everything comes from environment variables (or a local .env
file). Connection strings and document prefixes are never
hardcoded at the call sites.
"""

import os
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Settings for the journal posting service."""

    # Application
    APP_NAME: str = "Auto Journal Engine"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "postgresql://localhost:5432/auto_journal"
    )
    # Echo every SQL statement (noisy; for local debugging only)
    DATABASE_ECHO: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "DEBUG" if DEBUG else "INFO")

    # Document numbering: PREFIX-YYYYMM-NNNN
    RECEIPT_NUMBER_PREFIX: str = os.getenv("RECEIPT_NUMBER_PREFIX", "RCV")
    PAYMENT_NUMBER_PREFIX: str = os.getenv("PAYMENT_NUMBER_PREFIX", "PAY")


@lru_cache()
def get_settings() -> Settings:
    """Settings are read once per process."""
    return Settings()
