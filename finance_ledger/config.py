"""
Ledger configuration.

Every setting comes from the environment (or a .env file),
so connection strings and posting limits stay out of the code.
"""

import os
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


class Settings:
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Finance Ledger"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = _env_bool("DEBUG")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "postgresql://localhost:5432/finance_ledger"
    )

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Posting
    # Seconds a post() call waits for the posting lock before giving up.
    POSTING_LOCK_TIMEOUT: float = float(os.getenv("POSTING_LOCK_TIMEOUT", "10"))
    ENTRY_NUMBER_PREFIX: str = os.getenv("ENTRY_NUMBER_PREFIX", "JE-")

    # Chart of accounts
    # When false, a child account must have the same type as its parent.
    ALLOW_CROSS_TYPE_ROLLUP: bool = _env_bool("ALLOW_CROSS_TYPE_ROLLUP")


@lru_cache()
def get_settings() -> Settings:
    """Settings are read once per process and shared."""
    return Settings()
