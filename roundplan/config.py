"""
Round Plans — Centralized configuration.

Loads all settings from .env and validates required keys.
Every other module reads configuration through the `settings` singleton.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (two levels up from roundplan/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Storage backend: "sqlite" | "memory"
    STORE_BACKEND: str = "sqlite"
    DATABASE_PATH: str = "data/roundplan.db"

    # Restrict a run to one owning account (empty → all owners)
    OWNER_ID: str | None = None

    # Migration
    BASE_SERVICE_TYPE: str = "window-cleaning"
    DEFAULT_PLAN_PRICE: float = 25.0
    MAX_WORKERS: int = 1

    # Audit output
    AUDIT_TABLE_LIMIT: int = 100

    LOG_LEVEL: str = "INFO"

    @field_validator("OWNER_ID", mode="before")
    @classmethod
    def parse_owner_id(cls, v: str | None) -> str | None:
        if isinstance(v, str) and v.strip():
            return v.strip()
        return None

    @field_validator("MAX_WORKERS", "AUDIT_TABLE_LIMIT", mode="before")
    @classmethod
    def parse_positive_int(cls, v: str | int) -> int:
        value = int(v)
        if value < 1:
            raise ValueError(f"must be at least 1, got {value}")
        return value

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def parse_log_level(cls, v: str) -> str:
        return str(v).upper()


def _load_settings() -> Settings:
    """Load settings from environment, validating required keys."""
    db_path = os.getenv("DATABASE_PATH", "data/roundplan.db")

    if not db_path.strip():
        print("ERROR: DATABASE_PATH is empty in .env", file=sys.stderr)
        sys.exit(1)

    return Settings(
        STORE_BACKEND=os.getenv("STORE_BACKEND", "sqlite"),
        DATABASE_PATH=db_path,
        OWNER_ID=os.getenv("OWNER_ID", ""),
        BASE_SERVICE_TYPE=os.getenv("BASE_SERVICE_TYPE", "window-cleaning"),
        DEFAULT_PLAN_PRICE=os.getenv("DEFAULT_PLAN_PRICE", "25"),
        MAX_WORKERS=os.getenv("MAX_WORKERS", "1"),
        AUDIT_TABLE_LIMIT=os.getenv("AUDIT_TABLE_LIMIT", "100"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
    )


# Singleton — imported by all other modules as:
#   from roundplan.config import settings
settings = _load_settings()
