"""Environment-driven settings shared by the scripts and workflows."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

# Project root directory (repo root)
ROOT_DIR = Path(__file__).resolve().parents[1]

DEFAULT_DB_URL = "sqlite:///./dev.db"
DEFAULT_LOG_LEVEL = "INFO"


def lottery_seed() -> Optional[int]:
    """Return ``LOTTERY_SEED`` as an int, or ``None`` when unset or blank."""
    raw = os.getenv("LOTTERY_SEED", "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"LOTTERY_SEED must be an integer, got {raw!r}") from exc


def log_level() -> str:
    return os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
