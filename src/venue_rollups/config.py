"""Configuration helpers and Settings container.

Settings are read from the environment after loading the project's `.env`
file. Only the MongoDB connection and the stock fallback depth are
configurable; everything else about a report lives in its policy table.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parents[2]
load_dotenv(PROJECT_ROOT / ".env")

@dataclass(frozen=True)
class Settings:
    """Container for rollup configuration read from the environment.

    Attributes:
        mongo_uri: MongoDB connection URI.
        mongo_db: Database holding the weekly collections.
        fallback_hops: How many prior months a stock field may look back.
        log_path: File the CLI writes its log to.
    """
    mongo_uri: str
    mongo_db: str
    fallback_hops: int
    log_path: Path


def _parse_hops(raw: str) -> int:
    try:
        hops = int(raw)
    except ValueError:
        raise RuntimeError(
            f"ROLLUP_FALLBACK_HOPS must be an integer, got {raw!r}."
        ) from None
    if hops < 0:
        raise RuntimeError(f"ROLLUP_FALLBACK_HOPS must be >= 0, got {hops}.")
    return hops


def get_settings() -> Settings:
    """Read environment variables and return a frozen `Settings` object.

    Raises:
        RuntimeError: if `ROLLUP_FALLBACK_HOPS` is not a non-negative integer.
    """
    mongo_uri = os.getenv(
        "MONGO_URI",
        "mongodb://localhost:27017,localhost:27018,localhost:27019/?replicaSet=rs0",
    )
    mongo_db = os.getenv("MONGO_DB", "venues")
    fallback_hops = _parse_hops(os.getenv("ROLLUP_FALLBACK_HOPS", "1").strip())
    log_path = Path(os.getenv("ROLLUP_LOG_PATH", "logs/rollups.log"))

    return Settings(
        mongo_uri=mongo_uri,
        mongo_db=mongo_db,
        fallback_hops=fallback_hops,
        log_path=log_path,
    )
