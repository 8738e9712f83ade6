"""
Configuration. All settings from env vars or a .env file.
No YAML. No TOML parsing. Just a dataclass with defaults.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

# Auto-load .env file so you don't need `export $(grep ...)` every time
from dotenv import load_dotenv
load_dotenv()

from models import MIN_BATCH_SIZE

log = logging.getLogger(__name__)


@dataclass
class Config:
    # ── Review source (Steam appreviews) ──
    review_api_url: str = os.environ.get(
        "HARVEST_REVIEW_API_URL", "https://store.steampowered.com/appreviews"
    )
    app_details_url: str = os.environ.get(
        "HARVEST_APP_DETAILS_URL", "https://store.steampowered.com/api/appdetails"
    )
    review_language: str = os.environ.get("HARVEST_REVIEW_LANGUAGE", "english")
    review_filter: str = os.environ.get("HARVEST_REVIEW_FILTER", "recent")
    page_size: int = int(os.environ.get("HARVEST_PAGE_SIZE", "100"))
    request_timeout: int = int(os.environ.get("HARVEST_REQUEST_TIMEOUT", "30"))

    # Pause between successful page fetches, to stay polite with the API
    page_delay_seconds: float = float(os.environ.get("HARVEST_PAGE_DELAY", "1.0"))

    # ── Retry / loop ceilings ──
    # Factor 1.0 keeps the pause fixed; >1.0 makes it exponential.
    retry_backoff_seconds: float = float(os.environ.get("HARVEST_RETRY_BACKOFF", "2.0"))
    retry_backoff_factor: float = float(os.environ.get("HARVEST_RETRY_BACKOFF_FACTOR", "1.0"))
    max_backoff_seconds: float = float(os.environ.get("HARVEST_MAX_BACKOFF", "30.0"))
    max_consecutive_errors: int = int(os.environ.get("HARVEST_MAX_ERRORS", "3"))
    max_duplicate_pages: int = int(os.environ.get("HARVEST_MAX_DUPLICATE_PAGES", "5"))

    # ── Batch size contract ──
    min_batch_size: int = int(os.environ.get("HARVEST_MIN_BATCH", "100"))
    default_target: int = int(os.environ.get("HARVEST_DEFAULT_TARGET", "500"))

    # Storage
    db_path: Path = Path(os.environ.get("HARVEST_DB_PATH", "data/harvest.db"))

    def __post_init__(self):
        if self.min_batch_size < MIN_BATCH_SIZE:
            log.warning(
                f"min_batch_size {self.min_batch_size} is below the floor, using {MIN_BATCH_SIZE}"
            )
            self.min_batch_size = MIN_BATCH_SIZE


def load_config() -> Config:
    return Config()
