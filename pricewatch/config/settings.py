# pricewatch/config/settings.py

"""Central configuration for the pricewatch engine."""

import os
from decimal import Decimal
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the pricewatch engine."""

    # --- Scheduling ---
    BATCH_SIZE: int = 10                    # Items per batch in check_all
    DELAY_BETWEEN_CHECKS: float = 2.0       # Seconds between items
    CHECK_JITTER_MAX: float = 3.0           # Extra random delay (secs)
    BATCH_PAUSE: float = 5.0                # Fixed pause between batches
    MAX_AGE: float = 3600.0                 # Min age before re-checking

    # --- Fetching ---
    REQUEST_TIMEOUT: int = 15               # Seconds before a request times out
    MAX_RETRIES: int = 3                    # Retries after the first attempt
    INITIAL_RETRY_DELAY: float = 1.0        # First backoff step (secs)
    MAX_RETRY_DELAY: float = 10.0           # Backoff cap (secs)
    RETRY_JITTER: float = 0.2               # +/- fraction applied to backoff

    # --- Shared rate limiter ---
    RATE_LIMIT_MAX_REQUESTS: int = int(
        os.getenv("PRICEWATCH_RATE_LIMIT_MAX_REQUESTS", "10")
    )
    RATE_LIMIT_WINDOW: float = float(
        os.getenv("PRICEWATCH_RATE_LIMIT_WINDOW", "60")
    )
    RATE_LIMIT_SLACK: float = 0.1           # Added to computed waits
    RATE_LIMIT_KEY: str = "rate_limiter_timestamps"

    # --- Advisory lock ---
    LOCK_KEY: str = "storage_lock"
    LOCK_POLL_INTERVAL: float = 0.05        # Seconds between polls
    LOCK_STALE_AFTER: float = 10.0          # Holder presumed crashed
    LOCK_TIMEOUT: float = 5.0               # Force-acquire after this

    # --- Tracking ---
    ITEMS_KEY: str = "tracked_items"
    SETTINGS_KEY: str = "settings"
    GRANTS_KEY: str = "granted_domains"
    HISTORY_LIMIT: int = 30                 # Entries kept per item
    STALE_AFTER_FAILURES: int = 3           # failed_checks -> stale
    PRICE_TOLERANCE: Decimal = Decimal("0.01")
    DEFAULT_USER_SETTINGS: dict[str, dict[str, int]] = {
        "tracking": {
            "duration_days": 30,
            "max_products": 100,
        },
        "checking": {
            "interval_hours": 6,
            "batch_size": 5,
            "timeout_seconds": 10,
            "retry_attempts": 3,
        },
    }
    SETTINGS_LIMITS: dict[str, dict[str, tuple[int, int]]] = {
        "tracking": {
            "duration_days": (7, 90),
            "max_products": (1, 1000),
        },
        "checking": {
            "interval_hours": (1, 48),
            "batch_size": (1, 50),
            "timeout_seconds": (1, 60),
            "retry_attempts": (0, 10),
        },
    }

    # --- Extraction ---
    MIN_CONFIDENCE: float = 0.60            # Acceptance floor
    HEURISTIC_MIN_SCORE: int = 60           # Candidate score threshold
    QUICK_SELECTOR_CONFIDENCE: float = 0.70 # Parser confidence for selectors
    CANDIDATE_MIN_CONFIDENCE: float = 0.60  # Parser confidence for candidates
    CANDIDATE_MAX_TEXT: int = 50            # Chars in a candidate fragment
    TITLE_MAX_LENGTH: int = 200

    # --- Bot challenges ---
    SHORT_BODY_LENGTH: int = 500
    CHALLENGE_PHRASES: dict[str, list[str]] = {
        "amazon": [
            "api.captcha.amazon.com",
            "sorry, we just need to make sure you're not a robot",
            "enter the characters you see below",
            "type the characters you see in this image",
        ],
        "walmart": [
            "robot or human",
            "please verify you are a human",
            "blocked by walmart",
        ],
        "target": [
            "security challenge",
        ],
    }

    # --- Permissions ---
    SUPPORTED_DOMAINS: list[str] = [
        "amazon.com",
        "amazon.co.uk",
        "amazon.de",
        "amazon.fr",
        "amazon.it",
        "amazon.es",
        "amazon.ca",
        "amazon.co.jp",
        "amazon.com.au",
        "ebay.com",
        "ebay.co.uk",
        "ebay.de",
        "ebay.fr",
        "ebay.it",
        "ebay.es",
        "ebay.ca",
        "ebay.com.au",
        "walmart.com",
        "target.com",
        "bestbuy.com",
    ]

    # --- Browser Impersonation ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": (
            "text/html,application/xhtml+xml,"
            "application/xml;q=0.9,*/*;q=0.8"
        ),
        "Accept-Language": "en-US,en;q=0.9",
        "sec-fetch-dest": "document",
        "sec-fetch-mode": "navigate",
        "sec-fetch-site": "none",
        "Upgrade-Insecure-Requests": "1",
    }

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    DATA_DIR: Path = BASE_DIR / "data"
    DB_PATH: Path = Path(
        os.getenv(
            "PRICEWATCH_DB_PATH",
            str(DATA_DIR / "pricewatch.db"),
        )
    )
    LOGS_DIR: Path = BASE_DIR / "logs"
