# price_sync/config/settings.py

"""Central configuration for the price_sync job."""

from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the price_sync job."""

    # --- Remote price service (Prisync) ---
    PRISYNC_BASE_URL: str = "https://prisync.com/api/v2"
    PRISYNC_LIST_PATH: str = "/list/product/summary/startFrom/{offset}"
    PAGE_SIZE: int = 100                # Products per page (server fixed)
    PAGE_DELAY: float = 0.5             # Seconds between page requests
    REQUEST_TIMEOUT: int = 15           # Seconds before a request times out

    # --- Resilience ---
    FETCH_MAX_RETRIES: int = 3          # Attempts per page (1 = no retry)
    FETCH_RETRY_DELAY: float = 1.0      # Initial backoff between attempts
    MAX_DELAY_MULTIPLIER: int = 8       # Cap for backoff escalation
    RETRYABLE_STATUSES: frozenset[int] = frozenset(
        {429, 500, 502, 503, 504}
    )

    # --- Reconciliation ---
    BATCH_SIZE: int = 5                 # Records in flight (batched mode)
    BATCH_DELAY: float = 1.0            # Seconds between batches
    SYNC_MODES: list[str] = ["sequential", "batched"]
    DEFAULT_SYNC_MODE: str = "sequential"
    DEFAULT_STRATEGIES: list[str] = ["name_exact", "name_partial"]

    # Query params that never identify a product (session, campaign,
    # referral and affiliate tags)
    TRACKING_PARAMS: frozenset[str] = frozenset({
        "utm_source", "utm_medium", "utm_campaign", "utm_term",
        "utm_content", "utm_id", "gclid", "fbclid", "msclkid",
        "dclid", "yclid", "mc_cid", "mc_eid", "_ga", "_gl",
        "sessionid", "session_id", "sid", "jsessionid", "phpsessid",
        "ref", "ref_", "referrer", "referer", "ref_src",
        "affiliate", "affiliate_id", "aff", "aff_id", "affid",
        "tag", "clickid", "click_id", "irclickid", "ranmid",
        "ransiteid", "campaign", "cmpid",
    })

    # --- Local catalog ---
    CATALOG_BACKENDS: list[str] = ["supabase", "sqlite"]
    DEFAULT_CATALOG_BACKEND: str = "supabase"
    CATALOG_TABLE: str = "bags"

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    LOGS_DIR: Path = BASE_DIR / "logs"
    CATALOG_DB_PATH: Path = BASE_DIR / "data" / "catalog.db"
