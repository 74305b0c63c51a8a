# price_sync/services/context.py

"""Explicit run context: credentials, clients and the driver for one run.

Environment variables are read here, once, by ``init_context``.  Every
other module receives its collaborators through constructors.
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from price_sync.clients.prisync_client import PrisyncClient, PrisyncCredentials
from price_sync.config.settings import Settings
from price_sync.errors import ConfigurationError
from price_sync.filters.price_extractor import PriceExtractor
from price_sync.filters.product_matcher import ProductMatcher, parse_strategies
from price_sync.models.reconciliation import MatchStrategy
from price_sync.services.reconciler import ReconciliationDriver
from price_sync.storage.catalog_store import (
    CatalogStore,
    SQLiteCatalogStore,
    SupabaseCatalogStore,
)

logger = logging.getLogger("price_sync.context")


@dataclass
class SyncContext:
    """Everything a reconciliation run needs, wired together."""

    store: CatalogStore
    fetcher: PrisyncClient
    driver: ReconciliationDriver
    mode: str = Settings.DEFAULT_SYNC_MODE


def _require(env: Mapping[str, str], *names: str) -> list[str]:
    missing = [n for n in names if not env.get(n, "").strip()]
    if missing:
        msg = (
            "Missing required environment variables: "
            f"{', '.join(missing)}"
        )
        raise ConfigurationError(msg)
    return [env[n].strip() for n in names]


def load_credentials(
    env: Mapping[str, str] | None = None,
) -> PrisyncCredentials:
    """Read the Prisync API key and token from the environment."""
    source = os.environ if env is None else env
    api_key, api_token = _require(
        source, "PRISYNC_API_KEY", "PRISYNC_API_TOKEN"
    )
    return PrisyncCredentials(api_key=api_key, api_token=api_token)


def build_store(
    backend: str, env: Mapping[str, str],
) -> CatalogStore:
    """Create the local catalog adapter for *backend*."""
    if backend == "supabase":
        url, key = _require(
            env, "SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY"
        )
        return SupabaseCatalogStore.connect(url, key)
    if backend == "sqlite":
        raw_path = env.get("CATALOG_DB_PATH", "").strip()
        return SQLiteCatalogStore(
            Path(raw_path) if raw_path else None
        )
    msg = (
        f"Unknown catalog backend '{backend}' "
        f"(expected one of: {', '.join(Settings.CATALOG_BACKENDS)})"
    )
    raise ConfigurationError(msg)


def resolve_strategies(raw: str | None) -> list[MatchStrategy]:
    """Parse a strategy list, defaulting to ``Settings.DEFAULT_STRATEGIES``."""
    try:
        return parse_strategies(raw or Settings.DEFAULT_STRATEGIES)
    except ValueError as exc:
        valid = ", ".join(s.value for s in MatchStrategy)
        msg = f"Invalid match strategies '{raw}' (valid: {valid})"
        raise ConfigurationError(msg) from exc


def init_context(
    backend: str | None = None,
    strategies: str | None = None,
    mode: str | None = None,
    env: Mapping[str, str] | None = None,
) -> SyncContext:
    """Build the run context from explicit arguments and the environment.

    Arguments win over ``CATALOG_BACKEND``, ``MATCH_STRATEGIES`` and
    ``SYNC_MODE``; those win over the ``Settings`` defaults.
    """
    source = os.environ if env is None else env

    chosen_backend = (
        backend
        or source.get("CATALOG_BACKEND", "").strip()
        or Settings.DEFAULT_CATALOG_BACKEND
    ).lower()
    chosen_mode = (
        mode
        or source.get("SYNC_MODE", "").strip()
        or Settings.DEFAULT_SYNC_MODE
    ).lower()
    if chosen_mode not in Settings.SYNC_MODES:
        msg = (
            f"Unknown sync mode '{chosen_mode}' "
            f"(expected one of: {', '.join(Settings.SYNC_MODES)})"
        )
        raise ConfigurationError(msg)

    matcher = ProductMatcher(
        resolve_strategies(
            strategies or source.get("MATCH_STRATEGIES") or None
        )
    )
    credentials = load_credentials(source)
    store = build_store(chosen_backend, source)

    logger.info(
        "Context ready: backend=%s mode=%s strategies=%s",
        chosen_backend,
        chosen_mode,
        ",".join(s.value for s in matcher.strategies),
    )
    return SyncContext(
        store=store,
        fetcher=PrisyncClient(credentials),
        driver=ReconciliationDriver(
            store, matcher=matcher, extractor=PriceExtractor()
        ),
        mode=chosen_mode,
    )
