# price_sync/filters/url_normalizer.py

"""Storefront URL canonicalisation for URL-based product matching."""

import logging
from urllib.parse import unquote_plus, urlsplit

from price_sync.config.settings import Settings

logger = logging.getLogger("price_sync.filters")


def _param_name(pair: str) -> str:
    """Return the decoded, lowercased name of a ``key=value`` pair."""
    return unquote_plus(pair.split("=", 1)[0]).strip().lower()


def normalize_url(
    url: str,
    tracking_params: frozenset[str] | None = None,
) -> str:
    """Strip tracking/session query params to get a stable product URL.

    Only denylisted parameters are removed.  Scheme, host, path,
    fragment and the remaining parameters (their order and encoding)
    are returned untouched.  Never raises: an unparsable URL comes
    back as given.
    """
    if not url:
        return url or ""
    denylist = (
        Settings.TRACKING_PARAMS
        if tracking_params is None
        else tracking_params
    )
    try:
        if not urlsplit(url).query:
            return url
        base, hash_sep, fragment = url.partition("#")
        head, _, query = base.partition("?")
        kept = [
            pair
            for pair in query.split("&")
            if _param_name(pair) not in denylist
        ]
    except (ValueError, TypeError, AttributeError) as exc:
        logger.debug("Could not parse URL %r: %s", url, exc)
        return url

    normalized = f"{head}?{'&'.join(kept)}" if kept else head
    return f"{normalized}{hash_sep}{fragment}"
