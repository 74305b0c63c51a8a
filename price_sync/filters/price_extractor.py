# price_sync/filters/price_extractor.py

"""Derive one authoritative price from a matched remote product."""

import logging
from collections.abc import Callable, Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from price_sync.models.product import MonitoredUrl
from price_sync.models.reconciliation import MatchResult, PriceSourceKind

logger = logging.getLogger("price_sync.filters")

SitePolicy = Callable[[Mapping[str, Any]], Decimal | None]


def parse_price(value: Any) -> Decimal | None:
    """Parse a reported price into a finite, strictly positive Decimal.

    Accepts Decimals, ints, floats and numeric strings such as
    ``"1,299.00"``.  Returns ``None`` for anything else, including
    zero, negatives, NaN and infinities.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        price = value
    elif isinstance(value, (int, float)):
        price = Decimal(str(value))
    elif isinstance(value, str):
        cleaned = value.strip().replace(",", "")
        if not cleaned:
            return None
        try:
            price = Decimal(cleaned)
        except InvalidOperation:
            return None
    else:
        return None

    if not price.is_finite() or price <= 0:
        return None
    return price


def first_priced_url(
    urls: tuple[MonitoredUrl, ...],
) -> MonitoredUrl | None:
    """Return the first monitored URL, in catalog order, with a usable price."""
    for entry in urls:
        if parse_price(entry.price) is not None:
            return entry
    return None


def first_priced_site(sites: Mapping[str, Any]) -> Decimal | None:
    """Return the price of the first site, in reported order, that has one."""
    for site, raw in sites.items():
        price = parse_price(raw)
        if price is not None:
            logger.debug("Using price %s from site %s", price, site)
            return price
    return None


class PriceExtractor:
    """Turn a MatchResult into a single current price."""

    def __init__(self, site_policy: SitePolicy | None = None) -> None:
        self._site_policy: SitePolicy = site_policy or first_priced_site

    def extract(self, match: MatchResult) -> Decimal | None:
        """Return the positive price for *match*, or ``None``."""
        source = match.price_source
        if source is None:
            return None
        if source.kind is PriceSourceKind.MONITORED_URL:
            if source.monitored_url is None:
                return None
            return parse_price(source.monitored_url.price)
        return self._site_policy(source.site_summaries or {})
