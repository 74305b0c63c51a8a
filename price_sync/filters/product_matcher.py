# price_sync/filters/product_matcher.py

"""Pair a local catalog record with one remote product.

Matching is deterministic and heuristic.  Strategies are tried in the
configured order; inside a strategy the remote catalog is scanned in
its reported order and the first candidate that both matches and
carries a price wins.  Candidates that match but have no price are
passed over in favour of a priced one, and only reported (with no
price source) when nothing priced matches at all.  A priced monitored
URL always outranks a site summary: summaries price a name match only
when no matching product in that strategy has a priced URL.
"""

import logging
from collections.abc import Callable, Iterable, Sequence

from price_sync.filters.price_extractor import (
    first_priced_site,
    first_priced_url,
)
from price_sync.filters.url_normalizer import normalize_url
from price_sync.models.product import (
    LocalProduct,
    MonitoredUrl,
    RemoteProduct,
)
from price_sync.models.reconciliation import (
    MatchResult,
    MatchStrategy,
    PriceSource,
)

logger = logging.getLogger("price_sync.matcher")

UrlPolicy = Callable[[tuple[MonitoredUrl, ...]], MonitoredUrl | None]

NAME_STRATEGIES: frozenset[MatchStrategy] = frozenset({
    MatchStrategy.NAME_EXACT,
    MatchStrategy.NAME_PARTIAL,
})


def name_key(name: str | None) -> str:
    """Case-fold and trim a product name for comparison."""
    if not name:
        return ""
    return name.strip().casefold()


def url_key(url: str | None) -> str:
    """Normalise and trim a URL for comparison."""
    if not url:
        return ""
    return normalize_url(url.strip()).strip()


def parse_strategies(raw: str | Iterable[str]) -> list[MatchStrategy]:
    """Map a comma-separated string (or list) of names to strategies.

    Raises ``ValueError`` on unknown names or an empty selection.
    """
    names = raw.split(",") if isinstance(raw, str) else list(raw)
    strategies: list[MatchStrategy] = []
    for name in names:
        cleaned = name.strip().lower()
        if not cleaned:
            continue
        strategy = MatchStrategy(cleaned)
        if strategy not in strategies:
            strategies.append(strategy)
    if not strategies:
        msg = "At least one match strategy must be enabled"
        raise ValueError(msg)
    return strategies


class ProductMatcher:
    """Select at most one remote product for a local record."""

    def __init__(
        self,
        strategies: Sequence[MatchStrategy] | None = None,
        url_policy: UrlPolicy | None = None,
    ) -> None:
        self.strategies: list[MatchStrategy] = list(
            strategies
            or (MatchStrategy.NAME_EXACT, MatchStrategy.NAME_PARTIAL)
        )
        self._url_policy: UrlPolicy = url_policy or first_priced_url

    # ── Eligibility ──────────────────────────────────────

    def is_candidate(self, local: LocalProduct) -> bool:
        """True when *local* carries a usable key for an enabled strategy."""
        for strategy in self.strategies:
            if strategy in NAME_STRATEGIES and name_key(local.display_name):
                return True
            if strategy is MatchStrategy.URL and url_key(local.product_link):
                return True
        return False

    # ── Price source selection ───────────────────────────

    def _url_price_source(
        self, remote: RemoteProduct,
    ) -> PriceSource | None:
        """First priced monitored URL under the configured policy."""
        if not remote.has_url_prices:
            return None
        entry = self._url_policy(remote.monitored_urls)
        return PriceSource.for_url(entry) if entry is not None else None

    @staticmethod
    def _summary_price_source(
        remote: RemoteProduct,
    ) -> PriceSource | None:
        if (
            remote.has_site_summary
            and first_priced_site(remote.site_summaries) is not None
        ):
            return PriceSource.for_sites(remote.site_summaries)
        return None

    # ── Strategy predicates ──────────────────────────────

    @staticmethod
    def _name_matches(
        strategy: MatchStrategy, local_key: str, remote: RemoteProduct,
    ) -> bool:
        remote_key = name_key(remote.name)
        if not remote_key:
            return False
        if strategy is MatchStrategy.NAME_EXACT:
            return local_key == remote_key
        return local_key in remote_key or remote_key in local_key

    @staticmethod
    def _matching_urls(
        local_key: str, remote: RemoteProduct,
    ) -> tuple[MonitoredUrl, ...]:
        """Monitored URLs matching *local_key*, exact matches first."""
        exact: list[MonitoredUrl] = []
        partial: list[MonitoredUrl] = []
        for entry in remote.monitored_urls:
            remote_key = url_key(entry.url)
            if not remote_key:
                continue
            if local_key == remote_key:
                exact.append(entry)
            elif local_key in remote_key or remote_key in local_key:
                partial.append(entry)
        return tuple(exact + partial)

    def _try_strategy(
        self,
        strategy: MatchStrategy,
        local: LocalProduct,
        catalog: Sequence[RemoteProduct],
    ) -> tuple[MatchResult | None, MatchResult | None]:
        """Scan *catalog* with one strategy.

        Returns ``(priced, priceless)``: the first priced match and the
        first priceless one seen before it.
        """
        priceless: MatchResult | None = None

        if strategy in NAME_STRATEGIES:
            local_key = name_key(local.display_name)
            if not local_key:
                return None, None
            # Site summaries only price a match when no matching
            # product has a priced monitored URL
            by_summary: MatchResult | None = None
            for remote in catalog:
                if not self._name_matches(strategy, local_key, remote):
                    continue
                source = self._url_price_source(remote)
                if source is not None:
                    return MatchResult(remote, strategy, source), priceless
                summary = self._summary_price_source(remote)
                if summary is not None:
                    if by_summary is None:
                        by_summary = MatchResult(remote, strategy, summary)
                elif priceless is None:
                    priceless = MatchResult(remote, strategy)
            return by_summary, priceless

        local_key = url_key(local.product_link)
        if not local_key:
            return None, None
        for remote in catalog:
            entries = self._matching_urls(local_key, remote)
            if not entries:
                continue
            entry = self._url_policy(entries)
            if entry is not None:
                return (
                    MatchResult(remote, strategy, PriceSource.for_url(entry)),
                    priceless,
                )
            if priceless is None:
                priceless = MatchResult(remote, strategy)
        return None, priceless

    # ── Public API ───────────────────────────────────────

    def match(
        self,
        local: LocalProduct,
        catalog: Sequence[RemoteProduct],
    ) -> MatchResult | None:
        """Return the remote product for *local*, or ``None`` if none matches.

        A result whose ``price_source`` is ``None`` means a product
        matched but none of the matching products had a usable price.
        """
        first_priceless: MatchResult | None = None

        for strategy in self.strategies:
            priced, priceless = self._try_strategy(
                strategy, local, catalog
            )
            if priced is not None:
                logger.debug(
                    "Record %s matched '%s' (%s)",
                    local.id,
                    priced.remote_product.name,
                    strategy.value,
                )
                return priced
            if first_priceless is None:
                first_priceless = priceless

        if first_priceless is not None:
            logger.debug(
                "Record %s matched '%s' (%s) but no price is available",
                local.id,
                first_priceless.remote_product.name,
                first_priceless.strategy.value,
            )
        return first_priceless
