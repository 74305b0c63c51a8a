# price_sync/models/product.py

"""Catalog product models shared by the fetcher, matcher and store."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any


@dataclass
class LocalProduct:
    """A record of the internal catalog whose price is kept fresh."""

    id: Any
    product_link: str | None = None
    display_name: str | None = None
    current_price: Decimal | None = None
    last_update: datetime | None = None


@dataclass(frozen=True)
class MonitoredUrl:
    """One storefront URL tracked by the remote service."""

    url: str
    price: Any = None


@dataclass(frozen=True)
class RemoteProduct:
    """A product as tracked by the remote price-monitoring service.

    Prices are kept exactly as the service reported them; parsing and
    validation happen in the price extractor.
    """

    name: str
    monitored_urls: tuple[MonitoredUrl, ...] = ()
    site_summaries: dict[str, Any] = field(
        default_factory=lambda: dict[str, Any]()
    )

    @property
    def has_url_prices(self) -> bool:
        """True when at least one monitored URL reports a price."""
        return any(
            u.price is not None for u in self.monitored_urls
        )

    @property
    def has_site_summary(self) -> bool:
        """True when the service reported per-site summary prices."""
        return bool(self.site_summaries)

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "RemoteProduct":
        """Build a RemoteProduct from one item of a list response.

        Accepts both response shapes the service produces: a ``urls``
        list of ``{url, price}`` objects, and a ``summary`` (or
        ``sites``) mapping of site identifier to ``{price}``.
        """
        urls: list[MonitoredUrl] = []
        for entry in payload.get("urls") or []:
            if isinstance(entry, dict):
                urls.append(
                    MonitoredUrl(
                        url=str(entry.get("url") or ""),
                        price=entry.get("price"),
                    )
                )
            elif isinstance(entry, str):
                urls.append(MonitoredUrl(url=entry))

        raw_sites = payload.get("summary") or payload.get("sites") or {}
        sites: dict[str, Any] = {}
        if isinstance(raw_sites, dict):
            for site, value in raw_sites.items():
                if isinstance(value, dict):
                    sites[str(site)] = value.get("price")
                else:
                    sites[str(site)] = value

        return cls(
            name=str(payload.get("name") or ""),
            monitored_urls=tuple(urls),
            site_summaries=sites,
        )
