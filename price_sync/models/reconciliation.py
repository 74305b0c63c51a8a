# price_sync/models/reconciliation.py

"""Match results, per-record outcomes and the run summary."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from price_sync.models.product import MonitoredUrl, RemoteProduct


class MatchStrategy(Enum):
    """Ways a local record can be paired with a remote product."""

    NAME_EXACT = "name_exact"
    NAME_PARTIAL = "name_partial"
    URL = "url"


class PriceSourceKind(Enum):
    """Where the authoritative price of a match comes from."""

    MONITORED_URL = "monitored_url"
    SITE_SUMMARY = "site_summary"


@dataclass(frozen=True)
class PriceSource:
    """The price-bearing part of a matched remote product."""

    kind: PriceSourceKind
    monitored_url: MonitoredUrl | None = None
    site_summaries: dict[str, Any] | None = None

    @classmethod
    def for_url(cls, entry: MonitoredUrl) -> "PriceSource":
        return cls(
            kind=PriceSourceKind.MONITORED_URL, monitored_url=entry
        )

    @classmethod
    def for_sites(cls, sites: dict[str, Any]) -> "PriceSource":
        return cls(
            kind=PriceSourceKind.SITE_SUMMARY, site_summaries=sites
        )


@dataclass(frozen=True)
class MatchResult:
    """A remote product accepted for one local record.

    ``price_source`` is ``None`` when the product matched but carries
    no positively priced URL or site.
    """

    remote_product: RemoteProduct
    strategy: MatchStrategy
    price_source: PriceSource | None = None


@dataclass(frozen=True)
class ReconciliationOutcome:
    """Result of reconciling a single local record."""

    record_id: Any
    new_price: Decimal | None = None
    reason: str = ""

    @property
    def succeeded(self) -> bool:
        return self.new_price is not None

    @classmethod
    def success(
        cls, record_id: Any, new_price: Decimal,
    ) -> "ReconciliationOutcome":
        return cls(record_id=record_id, new_price=new_price)

    @classmethod
    def failure(
        cls, record_id: Any, reason: str,
    ) -> "ReconciliationOutcome":
        return cls(record_id=record_id, reason=reason)


@dataclass
class SummaryReport:
    """Totals and failure list for a completed reconciliation run."""

    success_count: int = 0
    failure_count: int = 0
    successes: list[tuple[Any, Decimal]] = field(
        default_factory=lambda: list[tuple[Any, Decimal]]()
    )
    failures: list[tuple[Any, str]] = field(
        default_factory=lambda: list[tuple[Any, str]]()
    )
    skipped: list[Any] = field(
        default_factory=lambda: list[Any]()
    )

    def add(self, outcome: ReconciliationOutcome) -> None:
        """Fold one record outcome into the totals."""
        if outcome.new_price is not None:
            self.success_count += 1
            self.successes.append(
                (outcome.record_id, outcome.new_price)
            )
        else:
            self.failure_count += 1
            self.failures.append(
                (outcome.record_id, outcome.reason)
            )

    def to_dict(self) -> dict[str, object]:
        """Serialise the report to plain JSON-compatible values."""
        return {
            "successful": self.success_count,
            "failed": self.failure_count,
            "skipped": len(self.skipped),
            "updates": [
                {"product_id": rid, "price": str(price)}
                for rid, price in self.successes
            ],
            "errors": [
                {"product_id": rid, "error": reason}
                for rid, reason in self.failures
            ],
        }
