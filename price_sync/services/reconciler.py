# price_sync/services/reconciler.py

"""Reconcile local catalog records against a remote catalog snapshot."""

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone

from price_sync.config.settings import Settings
from price_sync.errors import (
    NoMatchError,
    NoPriceError,
    RecordError,
)
from price_sync.filters.price_extractor import PriceExtractor
from price_sync.filters.product_matcher import ProductMatcher
from price_sync.models.product import LocalProduct, RemoteProduct
from price_sync.models.reconciliation import (
    ReconciliationOutcome,
    SummaryReport,
)
from price_sync.storage.catalog_store import CatalogStore

logger = logging.getLogger("price_sync.reconciler")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class _Partition:
    candidates: list[LocalProduct]
    skipped: list[LocalProduct]


class ReconciliationDriver:
    """Match, price and update every eligible local record.

    One record's failure never stops the run: it becomes a failure
    entry in the returned ``SummaryReport``.
    """

    def __init__(
        self,
        store: CatalogStore,
        matcher: ProductMatcher | None = None,
        extractor: PriceExtractor | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.settings = Settings()
        self.store = store
        self.matcher = matcher or ProductMatcher()
        self.extractor = extractor or PriceExtractor()
        self._clock = clock

    # ── Private helpers ──────────────────────────────────

    def _partition(
        self, records: Sequence[LocalProduct],
    ) -> _Partition:
        """Split records into match candidates and unusable ones."""
        part = _Partition(candidates=[], skipped=[])
        for record in records:
            if self.matcher.is_candidate(record):
                part.candidates.append(record)
            else:
                logger.info(
                    "Skipping record %s: no usable name or link",
                    record.id,
                )
                part.skipped.append(record)
        return part

    def _apply(
        self,
        record: LocalProduct,
        catalog: Sequence[RemoteProduct],
    ) -> ReconciliationOutcome:
        match = self.matcher.match(record, catalog)
        if match is None:
            raise NoMatchError(
                record.id,
                "No matching product found in Prisync for "
                f"'{record.display_name or record.product_link}'",
            )

        price = self.extractor.extract(match)
        if price is None:
            raise NoPriceError(
                record.id,
                "No price available for matched Prisync product "
                f"'{match.remote_product.name}'",
            )

        self.store.update_price(record.id, price, self._clock())
        logger.info(
            "Updated product %s: %s (matched with Prisync product: %s)",
            record.id,
            price,
            match.remote_product.name,
        )
        return ReconciliationOutcome.success(record.id, price)

    # ── Per-record ───────────────────────────────────────

    def reconcile_one(
        self,
        record: LocalProduct,
        catalog: Sequence[RemoteProduct],
    ) -> ReconciliationOutcome:
        """Reconcile a single record, turning any failure into an outcome."""
        try:
            return self._apply(record, catalog)
        except RecordError as exc:
            logger.warning(
                "Failed to update product %s: %s", record.id, exc.reason,
            )
            return ReconciliationOutcome.failure(record.id, exc.reason)
        except Exception as exc:
            logger.error(
                "Unexpected error for product %s: %s",
                record.id,
                exc,
                exc_info=True,
            )
            return ReconciliationOutcome.failure(
                record.id, f"Unexpected error: {exc}"
            )

    # ── Whole run ────────────────────────────────────────

    def reconcile_all(
        self,
        records: Sequence[LocalProduct],
        catalog: Sequence[RemoteProduct],
    ) -> SummaryReport:
        """Process records strictly one after another."""
        part = self._partition(records)
        report = SummaryReport(skipped=[r.id for r in part.skipped])
        for record in part.candidates:
            report.add(self.reconcile_one(record, catalog))
        self._log_report(report)
        return report

    async def reconcile_all_batched(
        self,
        records: Sequence[LocalProduct],
        catalog: Sequence[RemoteProduct],
    ) -> SummaryReport:
        """Process records in concurrent batches of ``BATCH_SIZE``.

        Each batch finishes completely before the next starts, and the
        driver pauses ``BATCH_DELAY`` seconds between batches.
        """
        part = self._partition(records)
        report = SummaryReport(skipped=[r.id for r in part.skipped])
        size = max(1, self.settings.BATCH_SIZE)
        batches = [
            part.candidates[i:i + size]
            for i in range(0, len(part.candidates), size)
        ]

        for index, batch in enumerate(batches):
            outcomes: list[ReconciliationOutcome] = list(
                await asyncio.gather(*[
                    asyncio.to_thread(self.reconcile_one, record, catalog)
                    for record in batch
                ])
            )
            for outcome in outcomes:
                report.add(outcome)
            logger.debug(
                "Batch %d/%d done (%d records)",
                index + 1,
                len(batches),
                len(batch),
            )
            if index + 1 < len(batches):
                await asyncio.sleep(self.settings.BATCH_DELAY)

        self._log_report(report)
        return report

    @staticmethod
    def _log_report(report: SummaryReport) -> None:
        logger.info(
            "Reconciliation finished: %d updated, %d failed, %d skipped",
            report.success_count,
            report.failure_count,
            len(report.skipped),
        )
