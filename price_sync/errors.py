# price_sync/errors.py

"""Exception hierarchy for the price sync run.

Run-level errors (configuration, remote fetch, catalog read) abort the
whole run.  ``RecordError`` subclasses are scoped to one local record
and are turned into per-record failures by the reconciliation driver.
"""

from typing import Any


class PriceSyncError(Exception):
    """Base class for all price_sync errors."""


class ConfigurationError(PriceSyncError):
    """Required credentials or settings are missing or invalid."""


class FetchError(PriceSyncError):
    """A remote catalog page could not be retrieved."""

    def __init__(
        self, message: str, status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code


class StoreReadError(PriceSyncError):
    """The local catalog could not be listed."""


class RecordError(PriceSyncError):
    """A failure scoped to a single local record."""

    def __init__(self, record_id: Any, reason: str) -> None:
        super().__init__(reason)
        self.record_id = record_id
        self.reason = reason


class NoMatchError(RecordError):
    """No remote product satisfied any enabled matching strategy."""


class NoPriceError(RecordError):
    """A remote product matched but carried no usable positive price."""


class UpdateError(RecordError):
    """The local catalog rejected the price write."""
