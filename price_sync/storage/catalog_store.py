# price_sync/storage/catalog_store.py

"""Local catalog adapters: the production Supabase table and a SQLite copy."""

import logging
import sqlite3
import threading
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Protocol

from supabase import Client, create_client

from price_sync.config.settings import Settings
from price_sync.errors import StoreReadError, UpdateError
from price_sync.models.product import LocalProduct

logger = logging.getLogger("price_sync.catalog")

_COLUMNS = "id, product_link, normal_retail_price, bag_name, last_price_update"


class CatalogStore(Protocol):
    """What the reconciliation driver needs from the local catalog."""

    def select_linked_records(self) -> list[LocalProduct]:
        """List records that carry a product link."""
        ...

    def update_price(
        self, record_id: Any, price: Decimal, timestamp: datetime,
    ) -> None:
        """Write price and update timestamp for one record."""
        ...


def _to_decimal(value: Any) -> Decimal | None:
    if value is None:
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


def _to_datetime(value: Any) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        return None


def row_to_product(row: dict[str, Any]) -> LocalProduct:
    """Map a ``bags`` row onto a LocalProduct."""
    return LocalProduct(
        id=row["id"],
        product_link=row.get("product_link"),
        display_name=row.get("bag_name"),
        current_price=_to_decimal(row.get("normal_retail_price")),
        last_update=_to_datetime(row.get("last_price_update")),
    )


class SupabaseCatalogStore:
    """Catalog records held in a Supabase (PostgREST) table."""

    def __init__(
        self, client: Client, table: str | None = None,
    ) -> None:
        self._client = client
        self.table = table or Settings.CATALOG_TABLE

    @classmethod
    def connect(cls, url: str, key: str) -> "SupabaseCatalogStore":
        """Create a store with a fresh Supabase client."""
        return cls(create_client(url, key))

    def select_linked_records(self) -> list[LocalProduct]:
        try:
            response = (
                self._client.table(self.table)
                .select(_COLUMNS)
                .not_.is_("product_link", "null")
                .execute()
            )
        except Exception as exc:
            msg = f"Could not list '{self.table}' from Supabase: {exc}"
            raise StoreReadError(msg) from exc

        rows: list[dict[str, Any]] = list(response.data or [])
        logger.info("Found %d products in database", len(rows))
        return [row_to_product(row) for row in rows]

    def update_price(
        self, record_id: Any, price: Decimal, timestamp: datetime,
    ) -> None:
        try:
            response = (
                self._client.table(self.table)
                .update({
                    "normal_retail_price": float(price),
                    "last_price_update": timestamp.isoformat(),
                })
                .eq("id", record_id)
                .execute()
            )
        except Exception as exc:
            raise UpdateError(
                record_id, f"update rejected: {exc}"
            ) from exc

        if not response.data:
            raise UpdateError(
                record_id, "update rejected: no row with this id"
            )


_SCHEMA = """\
CREATE TABLE IF NOT EXISTS {table} (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    product_link        TEXT,
    bag_name            TEXT,
    normal_retail_price TEXT,
    last_price_update   TEXT
);
"""


class SQLiteCatalogStore:
    """SQLite-backed catalog with the same columns as the Supabase table."""

    def __init__(
        self,
        db_path: Path | None = None,
        table: str | None = None,
    ) -> None:
        path = db_path or Settings.CATALOG_DB_PATH
        path.parent.mkdir(parents=True, exist_ok=True)
        self.table = table or Settings.CATALOG_TABLE
        self._conn = sqlite3.connect(
            str(path), check_same_thread=False,
        )
        self._conn.row_factory = sqlite3.Row
        # One connection is shared by the batched driver's worker threads
        self._lock = threading.Lock()
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA.format(table=self.table))
        logger.debug("SQLiteCatalogStore opened at %s", path)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def add_product(
        self,
        product_link: str | None,
        display_name: str | None,
        price: Decimal | None = None,
    ) -> int:
        """Insert a catalog record and return its id."""
        cur = self._conn.execute(
            f"INSERT INTO {self.table} "
            "(product_link, bag_name, normal_retail_price) "
            "VALUES (?, ?, ?)",
            (
                product_link,
                display_name,
                None if price is None else str(price),
            ),
        )
        self._conn.commit()
        return int(cur.lastrowid or 0)

    def get_product(self, record_id: Any) -> LocalProduct | None:
        """Return one record by id, or ``None``."""
        row = self._conn.execute(
            f"SELECT {_COLUMNS} FROM {self.table} WHERE id = ?",
            (record_id,),
        ).fetchone()
        return row_to_product(dict(row)) if row else None

    def select_linked_records(self) -> list[LocalProduct]:
        try:
            rows = self._conn.execute(
                f"SELECT {_COLUMNS} FROM {self.table} "
                "WHERE product_link IS NOT NULL ORDER BY id"
            ).fetchall()
        except sqlite3.Error as exc:
            msg = f"Could not list '{self.table}' from SQLite: {exc}"
            raise StoreReadError(msg) from exc

        logger.info("Found %d products in database", len(rows))
        return [row_to_product(dict(row)) for row in rows]

    def update_price(
        self, record_id: Any, price: Decimal, timestamp: datetime,
    ) -> None:
        try:
            with self._lock:
                cur = self._conn.execute(
                    f"UPDATE {self.table} "
                    "SET normal_retail_price = ?, last_price_update = ? "
                    "WHERE id = ?",
                    (str(price), timestamp.isoformat(), record_id),
                )
                self._conn.commit()
        except sqlite3.Error as exc:
            raise UpdateError(
                record_id, f"update rejected: {exc}"
            ) from exc

        if cur.rowcount == 0:
            raise UpdateError(
                record_id, "update rejected: no row with this id"
            )
