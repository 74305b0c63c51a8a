# price_sync/clients/prisync_client.py

"""Paginated client for the Prisync product list API."""

import json
import logging
import time
from dataclasses import dataclass
from typing import Any

from curl_cffi import requests as curl_requests

from price_sync.config.settings import Settings
from price_sync.errors import FetchError
from price_sync.models.product import RemoteProduct

logger = logging.getLogger("price_sync.prisync")


@dataclass(frozen=True)
class PrisyncCredentials:
    """The two opaque values Prisync expects in request headers."""

    api_key: str
    api_token: str

    def headers(self) -> dict[str, str]:
        return {
            "apikey": self.api_key,
            "apitoken": self.api_token,
            "Accept": "application/json",
        }


class PrisyncClient:
    """Fetch the complete remote catalog, one fixed-size page at a time."""

    def __init__(
        self,
        credentials: PrisyncCredentials,
        base_url: str | None = None,
        session: curl_requests.Session | None = None,
    ) -> None:
        self.settings = Settings()
        self.credentials = credentials
        self.base_url = (
            base_url or self.settings.PRISYNC_BASE_URL
        ).rstrip("/")
        self.session = session or curl_requests.Session()
        self.page_size: int = self.settings.PAGE_SIZE
        self._request_timeout: int = self.settings.REQUEST_TIMEOUT

    def _page_url(self, offset: int) -> str:
        path = self.settings.PRISYNC_LIST_PATH.format(offset=offset)
        return f"{self.base_url}{path}"

    def _max_delay(self) -> float:
        return (
            self.settings.FETCH_RETRY_DELAY
            * self.settings.MAX_DELAY_MULTIPLIER
        )

    def _fetch_page(self, offset: int) -> dict[str, Any]:
        """GET one page with bounded retry on transient failures.

        Raises ``FetchError`` once retries are exhausted, on a
        non-retryable status, or on a body that is not a JSON object.
        """
        url = self._page_url(offset)
        attempts = max(1, self.settings.FETCH_MAX_RETRIES)
        delay = self.settings.FETCH_RETRY_DELAY
        last_error = ""
        last_status: int | None = None

        for attempt in range(attempts):
            try:
                resp = self.session.get(
                    url,
                    headers=self.credentials.headers(),
                    timeout=self._request_timeout,
                )
            except Exception as exc:
                last_error = f"request error: {exc}"
                last_status = None
                logger.warning(
                    "Prisync request error at offset %d on attempt %d: %s",
                    offset,
                    attempt + 1,
                    exc,
                    exc_info=True,
                )
            else:
                if resp.status_code == 200:
                    return self._decode(resp, offset)
                last_status = resp.status_code
                last_error = f"HTTP {resp.status_code}"
                logger.warning(
                    "Prisync HTTP %d at offset %d on attempt %d",
                    resp.status_code,
                    offset,
                    attempt + 1,
                )
                if resp.status_code not in self.settings.RETRYABLE_STATUSES:
                    break

            if attempt + 1 < attempts:
                time.sleep(delay)
                delay = min(delay * 2, self._max_delay())

        msg = f"Prisync API error at offset {offset}: {last_error}"
        raise FetchError(msg, status_code=last_status)

    @staticmethod
    def _decode(
        resp: curl_requests.Response, offset: int,
    ) -> dict[str, Any]:
        try:
            data = json.loads(resp.text)
        except json.JSONDecodeError as exc:
            msg = f"Prisync returned invalid JSON at offset {offset}"
            raise FetchError(msg, status_code=resp.status_code) from exc
        if not isinstance(data, dict):
            msg = f"Prisync returned an unexpected payload at offset {offset}"
            raise FetchError(msg, status_code=resp.status_code)
        return data

    @staticmethod
    def _has_more(data: dict[str, Any]) -> bool:
        """Read the server's "more pages" signal from either field name."""
        if "nextPageAvailable" in data:
            return bool(data["nextPageAvailable"])
        return bool(data.get("nextURL"))

    def fetch_all(self) -> list[RemoteProduct]:
        """Return every remote product, or raise ``FetchError``.

        Pagination stops when the server reports no more data or a
        page comes back short, whichever happens first.  Nothing is
        returned if any page fails.
        """
        products: list[RemoteProduct] = []
        offset = 0

        while True:
            data = self._fetch_page(offset)
            page = data.get("results") or []
            if not isinstance(page, list):
                msg = f"Prisync 'results' is not a list at offset {offset}"
                raise FetchError(msg)

            products.extend(
                RemoteProduct.from_api(item)
                for item in page
                if isinstance(item, dict)
            )
            logger.info(
                "Fetched %d products from Prisync (total: %d)",
                len(page),
                len(products),
            )

            has_more = self._has_more(data) and len(page) == self.page_size
            if not has_more:
                break
            offset += self.page_size
            time.sleep(self.settings.PAGE_DELAY)

        return products
