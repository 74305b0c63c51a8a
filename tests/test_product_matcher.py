# tests/test_product_matcher.py

"""Tests for ProductMatcher strategy ordering and tie-breaking."""

import unittest
from decimal import Decimal

from price_sync.filters.price_extractor import PriceExtractor
from price_sync.filters.product_matcher import (
    ProductMatcher,
    name_key,
    parse_strategies,
)
from price_sync.models.product import (
    LocalProduct,
    MonitoredUrl,
    RemoteProduct,
)
from price_sync.models.reconciliation import (
    MatchStrategy,
    PriceSourceKind,
)


def _remote(
    name: str,
    *prices: object,
    urls: tuple[str, ...] | None = None,
    sites: dict[str, object] | None = None,
) -> RemoteProduct:
    """Build a RemoteProduct with one monitored URL per price."""
    links = urls or tuple(
        f"https://shop{i}.com/{name.lower().replace(' ', '-')}"
        for i in range(len(prices))
    )
    return RemoteProduct(
        name=name,
        monitored_urls=tuple(
            MonitoredUrl(url, price) for url, price in zip(links, prices)
        ),
        site_summaries=dict(sites or {}),
    )


class TestNameKey(unittest.TestCase):
    """name_key normalisation."""

    def test_casefold_and_trim(self) -> None:
        """Names are trimmed and case-folded."""
        self.assertEqual(name_key("  Classic TOTE "), "classic tote")

    def test_blank(self) -> None:
        """None and whitespace give an empty key."""
        self.assertEqual(name_key(None), "")
        self.assertEqual(name_key("   "), "")


class TestParseStrategies(unittest.TestCase):
    """parse_strategies string handling."""

    def test_comma_separated(self) -> None:
        """Order is preserved and duplicates dropped."""
        self.assertEqual(
            parse_strategies("url, name_exact,url"),
            [MatchStrategy.URL, MatchStrategy.NAME_EXACT],
        )

    def test_unknown_name_raises(self) -> None:
        """Unknown strategy names raise ValueError."""
        with self.assertRaises(ValueError):
            parse_strategies("name_exact,fuzzy")

    def test_empty_raises(self) -> None:
        """An empty selection raises ValueError."""
        with self.assertRaises(ValueError):
            parse_strategies(" , ")


class TestNameMatching(unittest.TestCase):
    """Exact and partial name strategies."""

    def setUp(self) -> None:
        """Default matcher: exact then partial."""
        self.matcher = ProductMatcher()

    def test_exact_match(self) -> None:
        """Case and whitespace differences still match exactly."""
        local = LocalProduct(id=7, display_name=" classic tote ")
        catalog = [_remote("Other Bag", "10"), _remote("Classic Tote", "129.99")]
        result = self.matcher.match(local, catalog)
        assert result is not None
        self.assertEqual(result.remote_product.name, "Classic Tote")
        self.assertEqual(result.strategy, MatchStrategy.NAME_EXACT)
        assert result.price_source is not None
        self.assertEqual(
            result.price_source.kind, PriceSourceKind.MONITORED_URL
        )

    def test_exact_beats_earlier_partial(self) -> None:
        """A later exact match wins over an earlier partial one."""
        local = LocalProduct(id=1, display_name="Classic Tote")
        catalog = [
            _remote("Classic Tote Large", "200"),
            _remote("Classic Tote", "129.99"),
        ]
        result = self.matcher.match(local, catalog)
        assert result is not None
        self.assertEqual(result.remote_product.name, "Classic Tote")

    def test_partial_local_inside_remote(self) -> None:
        """Local name contained in the remote name matches."""
        local = LocalProduct(id=2, display_name="Tote")
        result = self.matcher.match(local, [_remote("Classic Tote", "50")])
        assert result is not None
        self.assertEqual(result.strategy, MatchStrategy.NAME_PARTIAL)

    def test_partial_remote_inside_local(self) -> None:
        """Remote name contained in the local name matches."""
        local = LocalProduct(id=3, display_name="The Classic Tote Bag")
        result = self.matcher.match(local, [_remote("classic tote", "50")])
        assert result is not None
        self.assertEqual(result.strategy, MatchStrategy.NAME_PARTIAL)

    def test_first_priced_duplicate_wins(self) -> None:
        """Among same-named products the first priced one is chosen."""
        local = LocalProduct(id=4, display_name="Classic Tote")
        unpriced = _remote("Classic Tote", None, urls=("https://a.com/1",))
        first_priced = _remote("CLASSIC TOTE", "99", urls=("https://b.com/1",))
        second_priced = _remote("classic tote", "89", urls=("https://c.com/1",))
        result = self.matcher.match(
            local, [unpriced, first_priced, second_priced]
        )
        assert result is not None
        self.assertIs(result.remote_product, first_priced)

    def test_price_source_is_first_priced_url(self) -> None:
        """Within a product the first positively priced URL is used."""
        local = LocalProduct(id=5, display_name="Classic Tote")
        remote = _remote("Classic Tote", None, "0", "110", "105")
        result = self.matcher.match(local, [remote])
        assert result is not None and result.price_source is not None
        assert result.price_source.monitored_url is not None
        self.assertEqual(result.price_source.monitored_url.price, "110")

    def test_priceless_match_reported_without_source(self) -> None:
        """A match with no prices comes back with no price source."""
        local = LocalProduct(id=6, display_name="Classic Tote")
        result = self.matcher.match(
            local, [_remote("Classic Tote", None)]
        )
        assert result is not None
        self.assertIsNone(result.price_source)

    def test_site_summary_fallback(self) -> None:
        """Products with only site summaries use them as price source."""
        local = LocalProduct(id=9, display_name="Classic Tote")
        remote = _remote("Classic Tote", sites={"a.com": "0", "b.com": "80"})
        result = self.matcher.match(local, [remote])
        assert result is not None and result.price_source is not None
        self.assertEqual(
            result.price_source.kind, PriceSourceKind.SITE_SUMMARY
        )

    def test_priced_url_beats_earlier_site_summary(self) -> None:
        """A later product with a priced URL wins over a summary-only one."""
        local = LocalProduct(id=13, display_name="Classic Tote")
        summary_only = _remote(
            "Classic Tote", None,
            urls=("https://a.com/tote",), sites={"a.com": "75"},
        )
        url_priced = _remote("Classic Tote", "99", urls=("https://b.com/tote",))
        result = self.matcher.match(local, [summary_only, url_priced])
        assert result is not None and result.price_source is not None
        self.assertIs(result.remote_product, url_priced)
        self.assertEqual(
            result.price_source.kind, PriceSourceKind.MONITORED_URL
        )
        self.assertEqual(PriceExtractor().extract(result), Decimal("99"))

    def test_first_site_summary_used_without_priced_urls(self) -> None:
        """With no priced URL anywhere, the first priced summary wins."""
        local = LocalProduct(id=14, display_name="Classic Tote")
        unpriced = _remote("Classic Tote", None, urls=("https://a.com/1",))
        first = _remote("Classic Tote", sites={"b.com": "75"})
        second = _remote("Classic Tote", sites={"c.com": "70"})
        result = self.matcher.match(local, [unpriced, first, second])
        assert result is not None
        self.assertIs(result.remote_product, first)
        self.assertEqual(PriceExtractor().extract(result), Decimal("75"))

    def test_no_match(self) -> None:
        """Unrelated names do not match."""
        local = LocalProduct(id=8, display_name="Unknown Bag")
        self.assertIsNone(
            self.matcher.match(local, [_remote("Classic Tote", "10")])
        )

    def test_blank_name_never_matches(self) -> None:
        """A blank local name is not a substring match for everything."""
        local = LocalProduct(id=10, display_name="   ")
        self.assertIsNone(
            self.matcher.match(local, [_remote("Classic Tote", "10")])
        )
        self.assertFalse(self.matcher.is_candidate(local))

    def test_blank_remote_name_ignored(self) -> None:
        """An empty remote name is never a partial match."""
        local = LocalProduct(id=11, display_name="Classic Tote")
        self.assertIsNone(self.matcher.match(local, [_remote("", "10")]))

    def test_exact_only_configuration(self) -> None:
        """With only NAME_EXACT enabled, partial names do not match."""
        matcher = ProductMatcher([MatchStrategy.NAME_EXACT])
        local = LocalProduct(id=12, display_name="Tote")
        self.assertIsNone(
            matcher.match(local, [_remote("Classic Tote", "10")])
        )


class TestUrlMatching(unittest.TestCase):
    """URL strategy."""

    def setUp(self) -> None:
        """Matcher with only the URL strategy."""
        self.matcher = ProductMatcher([MatchStrategy.URL])

    def test_normalised_equality(self) -> None:
        """Tracking params are ignored on both sides."""
        local = LocalProduct(
            id=1,
            product_link="https://shop.com/tote?utm_source=mail",
        )
        remote = _remote(
            "Tote", "10", "55",
            urls=("https://other.com/x", "https://shop.com/tote?ref=feed"),
        )
        result = self.matcher.match(local, [remote])
        assert result is not None and result.price_source is not None
        assert result.price_source.monitored_url is not None
        self.assertEqual(result.price_source.monitored_url.price, "55")

    def test_substring_match(self) -> None:
        """One URL containing the other counts as a match."""
        local = LocalProduct(id=2, product_link="https://shop.com/tote")
        remote = _remote("Tote", "10", urls=("https://shop.com/tote/",))
        self.assertIsNotNone(self.matcher.match(local, [remote]))

    def test_unpriced_url_skipped_for_priced(self) -> None:
        """A later product whose matching URL has a price is preferred."""
        local = LocalProduct(id=3, product_link="https://shop.com/tote")
        first = _remote("A", None, urls=("https://shop.com/tote",))
        second = _remote("B", "70", urls=("https://shop.com/tote",))
        result = self.matcher.match(local, [first, second])
        assert result is not None
        self.assertIs(result.remote_product, second)

    def test_priced_entry_after_unpriced_in_same_product(self) -> None:
        """An unpriced matching URL does not hide a priced one after it."""
        local = LocalProduct(id=5, product_link="https://shop.com/bag")
        remote = RemoteProduct(
            name="Bag",
            monitored_urls=(
                MonitoredUrl("https://shop.com/bag?color=red", None),
                MonitoredUrl("https://shop.com/bag", "99"),
            ),
        )
        result = self.matcher.match(local, [remote])
        assert result is not None
        self.assertEqual(PriceExtractor().extract(result), Decimal("99"))

    def test_exact_url_beats_earlier_substring(self) -> None:
        """Within a product an exact URL match outranks a substring one."""
        local = LocalProduct(id=6, product_link="https://shop.com/bag")
        remote = _remote(
            "Bag", "120", "99",
            urls=("https://shop.com/bag/large", "https://shop.com/bag"),
        )
        result = self.matcher.match(local, [remote])
        assert result is not None and result.price_source is not None
        assert result.price_source.monitored_url is not None
        self.assertEqual(
            result.price_source.monitored_url.url, "https://shop.com/bag"
        )

    def test_all_matching_urls_unpriced(self) -> None:
        """Only when every matching URL is unpriced is the match priceless."""
        local = LocalProduct(id=7, product_link="https://shop.com/bag")
        remote = _remote(
            "Bag", None, None, "50",
            urls=(
                "https://shop.com/bag?color=red",
                "https://shop.com/bag",
                "https://elsewhere.com/other",
            ),
        )
        result = self.matcher.match(local, [remote])
        assert result is not None
        self.assertIsNone(result.price_source)

    def test_blank_link_never_matches(self) -> None:
        """Records without a link are not URL candidates."""
        local = LocalProduct(id=4, product_link="", display_name="Tote")
        self.assertFalse(self.matcher.is_candidate(local))
        remote = _remote("Tote", "10", urls=("https://shop.com/tote",))
        self.assertIsNone(self.matcher.match(local, [remote]))


class TestStrategyOrder(unittest.TestCase):
    """Caller-selected ordering."""

    def test_url_first_then_name(self) -> None:
        """The first enabled strategy with a priced hit wins."""
        matcher = ProductMatcher(
            [MatchStrategy.URL, MatchStrategy.NAME_EXACT]
        )
        local = LocalProduct(
            id=1,
            display_name="Classic Tote",
            product_link="https://shop.com/item-9",
        )
        by_name = _remote("Classic Tote", "10", urls=("https://x.com/a",))
        by_url = _remote("Item Nine", "20", urls=("https://shop.com/item-9",))
        result = matcher.match(local, [by_name, by_url])
        assert result is not None
        self.assertIs(result.remote_product, by_url)
        self.assertEqual(result.strategy, MatchStrategy.URL)

    def test_priced_weaker_strategy_beats_priceless_stronger(self) -> None:
        """A priceless exact match does not block a priced partial one."""
        matcher = ProductMatcher()
        local = LocalProduct(id=2, display_name="Classic Tote")
        catalog = [
            _remote("Classic Tote", None),
            _remote("Classic Tote Mini", "60"),
        ]
        result = matcher.match(local, catalog)
        assert result is not None
        self.assertEqual(result.remote_product.name, "Classic Tote Mini")
        self.assertEqual(result.strategy, MatchStrategy.NAME_PARTIAL)


if __name__ == "__main__":
    unittest.main()
