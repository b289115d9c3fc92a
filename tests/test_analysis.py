"""Tests for page analysis."""

from amzwp_core.analysis import PLACEHOLDER_IMAGE, ProductAnalyzer, build_carousel
from amzwp_core.errors import EnrichmentError
from amzwp_core.models import OracleSuggestion, ProductDetails, ProductLookup

ASINS = ["B0000000A1", "B0000000A2", "B0000000A3", "B0000000A4", "B0000000A5", "B0000000A6"]


def markup(asins):
    return "".join(f'<div data-asin="{a}"></div>' for a in asins)


class FakeOracle:
    def __init__(self, known=None):
        self.known = known or {}
        self.queries = []

    async def lookup(self, query):
        self.queries.append(query)
        return self.known.get(query, ProductLookup(title=query, price="Check Price"))


class FakeEnrichment:
    enabled = True

    def __init__(self, suggestions=None, exc=None):
        self.suggestions = suggestions or []
        self.exc = exc
        self.calls = 0

    async def suggest(self, title, html, candidates=()):
        self.calls += 1
        if self.exc is not None:
            raise self.exc
        return self.suggestions


def details(i, category="Headphones"):
    return ProductDetails(
        id=f"id{i}", asin="", title=f"P{i}", brand="", category=category, price="",
        image_url="", rating=4.5, review_count=1, prime=True, verdict="",
    )


def test_carousel_needs_five_products():
    assert build_carousel([details(i) for i in range(4)]) is None
    carousel = build_carousel([details(i) for i in range(10)])
    assert carousel.title == "Top Rated Headphones"
    assert carousel.product_ids == [f"id{i}" for i in range(8)]


async def test_resolved_product_fields(cache):
    oracle = FakeOracle({"B0000000A1": ProductLookup(
        asin="B0000000A1", title="Sony WH-1000XM5 Headphones", brand="Sony",
        price="$348.00", image_url="https://img/x.jpg", rating=4.7, review_count=900, prime=False,
    )})
    result = await ProductAnalyzer(oracle, cache).analyze("Best Headphones", markup(["B0000000A1"]))

    product = result.product
    assert product.asin == "B0000000A1"
    assert product.title == "Sony WH-1000XM5 Headphones"
    assert (product.price, product.rating, product.review_count, product.prime) == ("$348.00", 4.7, 900, False)
    assert product.category == "Product"
    assert "Sony" in product.verdict
    assert result.carousel is None
    assert not result.cached


async def test_defaults_for_sparse_oracle_answer(cache):
    oracle = FakeOracle()
    html = "<h2>Winner: Ninja Professional Blender 1000</h2>"
    result = await ProductAnalyzer(oracle, cache).analyze("Best Blenders", html)

    product = result.product
    assert oracle.queries == ["Ninja Professional Blender 1000"]
    assert product.image_url == PLACEHOLDER_IMAGE
    assert product.price == "Check Price"
    assert product.rating == 4.5
    assert product.review_count == 1000
    assert product.prime is True
    assert len(product.verdict.split(". ")) >= 3


async def test_long_titles_are_truncated(cache):
    oracle = FakeOracle({"B0000000A1": ProductLookup(asin="B0000000A1", title="x" * 200)})
    result = await ProductAnalyzer(oracle, cache).analyze("T", markup(["B0000000A1"]))
    assert len(result.product.title) == 80


async def test_second_scan_is_served_from_cache(cache):
    oracle = FakeOracle()
    analyzer = ProductAnalyzer(oracle, cache)
    html = markup(ASINS[:5])

    first = await analyzer.analyze("Best Headphones", html)
    calls = len(oracle.queries)
    second = await analyzer.analyze("Best Headphones", html)

    assert second.cached
    assert len(oracle.queries) == calls
    assert [p.id for p in second.detected_products] == [p.id for p in first.detected_products]
    assert second.carousel.product_ids == first.carousel.product_ids


async def test_empty_result_is_not_cached(cache):
    analyzer = ProductAnalyzer(FakeOracle(), cache)
    result = await analyzer.analyze("Nothing Here", "<p>plain text</p>")
    assert result.detected_products == []
    assert cache.stats()["analysis"] == 0


async def test_product_limit(cache):
    oracle = FakeOracle()
    analyzer = ProductAnalyzer(oracle, cache, max_products=3)
    result = await analyzer.analyze("Many", markup(ASINS))
    assert len(result.detected_products) == 3
    assert oracle.queries == ASINS[:3]


async def test_unresolved_nameless_product_is_dropped(cache):
    oracle = FakeOracle({"B0000000A1": ProductLookup()})
    result = await ProductAnalyzer(oracle, cache).analyze("T", markup(["B0000000A1", "B0000000A2"]))
    assert [p.asin for p in result.detected_products] == ["B0000000A2"]


async def test_enrichment_suggestions_are_merged(cache):
    enrichment = FakeEnrichment([
        OracleSuggestion("Breville Barista Express", "Breville", "Espresso Machines", confidence=0.9),
    ])
    oracle = FakeOracle()
    result = await ProductAnalyzer(oracle, cache, enrichment=enrichment).analyze("Coffee", markup(["B0000000A1"]))

    assert enrichment.calls == 1
    assert oracle.queries == ["B0000000A1", "Breville Barista Express"]
    assert result.detected_products[1].category == "Espresso Machines"


async def test_enrichment_failure_degrades_to_extraction(cache):
    enrichment = FakeEnrichment(exc=EnrichmentError("Enrichment call failed: HTTP 500"))
    result = await ProductAnalyzer(FakeOracle(), cache, enrichment=enrichment).analyze(
        "Coffee", markup(["B0000000A1"])
    )
    assert [p.asin for p in result.detected_products] == ["B0000000A1"]
