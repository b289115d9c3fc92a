"""Tests for pattern-based product extraction."""

from amzwp_core.extraction import extract_asins, extract_candidates, is_forbidden
from amzwp_core.models import CandidateSource

POST = """
<h1>The 5 Best Blenders of the Year</h1>
<p>Our favourite is the
<a href="https://www.amazon.com/dp/B08N5WRWNW?tag=site-20">Sony WH-1000XM4 Wireless Headphones</a>.</p>
<p><a href="https://amazon.com/dp/B000000001">Check Price on Amazon</a></p>
<h2>Winner: Ninja Professional Blender 1000</h2>
<ul>
<li>Vitamix Explorian Series 5200 Blender for smoothies</li>
<li>Read more</li>
</ul>
<div data-asin="B07XJ8C8F5"></div>
"""


def names(candidates):
    return [c.name for c in candidates if c.name]


def test_asins_from_links_and_data_markers():
    asins = [c.asin for c in extract_asins(POST)]
    assert asins == ["B08N5WRWNW", "B000000001", "B07XJ8C8F5"]


def test_lowercase_asin_is_normalized():
    found = extract_asins('<a href="https://amazon.com/gp/product/b0abcdefgh">x</a>')
    assert [c.asin for c in found] == ["B0ABCDEFGH"]


def test_strategies_and_confidence_order():
    candidates = extract_candidates(POST)

    assert candidates[0].asin == "B08N5WRWNW"
    assert candidates[0].confidence == 1.0
    confidences = [c.confidence for c in candidates]
    assert confidences == sorted(confidences, reverse=True)

    by_name = {c.name: c for c in candidates if c.name}
    assert by_name["Sony WH-1000XM4 Wireless Headphones"].source == CandidateSource.LINK
    assert by_name["Sony WH-1000XM4 Wireless Headphones"].confidence == 0.95
    assert by_name["Ninja Professional Blender 1000"].source == CandidateSource.HEADING
    assert by_name["Vitamix Explorian Series 5200 Blender for smoothies"].source == CandidateSource.LIST


def test_boilerplate_is_dropped():
    found = names(extract_candidates(POST))
    assert "Check Price on Amazon" not in found
    assert "Read more" not in found


def test_names_are_unique():
    found = [n.lower() for n in names(extract_candidates(POST))]
    assert len(found) == len(set(found))


def test_extraction_is_idempotent():
    assert extract_candidates(POST) == extract_candidates(POST)


def test_brand_model_mentions():
    html = "<p>We also tried the Breville Barista Express and liked it.</p>"
    found = extract_candidates(html)
    assert [(c.name, c.source) for c in found] == [
        ("Breville Barista Express and liked it", CandidateSource.TEXT),
    ]


def test_empty_markup():
    assert extract_candidates("") == []
    assert extract_candidates(None) == []


def test_is_forbidden():
    assert is_forbidden("Subscribe to our newsletter")
    assert is_forbidden("Ninj")
    assert not is_forbidden("Breville Barista Express")
