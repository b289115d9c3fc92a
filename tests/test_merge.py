"""Tests for candidate/suggestion merging."""

from amzwp_core.merge import candidate_key, merge_candidates, normalize_name
from amzwp_core.models import CandidateSource, ExtractedCandidate, OracleSuggestion


def asin(value, name=""):
    return ExtractedCandidate(value, name, CandidateSource.LINK, 1.0)


def named(name, source=CandidateSource.HEADING, confidence=0.85):
    return ExtractedCandidate("", name, source, confidence)


def suggestion(name, brand="", category="", verdict="", confidence=0.9):
    return OracleSuggestion(name, brand, category, verdict, confidence)


def test_normalize_name():
    assert normalize_name("Sony WH-1000XM4!") == "sonywh1000xm4"
    assert len(normalize_name("x" * 100)) == 40
    assert candidate_key("b08n5wrwnw", "ignored") == "B08N5WRWNW"
    assert candidate_key("", "Ninja Blender") == "ninjablender"


def test_one_record_per_key():
    merged = merge_candidates([
        asin("B08N5WRWNW"),
        asin("B08N5WRWNW"),
        named("Ninja Professional Blender"),
        named("ninja professional blender!", CandidateSource.TEXT, 0.75),
    ])
    assert len(merged) == 2
    assert merged[0].asin == "B08N5WRWNW"
    assert merged[1].name == "Ninja Professional Blender"


def test_suggestion_fills_matching_name_record():
    merged = merge_candidates(
        [named("Ninja Professional Blender 1000")],
        [suggestion("Ninja Professional Blender-1000", "Ninja", "Blenders", "Great.")],
    )
    assert len(merged) == 1
    record = merged[0]
    assert record.name == "Ninja Professional Blender 1000"
    assert (record.brand, record.category, record.verdict) == ("Ninja", "Blenders", "Great.")


def test_suggestion_matched_to_asin_record_by_identifier():
    merged = merge_candidates(
        [asin("B08N5WRWNW")],
        [suggestion("Sony WH-1000XM4 (B08N5WRWNW)", "Sony", "Headphones")],
    )
    assert len(merged) == 1
    assert merged[0].asin == "B08N5WRWNW"
    assert merged[0].name == "Sony WH-1000XM4 (B08N5WRWNW)"
    assert merged[0].brand == "Sony"


def test_suggestion_matched_to_asin_record_by_short_name():
    merged = merge_candidates(
        [asin("B0ABCDEFGH", "Vitamix")],
        [suggestion("Vitamix Explorian E310 Blender", "Vitamix")],
    )
    assert len(merged) == 1
    assert merged[0].name == "Vitamix Explorian E310 Blender"


def test_unmatched_suggestion_is_added():
    merged = merge_candidates([asin("B08N5WRWNW")], [suggestion("Breville Barista Express", "Breville")])
    assert [m.name for m in merged] == ["", "Breville Barista Express"]
    assert merged[1].asin == ""


def test_empty_fields_never_overwrite():
    merged = merge_candidates([], [
        suggestion("Breville Barista Express", "Breville", "Espresso", "Good."),
        suggestion("Breville Barista Express", "", "", ""),
    ])
    assert len(merged) == 1
    assert (merged[0].brand, merged[0].category, merged[0].verdict) == ("Breville", "Espresso", "Good.")


def test_low_confidence_suggestions_ignored():
    merged = merge_candidates([], [suggestion("Some Gadget", confidence=0.5)])
    assert merged == []


def test_same_suggestion_twice_is_one_record():
    s = suggestion("Breville Barista Express", "Breville")
    assert len(merge_candidates([], [s, s])) == 1


def test_same_asin_matched_suggestion_twice_is_one_record():
    s = suggestion("Sony WH-1000XM4 (B08N5WRWNW)", "Sony")
    merged = merge_candidates([asin("B08N5WRWNW")], [s, s])
    assert len(merged) == 1


def test_merge_is_idempotent():
    candidates = [asin("B08N5WRWNW"), named("Ninja Professional Blender")]
    suggestions = [suggestion("Ninja Professional Blender", "Ninja"), suggestion("Dyson V15 Detect", "Dyson")]
    assert merge_candidates(candidates, suggestions) == merge_candidates(candidates, suggestions)
