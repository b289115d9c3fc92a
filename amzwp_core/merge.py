"""
Fold extraction candidates and oracle suggestions into one record per product.

Records are keyed by ASIN when one is known, otherwise by a normalized name
(lowercase alphanumerics, first 40 characters). Fields are only ever filled,
never blanked: a later source with an empty field leaves the record alone.

Matching an oracle suggestion onto an ASIN-only record uses plain substring
containment of the ASIN or the short extracted name in the suggested name.
Short or generic names can match the wrong record; this is a known weakness
of the heuristic and is left as is.
"""

import re
from typing import Dict, Iterable, List, Optional

from .models import ExtractedCandidate, MergedProduct, OracleSuggestion
from .diagnostics import get_logger

logger = get_logger(__name__)

NAME_KEY_LENGTH = 40
SUGGESTION_CONFIDENCE_THRESHOLD = 0.7
# ASIN records with a name shorter than this are open to renaming by a suggestion
WEAK_NAME_LENGTH = 10

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")


def normalize_name(name: str) -> str:
    return _NON_ALNUM_RE.sub("", (name or "").lower())[:NAME_KEY_LENGTH]


def candidate_key(asin: str, name: str) -> str:
    return asin.upper() if asin else normalize_name(name)


def _fill(record: MergedProduct, suggestion: OracleSuggestion):
    record.name = record.name or suggestion.product_name
    record.brand = record.brand or suggestion.brand
    record.category = record.category or suggestion.category
    record.verdict = record.verdict or suggestion.verdict


class ProductMerger:
    """Ordered, deterministic merge of candidates and suggestions."""

    def __init__(self):
        self.records: Dict[str, MergedProduct] = {}
        # name keys folded into an ASIN record point at that record's key
        self.aliases: Dict[str, str] = {}

    def _lookup(self, key: str) -> Optional[MergedProduct]:
        return self.records.get(self.aliases.get(key, key))

    def add_candidate(self, candidate: ExtractedCandidate):
        key = candidate_key(candidate.asin, candidate.name)
        if not key:
            return
        existing = self._lookup(key)
        if existing is None:
            self.records[key] = MergedProduct(asin=candidate.asin.upper(), name=candidate.name)
        elif not existing.name and candidate.name:
            existing.name = candidate.name

    def _match_asin_record(self, name_lower: str) -> Optional[str]:
        for key, record in self.records.items():
            if not record.asin or len(record.name) >= WEAK_NAME_LENGTH:
                continue
            if record.asin.lower() in name_lower or (record.name and record.name.lower() in name_lower):
                return key
        return None

    def add_suggestion(self, suggestion: OracleSuggestion):
        if not suggestion.product_name:
            return
        key = normalize_name(suggestion.product_name)
        if not key:
            return
        existing = self._lookup(key)
        if existing is not None:
            _fill(existing, suggestion)
            return

        matched = self._match_asin_record(suggestion.product_name.lower())
        if matched is not None:
            record = self.records[matched]
            record.name = suggestion.product_name
            record.brand = record.brand or suggestion.brand
            record.category = record.category or suggestion.category
            record.verdict = record.verdict or suggestion.verdict
            self.aliases[key] = matched
            logger.debug(f"Suggestion '{suggestion.product_name}' matched ASIN {record.asin}")
            return

        self.records[key] = MergedProduct(
            name=suggestion.product_name,
            brand=suggestion.brand,
            category=suggestion.category,
            verdict=suggestion.verdict,
        )

    def results(self) -> List[MergedProduct]:
        return list(self.records.values())


def merge_candidates(
    candidates: Iterable[ExtractedCandidate],
    suggestions: Iterable[OracleSuggestion] = (),
    threshold: float = SUGGESTION_CONFIDENCE_THRESHOLD,
) -> List[MergedProduct]:
    """One merged record per product, in first-seen order.

    Candidates go in first, so ASIN-bearing records keep priority. Suggestions
    below ``threshold`` confidence are ignored.
    """
    merger = ProductMerger()
    for c in candidates:
        merger.add_candidate(c)
    for s in suggestions:
        if s.confidence >= threshold:
            merger.add_suggestion(s)
    merged = merger.results()
    logger.info(f"Merged into {len(merged)} products")
    return merged
