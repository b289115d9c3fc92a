#!/usr/bin/env python3
"""
Pattern-based product extraction from raw post markup.

Five independent heuristics scan the same HTML, each with a fixed
confidence weight:

    ASIN in marketplace links / data markers      1.0
    anchor text of marketplace links              0.95
    headings with superlative or review cues      0.85
    known brand followed by a model-like token    0.75
    list items naming a product variant           0.7

Name-based heuristics drop boilerplate phrases and share one seen-set, so
a name is emitted at most once. The result is stably sorted by confidence.
Extraction is pure: identical markup gives an identical candidate list.
"""

import re
from typing import List, Set

from .models import CandidateSource, ExtractedCandidate

LINK_ASIN_CONFIDENCE = 1.0
LINK_TEXT_CONFIDENCE = 0.95
HEADING_CONFIDENCE = 0.85
LIST_ITEM_CONFIDENCE = 0.7
BRAND_MODEL_CONFIDENCE = 0.75

MIN_NAME_LENGTH = 5

FORBIDDEN_PRODUCT_WORDS = (
    'privacy policy', 'terms of service', 'contact us', 'about us', 'disclaimer',
    'affiliate disclosure', 'cookie policy', 'sitemap', 'home', 'blog', 'search',
    'menu', 'navigation', 'footer', 'header', 'sidebar', 'comment', 'reply',
    'share', 'facebook', 'twitter', 'instagram', 'pinterest', 'youtube',
    'newsletter', 'subscribe', 'login', 'register', 'account', 'cart', 'checkout',
    'read more', 'click here', 'view on amazon', 'check price', 'buy now',
)

ASIN_PATTERNS = tuple(re.compile(p, re.IGNORECASE) for p in (
    r"amazon\.com/(?:dp|gp/product|exec/obidos/ASIN)/([A-Z0-9]{10})",
    r"amazon\.com/[^\"'\s]*/dp/([A-Z0-9]{10})",
    r"amazon\.com/[^\"'\s]*?(?:/|%2F)([A-Z0-9]{10})(?:[/?&\"'\s]|$)",
    r"amzn\.to/([A-Za-z0-9]+)",
    r"data-asin=[\"']([A-Z0-9]{10})[\"']",
    r"asin[\"':\s]+[\"']?([A-Z0-9]{10})[\"']?",
))
ASIN_RE = re.compile(r"^[A-Z0-9]{10}$")

LINK_TEXT_RE = re.compile(r"<a[^>]*amazon\.com[^>]*>([^<]{5,120})</a>", re.IGNORECASE)

HEADING_RE = re.compile(
    r"<h[1-4][^>]*>([^<]*(?:Best|Top|Review|Pick|Choice|Recommended|Editor|Winner|#\d|Overall|Budget|Premium)[^<]*)</h[1-4]>",
    re.IGNORECASE,
)
RANK_PREFIX_RE = re.compile(r"^\d+[.\s\-]+")
SUPERLATIVE_PREFIX_RE = re.compile(
    r"^(Best|Top|Winner|Pick|Choice|Recommended|Overall|Budget|Premium)\s*[:\-]*\s*", re.IGNORECASE
)

# tags match in any case, the two-word phrase must be capitalized
LIST_ITEM_RE = re.compile(
    r"(?i:<li[^>]*>)(?:<[^>]*>)*([^<]*(?:[A-Z][a-z]+\s+[A-Z][a-z]+)[^<]{10,100})(?:<[^>]*>)*(?i:</li>)"
)
VARIANT_CUE_RE = re.compile(
    r"\b(pro|plus|max|ultra|mini|lite|series|gen|edition|version|\d{3,4}[a-z]*|v\d+|mk\s*\d+)\b",
    re.IGNORECASE,
)

KNOWN_BRANDS = (
    "Apple", "Samsung", "Sony", "LG", "Bose", "JBL", "Anker", "Logitech", "Razer", "Corsair",
    "HyperX", "SteelSeries", "Ninja", "Instant Pot", "KitchenAid", "Cuisinart", "Dyson",
    "iRobot", "Roomba", "Shark", "Vitamix", "Breville", "De'?Longhi", "Keurig", "Nespresso",
    "GoPro", "Canon", "Nikon", "Fujifilm", "DJI", "Ring", "Nest", "Arlo", "Philips", "Oral-B",
    "Waterpik", "Fitbit", "Garmin", "Whoop", "Oura", "Theragun", "Hyperice", "NordicTrack",
    "Peloton", "Bowflex", "RENPHO", "Wyze", "TP-Link", "Netgear", "Asus", "Dell", "HP",
    "Lenovo", "Microsoft", "Google", "Amazon", "Echo", "Kindle", "Fire", "Roku", "Vizio",
    "TCL", "Hisense", "Sonos", "Marshall", "Klipsch", "Audio-Technica", "Shure", "Blue",
    "Yeti", "Elgato", "Western Digital", "Seagate", "Crucial", "Kingston", "Sandisk", "Intel",
    "AMD", "Nvidia", "Gigabyte", "MSI", "EVGA", "Zotac", "Asrock", "Noctua", "Be Quiet",
    "Cooler Master", "Thermaltake", "NZXT", "Fractal Design", "Lian Li", "Phanteks",
    r"G\.Skill", "Teamgroup", "Patriot", "Sabrent",
)
BRAND_MODEL_RE = re.compile(
    r"\b(" + "|".join(KNOWN_BRANDS) + r")\s+([A-Z0-9][a-z0-9]*\s*[\w\-]+(?:\s+[\w\-]+){0,3})"
)

_WS_RE = re.compile(r"\s+")
_TAG_RE = re.compile(r"<[^>]*>")


def is_forbidden(text: str) -> bool:
    """Boilerplate (navigation, legal, social, cart) or too short to be a product."""
    lower = text.lower()
    return len(text) < MIN_NAME_LENGTH or any(word in lower for word in FORBIDDEN_PRODUCT_WORDS)


def extract_asins(html: str) -> List[ExtractedCandidate]:
    seen: Set[str] = set()
    found: List[ExtractedCandidate] = []
    for pattern in ASIN_PATTERNS:
        for m in pattern.finditer(html):
            asin = m.group(1).upper()
            if ASIN_RE.match(asin) and asin not in seen:
                seen.add(asin)
                found.append(ExtractedCandidate(asin, "", CandidateSource.LINK, LINK_ASIN_CONFIDENCE))
    return found


def _from_link_text(html: str, seen: Set[str]) -> List[ExtractedCandidate]:
    found = []
    for m in LINK_TEXT_RE.finditer(html):
        name = _WS_RE.sub(" ", m.group(1).strip())
        if len(name) > 8 and not is_forbidden(name) and name.lower() not in seen:
            seen.add(name.lower())
            found.append(ExtractedCandidate("", name, CandidateSource.LINK, LINK_TEXT_CONFIDENCE))
    return found


def _from_headings(html: str, seen: Set[str]) -> List[ExtractedCandidate]:
    found = []
    for m in HEADING_RE.finditer(html):
        text = _TAG_RE.sub("", m.group(1)).strip()
        if not (5 < len(text) < 150) or is_forbidden(text) or text.lower() in seen:
            continue
        name = SUPERLATIVE_PREFIX_RE.sub("", RANK_PREFIX_RE.sub("", text)).strip()
        if len(name) > 5 and name.lower() not in seen:
            seen.add(name.lower())
            found.append(ExtractedCandidate("", name, CandidateSource.HEADING, HEADING_CONFIDENCE))
    return found


def _from_list_items(html: str, seen: Set[str]) -> List[ExtractedCandidate]:
    found = []
    for m in LIST_ITEM_RE.finditer(html):
        text = _TAG_RE.sub("", m.group(1)).strip()
        if not (15 < len(text) < 100) or is_forbidden(text) or text.lower() in seen:
            continue
        if VARIANT_CUE_RE.search(text):
            seen.add(text.lower())
            found.append(ExtractedCandidate("", text, CandidateSource.LIST, LIST_ITEM_CONFIDENCE))
    return found


def _from_brand_models(html: str, seen: Set[str]) -> List[ExtractedCandidate]:
    found = []
    for m in BRAND_MODEL_RE.finditer(html):
        name = f"{m.group(1)} {m.group(2)}".strip()
        if 8 < len(name) < 80 and not is_forbidden(name) and name.lower() not in seen:
            seen.add(name.lower())
            found.append(ExtractedCandidate("", name, CandidateSource.TEXT, BRAND_MODEL_CONFIDENCE))
    return found


def extract_candidates(html: str) -> List[ExtractedCandidate]:
    """All product candidates found in ``html``, highest confidence first."""
    html = html or ""
    seen_names: Set[str] = set()
    candidates = extract_asins(html)
    candidates += _from_link_text(html, seen_names)
    candidates += _from_headings(html, seen_names)
    candidates += _from_list_items(html, seen_names)
    candidates += _from_brand_models(html, seen_names)
    return sorted(candidates, key=lambda c: -c.confidence)
