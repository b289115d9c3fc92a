"""URL helpers: normalization, asset filtering, titles from slugs, manual URL validation."""

import re
import time
from dataclasses import dataclass
from typing import Iterable
from urllib.parse import urlparse

EXCLUDED_EXTENSIONS = (
    "jpg", "jpeg", "png", "gif", "webp", "avif", "svg", "ico", "bmp", "tiff", "tif",
    "heic", "heif", "raw", "pdf", "css", "js", "mjs", "cjs", "ts", "tsx", "jsx", "json",
    "xml", "rss", "atom", "txt", "md", "yaml", "yml", "toml", "woff", "woff2", "ttf",
    "eot", "otf", "mp4", "mp3", "wav", "avi", "mov", "mkv", "webm", "ogg", "flac", "aac",
    "m4a", "m4v", "wmv", "flv", "3gp", "zip", "rar", "gz", "tar", "7z", "bz2", "xz",
    "exe", "dmg", "pkg", "deb", "rpm", "iso", "doc", "docx", "xls", "xlsx", "ppt",
    "pptx", "csv", "sql",
    # server-side scripts are endpoints, not articles
    "php", "phtml", "asp", "aspx", "jsp", "cgi",
)

EXCLUDED_EXTENSIONS_RE = re.compile(
    r"\.(" + "|".join(EXCLUDED_EXTENSIONS) + r")$", re.IGNORECASE
)

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)


def ensure_scheme(url: str) -> str:
    """Coerce scheme-less input to https."""
    url = (url or "").strip()
    if not _SCHEME_RE.match(url):
        url = f"https://{url}"
    return url


def normalize_url(url: str) -> str:
    normalized = (url or "").strip()
    if not normalized.startswith("http"):
        normalized = f"https://{normalized}"
    return normalized.rstrip("/")


def is_valid_content_url(url: str) -> bool:
    """False for empty input and for media/asset files."""
    if not url or not isinstance(url, str):
        return False
    return not EXCLUDED_EXTENSIONS_RE.search(url)


def title_from_url(url: str) -> str:
    segments = [s for s in (url or "").split("/") if s]
    slug = segments[-1] if segments else ""
    title = re.sub(r"[-_]", " ", slug)
    title = re.sub(r"\b\w", lambda m: m.group(0).upper(), title).strip()
    return title or "Untitled"


def content_hash(title: str, content_length: int) -> str:
    """Cache key for one page analysis."""
    slug = re.sub(r"[^a-z0-9]", "", (title or "").lower())[:30]
    return f"v4_{slug}_{content_length}"


@dataclass
class UrlValidation:
    is_valid: bool
    normalized_url: str = ""
    error: str = ""


def validate_manual_url(url: str) -> UrlValidation:
    if not url or not isinstance(url, str):
        return UrlValidation(False, error="URL is required")
    trimmed = url.strip()
    if len(trimmed) < 5:
        return UrlValidation(False, error="URL is too short")
    normalized = normalize_url(trimmed)
    parsed = urlparse(normalized)
    if parsed.scheme not in ("http", "https") or not parsed.netloc or " " in normalized:
        return UrlValidation(False, error="Invalid URL format")
    if not is_valid_content_url(normalized):
        return UrlValidation(False, error="URL points to a media file, not content")
    return UrlValidation(True, normalized_url=normalized)


def next_identifier(existing: Iterable[int], start: int = 0) -> int:
    """Fresh id: current epoch milliseconds, bumped past any id already taken."""
    taken = set(existing)
    candidate = start or int(time.time() * 1000)
    while candidate in taken:
        candidate += 1
    return candidate
