#!/usr/bin/env python3
"""
Sitemap/URL discovery.

Turns a site root or sitemap address into a list of ``BlogPost`` pages:
probe the usual sitemap locations, prefer the authenticated WordPress
listing when credentials match the site, otherwise parse the sitemap XML
(following a sitemap index into its post sub-sitemap) and drop asset URLs.
"""

import time
import xml.etree.ElementTree as ET
from typing import Iterable, List, Optional, Set

from .config import WordPressCredentials
from .errors import AmzwpError, NetworkError, ValidationError
from .models import BlogPost
from .urls import is_valid_content_url, next_identifier, normalize_url, title_from_url
from .wordpress import WordPressClient
from .diagnostics import get_logger

logger = get_logger(__name__)

SITEMAP_CANDIDATES = (
    "/sitemap.xml",
    "/sitemap_index.xml",
    "/wp-sitemap.xml",
    "/post-sitemap.xml",
)
DEFAULT_SITEMAP_SUFFIX = "/sitemap.xml"
PREFERRED_SUB_SITEMAP_HINT = "post-sitemap"

PROBE_TIMEOUT = 5.0
FETCH_TIMEOUT = 10.0
XML_ACCEPT = "application/xml, text/xml"


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else ""


def _child_text(el: ET.Element, name: str) -> str:
    for child in el:
        if _local(child.tag) == name:
            return (child.text or "").strip()
    return ""


def parse_sitemap(xml: str):
    """Return ``(sub_sitemaps, page_urls)`` from a sitemap or sitemap index document."""
    text = (xml or "").lstrip("\ufeff").strip()
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise ValidationError(
            "Invalid Sitemap XML Format. Please provide a valid sitemap URL.", field="sitemap"
        ) from e
    sub_sitemaps = [loc for loc in (_child_text(el, "loc") for el in root.iter() if _local(el.tag) == "sitemap") if loc]
    page_urls = [loc for loc in (_child_text(el, "loc") for el in root.iter() if _local(el.tag) == "url") if loc]
    return sub_sitemaps, page_urls


def pick_sub_sitemap(locations: List[str]) -> str:
    for loc in locations:
        if PREFERRED_SUB_SITEMAP_HINT in loc.lower():
            return loc
    return locations[0]


def build_posts(urls: Iterable[str], existing_ids: Iterable[int] = ()) -> List[BlogPost]:
    taken = set(existing_ids)
    posts: List[BlogPost] = []
    base = int(time.time() * 1000)
    for idx, raw in enumerate(urls):
        raw = (raw or "").strip()
        if not raw:
            continue
        if not is_valid_content_url(raw):
            logger.debug(f"Skipping non-content URL: {raw}")
            continue
        post_id = next_identifier(taken, base + idx)
        taken.add(post_id)
        posts.append(BlogPost(id=post_id, title=title_from_url(raw), url=raw))
    return posts


class SitemapDiscovery:
    def __init__(
        self,
        http,
        relay_fetcher,
        credentials: Optional[WordPressCredentials] = None,
        wordpress: Optional[WordPressClient] = None,
        relay_parallel: bool = True,
    ):
        self.http = http
        self.relay_fetcher = relay_fetcher
        self.credentials = credentials or WordPressCredentials()
        if wordpress is None and self.credentials.complete:
            wordpress = WordPressClient(http, self.credentials, relay=relay_fetcher.primary)
        self.wordpress = wordpress
        self.relay_parallel = relay_parallel

    async def resolve_sitemap_url(self, root: str) -> str:
        target = normalize_url(root)
        if "sitemap" in target or target.endswith(".xml"):
            return target
        for suffix in SITEMAP_CANDIDATES:
            candidate = f"{target}{suffix}"
            try:
                resp = await self.http.head(candidate, timeout=PROBE_TIMEOUT)
            except NetworkError as e:
                logger.debug(f"Probe {candidate} failed: {e}")
                continue
            if resp.ok:
                logger.info(f"Sitemap found at {candidate}")
                return candidate
        return f"{target}{DEFAULT_SITEMAP_SUFFIX}"

    async def _from_wordpress(self) -> List[BlogPost]:
        data = await self.wordpress.list_posts(per_page=100)
        base = int(time.time() * 1000)
        posts = []
        for idx, p in enumerate(data):
            if not isinstance(p, dict):
                continue
            try:
                post_id = int(p.get("id") or base + idx)
            except (TypeError, ValueError):
                logger.warning(f"Skipping listed post with id {p.get('id')!r}")
                continue
            title_field = p.get("title")
            title = (title_field.get("rendered") if isinstance(title_field, dict) else None) or "Untitled"
            posts.append(BlogPost(
                id=post_id,
                title=title,
                url=p.get("link") or "",
                status="publish" if p.get("status") == "publish" else "draft",
            ))
        return posts

    async def fetch_xml(self, url: str) -> str:
        try:
            resp = await self.http.get(url, headers={"Accept": XML_ACCEPT}, timeout=FETCH_TIMEOUT)
            resp.raise_for_status()
            return resp.text
        except NetworkError as e:
            logger.info(f"Direct sitemap fetch failed ({e}), using relays")
        return await self.relay_fetcher.fetch(url, parallel=self.relay_parallel)

    async def discover(self, root: str) -> List[BlogPost]:
        """Discover content pages for a site root or sitemap URL.

        Raises:
            ValidationError: the sitemap is malformed or yields no content pages
            RelayExhaustionError: the sitemap could not be fetched at all
        """
        target = await self.resolve_sitemap_url(root)
        creds = self.credentials
        if self.wordpress is not None and creds.complete and creds.url in target:
            try:
                posts = await self._from_wordpress()
                logger.info(f"Discovered {len(posts)} posts via WordPress API")
                return posts
            except (AmzwpError, ValueError) as e:
                logger.warning(f"WP API listing failed ({e}), trying sitemap XML...")
        return await self._discover_xml(target, set())

    async def _discover_xml(self, url: str, visited: Set[str]) -> List[BlogPost]:
        visited.add(url)
        xml = await self.fetch_xml(url)
        sub_sitemaps, page_urls = parse_sitemap(xml)

        if sub_sitemaps:
            sub = pick_sub_sitemap(sub_sitemaps)
            if sub not in visited:
                logger.info(f"Following sitemap index {url} -> {sub}")
                return await self._discover_xml(sub, visited)
            logger.warning(f"Sitemap index {url} points back to visited {sub}")

        if not page_urls:
            raise ValidationError(
                "No URLs found in sitemap. The sitemap may be empty or malformed.", field="sitemap"
            )
        posts = build_posts(page_urls)
        if not posts:
            raise ValidationError(
                "No valid content URLs found. All URLs were media files or assets.", field="urls"
            )
        logger.info(f"Discovered {len(posts)} content pages from {url}")
        return posts
