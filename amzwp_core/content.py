#!/usr/bin/env python3
"""
Content resolution pipeline.

A page body is resolved by the first strategy that succeeds:

1. WordPress REST lookup by slug, direct
2. the same lookup through the primary relay
3. scrape through the relay fetcher, then pick the content region

Each strategy returns an ``Outcome`` instead of raising; ``first_success``
walks them in order and logs the failures. Only when all of them fail does
``resolve`` raise ``AcquisitionError``.
"""

import re
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, List, Optional, Sequence, Tuple, TypeVar

from bs4 import BeautifulSoup

from .config import WordPressCredentials
from .errors import AcquisitionError, AmzwpError
from .models import ResolvedContent
from .urls import title_from_url
from .wordpress import WordPressClient, slug_from_url
from .diagnostics import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

CONTENT_SELECTORS = (
    ".entry-content",
    "article .content",
    "article",
    "main",
    "#content",
    ".post-content",
    ".post",
    ".content",
    ".entry-body",
    '[role="main"]',
)

SHORTLINK_ID_RE = re.compile(r"[?&]p=(\d+)")
POSTID_CLASS_RE = re.compile(r"postid-(\d+)")


@dataclass
class Outcome(Generic[T]):
    """Result of one strategy: a value, or the reason there is none."""
    value: Optional[T] = None
    error: Optional[str] = None
    strategy: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T, strategy: str = "") -> "Outcome[T]":
        return cls(value=value, strategy=strategy)

    @classmethod
    def failure(cls, error: str, strategy: str = "") -> "Outcome[T]":
        return cls(error=error, strategy=strategy)


@dataclass
class ChainResult(Generic[T]):
    outcome: Outcome[T]
    failures: List[Outcome[T]] = field(default_factory=list)


Strategy = Tuple[str, Callable[[], Awaitable[Outcome]]]


async def first_success(strategies: Sequence[Strategy]) -> ChainResult:
    """Run strategies in order and stop at the first successful Outcome."""
    failures: List[Outcome] = []
    for name, run in strategies:
        outcome = await run()
        outcome.strategy = outcome.strategy or name
        if outcome.ok:
            return ChainResult(outcome=outcome, failures=failures)
        logger.info(f"Strategy {name} unavailable: {outcome.error}")
        failures.append(outcome)
    summary = "; ".join(f"{o.strategy}: {o.error}" for o in failures) or "no strategies"
    return ChainResult(outcome=Outcome.failure(summary, "exhausted"), failures=failures)


def _inner_html(el) -> str:
    return el.decode_contents() if el is not None else ""


def parse_scraped_page(html: str, fallback_id: int = 0) -> ResolvedContent:
    """Pick the post id and the main content region out of a scraped page."""
    soup = BeautifulSoup(html or "", "html.parser")

    scraped_id = fallback_id
    shortlink = soup.select_one('link[rel="shortlink"]')
    if shortlink is not None:
        m = SHORTLINK_ID_RE.search(shortlink.get("href") or "")
        if m:
            scraped_id = int(m.group(1))
    if scraped_id == fallback_id and soup.body is not None:
        classes = soup.body.get("class") or []
        m = POSTID_CLASS_RE.search(" ".join(classes) if isinstance(classes, list) else str(classes))
        if m:
            scraped_id = int(m.group(1))

    extracted = ""
    for selector in CONTENT_SELECTORS:
        candidate = _inner_html(soup.select_one(selector))
        if len(candidate) > len(extracted):
            extracted = candidate

    body = extracted or _inner_html(soup.body) or (html or "")
    return ResolvedContent(
        body=body,
        resolved_id=scraped_id or int(time.time() * 1000),
    )


@dataclass
class PageContent:
    id: int
    title: str
    content: str


class ContentResolver:
    def __init__(
        self,
        relay_fetcher,
        credentials: Optional[WordPressCredentials] = None,
        wordpress: Optional[WordPressClient] = None,
        relay_parallel: bool = True,
    ):
        self.relay_fetcher = relay_fetcher
        self.credentials = credentials or WordPressCredentials()
        if wordpress is None and self.credentials.has_api:
            wordpress = WordPressClient(relay_fetcher.http, self.credentials, relay=relay_fetcher.primary)
        self.wordpress = wordpress
        self.relay_parallel = relay_parallel

    async def _rest_lookup(self, url: str, via_relay: bool) -> Outcome[ResolvedContent]:
        if self.wordpress is None or not self.credentials.has_api:
            return Outcome.failure("no WordPress credentials")
        slug = slug_from_url(url)
        try:
            post = await self.wordpress.find_post_by_slug(slug, via_relay=via_relay)
        except (AmzwpError, ValueError) as e:
            return Outcome.failure(str(e))
        if not post:
            return Outcome.failure(f"no post with slug {slug!r}")
        if not isinstance(post, dict):
            return Outcome.failure(f"unexpected post payload for slug {slug!r}")
        try:
            post_id = int(post.get("id") or 0)
        except (TypeError, ValueError):
            return Outcome.failure(f"post {slug!r} has a non-numeric id")
        content = post.get("content")
        rendered = content.get("rendered", "") if isinstance(content, dict) else ""
        return Outcome.success(ResolvedContent(body=rendered or "", resolved_id=post_id))

    async def _scrape(self, url: str, fallback_id: int) -> Outcome[ResolvedContent]:
        try:
            html = await self.relay_fetcher.fetch(url, parallel=self.relay_parallel)
        except AmzwpError as e:
            return Outcome.failure(str(e))
        return Outcome.success(parse_scraped_page(html, fallback_id))

    async def resolve(self, url: str, fallback_id: int = 0) -> ResolvedContent:
        """Return the page body and its post id.

        Raises:
            AcquisitionError: all strategies failed
        """
        chain = await first_success([
            ("rest-direct", lambda: self._rest_lookup(url, via_relay=False)),
            ("rest-relay", lambda: self._rest_lookup(url, via_relay=True)),
            ("scrape", lambda: self._scrape(url, fallback_id)),
        ])
        if not chain.outcome.ok:
            logger.warning(f"Content acquisition failed for {url}: {chain.outcome.error}")
            raise AcquisitionError("Content acquisition failed: Target unreachable via all protocols.")
        resolved = chain.outcome.value
        resolved.strategy = chain.outcome.strategy
        logger.debug(f"Resolved {url} via {resolved.strategy} ({len(resolved.body)} chars)")
        return resolved

    async def fetch_page_content(self, url: str) -> PageContent:
        resolved = await self.resolve(url, 0)
        return PageContent(id=resolved.resolved_id, title=title_from_url(url), content=resolved.body)
