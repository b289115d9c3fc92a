#!/usr/bin/env python3
"""
Product-data oracle backed by SerpAPI's Amazon engines.

A lookup is a keyword search followed by a detail request for the first
result carrying an ASIN. Both go through the relay fetcher, are rate
limited per host and retried on transient failure. Resolved products are
cached by ASIN; a cached product whose title contains the query (or the
other way round) and has a real image answers without any network call.

Lookups never raise: without an API key, or on any failure, the answer is
a stub carrying the query as title.
"""

import json
import re
from typing import Any, Dict, Optional
from urllib.parse import quote

from .errors import NetworkError
from .models import ProductLookup
from .rate_limiter import RateLimiter
from .retry import retry_network
from .diagnostics import get_logger

logger = get_logger(__name__)

SERPAPI_URL = "https://serpapi.com/search.json"
PLACEHOLDER_MARKER = "placeholder"
CHECK_PRICE = "Check Price"
DEFAULT_ORACLE_RATING = 4.9
DEFAULT_ORACLE_REVIEWS = 1000

_IMAGE_SIZE_RE = re.compile(r"\._AC_.*_\.")
HIGH_RES_IMAGE_SUFFIX = "._AC_SL1500_."


def upgrade_image(url: str) -> str:
    """Ask the CDN for the 1500px rendition of an Amazon product image."""
    return _IMAGE_SIZE_RE.sub(HIGH_RES_IMAGE_SUFFIX, url, count=1) if url else url


def pick_image(product: Dict[str, Any], first_result: Dict[str, Any]) -> str:
    images = product.get("images") or []
    if images:
        first = images[0]
        return first if isinstance(first, str) else (first or {}).get("link", "")
    flat = product.get("images_flat") or []
    if flat:
        return flat[0]
    main = product.get("main_image") or {}
    if isinstance(main, dict) and main.get("link"):
        return main["link"]
    return first_result.get("thumbnail") or ""


class ProductOracle:
    def __init__(
        self,
        relay_fetcher,
        cache,
        api_key: str = "",
        limiter: Optional[RateLimiter] = None,
        relay_parallel: bool = True,
        max_retries: int = 3,
        retry_backoff: float = 1.0,
        search_url: str = SERPAPI_URL,
    ):
        self.relay_fetcher = relay_fetcher
        self.cache = cache
        self.api_key = api_key
        self.limiter = limiter or RateLimiter(max_calls=30, window=60.0)
        self.relay_parallel = relay_parallel
        self.search_url = search_url
        self._get_json = retry_network(
            max_attempts=max(1, max_retries), initial_delay=retry_backoff
        )(self._get_json_once)

    @classmethod
    def from_config(cls, relay_fetcher, cache, cfg) -> "ProductOracle":
        return cls(
            relay_fetcher,
            cache,
            api_key=cfg.serpapi_key,
            limiter=RateLimiter(max_calls=cfg.oracle_requests_per_minute, window=60.0),
            relay_parallel=cfg.relay_parallel,
            max_retries=cfg.max_retries,
            retry_backoff=cfg.retry_backoff,
        )

    async def _get_json_once(self, url: str) -> Dict[str, Any]:
        body = await self.limiter.limit(url, self.relay_fetcher.fetch, url, parallel=self.relay_parallel)
        data = json.loads(body)
        if not isinstance(data, dict):
            raise ValueError("Oracle returned a non-object payload")
        return data

    def cached_match(self, query: str) -> Optional[ProductLookup]:
        q = query.lower()
        for product in self.cache.get_products().values():
            title = (product.title or "").lower()
            if title and (q in title or title in q):
                if product.image_url and PLACEHOLDER_MARKER not in product.image_url:
                    return product
                return None
        return None

    async def lookup(self, query: str) -> ProductLookup:
        """Resolve ``query`` (free text or ASIN) to product data."""
        if not self.api_key:
            return ProductLookup(title=query, price=CHECK_PRICE)

        hit = self.cached_match(query)
        if hit is not None:
            logger.debug(f"Product cache hit for '{query}'")
            return hit

        try:
            search = await self._get_json(
                f"{self.search_url}?engine=amazon&k={quote(query)}&api_key={self.api_key}"
            )
            organic = [r for r in search.get("organic_results") or [] if isinstance(r, dict)]
            first = next((r for r in organic if r.get("asin")), organic[0] if organic else {})
            if not first.get("asin"):
                return ProductLookup(title=query)

            detail = await self._get_json(
                f"{self.search_url}?engine=amazon_product&asin={first['asin']}&api_key={self.api_key}"
            )
            product = detail.get("product_results") or {}
            result = ProductLookup(
                asin=product.get("asin") or first["asin"],
                title=product.get("title") or first.get("title") or "",
                brand=product.get("brand") or "",
                price=product.get("price") or first.get("price") or CHECK_PRICE,
                image_url=upgrade_image(pick_image(product, first)),
                rating=product.get("rating") or first.get("rating") or DEFAULT_ORACLE_RATING,
                review_count=product.get("reviews_count") or first.get("reviews_count") or DEFAULT_ORACLE_REVIEWS,
                prime=bool(product.get("prime") or first.get("prime") or False),
            )
        except (NetworkError, ValueError) as e:
            logger.warning(f"Product lookup failed for '{query}': {e}")
            return ProductLookup(title=query, price=CHECK_PRICE)

        if result.asin:
            self.cache.set_product(result.asin, result)
        return result
