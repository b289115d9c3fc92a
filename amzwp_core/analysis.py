#!/usr/bin/env python3
"""
Page analysis: from post markup to a ranked list of product records.

    extract -> enrich (optional) -> merge -> oracle lookup -> verdict

Results are cached per page under a title/length hash, and only when at
least one product was found.
"""

import uuid
from typing import List, Optional

from .cache import IntelligenceCache
from .enrichment import EnrichmentOracle
from .errors import EnrichmentError
from .extraction import extract_candidates
from .merge import merge_candidates
from .models import AnalysisResult, CarouselData, MergedProduct, OracleSuggestion, ProductDetails
from .product_search import CHECK_PRICE, ProductOracle
from .urls import content_hash
from .verdicts import generate_verdict
from .diagnostics import get_logger

logger = get_logger(__name__)

MAX_PRODUCTS_PER_SCAN = 10
MAX_TITLE_CHARS = 80
CAROUSEL_MIN_PRODUCTS = 5
CAROUSEL_MAX_ITEMS = 8

PLACEHOLDER_IMAGE = "https://via.placeholder.com/800x800.png?text=Product"
DEFAULT_RATING = 4.5
DEFAULT_REVIEW_COUNT = 1000
DEFAULT_CATEGORY = "Product"


def build_carousel(products: List[ProductDetails]) -> Optional[CarouselData]:
    if len(products) < CAROUSEL_MIN_PRODUCTS:
        return None
    return CarouselData(
        title=f"Top Rated {products[0].category or 'Products'}",
        product_ids=[p.id for p in products[:CAROUSEL_MAX_ITEMS]],
    )


class ProductAnalyzer:
    def __init__(
        self,
        oracle: ProductOracle,
        cache: IntelligenceCache,
        enrichment: Optional[EnrichmentOracle] = None,
        max_products: int = MAX_PRODUCTS_PER_SCAN,
    ):
        self.oracle = oracle
        self.cache = cache
        self.enrichment = enrichment
        self.max_products = max_products

    async def _suggestions(self, title: str, html: str, candidates) -> List[OracleSuggestion]:
        if self.enrichment is None or not self.enrichment.enabled:
            return []
        try:
            return await self.enrichment.suggest(title, html, candidates)
        except EnrichmentError as e:
            logger.warning(f"Enrichment failed, using extracted products only: {e}")
            return []

    async def _resolve(self, product: MergedProduct) -> Optional[ProductDetails]:
        query = product.asin or product.name
        if not query:
            return None
        found = await self.oracle.lookup(query)
        if not found.title and not product.name:
            logger.debug(f"Dropping unresolved product {query}")
            return None

        name = found.title or product.name
        brand = found.brand or product.brand
        category = product.category or DEFAULT_CATEGORY
        return ProductDetails(
            id=str(uuid.uuid4()),
            asin=found.asin or product.asin,
            title=name[:MAX_TITLE_CHARS],
            brand=brand,
            category=category,
            price=found.price or CHECK_PRICE,
            image_url=found.image_url or PLACEHOLDER_IMAGE,
            rating=found.rating or DEFAULT_RATING,
            review_count=found.review_count or DEFAULT_REVIEW_COUNT,
            prime=True if found.prime is None else found.prime,
            verdict=generate_verdict(name, brand, category, product.verdict),
        )

    async def analyze(self, title: str, html: str) -> AnalysisResult:
        """Detect the products a post talks about.

        A cached result for the same title and content length is returned
        as is, flagged ``cached``.
        """
        html = html or ""
        key = content_hash(title, len(html))
        cached = self.cache.get_analysis(key)
        if cached is not None:
            logger.info(f"Analysis cache hit for '{title}'")
            return cached

        candidates = extract_candidates(html)
        logger.info(
            f"Extracted {len(candidates)} candidates "
            f"({sum(1 for c in candidates if c.asin)} with ASIN) from '{title}'"
        )
        suggestions = await self._suggestions(title, html, candidates)
        merged = merge_candidates(candidates, suggestions)

        products: List[ProductDetails] = []
        for product in merged:
            if len(products) >= self.max_products:
                break
            details = await self._resolve(product)
            if details is not None:
                products.append(details)

        result = AnalysisResult(detected_products=products, carousel=build_carousel(products))
        if products:
            self.cache.set_analysis(key, result)
        logger.info(f"Analysis of '{title}' found {len(products)} products")
        return result
