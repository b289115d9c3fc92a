"""
amzwp_core package: page discovery, content resolution, audit and product
detection for affiliate WordPress sites.

Usage:
    from amzwp_core import HttpClient, RelayFetcher, SitemapDiscovery

    async with HttpClient() as http:
        relay = RelayFetcher(http)
        posts = await SitemapDiscovery(http, relay).discover("https://example.com")
"""
from .config import Config, config, WordPressCredentials
from .errors import (
    AmzwpError,
    NetworkError,
    RelayExhaustionError,
    AcquisitionError,
    ValidationError,
    EnrichmentError,
    CredentialsError,
    WordPressAPIError,
)
from .http import HttpClient, HttpResponse
from .cache import IntelligenceCache, TtlCache, MemoryStorage, JsonFileStorage
from .relay import RelayFetcher, RelayTarget, RELAY_TARGETS
from .concurrency import AuditController, CancelToken, run_concurrent
from .content import ContentResolver
from .sitemap import SitemapDiscovery
from .pages import PageRegistry
from .audit import ContentAuditor
from .extraction import extract_candidates
from .merge import merge_candidates
from .verdicts import generate_verdict
from .enrichment import EnrichmentOracle
from .product_search import ProductOracle
from .analysis import ProductAnalyzer
from .wordpress import WordPressClient

__all__ = [
    # Core
    "Config",
    "config",
    "WordPressCredentials",
    "HttpClient",
    "HttpResponse",
    # Errors
    "AmzwpError",
    "NetworkError",
    "RelayExhaustionError",
    "AcquisitionError",
    "ValidationError",
    "EnrichmentError",
    "CredentialsError",
    "WordPressAPIError",
    # Acquisition
    "RelayFetcher",
    "RelayTarget",
    "RELAY_TARGETS",
    "ContentResolver",
    "SitemapDiscovery",
    "PageRegistry",
    "WordPressClient",
    # Audit
    "AuditController",
    "CancelToken",
    "run_concurrent",
    "ContentAuditor",
    # Cache
    "IntelligenceCache",
    "TtlCache",
    "MemoryStorage",
    "JsonFileStorage",
    # Products
    "extract_candidates",
    "merge_candidates",
    "generate_verdict",
    "EnrichmentOracle",
    "ProductOracle",
    "ProductAnalyzer",
]
