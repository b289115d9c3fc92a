#!/usr/bin/env python3
from dataclasses import dataclass
import os
from pathlib import Path
from typing import Dict

import aiohttp
from dotenv import load_dotenv

load_dotenv()


@dataclass
class Config:
    """Application configuration"""
    # WordPress REST backend
    wp_url: str = os.getenv("AMZWP_WP_URL", "")
    wp_user: str = os.getenv("AMZWP_WP_USER", "")
    wp_app_password: str = os.getenv("AMZWP_WP_APP_PASSWORD", "")

    # Product-data oracle (SerpAPI Amazon engine)
    serpapi_key: str = os.getenv("AMZWP_SERPAPI_KEY", "")

    # Enrichment oracle (Gemini generateContent)
    ai_api_key: str = os.getenv("AMZWP_AI_API_KEY", os.getenv("API_KEY", ""))
    ai_model: str = os.getenv("AMZWP_AI_MODEL", "gemini-2.0-flash")
    ai_base_url: str = os.getenv("AMZWP_AI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta")
    ai_timeout: int = int(os.getenv("AMZWP_AI_TIMEOUT", "60"))
    max_context_chars: int = int(os.getenv("AMZWP_MAX_CONTEXT_CHARS", "20000"))
    max_products_per_scan: int = int(os.getenv("AMZWP_MAX_PRODUCTS_PER_SCAN", "10"))

    # Network
    concurrency: int = int(os.getenv("AMZWP_CONCURRENCY", "10"))
    timeout: float = float(os.getenv("AMZWP_TIMEOUT", "15"))
    push_timeout: float = float(os.getenv("AMZWP_PUSH_TIMEOUT", "25"))
    max_retries: int = int(os.getenv("AMZWP_MAX_RETRIES", "3"))
    retry_backoff: float = float(os.getenv("AMZWP_RETRY_BACKOFF", "1.0"))
    relay_parallel: bool = os.getenv("AMZWP_RELAY_PARALLEL", "true").lower() in ["true", "1", "yes"]
    oracle_requests_per_minute: int = int(os.getenv("AMZWP_ORACLE_RPM", "30"))

    # Cache
    workspace: Path = Path(os.getenv("AMZWP_WORKSPACE", "./workspace"))
    max_cached_products: int = int(os.getenv("AMZWP_CACHE_MAX_PRODUCTS", "500"))
    max_cached_analyses: int = int(os.getenv("AMZWP_CACHE_MAX_ANALYSIS", "200"))
    product_ttl: float = float(os.getenv("AMZWP_CACHE_PRODUCT_TTL", str(24 * 60 * 60)))
    analysis_ttl: float = float(os.getenv("AMZWP_CACHE_ANALYSIS_TTL", str(12 * 60 * 60)))

    enable_debug: bool = os.getenv("AMZWP_DEBUG", "false").lower() == "true"

    @property
    def credentials(self) -> "WordPressCredentials":
        return WordPressCredentials(
            url=self.wp_url.rstrip("/"),
            user=self.wp_user,
            app_password=self.wp_app_password,
        )


@dataclass(frozen=True)
class WordPressCredentials:
    url: str = ""
    user: str = ""
    app_password: str = ""

    @property
    def has_api(self) -> bool:
        """Enough to attempt an authenticated lookup."""
        return bool(self.url and self.user)

    @property
    def complete(self) -> bool:
        return bool(self.url and self.user and self.app_password)

    def auth_headers(self) -> Dict[str, str]:
        if not self.user:
            return {}
        return {"Authorization": aiohttp.BasicAuth(self.user, self.app_password or "").encode()}


config = Config()
