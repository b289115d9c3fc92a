#!/usr/bin/env python3
"""
TTL/capacity cache persisted as one JSON blob per namespace.

Entries are stored as ``{"value": ..., "storedAt": ms, "ttl": ms}``. Expiry
is checked lazily on read; capacity is enforced on write by evicting the
oldest 20% of entries by insertion time. Storage failures never reach the
caller: the cache purges itself and otherwise behaves as a no-op.
"""

import hashlib
import json
import logging
import math
import os
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .models import AnalysisResult, ProductLookup

logger = logging.getLogger(__name__)

PRODUCTS_NAMESPACE = "amzwp_cache_products_v4"
ANALYSIS_NAMESPACE = "amzwp_cache_analysis_v4"
METADATA_NAMESPACE = "amzwp_cache_meta_v4"

EVICTION_FRACTION = 0.2

STORAGE_ERRORS = (OSError, TypeError, ValueError)


def _sanitize_key(s: str) -> str:
    s = (s or "").strip()
    if not s:
        return "default"
    s2 = "".join(ch if ch.isalnum() or ch in ("-", "_", ".") else "_" for ch in s)
    if len(s2) > 100:
        h = hashlib.sha1(s.encode("utf-8")).hexdigest()
        s2 = s2[:60] + "_" + h
    return s2


class MemoryStorage:
    """In-process blob storage."""

    def __init__(self):
        self._items: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str):
        self._items[key] = value

    def remove_item(self, key: str):
        self._items.pop(key, None)


class JsonFileStorage:
    """Blob storage with one ``<namespace>.json`` file per key under ``base_dir``."""

    def __init__(self, base_dir: Optional[Path] = None):
        if base_dir is None:
            base_dir = Path(os.getenv("AMZWP_WORKSPACE", "./workspace")) / "cache"
        self.base_dir = Path(base_dir)

    def _path(self, key: str) -> Path:
        return self.base_dir / f"{_sanitize_key(key)}.json"

    def get_item(self, key: str) -> Optional[str]:
        p = self._path(key)
        if not p.exists():
            return None
        return p.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str):
        self.base_dir.mkdir(parents=True, exist_ok=True)
        p = self._path(key)
        tmp = p.with_suffix(".tmp")
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(p)

    def remove_item(self, key: str):
        self._path(key).unlink(missing_ok=True)


class TtlCache:
    """Key/value cache with per-entry TTL and batch eviction at capacity.

    TTLs are given in seconds; the persisted blob keeps milliseconds.
    """

    def __init__(
        self,
        namespace: str,
        max_size: int,
        default_ttl: float,
        storage=None,
        clock: Callable[[], float] = time.time,
    ):
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self.namespace = namespace
        self.max_size = max_size
        self.default_ttl = default_ttl
        self.storage = storage if storage is not None else MemoryStorage()
        self._clock = clock
        self._recovering = False

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _load(self) -> Dict[str, Dict[str, Any]]:
        try:
            raw = self.storage.get_item(self.namespace)
            data = json.loads(raw) if raw else {}
        except STORAGE_ERRORS as e:
            logger.warning(f"Cache read failed for {self.namespace}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, store: Dict[str, Dict[str, Any]]):
        try:
            self.storage.set_item(self.namespace, json.dumps(store, ensure_ascii=False))
        except STORAGE_ERRORS as e:
            if self._recovering:
                logger.warning(f"Cache {self.namespace} still not writable ({e}); dropping it")
                self._drop()
                return
            logger.warning(f"Cache write failed for {self.namespace}: {e}; purging all entries")
            self._recovering = True
            try:
                self.cleanup(force=True)
            finally:
                self._recovering = False

    def _drop(self):
        try:
            self.storage.remove_item(self.namespace)
        except OSError as e:
            logger.debug(f"Cache {self.namespace} could not be removed: {e}")

    @staticmethod
    def _expired(entry: Dict[str, Any], now_ms: int) -> bool:
        return now_ms - entry.get("storedAt", 0) > entry.get("ttl", 0)

    def get(self, key: str) -> Optional[Any]:
        store = self._load()
        entry = store.get(key)
        if entry is None:
            return None
        if self._expired(entry, self._now_ms()):
            del store[key]
            self._save(store)
            return None
        return entry.get("value")

    def set(self, key: str, value: Any, ttl: Optional[float] = None):
        store = self._load()
        if len(store) >= self.max_size:
            oldest = sorted(store, key=lambda k: store[k].get("storedAt", 0))
            for k in oldest[:math.ceil(self.max_size * EVICTION_FRACTION)]:
                del store[k]
        store[key] = {
            "value": value,
            "storedAt": self._now_ms(),
            "ttl": int((self.default_ttl if ttl is None else ttl) * 1000),
        }
        self._save(store)

    def has(self, key: str) -> bool:
        entry = self._load().get(key)
        if not isinstance(entry, dict):
            return False
        return not self._expired(entry, self._now_ms())

    def delete(self, key: str):
        store = self._load()
        if store.pop(key, None) is not None:
            self._save(store)

    def cleanup(self, force: bool = False) -> int:
        """Purge expired entries, or every entry when forced. Returns the number removed."""
        store = self._load()
        now = self._now_ms()
        doomed = [k for k, entry in store.items() if force or self._expired(entry, now)]
        for k in doomed:
            del store[k]
        self._save(store)
        return len(doomed)

    def clear(self):
        self._drop()

    def size(self) -> int:
        return len(self._load())

    def get_all(self) -> Dict[str, Any]:
        store = self._load()
        now = self._now_ms()
        return {k: e.get("value") for k, e in store.items() if not self._expired(e, now)}


class IntelligenceCache:
    """Cache service for product lookups, page analyses and metadata.

    Construct once per process and call ``cleanup()`` at startup.
    """

    def __init__(
        self,
        storage=None,
        clock: Callable[[], float] = time.time,
        max_products: int = 500,
        max_analyses: int = 200,
        product_ttl: float = 24 * 60 * 60,
        analysis_ttl: float = 12 * 60 * 60,
        max_metadata: int = 100,
        metadata_ttl: float = 30 * 24 * 60 * 60,
    ):
        storage = storage if storage is not None else MemoryStorage()
        self.products = TtlCache(PRODUCTS_NAMESPACE, max_products, product_ttl, storage, clock)
        self.analysis = TtlCache(ANALYSIS_NAMESPACE, max_analyses, analysis_ttl, storage, clock)
        self.metadata = TtlCache(METADATA_NAMESPACE, max_metadata, metadata_ttl, storage, clock)

    @classmethod
    def from_config(cls, cfg, clock: Callable[[], float] = time.time) -> "IntelligenceCache":
        return cls(
            storage=JsonFileStorage(Path(cfg.workspace) / "cache"),
            clock=clock,
            max_products=cfg.max_cached_products,
            max_analyses=cfg.max_cached_analyses,
            product_ttl=cfg.product_ttl,
            analysis_ttl=cfg.analysis_ttl,
        )

    def get_products(self) -> Dict[str, ProductLookup]:
        return {k: ProductLookup.from_dict(v) for k, v in self.products.get_all().items() if isinstance(v, dict)}

    def get_product(self, asin: str) -> Optional[ProductLookup]:
        data = self.products.get(asin)
        return ProductLookup.from_dict(data) if isinstance(data, dict) else None

    def set_product(self, asin: str, product: ProductLookup):
        self.products.set(asin, product.to_dict())

    def get_analysis(self, content_hash: str) -> Optional[AnalysisResult]:
        data = self.analysis.get(content_hash)
        return AnalysisResult.from_dict(data, cached=True) if isinstance(data, dict) else None

    def set_analysis(self, content_hash: str, result: AnalysisResult):
        self.analysis.set(content_hash, result.to_dict())

    def get_meta(self, key: str) -> Optional[Any]:
        return self.metadata.get(key)

    def set_meta(self, key: str, value: Any):
        self.metadata.set(key, value)

    def clear(self):
        self.products.clear()
        self.analysis.clear()
        self.metadata.clear()

    def cleanup(self) -> int:
        return self.products.cleanup() + self.analysis.cleanup() + self.metadata.cleanup()

    def stats(self) -> Dict[str, int]:
        return {
            "products": self.products.size(),
            "analysis": self.analysis.size(),
            "metadata": self.metadata.size(),
        }
