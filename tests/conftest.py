"""Shared fakes for network-facing tests."""

import asyncio
from dataclasses import dataclass
from typing import Callable, List, Optional, Union

import pytest

from amzwp_core.cache import IntelligenceCache, MemoryStorage
from amzwp_core.http import HttpResponse


@dataclass
class Route:
    prefix: str
    method: Optional[str]
    status: int = 200
    text: Union[str, Callable[[str], str]] = ""
    delay: float = 0.0
    exc: Optional[Exception] = None


class FakeHttp:
    """Stands in for HttpClient; answers by longest matching URL prefix.

    Unrouted URLs get a 404.
    """

    def __init__(self):
        self.routes: List[Route] = []
        self.calls: List[tuple] = []

    def route(self, prefix, text="", status=200, delay=0.0, exc=None, method=None):
        self.routes.append(Route(prefix, method, status, text, delay, exc))
        return self

    def _match(self, method: str, url: str) -> Optional[Route]:
        hits = [r for r in self.routes if url.startswith(r.prefix) and r.method in (None, method)]
        return max(hits, key=lambda r: len(r.prefix)) if hits else None

    async def request(self, method, url, *, headers=None, timeout=15.0, json_body=None):
        self.calls.append((method, url, headers, json_body))
        r = self._match(method, url)
        if r is None:
            return HttpResponse(404, "", url, reason="Not Found")
        if r.delay:
            await asyncio.sleep(r.delay)
        if r.exc is not None:
            raise r.exc
        text = r.text(url) if callable(r.text) else r.text
        return HttpResponse(r.status, "" if method == "HEAD" else text, url)

    async def get(self, url, **kwargs):
        return await self.request("GET", url, **kwargs)

    async def head(self, url, **kwargs):
        return await self.request("HEAD", url, **kwargs)

    async def post(self, url, **kwargs):
        return await self.request("POST", url, **kwargs)

    def urls(self, method=None):
        return [c[1] for c in self.calls if method is None or c[0] == method]


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def http():
    return FakeHttp()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return IntelligenceCache(storage=MemoryStorage(), clock=clock)
