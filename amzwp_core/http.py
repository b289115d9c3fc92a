#!/usr/bin/env python3
"""
Thin aiohttp wrapper shared by the relay fetcher, the WordPress client and
the oracles.

Every request carries its own ``aiohttp.ClientTimeout``. Transport failures
surface as ``NetworkError``; HTTP error statuses are returned as responses
so callers decide whether a status fails their attempt.
"""

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import aiohttp

from .errors import NetworkError
from .diagnostics import get_logger

logger = get_logger(__name__)

USER_AGENT = "amzwp/0.4 (+https://github.com/amzwp)"


@dataclass
class HttpResponse:
    status: int
    text: str
    url: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    reason: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        return json.loads(self.text)

    def raise_for_status(self) -> "HttpResponse":
        if not self.ok:
            raise NetworkError(f"HTTP {self.status}{' ' + self.reason if self.reason else ''}", self.status)
        return self


class HttpClient:
    """Async HTTP client owning one aiohttp session.

    Usage:
        async with HttpClient() as http:
            resp = await http.get("https://example.com/sitemap.xml", timeout=10)
    """

    def __init__(self, session: Optional[aiohttp.ClientSession] = None, user_agent: str = USER_AGENT):
        self._session = session
        self._owns_session = session is None
        self.user_agent = user_agent

    async def __aenter__(self):
        self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(headers={"User-Agent": self.user_agent})
            self._owns_session = True
        return self._session

    async def close(self):
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = 15.0,
        json_body: Any = None,
    ) -> HttpResponse:
        session = self._ensure_session()
        timeout_obj = aiohttp.ClientTimeout(total=timeout)
        try:
            async with session.request(
                method.upper(), url, headers=headers, json=json_body, timeout=timeout_obj
            ) as resp:
                text = "" if method.upper() == "HEAD" else await resp.text(errors="replace")
                return HttpResponse(
                    status=resp.status,
                    text=text,
                    url=str(resp.url),
                    headers=dict(resp.headers),
                    reason=resp.reason or "",
                )
        except asyncio.TimeoutError as e:
            raise NetworkError(f"Timeout after {timeout:.0f}s: {url}") from e
        except aiohttp.ClientError as e:
            raise NetworkError(f"{type(e).__name__}: {e}") from e

    async def get(self, url: str, **kwargs) -> HttpResponse:
        return await self.request("GET", url, **kwargs)

    async def head(self, url: str, **kwargs) -> HttpResponse:
        return await self.request("HEAD", url, **kwargs)

    async def post(self, url: str, **kwargs) -> HttpResponse:
        return await self.request("POST", url, **kwargs)
