#!/usr/bin/env python3
"""
Relay racing fetcher.

Reaches a resource through third-party pass-through services when a direct
connection is blocked. In parallel mode every relay is tried at once and the
first success wins; the rest are cancelled. Sequential mode walks the relays
in priority order with a short pause after each failure.

Usage:
    async with HttpClient() as http:
        fetcher = RelayFetcher(http)
        html = await fetcher.fetch("example.com/post")
        fetcher.last_outcome.winner   # e.g. "corsproxy.io"
"""

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional, Sequence
from urllib.parse import quote

from .errors import NetworkError, RelayExhaustionError
from .http import HttpResponse
from .urls import ensure_scheme
from .diagnostics import get_logger

logger = get_logger(__name__)

DEFAULT_ACCEPT = "application/xml, text/xml, application/json, text/html, */*"


def _plain_body(resp: HttpResponse) -> str:
    return resp.text


def _allorigins_body(resp: HttpResponse) -> str:
    data = resp.json()
    contents = data.get("contents") if isinstance(data, dict) else None
    if contents is None:
        raise NetworkError("allorigins envelope has no contents")
    return contents


@dataclass(frozen=True)
class RelayTarget:
    """One pass-through service: how to rewrite the URL and unwrap the answer."""
    name: str
    url_transform: Callable[[str], str]
    body_parser: Callable[[HttpResponse], str]
    priority: int


RELAY_TARGETS: tuple = (
    RelayTarget(
        name="corsproxy.io",
        url_transform=lambda url: f"https://corsproxy.io/?{quote(url, safe='')}",
        body_parser=_plain_body,
        priority=1,
    ),
    RelayTarget(
        name="allorigins",
        url_transform=lambda url: f"https://api.allorigins.win/get?url={quote(url, safe='')}",
        body_parser=_allorigins_body,
        priority=2,
    ),
    RelayTarget(
        name="codetabs",
        url_transform=lambda url: f"https://api.codetabs.com/v1/proxy?quest={quote(url, safe='')}",
        body_parser=_plain_body,
        priority=3,
    ),
    RelayTarget(
        name="thingproxy",
        url_transform=lambda url: f"https://thingproxy.freeboard.io/fetch/{url}",
        body_parser=_plain_body,
        priority=4,
    ),
)


@dataclass
class RaceOutcome:
    """What happened during the last fetch: who won, who was cancelled, who failed."""
    mode: str = "parallel"
    winner: Optional[str] = None
    cancelled: List[str] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)


class RelayFetcher:
    def __init__(
        self,
        http,
        targets: Sequence[RelayTarget] = RELAY_TARGETS,
        default_timeout: float = 15.0,
        sequential_delay: float = 0.2,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if not targets:
            raise ValueError("at least one relay target is required")
        self.http = http
        self.targets = sorted(targets, key=lambda t: t.priority)
        self.default_timeout = default_timeout
        self.sequential_delay = sequential_delay
        self._sleep = sleep
        self.last_outcome: Optional[RaceOutcome] = None

    @property
    def primary(self) -> RelayTarget:
        return self.targets[0]

    async def _attempt(self, target: RelayTarget, url: str, timeout: float, headers: Dict[str, str]) -> str:
        relayed = target.url_transform(url)
        try:
            resp = await asyncio.wait_for(
                self.http.get(relayed, headers=headers, timeout=timeout), timeout
            )
        except asyncio.TimeoutError as e:
            raise NetworkError(f"Timeout after {timeout:.0f}s") from e
        if not resp.ok:
            raise NetworkError(f"HTTP {resp.status}", resp.status)
        return target.body_parser(resp)

    async def fetch(
        self,
        url: str,
        timeout: Optional[float] = None,
        parallel: bool = True,
        headers: Optional[Dict[str, str]] = None,
    ) -> str:
        """Return the body of ``url`` fetched through the first relay that works.

        Raises:
            RelayExhaustionError: every relay failed
        """
        clean_url = ensure_scheme(url)
        timeout = self.default_timeout if timeout is None else timeout
        req_headers = {"Accept": DEFAULT_ACCEPT}
        if headers:
            req_headers.update(headers)
        if parallel:
            return await self._race(clean_url, timeout, req_headers)
        return await self._walk(clean_url, timeout, req_headers)

    async def _race(self, url: str, timeout: float, headers: Dict[str, str]) -> str:
        outcome = RaceOutcome(mode="parallel")
        self.last_outcome = outcome
        tasks = {
            asyncio.ensure_future(self._attempt(target, url, timeout, headers)): target
            for target in self.targets
        }
        pending = set(tasks)
        try:
            while pending:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                for task in sorted(done, key=lambda t: tasks[t].priority):
                    target = tasks[task]
                    error = task.exception()
                    if error is None:
                        outcome.winner = target.name
                        logger.debug(f"Relay {target.name} won the race for {url}")
                        return task.result()
                    outcome.errors[target.name] = str(error) or type(error).__name__
                    logger.debug(f"Relay {target.name} failed for {url}: {error}")
        finally:
            for task in pending:
                task.cancel()
                outcome.cancelled.append(tasks[task].name)
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
            # mark unread failures as retrieved
            for task in tasks:
                if task.done() and not task.cancelled():
                    task.exception()

        raise RelayExhaustionError(
            "All relay targets exhausted. Target may be blocking requests.",
            attempted=len(self.targets),
            errors=[f"{name}: {msg}" for name, msg in outcome.errors.items()],
        )

    async def _walk(self, url: str, timeout: float, headers: Dict[str, str]) -> str:
        outcome = RaceOutcome(mode="sequential")
        self.last_outcome = outcome
        errors: List[str] = []
        for idx, target in enumerate(self.targets):
            try:
                body = await self._attempt(target, url, timeout, headers)
            except (NetworkError, ValueError) as e:
                outcome.errors[target.name] = str(e)
                errors.append(f"{target.name}: {e}")
                logger.debug(f"Relay {target.name} failed for {url}: {e}")
                if idx < len(self.targets) - 1:
                    await self._sleep(self.sequential_delay)
                continue
            outcome.winner = target.name
            return body

        raise RelayExhaustionError(
            f"All relays failed: {'; '.join(errors)}",
            attempted=len(self.targets),
            errors=errors,
        )
