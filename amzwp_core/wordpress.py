#!/usr/bin/env python3
"""WordPress REST client (posts lookup, listing, content update, auth check).

Every call goes direct first and falls back to the primary relay, which
forwards the Authorization header.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from .config import WordPressCredentials
from .errors import CredentialsError, NetworkError, WordPressAPIError
from .relay import RELAY_TARGETS, RelayTarget
from .diagnostics import get_logger

logger = get_logger(__name__)

WP_USER_AGENT = "AmzPilot/80.0"
LOOKUP_TIMEOUT = 10.0
LIST_TIMEOUT = 15.0
PUSH_TIMEOUT = 25.0
HANDSHAKE_TIMEOUT = 8.0


@dataclass
class ConnectionResult:
    success: bool
    message: str
    via_relay: bool = False


def slug_from_url(url: str) -> str:
    return (url or "").rstrip("/").split("/")[-1]


class WordPressClient:
    def __init__(
        self,
        http,
        credentials: WordPressCredentials,
        relay: RelayTarget = RELAY_TARGETS[0],
        push_timeout: float = PUSH_TIMEOUT,
    ):
        self.http = http
        self.credentials = credentials
        self.relay = relay
        self.push_timeout = push_timeout

    @property
    def base(self) -> str:
        return self.credentials.url.rstrip("/")

    def _require_credentials(self):
        if not self.credentials.has_api:
            raise CredentialsError("WordPress Credentials required (AMZWP_WP_URL, AMZWP_WP_USER)")

    def _route(self, endpoint: str, via_relay: bool) -> str:
        return self.relay.url_transform(endpoint) if via_relay else endpoint

    async def _get_json(self, endpoint: str, timeout: float, via_relay: bool) -> Any:
        resp = await self.http.get(
            self._route(endpoint, via_relay),
            headers=self.credentials.auth_headers(),
            timeout=timeout,
        )
        if not resp.ok:
            raise NetworkError(f"HTTP {resp.status} from {endpoint}", resp.status)
        return resp.json()

    async def find_post_by_slug(self, slug: str, via_relay: bool = False) -> Optional[Dict[str, Any]]:
        """First post whose slug matches, or None when the API knows no such post."""
        self._require_credentials()
        endpoint = f"{self.base}/wp-json/wp/v2/posts?slug={quote(slug)}&_fields=id,content,title"
        data = await self._get_json(endpoint, LOOKUP_TIMEOUT, via_relay)
        if isinstance(data, list) and data:
            return data[0]
        return None

    async def list_posts(self, per_page: int = 100) -> List[Dict[str, Any]]:
        self._require_credentials()
        endpoint = f"{self.base}/wp-json/wp/v2/posts?per_page={per_page}&_fields=id,link,title,status,type"
        data = await self._get_json(endpoint, LIST_TIMEOUT, via_relay=False)
        if not isinstance(data, list):
            raise NetworkError(f"Unexpected listing payload from {endpoint}")
        return data

    async def _push(self, endpoint: str, content: str, via_relay: bool) -> Dict[str, Any]:
        headers = {"Content-Type": "application/json", "User-Agent": WP_USER_AGENT}
        headers.update(self.credentials.auth_headers())
        resp = await self.http.post(
            self._route(endpoint, via_relay),
            headers=headers,
            json_body={"content": content},
            timeout=self.push_timeout,
        )
        if not resp.ok:
            try:
                err = resp.json()
            except ValueError:
                err = None
            detail = ""
            if isinstance(err, dict):
                detail = err.get("message") or err.get("code") or ""
            raise WordPressAPIError(
                f"{'Proxy' if via_relay else 'Direct'} Error [{resp.status}]: {detail or resp.reason}",
                endpoint,
                resp.status,
            )
        try:
            data = resp.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    async def update_post(self, post_id: int, content: str) -> str:
        """Replace the body of a post and return its canonical link."""
        self._require_credentials()
        endpoint = f"{self.base}/wp-json/wp/v2/posts/{post_id}"
        try:
            data = await self._push(endpoint, content, via_relay=False)
        except (WordPressAPIError, NetworkError) as direct_error:
            logger.warning(f"Direct update failed: {direct_error}, trying relay...")
            try:
                data = await self._push(endpoint, content, via_relay=True)
            except (WordPressAPIError, NetworkError) as relay_error:
                raise WordPressAPIError(
                    f"Upload Failed. Direct: {direct_error}. Proxy: {relay_error}",
                    endpoint,
                    getattr(relay_error, "status_code", None),
                ) from relay_error
        return data.get("link") or f"{self.base}/?p={post_id}"

    async def test_connection(self) -> ConnectionResult:
        if not self.credentials.has_api:
            return ConnectionResult(False, "WordPress Credentials missing")
        endpoint = f"{self.base}/wp-json/wp/v2/users/me"
        for via_relay in (False, True):
            try:
                await self._get_json(endpoint, HANDSHAKE_TIMEOUT, via_relay)
            except (NetworkError, json.JSONDecodeError) as e:
                logger.debug(f"Handshake {'via relay' if via_relay else 'direct'} failed: {e}")
                continue
            if via_relay:
                return ConnectionResult(True, "Handshake Success (via Proxy)", via_relay=True)
            return ConnectionResult(True, "Protocol Handshake Success!")
        return ConnectionResult(False, "Host Connection Blocked (Check CORS/Auth)")
