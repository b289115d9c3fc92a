#!/usr/bin/env python3
"""
Optional AI enrichment: ask a generateContent endpoint which products a post
is really about.

The oracle is one noisy signal among several. Without an API key it returns
no suggestions; any call failure raises ``EnrichmentError`` which the
analyzer logs and ignores.
"""

import json
import re
from typing import Any, Dict, List, Optional, Sequence

from .errors import EnrichmentError, NetworkError
from .models import ExtractedCandidate, OracleSuggestion
from .diagnostics import get_logger

logger = get_logger(__name__)

MAX_NAME_HINTS = 10

_SCRIPT_RE = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_STYLE_RE = re.compile(r"<style\b[^<]*(?:(?!</style>)<[^<]*)*</style>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")
_LEADING_FENCE_RE = re.compile(r"^[\s\S]*?```(?:json)?\s*", re.IGNORECASE)
_TRAILING_FENCE_RE = re.compile(r"\s*```[\s\S]*$")
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")
_TRAILING_COMMA_OBJ_RE = re.compile(r",\s*}")
_TRAILING_COMMA_ARR_RE = re.compile(r",\s*]")

SYSTEM_PROMPT = """TASK: You are a world-class product extraction engine. Your goal is to identify ONLY the actual products being reviewed, compared, or discussed as primary subjects in the provided blog post.

STRICT RULES:
1. ONLY extract physical products that can be purchased on Amazon.
2. IGNORE generic mentions, accessories (unless they are the main topic), and non-product entities.
3. IGNORE navigation links, site meta-text, and boilerplate.
4. If the post is a "Best [Category]" list, extract each item in the list.
5. If the post is a single product review, extract only that product.
6. For each product, provide a high-confidence "productName" and "brand".
7. Ensure the "verdict" is specific and high-quality.

HINTS - Products already detected in this page:
- ASINs found: {asins}
- Product names found: {names}

OUTPUT FORMAT:
Return a JSON object with a "products" array. Each product must have:
- productName: The full, precise name of the product.
- brand: The manufacturer or brand name.
- category: A specific category (e.g., "Noise Cancelling Headphones").
- verdict: EXACTLY 3 sentences.
  Sentence 1: "[Power word] for [user type], the [Brand] [Product] [main benefit]"
  Sentence 2: "[Key feature with specific detail], [performance claim]"
  Sentence 3: "[Trust signal], backed by [warranty/reviews]"
- confidence: A number from 0.0 to 1.0 indicating how certain you are this is a primary product of the post.

Return JSON: {{"products": [...]}}"""


def clean_context(html: str, max_chars: int = 20000) -> str:
    """Visible text of ``html``: scripts, styles and tags removed, whitespace collapsed."""
    text = _SCRIPT_RE.sub("", html or "")
    text = _STYLE_RE.sub("", text)
    text = _TAG_RE.sub(" ", text)
    return _WS_RE.sub(" ", text).strip()[:max_chars]


def _try_loads(text: str) -> Optional[Any]:
    try:
        return json.loads(text)
    except ValueError:
        return None


def parse_json_loose(text: str) -> Dict[str, Any]:
    """Best-effort JSON object from model output. Never raises.

    Tries, in order: the raw text, the body of a code fence, the span from
    the first ``{`` to the last ``}``, and finally the text with fences,
    control characters and trailing commas removed. Falls back to
    ``{"products": []}``.
    """
    empty = {"products": []}
    if not text or not isinstance(text, str):
        return empty

    attempts = [
        lambda: text,
        lambda: _TRAILING_FENCE_RE.sub("", _LEADING_FENCE_RE.sub("", text, count=1)).strip(),
        lambda: text[text.find("{"):text.rfind("}") + 1] if -1 < text.find("{") < text.rfind("}") else "",
        lambda: _TRAILING_COMMA_ARR_RE.sub("]", _TRAILING_COMMA_OBJ_RE.sub("}", _CONTROL_RE.sub(
            "", re.sub(r"```\s*", "", re.sub(r"```json\s*", "", text, flags=re.IGNORECASE))
        ))).strip(),
    ]
    for attempt in attempts:
        candidate = attempt()
        if not candidate:
            continue
        obj = _try_loads(candidate)
        if isinstance(obj, dict):
            return obj
    return empty


def build_hints(candidates: Sequence[ExtractedCandidate]):
    asins = [c.asin for c in candidates if c.asin]
    names = [c.name for c in candidates if c.name and not c.asin]
    return asins, names[:MAX_NAME_HINTS]


class EnrichmentOracle:
    """Minimal async client for a Gemini-style ``generateContent`` endpoint."""

    def __init__(
        self,
        http,
        api_key: str,
        model: str = "gemini-2.0-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 60,
        max_context_chars: int = 20000,
    ):
        self.http = http
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_context_chars = max_context_chars

    @classmethod
    def from_config(cls, http, cfg) -> "EnrichmentOracle":
        return cls(
            http,
            api_key=cfg.ai_api_key,
            model=cfg.ai_model,
            base_url=cfg.ai_base_url,
            timeout=cfg.ai_timeout,
            max_context_chars=cfg.max_context_chars,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def _payload(self, title: str, html: str, candidates: Sequence[ExtractedCandidate]) -> Dict[str, Any]:
        asins, names = build_hints(candidates)
        context = clean_context(html, self.max_context_chars)
        return {
            "systemInstruction": {"parts": [{"text": SYSTEM_PROMPT.format(
                asins=", ".join(asins) or "none",
                names=", ".join(names) or "none",
            )}]},
            "contents": [{"role": "user", "parts": [{"text": f'Title: "{title}"\n\nContent: {context}'}]}],
            "generationConfig": {"responseMimeType": "application/json"},
        }

    @staticmethod
    def _response_text(data: Any) -> str:
        try:
            parts = data["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError):
            return ""
        return "".join(p.get("text", "") for p in parts if isinstance(p, dict))

    async def suggest(
        self, title: str, html: str, candidates: Sequence[ExtractedCandidate] = ()
    ) -> List[OracleSuggestion]:
        """Products the model thinks the post is about.

        Raises:
            EnrichmentError: the call failed or returned something unusable
        """
        if not self.enabled:
            return []
        url = f"{self.base_url}/models/{self.model}:generateContent?key={self.api_key}"
        try:
            resp = await self.http.post(
                url,
                json_body=self._payload(title, html, candidates),
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except (NetworkError, ValueError) as e:
            raise EnrichmentError(f"Enrichment call failed: {e}") from e

        parsed = parse_json_loose(self._response_text(data))
        products = parsed.get("products")
        if not isinstance(products, list):
            return []
        suggestions = [OracleSuggestion.from_dict(p) for p in products if isinstance(p, dict)]
        logger.info(f"Enrichment returned {len(suggestions)} suggestions")
        return suggestions
