"""Tests for content resolution."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from amzwp_core.config import WordPressCredentials
from amzwp_core.content import ContentResolver, Outcome, first_success, parse_scraped_page
from amzwp_core.errors import AcquisitionError, NetworkError, RelayExhaustionError
from amzwp_core.relay import RELAY_TARGETS

PAGE = """<html><head><link rel="shortlink" href="https://blog.example/?p=42"></head>
<body class="single postid-42"><header>Menu</header>
<main><article><div class="entry-content"><p>Short intro.</p></div>
<p>Extra paragraph that only the article holds, making it the longest region.</p></article></main>
</body></html>"""


def make_relay(fetch):
    relay = MagicMock()
    relay.fetch = fetch
    relay.primary = RELAY_TARGETS[0]
    return relay


class TestParseScrapedPage:

    def test_longest_region_and_shortlink_id(self):
        resolved = parse_scraped_page(PAGE)
        assert resolved.resolved_id == 42
        assert "Extra paragraph" in resolved.body
        assert "<header>" not in resolved.body

    def test_postid_body_class(self):
        html = '<html><body class="postid-7"><div class="post-content">Hi there</div></body></html>'
        resolved = parse_scraped_page(html)
        assert resolved.resolved_id == 7
        assert resolved.body == "Hi there"

    def test_falls_back_to_body(self):
        resolved = parse_scraped_page("<html><body><p>Only body</p></body></html>", fallback_id=5)
        assert resolved.body == "<p>Only body</p>"
        assert resolved.resolved_id == 5

    def test_id_defaults_to_timestamp(self):
        resolved = parse_scraped_page("<p>x</p>")
        assert resolved.resolved_id > 1_600_000_000_000


async def test_first_success_records_failures():
    async def bad():
        return Outcome.failure("nope")

    async def good():
        return Outcome.success("yes")

    chain = await first_success([("a", bad), ("b", good), ("c", bad)])
    assert chain.outcome.value == "yes"
    assert chain.outcome.strategy == "b"
    assert [f.strategy for f in chain.failures] == ["a"]


class TestContentResolver:

    async def test_scrape_without_credentials(self):
        relay = make_relay(AsyncMock(return_value=PAGE))
        resolver = ContentResolver(relay)

        resolved = await resolver.resolve("https://blog.example/best-blenders")

        assert resolved.strategy == "scrape"
        assert resolved.resolved_id == 42
        relay.fetch.assert_awaited_once()

    async def test_rest_lookup_wins(self):
        creds = WordPressCredentials(url="https://blog.example", user="editor")
        wp = MagicMock()
        wp.find_post_by_slug = AsyncMock(return_value={"id": 9, "content": {"rendered": "<p>Body</p>"}})
        relay = make_relay(AsyncMock())
        resolver = ContentResolver(relay, creds, wordpress=wp)

        resolved = await resolver.resolve("https://blog.example/best-blenders/")

        assert resolved.strategy == "rest-direct"
        assert resolved.body == "<p>Body</p>"
        assert resolved.resolved_id == 9
        wp.find_post_by_slug.assert_awaited_once_with("best-blenders", via_relay=False)
        relay.fetch.assert_not_awaited()

    async def test_rest_through_relay_after_direct_failure(self):
        creds = WordPressCredentials(url="https://blog.example", user="editor")
        wp = MagicMock()
        wp.find_post_by_slug = AsyncMock(side_effect=[
            NetworkError("CORS", 0),
            {"id": 3, "content": {"rendered": "relayed"}},
        ])
        resolver = ContentResolver(make_relay(AsyncMock()), creds, wordpress=wp)

        resolved = await resolver.resolve("https://blog.example/post")
        assert resolved.strategy == "rest-relay"
        assert resolved.body == "relayed"

    async def test_unknown_slug_falls_through_to_scrape(self):
        creds = WordPressCredentials(url="https://blog.example", user="editor")
        wp = MagicMock()
        wp.find_post_by_slug = AsyncMock(return_value=None)
        resolver = ContentResolver(make_relay(AsyncMock(return_value=PAGE)), creds, wordpress=wp)

        resolved = await resolver.resolve("https://blog.example/post")
        assert resolved.strategy == "scrape"

    @pytest.mark.parametrize("post", ["oops", {"id": "abc", "content": {"rendered": "x"}}])
    async def test_malformed_rest_post_falls_through_to_scrape(self, post):
        creds = WordPressCredentials(url="https://blog.example", user="editor")
        wp = MagicMock()
        wp.find_post_by_slug = AsyncMock(return_value=post)
        resolver = ContentResolver(make_relay(AsyncMock(return_value=PAGE)), creds, wordpress=wp)

        resolved = await resolver.resolve("https://blog.example/post")

        assert resolved.strategy == "scrape"
        assert resolved.resolved_id == 42
        assert wp.find_post_by_slug.await_count == 2

    async def test_all_strategies_fail(self):
        relay = make_relay(AsyncMock(side_effect=RelayExhaustionError("down", attempted=4)))
        resolver = ContentResolver(relay)

        with pytest.raises(AcquisitionError, match="Target unreachable via all protocols"):
            await resolver.resolve("https://blog.example/post")

    async def test_fetch_page_content_titles_from_slug(self):
        resolver = ContentResolver(make_relay(AsyncMock(return_value=PAGE)))
        page = await resolver.fetch_page_content("https://blog.example/best-coffee-makers")
        assert page.title == "Best Coffee Makers"
        assert page.id == 42
