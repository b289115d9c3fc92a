"""Tests for the content audit."""

import asyncio

from amzwp_core.audit import ContentAuditor
from amzwp_core.concurrency import AuditController
from amzwp_core.content import PageContent
from amzwp_core.errors import AcquisitionError
from amzwp_core.models import BlogPost, MonetizationStatus, PostPriority, PostType

LINKED = '<a href="https://amazon.com/dp/B08N5WRWNW">Sony</a>'


class FakeResolver:
    def __init__(self, pages, delay=0.0):
        self.pages = pages
        self.delay = delay
        self.requested = []

    async def fetch_page_content(self, url):
        self.requested.append(url)
        if self.delay:
            await asyncio.sleep(self.delay)
        body = self.pages.get(url)
        if body is None:
            raise AcquisitionError("Content acquisition failed: Target unreachable via all protocols.")
        return PageContent(id=1, title="", content=body)


def posts(*specs):
    return [BlogPost(i + 1, title, f"https://example.com/p{i}") for i, title in enumerate(specs)]


async def test_classifies_with_content():
    items = posts("Best Blenders", "Sony WH-1000XM5 Review", "How Espresso Works")
    resolver = FakeResolver({
        items[0].url: LINKED,
        items[1].url: "<p>no links</p>",
        items[2].url: "<p>" + "x" * 2000 + "</p>",
    })

    report = await ContentAuditor(resolver, concurrency=2).audit(items)

    by_title = {p.title: p for p in report.posts}
    assert by_title["Best Blenders"].monetization_status == MonetizationStatus.MONETIZED
    assert by_title["Best Blenders"].priority == PostPriority.MEDIUM
    assert by_title["Sony WH-1000XM5 Review"].priority == PostPriority.CRITICAL
    assert by_title["How Espresso Works"].priority == PostPriority.HIGH
    assert by_title["Best Blenders"].content == LINKED
    assert report.stats.succeeded == 3
    assert not report.cancelled


async def test_unreachable_page_keeps_title_classification():
    items = posts("Coffee Grinder Review")
    report = await ContentAuditor(FakeResolver({})).audit(items)

    post = report.posts[0]
    assert post.post_type == PostType.REVIEW
    assert post.priority == PostPriority.CRITICAL
    assert report.unresolved == [items[0].url]


async def test_progress_and_snapshots():
    items = posts(*[f"Post {i}" for i in range(5)])
    resolver = FakeResolver({p.url: "<p>x</p>" for p in items})
    progress = []
    snapshots = []

    await ContentAuditor(resolver, concurrency=2, snapshot_every=2).audit(
        items, on_progress=progress.append, on_snapshot=snapshots.append
    )

    assert [p.current for p in progress] == [1, 2, 3, 4, 5]
    assert progress[-1].percentage == 100
    # title pass, after 2, after 4, final
    assert len(snapshots) == 4
    assert all(len(s) == 5 for s in snapshots)


async def test_new_audit_supersedes_running_one():
    controller = AuditController()
    items = posts(*[f"Post {i}" for i in range(6)])
    slow = FakeResolver({p.url: "<p>x</p>" for p in items}, delay=0.05)
    fast = FakeResolver({p.url: "<p>x</p>" for p in items})

    first = asyncio.ensure_future(ContentAuditor(slow, concurrency=1, controller=controller).audit(items))
    await asyncio.sleep(0.01)
    second = await ContentAuditor(fast, concurrency=3, controller=controller).audit(items)
    first_report = await first

    assert first_report.cancelled
    assert first_report.stats.skipped > 0
    assert len(slow.requested) < len(items)
    assert not second.cancelled
    assert second.stats.succeeded == 6


async def test_posts_sharing_a_url_are_all_reported():
    items = [
        BlogPost(1, "Best Blenders", "https://example.com/shared"),
        BlogPost(2, "Blender Review", "https://example.com/shared"),
        BlogPost(3, "Draft One", ""),
        BlogPost(4, "Draft Two", ""),
    ]
    resolver = FakeResolver({"https://example.com/shared": LINKED})

    report = await ContentAuditor(resolver, concurrency=2).audit(items)

    assert sorted(p.id for p in report.posts) == [1, 2, 3, 4]
    assert report.unresolved == ["", ""]
