#!/usr/bin/env python3
"""
Content audit: classify every discovered page by monetization opportunity.

Pages are first classified from their title alone, then each page body is
resolved (bounded concurrency) and the page is classified again with its
content. A page whose content cannot be acquired keeps the title-only
classification. Starting a new audit cancels the one in progress.
"""

from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional

from .classification import calculate_post_priority
from .concurrency import AuditController, RunStats, run_concurrent
from .errors import AcquisitionError
from .models import BlogPost
from .diagnostics import get_logger

logger = get_logger(__name__)

SNAPSHOT_EVERY = 10


@dataclass(frozen=True)
class AuditProgress:
    current: int
    total: int

    @property
    def percentage(self) -> int:
        return (self.current * 100) // self.total if self.total else 100


@dataclass
class AuditReport:
    posts: List[BlogPost] = field(default_factory=list)
    stats: RunStats = field(default_factory=RunStats)
    unresolved: List[str] = field(default_factory=list)
    cancelled: bool = False


def classify(post: BlogPost, html: str = "") -> BlogPost:
    c = calculate_post_priority(post.title, html)
    return replace(
        post,
        priority=c.priority,
        post_type=c.post_type,
        monetization_status=c.status,
    )


class ContentAuditor:
    def __init__(
        self,
        resolver,
        concurrency: int = 10,
        controller: Optional[AuditController] = None,
        snapshot_every: int = SNAPSHOT_EVERY,
    ):
        self.resolver = resolver
        self.concurrency = concurrency
        self.controller = controller or AuditController()
        self.snapshot_every = snapshot_every

    async def audit(
        self,
        posts: List[BlogPost],
        on_progress: Optional[Callable[[AuditProgress], None]] = None,
        on_snapshot: Optional[Callable[[List[BlogPost]], None]] = None,
    ) -> AuditReport:
        """Resolve and classify ``posts``.

        ``on_progress`` fires after every page; ``on_snapshot`` receives the
        full page list after the title pass, every ``snapshot_every`` pages and
        at the end. Completion order is arbitrary, so both callbacks get
        whole-state values rather than deltas.
        """
        token = self.controller.begin()
        by_id: Dict[int, BlogPost] = {p.id: classify(p) for p in posts}
        targets = list(by_id.values())
        total = len(targets)
        processed = 0
        unresolved: List[str] = []

        if on_snapshot:
            on_snapshot(list(by_id.values()))

        async def process(post: BlogPost):
            nonlocal processed
            try:
                page = await self.resolver.fetch_page_content(post.url)
                if token.cancelled:
                    return
                by_id[post.id] = replace(classify(post, page.content), content=page.content)
            except AcquisitionError as e:
                unresolved.append(post.url)
                logger.info(f"Keeping title-only classification for {post.url}: {e}")
            finally:
                processed += 1
                if not token.cancelled:
                    if on_progress:
                        on_progress(AuditProgress(processed, total))
                    if on_snapshot and (processed % self.snapshot_every == 0 or processed == total):
                        on_snapshot(list(by_id.values()))

        stats = await run_concurrent(targets, self.concurrency, process, token)
        report = AuditReport(
            posts=list(by_id.values()),
            stats=stats,
            unresolved=unresolved,
            cancelled=token.cancelled,
        )
        if report.cancelled:
            logger.info("Audit superseded, results discarded")
        else:
            logger.info(
                f"Audit complete: {total} pages, {len(unresolved)} unresolved, {stats.failed} failed"
            )
        return report
