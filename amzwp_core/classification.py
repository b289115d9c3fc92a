"""Post classification: type, monetization status and optimization priority."""

import re
from dataclasses import dataclass

from .models import MonetizationStatus, PostPriority, PostType

AFFILIATE_MARKERS_RE = re.compile(
    r"amazon\.com/dp/|amzn\.to/|tag=|s-box|t-link-box|auth-v|tact-v", re.IGNORECASE
)
REVIEW_CUES = ("review", " vs ", "compare", "comparison")
LISTICLE_CUES = ("best ", "top ", " list")
SUBSTANTIAL_CONTENT_CHARS = 1000


@dataclass(frozen=True)
class PostClassification:
    priority: PostPriority
    post_type: PostType
    status: MonetizationStatus


def has_affiliate_markers(html: str) -> bool:
    return bool(AFFILIATE_MARKERS_RE.search(html or ""))


def calculate_post_priority(title: str, html: str) -> PostClassification:
    t = (title or "").lower()
    html = html or ""
    monetized = has_affiliate_markers(html)

    if any(cue in t for cue in REVIEW_CUES):
        post_type = PostType.REVIEW
    elif any(cue in t for cue in LISTICLE_CUES):
        post_type = PostType.LISTICLE
    else:
        post_type = PostType.INFO

    # commercial-intent posts without links are the most urgent
    if post_type in (PostType.REVIEW, PostType.LISTICLE):
        priority = PostPriority.MEDIUM if monetized else PostPriority.CRITICAL
    elif not monetized and len(html) > SUBSTANTIAL_CONTENT_CHARS:
        priority = PostPriority.HIGH
    else:
        priority = PostPriority.LOW

    return PostClassification(
        priority=priority,
        post_type=post_type,
        status=MonetizationStatus.MONETIZED if monetized else MonetizationStatus.OPPORTUNITY,
    )
