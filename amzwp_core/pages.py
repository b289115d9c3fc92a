"""Working set of discovered and manually added pages."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .errors import ValidationError
from .models import BlogPost
from .urls import next_identifier, title_from_url, validate_manual_url


@dataclass
class BulkImportReport:
    added: List[BlogPost] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


class PageRegistry:
    """Pages keyed by id, with URL uniqueness checked case-insensitively."""

    def __init__(self, posts: Iterable[BlogPost] = ()):
        self._posts: Dict[int, BlogPost] = {}
        self.replace_all(posts)

    def __len__(self):
        return len(self._posts)

    def __iter__(self):
        return iter(list(self._posts.values()))

    @property
    def posts(self) -> List[BlogPost]:
        return list(self._posts.values())

    @property
    def ids(self) -> set:
        return set(self._posts)

    @property
    def urls(self) -> set:
        return {p.url.lower() for p in self._posts.values()}

    def get(self, post_id: int) -> Optional[BlogPost]:
        return self._posts.get(post_id)

    def replace_all(self, posts: Iterable[BlogPost]):
        self._posts = {p.id: p for p in posts}

    def upsert(self, post: BlogPost):
        self._posts[post.id] = post

    def remove(self, post_id: int) -> bool:
        return self._posts.pop(post_id, None) is not None

    def add_url(self, url: str) -> BlogPost:
        """Validate and add one URL as a new page.

        Raises:
            ValidationError: invalid URL or already in the list
        """
        check = validate_manual_url(url)
        if not check.is_valid:
            raise ValidationError(check.error, field="url")
        if check.normalized_url.lower() in self.urls:
            raise ValidationError("URL already exists in the list", field="url")
        post = BlogPost(
            id=next_identifier(self._posts),
            title=title_from_url(check.normalized_url),
            url=check.normalized_url,
        )
        self._posts[post.id] = post
        return post

    def add_many(self, text_or_lines) -> BulkImportReport:
        """Bulk import, one URL per line; invalid and duplicate lines are skipped."""
        lines = text_or_lines.splitlines() if isinstance(text_or_lines, str) else list(text_or_lines)
        report = BulkImportReport()
        for line in (ln.strip() for ln in lines):
            if not line:
                continue
            try:
                report.added.append(self.add_url(line))
            except ValidationError:
                report.skipped.append(line)
        return report


def load_registry(path: Path) -> PageRegistry:
    """Registry saved by ``save_registry``; empty when the file does not exist."""
    path = Path(path)
    if not path.exists():
        return PageRegistry()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return PageRegistry(BlogPost.from_dict(p) for p in data.get("posts") or [])
    except (OSError, ValueError, TypeError, KeyError, AttributeError) as e:
        raise ValidationError(f"Page list {path} is unreadable: {e}", field="pages") from e


def save_registry(registry: PageRegistry, path: Path):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {"posts": [p.to_dict(include_content=False) for p in registry]}
    tmp = path.with_suffix(".tmp")
    tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    tmp.replace(path)
