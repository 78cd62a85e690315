from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass

from .content import Post
from .utils import slugify


@dataclass
class Pager:
    """One page of a paginated post listing."""

    number: int
    total: int
    posts: PostCollection

    @property
    def url(self) -> str:
        return page_url(self.number)

    @property
    def prev_url(self) -> str | None:
        return page_url(self.number - 1) if self.number > 1 else None

    @property
    def next_url(self) -> str | None:
        return page_url(self.number + 1) if self.number < self.total else None


def page_url(number: int) -> str:
    return "/index.html" if number == 1 else f"/page/{number}.html"


class PostCollection(Sequence[Post]):
    """Ordered list of posts with the navigation helpers the build needs."""

    def __init__(self, posts: Iterable[Post]):
        self._posts = list(posts)

    def __iter__(self) -> Iterator[Post]:
        return iter(self._posts)

    def __len__(self) -> int:
        return len(self._posts)

    def __getitem__(self, item):
        return self._posts[item]

    def with_tag(self, tag: str) -> PostCollection:
        return PostCollection(p for p in self._posts if tag in p.tags)

    def drafts(self) -> PostCollection:
        return PostCollection(p for p in self._posts if p.draft)

    def published(self) -> PostCollection:
        return PostCollection(p for p in self._posts if not p.draft)

    def sorted(self) -> PostCollection:
        """Newest first; posts sharing a date are ordered by slug."""
        by_slug = sorted(self._posts, key=lambda p: p.slug)
        return PostCollection(sorted(by_slug, key=lambda p: p.date, reverse=True))

    def latest(self, count: int = 5) -> PostCollection:
        return PostCollection(self.sorted()[:count])

    def neighbours(self, post: Post) -> tuple[Post | None, Post | None]:
        """Return the posts listed before and after ``post`` in this collection."""
        index = self._posts.index(post)
        prev_post = self._posts[index - 1] if index > 0 else None
        next_post = self._posts[index + 1] if index < len(self._posts) - 1 else None
        return prev_post, next_post

    def paginate(self, per_page: int) -> list[Pager]:
        """Split the collection into pages; an empty collection still yields one page."""
        per_page = max(per_page, 1)
        chunks = [self._posts[i : i + per_page] for i in range(0, len(self._posts), per_page)]
        if not chunks:
            chunks = [[]]
        total = len(chunks)
        return [
            Pager(number=n, total=total, posts=PostCollection(chunk))
            for n, chunk in enumerate(chunks, start=1)
        ]

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"PostCollection({len(self._posts)} posts)"


class TagCollection(Mapping[str, PostCollection]):
    """Mapping of tag name to PostCollection, iterated in tag order."""

    def __init__(self, mapping: dict[str, Iterable[Post]]):
        self._mapping = {k: PostCollection(mapping[k]) for k in sorted(mapping, key=str.lower)}

    @classmethod
    def from_posts(cls, posts: Iterable[Post]) -> TagCollection:
        mapping: dict[str, list[Post]] = {}
        for post in posts:
            for tag in post.tags:
                mapping.setdefault(tag, []).append(post)
        return cls(mapping)

    @staticmethod
    def url_for_tag(tag: str) -> str:
        return f"/tags/{slugify(tag)}.html"

    def __getitem__(self, key: str) -> PostCollection:
        return self._mapping[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._mapping)

    def __len__(self) -> int:
        return len(self._mapping)

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"TagCollection({len(self._mapping)} tags)"
