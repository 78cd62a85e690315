"""Feed generation for Quillpress.

This module generates the auxiliary files published next to the rendered
posts: an RSS 2.0 feed and a JSON search index. Feed generation is kept
separate from build orchestration, and new formats are added by subclassing
FeedGenerator and registering the subclass.

Classes:
    FeedGenerator: Abstract base class for feed generators.
    RSSGenerator: Generates rss.xml.
    SearchIndexGenerator: Generates search.json.
    FeedRegistry: Registry for managing feed generators.

Functions:
    create_default_feed_registry: Create a registry with default generators.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .html_utils import escape_html

if TYPE_CHECKING:
    from .content import Post

RFC_822 = "%a, %d %b %Y %H:%M:%S +0000"


class FeedGenerator(ABC):
    """Abstract base class for feed generators."""

    @property
    @abstractmethod
    def filename(self) -> str:
        """Return the output filename for this feed."""
        ...

    @abstractmethod
    def generate(self, posts: list[Post], config: dict[str, Any]) -> str | None:
        """Generate feed content from posts.

        Args:
            posts: Published posts, newest first.
            config: Site configuration.

        Returns:
            Feed content, or None when the feed cannot be generated
            (e.g., missing required configuration).
        """
        ...

    def write(self, output_dir: Path, posts: list[Post], config: dict[str, Any]) -> bool:
        """Generate and write the feed to the output directory.

        Returns:
            True if the feed was written, False if skipped.
        """
        content = self.generate(posts, config)
        if content is None:
            return False
        (output_dir / self.filename).write_text(content, encoding="utf-8")
        return True


class RSSGenerator(FeedGenerator):
    """Generates an RSS 2.0 feed of the newest posts.

    Requires ``url`` in the configuration to build absolute links; the number
    of items is capped by ``rss_limit``.
    """

    @property
    def filename(self) -> str:
        return "rss.xml"

    def generate(self, posts: list[Post], config: dict[str, Any]) -> str | None:
        base_url = str(config.get("url") or "").rstrip("/")
        if not base_url:
            return None
        limit = int(config.get("rss_limit") or 20)
        title = escape_html(str(config.get("title") or "Quillpress Feed"))
        description = escape_html(str(config.get("description") or ""))

        newest = sorted(posts, key=lambda p: p.date, reverse=True)[:limit]
        items = []
        for post in newest:
            link = escape_html(f"{base_url}{post.url}")
            items.append(
                f"<item><title>{escape_html(post.title)}</title><link>{link}</link>"
                f"<guid>{link}</guid>"
                f"<description>{escape_html(post.description or post.title)}</description>"
                f"<pubDate>{post.date.strftime(RFC_822)}</pubDate></item>"
            )

        build_date = datetime.now(timezone.utc).strftime(RFC_822)
        rss = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<rss version="2.0"><channel>',
            f"<title>{title}</title>",
            f"<link>{escape_html(base_url)}</link>",
            f"<description>{description}</description>",
            f"<lastBuildDate>{build_date}</lastBuildDate>",
        ]
        rss.extend(items)
        rss.append("</channel></rss>")
        return "\n".join(rss)


class SearchIndexGenerator(FeedGenerator):
    """Generates a JSON array describing every published post.

    Each entry holds ``title``, ``url``, ``date`` (``YYYY-MM-DD``), ``tags``
    and ``summary``. URLs are root-relative so the index works under any host.
    """

    @property
    def filename(self) -> str:
        return "search.json"

    def generate(self, posts: list[Post], config: dict[str, Any]) -> str | None:
        entries = [
            {
                "title": post.title,
                "url": post.url,
                "date": post.date.strftime("%Y-%m-%d"),
                "tags": list(post.tags),
                "summary": post.description,
            }
            for post in posts
        ]
        return json.dumps(entries, indent=2, ensure_ascii=False)


class FeedRegistry:
    """Registry of feed generators run at the end of a build.

    Attributes:
        _generators: Registered feed generators, in registration order.
    """

    def __init__(self) -> None:
        self._generators: list[FeedGenerator] = []

    def register(self, generator: FeedGenerator) -> None:
        self._generators.append(generator)

    def generate_all(
        self,
        output_dir: Path,
        posts: Iterable[Post],
        config: dict[str, Any],
    ) -> list[str]:
        """Generate all registered feeds.

        Args:
            output_dir: Directory to write feed files to.
            posts: Published posts.
            config: Site configuration.

        Returns:
            Filenames that were written.
        """
        posts_list = list(posts)
        generated = []
        for generator in self._generators:
            if generator.write(output_dir, posts_list, config):
                generated.append(generator.filename)
        return generated


def create_default_feed_registry() -> FeedRegistry:
    """Create a registry with the RSS and search index generators."""
    registry = FeedRegistry()
    registry.register(RSSGenerator())
    registry.register(SearchIndexGenerator())
    return registry
