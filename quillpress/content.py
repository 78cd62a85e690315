"""Content processing for Quillpress.

This module handles discovery and loading of Markdown posts. It extracts
metadata, expands shortcodes, renders the body and creates Post objects.

Key classes:
- Post: Dataclass representing one blog post with its metadata and HTML.
- PostLoader: Discovers post source files under the posts directory.
- PostBuilder: Builds a Post from a single source file.
- ContentProcessor: Facade that loads every post of a site.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from .extractors import CompositeMetadataExtractor
from .markdown import MarkdownRenderer
from .protocols import ContentLoader, ContentRenderer, MetadataExtractor, PostFactory
from .shortcodes import ShortcodeRegistry, default_shortcodes
from .utils import is_internal_path, is_markdown, slugify


@dataclass
class Post:
    """Represents a blog post with all its metadata and content.

    Attributes:
        title: Human-readable title of the post.
        slug: URL-friendly slug.
        url: Root-relative URL of the rendered page.
        date: Publication date.
        author: Author name.
        tags: Tags from the post metadata.
        draft: Whether this post is a draft.
        description: Short description for listings and feeds.
        body: Markdown body without frontmatter.
        content: Rendered HTML fragment.
        path: Path to the source file.
        mtime_ns: Source modification time, used by the build cache.
        metadata: Raw frontmatter mapping.
    """

    title: str
    slug: str
    url: str
    date: datetime
    author: str
    tags: list[str]
    draft: bool
    description: str
    body: str
    content: str
    path: Path
    mtime_ns: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def output_name(self) -> str:
        """Output path of the page relative to the output directory."""
        return self.url.lstrip("/")


class PostLoader:
    """Discovers Markdown posts in a directory.

    Directories whose name starts with ``_`` are skipped. Files are returned
    in path order so builds are deterministic.

    Attributes:
        posts_dir: Directory containing post sources.
    """

    def __init__(self, posts_dir: Path):
        self.posts_dir = posts_dir

    def iter_files(self) -> list[Path]:
        """Return all post source files.

        Returns:
            Sorted list of paths to Markdown files.
        """
        files: list[Path] = []
        for path in sorted(self.posts_dir.rglob("*")):
            if path.is_dir() or not is_markdown(path):
                continue
            rel = path.relative_to(self.posts_dir)
            if is_internal_path(rel.parent):
                continue
            files.append(path)
        return files


class PostBuilder:
    """Builds Post objects from source files.

    Attributes:
        metadata_extractor: Composite metadata extractor.
        renderer: Markdown renderer.
        shortcodes: Shortcode registry applied before rendering.
    """

    def __init__(
        self,
        metadata_extractor: MetadataExtractor | None = None,
        renderer: ContentRenderer | None = None,
        shortcodes: ShortcodeRegistry | None = None,
    ):
        self.metadata_extractor = metadata_extractor or CompositeMetadataExtractor()
        self.renderer = renderer or MarkdownRenderer()
        self.shortcodes = shortcodes or default_shortcodes

    def build(self, path: Path) -> Post:
        """Build a Post from a source file.

        Args:
            path: Path to the Markdown source.

        Returns:
            Post object with rendered content.
        """
        raw = path.read_text(encoding="utf-8")
        metadata = self.metadata_extractor.extract(raw, path)
        frontmatter = metadata.get("frontmatter", {})
        body = metadata.get("body", raw)

        content = self.renderer.render(self.shortcodes.expand(body))
        slug_source = frontmatter.get("slug")
        slug = slugify(slug_source if isinstance(slug_source, str) and slug_source else path.stem)

        return Post(
            title=metadata.get("title", ""),
            slug=slug,
            url=f"/{slug}.html",
            date=metadata.get("date") or datetime.fromtimestamp(path.stat().st_mtime),
            author=metadata.get("author", ""),
            tags=metadata.get("tags", []),
            draft=metadata.get("draft", False),
            description=metadata.get("description", ""),
            body=body,
            content=content,
            path=path,
            mtime_ns=path.stat().st_mtime_ns,
            metadata=frontmatter,
        )


class ContentProcessor:
    """Facade for loading every post of a site.

    Attributes:
        posts_dir: Directory containing post sources.
    """

    def __init__(
        self,
        posts_dir: Path,
        loader: ContentLoader | None = None,
        builder: PostFactory | None = None,
    ):
        self.posts_dir = posts_dir
        self._loader = loader or PostLoader(posts_dir)
        self._builder = builder or PostBuilder()

    def load(self, include_drafts: bool = False) -> list[Post]:
        """Load all posts.

        Args:
            include_drafts: Whether to keep posts flagged as drafts.

        Returns:
            List of Post objects in source path order.
        """
        posts: list[Post] = []
        for path in self._loader.iter_files():
            post = self._builder.build(path)
            if post.draft and not include_drafts:
                continue
            posts.append(post)
        return posts
