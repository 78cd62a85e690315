"""Protocol definitions for Quillpress.

This module defines the interfaces used at the pluggable seams of the
generator: content rendering, metadata extraction, post discovery and
construction, and page templating. Concrete classes satisfy them
structurally, so tests and extensions can substitute their own versions.
"""

from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .collections import Pager
    from .content import Post


@runtime_checkable
class ContentRenderer(Protocol):
    """Protocol for turning a post body into an HTML fragment."""

    @abstractmethod
    def can_render(self, path: Path) -> bool:
        """Check if this renderer can handle the given file."""
        ...

    @abstractmethod
    def render(self, content: str) -> str:
        """Render a body to HTML.

        Args:
            content: Body text without frontmatter.

        Returns:
            HTML fragment.
        """
        ...

    @property
    @abstractmethod
    def source_type(self) -> str:
        """Return the source type identifier (e.g., 'markdown')."""
        ...


@runtime_checkable
class MetadataExtractor(Protocol):
    """Protocol for extracting metadata from a post source."""

    @abstractmethod
    def extract(self, content: str, path: Path) -> dict[str, Any]:
        """Extract metadata from content.

        Args:
            content: Full source text, frontmatter included.
            path: Path to the source file.

        Returns:
            Dictionary of extracted metadata.
        """
        ...


@runtime_checkable
class ContentLoader(Protocol):
    """Protocol for discovering post source files."""

    @abstractmethod
    def iter_files(self) -> list[Path]:
        ...


@runtime_checkable
class PostFactory(Protocol):
    """Protocol for building Post objects from source files."""

    @abstractmethod
    def build(self, path: Path) -> Post:
        ...


@runtime_checkable
class TemplateRenderer(Protocol):
    """Protocol for rendering complete pages.

    This defines the interface the build uses, allowing template engines
    other than Jinja2.
    """

    @abstractmethod
    def render_post(self, post: Post, prev_post: Post | None, next_post: Post | None) -> str:
        """Render a post page with its navigation links."""
        ...

    @abstractmethod
    def render_index(self, pager: Pager) -> str:
        """Render one page of the post listing."""
        ...

    @abstractmethod
    def render_string(self, template: str, context: dict[str, Any]) -> str:
        """Render a template string.

        Args:
            template: Template string to render.
            context: Variables to make available in the template.

        Returns:
            Rendered string.
        """
        ...
