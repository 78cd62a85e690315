"""Frontmatter splitting and metadata extractors for Quillpress.

This module contains the frontmatter splitter and the implementations of the
MetadataExtractor protocol. Each extractor handles a single piece of post
metadata and the composite merges their results.

The frontmatter format is deliberately minimal: a block between ``---`` marker
lines holding ``key: value`` lines, where a value is either a scalar string or
a bracketed, comma-separated list of strings. It is not YAML.

Key functions and classes:
- split_frontmatter: Separate the metadata block from the document body.
- parse_metadata: Parse the lines of a metadata block.
- FrontmatterExtractor, TitleExtractor, DateExtractor, TagExtractor,
  DraftExtractor, AuthorExtractor, DescriptionExtractor: Single-purpose extractors.
- CompositeMetadataExtractor: Runs extractors in order and merges their output.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Union

from .utils import (
    extract_date_from_name,
    first_paragraph,
    is_truthy,
    parse_date,
    titleize,
)

FRONTMATTER_MARKER = "---"

MetadataValue = Union[str, list[str]]


def parse_metadata(block: str) -> dict[str, MetadataValue]:
    """Parse the lines of a frontmatter block.

    Each non-empty line is split on its first colon. A value wrapped in square
    brackets becomes a list of trimmed, comma-separated items (empty items are
    dropped). Any other value is a string with one layer of surrounding double
    quotes removed. Lines without a colon, or with an empty key, are ignored.

    Args:
        block: Text between the frontmatter markers.

    Returns:
        Mapping of keys to string or list-of-string values.

    Examples:
        >>> parse_metadata('title: "Hi"\\ntags: [a, b]')
        {'title': 'Hi', 'tags': ['a', 'b']}
    """
    metadata: dict[str, MetadataValue] = {}
    for line in block.splitlines():
        if not line.strip() or ":" not in line:
            continue
        key, value = line.split(":", 1)
        key = key.strip()
        value = value.strip()
        if not key:
            continue
        if value.startswith("[") and value.endswith("]"):
            items = [item.strip() for item in value[1:-1].split(",")]
            metadata[key] = [item for item in items if item]
            continue
        if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
            value = value[1:-1]
        metadata[key] = value
    return metadata


def split_frontmatter(text: str) -> tuple[dict[str, MetadataValue], str]:
    """Split a document into its metadata mapping and body.

    The content is split on every ``---``. When that yields at least three parts
    and the first is blank, the second part is the metadata block and the
    remaining parts, joined back with the marker, form the body. Anything else
    means there is no metadata and the whole input is the body.

    Never raises.

    Args:
        text: Raw file content.

    Returns:
        Tuple of (metadata dict, body text).
    """
    parts = text.split(FRONTMATTER_MARKER)
    if len(parts) >= 3 and not parts[0].strip():
        return parse_metadata(parts[1]), FRONTMATTER_MARKER.join(parts[2:])
    return {}, text


class FrontmatterExtractor:
    """Extracts the frontmatter mapping and the remaining body."""

    def extract(self, content: str, path: Path) -> dict[str, Any]:
        """Extract frontmatter from content.

        Args:
            content: Source content with potential frontmatter.
            path: Path to the source file (unused).

        Returns:
            Dictionary with 'frontmatter' and 'body' keys.
        """
        frontmatter, body = split_frontmatter(content)
        return {"frontmatter": frontmatter, "body": body}


def _scalar(value: MetadataValue | None) -> str:
    if isinstance(value, list):
        return ", ".join(value)
    return value or ""


class TitleExtractor:
    """Extracts the post title.

    Prefers the ``title`` metadata key, then the first level-1 heading in the
    body, falling back to titleizing the filename.
    """

    def extract(self, content: str, path: Path) -> dict[str, Any]:
        """Extract title from content.

        Args:
            content: Source content.
            path: Path to the source file.

        Returns:
            Dictionary with 'title' key.
        """
        metadata, body = split_frontmatter(content)
        title = _scalar(metadata.get("title")).strip()
        if title:
            return {"title": title}
        for line in body.splitlines():
            stripped = line.strip()
            if stripped.startswith("# "):
                return {"title": stripped[2:].strip()}
        return {"title": titleize(path.name)}


class DateExtractor:
    """Extracts the publication date.

    Looks at the ``date`` metadata key, then a YYYY-MM-DD filename prefix,
    falling back to the file modification time.
    """

    def extract(self, content: str, path: Path) -> dict[str, Any]:
        """Extract date from metadata, filename or file.

        Args:
            content: Source content.
            path: Path to the source file.

        Returns:
            Dictionary with 'date' key.
        """
        metadata, _ = split_frontmatter(content)
        date = parse_date(_scalar(metadata.get("date")))
        if date is None:
            date = extract_date_from_name(path.stem)
        if date is None:
            date = datetime.fromtimestamp(path.stat().st_mtime)
        return {"date": date}


class TagExtractor:
    """Extracts tags from the ``tags`` metadata key.

    Accepts the bracketed list form or a comma-separated scalar.
    """

    def extract(self, content: str, path: Path) -> dict[str, Any]:
        metadata, _ = split_frontmatter(content)
        raw = metadata.get("tags", [])
        if isinstance(raw, str):
            raw = [item.strip() for item in raw.split(",")]
        tags: list[str] = []
        for tag in raw:
            if tag and tag not in tags:
                tags.append(tag)
        return {"tags": tags}


class DraftExtractor:
    """Flags drafts from a truthy ``draft`` key or a leading underscore in the filename."""

    def extract(self, content: str, path: Path) -> dict[str, Any]:
        metadata, _ = split_frontmatter(content)
        draft = is_truthy(metadata.get("draft")) or path.name.startswith("_")
        return {"draft": draft}


class AuthorExtractor:
    """Extracts the ``author`` metadata key, using a site-wide default when absent."""

    def __init__(self, default: str = ""):
        self.default = default

    def extract(self, content: str, path: Path) -> dict[str, Any]:
        metadata, _ = split_frontmatter(content)
        author = _scalar(metadata.get("author")).strip()
        return {"author": author or self.default}


class DescriptionExtractor:
    """Extracts a short description.

    Uses the ``description`` metadata key when present, otherwise the first
    prose paragraph of the body with Markdown markers removed, truncated to
    160 characters.
    """

    def extract(self, content: str, path: Path) -> dict[str, Any]:
        """Extract the description from content.

        Args:
            content: Source content.
            path: Path to the source file (unused).

        Returns:
            Dictionary with 'description' key.
        """
        metadata, body = split_frontmatter(content)
        description = _scalar(metadata.get("description")).strip()
        return {"description": description or first_paragraph(body)}


class CompositeMetadataExtractor:
    """Combines multiple metadata extractors.

    This class aggregates multiple extractors and runs them
    all on the content, merging their results. Later extractors
    override keys set by earlier ones.
    """

    def __init__(self, extractors: list | None = None, default_author: str = ""):
        """Initialize with a list of extractors.

        Args:
            extractors: List of MetadataExtractor implementations.
                       If None, uses default extractors.
            default_author: Author used when a post does not name one.
        """
        if extractors is None:
            self._extractors = [
                FrontmatterExtractor(),
                TitleExtractor(),
                DateExtractor(),
                TagExtractor(),
                DraftExtractor(),
                AuthorExtractor(default_author),
                DescriptionExtractor(),
            ]
        else:
            self._extractors = list(extractors)

    def add_extractor(self, extractor) -> None:
        """Add an extractor to the composite.

        Args:
            extractor: A MetadataExtractor implementation.
        """
        self._extractors.append(extractor)

    def extract(self, content: str, path: Path) -> dict[str, Any]:
        """Extract all metadata from content.

        Args:
            content: Source content.
            path: Path to the source file.

        Returns:
            Dictionary with all extracted metadata.
        """
        result: dict[str, Any] = {}
        for extractor in self._extractors:
            result.update(extractor.extract(content, path))
        return result
