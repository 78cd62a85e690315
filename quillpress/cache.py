"""Incremental build cache for Quillpress.

The cache remembers a fingerprint for every post page written by the last
build. When a post's fingerprint is unchanged and its output file still exists,
the build skips rendering and writing that page.

A fingerprint covers everything that affects a post page: the source file's
modification time, the slugs and titles of the neighbouring posts (for prev/next links),
the theme signature and the site configuration.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

CACHE_FILENAME = ".quillpress-cache.json"


def theme_signature(*theme_dirs: Path) -> tuple:
    """Return a signature of every file in the given theme directories.

    Args:
        theme_dirs: Directories to scan; missing directories are skipped.

    Returns:
        Tuple of ``(relative path, mtime_ns, size)`` entries.
    """
    entries: list[tuple] = []
    for root in theme_dirs:
        if not root.exists():
            continue
        for path in sorted(root.rglob("*")):
            if path.is_dir():
                continue
            try:
                stat = path.stat()
            except OSError:
                continue
            entries.append((str(path.relative_to(root)), stat.st_mtime_ns, stat.st_size))
    return tuple(entries)


class BuildCache:
    """Fingerprints of the pages written by the previous build.

    Attributes:
        path: Location of the JSON cache file.
        entries: Output path (relative to the output directory) to fingerprint.
    """

    def __init__(self, output_dir: Path):
        self.output_dir = output_dir
        self.path = output_dir / CACHE_FILENAME
        self.entries: dict[str, str] = {}

    def load(self) -> BuildCache:
        """Read the cache file; a missing or unreadable file yields an empty cache."""
        if not self.path.exists():
            return self
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return self
        if isinstance(payload, dict):
            self.entries = {str(k): str(v) for k, v in payload.items()}
        return self

    def save(self) -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self.entries, indent=2, sort_keys=True), encoding="utf-8")

    @staticmethod
    def fingerprint(
        mtime_ns: int,
        neighbours: tuple,
        theme: tuple,
        config: dict[str, Any],
    ) -> str:
        """Compute the fingerprint of one post page.

        Args:
            mtime_ns: Source file modification time.
            neighbours: Keys of the previous and next posts, as built from
                their slugs and titles.
            theme: Result of ``theme_signature``.
            config: Site configuration.

        Returns:
            Hex digest.
        """
        payload = json.dumps(
            [mtime_ns, list(neighbours), [list(e) for e in theme], config],
            sort_keys=True,
            default=str,
        )
        return hashlib.sha1(payload.encode("utf-8")).hexdigest()

    def is_fresh(self, output_name: str, fingerprint: str) -> bool:
        """Whether ``output_name`` was written with ``fingerprint`` and still exists."""
        return (
            self.entries.get(output_name) == fingerprint
            and (self.output_dir / output_name).exists()
        )

    def record(self, output_name: str, fingerprint: str) -> None:
        self.entries[output_name] = fingerprint

    def retain(self, output_names: list[str]) -> None:
        """Drop entries for pages no longer produced by the build."""
        keep = set(output_names)
        self.entries = {k: v for k, v in self.entries.items() if k in keep}
