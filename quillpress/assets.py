"""Static asset copying for Quillpress.

Theme files that are not templates (stylesheets, scripts, images) and the
project's ``static/`` directory are copied into the output directory. Files
from the packaged default theme are copied first, so a project theme file
with the same relative path replaces it, and ``static/`` files win over both.

Key class:
- AssetPipeline: Copies theme assets and static files.
"""

from __future__ import annotations

import shutil
from pathlib import Path

TEMPLATE_SUFFIXES = frozenset({".html", ".htm", ".j2", ".jinja"})


class AssetPipeline:
    """Copies static assets into the built site.

    Attributes:
        sources: Directories copied in order; later ones overwrite earlier ones.
        output_dir: Directory receiving the files.
    """

    def __init__(self, theme_dirs: list[Path], static_dir: Path, output_dir: Path):
        self.theme_dirs = theme_dirs
        self.static_dir = static_dir
        self.output_dir = output_dir

    def run(self) -> list[Path]:
        """Copy every asset.

        Returns:
            Output paths that were written, in copy order.
        """
        copied: list[Path] = []
        for theme_dir in self.theme_dirs:
            copied.extend(self._copy_tree(theme_dir, skip_templates=True))
        copied.extend(self._copy_tree(self.static_dir, skip_templates=False))
        return copied

    def _copy_tree(self, source_dir: Path, skip_templates: bool) -> list[Path]:
        if not source_dir.exists():
            return []
        copied = []
        for item in sorted(source_dir.rglob("*")):
            if item.is_dir():
                continue
            if skip_templates and item.suffix.lower() in TEMPLATE_SUFFIXES:
                continue
            dest = self.output_dir / item.relative_to(source_dir)
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(item, dest)
            copied.append(dest)
        return copied
