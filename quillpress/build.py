"""Site building functionality for Quillpress.

This module contains the core logic for building a blog from its Markdown
posts. It loads configuration, processes posts, renders templates and writes
the post pages, paginated listings, tag pages, feeds and static assets.

Key functions:
- build_site: Main function to build the entire site.
- load_config: Loads site configuration from quillpress.yaml.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from jinja2 import TemplateSyntaxError

from .assets import AssetPipeline
from .cache import BuildCache, theme_signature
from .collections import PostCollection, TagCollection
from .content import ContentProcessor, Post, PostBuilder
from .extractors import CompositeMetadataExtractor
from .feeds import create_default_feed_registry
from .markdown import MarkdownRenderer
from .templates import DEFAULT_THEME_DIR, TemplateEngine
from .utils import ensure_clean_dir

CONFIG_FILENAME = "quillpress.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "title": "My Blog",
    "description": "",
    "author": "",
    "url": "",
    "root_url": "",
    "posts_dir": "posts",
    "output_dir": "dist",
    "theme_dir": "theme",
    "static_dir": "static",
    "posts_per_page": 10,
    "rss_limit": 20,
    "port": 4000,
    "ws_port": None,
    "close_unterminated_fences": False,
}


class ConfigError(Exception):
    """Raised when quillpress.yaml cannot be parsed."""


class BuildError(Exception):
    """Error during site build with file context.

    Attributes:
        source_path: Path to the source file that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


@dataclass
class BuildResult:
    """Result of a site build operation.

    Attributes:
        posts: Published posts in listing order (newest first).
        output_dir: Directory where the site was built.
        config: Effective site configuration.
        written: Output paths (relative) of post pages rendered this build.
        skipped: Output paths of post pages reused from the previous build.
        feeds: Feed filenames that were written.
    """

    posts: list[Post]
    output_dir: Path
    config: dict[str, Any]
    written: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    feeds: list[str] = field(default_factory=list)


def load_config(project_root: Path, overrides: dict[str, Any] | None = None) -> dict[str, Any]:
    """Load site configuration from quillpress.yaml.

    Args:
        project_root: Root directory of the project.
        overrides: Values taking precedence over the file, typically from
            command line options. ``None`` values are ignored.

    Returns:
        Dictionary containing configuration values, with defaults applied.

    Raises:
        ConfigError: If the file is not valid YAML.
    """
    config_path = project_root / CONFIG_FILENAME
    config = DEFAULT_CONFIG.copy()
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            try:
                loaded = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc
        if isinstance(loaded, dict):
            config.update(loaded)
    for key, value in (overrides or {}).items():
        if value is not None:
            config[key] = value
    return config


def _resolve(project_root: Path, value: Any) -> Path:
    path = Path(value)
    return path if path.is_absolute() else project_root / path


def build_site(
    project_root: Path,
    include_drafts: bool = False,
    root_url: str | None = None,
    clean_output: bool = False,
    output_dir_override: Path | None = None,
    posts_dir_override: Path | None = None,
    use_cache: bool = True,
) -> BuildResult:
    """Build the entire site.

    Args:
        project_root: Root directory of the project.
        include_drafts: Whether to include draft posts.
        root_url: Optional base URL prefixed to generated links.
        clean_output: Whether to wipe the output directory before building.
            A clean build ignores the build cache.
        output_dir_override: Write the build output here instead of the
            configured ``output_dir``.
        posts_dir_override: Read posts from here instead of the configured
            ``posts_dir``.
        use_cache: Whether to skip post pages whose inputs did not change.

    Returns:
        BuildResult describing the build.

    Raises:
        ConfigError: If the configuration file is invalid.
        FileNotFoundError: If the posts directory does not exist.
        BuildError: If a page cannot be rendered or written, or two posts
            share an output page.
    """
    config = load_config(project_root)
    if root_url is not None:
        config["root_url"] = root_url
    posts_dir = posts_dir_override or _resolve(project_root, config["posts_dir"])
    output_dir = output_dir_override or _resolve(project_root, config["output_dir"])
    theme_dir = _resolve(project_root, config["theme_dir"])
    if not posts_dir.exists():
        raise FileNotFoundError(f"Expected posts directory at {posts_dir}")

    if clean_output:
        ensure_clean_dir(output_dir)
    else:
        output_dir.mkdir(parents=True, exist_ok=True)
    cache = BuildCache(output_dir)
    if use_cache and not clean_output:
        cache.load()

    builder = PostBuilder(
        CompositeMetadataExtractor(default_author=str(config.get("author") or "")),
        MarkdownRenderer(close_unterminated_fences=bool(config.get("close_unterminated_fences"))),
    )
    posts = PostCollection(
        ContentProcessor(posts_dir, builder=builder).load(include_drafts=include_drafts)
    ).sorted()
    _check_unique_outputs(posts)

    engine = TemplateEngine(theme_dir, config, root_url=str(config.get("root_url") or ""))
    result = BuildResult(posts=list(posts), output_dir=output_dir, config=config)
    theme = theme_signature(theme_dir, DEFAULT_THEME_DIR)

    for post in posts:
        prev_post, next_post = posts.neighbours(post)
        fingerprint = BuildCache.fingerprint(
            post.mtime_ns,
            (_neighbour_key(prev_post), _neighbour_key(next_post)),
            theme,
            config,
        )
        if use_cache and cache.is_fresh(post.output_name, fingerprint):
            result.skipped.append(post.output_name)
            continue
        rendered = _render(post.path, lambda: engine.render_post(post, prev_post, next_post))
        _write_output(output_dir, post.output_name, rendered, post.path)
        cache.record(post.output_name, fingerprint)
        result.written.append(post.output_name)

    index_template = theme_dir / "index.html"
    for pager in posts.paginate(int(config.get("posts_per_page") or 10)):
        rendered = _render(index_template, lambda: engine.render_index(pager))
        _write_output(output_dir, pager.url.lstrip("/"), rendered, index_template)

    tag_template = theme_dir / "tag.html"
    tags = TagCollection.from_posts(posts)
    for tag, tagged in tags.items():
        rendered = _render(tag_template, lambda: engine.render_tag(tag, tagged))
        _write_output(output_dir, TagCollection.url_for_tag(tag).lstrip("/"), rendered, tag_template)
    rendered = _render(tag_template, lambda: engine.render_tags_index(tags))
    _write_output(output_dir, "tags/index.html", rendered, tag_template)

    result.feeds = create_default_feed_registry().generate_all(output_dir, posts, config)
    AssetPipeline(
        [DEFAULT_THEME_DIR, theme_dir],
        _resolve(project_root, config["static_dir"]),
        output_dir,
    ).run()

    if use_cache:
        cache.retain(result.written + result.skipped)
        cache.save()
    return result


def _check_unique_outputs(posts: PostCollection) -> None:
    """Raise BuildError when two posts would be written to the same page."""
    sources: dict[str, Path] = {}
    for post in posts:
        other = sources.setdefault(post.output_name, post.path)
        if other != post.path:
            raise BuildError(
                post.path,
                f"Slug '{post.slug}' is also used by {other}; both would be written to {post.output_name}",
            )


def _neighbour_key(post: Post | None) -> list[str] | None:
    """Slug and title of a neighbouring post, as shown in its nav link."""
    return [post.slug, post.title] if post else None


def _render(source_path: Path, render) -> str:
    """Run a template render, converting failures to BuildError."""
    try:
        return render()
    except TemplateSyntaxError as exc:
        raise BuildError(
            Path(exc.filename) if exc.filename else source_path,
            f"Template syntax error on line {exc.lineno}: {exc.message}",
            exc,
        ) from exc
    except Exception as exc:
        raise BuildError(source_path, _format_error_message(exc), exc) from exc


def _format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message.

    Args:
        exc: The exception to format.

    Returns:
        A human-readable error message.
    """
    error_type = type(exc).__name__
    error_msg = str(exc)

    if error_type == "TemplateNotFound":
        return f"Template not found: {error_msg}"
    if error_type == "UndefinedError":
        return f"Undefined variable: {error_msg}"
    if error_type == "TypeError":
        return f"Type error: {error_msg}"

    return f"{error_type}: {error_msg}"


def _write_output(output_dir: Path, relpath: str, rendered: str, source_path: Path) -> None:
    """Write a rendered page to the output directory.

    Args:
        output_dir: Base output directory.
        relpath: Path of the page relative to the output directory.
        rendered: Rendered HTML content.
        source_path: File reported when the write fails.
    """
    target = output_dir / relpath
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(rendered, encoding="utf-8")
    except OSError as exc:
        raise BuildError(source_path, f"Could not write {target}: {exc}", exc) from exc
