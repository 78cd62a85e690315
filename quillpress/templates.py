"""Template rendering engine for Quillpress.

Themes are plain HTML files with placeholder tokens such as ``{{title}}``,
``{{content}}``, ``{{prev}}``, ``{{next}}``, ``{{blogTitle}}``,
``{{postsList}}`` and ``{{pagination}}``, plus an include directive
``{{include header.html}}``. The placeholders are valid Jinja2 expressions, so
templates are rendered by Jinja2; the include directive is rewritten into a
Jinja2 include when a template is loaded.

A project theme directory takes precedence over the packaged default theme,
template by template.

Key class:
- TemplateEngine: Renders post, index and tag pages.

Key functions:
- render_posts_list, render_pagination, render_nav_link, render_tag_links:
  Produce the HTML fragments bound to the listing placeholders.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

from jinja2 import (
    ChoiceLoader,
    Environment,
    FileSystemLoader,
    Template,
    TemplateNotFound,
    select_autoescape,
)
from markupsafe import Markup

from .collections import Pager, TagCollection
from .content import Post
from .html_utils import join_root_url

DEFAULT_THEME_DIR = Path(__file__).parent / "themes" / "default"

INCLUDE_RE = re.compile(r"\{\{\s*include\s+([^\s}]+)\s*\}\}")

UrlFor = Callable[[str], str]

__all__ = [
    "DEFAULT_THEME_DIR",
    "PlaceholderLoader",
    "TemplateEngine",
    "render_nav_link",
    "render_pagination",
    "render_posts_list",
    "render_tag_links",
]


class PlaceholderLoader(FileSystemLoader):
    """FileSystemLoader that understands the ``{{include path}}`` directive."""

    def get_source(self, environment: Environment, template: str):
        source, filename, uptodate = super().get_source(environment, template)
        return expand_include_directives(source), filename, uptodate


def expand_include_directives(source: str) -> str:
    """Rewrite ``{{include path}}`` into ``{% include "path" %}``.

    Args:
        source: Template source.

    Returns:
        Source that Jinja2 can parse.
    """
    return INCLUDE_RE.sub(lambda m: '{% include "' + m.group(1).strip("\"'") + '" %}', source)


def render_posts_list(posts: Iterable[Post], url_for: UrlFor) -> Markup:
    """Render a list of posts as ``<ul class="posts">``.

    Args:
        posts: Posts in display order.
        url_for: URL generator.

    Returns:
        Markup-safe HTML list, or empty Markup when there are no posts.
    """
    items = []
    for post in posts:
        date = post.date.strftime("%Y-%m-%d")
        items.append(
            Markup('<li><a href="{}">{}</a> <time datetime="{}">{}</time></li>').format(
                url_for(post.url), post.title, date, post.date.strftime("%B %d, %Y")
            )
        )
    if not items:
        return Markup("")
    return Markup('<ul class="posts">') + Markup("").join(items) + Markup("</ul>")


def render_nav_link(post: Post | None, url_for: UrlFor, direction: str) -> Markup:
    """Render a prev/next navigation link.

    Args:
        post: Neighbouring post, or None.
        url_for: URL generator.
        direction: ``"prev"`` or ``"next"``.

    Returns:
        A link with a guillemet on the outer side, or an empty span.
    """
    if post is None:
        return Markup("<span></span>")
    if direction == "prev":
        template = Markup('<a class="prev" href="{}">&laquo; {}</a>')
    else:
        template = Markup('<a class="next" href="{}">{} &raquo;</a>')
    return template.format(url_for(post.url), post.title)


def render_pagination(pager: Pager, url_for: UrlFor) -> Markup:
    """Render listing pagination links.

    Args:
        pager: Current page of the listing.
        url_for: URL generator.

    Returns:
        Navigation markup, or empty Markup for a single page.
    """
    if pager.total <= 1:
        return Markup("")
    parts = [Markup('<nav class="pagination">')]
    if pager.prev_url:
        parts.append(Markup('<a class="newer" href="{}">&laquo; Newer</a>').format(url_for(pager.prev_url)))
    parts.append(Markup('<span class="page">Page {} of {}</span>').format(pager.number, pager.total))
    if pager.next_url:
        parts.append(Markup('<a class="older" href="{}">Older &raquo;</a>').format(url_for(pager.next_url)))
    parts.append(Markup("</nav>"))
    return Markup("").join(parts)


def render_tag_links(tags: Iterable[str], url_for: UrlFor) -> Markup:
    """Render tags as links to their tag pages."""
    links = [
        Markup('<a class="tag" href="{}">{}</a>').format(url_for(TagCollection.url_for_tag(tag)), tag)
        for tag in tags
    ]
    return Markup(" ").join(links)


class TemplateEngine:
    """Template rendering engine using Jinja2.

    Attributes:
        theme_dir: Project theme directory (may not exist).
        config: Site configuration.
        root_url: Base URL prefixed to generated links.
        env: Jinja2 environment.
    """

    def __init__(self, theme_dir: Path, config: dict[str, Any], root_url: str | None = None):
        """Initialize the template engine.

        Args:
            theme_dir: Directory with the project's templates.
            config: Site configuration.
            root_url: Optional base URL for links; defaults to the configured
                ``root_url``.
        """
        self.theme_dir = theme_dir
        self.config = config
        self.root_url = root_url if root_url is not None else str(config.get("root_url") or "")
        self.env = Environment(
            loader=ChoiceLoader(
                [PlaceholderLoader(str(theme_dir)), PlaceholderLoader(str(DEFAULT_THEME_DIR))]
            ),
            autoescape=select_autoescape(["html", "xml"]),
        )
        self.env.globals["url_for"] = self.url_for
        self.env.globals["blogTitle"] = config.get("title", "")
        self.env.globals["config"] = config

    def url_for(self, path: str) -> str:
        """Generate a URL for a path, applying root_url if configured.

        Args:
            path: Path to generate URL for.

        Returns:
            Full URL with root_url prefix if configured.
        """
        if path.startswith(("http://", "https://", "//")):
            return path
        return join_root_url(self.root_url, path)

    def _get_template(self, *names: str) -> Template:
        for name in names:
            try:
                return self.env.get_template(name)
            except TemplateNotFound:
                continue
        raise TemplateNotFound(names[-1])

    def render_post(self, post: Post, prev_post: Post | None, next_post: Post | None) -> str:
        """Render a post page.

        Args:
            post: Post to render.
            prev_post: Post listed before this one, if any.
            next_post: Post listed after this one, if any.

        Returns:
            Complete HTML page.
        """
        template = self._get_template("post.html")
        return template.render(
            title=post.title,
            content=Markup(post.content),
            prev=render_nav_link(prev_post, self.url_for, "prev"),
            next=render_nav_link(next_post, self.url_for, "next"),
            date=post.date.strftime("%B %d, %Y"),
            author=post.author,
            tags=render_tag_links(post.tags, self.url_for),
            description=post.description,
            post=post,
        )

    def render_index(self, pager: Pager) -> str:
        """Render one page of the main post listing."""
        template = self._get_template("index.html")
        return template.render(
            title=self.config.get("title", ""),
            postsList=render_posts_list(pager.posts, self.url_for),
            pagination=render_pagination(pager, self.url_for),
            pager=pager,
        )

    def render_tag(self, tag: str, posts: Iterable[Post]) -> str:
        """Render the listing page of one tag, falling back to the index template."""
        template = self._get_template("tag.html", "index.html")
        return template.render(
            title=f"Tagged: {tag}",
            tag=tag,
            postsList=render_posts_list(posts, self.url_for),
            pagination=Markup(""),
        )

    def render_tags_index(self, tags: TagCollection) -> str:
        """Render the overview page listing every tag."""
        items = [
            Markup('<li><a href="{}">{}</a> ({})</li>').format(
                self.url_for(TagCollection.url_for_tag(tag)), tag, len(posts)
            )
            for tag, posts in tags.items()
        ]
        listing = Markup("")
        if items:
            listing = Markup('<ul class="tags">') + Markup("").join(items) + Markup("</ul>")
        template = self._get_template("tag.html", "index.html")
        return template.render(title="Tags", tag="", postsList=listing, pagination=Markup(""))

    def render_string(self, template: str, context: dict[str, Any]) -> str:
        """Render a template string.

        Args:
            template: Template string to render.
            context: Variables to make available in the template.

        Returns:
            Rendered string.
        """
        tmpl = self.env.from_string(expand_include_directives(template))
        return tmpl.render(**context)
