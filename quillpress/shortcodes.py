"""Shortcode expansion for Quillpress.

Shortcodes are text macros expanded in a post body before Markdown rendering.
Every expansion produces a single line of HTML so the Markdown scanner keeps it
together as one paragraph line.

Built-in shortcodes:
    {{ youtube videoId="ID" }}
    {{ quote author="NAME" }}...{{ /quote }}

Unknown shortcodes are left untouched. New ones are added by registering a
handler on a ShortcodeRegistry.
"""

from __future__ import annotations

import re
from collections.abc import Callable

from .html_utils import escape_html

ATTR_RE = re.compile(r'(\w+)="([^"]*)"')
SHORTCODE_RE = re.compile(
    r"\{\{\s*(?P<name>\w+)(?P<attrs>(?:\s+\w+=\"[^\"]*\")*)\s*\}\}"
    r"(?:(?P<inner>.*?)\{\{\s*/(?P=name)\s*\}\})?",
    re.DOTALL,
)

Handler = Callable[[dict[str, str], str], str]


def parse_attrs(text: str) -> dict[str, str]:
    """Parse ``key="value"`` pairs from a shortcode tag."""
    return dict(ATTR_RE.findall(text))


def youtube(attrs: dict[str, str], inner: str) -> str:
    video_id = attrs.get("videoId", "")
    if not video_id:
        return ""
    return (
        f'<div class="video-embed"><iframe src="https://www.youtube.com/embed/{escape_html(video_id)}" '
        'title="YouTube video" frameborder="0" allowfullscreen></iframe></div>'
    )


def quote(attrs: dict[str, str], inner: str) -> str:
    text = " ".join(inner.split())
    author = attrs.get("author", "")
    cite = f"<cite>{escape_html(author)}</cite>" if author else ""
    return f'<blockquote class="shortcode-quote"><span>{text}</span>{cite}</blockquote>'


class ShortcodeRegistry:
    """Registry mapping shortcode names to handlers.

    A handler receives the parsed attributes and the enclosed text (empty for
    self-closing shortcodes) and returns the replacement HTML.
    """

    def __init__(self):
        self._handlers: dict[str, Handler] = {}
        self.register("youtube", youtube)
        self.register("quote", quote)

    def register(self, name: str, handler: Handler) -> None:
        self._handlers[name] = handler

    def expand(self, text: str) -> str:
        """Expand every registered shortcode in ``text``.

        Args:
            text: Post body.

        Returns:
            Body with registered shortcodes replaced.
        """

        def repl(match: re.Match[str]) -> str:
            handler = self._handlers.get(match.group("name"))
            if handler is None:
                return match.group(0)
            return handler(parse_attrs(match.group("attrs")), match.group("inner") or "")

        return SHORTCODE_RE.sub(repl, text)


default_shortcodes = ShortcodeRegistry()


def expand_shortcodes(text: str) -> str:
    """Expand the built-in shortcodes in ``text``."""
    return default_shortcodes.expand(text)
