"""Inline finishing pass for rendered blocks.

InlineFormatter applies the inline Markdown transforms to the text of a block
when the scanner flushes it, always in this order:

1. ``~~strike~~`` to ``<del>``
2. ```code``` to ``<code>`` (contents escaped and shielded from later steps)
3. ``**bold**`` to ``<strong>``
4. ``*italic*`` to ``<em>``
5. bare ``http(s)://`` URLs to links
6. ``![alt](src "caption")`` to ``<img>``, or ``<figure>`` when captioned
7. ``[text](url)`` to links
8. ``[^n]`` to a superscript footnote link when ``n`` is defined

Each step is one regular expression substitution over the output of the
previous step; generated markup is never fed back through the same step.
NUL characters are dropped from the input, since they mark shielded code spans.
"""

from __future__ import annotations

import re

from .html_utils import escape_code

STRIKE_RE = re.compile(r"~~(?=\S)(.+?)(?<=\S)~~")
CODE_RE = re.compile(r"`([^`]+)`")
BOLD_RE = re.compile(r"\*\*(?=\S)(.+?)(?<=\S)\*\*")
ITALIC_RE = re.compile(r"(?<![*\w])\*(?=\S)(.+?)(?<=\S)\*(?![*\w])")
URL_RE = re.compile(r"(?<![\"'=\[])(?<!\]\()\bhttps?://[^\s<\x00]+")
IMAGE_RE = re.compile(r'!\[([^\]]*)\]\(([^)\s]+)(?:\s+"([^"]*)")?\)')
LINK_RE = re.compile(r'(?<!!)\[([^\]^][^\]]*)\]\(([^)\s]+)(?:\s+"([^"]*)")?\)')
FOOTNOTE_REF_RE = re.compile(r"\[\^(\d+)\]")

SHIELD_MARK = "\x00"
_SHIELD_RE = re.compile(SHIELD_MARK + r"(\d+)" + SHIELD_MARK)
_TRAILING_PUNCTUATION = ".,;:!?)"


class InlineFormatter:
    """Applies inline transforms for one document.

    Attributes:
        footnotes: Footnote table of the document being rendered.
        cited: Footnote ids that already have an in-text anchor.
    """

    def __init__(self, footnotes: dict[int, str] | None = None):
        self.footnotes = footnotes or {}
        self.cited: set[int] = set()
        self._shielded: list[str] = []

    def __call__(self, text: str) -> str:
        """Format one block of text.

        Args:
            text: Raw text of a paragraph, list item, cell or similar.

        Returns:
            Text with inline Markdown replaced by HTML.
        """
        self._shielded = []
        text = text.replace(SHIELD_MARK, "")
        text = STRIKE_RE.sub(r"<del>\1</del>", text)
        text = CODE_RE.sub(self._code, text)
        text = BOLD_RE.sub(r"<strong>\1</strong>", text)
        text = ITALIC_RE.sub(r"<em>\1</em>", text)
        text = URL_RE.sub(self._autolink, text)
        text = IMAGE_RE.sub(self._image, text)
        text = LINK_RE.sub(self._link, text)
        text = FOOTNOTE_REF_RE.sub(self._footnote_ref, text)
        return _SHIELD_RE.sub(lambda m: self._shielded[int(m.group(1))], text)

    def _code(self, match: re.Match[str]) -> str:
        self._shielded.append(f"<code>{escape_code(match.group(1))}</code>")
        return f"{SHIELD_MARK}{len(self._shielded) - 1}{SHIELD_MARK}"

    @staticmethod
    def _autolink(match: re.Match[str]) -> str:
        url = match.group(0)
        trailing = ""
        while url and url[-1] in _TRAILING_PUNCTUATION:
            trailing = url[-1] + trailing
            url = url[:-1]
        return f'<a href="{url}">{url}</a>{trailing}'

    @staticmethod
    def _image(match: re.Match[str]) -> str:
        alt, src, caption = match.group(1), match.group(2), match.group(3)
        img = f'<img src="{src}" alt="{alt}">'
        if caption:
            return f"<figure>{img}<figcaption>{caption}</figcaption></figure>"
        return img

    @staticmethod
    def _link(match: re.Match[str]) -> str:
        text, href, title = match.group(1), match.group(2), match.group(3)
        title_attr = f' title="{title}"' if title else ""
        return f'<a href="{href}"{title_attr}>{text}</a>'

    def _footnote_ref(self, match: re.Match[str]) -> str:
        number = int(match.group(1))
        if number not in self.footnotes:
            return match.group(0)
        anchor = ""
        if number not in self.cited:
            self.cited.add(number)
            anchor = f' id="fnref-{number}"'
        return f'<sup class="footnote-ref"{anchor}><a href="#fn-{number}">{number}</a></sup>'
