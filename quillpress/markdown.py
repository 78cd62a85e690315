"""Markdown to HTML rendering for Quillpress.

This module contains the line scanner that turns a post body into an HTML
fragment. Rendering happens in two passes over the lines of the document:

1. Footnote definitions (``[^1]: text``) are collected into the footnote table
   and blanked out of the document.
2. Every remaining line is classified by the first matching rule below. A
   classification that differs from the open block context flushes that
   context to the output before the new one starts.

   ========  ===========================================================
   Priority  Rule
   ========  ===========================================================
   1         fenced code delimiter (toggles code mode)
   2         horizontal rule: ``---``, ``***`` or ``___``
   3         admonition: ``> [!NOTE]``, ``[!TIP]``, ``[!WARNING]``, ``[!DANGER]``
   4         table: ``|`` line followed by a header separator line
   5         blockquote: ``>``
   6         unordered (``-``, ``*``, ``+``) or ordered (``1.``) list item
   7         definition list: ``term: definition``
   8         heading: one to six ``#``
   9         blank line (flushes)
   10        paragraph text
   ========  ===========================================================

At most one block context is open at any time. Inline formatting is applied
when a block is flushed, and the footnote section is appended at the end.

Key classes and functions:
- MarkdownScanner: Holds the scanning state for a single document.
- render: Convenience function rendering a document with default settings.
- MarkdownRenderer: The content renderer used by the build.
"""

from __future__ import annotations

import re
from pathlib import Path

from .blocks import (
    ADMONITION_KINDS,
    Admonition,
    BlockContext,
    Blockquote,
    CodeBlock,
    DefinitionList,
    IndentHeuristic,
    ListBlock,
    NestingStrategy,
    OrderedList,
    Paragraph,
    Table,
    UnorderedList,
)
from .inline import InlineFormatter

FENCE = "```"
RULE_MARKERS = ("---", "***", "___")

FOOTNOTE_DEF_RE = re.compile(r"^\s*\[\^(\d+)\]:(.*)$")
ADMONITION_RE = re.compile(
    r"^>\s*\[!(" + "|".join(ADMONITION_KINDS) + r")\]\s*(.*)$", re.IGNORECASE
)
UNORDERED_ITEM_RE = re.compile(r"^[-*+]\s+(.*)$")
ORDERED_ITEM_RE = re.compile(r"^(\d+)\.\s+(.*)$")
DEFINITION_RE = re.compile(r"^(?P<term>[^:#\[(<`][^:\[(<`]*?)\s*:\s+(?P<definition>\S.*)$")
HEADING_RE = re.compile(r"^(#{1,6})(?!#)(.*)$")


def _is_table_separator(line: str) -> bool:
    stripped = line.strip()
    return (
        stripped.startswith("|")
        and "-" in stripped
        and set(stripped) <= set("|:- \t")
    )


def _split_cells(line: str) -> list[str]:
    cells = line.strip().split("|")
    if cells and not cells[0].strip():
        cells = cells[1:]
    if cells and not cells[-1].strip():
        cells = cells[:-1]
    return [cell.strip() for cell in cells]


def _indent_of(line: str) -> int:
    return len(line) - len(line.lstrip())


class MarkdownScanner:
    """Single-document Markdown scanner.

    A scanner renders exactly one document. It owns the cursor, the open
    block context, the footnote table and the output fragments, so nothing
    is shared between documents.

    Attributes:
        lines: Document lines, with footnote definitions blanked.
        footnotes: Footnote id to definition text, in first-seen order.
        context: The open block context, or None.
        output: Rendered HTML fragments in document order.
        nesting: Strategy deciding list nesting between items.
        close_unterminated_fences: Emit a code block left open at the end of
            the document instead of dropping it.
    """

    def __init__(
        self,
        text: str,
        nesting: NestingStrategy | None = None,
        close_unterminated_fences: bool = False,
    ):
        self.lines = text.split("\n") if text else []
        self.footnotes: dict[int, str] = {}
        self.context: BlockContext | None = None
        self.output: list[str] = []
        self.cursor = 0
        self.nesting = nesting or IndentHeuristic()
        self.close_unterminated_fences = close_unterminated_fences
        self.inline = InlineFormatter(self.footnotes)

    def render(self) -> str:
        """Run both passes and return the HTML fragment."""
        self._collect_footnotes()
        while self.cursor < len(self.lines):
            line = self.lines[self.cursor]
            self.cursor += 1
            self._scan_line(line)
        self._finish()
        return "\n".join(self.output)

    # Pass 1

    def _collect_footnotes(self) -> None:
        for index, line in enumerate(self.lines):
            match = FOOTNOTE_DEF_RE.match(line)
            if match:
                self.footnotes.setdefault(int(match.group(1)), match.group(2).strip())
                self.lines[index] = ""

    # Pass 2

    def _scan_line(self, line: str) -> None:
        stripped = line.strip()
        if isinstance(self.context, CodeBlock):
            if stripped.startswith(FENCE):
                self._flush()
            else:
                self.context.lines.append(line)
            return
        rules = (
            self._fence,
            self._rule,
            self._admonition,
            self._table,
            self._blockquote,
            self._list_item,
            self._definition,
            self._heading,
            self._blank,
        )
        for rule in rules:
            if rule(line, stripped):
                return
        if not isinstance(self.context, Paragraph):
            self._open(Paragraph())
        self.context.lines.append(stripped)

    def _fence(self, line: str, stripped: str) -> bool:
        if not stripped.startswith(FENCE):
            return False
        language = stripped[len(FENCE):].strip().split(" ")[0]
        self._open(CodeBlock(language=language))
        return True

    def _rule(self, line: str, stripped: str) -> bool:
        if stripped not in RULE_MARKERS:
            return False
        self._emit("<hr>")
        return True

    def _admonition(self, line: str, stripped: str) -> bool:
        match = ADMONITION_RE.match(stripped)
        if match:
            self._open(Admonition(kind=match.group(1).lower()))
            if match.group(2):
                self.context.lines.append(match.group(2).strip())
            return True
        if isinstance(self.context, Admonition) and stripped.startswith(">"):
            self.context.lines.append(stripped[1:].strip())
            return True
        return False

    def _table(self, line: str, stripped: str) -> bool:
        if not stripped.startswith("|"):
            return False
        if isinstance(self.context, Table):
            self.context.rows.append(_split_cells(stripped))
            return True
        following = self.lines[self.cursor] if self.cursor < len(self.lines) else ""
        if not _is_table_separator(following):
            return False
        self._open(Table(header=_split_cells(stripped)))
        self.cursor += 1
        return True

    def _blockquote(self, line: str, stripped: str) -> bool:
        if not stripped.startswith(">"):
            return False
        if not isinstance(self.context, Blockquote):
            self._open(Blockquote())
        self.context.lines.append(stripped[1:].strip())
        return True

    def _list_item(self, line: str, stripped: str) -> bool:
        unordered = UNORDERED_ITEM_RE.match(stripped)
        ordered = None if unordered else ORDERED_ITEM_RE.match(stripped)
        if not unordered and not ordered:
            return False
        tag = "ul" if unordered else "ol"
        text = unordered.group(1) if unordered else ordered.group(2)
        indent = _indent_of(line)
        if not (isinstance(self.context, ListBlock) and self.context.accepts(tag, indent)):
            if unordered:
                self._open(UnorderedList())
            else:
                self._open(OrderedList(start=int(ordered.group(1))))
        self.context.add_item(text.strip(), indent, tag, self.nesting)
        return True

    def _definition(self, line: str, stripped: str) -> bool:
        match = DEFINITION_RE.match(stripped)
        if not match:
            return False
        if not isinstance(self.context, DefinitionList):
            self._open(DefinitionList())
        self.context.items.append((match.group("term"), match.group("definition").strip()))
        return True

    def _heading(self, line: str, stripped: str) -> bool:
        match = HEADING_RE.match(line)
        if not match:
            return False
        self._flush()
        level = len(match.group(1))
        self._emit(f"<h{level}>{self.inline(match.group(2).strip())}</h{level}>")
        return True

    def _blank(self, line: str, stripped: str) -> bool:
        if stripped:
            return False
        self._flush()
        return True

    # Transitions

    def _open(self, context: BlockContext) -> None:
        """Flush the current context and make ``context`` the open one."""
        self._flush()
        self.context = context

    def _flush(self) -> None:
        if self.context is not None:
            self.output.append(self.context.render(self.inline))
            self.context = None

    def _emit(self, html: str) -> None:
        self._flush()
        self.output.append(html)

    def _finish(self) -> None:
        if isinstance(self.context, CodeBlock) and not self.close_unterminated_fences:
            self.context = None
        self._flush()
        if self.footnotes:
            self.output.append(self._footnote_section())

    def _footnote_section(self) -> str:
        out = ['<section class="footnotes">', "<ol>"]
        for number in sorted(self.footnotes):
            text = self.inline(self.footnotes[number])
            backref = ""
            if number in self.inline.cited:
                backref = f' <a href="#fnref-{number}" class="footnote-backref">&#8617;</a>'
            out.append(f'<li id="fn-{number}" value="{number}">{text}{backref}</li>')
        out.extend(["</ol>", "</section>"])
        return "\n".join(out)


def render(text: str, close_unterminated_fences: bool = False) -> str:
    """Render a Markdown document to an HTML fragment.

    Args:
        text: Markdown body, without frontmatter.
        close_unterminated_fences: Emit a trailing unterminated code block
            instead of dropping it.

    Returns:
        HTML fragment. An empty document renders to an empty string.
    """
    scanner = MarkdownScanner(text, close_unterminated_fences=close_unterminated_fences)
    return scanner.render()


class MarkdownRenderer:
    """Renders Markdown posts to HTML.

    Attributes:
        close_unterminated_fences: Passed through to every scanner.
    """

    def __init__(self, close_unterminated_fences: bool = False):
        self.close_unterminated_fences = close_unterminated_fences

    @property
    def source_type(self) -> str:
        """Return the source type identifier."""
        return "markdown"

    def can_render(self, path: Path) -> bool:
        """Check if this renderer can handle the given file.

        Args:
            path: Path to the source file.

        Returns:
            True if the file is a Markdown file.
        """
        return path.suffix.lower() == ".md"

    def render(self, content: str) -> str:
        """Render Markdown content to HTML.

        Args:
            content: Markdown source content.

        Returns:
            Rendered HTML fragment.
        """
        return render(content, close_unterminated_fences=self.close_unterminated_fences)
