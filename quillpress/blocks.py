"""Block contexts for the Markdown scanner.

The scanner keeps exactly one open block context at a time. Each variant here
accumulates the source lines that belong to it and knows how to emit itself as
an HTML fragment once the scanner flushes it. Inline formatting is supplied by
the caller at flush time so the blocks stay free of scanner state.

List nesting is decided by a NestingStrategy. The default IndentHeuristic
compares an item's leading whitespace with the previous item's and corrects at
most one level per item.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import ClassVar, Protocol, runtime_checkable

from .highlight import highlight

Inline = Callable[[str], str]

ADMONITION_KINDS = ("note", "tip", "warning", "danger")


@runtime_checkable
class NestingStrategy(Protocol):
    """Decides how list depth changes between two consecutive items."""

    def step(self, previous_indent: int | None, indent: int, depth: int) -> int:
        """Return +1 to open a nested list, -1 to close one, 0 to stay.

        Args:
            previous_indent: Leading whitespace of the previous item, None for
                the first item of a list.
            indent: Leading whitespace of the current item.
            depth: Number of nested lists currently open inside the outer one.
        """
        ...


class IndentHeuristic:
    """Coarse nesting: deeper indent opens one level, shallower closes one."""

    def step(self, previous_indent: int | None, indent: int, depth: int) -> int:
        if previous_indent is None:
            return 0
        if indent > previous_indent:
            return 1
        if indent < previous_indent and depth > 0:
            return -1
        return 0


@dataclass
class Paragraph:
    lines: list[str] = field(default_factory=list)

    def render(self, inline: Inline) -> str:
        return f"<p>{inline(' '.join(self.lines))}</p>"


@dataclass
class CodeBlock:
    """A fenced code block; highlighting happens only when it is rendered."""

    language: str = ""
    lines: list[str] = field(default_factory=list)

    def render(self, inline: Inline) -> str:
        code = highlight("\n".join(self.lines), self.language)
        lang_class = f' class="language-{self.language}"' if self.language else ""
        return f"<pre><code{lang_class}>{code}</code></pre>"


@dataclass
class Table:
    header: list[str] = field(default_factory=list)
    rows: list[list[str]] = field(default_factory=list)

    def render(self, inline: Inline) -> str:
        out = ["<table>", "<thead>"]
        out.append("<tr>" + "".join(f"<th>{inline(c)}</th>" for c in self.header) + "</tr>")
        out.append("</thead>")
        if self.rows:
            out.append("<tbody>")
            for row in self.rows:
                out.append("<tr>" + "".join(f"<td>{inline(c)}</td>" for c in row) + "</tr>")
            out.append("</tbody>")
        out.append("</table>")
        return "\n".join(out)


@dataclass
class Blockquote:
    lines: list[str] = field(default_factory=list)

    def render(self, inline: Inline) -> str:
        out = ["<blockquote>"]
        out.extend(f"<p>{inline(line)}</p>" for line in self.lines if line)
        out.append("</blockquote>")
        return "\n".join(out)


@dataclass
class Admonition:
    """A callout rendered from a ``> [!KIND]`` blockquote."""

    kind: str
    lines: list[str] = field(default_factory=list)

    def render(self, inline: Inline) -> str:
        out = [
            f'<div class="admonition {self.kind}">',
            f'<p class="admonition-title">{self.kind.capitalize()}</p>',
        ]
        out.extend(f"<p>{inline(line)}</p>" for line in self.lines if line)
        out.append("</div>")
        return "\n".join(out)


@dataclass
class DefinitionList:
    items: list[tuple[str, str]] = field(default_factory=list)

    def render(self, inline: Inline) -> str:
        out = ["<dl>"]
        for term, definition in self.items:
            out.append(f"<dt>{inline(term)}</dt>")
            out.append(f"<dd>{inline(definition)}</dd>")
        out.append("</dl>")
        return "\n".join(out)


@dataclass
class ListBlock:
    """Shared behaviour of ordered and unordered lists.

    ``events`` records nested list openings, closings and items in order;
    ``stack`` holds the tags of nested lists still open inside the outer one.
    """

    tag: ClassVar[str] = "ul"

    start: int = 1
    events: list[tuple[str, str]] = field(default_factory=list)
    stack: list[str] = field(default_factory=list)
    last_indent: int | None = None

    def accepts(self, tag: str, indent: int) -> bool:
        """Whether an item with this tag and indent continues this list."""
        if tag == self.tag or self.stack:
            return True
        return self.last_indent is not None and indent > self.last_indent

    def add_item(self, text: str, indent: int, tag: str, nesting: NestingStrategy) -> None:
        change = nesting.step(self.last_indent, indent, len(self.stack))
        if change > 0:
            self.stack.append(tag)
            self.events.append(("open", tag))
        elif change < 0 and self.stack:
            self.events.append(("close", self.stack.pop()))
        self.events.append(("item", text))
        self.last_indent = indent

    def render(self, inline: Inline) -> str:
        start = f' start="{self.start}"' if self.tag == "ol" and self.start != 1 else ""
        out = [f"<{self.tag}{start}>"]
        for kind, value in self.events:
            if kind == "open":
                out.append(f"<{value}>")
            elif kind == "close":
                out.append(f"</{value}>")
            else:
                out.append(f"<li>{inline(value)}</li>")
        out.extend(f"</{tag}>" for tag in reversed(self.stack))
        out.append(f"</{self.tag}>")
        return "\n".join(out)


@dataclass
class UnorderedList(ListBlock):
    tag: ClassVar[str] = "ul"


@dataclass
class OrderedList(ListBlock):
    tag: ClassVar[str] = "ol"


BlockContext = (
    Paragraph
    | CodeBlock
    | Table
    | Blockquote
    | Admonition
    | UnorderedList
    | OrderedList
    | DefinitionList
)
