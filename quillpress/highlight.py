"""Naive syntax highlighting for fenced code blocks.

This is a best-effort tokenizer, not a lexer. A single combined regular
expression finds comments, strings, numbers and keywords, and each match is
wrapped in a ``<span class="...">``. Because every lexeme is found in one
left-to-right pass, markup produced for one token is never rescanned by
another pattern.

The language label only chooses the comment syntax; the keyword list is shared
by every language.
"""

from __future__ import annotations

import re

from .html_utils import escape_code

KEYWORDS = (
    "and", "as", "async", "await", "break", "case", "catch", "class", "const",
    "continue", "def", "default", "del", "do", "elif", "else", "enum", "except",
    "export", "extends", "false", "False", "finally", "fn", "for", "from",
    "func", "function", "if", "impl", "import", "in", "interface", "is", "lambda",
    "let", "match", "new", "nil", "None", "not", "null", "or", "pass", "pub",
    "raise", "return", "self", "static", "struct", "super", "switch", "this",
    "throw", "true", "True", "try", "type", "typeof", "undefined", "use", "var",
    "void", "while", "with", "yield",
)

HASH_COMMENT_LANGUAGES = frozenset(
    {"python", "py", "ruby", "rb", "sh", "bash", "shell", "zsh", "yaml", "yml",
     "toml", "perl", "r", "make", "makefile", "dockerfile", "ini", "conf"}
)

SLASH_COMMENT = r"//[^\n]*|/\*.*?\*/"
HASH_COMMENT = r"#[^\n]*"
# Unknown languages only treat ``#`` as a comment at a line start or after whitespace.
LOOSE_HASH_COMMENT = r"(?:^|(?<=\s))#[^\n]*"

_STRING = r""""(?:\\.|[^"\\\n])*"|'(?:\\.|[^'\\\n])*'|`(?:\\.|[^`\\])*`"""
_NUMBER = r"\b\d+(?:\.\d+)?\b"
_KEYWORD = r"\b(?:" + "|".join(KEYWORDS) + r")\b"


def _build_pattern(comment: str) -> re.Pattern[str]:
    return re.compile(
        rf"(?P<comment>{comment})|(?P<string>{_STRING})"
        rf"|(?P<number>{_NUMBER})|(?P<keyword>{_KEYWORD})",
        re.MULTILINE | re.DOTALL,
    )


_PATTERNS = {
    "hash": _build_pattern(HASH_COMMENT),
    "slash": _build_pattern(SLASH_COMMENT),
    "any": _build_pattern(f"{SLASH_COMMENT}|{LOOSE_HASH_COMMENT}"),
}


def _pattern_for(language: str) -> re.Pattern[str]:
    lang = language.lower()
    if lang in HASH_COMMENT_LANGUAGES:
        return _PATTERNS["hash"]
    if lang:
        return _PATTERNS["slash"]
    return _PATTERNS["any"]


def highlight(code: str, language: str = "") -> str:
    """Escape and highlight a block of code.

    Args:
        code: Raw code text, lines joined with newlines.
        language: Language label from the opening fence, possibly empty.

    Returns:
        Escaped code with recognized lexemes wrapped in spans whose class is
        ``comment``, ``string``, ``number`` or ``keyword``.

    Examples:
        >>> highlight("const x = 1;", "js")
        '<span class="keyword">const</span> x = <span class="number">1</span>;'
    """
    escaped = escape_code(code)

    def wrap(match: re.Match[str]) -> str:
        kind = match.lastgroup or ""
        return f'<span class="{kind}">{match.group(0)}</span>'

    return _pattern_for(language).sub(wrap, escaped)
