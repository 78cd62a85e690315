"""HTML utility functions for Quillpress.

This module provides the small amount of HTML string handling the generator needs:
escaping text for markup and feeds, and joining root URLs with site paths.

Functions:
    escape_html: Escape special HTML characters in a string.
    escape_code: Escape only the characters that break markup inside code.
    join_root_url: Join a base URL with a path.
"""

from __future__ import annotations


def escape_html(text: str) -> str:
    """Escape special HTML characters in a string.

    Converts the following characters to their HTML entity equivalents:
    - & becomes &amp;
    - < becomes &lt;
    - > becomes &gt;
    - " becomes &quot;

    Args:
        text: The string to escape.

    Returns:
        The escaped string, safe for inclusion in HTML.

    Examples:
        >>> escape_html('<b>"Tom" & Jerry</b>')
        '&lt;b&gt;&quot;Tom&quot; &amp; Jerry&lt;/b&gt;'
    """
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def escape_code(text: str) -> str:
    """Escape ``&``, ``<`` and ``>`` but leave quotes untouched.

    Quotes stay literal so the code highlighter can still recognize string
    literals after escaping.

    Args:
        text: Source code text.

    Returns:
        Text safe to place inside a ``<code>`` element.
    """
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def join_root_url(root_url: str, path: str) -> str:
    """Safely join a root URL and a path, avoiding double slashes.

    Args:
        root_url: Base URL (e.g., https://example.com/blog).
        path: Path beginning with or without a leading slash.

    Returns:
        Combined URL with proper slash handling.

    Examples:
        >>> join_root_url('https://example.com', '/about.html')
        'https://example.com/about.html'

        >>> join_root_url('https://example.com/', 'about.html')
        'https://example.com/about.html'
    """
    if not root_url:
        return path if path.startswith("/") else f"/{path}"
    base = root_url.rstrip("/")
    suffix = path if path.startswith("/") else f"/{path}"
    return f"{base}{suffix}"
