"""Quillpress static blog generator.

This package turns a directory of Markdown posts with optional metadata headers into
a navigable static blog: post pages with prev/next links, paginated listings, tag
pages, an RSS feed and a JSON search index.

The heart of the package is a hand-written, single-pass Markdown renderer
(see ``quillpress.markdown``). Everything else is build tooling around it:
content loading, Jinja2 themes, feeds, an incremental cache and a live-reload
development server, all driven from the CLI module.
"""

__all__ = ["__version__"]
__version__ = "0.3.0"
