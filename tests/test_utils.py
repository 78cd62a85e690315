from datetime import datetime
from pathlib import Path

from quillpress import utils
from quillpress.html_utils import escape_code, escape_html, join_root_url


def test_slugify_and_titleize_strip_date():
    assert utils.slugify("2024-01-02-post-title") == "post-title"
    assert utils.slugify("Hello, World!") == "hello-world"
    assert utils.slugify("!!!") == "index"
    assert utils.titleize("2024-01-02-post-title.md") == "Post Title"
    assert utils.titleize("getting_started.md") == "Getting Started"


def test_extract_and_parse_dates():
    assert utils.extract_date_from_name("2024-01-15-cool") == datetime(2024, 1, 15)
    assert utils.extract_date_from_name("invalid") is None
    assert utils.extract_date_from_name("2024-13-32-post") is None

    assert utils.parse_date("2024-01-02") == datetime(2024, 1, 2)
    assert utils.parse_date("2024-01-02 10:30") == datetime(2024, 1, 2, 10, 30)
    assert utils.parse_date("2024-01-02T10:00:00Z") == datetime(2024, 1, 2, 10, 0)
    assert utils.parse_date("someday") is None
    assert utils.parse_date("  ") is None


def test_is_truthy():
    for value in ("true", "Yes", "1", "ON", True):
        assert utils.is_truthy(value)
    for value in ("false", "no", "", None, ["true"]):
        assert not utils.is_truthy(value)


def test_strip_markdown_and_first_paragraph():
    assert utils.strip_markdown("**Bold** [link](/x) `code`  and  ~~gone~~") == "Bold link code and gone"
    text = "# Title\n\n```\ncode\n```\n\n- item\n\nFirst *real* paragraph.\n\nSecond."
    assert utils.first_paragraph(text) == "First real paragraph."
    assert utils.first_paragraph("x" * 200, limit=10) == "x" * 10
    assert utils.first_paragraph("") == ""


def test_ensure_clean_dir(tmp_path):
    target = tmp_path / "build"
    (target / "nested").mkdir(parents=True)
    (target / "nested" / "old.txt").write_text("old", encoding="utf-8")
    utils.ensure_clean_dir(target)
    assert target.exists()
    assert list(target.iterdir()) == []

    fresh = tmp_path / "fresh"
    utils.ensure_clean_dir(fresh)
    assert fresh.is_dir()


def test_path_helpers():
    assert utils.is_internal_path(Path("_drafts/post.md"))
    assert not utils.is_internal_path(Path("posts/post.md"))
    assert utils.is_markdown(Path("a.MD"))
    assert not utils.is_markdown(Path("a.txt"))


def test_html_helpers():
    assert escape_html('<b>"Tom" & Jerry</b>') == "&lt;b&gt;&quot;Tom&quot; &amp; Jerry&lt;/b&gt;"
    assert escape_code('say "<hi>"') == 'say "&lt;hi&gt;"'
    assert join_root_url("", "a.html") == "/a.html"
    assert join_root_url("", "/a.html") == "/a.html"
    assert join_root_url("https://example.com/", "/a.html") == "https://example.com/a.html"
    assert join_root_url("https://example.com/blog", "a.html") == "https://example.com/blog/a.html"
