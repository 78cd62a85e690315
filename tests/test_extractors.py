import os
from datetime import datetime
from pathlib import Path

from quillpress.extractors import (
    AuthorExtractor,
    CompositeMetadataExtractor,
    DateExtractor,
    DescriptionExtractor,
    DraftExtractor,
    TagExtractor,
    TitleExtractor,
    parse_metadata,
    split_frontmatter,
)
from quillpress.protocols import MetadataExtractor


def test_split_without_frontmatter_returns_input():
    assert split_frontmatter("no meta here") == ({}, "no meta here")
    assert split_frontmatter("") == ({}, "")
    text = "Intro\n---\nx: y\n---\nbody"
    assert split_frontmatter(text) == ({}, text)


def test_split_parses_scalars_and_lists():
    metadata, body = split_frontmatter('---\ntitle: "Hi"\ntags: [a, b, c]\n---\nBody')
    assert metadata == {"title": "Hi", "tags": ["a", "b", "c"]}
    assert body == "\nBody"


def test_split_keeps_rules_in_body():
    _, body = split_frontmatter("---\ntitle: x\n---\nA\n---\nB")
    assert body == "\nA\n---\nB"


def test_parse_metadata_edge_cases():
    metadata = parse_metadata("no colon\n: empty key\nurl: http://x.com\ntags: []\nq: \"\"")
    assert metadata == {"url": "http://x.com", "tags": [], "q": ""}


def test_title_extractor_fallbacks():
    path = Path("2024-01-01-my-post.md")
    assert TitleExtractor().extract("---\ntitle: Meta\n---\n# Head", path)["title"] == "Meta"
    assert TitleExtractor().extract("# Head\n\ntext", path)["title"] == "Head"
    assert TitleExtractor().extract("text", path)["title"] == "My Post"


def test_date_extractor_fallbacks(tmp_path):
    meta = DateExtractor().extract("---\ndate: 2024-03-05\n---\n", Path("x.md"))
    assert meta["date"] == datetime(2024, 3, 5)

    prefixed = DateExtractor().extract("", Path("2023-01-02-post.md"))
    assert prefixed["date"] == datetime(2023, 1, 2)

    bad = DateExtractor().extract("---\ndate: soon\n---\n", Path("2023-01-02-post.md"))
    assert bad["date"] == datetime(2023, 1, 2)

    source = tmp_path / "undated.md"
    source.write_text("hi", encoding="utf-8")
    os.utime(source, (1_700_000_000, 1_700_000_000))
    assert DateExtractor().extract("hi", source)["date"] == datetime.fromtimestamp(1_700_000_000)


def test_tag_extractor_accepts_lists_and_scalars():
    path = Path("p.md")
    assert TagExtractor().extract("---\ntags: [a, b, a]\n---\n", path)["tags"] == ["a", "b"]
    assert TagExtractor().extract("---\ntags: python, web\n---\n", path)["tags"] == ["python", "web"]
    assert TagExtractor().extract("body", path)["tags"] == []


def test_draft_extractor():
    assert DraftExtractor().extract("---\ndraft: Yes\n---\n", Path("p.md"))["draft"] is True
    assert DraftExtractor().extract("---\ndraft: no\n---\n", Path("p.md"))["draft"] is False
    assert DraftExtractor().extract("", Path("_p.md"))["draft"] is True


def test_author_and_description_extractors():
    assert AuthorExtractor("Site").extract("", Path("p.md"))["author"] == "Site"
    assert AuthorExtractor("Site").extract("---\nauthor: Ada\n---\n", Path("p.md"))["author"] == "Ada"

    body = "# T\n\nFirst **para** here.\n\nSecond."
    assert DescriptionExtractor().extract(body, Path("p.md"))["description"] == "First para here."
    meta = "---\ndescription: Given\n---\nText"
    assert DescriptionExtractor().extract(meta, Path("p.md"))["description"] == "Given"


def test_composite_merges_all_extractors():
    extractor = CompositeMetadataExtractor(default_author="Site")
    assert isinstance(extractor, MetadataExtractor)
    result = extractor.extract(
        "---\ntitle: Hello\ndate: 2024-01-02\ntags: [x]\n---\nBody text.", Path("hello.md")
    )
    assert result["title"] == "Hello"
    assert result["date"] == datetime(2024, 1, 2)
    assert result["tags"] == ["x"]
    assert result["draft"] is False
    assert result["author"] == "Site"
    assert result["description"] == "Body text."
    assert result["body"] == "\nBody text."
    assert result["frontmatter"]["title"] == "Hello"


def test_composite_add_extractor():
    class Words:
        def extract(self, content, path):
            return {"words": len(content.split())}

    extractor = CompositeMetadataExtractor(extractors=[])
    extractor.add_extractor(Words())
    assert extractor.extract("a b c", Path("p.md")) == {"words": 3}
