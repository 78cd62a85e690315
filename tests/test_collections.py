from datetime import datetime
from pathlib import Path

from quillpress.collections import PostCollection, TagCollection, page_url
from quillpress.content import Post


def make_post(slug, date, tags=(), draft=False):
    return Post(
        title=slug.title(),
        slug=slug,
        url=f"/{slug}.html",
        date=date,
        author="",
        tags=list(tags),
        draft=draft,
        description="",
        body="",
        content="",
        path=Path(f"{slug}.md"),
    )


def sample_posts():
    return PostCollection(
        [
            make_post("a", datetime(2024, 1, 1), tags=["python"]),
            make_post("c", datetime(2024, 3, 1), tags=["web", "python"]),
            make_post("b", datetime(2024, 3, 1), tags=["Art"], draft=True),
        ]
    )


def test_sorted_newest_first_ties_by_slug():
    ordered = sample_posts().sorted()
    assert [p.slug for p in ordered] == ["b", "c", "a"]
    assert [p.slug for p in sample_posts().latest(1)] == ["b"]


def test_neighbours_follow_listing_order():
    ordered = sample_posts().sorted()
    prev_post, next_post = ordered.neighbours(ordered[1])
    assert prev_post.slug == "b"
    assert next_post.slug == "a"
    assert ordered.neighbours(ordered[0])[0] is None
    assert ordered.neighbours(ordered[2])[1] is None


def test_filters():
    posts = sample_posts()
    assert [p.slug for p in posts.with_tag("python")] == ["a", "c"]
    assert [p.slug for p in posts.drafts()] == ["b"]
    assert [p.slug for p in posts.published()] == ["a", "c"]
    assert len(posts) == 3


def test_paginate():
    pages = sample_posts().sorted().paginate(2)
    assert len(pages) == 2
    first, second = pages
    assert first.url == "/index.html"
    assert first.prev_url is None
    assert first.next_url == "/page/2.html"
    assert second.url == "/page/2.html"
    assert second.prev_url == "/index.html"
    assert second.next_url is None
    assert [p.slug for p in second.posts] == ["a"]
    assert second.total == 2


def test_paginate_empty_collection_yields_one_page():
    pages = PostCollection([]).paginate(10)
    assert len(pages) == 1
    assert pages[0].total == 1
    assert len(pages[0].posts) == 0


def test_page_url():
    assert page_url(1) == "/index.html"
    assert page_url(3) == "/page/3.html"


def test_tag_collection():
    tags = TagCollection.from_posts(sample_posts())
    assert list(tags) == ["Art", "python", "web"]
    assert [p.slug for p in tags["python"]] == ["a", "c"]
    assert len(tags) == 3
    assert TagCollection.url_for_tag("C Sharp") == "/tags/c-sharp.html"
