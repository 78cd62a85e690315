from quillpress.markdown import render
from quillpress.shortcodes import ShortcodeRegistry, expand_shortcodes, parse_attrs


def test_youtube_embed():
    assert expand_shortcodes('{{ youtube videoId="abc123" }}') == (
        '<div class="video-embed"><iframe src="https://www.youtube.com/embed/abc123" '
        'title="YouTube video" frameborder="0" allowfullscreen></iframe></div>'
    )


def test_quote_may_span_lines():
    text = '{{ quote author="Ada" }}\nHello\nworld\n{{ /quote }}'
    assert expand_shortcodes(text) == (
        '<blockquote class="shortcode-quote"><span>Hello world</span><cite>Ada</cite></blockquote>'
    )


def test_unknown_shortcodes_are_left_alone():
    assert expand_shortcodes("{{ gallery }} and {{title}}") == "{{ gallery }} and {{title}}"


def test_registry_accepts_custom_handlers():
    registry = ShortcodeRegistry()
    registry.register("shout", lambda attrs, inner: inner.upper() + attrs.get("end", ""))
    assert registry.expand('{{ shout end="!" }}hi{{ /shout }}') == "HI!"


def test_parse_attrs():
    assert parse_attrs(' a="1" b="two words"') == {"a": "1", "b": "two words"}


def test_expansion_stays_on_one_paragraph_line():
    html = render(expand_shortcodes('{{ quote author="Ada" }}\nHi\n{{ /quote }}'))
    assert html.count("\n") == 0
    assert html.startswith('<p><blockquote class="shortcode-quote">')
