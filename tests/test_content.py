"""Tests for eh_crawl.content module."""

from __future__ import annotations

import asyncio

from bs4 import BeautifulSoup

from eh_crawl.content import (
    MAX_CONTENT_CHARS,
    census,
    collect_image_shortlist,
    extract_page,
    extract_readable_content,
    image_sizes_from_script,
    is_sample_image,
    parse_dimension,
    parse_page,
    sample_text,
)

from conftest import BASE_URL, SAMPLE_HTML, FakeDriver


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def _img(markup: str):
    return _soup(markup).img


def _by_tag(elements):
    return {element.tag: element for element in elements}


class TestCensus:
    def test_counts_tags_and_skips_noise(self):
        elements, total = census(_soup(SAMPLE_HTML))
        by_tag = _by_tag(elements)
        assert by_tag["a"].count == 5
        assert by_tag["p"].count == 2
        assert by_tag["img"].count == 2
        for noise in ("script", "style", "meta", "link", "noscript"):
            assert noise not in by_tag
        assert total == 22
        assert total == sum(element.count for element in elements)

    def test_sorted_by_count_descending(self):
        elements, _ = census(_soup(SAMPLE_HTML))
        counts = [element.count for element in elements]
        assert counts == sorted(counts, reverse=True)
        assert elements[0].tag == "a"
        # ties keep first-seen order
        assert [e.tag for e in elements[1:3]] == ["p", "img"]

    def test_text_samples_use_direct_text_only(self):
        elements, _ = census(_soup(SAMPLE_HTML))
        by_tag = _by_tag(elements)
        assert by_tag["p"].sample_texts == ["First paragraph with inside."]
        assert by_tag["a"].sample_texts == ["Home", "About", "Blog", "Mail", "a link"]
        assert by_tag["title"].sample_texts == ["Sample Page"]
        # whitespace and comments are not text samples
        assert by_tag["main"].sample_texts == []

    def test_short_texts_are_rejected(self):
        elements, _ = census(_soup("<p>ok</p><p>  a b </p><p>yes</p>"))
        assert elements[0].sample_texts == ["a b", "yes"]

    def test_samples_are_unique_and_capped(self):
        paragraphs = "".join(f"<p>Paragraph {i % 40}</p>" for i in range(100))
        elements, _ = census(_soup(paragraphs))
        p = elements[0]
        assert p.count == 100
        assert len(p.sample_texts) == 30
        assert len(set(p.sample_texts)) == 30

    def test_image_samples_exclude_text(self):
        elements, _ = census(_soup(SAMPLE_HTML))
        by_tag = _by_tag(elements)
        assert by_tag["img"].sample_texts == []
        assert by_tag["img"].sample_image_urls == ["/photo.jpg"]
        assert by_tag["p"].sample_image_urls is None


class TestSampleText:
    def test_long_text_is_truncated_with_ellipsis(self):
        element = _soup("<p>" + "x" * 80 + "</p>").p
        text = sample_text(element)
        assert len(text) == 50
        assert text.endswith("...")

    def test_exactly_fifty_chars_untouched(self):
        element = _soup("<p>" + "y" * 50 + "</p>").p
        assert sample_text(element) == "y" * 50

    def test_whitespace_collapsed(self):
        element = _soup("<span>  hello \n\t world  </span>").span
        assert sample_text(element) == "hello world"


class TestSampleImageFilter:
    def test_svg_logo_rejected(self):
        assert not is_sample_image(_img('<img src="/logo-small.svg">'))

    def test_photo_with_size_accepted(self):
        assert is_sample_image(_img('<img src="/photo.jpg" width="400" height="300">'))

    def test_undeclared_size_accepted(self):
        assert is_sample_image(_img('<img src="/photo.jpg">'))

    def test_decorative_keywords_rejected(self):
        for src in ("/img/arrow-left.png", "/Spinner.gif", "/assets/Badge2.jpg", "/close.png"):
            assert not is_sample_image(_img(f'<img src="{src}">')), src

    def test_data_uri_rejected(self):
        assert not is_sample_image(_img('<img src="data:image/png;base64,AAAA">'))

    def test_svg_with_query_rejected(self):
        assert not is_sample_image(_img('<img src="/chart.svg?v=2">'))

    def test_small_declared_size_rejected(self):
        assert not is_sample_image(_img('<img src="/thumb.jpg" width="80" height="300">'))
        assert not is_sample_image(_img('<img src="/thumb.jpg" height="99px">'))

    def test_extreme_aspect_ratio_rejected(self):
        assert not is_sample_image(_img('<img src="/banner.jpg" width="1200" height="200">'))
        assert is_sample_image(_img('<img src="/wide.jpg" width="1000" height="200">'))

    def test_natural_size_used_when_undeclared(self):
        sizes = {"/tiny.jpg": (40.0, 40.0)}
        assert not is_sample_image(_img('<img src="/tiny.jpg">'), sizes)

    def test_declared_size_wins_over_natural(self):
        sizes = {"/big.jpg": (40.0, 40.0)}
        assert is_sample_image(_img('<img src="/big.jpg" width="300" height="200">'), sizes)


class TestReadableContent:
    def test_prefers_main_and_strips_markup(self):
        html = (
            '<html><body><nav><a href="/">Home</a></nav>'
            '<main class="x"><h1 id="t">Title</h1>'
            '<p style="color:red">Hello <a href="/a">world</a></p>'
            '<div></div><img src="/p.jpg"><script>var x = 1;</script></main>'
            "</body></html>"
        )
        assert extract_readable_content(_soup(html)) == "<h1>Title</h1><p>Hello world</p>"

    def test_selector_preference_order(self):
        html = (
            '<body><div id="content"><p>from id</p></div>'
            '<article><p>from article</p></article></body>'
        )
        assert extract_readable_content(_soup(html)) == "<p>from article</p>"

    def test_falls_back_to_body(self):
        html = "<html><body><header>Top</header><p>Body text</p><footer>End</footer></body></html>"
        assert extract_readable_content(_soup(html)) == "<p>Body text</p>"

    def test_no_body_gives_empty_string(self):
        assert extract_readable_content(_soup("<span>loose</span>")) == ""

    def test_sample_page_excerpt(self):
        text = extract_readable_content(_soup(SAMPLE_HTML))
        assert text.startswith("<h1>Welcome to the sample</h1>")
        assert "First paragraph with a link inside." in text
        assert "editorial note" not in text
        assert "Send it" not in text
        assert "Copyright" not in text
        assert "<div>" not in text
        assert "class=" not in text

    def test_keeps_allowed_inline_tags(self):
        html = "<main><p>Some <strong>bold</strong> and <em>soft</em><br/>text</p></main>"
        assert (
            extract_readable_content(_soup(html))
            == "<p>Some <strong>bold</strong> and <em>soft</em><br>text</p>"
        )

    def test_truncated(self):
        html = "<main>" + "".join(f"<p>paragraph number {i}</p>" for i in range(500)) + "</main>"
        text = extract_readable_content(_soup(html))
        assert len(text) <= MAX_CONTENT_CHARS
        assert not text.rstrip().endswith("<")


class TestImageShortlist:
    def test_filters_keywords_and_small_images(self):
        html = (
            '<img src="/logo.png"><img src="/favicon.ico"><img src="/a.jpg" width="40">'
            '<img src="/b.jpg" width="60" height="60"><img src="/c.jpg">'
        )
        assert collect_image_shortlist(_soup(html)) == ["/b.jpg", "/c.jpg"]

    def test_capped_at_five(self):
        html = "".join(f'<img src="/photo-{i}.jpg">' for i in range(9))
        assert len(collect_image_shortlist(_soup(html))) == 5

    def test_looser_than_sample_filter(self):
        html = '<img src="/arrow-hero.jpg" width="60" height="60">'
        assert collect_image_shortlist(_soup(html)) == ["/arrow-hero.jpg"]
        assert not is_sample_image(_soup(html).img)


class TestHelpers:
    def test_parse_dimension(self):
        assert parse_dimension("400") == 400.0
        assert parse_dimension("120px") == 120.0
        assert parse_dimension("auto") is None
        assert parse_dimension(None) is None

    def test_image_sizes_from_script(self):
        result = [
            {"src": "/a.jpg", "width": 640, "height": 480},
            {"src": "/b.jpg", "width": 0, "height": 0},
            {"width": 10},
        ]
        assert image_sizes_from_script(result) == {"/a.jpg": (640.0, 480.0)}
        assert image_sizes_from_script(None) == {}


class TestParsePage:
    def test_sample_page(self):
        page = parse_page(SAMPLE_HTML, BASE_URL)
        assert page.title == "Sample Page"
        assert page.links == [
            "/",
            "/about/",
            "/blog",
            "mailto:hi@example.com",
            "/blog/post?ref=1#top",
        ]
        assert page.og_image == "https://example.com/og.png"
        assert page.image_urls == ["https://example.com/photo.jpg"]
        img = next(e for e in page.elements if e.tag == "img")
        assert img.sample_image_urls == ["https://example.com/photo.jpg"]
        assert page.total_element_count == 22
        assert page.content_length > 0
        assert len(page.text_content) <= MAX_CONTENT_CHARS

    def test_content_length_counts_inline_script_text(self):
        html = "<body><p>Hello</p><script>var tracking = true;</script></body>"
        assert parse_page(html, BASE_URL).content_length == 25

    def test_content_length_ignores_comments_and_templates(self):
        html = (
            "<body><p>Hello</p><!-- note --><style>p{}</style>"
            "<template><p>hidden</p></template></body>"
        )
        assert parse_page(html, BASE_URL).content_length == 8

    def test_missing_title_and_og_image(self):
        page = parse_page("<html><body><p>Plain page</p></body></html>", BASE_URL)
        assert page.title == ""
        assert page.og_image is None
        assert page.image_urls == []

    def test_absolute_image_urls_kept(self):
        html = '<body><img src="https://cdn.example.net/pic.jpg"></body>'
        page = parse_page(html, BASE_URL)
        assert page.image_urls == ["https://cdn.example.net/pic.jpg"]


class TestExtractPage:
    def test_reads_from_driver(self):
        driver = FakeDriver(
            {"/": '<body><img src="/hero.jpg"></body>'},
            image_sizes=[{"src": "/hero.jpg", "width": 20, "height": 20}],
        )
        asyncio.run(driver.goto(BASE_URL + "/"))
        page = asyncio.run(extract_page(driver, BASE_URL))
        img = page.elements[-1]
        assert img.tag == "img"
        # natural size below the sampling minimum
        assert img.sample_image_urls == []
        assert page.image_urls == ["https://example.com/hero.jpg"]
