"""End-to-end tests for the extraction pipeline."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor

import pytest
from bs4 import BeautifulSoup

from readerview import (
    Article,
    ElementLimitError,
    InvalidBaseURLError,
    Readability,
    ReadabilityOptions,
    parse,
)


@pytest.fixture
def article(article_html, article_url) -> Article:
    result = parse(article_html, url=article_url)
    assert result is not None
    return result


# ---------------------------------------------------------------------------
# Metadata on the result
# ---------------------------------------------------------------------------

class TestArticleMetadata:
    def test_fields(self, article):
        assert article.title == "How Rivers Shape Cities"
        assert article.byline == "Jane Doe"
        assert article.site_name == "Example News"
        assert article.excerpt == "A long look at how rivers decide where cities grow."
        assert article.published_time == "2024-03-05T09:30:00Z"
        assert article.lang == "en"
        assert article.dir is None

    def test_published_datetime(self, article):
        assert article.published_datetime().startswith("2024-03-05")

    def test_without_json_ld(self, article_html, article_url):
        result = parse(article_html, url=article_url, options=ReadabilityOptions(disable_json_ld=True))
        assert result.title == "How Rivers Shape Cities"
        assert result.byline == "Meta Author"
        assert result.excerpt == "Rivers decide where cities grow, how they trade and what they fear."

    def test_excerpt_falls_back_to_first_paragraph(self, minimal_article_html):
        result = parse(minimal_article_html, options=ReadabilityOptions(char_threshold=100))
        assert result.excerpt.startswith("This is the first paragraph")


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------

class TestContent:
    def test_page_wrapper(self, article):
        assert 'id="readability-page-1"' in article.content
        assert 'class="page"' in article.content

    def test_article_text_kept(self, article):
        assert "cities have grown where water meets land" in article.text_content
        assert "giving rivers room to spread out" in article.text_content
        assert "The river at dawn" in article.text_content

    def test_inert_content_dropped(self, article):
        assert "STYLE_RULE_TEXT" not in article.text_content
        assert "TRACKING_SCRIPT_TEXT" not in article.content

    def test_page_chrome_dropped(self, article):
        assert "Related stories" not in article.text_content
        assert "Copyright" not in article.text_content
        assert "https://news.example/about" not in article.content
        assert "social.example/share" not in article.content

    def test_length_matches_text(self, article):
        assert article.length == len(article.text_content)

    def test_urls_made_absolute(self, article):
        assert 'src="https://news.example/images/river.jpg"' in article.content
        assert 'href="https://news.example/archive/rivers"' in article.content

    def test_unsafe_attributes_stripped(self, article):
        assert "onclick" not in article.content
        assert "style=" not in article.content
        assert 'alt="A river bend at dawn"' in article.content

    def test_classes_stripped_except_page(self, article):
        assert "article-body" not in article.content

    def test_keep_classes(self, article_html, article_url):
        result = parse(article_html, url=article_url, options=ReadabilityOptions(keep_classes=True))
        assert "article-body" in result.content

    def test_classes_to_preserve(self, article_html, article_url):
        options = ReadabilityOptions(classes_to_preserve="article-body")
        result = parse(article_html, url=article_url, options=options)
        assert 'class="article-body"' in result.content

    def test_raw_content_before_post_processing(self, article):
        assert 'src="/images/river.jpg"' in article.raw_content
        assert "article-body" in article.raw_content

    def test_no_url_keeps_relative_links(self, article_html):
        result = parse(article_html)
        assert 'src="/images/river.jpg"' in result.content


# ---------------------------------------------------------------------------
# No article
# ---------------------------------------------------------------------------

class TestNoArticle:
    def test_listing_page(self, listing_html):
        assert parse(listing_html, url="https://news.example/archive") is None

    def test_short_article_below_threshold(self, minimal_article_html):
        assert parse(minimal_article_html) is None

    def test_short_article_with_lower_threshold(self, minimal_article_html):
        result = parse(minimal_article_html, options=ReadabilityOptions(char_threshold=100))
        assert result is not None
        assert result.title == "Minimal"
        assert "second paragraph" in result.text_content

    def test_empty_document(self):
        assert parse("") is None


# ---------------------------------------------------------------------------
# Inputs and errors
# ---------------------------------------------------------------------------

class TestInputs:
    def test_bytes_input(self, article_html, article_url, article):
        result = parse(article_html.encode("utf-8"), url=article_url)
        assert result == article

    def test_soup_input_not_mutated(self, article_html, article_url, article):
        soup = BeautifulSoup(article_html, "lxml")
        before = str(soup)
        result = parse(soup, url=article_url)
        assert str(soup) == before
        assert result.title == article.title
        assert result.text_content == article.text_content

    def test_invalid_url(self, article_html):
        with pytest.raises(InvalidBaseURLError):
            Readability(article_html, url="not a url")

    def test_element_limit(self, article_html):
        reader = Readability(article_html, options=ReadabilityOptions(max_elems_to_parse=10))
        with pytest.raises(ElementLimitError) as excinfo:
            reader.parse()
        assert excinfo.value.limit == 10
        assert excinfo.value.count > 10

    def test_deeply_nested_json_ld(self, prose):
        html = (
            '<html><head><script type="application/ld+json">'
            + "[" * 100_000 + "]" * 100_000
            + f"</script></head><body><article><p>{prose}</p><p>{prose}</p></article></body></html>"
        )
        result = parse(html, options=ReadabilityOptions(char_threshold=100))
        assert result is not None
        assert "committee met on Tuesday" in result.text_content

    def test_element_limit_not_reached(self, article_html):
        options = ReadabilityOptions(max_elems_to_parse=10_000)
        assert parse(article_html, options=options) is not None


# ---------------------------------------------------------------------------
# Determinism
# ---------------------------------------------------------------------------

class TestDeterminism:
    def test_same_input_same_output(self, article_html, article_url, article):
        assert parse(article_html, url=article_url) == article

    def test_repeated_parse_returns_copy(self, article_html, article_url):
        reader = Readability(article_html, url=article_url)
        first = reader.parse()
        second = reader.parse()
        assert first == second
        assert first is not second

    def test_repeated_parse_without_article(self, listing_html):
        reader = Readability(listing_html)
        assert reader.parse() is None
        assert reader.parse() is None

    def test_concurrent_parses_share_options(self, article_html, article_url, article):
        options = ReadabilityOptions()
        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(lambda _: parse(article_html, article_url, options), range(8)))
        assert all(result == article for result in results)

    def test_debug_does_not_change_output(self, article_html, article_url, article, caplog):
        caplog.set_level(logging.DEBUG, logger="readerview")
        result = parse(article_html, url=article_url, options=ReadabilityOptions(debug=True))
        assert result == article
        assert any("top candidates" in record.getMessage() for record in caplog.records)
