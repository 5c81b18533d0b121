"""Tests for article container cleanup and post-processing."""

from __future__ import annotations

import re

from bs4 import BeautifulSoup

from readerview.extractors.cleaner import (
    clean,
    clean_classes,
    clean_conditionally,
    fix_lazy_images,
    fix_relative_uris,
    is_data_table,
    mark_data_tables,
    post_process_content,
    prep_article,
    remove_navigation,
    remove_share_elements,
    simplify_nested_elements,
    strip_attributes,
)
from readerview.extractors.context import ExtractionContext, PassFlags
from readerview.options import ReadabilityOptions


def _setup(inner: str, **options) -> tuple[BeautifulSoup, ExtractionContext]:
    soup = BeautifulSoup(f'<html><body><div id="root">{inner}</div></body></html>', "lxml")
    return soup, ExtractionContext(soup=soup, options=ReadabilityOptions(**options))


def _root(soup: BeautifulSoup):
    return soup.find(id="root")


# ---------------------------------------------------------------------------
# Data tables
# ---------------------------------------------------------------------------

def _rows(n: int, cols: int) -> str:
    return "".join("<tr>" + "<td>v</td>" * cols + "</tr>" for _ in range(n))


class TestDataTables:
    def test_single_row_is_layout(self):
        soup, _ = _setup(f"<table>{_rows(1, 5)}</table>")
        assert not is_data_table(soup.table)

    def test_summary_marks_data(self):
        soup, _ = _setup(f'<table summary="Sales">{_rows(2, 2)}</table>')
        assert is_data_table(soup.table)

    def test_header_cells_mark_data(self):
        soup, _ = _setup(f"<table><tr><th>h</th><th>i</th></tr>{_rows(2, 2)}</table>")
        assert is_data_table(soup.table)

    def test_presentation_role_is_layout(self):
        soup, _ = _setup(f'<table role="presentation"><tr><th>h</th></tr>{_rows(12, 3)}</table>')
        assert not is_data_table(soup.table)

    def test_size_rules(self):
        soup, _ = _setup(f"<table>{_rows(10, 2)}</table>")
        assert is_data_table(soup.table)
        soup, _ = _setup(f"<table>{_rows(3, 3)}</table>")
        assert not is_data_table(soup.table)
        soup, _ = _setup(f"<table>{_rows(3, 4)}</table>")
        assert is_data_table(soup.table)

    def test_nested_table_is_layout(self):
        soup, _ = _setup(f"<table><tr><td><table>{_rows(2, 2)}</table></td><td>x</td></tr></table>")
        assert not is_data_table(soup.table)

    def test_data_table_survives_conditional_clean(self):
        links = "".join(f'<tr><td><a href="/{i}">link {i}</a></td><td>x</td></tr>' for i in range(3))
        soup, ctx = _setup(f"<table><thead><tr><th>A</th><th>B</th></tr></thead>{links}</table>")
        mark_data_tables(_root(soup), ctx)
        clean_conditionally(_root(soup), "table", ctx)
        assert soup.find("table") is not None


# ---------------------------------------------------------------------------
# Images and attributes
# ---------------------------------------------------------------------------

class TestLazyImages:
    def test_data_src_promoted(self):
        soup, ctx = _setup('<img data-src="/img/photo.jpg" class="lazy">')
        fix_lazy_images(_root(soup), ctx)
        assert soup.img["src"] == "/img/photo.jpg"

    def test_data_srcset_promoted(self):
        soup, ctx = _setup('<img data-srcset="/a.jpg 1x, /b.jpg 2x">')
        fix_lazy_images(_root(soup), ctx)
        assert soup.img["srcset"] == "/a.jpg 1x, /b.jpg 2x"

    def test_tiny_base64_placeholder_dropped(self):
        soup, ctx = _setup('<img src="data:image/png;base64,iVBORw0KGgo=" data-src="/real.png">')
        fix_lazy_images(_root(soup), ctx)
        assert soup.img["src"] == "/real.png"

    def test_svg_data_url_untouched(self):
        src = "data:image/svg+xml;base64,PHN2Zz48L3N2Zz4="
        soup, ctx = _setup(f'<img src="{src}" data-src="/real.png">')
        fix_lazy_images(_root(soup), ctx)
        assert soup.img["src"] == src

    def test_figure_gets_image(self):
        soup, ctx = _setup('<figure data-src="/fig.jpg"><figcaption>c</figcaption></figure>')
        fix_lazy_images(_root(soup), ctx)
        assert soup.figure.find("img")["src"] == "/fig.jpg"


class TestStripAttributes:
    def test_presentational_and_event_attributes_dropped(self):
        soup, _ = _setup(
            '<p style="color: red" align="center" onclick="x()" data-track="1" class="c">'
            '<a href="/x" target="_blank" rel="nofollow">x</a></p>',
        )
        strip_attributes(_root(soup))
        assert soup.p.attrs == {"class": ["c"]}
        assert soup.a.attrs == {"href": "/x", "rel": ["nofollow"]}

    def test_size_dropped_on_table_cells_only(self):
        soup, _ = _setup('<table width="100"><tr><td height="3">x</td></tr></table><img src="/a.png" width="40">')
        strip_attributes(_root(soup))
        assert "width" not in soup.table.attrs
        assert "height" not in soup.td.attrs
        assert soup.img["width"] == "40"

    def test_svg_untouched(self):
        soup, _ = _setup('<svg viewBox="0 0 10 10"><path d="M0 0"></path></svg>')
        strip_attributes(_root(soup))
        assert soup.find("path").get("d") == "M0 0"


# ---------------------------------------------------------------------------
# Removal passes
# ---------------------------------------------------------------------------

class TestClean:
    def test_removes_tag(self):
        soup, ctx = _setup("<p>x</p><footer>f</footer><aside>a</aside>")
        clean(_root(soup), "footer", ctx)
        clean(_root(soup), "aside", ctx)
        assert soup.find("footer") is None
        assert soup.find("aside") is None

    def test_video_embed_kept(self):
        soup, ctx = _setup(
            '<iframe src="https://www.youtube.com/embed/abc"></iframe>'
            '<iframe src="https://ads.example/frame"></iframe>',
        )
        clean(_root(soup), "iframe", ctx)
        frames = soup.find_all("iframe")
        assert [f["src"] for f in frames] == ["https://www.youtube.com/embed/abc"]

    def test_custom_video_regex(self):
        soup, ctx = _setup(
            '<iframe src="https://video.example/embed/1"></iframe>',
            allowed_video_regex=re.compile(r"video\.example"),
        )
        clean(_root(soup), "iframe", ctx)
        assert soup.find("iframe") is not None


class TestCleanConditionally:
    def test_link_heavy_div_removed(self, prose):
        soup, ctx = _setup(
            f'<p>{prose}</p><div id="links"><p><a href="/a">Link one text</a> '
            '<a href="/b">Link two text</a></p></div>',
        )
        clean_conditionally(_root(soup), "div", ctx)
        assert soup.find(id="links") is None
        assert "committee" in soup.get_text()

    def test_disabled_by_pass_flags(self):
        soup, ctx = _setup(
            '<div id="links"><p><a href="/a">Link one text</a> <a href="/b">Link two text</a></p></div>',
        )
        relaxed = ctx.for_pass(PassFlags(False, False, False))
        clean_conditionally(_root(soup), "div", relaxed)
        assert soup.find(id="links") is not None

    def test_negative_class_removed(self, prose):
        soup, ctx = _setup(f'<div class="widget"><p>{prose}</p></div>')
        clean_conditionally(_root(soup), "div", ctx)
        assert soup.find(class_="widget") is None

    def test_many_commas_kept(self, prose):
        soup, ctx = _setup(
            f'<div id="prose"><p>{prose} {prose} {prose} {prose}</p>'
            '<a href="/x">a link</a></div>',
        )
        clean_conditionally(_root(soup), "div", ctx)
        assert soup.find(id="prose") is not None

    def test_ad_label_removed(self):
        soup, ctx = _setup('<div id="ad"><span>Advertisement</span></div>')
        clean_conditionally(_root(soup), "div", ctx)
        assert soup.find(id="ad") is None

    def test_image_gallery_list_kept(self):
        items = "".join(f'<li><img src="/g{i}.jpg"></li>' for i in range(4))
        soup, ctx = _setup(f"<ul>{items}</ul>")
        clean_conditionally(_root(soup), "ul", ctx)
        assert soup.find("ul") is not None

    def test_captioned_image_list_removed(self):
        items = "".join(f'<li><img src="/g{i}.jpg"><span>caption {i}</span></li>' for i in range(4))
        soup, ctx = _setup(f"<ul>{items}</ul>")
        clean_conditionally(_root(soup), "ul", ctx)
        assert soup.find("ul") is None

    def test_link_list_with_multi_child_items_removed(self):
        items = "".join(
            f'<li><a href="/s/{i}">Another story headline number {i}</a><span> </span></li>'
            for i in range(6)
        )
        soup, ctx = _setup(f'<ul class="post-links">{items}</ul>')
        clean_conditionally(_root(soup), "ul", ctx)
        assert soup.find("ul") is None

    def test_link_density_modifier(self):
        html = (
            '<div id="mixed"><p>Plain words sitting beside <a href="/a">a single short link</a>'
            " and some more plain words here.</p></div>"
        )
        soup, ctx = _setup(html)
        clean_conditionally(_root(soup), "div", ctx)
        assert soup.find(id="mixed") is None

        soup, ctx = _setup(html, link_density_modifier=0.5)
        clean_conditionally(_root(soup), "div", ctx)
        assert soup.find(id="mixed") is not None


class TestShareAndNavigation:
    def test_share_widget_removed(self, prose):
        soup, _ = _setup(
            f'<div><p>{prose}</p><div class="share-buttons"><a href="#">Share</a></div></div>',
        )
        remove_share_elements(_root(soup))
        assert soup.find(class_="share-buttons") is None
        assert "committee" in soup.get_text()

    def test_navigation_container_removed(self, prose):
        soup, ctx = _setup(
            f'<div><p>{prose}</p><ul class="breadcrumbs"><li>Home</li></ul>'
            '<div id="nav-bottom">Next</div></div>',
        )
        remove_navigation(_root(soup), ctx)
        assert soup.find(class_="breadcrumbs") is None
        assert soup.find(id="nav-bottom") is None

    def test_navigation_token_is_whole_word(self):
        soup, ctx = _setup('<div class="unavailable-notice">kept</div>')
        remove_navigation(_root(soup), ctx)
        assert soup.find(class_="unavailable-notice") is not None

    def test_navigation_kept_when_relaxed(self):
        soup, ctx = _setup('<ul class="menu"><li>Home</li></ul>')
        remove_navigation(_root(soup), ctx.for_pass(PassFlags(False, False, False)))
        assert soup.find("ul") is not None


class TestPrepArticle:
    def test_full_pipeline(self, prose):
        soup, ctx = _setup(
            f"<h1>Heading</h1><p>{prose}</p><p> </p>"
            "<form><input></form><footer>Footer text</footer>"
            '<nav><a href="/">Home</a></nav><br><p>After break</p>'
            "<table><tr><td>Only <b>cell</b></td></tr></table>",
        )
        root = _root(soup)
        prep_article(root, ctx)
        assert soup.find("h1") is None
        assert soup.find("h2").get_text() == "Heading"
        assert soup.find("form") is None
        assert soup.find("footer") is None
        assert soup.find("nav") is None
        assert soup.find("table") is None
        assert soup.find("br") is None
        texts = [p.get_text() for p in root.find_all("p")]
        assert texts == [prose, "After break", "Only cell"]


# ---------------------------------------------------------------------------
# Post-processing
# ---------------------------------------------------------------------------

class TestPostProcess:
    def test_relative_urls_resolved(self):
        soup, ctx = _setup(
            '<a href="/about">a</a><img src="/a.png" srcset="/a.png 1x, /b.png 2x">'
            '<video poster="p.jpg"></video><a href="#top">top</a>',
        )
        fix_relative_uris(_root(soup), ctx, "https://site.example/page", "https://site.example/page")
        assert soup.find("a")["href"] == "https://site.example/about"
        assert soup.img["src"] == "https://site.example/a.png"
        assert soup.img["srcset"] == "https://site.example/a.png 1x, https://site.example/b.png 2x"
        assert soup.video["poster"] == "https://site.example/p.jpg"
        assert soup.find_all("a")[1]["href"] == "#top"

    def test_no_base_url_keeps_values(self):
        soup, ctx = _setup('<img src="/a.png"><a href="rel/x">x</a>')
        fix_relative_uris(_root(soup), ctx, None)
        assert soup.img["src"] == "/a.png"
        assert soup.a["href"] == "rel/x"

    def test_javascript_links_neutralized(self):
        soup, ctx = _setup(
            '<p><a href="javascript:void(0)">plain</a> and '
            '<a href="javascript:go()"><b>bold</b></a></p>',
        )
        fix_relative_uris(_root(soup), ctx, "https://site.example/")
        assert soup.find("a") is None
        assert soup.p.get_text() == "plain and bold"
        assert soup.find("span").find("b") is not None

    def test_nested_wrappers_collapsed(self):
        soup, _ = _setup(
            '<div id="readability-page-1"><div class="outer"><div class="inner">'
            "<p>text</p><p>more</p></div></div><div>  </div></div>",
        )
        simplify_nested_elements(_root(soup))
        page = soup.find(id="readability-page-1")
        children = page.find_all(recursive=False)
        assert len(children) == 1
        assert children[0]["class"] == ["outer"]
        assert [p.get_text() for p in children[0].find_all("p")] == ["text", "more"]

    def test_clean_classes_keeps_preserved(self):
        soup, _ = _setup('<p class="page lead keep">x</p><p class="drop">y</p>')
        clean_classes(_root(soup), frozenset({"page", "keep"}))
        first, second = soup.find_all("p")
        assert first["class"] == ["page", "keep"]
        assert "class" not in second.attrs

    def test_keep_classes_option(self):
        soup, ctx = _setup('<p class="lead">x</p>', keep_classes=True)
        post_process_content(_root(soup), ctx, None)
        assert soup.p["class"] == ["lead"]
