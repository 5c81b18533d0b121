"""Document normalization, run once before any scoring.

Every step mutates the tree in place and is best-effort: nothing here
raises on odd markup.
"""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

from .dom import (
    attr_str,
    element_children,
    first_element_child,
    get_next_node,
    is_phrasing_content,
    is_probably_visible,
    is_single_image,
    is_whitespace,
    next_significant_node,
    previous_element_sibling,
    remove_and_get_next,
)
from .patterns import IMAGE_EXTENSION_RE, INERT_TAGS, PRESENTATIONAL_TAG_REWRITES

logger = logging.getLogger(__name__)

_IMAGE_SOURCE_ATTRS: frozenset[str] = frozenset({"src", "srcset", "data-src", "data-srcset"})


# ---------------------------------------------------------------------------
# Inert content
# ---------------------------------------------------------------------------

def _remove_inert_nodes(soup: BeautifulSoup) -> int:
    removed = 0
    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()
        removed += 1
    for tag in soup.find_all(list(INERT_TAGS)):
        tag.extract()
        removed += 1
    return removed


def _remove_sourceless_images(soup: BeautifulSoup) -> None:
    """Drop ``<img>`` elements that carry nothing resembling an image URL."""
    for img in soup.find_all("img"):
        has_source = any(
            name in _IMAGE_SOURCE_ATTRS or IMAGE_EXTENSION_RE.search(attr_str(img, name))
            for name in img.attrs
        )
        if not has_source:
            img.extract()


def _adopt_placeholder_attributes(placeholder: Tag, image: Tag) -> None:
    for name in list(placeholder.attrs):
        value = attr_str(placeholder, name)
        if not value:
            continue
        if name not in ("src", "srcset") and not IMAGE_EXTENSION_RE.search(value):
            continue
        if attr_str(image, name) == value:
            continue
        target = f"data-old-{name}" if image.has_attr(name) else name
        image[target] = value


def _unwrap_noscripts(soup: BeautifulSoup) -> None:
    """Resolve ``<noscript>`` fallbacks before scripts are gone for good.

    Lazy-loading sites pair a placeholder ``<img>`` with the real image in a
    ``<noscript>``. The placeholder is replaced by the real image; a lone
    noscript image is promoted in place; any other noscript is dropped.
    """
    for noscript in soup.find_all("noscript"):
        if noscript.parent is None:
            continue
        if not is_single_image(noscript):
            noscript.extract()
            continue

        placeholder = previous_element_sibling(noscript)
        if placeholder is not None and is_single_image(placeholder):
            placeholder_img = placeholder if placeholder.name == "img" else placeholder.find("img")
            new_img = noscript.find("img")
            replacement = element_children(noscript)[0]
            if isinstance(placeholder_img, Tag) and isinstance(new_img, Tag):
                _adopt_placeholder_attributes(placeholder_img, new_img)
            placeholder.replace_with(replacement)
            noscript.extract()
        else:
            noscript.unwrap()


# ---------------------------------------------------------------------------
# Presentational markup
# ---------------------------------------------------------------------------

def _rewrite_presentational_tags(soup: BeautifulSoup) -> None:
    for tag in soup.find_all(list(PRESENTATIONAL_TAG_REWRITES)):
        tag.name = PRESENTATIONAL_TAG_REWRITES[tag.name]


def _replace_brs(soup: BeautifulSoup, body: Tag) -> None:
    """Turn runs of two or more ``<br>`` into paragraph breaks.

    ``<div>foo<br>bar<br> <br><br>abc</div>`` becomes
    ``<div>foo<br>bar<p>abc</p></div>``.
    """
    for br in body.find_all("br"):
        if br.parent is None:
            continue
        replaced = False
        following = next_significant_node(br.next_sibling)
        while isinstance(following, Tag) and following.name == "br":
            replaced = True
            after = following.next_sibling
            following.extract()
            following = next_significant_node(after)
        if not replaced:
            continue

        paragraph = soup.new_tag("p")
        br.replace_with(paragraph)
        sibling = paragraph.next_sibling
        while sibling is not None:
            if isinstance(sibling, Tag) and sibling.name == "br":
                after_br = next_significant_node(sibling.next_sibling)
                if isinstance(after_br, Tag) and after_br.name == "br":
                    break
            if not is_phrasing_content(sibling):
                break
            after = sibling.next_sibling
            paragraph.append(sibling.extract())
            sibling = after

        while paragraph.contents and is_whitespace(paragraph.contents[-1]):
            paragraph.contents[-1].extract()

        if isinstance(paragraph.parent, Tag) and paragraph.parent.name == "p":
            paragraph.parent.name = "div"


# ---------------------------------------------------------------------------
# Visibility and text
# ---------------------------------------------------------------------------

def _remove_hidden_nodes(soup: BeautifulSoup) -> int:
    removed = 0
    node = first_element_child(soup)
    while node is not None:
        if is_probably_visible(node):
            node = get_next_node(node)
        else:
            node = remove_and_get_next(node)
            removed += 1
    return removed


def merge_adjacent_text(root: Tag) -> None:
    """Join neighbouring plain text nodes left behind by the rewrites."""
    for tag in [root, *root.find_all(True)]:
        run: NavigableString | None = None
        for child in list(tag.contents):
            if type(child) is NavigableString:
                if run is None:
                    run = child
                    continue
                merged = NavigableString(str(run) + str(child))
                run.replace_with(merged)
                child.extract()
                run = merged
            else:
                run = None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def preprocess_document(soup: BeautifulSoup) -> None:
    """Normalize *soup* in place so scoring sees only rendered content."""
    inert = _remove_inert_nodes(soup)
    _remove_sourceless_images(soup)
    _unwrap_noscripts(soup)
    _rewrite_presentational_tags(soup)
    if soup.body is not None:
        _replace_brs(soup, soup.body)
    hidden = _remove_hidden_nodes(soup)
    merge_adjacent_text(soup)
    logger.debug("preprocess: removed %d inert and %d hidden nodes", inert, hidden)
