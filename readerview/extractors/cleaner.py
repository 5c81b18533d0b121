"""Article container cleanup.

:func:`prep_article` runs on every extraction pass, so its conditional
cleaning honours the pass flags. :func:`post_process_content` runs once on
the winning container.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from bs4 import NavigableString, Tag

from .context import ExtractionContext
from .dom import (
    attr_str,
    char_count,
    element_children,
    first_element_child,
    get_next_node,
    has_ancestor_tag,
    has_single_tag_inside,
    inner_text,
    is_element_without_content,
    is_phrasing_content,
    is_text,
    link_density,
    match_string,
    next_significant_node,
    remove_and_get_next,
    text_density,
)
from .patterns import (
    AD_WORDS_RE,
    B64_DATA_URL_RE,
    CLASS_WEIGHT,
    DEPRECATED_SIZE_ATTRIBUTE_ELEMS,
    DIV_TO_P_ELEMS,
    EMBED_TAGS,
    HEADING_TAGS,
    IMAGE_EXTENSION_RE,
    LAZY_SRC_VALUE_RE,
    LAZY_SRCSET_VALUE_RE,
    LOADING_WORDS_RE,
    NAVIGATION_CONTAINER_TAGS,
    NAVIGATION_TOKEN_RE,
    SAFE_ATTRIBUTES,
    SHARE_ELEMENTS_RE,
    UNWANTED_CONTENT_TAGS,
    UNWANTED_FORM_TAGS,
)
from .scoring import class_weight
from .urlnorm import absolutize_srcset, to_absolute_uri

logger = logging.getLogger(__name__)

_SHARE_ELEMENT_MAX_TEXT = 500

# A base64 image shorter than this is a placeholder pixel
_MIN_B64_IMAGE_LENGTH = 133

_TEXTISH_TAGS: tuple[str, ...] = ("span", "li", "td", *sorted(DIV_TO_P_ELEMS))

_MEDIA_TAGS: tuple[str, ...] = ("img", "picture", "figure", "video", "audio", "source")


# ---------------------------------------------------------------------------
# Data tables
# ---------------------------------------------------------------------------

def _row_and_column_count(table: Tag) -> tuple[int, int]:
    rows = 0
    columns = 0
    for tr in table.find_all("tr"):
        try:
            rows += int(attr_str(tr, "rowspan") or 1)
        except ValueError:
            rows += 1
        columns_in_row = 0
        for cell in tr.find_all("td"):
            try:
                columns_in_row += int(attr_str(cell, "colspan") or 1)
            except ValueError:
                columns_in_row += 1
        columns = max(columns, columns_in_row)
    return rows, columns


def is_data_table(table: Tag) -> bool:
    """Guess whether *table* holds tabular data rather than page layout."""
    if attr_str(table, "role") == "presentation":
        return False
    if attr_str(table, "datatable") == "0":
        return False
    if table.has_attr("summary"):
        return True
    caption = table.find("caption")
    if isinstance(caption, Tag) and caption.contents:
        return True
    if table.find(["col", "colgroup", "tfoot", "thead", "th"]) is not None:
        return True
    if table.find("table") is not None:
        return False
    rows, columns = _row_and_column_count(table)
    if rows == 1 or columns == 1:
        return False
    if rows >= 10 or columns > 4:
        return True
    return rows * columns > 10


def mark_data_tables(root: Tag, ctx: ExtractionContext) -> None:
    for table in root.find_all("table"):
        if is_data_table(table):
            ctx.data_tables[id(table)] = table


# ---------------------------------------------------------------------------
# Images and attributes
# ---------------------------------------------------------------------------

def fix_lazy_images(root: Tag, ctx: ExtractionContext) -> None:
    """Promote lazy-load attributes (``data-src`` and friends) to ``src``/``srcset``."""
    for elem in root.find_all(["img", "picture", "figure"]):
        src = attr_str(elem, "src")
        b64 = B64_DATA_URL_RE.match(src) if src else None
        if b64:
            if b64.group(1).lower() == "image/svg+xml":
                continue
            has_real_image = any(
                name != "src" and IMAGE_EXTENSION_RE.search(attr_str(elem, name))
                for name in elem.attrs
            )
            if has_real_image and len(src) - b64.end() < _MIN_B64_IMAGE_LENGTH:
                del elem["src"]
                src = ""

        if (src or attr_str(elem, "srcset")) and "lazy" not in attr_str(elem, "class").lower():
            continue

        for name in list(elem.attrs):
            if name in ("src", "srcset", "alt"):
                continue
            value = attr_str(elem, name)
            if LAZY_SRCSET_VALUE_RE.search(value):
                target = "srcset"
            elif LAZY_SRC_VALUE_RE.search(value):
                target = "src"
            else:
                continue
            if elem.name in ("img", "picture"):
                elem[target] = value
            elif elem.name == "figure" and elem.find(["img", "picture"]) is None:
                img = ctx.new_tag("img")
                img[target] = value
                elem.append(img)


def strip_attributes(root: Tag) -> None:
    """Drop every attribute outside the safe list; ``<svg>`` is left alone."""
    for tag in [root, *root.find_all(True)]:
        if tag.name == "svg" or has_ancestor_tag(tag, "svg", -1):
            continue
        for name in list(tag.attrs):
            if name not in SAFE_ATTRIBUTES:
                del tag[name]
        if tag.name in DEPRECATED_SIZE_ATTRIBUTE_ELEMS:
            for name in ("width", "height"):
                if name in tag.attrs:
                    del tag[name]


# ---------------------------------------------------------------------------
# Removal passes
# ---------------------------------------------------------------------------

def _is_allowed_embed(tag: Tag, ctx: ExtractionContext) -> bool:
    video_re = ctx.video_regex
    if any(video_re.search(attr_str(tag, name)) for name in tag.attrs):
        return True
    return tag.name == "object" and bool(video_re.search(tag.decode_contents()))


def clean(root: Tag, tag_name: str, ctx: ExtractionContext) -> None:
    """Remove every *tag_name* under *root*, sparing embeds of known video hosts."""
    is_embed = tag_name in EMBED_TAGS
    for tag in reversed(root.find_all(tag_name)):
        if is_embed and _is_allowed_embed(tag, ctx):
            continue
        tag.extract()


def _is_list_like(node: Tag) -> bool:
    if node.name in ("ul", "ol"):
        return True
    text_length = len(inner_text(node))
    if not text_length:
        return False
    list_length = sum(len(inner_text(lst)) for lst in node.find_all(["ul", "ol"]))
    return list_length / text_length > 0.9


def _should_remove_conditionally(node: Tag, ctx: ExtractionContext) -> bool:
    if node.name == "table" and ctx.is_data_table(node):
        return False
    if has_ancestor_tag(node, "table", -1, ctx.is_data_table):
        return False
    if has_ancestor_tag(node, "code"):
        return False
    if any(ctx.is_data_table(t) for t in node.find_all("table")):
        return False

    weight = class_weight(node, ctx)
    if weight < 0:
        return True
    if char_count(node, ",") >= 10:
        return False

    # Not very many commas, and the number of non-paragraph elements is
    # more than paragraphs or other ominous signs
    is_list = _is_list_like(node)
    p = len(node.find_all("p"))
    img = len(node.find_all("img"))
    li = len(node.find_all("li")) - 100
    inputs = len(node.find_all("input"))
    heading_density = text_density(node, HEADING_TAGS)

    embed_count = 0
    for embed in node.find_all(list(EMBED_TAGS)):
        if _is_allowed_embed(embed, ctx):
            return False
        embed_count += 1

    text = inner_text(node)
    if AD_WORDS_RE.search(text) or LOADING_WORDS_RE.search(text):
        return True

    content_length = len(text)
    density = link_density(node)
    modifier = ctx.options.link_density_modifier
    is_figure_child = has_ancestor_tag(node, "figure")

    have_to_remove = (
        (not is_figure_child and img > 1 and p / img < 0.5)
        or (not is_list and li > p)
        or (inputs > p // 3)
        or (
            not is_list
            and not is_figure_child
            and heading_density < 0.9
            and content_length < 25
            and (img == 0 or img > 2)
            and density > 0
        )
        or (not is_list and weight < CLASS_WEIGHT and density > 0.2 + modifier)
        or (weight >= CLASS_WEIGHT and density > 0.5 + modifier)
        or (embed_count == 1 and content_length < 75)
        or embed_count > 1
        or (img == 0 and text_density(node, _TEXTISH_TAGS) == 0)
    )

    # Image galleries are lists of bare images; keep them
    if is_list and have_to_remove:
        if any(len(element_children(child)) > 1 for child in element_children(node)):
            return True
        if img == len(node.find_all("li")):
            return False
    return have_to_remove


def clean_conditionally(root: Tag, tag_name: str, ctx: ExtractionContext) -> None:
    """Remove *tag_name* elements that look fishy (ads, link farms, forms)."""
    if not ctx.flags.clean_conditionally:
        return
    for node in reversed(root.find_all(tag_name)):
        if _should_remove_conditionally(node, ctx):
            ctx.debug(logger, "cleaning conditionally <%s class=%r>", node.name, attr_str(node, "class"))
            node.extract()


def _clean_matched_nodes(root: Tag, predicate: Callable[[Tag], bool]) -> None:
    end = get_next_node(root, ignore_self_and_kids=True)
    node = get_next_node(root)
    while node is not None and node is not end:
        if predicate(node):
            node = remove_and_get_next(node)
        else:
            node = get_next_node(node)


def remove_share_elements(container: Tag) -> None:
    def is_share_widget(node: Tag) -> bool:
        return bool(SHARE_ELEMENTS_RE.search(match_string(node))) and (
            len(node.get_text()) < _SHARE_ELEMENT_MAX_TEXT
        )

    for child in element_children(container):
        _clean_matched_nodes(child, is_share_widget)


def remove_navigation(container: Tag, ctx: ExtractionContext) -> None:
    """Drop menus and breadcrumb blocks that survived scoring."""
    if not ctx.flags.clean_conditionally:
        return
    for node in reversed(container.find_all(list(NAVIGATION_CONTAINER_TAGS))):
        if NAVIGATION_TOKEN_RE.search(match_string(node)):
            node.extract()


def clean_headers(container: Tag, ctx: ExtractionContext) -> None:
    for heading in reversed(container.find_all(["h1", "h2"])):
        if class_weight(heading, ctx) < 0:
            heading.extract()


def _remove_empty_paragraphs(container: Tag) -> None:
    for p in reversed(container.find_all("p")):
        if p.find(["img", "embed", "object", "iframe"]) is not None:
            continue
        if not inner_text(p, normalize_spaces=False):
            p.extract()


def _remove_breaks_before_paragraphs(container: Tag) -> None:
    for br in container.find_all("br"):
        following = next_significant_node(br.next_sibling)
        if isinstance(following, Tag) and following.name == "p":
            br.extract()


def _unwrap_single_cell_tables(container: Tag) -> None:
    for table in reversed(container.find_all("table")):
        if table.parent is None:
            continue
        tbody = first_element_child(table) if has_single_tag_inside(table, "tbody") else table
        if tbody is None or not has_single_tag_inside(tbody, "tr"):
            continue
        row = first_element_child(tbody)
        if row is None or not has_single_tag_inside(row, "td"):
            continue
        cell = first_element_child(row)
        if cell is None:
            continue
        cell.name = "p" if all(is_phrasing_content(c) for c in cell.contents) else "div"
        table.replace_with(cell)


def _rename(tags: Iterable[Tag], name: str) -> None:
    for tag in tags:
        tag.name = name


def prep_article(container: Tag, ctx: ExtractionContext) -> None:
    """Strip everything that is not article content from *container*."""
    mark_data_tables(container, ctx)
    fix_lazy_images(container, ctx)
    strip_attributes(container)

    clean_conditionally(container, "form", ctx)
    clean_conditionally(container, "fieldset", ctx)
    for tag_name in UNWANTED_CONTENT_TAGS:
        clean(container, tag_name, ctx)
    remove_share_elements(container)
    for tag_name in UNWANTED_FORM_TAGS:
        clean(container, tag_name, ctx)
    remove_navigation(container, ctx)
    clean_headers(container, ctx)

    clean_conditionally(container, "table", ctx)
    clean_conditionally(container, "ul", ctx)
    clean_conditionally(container, "div", ctx)

    # The article title is the only h1
    _rename(container.find_all("h1"), "h2")

    _remove_empty_paragraphs(container)
    _remove_breaks_before_paragraphs(container)
    _unwrap_single_cell_tables(container)


# ---------------------------------------------------------------------------
# Post-processing
# ---------------------------------------------------------------------------

def fix_relative_uris(
    container: Tag,
    ctx: ExtractionContext,
    base_url: str | None,
    page_url: str | None = None,
) -> None:
    """Make link and media URLs absolute; neutralize ``javascript:`` links."""
    for link in container.find_all("a", href=True):
        href = attr_str(link, "href")
        if href.strip().lower().startswith("javascript:"):
            if len(link.contents) == 1 and is_text(link.contents[0]):
                link.replace_with(NavigableString(link.get_text()))
            else:
                span = ctx.new_tag("span")
                for child in list(link.contents):
                    span.append(child.extract())
                link.replace_with(span)
        elif base_url:
            link["href"] = to_absolute_uri(href, base_url, page_url)

    if not base_url:
        return
    for media in container.find_all(list(_MEDIA_TAGS)):
        for name in ("src", "poster"):
            value = attr_str(media, name)
            if value:
                media[name] = to_absolute_uri(value, base_url, page_url)
        srcset = attr_str(media, "srcset")
        if srcset:
            media["srcset"] = absolutize_srcset(srcset, base_url, page_url)


def simplify_nested_elements(container: Tag) -> None:
    """Collapse ``div``/``section`` wrappers that hold nothing or a single block."""
    end = get_next_node(container, ignore_self_and_kids=True)
    node: Tag | None = container
    while node is not None and node is not end:
        if (
            node is not container
            and node.name in ("div", "section")
            and not attr_str(node, "id").startswith("readability")
        ):
            if is_element_without_content(node):
                node = remove_and_get_next(node)
                continue
            if has_single_tag_inside(node, "div") or has_single_tag_inside(node, "section"):
                child = first_element_child(node)
                for name, value in node.attrs.items():
                    child[name] = value
                node.replace_with(child)
                node = child
                continue
        node = get_next_node(node)


def clean_classes(container: Tag, preserve: frozenset[str]) -> None:
    for tag in [container, *container.find_all(True)]:
        if not tag.has_attr("class"):
            continue
        kept = [name for name in attr_str(tag, "class").split() if name in preserve]
        if kept:
            tag["class"] = kept
        else:
            del tag["class"]


def post_process_content(
    container: Tag,
    ctx: ExtractionContext,
    base_url: str | None,
    page_url: str | None = None,
) -> None:
    fix_relative_uris(container, ctx, base_url, page_url)
    simplify_nested_elements(container)
    if not ctx.options.keep_classes:
        clean_classes(container, ctx.classes_to_preserve)
