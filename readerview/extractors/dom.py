"""Tree helpers over BeautifulSoup nodes.

All walks here are iterative: malicious or machine-generated HTML can nest
far deeper than Python's recursion limit.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from typing import Any

from bs4 import BeautifulSoup, NavigableString, PageElement, Tag
from bs4.element import PreformattedString

from .patterns import (
    DIV_TO_P_ELEMS,
    HAS_CONTENT_RE,
    HASH_URL_RE,
    NORMALIZE_WS_RE,
    PHRASING_ELEMS,
    TOKENIZE_RE,
    TRANSPARENT_PHRASING_ELEMS,
)

_DISPLAY_NONE_RE = re.compile(r"display\s*:\s*none", re.IGNORECASE)
_VISIBILITY_HIDDEN_RE = re.compile(r"visibility\s*:\s*hidden", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Node kinds and attributes
# ---------------------------------------------------------------------------

def is_text(node: Any) -> bool:
    """Return True for rendered text (not comments, doctypes or CDATA)."""
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)


def is_document(node: Any) -> bool:
    return isinstance(node, BeautifulSoup)


def attr_str(tag: Tag, name: str, default: str = "") -> str:
    """Return an attribute as a plain string (bs4 keeps ``class`` as a list)."""
    val = tag.get(name)
    if val is None:
        return default
    if isinstance(val, list):
        return " ".join(str(v) for v in val)
    return str(val)


def class_name(tag: Tag) -> str:
    return attr_str(tag, "class")


def match_string(tag: Tag) -> str:
    """The ``"<class> <id>"`` string the class/id heuristics run against."""
    return f"{class_name(tag)} {attr_str(tag, 'id')}"


# ---------------------------------------------------------------------------
# Navigation
# ---------------------------------------------------------------------------

def element_children(tag: Tag) -> list[Tag]:
    return [c for c in tag.contents if isinstance(c, Tag)]


def first_element_child(tag: Tag) -> Tag | None:
    for child in tag.contents:
        if isinstance(child, Tag):
            return child
    return None


def next_element_sibling(node: PageElement) -> Tag | None:
    for sibling in node.next_siblings:
        if isinstance(sibling, Tag):
            return sibling
    return None


def previous_element_sibling(node: PageElement) -> Tag | None:
    for sibling in node.previous_siblings:
        if isinstance(sibling, Tag):
            return sibling
    return None


def next_significant_node(node: PageElement | None) -> PageElement | None:
    """Skip forward over whitespace-only text, starting at *node* itself."""
    while node is not None and not isinstance(node, Tag) and not text_content(node).strip():
        node = node.next_sibling
    return node


def get_next_node(node: Tag, ignore_self_and_kids: bool = False) -> Tag | None:
    """Depth-first successor of *node* in document order, elements only."""
    if not ignore_self_and_kids:
        child = first_element_child(node)
        if child is not None:
            return child
    sibling = next_element_sibling(node)
    if sibling is not None:
        return sibling
    parent = node.parent
    while parent is not None:
        sibling = next_element_sibling(parent)
        if sibling is not None:
            return sibling
        parent = parent.parent
    return None


def remove_and_get_next(node: Tag) -> Tag | None:
    following = get_next_node(node, ignore_self_and_kids=True)
    node.extract()
    return following


def node_ancestors(node: PageElement, max_depth: int = 0) -> list[Tag]:
    """Parents of *node*, nearest first; ``max_depth=0`` means unbounded."""
    ancestors: list[Tag] = []
    parent = node.parent
    while parent is not None:
        ancestors.append(parent)
        if max_depth and len(ancestors) == max_depth:
            break
        parent = parent.parent
    return ancestors


def has_ancestor_tag(
    node: PageElement,
    tag_name: str,
    max_depth: int = 3,
    predicate: Callable[[Tag], bool] | None = None,
) -> bool:
    """Check whether an ancestor within *max_depth* levels is a *tag_name*.

    A negative *max_depth* searches all the way up.
    """
    depth = 0
    parent = node.parent
    while parent is not None:
        if max_depth > 0 and depth > max_depth:
            return False
        if parent.name == tag_name and (predicate is None or predicate(parent)):
            return True
        parent = parent.parent
        depth += 1
    return False


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------

def text_content(node: PageElement) -> str:
    if isinstance(node, Tag):
        return node.get_text()
    if is_text(node):
        return str(node)
    return ""


def inner_text(node: PageElement, normalize_spaces: bool = True) -> str:
    text = text_content(node).strip()
    if normalize_spaces:
        return NORMALIZE_WS_RE.sub(" ", text)
    return text


def char_count(tag: Tag, separator: str = ",") -> int:
    return len(inner_text(tag).split(separator)) - 1


def word_count(text: str) -> int:
    return len(re.split(r"\s+", text))


def text_similarity(text_a: str, text_b: str) -> float:
    """Share of *text_b*'s tokens (by length) that also occur in *text_a*."""
    tokens_a = [t for t in TOKENIZE_RE.split(text_a.lower()) if t]
    tokens_b = [t for t in TOKENIZE_RE.split(text_b.lower()) if t]
    if not tokens_a or not tokens_b:
        return 0.0
    seen_a = set(tokens_a)
    unique_b = [t for t in tokens_b if t not in seen_a]
    distance_b = len(" ".join(unique_b)) / len(" ".join(tokens_b))
    return 1 - distance_b


def link_density(tag: Tag) -> float:
    """Anchor text length divided by total text length (0 for empty nodes).

    In-page ``#fragment`` links count for 0.3 of their length.
    """
    text_length = len(inner_text(tag))
    if text_length == 0:
        return 0.0
    link_length = 0.0
    for anchor in tag.find_all("a"):
        href = attr_str(anchor, "href")
        coefficient = 0.3 if href and HASH_URL_RE.match(href) else 1.0
        link_length += len(inner_text(anchor)) * coefficient
    return link_length / text_length


def text_density(tag: Tag, tags: Iterable[str]) -> float:
    text_length = len(inner_text(tag))
    if text_length == 0:
        return 0.0
    children_length = sum(len(inner_text(child)) for child in tag.find_all(list(tags)))
    return children_length / text_length


# ---------------------------------------------------------------------------
# Structure predicates
# ---------------------------------------------------------------------------

def is_whitespace(node: PageElement) -> bool:
    if isinstance(node, Tag):
        return node.name == "br"
    return is_text(node) and not str(node).strip()


def is_phrasing_content(node: PageElement) -> bool:
    """Inline content that may live inside a paragraph.

    ``a``, ``del`` and ``ins`` are phrasing only when all their children are.
    """
    stack: list[PageElement] = [node]
    while stack:
        current = stack.pop()
        if not isinstance(current, Tag):
            if not is_text(current):
                return False
            continue
        if current.name in PHRASING_ELEMS:
            continue
        if current.name in TRANSPARENT_PHRASING_ELEMS:
            stack.extend(current.contents)
            continue
        return False
    return True


def is_element_without_content(tag: Tag) -> bool:
    if tag.get_text().strip():
        return False
    children = element_children(tag)
    if not children:
        return True
    return len(children) == len(tag.find_all("br")) + len(tag.find_all("hr"))


def has_single_tag_inside(tag: Tag, name: str) -> bool:
    """True when *tag* has exactly one element child, named *name*, and no text."""
    children = element_children(tag)
    if len(children) != 1 or children[0].name != name:
        return False
    return not any(
        is_text(child) and HAS_CONTENT_RE.search(str(child)) for child in tag.contents
    )


def has_child_block_element(tag: Tag) -> bool:
    return tag.find(list(DIV_TO_P_ELEMS)) is not None


def is_single_image(node: Tag) -> bool:
    """True when *node* is an ``img`` or wraps exactly one, with no text."""
    current: Tag | None = node
    while current is not None:
        if current.name == "img":
            return True
        children = element_children(current)
        if len(children) != 1 or current.get_text().strip():
            return False
        current = children[0]
    return False


def is_probably_visible(tag: Tag) -> bool:
    style = attr_str(tag, "style")
    if style and (_DISPLAY_NONE_RE.search(style) or _VISIBILITY_HIDDEN_RE.search(style)):
        return False
    if tag.has_attr("hidden"):
        return False
    if attr_str(tag, "aria-hidden") == "true":
        return "fallback-image" in class_name(tag)
    return True
