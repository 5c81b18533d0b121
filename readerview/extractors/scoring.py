"""Candidate scoring.

The walk prunes obvious clutter and normalizes ``div`` soup into
paragraphs, collecting the elements worth scoring. Each scored element then
pushes a share of its score to up to five ancestors; those ancestors are the
candidates the selector ranks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from bs4 import BeautifulSoup, Tag

from .context import ExtractionContext
from .dom import (
    attr_str,
    first_element_child,
    get_next_node,
    has_ancestor_tag,
    has_child_block_element,
    has_single_tag_inside,
    inner_text,
    is_document,
    is_element_without_content,
    is_phrasing_content,
    is_whitespace,
    link_density,
    match_string,
    node_ancestors,
    remove_and_get_next,
    text_similarity,
)
from .metadata import is_byline_node
from .patterns import (
    CLASS_WEIGHT,
    COMMAS_RE,
    NEGATIVE_RE,
    OK_MAYBE_CANDIDATE_RE,
    POSITIVE_RE,
    TAG_WEIGHTS,
    TAGS_TO_SCORE,
    UNLIKELY_CANDIDATES_RE,
    UNLIKELY_ROLES,
)

logger = logging.getLogger(__name__)

# Elements with less text than this contribute nothing
_MIN_SCORED_TEXT = 25

# How many ancestors receive a share of an element's score
_SCORE_ANCESTOR_DEPTH = 5

_EMPTY_CONTAINER_TAGS: frozenset[str] = frozenset(
    {"div", "section", "header", "h1", "h2", "h3", "h4", "h5", "h6"},
)

_SINGLE_PARAGRAPH_MAX_LINK_DENSITY = 0.25


@dataclass
class Candidate:
    """A node considered as the article container.

    ``contributions`` records every ``(scored element, amount)`` pair that
    was propagated into ``content_score``.
    """

    node: Tag
    content_score: float
    index: int = -1
    contributions: list[tuple[Tag, float]] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Weights
# ---------------------------------------------------------------------------

def class_weight(tag: Tag, ctx: ExtractionContext) -> int:
    """+/-25 per class and id match against the positive/negative patterns."""
    if not ctx.flags.weight_classes:
        return 0
    weight = 0
    for value in (attr_str(tag, "class"), attr_str(tag, "id")):
        if not value:
            continue
        if NEGATIVE_RE.search(value):
            weight -= CLASS_WEIGHT
        if POSITIVE_RE.search(value):
            weight += CLASS_WEIGHT
    return weight


def initialize_candidate(tag: Tag, ctx: ExtractionContext, index: int = -1) -> Candidate:
    score = TAG_WEIGHTS.get(tag.name, 0) + class_weight(tag, ctx)
    return Candidate(node=tag, content_score=float(score), index=index)


def is_unlikely_candidate(tag: Tag, ctx: ExtractionContext) -> bool:
    """Class/id says boilerplate and nothing about the context says otherwise."""
    if tag.name in ("body", "a"):
        return False
    matched = match_string(tag)
    if not UNLIKELY_CANDIDATES_RE.search(matched) or OK_MAYBE_CANDIDATE_RE.search(matched):
        return False
    if has_ancestor_tag(tag, "table") or has_ancestor_tag(tag, "code"):
        return False
    preserved = ctx.classes_to_preserve
    return not any(name in preserved for name in attr_str(tag, "class").split())


def _is_scorable_ancestor(tag: Tag) -> bool:
    # The document and <html> never hold the article
    if is_document(tag):
        return False
    return tag.parent is not None and not is_document(tag.parent)


# ---------------------------------------------------------------------------
# Walk
# ---------------------------------------------------------------------------

def _header_duplicates_title(tag: Tag, ctx: ExtractionContext) -> bool:
    if tag.name not in ("h1", "h2") or not ctx.article_title:
        return False
    heading = inner_text(tag, normalize_spaces=False)
    return text_similarity(ctx.article_title, heading) > 0.75


def _wrap_phrasing_runs(div: Tag, ctx: ExtractionContext) -> None:
    """Put loose inline content of a ``div`` into ``<p>`` elements."""
    paragraph: Tag | None = None
    for child in list(div.contents):
        if is_phrasing_content(child):
            if paragraph is not None:
                paragraph.append(child.extract())
            elif not is_whitespace(child):
                paragraph = ctx.new_tag("p")
                child.replace_with(paragraph)
                paragraph.append(child)
        elif paragraph is not None:
            while paragraph.contents and is_whitespace(paragraph.contents[-1]):
                paragraph.contents[-1].extract()
            paragraph = None


def collect_elements_to_score(soup: BeautifulSoup, ctx: ExtractionContext) -> list[Tag]:
    """Walk the document, pruning clutter, and return the elements to score."""
    elements: list[Tag] = []
    should_remove_title_header = True
    byline_removed = False
    strip_unlikely = ctx.flags.strip_unlikely

    node = first_element_child(soup)
    while node is not None:
        if attr_str(node, "aria-modal") == "true" and attr_str(node, "role") == "dialog":
            node = remove_and_get_next(node)
            continue

        if not byline_removed and is_byline_node(node):
            byline_removed = True
            ctx.debug(logger, "removing byline node <%s>", node.name)
            node = remove_and_get_next(node)
            continue

        if should_remove_title_header and _header_duplicates_title(node, ctx):
            should_remove_title_header = False
            node = remove_and_get_next(node)
            continue

        if strip_unlikely:
            if is_unlikely_candidate(node, ctx):
                ctx.debug(logger, "removing unlikely candidate <%s class=%r>",
                          node.name, attr_str(node, "class"))
                node = remove_and_get_next(node)
                continue
            if attr_str(node, "role") in UNLIKELY_ROLES:
                node = remove_and_get_next(node)
                continue

        if node.name in _EMPTY_CONTAINER_TAGS and is_element_without_content(node):
            node = remove_and_get_next(node)
            continue

        if node.name in TAGS_TO_SCORE:
            elements.append(node)

        if node.name == "div":
            _wrap_phrasing_runs(node, ctx)
            # A div wrapping a single paragraph is that paragraph
            if has_single_tag_inside(node, "p") and link_density(node) < _SINGLE_PARAGRAPH_MAX_LINK_DENSITY:
                paragraph = first_element_child(node)
                node.replace_with(paragraph)
                node = paragraph
                elements.append(node)
            elif not has_child_block_element(node):
                node.name = "p"
                elements.append(node)

        node = get_next_node(node)
    return elements


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------

def element_score(text: str) -> float:
    """Base score of a text-bearing element: commas and length add points."""
    score = 1.0
    score += len(COMMAS_RE.split(text))
    score += min(len(text) // 100, 3)
    return score


def score_elements(
    elements: list[Tag],
    ctx: ExtractionContext,
    order: dict[int, int] | None = None,
) -> dict[int, Candidate]:
    """Propagate element scores to their ancestors.

    Returns a mapping from ``id(node)`` to its :class:`Candidate`, in the
    order candidates were first reached. The parent gets the full score,
    the grandparent half, and the next levels ``1 / (level * 3)``.
    """
    order = order or {}
    candidates: dict[int, Candidate] = {}
    for element in elements:
        parent = element.parent
        if parent is None or is_document(parent):
            continue
        text = inner_text(element)
        if len(text) < _MIN_SCORED_TEXT:
            continue
        ancestors = node_ancestors(element, _SCORE_ANCESTOR_DEPTH)
        if not ancestors:
            continue

        score = element_score(text)
        for level, ancestor in enumerate(ancestors):
            if not _is_scorable_ancestor(ancestor):
                continue
            candidate = candidates.get(id(ancestor))
            if candidate is None:
                candidate = initialize_candidate(ancestor, ctx, order.get(id(ancestor), -1))
                candidates[id(ancestor)] = candidate
            if level == 0:
                divider = 1
            elif level == 1:
                divider = 2
            else:
                divider = level * 3
            share = score / divider
            candidate.content_score += share
            candidate.contributions.append((element, share))
    return candidates
