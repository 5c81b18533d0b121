"""Top candidate selection with progressive relaxation.

A pass walks, scores and cleans the document under the current
:class:`PassFlags`. When the resulting article is shorter than
``char_threshold`` the body is restored from a snapshot and the next, more
permissive pass runs::

    full-strictness -> relaxed-unlikely -> relaxed-classes
                    -> relaxed-conditional -> exhausted

Reaching ``exhausted`` means the page has no article.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from enum import StrEnum

from bs4 import BeautifulSoup, Tag

from .cleaner import prep_article
from .context import ExtractionContext, PassFlags
from .dom import (
    attr_str,
    element_children,
    inner_text,
    is_document,
    link_density,
    node_ancestors,
)
from .patterns import (
    ALTER_TO_DIV_EXCEPTIONS,
    PAGE_WRAPPER_CLASS,
    PAGE_WRAPPER_ID,
    SENTENCE_END_RE,
)
from .scoring import (
    Candidate,
    collect_elements_to_score,
    initialize_candidate,
    score_elements,
)

logger = logging.getLogger(__name__)

# Alternative candidates needed before a shared ancestor is promoted
_MIN_ALTERNATIVE_CANDIDATES = 3
_ALTERNATIVE_SCORE_RATIO = 0.75

_SIBLING_MIN_THRESHOLD = 10
_SIBLING_SCORE_RATIO = 0.2
_SIBLING_LONG_PARAGRAPH = 80
_SIBLING_MAX_LINK_DENSITY = 0.25


class RelaxationState(StrEnum):
    FULL_STRICTNESS     = "full-strictness"
    RELAXED_UNLIKELY    = "relaxed-unlikely"
    RELAXED_CLASSES     = "relaxed-classes"
    RELAXED_CONDITIONAL = "relaxed-conditional"
    EXHAUSTED           = "exhausted"


_NEXT_STATE: dict[RelaxationState, RelaxationState] = {
    RelaxationState.FULL_STRICTNESS: RelaxationState.RELAXED_UNLIKELY,
    RelaxationState.RELAXED_UNLIKELY: RelaxationState.RELAXED_CLASSES,
    RelaxationState.RELAXED_CLASSES: RelaxationState.RELAXED_CONDITIONAL,
    RelaxationState.RELAXED_CONDITIONAL: RelaxationState.EXHAUSTED,
    RelaxationState.EXHAUSTED: RelaxationState.EXHAUSTED,
}

_PASS_FLAGS: dict[RelaxationState, PassFlags] = {
    RelaxationState.FULL_STRICTNESS: PassFlags(),
    RelaxationState.RELAXED_UNLIKELY: PassFlags(strip_unlikely=False),
    RelaxationState.RELAXED_CLASSES: PassFlags(strip_unlikely=False, weight_classes=False),
    RelaxationState.RELAXED_CONDITIONAL: PassFlags(
        strip_unlikely=False, weight_classes=False, clean_conditionally=False,
    ),
}


def next_state(state: RelaxationState) -> RelaxationState:
    return _NEXT_STATE[state]


def flags_for(state: RelaxationState) -> PassFlags:
    """Heuristic flags for *state*; ``exhausted`` has none."""
    try:
        return _PASS_FLAGS[state]
    except KeyError:
        raise ValueError(f"No extraction pass runs in state {state!s}") from None


@dataclass
class Selection:
    """Outcome of a successful pass.

    ``container`` is a detached ``<div>`` holding the page wrapper; it is not
    post-processed yet.
    """

    container: Tag
    top_candidate: Tag
    direction: str | None
    text_length: int
    state: RelaxationState


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------

def rank_candidates(candidates: dict[int, Candidate], limit: int) -> list[Candidate]:
    """Scale scores by link density and return the *limit* best.

    Ties go to the candidate that comes first in the document.
    """
    for candidate in candidates.values():
        candidate.content_score *= 1 - link_density(candidate.node)
    ranked = sorted(candidates.values(), key=lambda c: (-c.content_score, c.index))
    return ranked[:limit]


def _is_top_boundary(node: Tag | None) -> bool:
    return node is None or is_document(node) or node.name in ("body", "html")


def _promote_shared_ancestor(top: list[Candidate]) -> Tag:
    """Prefer an ancestor shared by several near-best candidates."""
    best = top[0]
    if best.content_score <= 0:
        return best.node
    alternatives = [
        node_ancestors(c.node)
        for c in top[1:]
        if c.content_score / best.content_score >= _ALTERNATIVE_SCORE_RATIO
    ]
    if len(alternatives) < _MIN_ALTERNATIVE_CANDIDATES:
        return best.node

    parent = best.node.parent
    while not _is_top_boundary(parent):
        containing = sum(1 for ancestors in alternatives if any(a is parent for a in ancestors))
        if containing >= _MIN_ALTERNATIVE_CANDIDATES:
            return parent
        parent = parent.parent
    return best.node


def _climb_while_score_rises(
    node: Tag,
    candidates: dict[int, Candidate],
) -> Tag:
    last_score = candidates[id(node)].content_score
    score_threshold = last_score / 3
    parent = node.parent
    while not _is_top_boundary(parent):
        parent_candidate = candidates.get(id(parent))
        if parent_candidate is None:
            parent = parent.parent
            continue
        parent_score = parent_candidate.content_score
        if parent_score < score_threshold:
            break
        if parent_score > last_score:
            return parent
        last_score = parent_score
        parent = parent.parent
    return node


def _climb_single_child_parents(node: Tag) -> Tag:
    parent = node.parent
    while not _is_top_boundary(parent) and len(element_children(parent)) == 1:
        node = parent
        parent = node.parent
    return node


def _ensure_candidate(node: Tag, candidates: dict[int, Candidate], ctx: ExtractionContext) -> Candidate:
    candidate = candidates.get(id(node))
    if candidate is None:
        candidate = initialize_candidate(node, ctx)
        candidates[id(node)] = candidate
    return candidate


def _text_direction(top_candidate: Tag) -> str | None:
    parent = top_candidate.parent
    if parent is None:
        return attr_str(top_candidate, "dir") or None
    for node in [parent, top_candidate, *node_ancestors(parent)]:
        if is_document(node):
            continue
        direction = attr_str(node, "dir")
        if direction:
            return direction
    return None


# ---------------------------------------------------------------------------
# Sibling merge
# ---------------------------------------------------------------------------

def _sibling_belongs(
    sibling: Tag,
    top_candidate: Tag,
    top_score: float,
    candidates: dict[int, Candidate],
) -> bool:
    if sibling is top_candidate:
        return True

    threshold = max(_SIBLING_MIN_THRESHOLD, top_score * _SIBLING_SCORE_RATIO)
    bonus = 0.0
    top_class = attr_str(top_candidate, "class")
    if top_class and attr_str(sibling, "class") == top_class:
        bonus += top_score * _SIBLING_SCORE_RATIO

    candidate = candidates.get(id(sibling))
    if candidate is not None and candidate.content_score + bonus >= threshold:
        return True

    if sibling.name != "p":
        return False
    density = link_density(sibling)
    content = inner_text(sibling)
    length = len(content)
    if length > _SIBLING_LONG_PARAGRAPH:
        return density < _SIBLING_MAX_LINK_DENSITY
    return 0 < length < _SIBLING_LONG_PARAGRAPH and density == 0 and bool(SENTENCE_END_RE.search(content))


def _merge_siblings(
    top_candidate: Tag,
    candidates: dict[int, Candidate],
    ctx: ExtractionContext,
) -> Tag:
    article = ctx.new_tag("div")
    top_score = candidates[id(top_candidate)].content_score
    parent = top_candidate.parent
    siblings = element_children(parent) if parent is not None else [top_candidate]
    for sibling in siblings:
        if not _sibling_belongs(sibling, top_candidate, top_score, candidates):
            continue
        if sibling is not top_candidate:
            ctx.debug(logger, "appending sibling <%s class=%r>", sibling.name, attr_str(sibling, "class"))
        if sibling.name not in ALTER_TO_DIV_EXCEPTIONS:
            sibling.name = "div"
        article.append(sibling.extract())
    return article


# ---------------------------------------------------------------------------
# One pass
# ---------------------------------------------------------------------------

def _document_order(soup: BeautifulSoup) -> dict[int, int]:
    return {id(tag): index for index, tag in enumerate(soup.find_all(True))}


def grab_article(soup: BeautifulSoup, ctx: ExtractionContext) -> tuple[Tag, Tag, str | None] | None:
    """Run one pass; return ``(container, top_candidate, dir)`` or None without a body."""
    body = soup.body
    if body is None:
        return None

    elements = collect_elements_to_score(soup, ctx)
    candidates = score_elements(elements, ctx, _document_order(soup))
    top = rank_candidates(candidates, ctx.options.nb_top_candidates)
    ctx.debug(
        logger,
        "top candidates: %s",
        [(c.node.name, attr_str(c.node, "class"), round(c.content_score, 2)) for c in top],
    )

    created_wrapper = False
    if not top or top[0].node is body:
        top_candidate = ctx.new_tag("div")
        for child in list(body.contents):
            top_candidate.append(child.extract())
        body.append(top_candidate)
        candidates[id(top_candidate)] = initialize_candidate(top_candidate, ctx)
        created_wrapper = True
    else:
        top_candidate = _promote_shared_ancestor(top)
        _ensure_candidate(top_candidate, candidates, ctx)
        top_candidate = _climb_while_score_rises(top_candidate, candidates)
        top_candidate = _climb_single_child_parents(top_candidate)
        _ensure_candidate(top_candidate, candidates, ctx)

    direction = _text_direction(top_candidate)
    article = _merge_siblings(top_candidate, candidates, ctx)
    prep_article(article, ctx)

    if created_wrapper:
        top_candidate["id"] = PAGE_WRAPPER_ID
        top_candidate["class"] = [PAGE_WRAPPER_CLASS]
    else:
        page = ctx.new_tag("div")
        page["id"] = PAGE_WRAPPER_ID
        page["class"] = [PAGE_WRAPPER_CLASS]
        for child in list(article.contents):
            page.append(child.extract())
        article.append(page)
    return article, top_candidate, direction


def _restore_body(soup: BeautifulSoup, snapshot: Tag) -> None:
    fresh = copy.copy(snapshot)
    body = soup.body
    if body is not None:
        body.replace_with(fresh)
    elif soup.html is not None:
        soup.html.append(fresh)
    else:
        soup.append(fresh)


def select_article(soup: BeautifulSoup, ctx: ExtractionContext) -> Selection | None:
    """Find the article container, relaxing heuristics until one is long enough.

    Returns None when every pass falls short of ``char_threshold``.
    """
    if soup.body is None:
        logger.debug("No <body>; nothing to select")
        return None

    snapshot = copy.copy(soup.body)
    threshold = ctx.options.char_threshold
    state = RelaxationState.FULL_STRICTNESS
    while state is not RelaxationState.EXHAUSTED:
        pass_ctx = ctx.for_pass(flags_for(state))
        grabbed = grab_article(soup, pass_ctx)
        if grabbed is not None:
            container, top_candidate, direction = grabbed
            text_length = len(inner_text(container))
            if text_length >= threshold:
                ctx.debug(logger, "pass %s accepted: %d chars", state, text_length)
                return Selection(
                    container=container,
                    top_candidate=top_candidate,
                    direction=direction,
                    text_length=text_length,
                    state=state,
                )
            ctx.debug(logger, "pass %s too short: %d < %d chars", state, text_length, threshold)

        state = next_state(state)
        if state is not RelaxationState.EXHAUSTED:
            _restore_body(soup, snapshot)

    logger.info("No article content found after relaxing every heuristic")
    return None
