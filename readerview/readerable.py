"""Cheap pre-check: is a full parse likely to find an article?"""

from __future__ import annotations

import logging
import math

from bs4 import BeautifulSoup, Tag

from readerview.extractors.dom import has_ancestor_tag, is_probably_visible, match_string
from readerview.extractors.patterns import OK_MAYBE_CANDIDATE_RE, UNLIKELY_CANDIDATES_RE

logger = logging.getLogger(__name__)

DEFAULT_MIN_CONTENT_LENGTH = 140
DEFAULT_MIN_SCORE = 20


def _paragraph_like_nodes(soup: BeautifulSoup) -> list[Tag]:
    nodes: list[Tag] = list(soup.find_all(["p", "pre", "article"]))
    seen = {id(node) for node in nodes}
    # Sites using <div>text<br>text</div> instead of paragraphs
    for br in soup.select("div > br"):
        parent = br.parent
        if isinstance(parent, Tag) and id(parent) not in seen:
            seen.add(id(parent))
            nodes.append(parent)
    return nodes


def is_probably_readerable(
    html: str | bytes | BeautifulSoup,
    min_content_length: int = DEFAULT_MIN_CONTENT_LENGTH,
    min_score: float = DEFAULT_MIN_SCORE,
) -> bool:
    """Decide from paragraph lengths alone whether the page looks like an article.

    Each visible paragraph-like node longer than *min_content_length*
    contributes ``sqrt(length - min_content_length)``; the page qualifies once
    the total exceeds *min_score*. A ``BeautifulSoup`` argument is only
    read, never modified.
    """
    soup = html if isinstance(html, BeautifulSoup) else BeautifulSoup(html, "lxml")

    score = 0.0
    for node in _paragraph_like_nodes(soup):
        if not is_probably_visible(node):
            continue
        matched = match_string(node)
        if UNLIKELY_CANDIDATES_RE.search(matched) and not OK_MAYBE_CANDIDATE_RE.search(matched):
            continue
        if node.name == "p" and has_ancestor_tag(node, "li", -1):
            continue
        text_length = len(node.get_text().strip())
        if text_length < min_content_length:
            continue
        score += math.sqrt(text_length - min_content_length)
        if score > min_score:
            return True
    logger.debug("Not readerable: score %.1f <= %s", score, min_score)
    return False
