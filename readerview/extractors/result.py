"""Assemble the :class:`~readerview.items.Article` from a selection."""

from __future__ import annotations

from bs4 import Tag

from readerview.items import Article, ArticleMetadata

from .dom import inner_text
from .selection import Selection

# A paragraph shorter than this makes a poor excerpt
_MIN_EXCERPT_LENGTH = 25


def first_paragraph_excerpt(container: Tag) -> str | None:
    for p in container.find_all("p"):
        text = inner_text(p)
        if len(text) >= _MIN_EXCERPT_LENGTH:
            return text
    return None


def build_article(
    selection: Selection,
    metadata: ArticleMetadata,
    raw_content: str | None = None,
) -> Article:
    """Combine the post-processed container with the resolved metadata.

    The excerpt falls back to the first substantial paragraph, and the text
    direction found near the top candidate wins over none at all.
    """
    container = selection.container
    text = container.get_text()
    return Article(
        title=metadata.title,
        content=container.decode_contents(),
        text_content=text,
        length=len(text),
        excerpt=metadata.excerpt or first_paragraph_excerpt(container),
        byline=metadata.byline,
        dir=selection.direction or metadata.dir,
        site_name=metadata.site_name,
        lang=metadata.lang,
        published_time=metadata.published_time,
        raw_content=raw_content,
    )
