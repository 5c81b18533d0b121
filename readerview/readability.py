"""The extraction pipeline.

Usage::

    from readerview import Readability

    article = Readability(html, url="https://example.com/post").parse()
    if article is not None:
        print(article.title)
        print(article.content)
"""

from __future__ import annotations

import copy
import logging

from bs4 import BeautifulSoup

from readerview.errors import ElementLimitError, ParseError
from readerview.extractors.cleaner import post_process_content
from readerview.extractors.context import ExtractionContext
from readerview.extractors.metadata import collect_json_ld, resolve_metadata
from readerview.extractors.preprocess import preprocess_document
from readerview.extractors.result import build_article
from readerview.extractors.selection import select_article
from readerview.extractors.urlnorm import document_base_url, validate_base_url
from readerview.items import Article
from readerview.options import ReadabilityOptions

logger = logging.getLogger(__name__)


def _to_soup(html: str | bytes | BeautifulSoup) -> BeautifulSoup:
    if isinstance(html, BeautifulSoup):
        # Parsing mutates the tree; never touch the caller's copy
        return copy.copy(html)
    try:
        return BeautifulSoup(html, "lxml")
    except Exception as exc:
        raise ParseError(f"Could not parse HTML document: {exc}") from exc


class Readability:
    """Extract the main article from one HTML document.

    Args:
        html:    Markup as text, bytes (encoding is sniffed) or an existing
                 ``BeautifulSoup`` tree, which is copied first.
        url:     Absolute URL of the page, used to resolve relative links.
        options: Tuning knobs; defaults to ``ReadabilityOptions()``.

    Raises:
        InvalidBaseURLError: *url* is not an absolute URL.
        ParseError:          the markup could not be tokenized.
    """

    def __init__(
        self,
        html: str | bytes | BeautifulSoup,
        url: str | None = None,
        options: ReadabilityOptions | None = None,
    ) -> None:
        self.url = validate_base_url(url)
        self.options = options or ReadabilityOptions()
        self._soup = _to_soup(html)
        self._parsed = False
        self._article: Article | None = None

    def _check_element_limit(self) -> None:
        limit = self.options.max_elems_to_parse
        if not limit:
            return
        count = len(self._soup.find_all(True))
        if count > limit:
            raise ElementLimitError(count, limit)

    def parse(self) -> Article | None:
        """Run the pipeline; None means the page holds no article.

        The tree is consumed by the first call; later calls return a copy of
        the cached result.

        Raises:
            ElementLimitError: the document exceeds ``max_elems_to_parse``.
        """
        if self._parsed:
            return self._article.model_copy() if self._article is not None else None

        self._check_element_limit()
        soup = self._soup

        # Scripts are gone after preprocessing, so JSON-LD is read first
        json_ld = {} if self.options.disable_json_ld else collect_json_ld(soup)
        preprocess_document(soup)
        metadata = resolve_metadata(soup, json_ld)
        base_url = document_base_url(soup, self.url)

        ctx = ExtractionContext(
            soup=soup,
            options=self.options,
            article_title=metadata.title or "",
        )
        selection = select_article(soup, ctx)
        self._parsed = True
        if selection is None:
            logger.debug("No article extracted from %s", self.url or "<document>")
            return None

        raw_content = selection.container.decode_contents()
        post_process_content(selection.container, ctx, base_url, self.url)
        self._article = build_article(selection, metadata, raw_content)
        logger.debug(
            "Extracted %d chars from %s (pass %s)",
            self._article.length, self.url or "<document>", selection.state,
        )
        return self._article.model_copy()


def parse(
    html: str | bytes | BeautifulSoup,
    url: str | None = None,
    options: ReadabilityOptions | None = None,
) -> Article | None:
    """Shortcut for ``Readability(html, url, options).parse()``."""
    return Readability(html, url=url, options=options).parse()
