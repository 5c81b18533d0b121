"""readerview - pull the main article out of a cluttered HTML page.

Quick usage::

    from readerview import parse

    article = parse(html, url="https://example.com/blog/some-post")
    if article is not None:
        print(article.title)
        print(article.content)

Tuning::

    from readerview import Readability, ReadabilityOptions

    options = ReadabilityOptions(char_threshold=250, keep_classes=True)
    article = Readability(html, url=url, options=options).parse()

Cheap pre-check before a full parse::

    from readerview import is_probably_readerable

    if is_probably_readerable(html):
        ...
"""

from readerview.errors import (
    ElementLimitError,
    InvalidBaseURLError,
    ParseError,
    ReadabilityError,
)
from readerview.items import Article, ArticleMetadata
from readerview.options import ReadabilityOptions
from readerview.readability import Readability, parse
from readerview.readerable import is_probably_readerable

__version__ = "0.1.0"
__all__ = [
    "Article",
    "ArticleMetadata",
    "ElementLimitError",
    "InvalidBaseURLError",
    "ParseError",
    "Readability",
    "ReadabilityError",
    "ReadabilityOptions",
    "is_probably_readerable",
    "parse",
]
