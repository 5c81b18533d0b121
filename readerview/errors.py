"""Exceptions surfaced to callers.

"No content found" is not among them: :meth:`Readability.parse` returns
``None`` for pages with no extractable article.
"""

from __future__ import annotations


class ReadabilityError(Exception):
    """Base class for every error raised by readerview."""


class InvalidBaseURLError(ReadabilityError, ValueError):
    """The base URL handed to the constructor is not an absolute URL.

    Attributes:
        url -- the rejected value
    """

    def __init__(self, message: str, url: str = "") -> None:
        super().__init__(message)
        self.url = url


class ParseError(ReadabilityError):
    """The HTML tokenizer failed; the original exception is chained."""


class ElementLimitError(ReadabilityError):
    """The document has more elements than ``max_elems_to_parse`` allows."""

    def __init__(self, count: int, limit: int) -> None:
        super().__init__(f"Aborting parsing document; {count} elements found (limit {limit})")
        self.count = count
        self.limit = limit
