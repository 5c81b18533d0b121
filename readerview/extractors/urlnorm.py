"""Base URL validation and relative-URL resolution."""

from __future__ import annotations

import logging
import re
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Tag

from readerview.errors import InvalidBaseURLError

from .dom import attr_str
from .patterns import SRCSET_URL_RE

logger = logging.getLogger(__name__)

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*$")

# Schemes whose URLs are meaningless without a host
_HIERARCHICAL_SCHEMES: frozenset[str] = frozenset({"http", "https", "ftp", "ws", "wss"})


def validate_base_url(url: str | None) -> str | None:
    """Return *url* stripped, or None when no URL was given.

    Raises:
        InvalidBaseURLError: *url* is not an absolute URL.
    """
    if url is None:
        return None
    url = url.strip()
    if not url:
        return None
    if any(ch.isspace() for ch in url):
        raise InvalidBaseURLError(f"Base URL contains whitespace: {url!r}", url=url)
    try:
        parsed = urlparse(url)
        # Accessing .port validates it (raises ValueError when out of range)
        parsed.port  # noqa: B018
    except ValueError as exc:
        raise InvalidBaseURLError(f"Invalid base URL {url!r}: {exc}", url=url) from exc

    if not parsed.scheme or not _SCHEME_RE.match(parsed.scheme):
        raise InvalidBaseURLError(f"Base URL has no scheme: {url!r}", url=url)
    if parsed.scheme.lower() in _HIERARCHICAL_SCHEMES and not parsed.hostname:
        raise InvalidBaseURLError(f"Base URL has no host: {url!r}", url=url)
    if not (parsed.netloc or parsed.path):
        raise InvalidBaseURLError(f"Base URL is empty after the scheme: {url!r}", url=url)
    return url


def document_base_url(soup: BeautifulSoup, page_url: str | None) -> str | None:
    """Resolve ``<base href>`` against the page URL.

    Without a page URL only an absolute ``<base href>`` is usable.
    """
    base = soup.find("base", href=True)
    href = attr_str(base, "href").strip() if isinstance(base, Tag) else ""
    if not href:
        return page_url
    if page_url:
        try:
            return urljoin(page_url, href)
        except ValueError as exc:
            logger.debug("Ignoring <base href=%r>: %s", href, exc)
            return page_url
    if urlparse(href).scheme:
        return href
    return None


def to_absolute_uri(uri: str, base_url: str | None, page_url: str | None = None) -> str:
    """Resolve *uri* against *base_url*; unresolvable values come back unchanged.

    In-page ``#fragment`` links stay relative unless a ``<base>`` element
    moved the document base elsewhere.
    """
    if not base_url:
        return uri
    if base_url == page_url and uri.startswith("#"):
        return uri
    try:
        return urljoin(base_url, uri.strip())
    except ValueError as exc:
        logger.debug("Could not resolve %r against %r: %s", uri, base_url, exc)
        return uri


def absolutize_srcset(srcset: str, base_url: str | None, page_url: str | None = None) -> str:
    """Resolve every URL of a ``srcset`` value, keeping descriptors intact."""
    if not base_url:
        return srcset

    def _replace(match: re.Match[str]) -> str:
        return (
            to_absolute_uri(match.group(1), base_url, page_url)
            + (match.group(2) or "")
            + match.group(3)
        )

    return SRCSET_URL_RE.sub(_replace, srcset)
