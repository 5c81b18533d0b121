"""Deterministic metadata resolution.

Priority chain per field (highest → lowest):
    JSON-LD → Open Graph → Twitter Card → Dublin Core → generic <meta> → DOM

The first source yielding a non-empty value wins; lower sources are never
consulted for a field that is already filled.
"""

from __future__ import annotations

import html
import json
import logging
import re
from typing import Any
from urllib.parse import urlparse

import dateparser
from bs4 import BeautifulSoup, Tag

from readerview.items import ArticleMetadata

from .dom import (
    attr_str,
    first_element_child,
    get_next_node,
    inner_text,
    match_string,
    text_similarity,
    word_count,
)
from .patterns import (
    BYLINE_RE,
    CDATA_WRAPPER_RE,
    JSON_LD_ARTICLE_TYPES_RE,
    META_NAME_RE,
    META_PROPERTY_RE,
    NORMALIZE_WS_RE,
    SCHEMA_DOT_ORG_RE,
    TITLE_HIERARCHICAL_SEPARATOR_RE,
    TITLE_LEADING_SEGMENT_RE,
    TITLE_SEPARATOR_RE,
    TITLE_SEPARATOR_RUN_RE,
)

logger = logging.getLogger(__name__)

_ISO_CLEANUP_RE = re.compile(r"\s+")

# Bylines longer than this are prose, not an attribution
_MAX_BYLINE_LENGTH = 100

_TITLE_SIMILARITY = 0.75

# ---------------------------------------------------------------------------
# Source keys, in priority order, for each field
# ---------------------------------------------------------------------------

_OPEN_GRAPH_KEYS: dict[str, tuple[str, ...]] = {
    "title": ("og:title",),
    "byline": ("article:author",),
    "excerpt": ("og:description",),
    "site_name": ("og:site_name",),
    "published_time": ("article:published_time",),
}

_TWITTER_KEYS: dict[str, tuple[str, ...]] = {
    "title": ("twitter:title",),
    "byline": (),
    "excerpt": ("twitter:description",),
    "site_name": (),
    "published_time": (),
}

_DUBLIN_CORE_KEYS: dict[str, tuple[str, ...]] = {
    "title": ("dc:title", "dcterm:title"),
    "byline": ("dc:creator", "dcterm:creator"),
    "excerpt": ("dc:description", "dcterm:description"),
    "site_name": (),
    "published_time": (),
}

_GENERIC_KEYS: dict[str, tuple[str, ...]] = {
    "title": ("weibo:article:title", "weibo:webpage:title", "title", "parsely-title"),
    "byline": ("author", "parsely-author"),
    "excerpt": ("weibo:article:description", "weibo:webpage:description", "description"),
    "site_name": ("site_name",),
    "published_time": ("parsely-pub-date",),
}

_META_SOURCES: tuple[dict[str, tuple[str, ...]], ...] = (
    _OPEN_GRAPH_KEYS,
    _TWITTER_KEYS,
    _DUBLIN_CORE_KEYS,
    _GENERIC_KEYS,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _first(*values: Any) -> Any:
    """Return the first non-empty, non-None value."""
    for v in values:
        if v:
            return v
    return None


def _is_url(value: str) -> bool:
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return bool(parsed.scheme and parsed.netloc)


def _unescape(value: str | None) -> str | None:
    if not value:
        return value
    return html.unescape(value)


def parse_date(raw: str | None) -> str | None:
    """Parse a date string to ISO 8601.

    Returns None on failure or when the year falls outside 1990-2099
    (catches epoch defaults like 1970-01-01 and far-future typos).
    """
    if not raw:
        return None
    raw = _ISO_CLEANUP_RE.sub(" ", raw.strip())
    try:
        parsed = dateparser.parse(
            raw,
            settings={
                "RETURN_AS_TIMEZONE_AWARE": True,
                "PREFER_DAY_OF_MONTH": "first",
                "PREFER_LOCALE_DATE_ORDER": False,
            },
        )
        if parsed:
            if not (1990 <= parsed.year <= 2099):
                return None
            return parsed.isoformat()
    except Exception as exc:
        logger.debug("Date parse failed for %r: %s", raw, exc)
    return None


# ---------------------------------------------------------------------------
# Title
# ---------------------------------------------------------------------------

def get_article_title(soup: BeautifulSoup) -> str:
    """Clean the document ``<title>``, dropping site-name prefixes/suffixes."""
    title_tag = soup.find("title")
    orig_title = title_tag.get_text().strip() if isinstance(title_tag, Tag) else ""
    cur_title = orig_title
    had_hierarchical_separators = False

    if TITLE_SEPARATOR_RE.search(cur_title):
        had_hierarchical_separators = bool(TITLE_HIERARCHICAL_SEPARATOR_RE.search(cur_title))
        last_separator = list(TITLE_SEPARATOR_RE.finditer(orig_title))[-1]
        cur_title = orig_title[: last_separator.start()]
        if word_count(cur_title) < 3:
            cur_title = TITLE_LEADING_SEGMENT_RE.sub("", orig_title, count=1)
    elif ": " in cur_title:
        trimmed = cur_title.strip()
        headings = soup.find_all(["h1", "h2"])
        if not any(h.get_text().strip() == trimmed for h in headings):
            cur_title = orig_title[orig_title.rfind(":") + 1:]
            if word_count(cur_title) < 3:
                cur_title = orig_title[orig_title.find(":") + 1:]
            elif word_count(orig_title[: orig_title.find(":")]) > 5:
                cur_title = orig_title
    elif len(cur_title) > 150 or len(cur_title) < 15:
        h1s = soup.find_all("h1")
        if len(h1s) == 1:
            cur_title = inner_text(h1s[0])

    cur_title = NORMALIZE_WS_RE.sub(" ", cur_title.strip())
    cur_word_count = word_count(cur_title)
    if cur_word_count <= 4 and (
        not had_hierarchical_separators
        or cur_word_count != word_count(TITLE_SEPARATOR_RUN_RE.sub("", orig_title)) - 1
    ):
        cur_title = orig_title
    return cur_title


# ---------------------------------------------------------------------------
# JSON-LD
# ---------------------------------------------------------------------------

def _is_article_type(value: Any) -> bool:
    return isinstance(value, str) and bool(JSON_LD_ARTICLE_TYPES_RE.search(value))


def _has_schema_org_context(node: dict) -> bool:
    context = node.get("@context")
    if isinstance(context, str):
        return bool(SCHEMA_DOT_ORG_RE.match(context))
    if isinstance(context, dict):
        vocab = context.get("@vocab")
        return isinstance(vocab, str) and bool(SCHEMA_DOT_ORG_RE.match(vocab))
    return False


def _json_ld_fields(node: dict, soup: BeautifulSoup) -> dict[str, str]:
    result: dict[str, str] = {}

    name = node.get("name")
    headline = node.get("headline")
    if isinstance(name, str) and isinstance(headline, str) and name != headline:
        # Both present: prefer whichever matches the visible page title
        title = get_article_title(soup)
        name_matches = text_similarity(name, title) > _TITLE_SIMILARITY
        headline_matches = text_similarity(headline, title) > _TITLE_SIMILARITY
        result["title"] = headline if headline_matches and not name_matches else name
    elif isinstance(name, str):
        result["title"] = name.strip()
    elif isinstance(headline, str):
        result["title"] = headline.strip()

    author = node.get("author")
    if isinstance(author, dict) and isinstance(author.get("name"), str):
        result["byline"] = author["name"].strip()
    elif isinstance(author, list) and author and isinstance(author[0], dict) \
            and isinstance(author[0].get("name"), str):
        result["byline"] = ", ".join(
            a["name"].strip()
            for a in author
            if isinstance(a, dict) and isinstance(a.get("name"), str)
        )

    if isinstance(node.get("description"), str):
        result["excerpt"] = node["description"].strip()

    publisher = node.get("publisher")
    if isinstance(publisher, dict) and isinstance(publisher.get("name"), str):
        result["site_name"] = publisher["name"].strip()

    if isinstance(node.get("datePublished"), str):
        result["published_time"] = node["datePublished"].strip()

    return result


def _article_node(raw: Any) -> dict | None:
    if isinstance(raw, list):
        raw = next(
            (it for it in raw if isinstance(it, dict) and _is_article_type(it.get("@type"))),
            None,
        )
    if not isinstance(raw, dict) or not _has_schema_org_context(raw):
        return None
    if not raw.get("@type") and isinstance(raw.get("@graph"), list):
        raw = next(
            (
                it for it in raw["@graph"]
                if isinstance(it, dict) and _is_article_type(it.get("@type"))
            ),
            None,
        )
    if not isinstance(raw, dict) or not _is_article_type(raw.get("@type")):
        return None
    return raw


def collect_json_ld(soup: BeautifulSoup) -> dict[str, str]:
    """Read article metadata from the first usable JSON-LD block.

    Must run before preprocessing, which removes every ``<script>``.
    """
    for script in soup.find_all("script", type="application/ld+json"):
        content = CDATA_WRAPPER_RE.sub("", script.get_text() or script.string or "")
        try:
            raw = json.loads(content)
        except (ValueError, TypeError, RecursionError) as exc:
            logger.debug("Skipping malformed JSON-LD block: %s", exc)
            continue
        node = _article_node(raw)
        if node is None:
            continue
        return _json_ld_fields(node, soup)
    return {}


# ---------------------------------------------------------------------------
# <meta> tags
# ---------------------------------------------------------------------------

def collect_meta_values(soup: BeautifulSoup) -> dict[str, str]:
    """Map normalized meta keys (``og:title``, ``dc:creator``...) to content."""
    values: dict[str, str] = {}
    for meta in soup.find_all("meta"):
        if not isinstance(meta, Tag):
            continue
        content = attr_str(meta, "content").strip()
        if not content:
            continue
        prop = attr_str(meta, "property")
        matched = META_PROPERTY_RE.search(prop) if prop else None
        if matched:
            values[re.sub(r"\s", "", matched.group(0).lower())] = content
        name = attr_str(meta, "name")
        if not matched and name and META_NAME_RE.search(name):
            key = re.sub(r"\s", "", name.lower()).replace(".", ":")
            values[key] = content
    return values


def _from_meta(values: dict[str, str], source: dict[str, tuple[str, ...]], field: str) -> str | None:
    for key in source[field]:
        value = values.get(key)
        if not value:
            continue
        if key == "article:author" and _is_url(value):
            continue
        return value
    return None


# ---------------------------------------------------------------------------
# DOM heuristics
# ---------------------------------------------------------------------------

def is_byline_node(tag: Tag) -> bool:
    """True for an element that looks like an author attribution."""
    rel = attr_str(tag, "rel")
    itemprop = attr_str(tag, "itemprop")
    if rel != "author" and "author" not in itemprop and not BYLINE_RE.search(match_string(tag)):
        return False
    text = tag.get_text().strip()
    return 0 < len(text) < _MAX_BYLINE_LENGTH


def find_byline(soup: BeautifulSoup) -> str | None:
    node = first_element_child(soup)
    while node is not None:
        if is_byline_node(node):
            return node.get_text().strip()
        node = get_next_node(node)
    return None


def find_published_time(soup: BeautifulSoup) -> str | None:
    for tag in soup.find_all(attrs={"itemprop": "datePublished"}):
        value = attr_str(tag, "content") or attr_str(tag, "datetime")
        if value.strip():
            return value.strip()
    for tag in soup.find_all("time", attrs={"pubdate": True}):
        value = attr_str(tag, "datetime").strip()
        if value:
            return value
    return None


def _document_lang(soup: BeautifulSoup) -> str | None:
    html_tag = soup.find("html")
    if isinstance(html_tag, Tag):
        return attr_str(html_tag, "lang").strip() or None
    return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def resolve_metadata(
    soup: BeautifulSoup,
    json_ld: dict[str, str] | None = None,
) -> ArticleMetadata:
    """Resolve title, byline, excerpt, site name and published time.

    Args:
        soup:    The (preprocessed) document.
        json_ld: Fields collected by :func:`collect_json_ld`; pass an empty
                 dict or None when JSON-LD is disabled.

    DOM fallbacks are computed only for fields no metadata source filled.
    """
    json_ld = json_ld or {}
    values = collect_meta_values(soup)

    resolved: dict[str, str | None] = {}
    for field in ("title", "byline", "excerpt", "site_name", "published_time"):
        resolved[field] = _first(
            json_ld.get(field),
            *(_from_meta(values, source, field) for source in _META_SOURCES),
        )

    if not resolved["title"]:
        resolved["title"] = get_article_title(soup)
    if not resolved["byline"]:
        resolved["byline"] = find_byline(soup)
    if not resolved["published_time"]:
        resolved["published_time"] = find_published_time(soup)

    return ArticleMetadata(
        **{k: _unescape(v) for k, v in resolved.items()},
        lang=_document_lang(soup),
    )
