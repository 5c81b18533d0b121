"""Precompiled heuristic tables shared by every extraction pass.

Everything here is built once at import time and never mutated, so the
tables can be shared freely between concurrent parse calls.
"""

from __future__ import annotations

import re

# ---------------------------------------------------------------------------
# Class / id heuristics
# ---------------------------------------------------------------------------

UNLIKELY_CANDIDATES_RE = re.compile(
    r"-ad-|ai2html|banner|breadcrumbs|combx|comment|community|cover-wrap|disqus|"
    r"extra|footer|gdpr|header|legends|menu|related|remark|replies|rss|shoutbox|"
    r"sidebar|skyscraper|social|sponsor|supplemental|ad-break|agegate|pagination|"
    r"pager|popup|yom-remote",
    re.IGNORECASE,
)

OK_MAYBE_CANDIDATE_RE = re.compile(
    r"and|article|body|column|content|main|mathjax|shadow",
    re.IGNORECASE,
)

POSITIVE_RE = re.compile(
    r"article|body|content|entry|hentry|h-entry|main|page|pagination|post|text|"
    r"blog|story",
    re.IGNORECASE,
)

NEGATIVE_RE = re.compile(
    r"-ad-|hidden|^hid$| hid$| hid |^hid |banner|combx|comment|com-|contact|"
    r"footer|gdpr|masthead|media|meta|outbrain|promo|related|scroll|share|"
    r"shoutbox|sidebar|skyscraper|sponsor|shopping|tags|widget",
    re.IGNORECASE,
)

BYLINE_RE = re.compile(r"byline|author|dateline|writtenby|p-author", re.IGNORECASE)

SHARE_ELEMENTS_RE = re.compile(r"(\b|_)(share|sharedaddy)(\b|_)", re.IGNORECASE)

# Whole-token match so "unavailable" or "canvas" never count as navigation
NAVIGATION_TOKEN_RE = re.compile(
    r"(?:^|[\s_-])(?:nav|navbar|navigation|menu|breadcrumbs?)(?:$|[\s_-])",
    re.IGNORECASE,
)

UNLIKELY_ROLES: frozenset[str] = frozenset(
    {"menu", "menubar", "complementary", "navigation", "alert", "alertdialog", "dialog"},
)

# ---------------------------------------------------------------------------
# Text heuristics
# ---------------------------------------------------------------------------

NORMALIZE_WS_RE = re.compile(r"\s{2,}")
TOKENIZE_RE = re.compile(r"\W+")
HAS_CONTENT_RE = re.compile(r"\S$")
HASH_URL_RE = re.compile(r"^#.+")
SENTENCE_END_RE = re.compile(r"\.( |$)")

# ASCII comma plus Arabic, small, vertical, fullwidth and other variants
COMMAS_RE = re.compile("[,،﹐︐︑⹁⸴⸲，]")

AD_WORDS_RE = re.compile(
    r"^(ad(vertising|vertisement)?|pub(licité)?|werb(ung)?|广告|Реклама|Anuncio)$",
    re.IGNORECASE,
)
LOADING_WORDS_RE = re.compile(
    r"^((loading|正在加载|Загрузка|chargement|cargando)(…|\.\.\.)?)$",
    re.IGNORECASE,
)

# Separators recognised inside a <title> ("Story | Site", "Site » Story")
TITLE_SEPARATOR_RE = re.compile(r" [|\-\\/>»] ")
TITLE_HIERARCHICAL_SEPARATOR_RE = re.compile(r" [\\/>»] ")
TITLE_LEADING_SEGMENT_RE = re.compile(r"^[^|\-\\/>»]*[|\-\\/>»]")
TITLE_SEPARATOR_RUN_RE = re.compile(r"[|\-\\/>»]+")

# ---------------------------------------------------------------------------
# URLs and media
# ---------------------------------------------------------------------------

VIDEOS_RE = re.compile(
    r"//(www\.)?((dailymotion|youtube|youtube-nocookie|player\.vimeo|v\.qq)\.com|"
    r"(archive|upload\.wikimedia)\.org|player\.twitch\.tv)",
    re.IGNORECASE,
)

SRCSET_URL_RE = re.compile(r"(\S+)(\s+[\d.]+[xw])?(\s*(?:,|$))")
B64_DATA_URL_RE = re.compile(r"^data:\s*([^\s;,]+)\s*;\s*base64\s*,", re.IGNORECASE)
IMAGE_EXTENSION_RE = re.compile(r"\.(jpg|jpeg|png|webp)", re.IGNORECASE)
LAZY_SRCSET_VALUE_RE = re.compile(r"\.(jpg|jpeg|png|webp)\s+\d", re.IGNORECASE)
LAZY_SRC_VALUE_RE = re.compile(r"^\s*\S+\.(jpg|jpeg|png|webp)\S*\s*$", re.IGNORECASE)

# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------

META_PROPERTY_RE = re.compile(
    r"\s*(article|dc|dcterm|og|twitter)\s*:\s*"
    r"(author|creator|description|published_time|title|site_name)\s*",
    re.IGNORECASE,
)
META_NAME_RE = re.compile(
    r"^\s*(?:(dc|dcterm|og|twitter|parsely|weibo:(article|webpage))\s*[-.:]\s*)?"
    r"(author|creator|pub-date|description|title|site_name)\s*$",
    re.IGNORECASE,
)

JSON_LD_ARTICLE_TYPES_RE = re.compile(
    r"^Article|AdvertiserContentArticle|NewsArticle|AnalysisNewsArticle|"
    r"AskPublicNewsArticle|BackgroundNewsArticle|OpinionNewsArticle|"
    r"ReportageNewsArticle|ReviewNewsArticle|Report|SatiricalArticle|"
    r"ScholarlyArticle|MedicalScholarlyArticle|SocialMediaPosting|BlogPosting|"
    r"LiveBlogPosting|DiscussionForumPosting|TechArticle|APIReference$",
)
SCHEMA_DOT_ORG_RE = re.compile(r"^https?://schema\.org/?$")
CDATA_WRAPPER_RE = re.compile(r"^\s*<!\[CDATA\[|\]\]>\s*$")

# ---------------------------------------------------------------------------
# Tag tables
# ---------------------------------------------------------------------------

TAGS_TO_SCORE: frozenset[str] = frozenset(
    {"section", "h2", "h3", "h4", "h5", "h6", "p", "td", "pre"},
)

# Initial content score per tag; tags not listed start at zero
TAG_WEIGHTS: dict[str, int] = {
    "div": 5,
    "pre": 3,
    "td": 3,
    "blockquote": 3,
    "address": -3,
    "ol": -3,
    "ul": -3,
    "dl": -3,
    "dd": -3,
    "dt": -3,
    "li": -3,
    "form": -3,
    "h1": -5,
    "h2": -5,
    "h3": -5,
    "h4": -5,
    "h5": -5,
    "h6": -5,
    "th": -5,
}

CLASS_WEIGHT = 25

DIV_TO_P_ELEMS: frozenset[str] = frozenset(
    {"blockquote", "dl", "div", "img", "ol", "p", "pre", "table", "ul"},
)

ALTER_TO_DIV_EXCEPTIONS: frozenset[str] = frozenset(
    {"div", "article", "section", "p", "ol", "ul"},
)

PHRASING_ELEMS: frozenset[str] = frozenset(
    {
        "abbr", "audio", "b", "bdo", "br", "button", "cite", "code", "data",
        "datalist", "dfn", "em", "embed", "i", "img", "input", "kbd", "label",
        "mark", "math", "meter", "noscript", "object", "output", "progress", "q",
        "ruby", "samp", "script", "select", "small", "span", "strong", "sub",
        "sup", "textarea", "time", "var", "wbr",
    },
)

# Phrasing only when every child is phrasing too
TRANSPARENT_PHRASING_ELEMS: frozenset[str] = frozenset({"a", "del", "ins"})

HEADING_TAGS: tuple[str, ...] = ("h1", "h2", "h3", "h4", "h5", "h6")

DEPRECATED_SIZE_ATTRIBUTE_ELEMS: frozenset[str] = frozenset(
    {"table", "th", "td", "hr", "pre"},
)

# Attributes that survive cleaning; everything else (presentational
# attributes, inline event handlers, tracking data-*) is dropped
SAFE_ATTRIBUTES: frozenset[str] = frozenset(
    {
        "abbr", "alt", "cite", "class", "colspan", "controls", "datetime", "dir",
        "headers", "height", "href", "id", "kind", "label", "lang", "loop",
        "media", "muted", "name", "poster", "preload", "rel", "reversed", "role",
        "rowspan", "scope", "sizes", "span", "src", "srclang", "srcset", "start",
        "summary", "title", "type", "value", "width", "allowfullscreen",
    },
)

EMBED_TAGS: frozenset[str] = frozenset({"object", "embed", "iframe"})

CLASSES_TO_PRESERVE: frozenset[str] = frozenset({"page"})

# Removed before scoring; their content is never rendered as prose
INERT_TAGS: tuple[str, ...] = ("script", "style", "template", "link")

# Rewritten to neutral containers by the preprocessor
PRESENTATIONAL_TAG_REWRITES: dict[str, str] = {"font": "span"}

# Removed from the selected content outright
UNWANTED_CONTENT_TAGS: tuple[str, ...] = (
    "object", "embed", "footer", "link", "aside",
)
UNWANTED_FORM_TAGS: tuple[str, ...] = (
    "iframe", "input", "textarea", "select", "button", "nav",
)

NAVIGATION_CONTAINER_TAGS: tuple[str, ...] = ("div", "section", "ul", "ol")

PAGE_WRAPPER_ID = "readability-page-1"
PAGE_WRAPPER_CLASS = "page"
