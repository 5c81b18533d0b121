"""Pydantic models for resolved metadata and the extracted article."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, field_validator


class ArticleMetadata(BaseModel):
    """Best-effort metadata; every field is independently optional."""

    title: str | None = None
    byline: str | None = None
    excerpt: str | None = None
    site_name: str | None = None
    published_time: str | None = None
    dir: str | None = None
    lang: str | None = None

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v


class Article(BaseModel):
    """Canonical output of a successful parse."""

    title: str | None = None
    content: str = ""
    text_content: str = ""
    length: int = 0
    excerpt: str | None = None
    byline: str | None = None
    dir: str | None = None
    site_name: str | None = None
    lang: str | None = None
    published_time: str | None = None

    # Container HTML before URL resolution and class stripping
    raw_content: str | None = None

    def published_datetime(self) -> str | None:
        """Return :attr:`published_time` normalised to ISO 8601, if parseable."""
        from readerview.extractors.metadata import parse_date
        return parse_date(self.published_time)
