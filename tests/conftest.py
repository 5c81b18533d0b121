"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"

ARTICLE_URL = "https://news.example/2024/rivers"


def _read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


@pytest.fixture
def article_html() -> str:
    return _read_fixture("article.html")


@pytest.fixture
def article_url() -> str:
    return ARTICLE_URL


@pytest.fixture
def listing_html() -> str:
    return _read_fixture("listing.html")


@pytest.fixture
def minimal_article_html() -> str:
    return _read_fixture("minimal_article.html")


@pytest.fixture
def prose() -> str:
    """One paragraph of ordinary prose: 3 commas, a little over 100 chars."""
    return (
        "The committee met on Tuesday, reviewed the budget, argued about the "
        "timeline, and finally agreed to fund the new library wing before the "
        "winter session began."
    )
