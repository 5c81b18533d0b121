"""Per-pass extraction state shared by the scorer, selector and cleaner."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .patterns import CLASSES_TO_PRESERVE, VIDEOS_RE

if TYPE_CHECKING:
    from bs4 import BeautifulSoup, Tag

    from readerview.options import ReadabilityOptions


@dataclass(frozen=True)
class PassFlags:
    """The three heuristics that are relaxed one by one on retry."""

    strip_unlikely: bool = True
    weight_classes: bool = True
    clean_conditionally: bool = True


@dataclass
class ExtractionContext:
    """Everything one scoring/cleaning pass needs besides the tree itself.

    ``data_tables`` maps ``id(table)`` to the table so the identity stays
    valid for the whole pass.
    """

    soup: BeautifulSoup
    options: ReadabilityOptions
    article_title: str = ""
    flags: PassFlags = field(default_factory=PassFlags)
    data_tables: dict[int, Tag] = field(default_factory=dict)

    def for_pass(self, flags: PassFlags) -> ExtractionContext:
        return ExtractionContext(
            soup=self.soup,
            options=self.options,
            article_title=self.article_title,
            flags=flags,
        )

    @property
    def classes_to_preserve(self) -> frozenset[str]:
        return CLASSES_TO_PRESERVE | self.options.classes_to_preserve

    @property
    def video_regex(self) -> re.Pattern[str]:
        return self.options.allowed_video_regex or VIDEOS_RE

    def is_data_table(self, table: Tag) -> bool:
        return id(table) in self.data_tables

    def new_tag(self, name: str) -> Tag:
        return self.soup.new_tag(name)

    def debug(self, log: logging.Logger, msg: str, *args: Any) -> None:
        """Emit a diagnostic only when the caller asked for debug output."""
        if self.options.debug:
            log.debug(msg, *args)
