"""Parse-time configuration.

``ReadabilityOptions`` is validated once and frozen; a single instance can be
shared by any number of parse calls.
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_CHAR_THRESHOLD = 500
DEFAULT_NB_TOP_CANDIDATES = 5
DEFAULT_MAX_ELEMS_TO_PARSE = 0


class ReadabilityOptions(BaseModel):
    """Tuning knobs for :class:`~readerview.readability.Readability`.

    Attributes:
        debug:                 Emit per-pass diagnostics through ``logging``.
                               Never changes the output.
        max_elems_to_parse:    Refuse documents with more elements than this
                               (0 = no limit).
        nb_top_candidates:     How many top-scoring candidates are compared
                               when looking for a shared ancestor.
        char_threshold:        Minimum article text length before the
                               heuristics are relaxed and extraction retried.
        classes_to_preserve:   Class names kept when ``keep_classes`` is off.
                               ``page`` is always kept.
        keep_classes:          Keep every ``class`` attribute verbatim.
        disable_json_ld:       Skip JSON-LD, the highest priority metadata
                               source.
        allowed_video_regex:   Embeds whose attributes match are kept.
                               ``None`` uses the built-in video host list.
        link_density_modifier: Added to the link density thresholds used when
                               cleaning conditionally.
    """

    model_config = ConfigDict(frozen=True)

    debug: bool = False
    max_elems_to_parse: int = Field(default=DEFAULT_MAX_ELEMS_TO_PARSE, ge=0)
    nb_top_candidates: int = Field(default=DEFAULT_NB_TOP_CANDIDATES, ge=1)
    char_threshold: int = Field(default=DEFAULT_CHAR_THRESHOLD, ge=0)
    classes_to_preserve: frozenset[str] = Field(default_factory=frozenset)
    keep_classes: bool = False
    disable_json_ld: bool = False
    allowed_video_regex: re.Pattern[str] | None = None
    link_density_modifier: float = 0.0

    @field_validator("classes_to_preserve", mode="before")
    @classmethod
    def split_class_names(cls, v: Any) -> Any:
        if v is None:
            return frozenset()
        if isinstance(v, str):
            v = v.split()
        return frozenset(str(name).strip() for name in v if str(name).strip())
