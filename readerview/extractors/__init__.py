"""Extraction sub-package: the stages of one readability parse."""

from .cleaner import post_process_content, prep_article
from .metadata import collect_json_ld, resolve_metadata
from .preprocess import preprocess_document
from .result import build_article
from .scoring import Candidate, collect_elements_to_score, score_elements
from .selection import RelaxationState, Selection, select_article
from .urlnorm import to_absolute_uri, validate_base_url

__all__ = [
    "Candidate",
    "RelaxationState",
    "Selection",
    "build_article",
    "collect_elements_to_score",
    "collect_json_ld",
    "post_process_content",
    "prep_article",
    "preprocess_document",
    "resolve_metadata",
    "score_elements",
    "select_article",
    "to_absolute_uri",
    "validate_base_url",
]
