"""Chunk and script validators."""

from .boundary import check_boundaries
from .completeness import PLACEHOLDER_PATTERNS, CompletenessGate, find_placeholders, parse_tags
from .outline_check import OutlineCheckResult, check_against_outline, extract_key_terms
from .text import word_count

__all__ = [
    "CompletenessGate",
    "OutlineCheckResult",
    "PLACEHOLDER_PATTERNS",
    "check_against_outline",
    "check_boundaries",
    "extract_key_terms",
    "find_placeholders",
    "parse_tags",
    "word_count",
]
