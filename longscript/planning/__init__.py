"""Planning: duration, credits and outlines."""

from .credits import CreditCalculator
from .duration import DurationPlanner, partition_content_points
from .outline import (
    ContentPlanner,
    OutlineGenerator,
    extract_json,
    rescale_word_targets,
    title_traces,
    untraced_points,
)

__all__ = [
    "ContentPlanner",
    "CreditCalculator",
    "DurationPlanner",
    "OutlineGenerator",
    "extract_json",
    "partition_content_points",
    "rescale_word_targets",
    "title_traces",
    "untraced_points",
]
