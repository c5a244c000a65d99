"""Research adequacy checks and source fetching."""

from .fetcher import SourceFetcher
from .models import (
    DuplicateSources,
    FetchResult,
    LongFormCheck,
    ResearchAssessment,
    ResearchBreakdown,
    ResearchScore,
)
from .validator import (
    ResearchValidator,
    calculate_research_score,
    calculate_source_quality,
    detect_duplicate_content,
    is_snippet,
    is_substantive,
    text_similarity,
)

__all__ = [
    "DuplicateSources",
    "FetchResult",
    "LongFormCheck",
    "ResearchAssessment",
    "ResearchBreakdown",
    "ResearchScore",
    "ResearchValidator",
    "SourceFetcher",
    "calculate_research_score",
    "calculate_source_quality",
    "detect_duplicate_content",
    "is_snippet",
    "is_substantive",
    "text_similarity",
]
