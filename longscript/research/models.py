"""Data models for research checks and fetching."""

from typing import List, Optional

from pydantic import BaseModel, Field

from ..config.models import ResearchRequirement


class ResearchBreakdown(BaseModel):
    """Source counts by kind and flag."""

    synthesis: int = 0
    documents: int = 0
    web: int = 0
    verified: int = 0
    starred: int = 0


class ResearchScore(BaseModel):
    """Weighted research quality score."""

    overall_score: float = Field(0.0, description="0.3 source count + 0.4 word count + 0.3 quality")
    source_count: int = Field(0, description="Number of sources scored")
    total_words: int = Field(0, description="Words across all sources")
    average_quality: float = Field(0.0, description="Mean per-source quality")
    breakdown: ResearchBreakdown = Field(default_factory=ResearchBreakdown)


class ResearchAssessment(BaseModel):
    """Adequacy verdict for the sources of one brief."""

    adequate: bool = Field(..., description="Whether generation may proceed")
    substantive_sources: int = Field(0, description="Synthesized or long-form sources")
    snippet_sources: int = Field(0, description="Search-result snippets")
    research_words: int = Field(0, description="Words across substantive sources")
    high_quality: bool = Field(False, description="Meets the Description bypass bar")
    gaps: List[str] = Field(default_factory=list, description="Why research is inadequate")
    score: ResearchScore = Field(default_factory=ResearchScore)
    long_form_adequacy: Optional[int] = Field(None, description="Percent of the duration requirement met, when checked")


class DuplicateSources(BaseModel):
    """Two sources whose opening text largely overlaps."""

    first: str = Field(..., description="Title of the earlier source")
    second: str = Field(..., description="Title of the later source")
    similarity: float = Field(..., description="Word overlap of the opening text")

    @property
    def recommendation(self) -> str:
        return "Remove one source" if self.similarity > 0.9 else "Review for overlap"


class LongFormCheck(BaseModel):
    """Research measured against the requirement for one duration."""

    minutes: int = Field(..., description="Script length the research must support")
    requirement: ResearchRequirement
    adequate: bool = Field(..., description="Every requirement is met")
    score: ResearchScore = Field(default_factory=ResearchScore)
    gaps: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    duplicates: List[DuplicateSources] = Field(default_factory=list)

    @property
    def adequacy_percent(self) -> int:
        """Mean of the word, source and quality coverage, each capped at 100."""
        parts = [
            (self.score.total_words, self.requirement.min_words),
            (self.score.source_count, self.requirement.min_sources),
            (self.score.overall_score, self.requirement.min_quality),
        ]
        covered = [min(100.0, 100.0 * have / need) if need else 100.0 for have, need in parts]
        return int(sum(covered) / len(covered))


class FetchResult(BaseModel):
    """Outcome of fetching one source's full text."""

    url: str = Field(..., description="Requested URL")
    title: str = Field(..., description="Source title")
    text: str = Field("", description="Extracted main text")
    fetch_success: bool = Field(True, description="Whether fetch was successful")
    error: Optional[str] = Field(None, description="Error message if failed")
