"""Research adequacy checks and quality scoring."""

import math
from typing import List, Optional, Sequence

from rich.console import Console

from ..config.models import ResearchPolicy
from ..errors import InsufficientResearchError
from ..models import ContentBrief, Source
from .models import DuplicateSources, LongFormCheck, ResearchAssessment, ResearchBreakdown, ResearchScore

console = Console()


def is_snippet(source: Source, policy: ResearchPolicy) -> bool:
    """A bare search-result snippet: short content that was not synthesized."""
    return not source.synthesized and len(source.content.strip()) < policy.snippet_max_chars


def is_substantive(source: Source, policy: ResearchPolicy) -> bool:
    return source.synthesized or len(source.content.strip()) > policy.substantive_min_chars


def calculate_source_quality(source: Source) -> float:
    """Quality of one source in [0, 1]."""
    if source.synthesized:
        score = 1.0
    elif source.document:
        score = 0.7
    else:
        score = 0.6

    if source.starred:
        score += 0.1
    if source.is_verified:
        score += 0.1

    words = source.word_count
    if words > 1000:
        score += 0.15
    elif words > 500:
        score += 0.10
    elif words > 200:
        score += 0.05
    elif words < 50:
        score -= 0.2

    # Relevance is normalized around 0.75
    score += (source.relevance - 0.75) * 0.2
    return min(1.0, max(0.0, score))


def calculate_research_score(sources: Sequence[Source]) -> ResearchScore:
    """
    Weighted research score.

    15 sources and 10,000 words each saturate their component.
    """
    if not sources:
        return ResearchScore()

    breakdown = ResearchBreakdown()
    total_words = 0
    quality_sum = 0.0
    for source in sources:
        total_words += source.word_count
        quality_sum += calculate_source_quality(source)
        if source.synthesized:
            breakdown.synthesis += 1
        elif source.document:
            breakdown.documents += 1
        else:
            breakdown.web += 1
        if source.is_verified:
            breakdown.verified += 1
        if source.starred:
            breakdown.starred += 1

    average_quality = quality_sum / len(sources)
    overall = (
        min(1.0, len(sources) / 15) * 0.3
        + min(1.0, total_words / 10000) * 0.4
        + average_quality * 0.3
    )
    return ResearchScore(
        overall_score=round(overall, 2),
        source_count=len(sources),
        total_words=total_words,
        average_quality=round(average_quality, 2),
        breakdown=breakdown,
    )


def text_similarity(first: str, second: str) -> float:
    """Jaccard overlap of the words longer than three characters."""
    first_words = {word for word in first.split() if len(word) > 3}
    second_words = {word for word in second.split() if len(word) > 3}
    union = first_words | second_words
    return len(first_words & second_words) / len(union) if union else 0.0


def detect_duplicate_content(sources: Sequence[Source], threshold: float = 0.7) -> List[DuplicateSources]:
    """
    Pairs of sources whose first 500 characters overlap above ``threshold``.

    Sources with 100 characters or less are not compared.
    """
    openings = [
        (source.title, source.content.lower()[:500])
        for source in sources
        if len(source.content) > 100
    ]
    duplicates = []
    for i, (first_title, first_text) in enumerate(openings):
        for second_title, second_text in openings[i + 1:]:
            similarity = text_similarity(first_text, second_text)
            if similarity > threshold:
                duplicates.append(
                    DuplicateSources(first=first_title, second=second_title, similarity=round(similarity, 2))
                )
    return duplicates


class ResearchValidator:
    """Decide whether a brief's research can ground a script."""

    def __init__(self, policy: Optional[ResearchPolicy] = None) -> None:
        self.policy = policy or ResearchPolicy()

    def meets_quality_bar(self, sources: Sequence[Source]) -> bool:
        """(verified >= N or starred >= N) and synthesized >= M; tolerates a missing Description."""
        verified = sum(1 for s in sources if s.is_verified)
        starred = sum(1 for s in sources if s.starred)
        synthesized = sum(1 for s in sources if s.synthesized)
        return (
            verified >= self.policy.quality_min_verified or starred >= self.policy.quality_min_starred
        ) and synthesized >= self.policy.quality_min_synthesized

    def assess(self, sources: Sequence[Source]) -> ResearchAssessment:
        """
        Count substantive sources and their words.

        Args:
            sources: Research sources, already fetched

        Returns:
            ResearchAssessment with any gaps listed
        """
        substantive = [s for s in sources if is_substantive(s, self.policy)]
        snippets = [s for s in sources if is_snippet(s, self.policy)]
        research_words = sum(s.word_count for s in substantive)

        gaps = []
        if len(substantive) < self.policy.min_substantive_sources:
            gaps.append(
                f"{len(substantive)} substantive source(s), need {self.policy.min_substantive_sources}"
                + (f" ({len(snippets)} search snippet(s) do not count)" if snippets else "")
            )
        if research_words < self.policy.min_research_words:
            gaps.append(f"{research_words} words of research, need {self.policy.min_research_words}")

        return ResearchAssessment(
            adequate=not gaps,
            substantive_sources=len(substantive),
            snippet_sources=len(snippets),
            research_words=research_words,
            high_quality=self.meets_quality_bar(sources),
            gaps=gaps,
            score=calculate_research_score(sources),
        )

    def validate(self, brief: ContentBrief) -> ResearchAssessment:
        """
        Assess the brief's sources and reject thin research.

        Raises:
            InsufficientResearchError: Too few substantive sources or research words
        """
        assessment = self.assess(brief.sources)
        if not assessment.adequate:
            raise InsufficientResearchError(
                "Research is too thin to ground this script: " + "; ".join(assessment.gaps)
                + ". Add full-text sources or run deeper research.",
                gaps=assessment.gaps,
            )
        console.print(
            f"[dim]Research: {assessment.substantive_sources} substantive sources, "
            f"{assessment.research_words} words, score {assessment.score.overall_score:.2f}[/dim]"
        )
        return assessment

    def check_long_form(self, sources: Sequence[Source], minutes: int) -> LongFormCheck:
        """
        Measure research against the requirement for a script of ``minutes``.

        Word count, source count and the overall score are gaps; missing synthesis,
        missing documents and overlapping sources only add recommendations.
        """
        requirement = self.policy.requirement_for(minutes)
        score = calculate_research_score(sources)
        has_documents = score.breakdown.documents > 0
        gaps: List[str] = []
        recommendations: List[str] = []

        if score.total_words < requirement.min_words:
            missing = requirement.min_words - score.total_words
            gaps.append(f"{score.total_words} words of research, need {requirement.min_words}")
            recommendations.append(f"Add {math.ceil(missing / 500)} more comprehensive sources")
        if score.source_count < requirement.min_sources:
            gaps.append(f"{score.source_count} source(s), need {requirement.min_sources}")
            recommendations.append("Run enhanced research at twice the depth")
        if score.overall_score < requirement.min_quality:
            gaps.append(f"research score {score.overall_score:.2f}, need {requirement.min_quality:.2f}")
            if not has_documents:
                recommendations.append("Upload your own PDF or DOCX research on the topic")

        if score.breakdown.synthesis == 0:
            recommendations.append("Run deep research to add a synthesized source")
        if not has_documents and minutes >= 45:
            recommendations.append("Upload specialized documents; they matter most past 45 minutes")

        duplicates = detect_duplicate_content(sources, self.policy.duplicate_similarity)
        for pair in duplicates:
            recommendations.append(
                f"\"{pair.first}\" and \"{pair.second}\" overlap ({pair.similarity:.2f}): {pair.recommendation.lower()}"
            )

        return LongFormCheck(
            minutes=minutes,
            requirement=requirement,
            adequate=not gaps,
            score=score,
            gaps=gaps,
            recommendations=recommendations,
            duplicates=duplicates,
        )

    def validate_long_form(self, brief: ContentBrief, minutes: int) -> LongFormCheck:
        """
        Reject research too thin for an outlined script of ``minutes``.

        Raises:
            InsufficientResearchError: A word, source or quality requirement is unmet
        """
        check = self.check_long_form(brief.sources, minutes)
        if not check.adequate:
            raise InsufficientResearchError(
                f"Research is too thin for a {minutes}-minute script: " + "; ".join(check.gaps)
                + ". Recommended: " + "; ".join(check.recommendations) + ".",
                gaps=check.gaps,
                recommendations=check.recommendations,
            )
        console.print(
            f"[dim]Long-form research: {check.adequacy_percent}% of the {minutes}-minute requirement[/dim]"
        )
        for recommendation in check.recommendations:
            console.print(f"[dim]  Suggestion: {recommendation}[/dim]")
        return check
