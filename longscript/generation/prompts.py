"""Prompt builder for chunk, single-shot, outline and expansion calls."""

import math
from fractions import Fraction
from typing import List, Optional, Sequence

from ..config.models import GenerationPolicy
from ..models import ChunkPlan, ContentBrief, ContentPoint, Outline, OutlineChunk, Source
from ..validation.boundary import chunk_ownership
from .models import ExpansionRequest


class PromptBuilder:
    """Assemble generation prompts from a content brief."""

    def __init__(self, policy: Optional[GenerationPolicy] = None, max_sources: int = 5) -> None:
        """
        Initialize prompt builder.

        Args:
            policy: Generation policy supplying pace and tag minimums
            max_sources: Research sources quoted per prompt
        """
        self.policy = policy or GenerationPolicy()
        self.max_sources = max_sources

    def system_prompt(self, brief: ContentBrief) -> str:
        """System instructions shared by every call for one brief."""
        lines = [
            "You are a professional scriptwriter for long-form narrated video.",
            "Write complete, speakable narration. Never use placeholders, never summarize "
            "what you would write, and never defer content to a later response.",
        ]
        if brief.tone:
            lines.append(f"Tone: {brief.tone}.")
        if brief.audience:
            lines.append(f"Audience: {brief.audience}.")
        profile = brief.voice_profile
        if profile:
            lines.append(f"Write in the voice profile '{profile.name}'" + (f" ({profile.tone})." if profile.tone else "."))
            for note in profile.style_notes:
                lines.append(f"- {note}")
            if profile.sample_phrases:
                lines.append("Characteristic phrases: " + "; ".join(profile.sample_phrases))
        return "\n".join(lines)

    def chunk_points(
        self,
        brief: ContentBrief,
        plan: ChunkPlan,
        index: int,
        outline: Optional[Outline] = None,
    ) -> List[ContentPoint]:
        return chunk_ownership(brief, plan, outline)[index]

    def prior_titles(
        self,
        brief: ContentBrief,
        plan: ChunkPlan,
        index: int,
        outline: Optional[Outline] = None,
    ) -> List[str]:
        owned = chunk_ownership(brief, plan, outline)
        return [point.title for points in owned[:index] for point in points]

    def next_titles(
        self,
        brief: ContentBrief,
        plan: ChunkPlan,
        index: int,
        outline: Optional[Outline] = None,
    ) -> List[str]:
        owned = chunk_ownership(brief, plan, outline)
        return [point.title for points in owned[index + 1:] for point in points]

    def build_chunk_prompt(
        self,
        brief: ContentBrief,
        plan: ChunkPlan,
        index: int,
        outline: Optional[Outline] = None,
        planned_titles: Optional[Sequence[str]] = None,
    ) -> str:
        """
        Build the prompt for one chunk of a long-form script.

        Args:
            brief: Content brief
            plan: Chunk plan
            index: Zero-based chunk index
            outline: Outline, when one exists; its section placement decides what this part owns
            planned_titles: Content-plan titles for this chunk, when no outline exists

        Returns:
            Prompt text
        """
        assignment = plan.assignments[index]
        number, total = index + 1, plan.chunk_count
        outline_chunk = outline.for_chunk(number) if outline else None
        is_first, is_last = index == 0, index == total - 1
        word_target = outline_chunk.word_target if outline_chunk else plan.min_words_per_chunk

        parts = [
            f"Generate PART {number} of {total} of a narrated video script.",
            "",
            self._brief_context(brief),
            f"- This section: minutes {assignment.start_minute}-{assignment.end_minute}",
            "",
        ]

        if outline_chunk:
            parts.append(self._format_outline_chunk(outline_chunk))

        points = self.chunk_points(brief, plan, index, outline)
        if points:
            parts.append(f"CONTENT TO COVER IN PART {number} (AND ONLY THIS):")
            parts.append(self._format_points(points))
        elif planned_titles:
            parts.append(f"CONTENT TO COVER IN PART {number}:")
            parts.extend(f"- {title}" for title in planned_titles)
        else:
            parts.append(f"Cover minutes {assignment.start_minute}-{assignment.end_minute} of the topic.")
        parts.append("")

        prior = self.prior_titles(brief, plan, index, outline)
        if prior:
            parts.append("ALREADY COVERED IN EARLIER PARTS - DO NOT REPEAT:")
            parts.extend(f"- {title}" for title in prior)
            parts.append("")
        upcoming = self.next_titles(brief, plan, index, outline)
        if upcoming:
            parts.append("RESERVED FOR LATER PARTS - DO NOT PREEMPT:")
            parts.extend(f"- {title}" for title in upcoming)
            parts.append("")

        if is_first:
            parts.append("Open with the hook and set up the video's promise." + (f" Hook: {brief.hook}" if brief.hook else ""))
            parts.append(self._frame_line(brief))
        else:
            parts.append("Continue naturally from the previous part; do not re-introduce the video.")

        if brief.sponsor and index == self._sponsor_chunk(plan):
            parts.append(self._format_sponsor(brief))

        research = self.format_research(brief.sources)
        if research:
            parts.append(research)

        parts.append("")
        parts.append(f"WORD COUNT: this part MUST be at least {word_target} words. Write every section in full.")
        parts.append("Start each content section with a '### <exact title>' header.")

        if is_last:
            parts.append("")
            parts.append("This is the FINAL part. Close with a conclusion and a call to action, then add:")
            parts.append(self.trailing_requirements())
        else:
            parts.append("Do not write a conclusion, description or tags in this part.")

        return "\n".join(part for part in parts if part is not None)

    def build_single_prompt(self, brief: ContentBrief, plan: ChunkPlan) -> str:
        """Prompt for a script generated in one call, with a bounded word range."""
        target = plan.target_words
        upper = math.ceil(target * Fraction(str(self.policy.single_shot_upper_factor)))
        parts = [
            "Write a complete narrated video script.",
            "",
            self._brief_context(brief),
            f"- Length: {plan.total_minutes} minutes",
            "",
        ]
        if brief.hook:
            parts.append(f"Open with this hook: {brief.hook}")
        parts.append(self._frame_line(brief))
        if brief.content_points:
            parts.append("CONTENT POINTS, IN ORDER:")
            parts.append(self._format_points(brief.content_points))
        if brief.sponsor:
            parts.append(self._format_sponsor(brief))
        research = self.format_research(brief.sources)
        if research:
            parts.append(research)
        parts.append("")
        parts.append(f"WORD COUNT: write between {target} and {upper} words of narration.")
        parts.append("End with a conclusion and a call to action, then add:")
        parts.append(self.trailing_requirements())
        return "\n".join(parts)

    def build_outline_prompt(self, brief: ContentBrief, plan: ChunkPlan) -> str:
        """Prompt asking for a JSON outline with one entry per chunk."""
        per_chunk = math.ceil(plan.target_words / plan.chunk_count)
        chunk_lines = [
            f"Chunk {a.chunk_number}: minutes {a.start_minute}-{a.end_minute}"
            for a in plan.assignments
        ]
        points = self._format_points(brief.content_points) if brief.content_points else (
            "No content points provided - create logical sections from the topic."
        )
        return "\n".join([
            f"Create a detailed outline for a {plan.total_minutes}-minute narrated video "
            f"that will be written in {plan.chunk_count} chunks.",
            "",
            self._brief_context(brief),
            "",
            "CONTENT POINTS:",
            points,
            "",
            "CHUNK STRUCTURE:",
            *chunk_lines,
            "",
            "Rules:",
            "- Assign every content point to exactly one chunk, in order.",
            "- Use the EXACT content point titles as section titles.",
            f"- Give every chunk a word_target; the targets must add up to at least {plan.target_words} "
            f"(about {per_chunk} per chunk).",
            "",
            "Respond with JSON only:",
            '{"title": "...", "overview": "...", "chunks": [{"chunk_number": 1, "title": "chunk theme", '
            '"word_target": 1500, "sections": [{"title": "exact title", "content": "what to cover", '
            '"key_points": ["..."]}], "transition": "bridge to next chunk"}]}',
        ])

    def build_expansion_prompt(self, expansion: ExpansionRequest) -> str:
        """Ask for additional material only, prioritising content points the text misses."""
        current = len(expansion.existing_text.split())
        needed = max(0, expansion.target_words - current)
        text_lower = expansion.existing_text.lower()
        missing = [p for p in expansion.content_points if p.title.lower() not in text_lower]
        present = [p for p in expansion.content_points if p.title.lower() in text_lower]

        parts = [
            f"The script section below is {current} words and must reach {expansion.target_words} words.",
            "",
            "CURRENT SECTION (do not rewrite or repeat it):",
            expansion.existing_text,
            "",
        ]
        if missing:
            parts.append("MISSING TOPICS - write these first, each under a '### <exact title>' header:")
            parts.append(self._format_points(missing))
        if present:
            parts.append("UNDER-DEVELOPED TOPICS - deepen with examples, data and context:")
            parts.extend(f"- {p.title}" for p in present)
        if expansion.research_context:
            parts.append(expansion.research_context)
        parts.append("")
        parts.append(
            f"Write ONLY the {needed} additional words. Match the tone of the existing section. "
            "Do not add a conclusion, description or tags."
        )
        return "\n".join(parts)

    def trailing_requirements(self) -> str:
        """The two mandatory trailing sections."""
        return "\n".join([
            "## Description",
            "A complete video description followed by a 'TIMESTAMPS:' list (e.g. 0:00 Intro).",
            "",
            "## Tags",
            f"At least {self.policy.min_tags} real, comma-separated tags on one line. No placeholders.",
        ])

    def format_research(self, sources: Sequence[Source]) -> str:
        """Top sources as short excerpts, starred and verified first."""
        usable = [s for s in sources if s.content.strip()]
        if not usable:
            return ""
        ranked = sorted(
            usable,
            key=lambda s: (s.synthesized, s.starred, s.is_verified, s.relevance),
            reverse=True,
        )[: self.max_sources]
        lines = ["RESEARCH SOURCES:"]
        for position, source in enumerate(ranked, start=1):
            excerpt = " ".join(source.content.split())[:400]
            lines.append(f"{position}. {source.title}: {excerpt}")
        return "\n".join(lines)

    def _brief_context(self, brief: ContentBrief) -> str:
        lines = [
            "VIDEO CONTEXT:",
            f"- Title: {brief.display_title}",
            f"- Topic: {brief.topic}",
        ]
        if brief.audience:
            lines.append(f"- Audience: {brief.audience}")
        if brief.tone:
            lines.append(f"- Tone: {brief.tone}")
        return "\n".join(lines)

    def _frame_line(self, brief: ContentBrief) -> str:
        frame = brief.frame
        if not (frame.problem or frame.solution or frame.transformation):
            return ""
        return (
            f"Narrative frame - problem: {frame.problem or 'n/a'}; "
            f"solution: {frame.solution or 'n/a'}; transformation: {frame.transformation or 'n/a'}."
        )

    def _format_points(self, points: Sequence[ContentPoint]) -> str:
        lines = []
        for position, point in enumerate(points, start=1):
            minutes = math.ceil(point.duration / 60) if point.duration else None
            lines.append(f"{position}. {point.title}" + (f" ({minutes} min)" if minutes else ""))
            if point.description:
                lines.append(f"   - {point.description}")
            if point.key_takeaway:
                lines.append(f"   - Key takeaway: {point.key_takeaway}")
        return "\n".join(lines)

    def _format_outline_chunk(self, chunk: OutlineChunk) -> str:
        lines = [f"MANDATORY OUTLINE FOR THIS PART: {chunk.title} ({chunk.word_target} words)"]
        for section in chunk.sections:
            lines.append(f"### {section.title}")
            if section.content:
                lines.append(f"   Cover: {section.content}")
            for point in section.key_points:
                lines.append(f"   - {point}")
        if chunk.transition:
            lines.append(f"Transition to the next part: {chunk.transition}")
        lines.append("")
        return "\n".join(lines)

    def _format_sponsor(self, brief: ContentBrief) -> str:
        sponsor = brief.sponsor
        return (
            f"SPONSOR SEGMENT ({sponsor.placement}, ~{sponsor.duration}s): {sponsor.name}"
            + (f" - {sponsor.product}" if sponsor.product else "")
            + (f". Message: {sponsor.message}" if sponsor.message else "")
            + ". Include a clear sponsorship disclosure."
        )

    def _sponsor_chunk(self, plan: ChunkPlan) -> int:
        return 0 if plan.chunk_count == 1 else min(1, plan.chunk_count - 1)
