"""Outline generation for long-form scripts, with a mechanical fallback plan."""

import json
import math
import re
from fractions import Fraction
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError
from rich.console import Console

from ..errors import GenerationFailedError, PlanningError
from ..generation.executor import GenerationExecutor
from ..generation.models import LLMRequest
from ..generation.prompts import PromptBuilder
from ..models import ChunkPlan, ContentBrief, ContentPlan, ContentPlanChunk, ContentPoint, Outline
from ..validation.text import normalize_title, significant_words

console = Console()

TRACE_MATCH_RATIO = 0.6

CODE_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


def extract_json(text: str) -> Dict[str, Any]:
    """
    Pull a JSON object out of a model response.

    Accepts a bare object, a fenced ```json block, or an object embedded in prose.

    Raises:
        PlanningError: No parseable JSON object found
    """
    candidates = [text.strip()]
    fence = CODE_FENCE_RE.search(text)
    if fence:
        candidates.insert(0, fence.group(1).strip())
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start:end + 1])

    for candidate in candidates:
        if not candidate:
            continue
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data
    raise PlanningError("Outline response did not contain a JSON object")


def title_traces(title: str, candidates: Sequence[str]) -> bool:
    """Exact or substring match, or at least 60% of the title's key words present."""
    wanted = normalize_title(title)
    words = significant_words(title)
    for candidate in candidates:
        normalized = normalize_title(candidate)
        if wanted == normalized or wanted in normalized or (normalized and normalized in wanted):
            return True
        if words:
            hits = sum(1 for word in words if word in normalized)
            if hits / len(words) >= TRACE_MATCH_RATIO:
                return True
    return False


def untraced_points(outline: Outline, points: Sequence[ContentPoint]) -> List[str]:
    """Content point titles that no outline section accounts for."""
    titles = outline.section_titles()
    return [point.title for point in points if not title_traces(point.title, titles)]


def rescale_word_targets(outline: Outline, target_words: int) -> Outline:
    """Scale chunk word targets up so they add up to at least ``target_words``."""
    total = outline.total_word_target
    if total >= target_words or total == 0:
        return outline
    factor = Fraction(target_words, total)
    chunks = [
        chunk.model_copy(update={"word_target": math.ceil(chunk.word_target * factor)})
        for chunk in outline.chunks
    ]
    console.print(f"[dim]Outline word targets rescaled from {total} to {sum(c.word_target for c in chunks)}[/dim]")
    return outline.model_copy(update={"chunks": chunks})


class OutlineGenerator:
    """Ask the model for a structured outline with one entry per chunk."""

    def __init__(
        self,
        executor: GenerationExecutor,
        model: str,
        prompt_builder: Optional[PromptBuilder] = None,
        temperature: float = 0.3,
        max_output_tokens: int = 4096,
    ) -> None:
        """
        Initialize outline generator.

        Args:
            executor: Generation executor
            model: Planning model identifier
            prompt_builder: Prompt builder
            temperature: Low temperature keeps the structure stable
            max_output_tokens: Output token cap for the outline call
        """
        self.executor = executor
        self.model = model
        self.prompt_builder = prompt_builder or executor.prompt_builder
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

    def generate(self, brief: ContentBrief, plan: ChunkPlan) -> Outline:
        """
        Generate and validate an outline.

        Args:
            brief: Content brief
            plan: Chunk plan

        Returns:
            Outline with word targets covering the whole script

        Raises:
            PlanningError: The outline could not be produced or failed validation
        """
        request = LLMRequest(
            system="You are a video content planner. Respond with JSON only.",
            prompt=self.prompt_builder.build_outline_prompt(brief, plan),
            max_output_tokens=self.max_output_tokens,
            temperature=self.temperature,
            model=self.model,
            purpose="outline",
        )
        try:
            raw = self.executor.generate(request)
        except GenerationFailedError as e:
            raise PlanningError(f"Outline call failed: {e.details}")

        try:
            outline = Outline.model_validate(extract_json(raw))
        except ValidationError as e:
            raise PlanningError(f"Outline JSON failed validation: {e.error_count()} error(s)")

        numbers = sorted(chunk.chunk_number for chunk in outline.chunks)
        if numbers != list(range(1, plan.chunk_count + 1)):
            raise PlanningError(
                f"Outline has chunks {numbers}, expected 1..{plan.chunk_count}"
            )

        missing = untraced_points(outline, brief.content_points)
        if missing:
            raise PlanningError(f"Outline drops content points: {', '.join(missing)}")

        outline = rescale_word_targets(outline, plan.target_words)
        console.print(
            f"[green]Outline ready: {len(outline.chunks)} chunks, {outline.total_word_target} target words[/green]"
        )
        return outline


class ContentPlanner:
    """Distribute content points across chunks without calling the model."""

    def plan(self, brief: ContentBrief, plan: ChunkPlan) -> ContentPlan:
        chunks = []
        for assignment in plan.assignments:
            titles = [point.title for point in brief.content_points[assignment.start:assignment.end]]
            chunks.append(ContentPlanChunk(chunk_number=assignment.chunk_number, titles=titles))
        return ContentPlan(chunks=chunks)
