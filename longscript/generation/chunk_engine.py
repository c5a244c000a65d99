"""Per-chunk validation with tiered expansion and regeneration.

The retry logic is an explicit state machine::

    GENERATED -> [EXPANDING_TIER1 -> EXPANDING_TIER2] -> ACCEPTED
                                                     -> REGENERATING -> GENERATED
                                                     -> REJECTED
"""

import math
from fractions import Fraction
from typing import List, Optional, Sequence

from rich.console import Console

from ..config.models import GenerationPolicy
from ..models import (
    ChunkPlan,
    ChunkResult,
    ChunkState,
    ContentBrief,
    ContentPoint,
    ExpansionStep,
    Outline,
    OutlineChunk,
)
from ..validation.boundary import check_boundaries
from ..validation.outline_check import check_against_outline
from ..validation.text import word_count
from .executor import GenerationExecutor
from .models import ExpansionRequest, LLMRequest

console = Console()


def resolve_state(ratio: float, expanded: bool, attempts_left: bool, policy: GenerationPolicy) -> ChunkState:
    """
    Decide what happens to a chunk after expansion.

    Args:
        ratio: word count / per-chunk minimum
        expanded: Whether an expansion actually added text
        attempts_left: Whether another generation attempt is allowed

    Returns:
        ACCEPTED, REGENERATING or REJECTED
    """
    if ratio >= 1.0:
        return ChunkState.ACCEPTED
    threshold = policy.expansion_acceptance if expanded else policy.direct_acceptance
    if ratio >= threshold:
        return ChunkState.ACCEPTED
    if ratio < policy.regeneration_threshold and attempts_left:
        return ChunkState.REGENERATING
    return ChunkState.REJECTED


class ChunkEngine:
    """Generate one chunk until it is accepted or its retry budget is spent."""

    def __init__(
        self,
        executor: GenerationExecutor,
        model: str,
        policy: Optional[GenerationPolicy] = None,
        system: str = "",
        temperature: float = 0.7,
        max_output_tokens: int = 8192,
    ) -> None:
        self.executor = executor
        self.model = model
        self.policy = policy or executor.policy
        self.system = system
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

    def expansion_target(self, min_words: int, tier: int) -> int:
        factor = self.policy.tier1_expansion_target if tier == 1 else self.policy.tier2_expansion_target
        return math.ceil(min_words * Fraction(str(factor)))

    def run(
        self,
        index: int,
        prompt: str,
        min_words: int,
        content_points: Sequence[ContentPoint] = (),
        research_context: str = "",
        outline_chunk: Optional[OutlineChunk] = None,
        brief: Optional[ContentBrief] = None,
        plan: Optional[ChunkPlan] = None,
        outline: Optional[Outline] = None,
        purpose: str = "chunk",
    ) -> ChunkResult:
        """
        Drive one chunk through the state machine.

        Args:
            index: Zero-based chunk index
            prompt: Generation prompt for this chunk
            min_words: Per-chunk minimum
            content_points: Points this chunk covers, used for expansion prompts
            research_context: Formatted research excerpts for expansion prompts
            outline_chunk: Outline entry; a critical mismatch earns one extra attempt
            brief: Content brief, for the advisory boundary check
            plan: Chunk plan, for the advisory boundary check
            outline: Full outline, whose section placement the boundary check follows
            purpose: ``chunk`` or ``single``

        Returns:
            ChunkResult, accepted or rejected
        """
        result = ChunkResult(index=index, min_words=min_words)
        allowed_attempts = self.policy.max_retries
        outline_retry_available = outline_chunk is not None

        while True:
            if self.executor.deadline:
                self.executor.deadline.check(f"generating chunk {index + 1}")
            text = self.executor.generate(LLMRequest(
                system=self.system,
                prompt=prompt,
                max_output_tokens=self.max_output_tokens,
                temperature=self.temperature,
                model=self.model,
                purpose=purpose,
                target_words=min_words,
            ))
            result.attempts += 1
            result.states.append(ChunkState.GENERATED)

            if outline_chunk is not None:
                check = check_against_outline(text, outline_chunk)
                result.outline_issues = list(check.issues)
                if check.critical and outline_retry_available:
                    outline_retry_available = False
                    allowed_attempts += 1
                    console.print(
                        f"[yellow]Chunk {index + 1} missed its outline ({'; '.join(check.issues)}); regenerating[/yellow]"
                    )
                    result.states.append(ChunkState.REGENERATING)
                    continue

            expansions: List[ExpansionStep] = []
            if 0 < word_count(text) < min_words:
                text = self._expand(text, 1, min_words, content_points, research_context, result, expansions)
                if word_count(text) < min_words:
                    text = self._expand(text, 2, min_words, content_points, research_context, result, expansions)
            result.expansions.extend(expansions)

            words = word_count(text)
            expanded = any(not step.declined for step in expansions)
            state = resolve_state(
                words / min_words if min_words else 1.0,
                expanded,
                result.attempts < allowed_attempts,
                self.policy,
            )
            result.states.append(state)

            if state == ChunkState.REGENERATING:
                console.print(
                    f"[yellow]Chunk {index + 1} at {100.0 * words / min_words:.0f}% of minimum; "
                    f"regenerating ({result.attempts}/{allowed_attempts})[/yellow]"
                )
                continue

            result.text = text
            result.word_count = words
            result.accepted = state == ChunkState.ACCEPTED
            if brief is not None and plan is not None and plan.chunk_count > 1:
                result.boundary_violations = check_boundaries(text, brief, plan, index, outline)
                for violation in result.boundary_violations:
                    console.print(
                        f"[dim]Chunk {index + 1}: {violation.kind} of \"{violation.title}\" "
                        f"(belongs to chunk {violation.owner_chunk})[/dim]"
                    )
            return result

    def _expand(
        self,
        text: str,
        tier: int,
        min_words: int,
        content_points: Sequence[ContentPoint],
        research_context: str,
        result: ChunkResult,
        expansions: List[ExpansionStep],
    ) -> str:
        result.states.append(ChunkState.EXPANDING_TIER1 if tier == 1 else ChunkState.EXPANDING_TIER2)
        target = self.expansion_target(min_words, tier)
        before = word_count(text)
        expanded = self.executor.expand(
            ExpansionRequest(
                existing_text=text,
                target_words=target,
                content_points=list(content_points),
                research_context=research_context,
                model=self.model,
                tier=tier,
            ),
            system=self.system,
        )
        after = word_count(expanded)
        expansions.append(ExpansionStep(
            tier=tier, attempt=result.attempts, target_words=target, words_before=before, words_after=after
        ))
        console.print(f"[dim]Chunk {result.index + 1} tier-{tier} expansion: {before} -> {after} words[/dim]")
        return expanded
