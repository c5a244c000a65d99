"""Script generator for long-form narration."""

import re
from pathlib import Path
from typing import List, Optional

import pendulum
from pydantic import BaseModel, Field
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from ..config.models import GenerationPolicy
from ..errors import ChunkTooShortError
from ..models import ChunkPlan, ChunkResult, ContentBrief, ContentPlan, Outline, ScriptRecord
from .chunk_engine import ChunkEngine
from .executor import GenerationExecutor
from .prompts import PromptBuilder
from .stitcher import StitchResult, stitch_chunks

console = Console()


class GeneratedScript(BaseModel):
    """Accepted chunks and the stitched script."""

    chunks: List[ChunkResult] = Field(default_factory=list)
    stitched: StitchResult
    outline_used: bool = False
    single_shot: bool = False

    @property
    def text(self) -> str:
        return self.stitched.text

    @property
    def chunk_words(self) -> int:
        return sum(chunk.word_count for chunk in self.chunks)


class ScriptGenerator:
    """Generate narration-ready scripts from a content brief."""

    def __init__(
        self,
        executor: GenerationExecutor,
        model: str,
        prompt_builder: Optional[PromptBuilder] = None,
        policy: Optional[GenerationPolicy] = None,
        temperature: float = 0.7,
        max_output_tokens: int = 8192,
    ) -> None:
        """
        Initialize script generator.

        Args:
            executor: Generation executor wrapping the LLM provider
            model: Model identifier for chunk and expansion calls
            prompt_builder: Prompt builder
            policy: Generation policy
            temperature: Sampling temperature for chunk calls
            max_output_tokens: Output token cap per call
        """
        self.executor = executor
        self.model = model
        self.policy = policy or executor.policy
        self.prompt_builder = prompt_builder or executor.prompt_builder
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

    def _engine(self, brief: ContentBrief) -> ChunkEngine:
        return ChunkEngine(
            executor=self.executor,
            model=self.model,
            policy=self.policy,
            system=self.prompt_builder.system_prompt(brief),
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
        )

    def generate(
        self,
        brief: ContentBrief,
        plan: ChunkPlan,
        outline: Optional[Outline] = None,
        content_plan: Optional[ContentPlan] = None,
    ) -> GeneratedScript:
        """
        Generate every chunk in order and stitch them.

        Chunk N is only attempted after chunk N-1 has been accepted.

        Args:
            brief: Content brief
            plan: Chunk plan from the duration planner
            outline: Outline with per-chunk word targets, when one was produced
            content_plan: Lighter topic plan, used when no outline exists

        Returns:
            GeneratedScript

        Raises:
            ChunkTooShortError: A chunk stayed short after its retries
        """
        if not plan.chunked:
            return self._generate_single(brief, plan)

        engine = self._engine(brief)
        research = self.prompt_builder.format_research(brief.sources)
        results: List[ChunkResult] = []

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TimeElapsedColumn(),
            console=console,
        ) as progress:
            task = progress.add_task(f"Generating {plan.chunk_count} chunks...", total=plan.chunk_count)

            for index in range(plan.chunk_count):
                number = index + 1
                outline_chunk = outline.for_chunk(number) if outline else None
                planned = content_plan.titles_for(number) if content_plan else None
                min_words = max(plan.min_words_per_chunk, outline_chunk.word_target) if outline_chunk else (
                    plan.min_words_per_chunk
                )
                progress.update(task, description=f"Generating chunk {number}/{plan.chunk_count}...")

                result = engine.run(
                    index=index,
                    prompt=self.prompt_builder.build_chunk_prompt(brief, plan, index, outline, planned),
                    min_words=min_words,
                    content_points=self.prompt_builder.chunk_points(brief, plan, index, outline),
                    research_context=research,
                    outline_chunk=outline_chunk,
                    brief=brief,
                    plan=plan,
                    outline=outline,
                )
                if not result.accepted:
                    raise ChunkTooShortError(index, result.word_count, result.min_words)

                results.append(result)
                console.print(
                    f"[dim]Chunk {number}: {result.word_count}/{result.min_words} words "
                    f"after {result.attempts} attempt(s)[/dim]"
                )
                progress.advance(task, 1)

        return GeneratedScript(chunks=results, stitched=stitch_chunks(results), outline_used=outline is not None)

    def _generate_single(self, brief: ContentBrief, plan: ChunkPlan) -> GeneratedScript:
        # Measured against the unbuffered target so the completeness gate decides length
        engine = self._engine(brief)
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Generating narration script...", total=1)
            result = engine.run(
                index=0,
                prompt=self.prompt_builder.build_single_prompt(brief, plan),
                min_words=plan.target_words,
                content_points=brief.content_points,
                research_context=self.prompt_builder.format_research(brief.sources),
                purpose="single",
            )
            progress.advance(task, 1)

        if not result.accepted:
            raise ChunkTooShortError(0, result.word_count, result.min_words)
        return GeneratedScript(chunks=[result], stitched=stitch_chunks([result], dedupe=False), single_shot=True)


def save_script(record: ScriptRecord, output_path: Path) -> None:
    """Save script to text file with a metadata header."""
    minutes = record.word_count / 130.0
    lines = [
        f"# {record.topic}",
        "",
        f"Target: {record.duration_seconds // 60} minutes ({record.tier.value} tier, {record.model})",
        f"Estimated: {minutes:.1f} minutes ({record.word_count} words)",
        f"Generated: {pendulum.parse(record.generated_at).format('MMM DD, YYYY [at] HH:mm')} UTC",
        f"Credits: {record.credits_used}",
        "",
        "---",
        "",
        record.script,
    ]

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text("\n".join(lines), encoding="utf-8")


def save_tts_script(record: ScriptRecord, output_path: Path) -> None:
    """
    Save TTS-ready script: narration only, without headers or trailing sections.

    Args:
        record: Script record
        output_path: Path where the TTS script should be saved
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(format_for_tts(record.script), encoding="utf-8")


def format_for_tts(content: str) -> str:
    """
    Format script content for natural TTS reading.

    Args:
        content: Raw script content

    Returns:
        Narration text with markdown, Description and Tags removed
    """
    # Description and Tags are metadata, not narration
    trailing = re.search(r"^#{1,3}\s*(Description|Tags)\b", content, re.IGNORECASE | re.MULTILINE)
    tts_content = content[: trailing.start()] if trailing else content

    tts_content = re.sub(r"^#.*$", "", tts_content, flags=re.MULTILINE)
    tts_content = re.sub(r"\*\*(.+?)\*\*", r"\1", tts_content)
    tts_content = re.sub(r"^\*.*\*$", "", tts_content, flags=re.MULTILINE)
    tts_content = re.sub(r"^\s*---+\s*$", "", tts_content, flags=re.MULTILINE)

    # Clean up excessive whitespace but preserve paragraph breaks
    tts_content = re.sub(r"[ \t]+", " ", tts_content)
    tts_content = re.sub(r"\n{3,}", "\n\n", tts_content)

    return tts_content.strip()
