"""Stitch accepted chunks into one script."""

import re
from typing import List, Sequence

from pydantic import BaseModel, Field
from rich.console import Console

from ..models import ChunkResult
from ..validation.text import has_trailing_markers, word_count

console = Console()

SECTION_HEADER_RE = re.compile(r"^(###|##)\s+(.+)$")


class StitchResult(BaseModel):
    """Stitched script and what deduplication removed."""

    text: str
    raw_text: str
    removed_sections: List[str] = Field(default_factory=list)
    removed_words: int = 0
    warnings: List[str] = Field(default_factory=list)

    @property
    def raw_length(self) -> int:
        return len(self.raw_text)

    @property
    def word_count(self) -> int:
        return word_count(self.text)


def remove_duplicate_sections(script: str) -> StitchResult:
    """Drop every ``##``/``###`` section whose header already appeared earlier."""
    seen = set()
    kept: List[str] = []
    removed: List[str] = []
    removed_words = 0
    skipping = False

    for line in script.split("\n"):
        match = SECTION_HEADER_RE.match(line)
        if match:
            key = match.group(2).strip().lower()
            skipping = key in seen
            if skipping:
                removed.append(match.group(2).strip())
                removed_words += word_count(line)
                continue
            seen.add(key)
        elif skipping:
            removed_words += word_count(line)
            continue
        kept.append(line)

    if removed:
        console.print(f"[dim]Removed {len(removed)} duplicate section(s) ({removed_words} words)[/dim]")
    return StitchResult(text="\n".join(kept), raw_text=script, removed_sections=removed, removed_words=removed_words)


def stitch_chunks(chunks: Sequence[ChunkResult], dedupe: bool = True) -> StitchResult:
    """
    Concatenate accepted chunks in order.

    Without duplicate sections the stitched word count equals the sum of the
    chunk word counts. Trailing Description/Tags markers are expected only in the
    last chunk; earlier occurrences are reported, not removed.
    """
    ordered = sorted((c for c in chunks if c.accepted), key=lambda c: c.index)
    warnings = []
    for chunk in ordered[:-1]:
        if has_trailing_markers(chunk.text):
            warnings.append(f"Chunk {chunk.index + 1} contains Description/Tags markers before the final chunk")
    for warning in warnings:
        console.print(f"[yellow]{warning}[/yellow]")

    raw = "\n\n".join(chunk.text.strip() for chunk in ordered)
    if not dedupe:
        return StitchResult(text=raw, raw_text=raw, warnings=warnings)

    result = remove_duplicate_sections(raw)
    result.warnings = warnings
    return result
