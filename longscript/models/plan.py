"""Planning models: chunk plans, outlines and content plans."""

from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class ChunkAssignment(BaseModel):
    """Content-point range assigned to one chunk (``start`` inclusive, ``end`` exclusive)."""

    index: int = Field(..., description="Zero-based chunk index", ge=0)
    start: int = Field(..., description="First content point index", ge=0)
    end: int = Field(..., description="One past the last content point index", ge=0)
    start_minute: int = Field(0, description="Minute the chunk starts at", ge=0)
    end_minute: int = Field(0, description="Minute the chunk ends at", ge=0)

    @property
    def size(self) -> int:
        return self.end - self.start

    @property
    def chunk_number(self) -> int:
        return self.index + 1


class ChunkPlan(BaseModel):
    """How a script is split into generation calls."""

    total_minutes: int = Field(..., description="ceil(duration / 60)", ge=1)
    chunk_count: int = Field(..., description="Number of generation chunks", ge=1)
    chunked: bool = Field(..., description="Whether long-form chunking is active")
    words_per_minute: int = Field(..., description="Pace used for word targets")
    target_words: int = Field(..., description="Expected words for the whole script")
    min_words_per_chunk: int = Field(..., description="Per-chunk word minimum including buffer")
    assignments: List[ChunkAssignment] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_partition(self) -> "ChunkPlan":
        """Assignments must tile the content points without gaps or overlaps."""
        if not self.assignments:
            return self
        if len(self.assignments) != self.chunk_count:
            raise ValueError("One assignment per chunk is required")
        cursor = self.assignments[0].start
        if cursor != 0:
            raise ValueError("Assignments must start at the first content point")
        for position, assignment in enumerate(self.assignments):
            if assignment.index != position:
                raise ValueError("Assignments must be ordered by chunk index")
            if assignment.start != cursor or assignment.end < assignment.start:
                raise ValueError(f"Chunk {position + 1} does not continue the partition")
            cursor = assignment.end
        return self

    @property
    def covered_points(self) -> int:
        return self.assignments[-1].end if self.assignments else 0


class OutlineSection(BaseModel):
    """One titled section inside an outline entry."""

    title: str = Field(..., description="Section title (content point title verbatim)")
    content: str = Field("", description="What to cover")
    timestamp: Optional[str] = Field(None, description="Planned timestamp")
    key_points: List[str] = Field(default_factory=list)


class OutlineChunk(BaseModel):
    """Outline entry for one chunk, with an explicit word target."""

    chunk_number: int = Field(..., ge=1)
    title: str = Field(..., description="Chunk theme")
    word_target: int = Field(..., description="Words this chunk must reach", gt=0)
    sections: List[OutlineSection] = Field(default_factory=list)
    transition: str = Field("", description="Bridge into the next chunk")

    @property
    def section_titles(self) -> List[str]:
        return [section.title for section in self.sections]


class Outline(BaseModel):
    """Structured plan produced before any chunk is written."""

    title: str = Field("", description="Video title")
    overview: str = Field("", description="One paragraph summary")
    chunks: List[OutlineChunk] = Field(default_factory=list)

    @property
    def total_word_target(self) -> int:
        return sum(chunk.word_target for chunk in self.chunks)

    def for_chunk(self, chunk_number: int) -> Optional[OutlineChunk]:
        for chunk in self.chunks:
            if chunk.chunk_number == chunk_number:
                return chunk
        return None

    def section_titles(self) -> List[str]:
        return [title for chunk in self.chunks for title in chunk.section_titles]


class ContentPlanChunk(BaseModel):
    chunk_number: int = Field(..., ge=1)
    titles: List[str] = Field(default_factory=list)


class ContentPlan(BaseModel):
    """Lighter plan: topic distribution across chunks, no word targets."""

    chunks: List[ContentPlanChunk] = Field(default_factory=list)

    def titles_for(self, chunk_number: int) -> List[str]:
        for chunk in self.chunks:
            if chunk.chunk_number == chunk_number:
                return list(chunk.titles)
        return []
