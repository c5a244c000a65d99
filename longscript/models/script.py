"""Generation result models."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .brief import ModelTier


class ChunkState(str, Enum):
    """States of the per-chunk expansion/regeneration machine."""

    GENERATED = "generated"
    EXPANDING_TIER1 = "expanding_tier1"
    EXPANDING_TIER2 = "expanding_tier2"
    REGENERATING = "regenerating"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class ExpansionStep(BaseModel):
    """One expansion call against a chunk."""

    tier: int = Field(..., ge=1, le=2)
    attempt: int = Field(1, description="Generation attempt the expansion belongs to", ge=1)
    target_words: int = Field(..., description="Words requested")
    words_before: int = Field(...)
    words_after: int = Field(...)

    @property
    def declined(self) -> bool:
        return self.words_after <= self.words_before


class BoundaryViolation(BaseModel):
    """Content that belongs to another chunk."""

    kind: str = Field(..., description="forward_leak or duplicate")
    title: str = Field(..., description="Content point title that leaked")
    owner_chunk: int = Field(..., description="Chunk number the title belongs to")


class ChunkResult(BaseModel):
    """Final outcome for one chunk."""

    index: int = Field(..., ge=0)
    text: str = Field("")
    word_count: int = Field(0, ge=0)
    min_words: int = Field(..., ge=0)
    accepted: bool = Field(False)
    attempts: int = Field(0, description="Generation attempts consumed", ge=0)
    expansions: List[ExpansionStep] = Field(default_factory=list)
    states: List[ChunkState] = Field(default_factory=list, description="Visited states in order")
    boundary_violations: List[BoundaryViolation] = Field(default_factory=list)
    outline_issues: List[str] = Field(default_factory=list)

    @property
    def ratio(self) -> float:
        return self.word_count / self.min_words if self.min_words else 1.0

    @property
    def expanded(self) -> bool:
        return any(not step.declined for step in self.expansions)


class GateCheck(BaseModel):
    name: str
    passed: bool
    detail: str = ""


class ScriptDraft(BaseModel):
    """Stitched (or single-shot) script plus its gate verdict."""

    text: str
    word_count: int
    expected_words: int
    raw_length: int = Field(0, description="Characters before deduplication")
    has_description: bool = False
    has_timestamps: bool = False
    tags: List[str] = Field(default_factory=list)
    placeholder_matches: List[str] = Field(default_factory=list)
    checks: List[GateCheck] = Field(default_factory=list)
    passed: bool = False

    @property
    def ratio(self) -> float:
        return self.word_count / self.expected_words if self.expected_words else 1.0

    @property
    def failed_checks(self) -> List[str]:
        return [check.name for check in self.checks if not check.passed]


class CreditCost(BaseModel):
    """Credits for one request, a pure function of duration and tier."""

    model_config = ConfigDict(frozen=True)

    credits: int = Field(..., ge=1)
    minutes: int = Field(..., ge=1)
    tier: ModelTier
    chunked: bool


class ScriptRecord(BaseModel):
    """What gets handed to the persistence store."""

    user_id: str
    topic: str
    script: str
    word_count: int
    model: str
    tier: ModelTier
    duration_seconds: int
    credits_used: int
    research_source_count: int
    research_score: float = 0.0
    content_points: List[Dict[str, Any]] = Field(default_factory=list)
    chunk_count: int = 1
    outline_used: bool = False
    generated_at: str


class GenerationSuccess(BaseModel):
    script: str
    credits_used: int
    script_id: Optional[str] = None

    def to_response(self) -> Dict[str, Any]:
        return {"script": self.script, "creditsUsed": self.credits_used, "scriptId": self.script_id}


class GenerationFailure(BaseModel):
    error: str
    details: str
    retry: bool
    status: int = 500

    def to_response(self) -> Dict[str, Any]:
        return {"error": self.error, "details": self.details, "retry": self.retry}
