"""Data models for longscript."""

from .brief import (
    ContentBrief,
    ContentPoint,
    ModelTier,
    NarrativeFrame,
    Source,
    SponsorSegment,
    VerificationStatus,
    VoiceProfile,
)
from .plan import (
    ChunkAssignment,
    ChunkPlan,
    ContentPlan,
    ContentPlanChunk,
    Outline,
    OutlineChunk,
    OutlineSection,
)
from .script import (
    BoundaryViolation,
    ChunkResult,
    ChunkState,
    CreditCost,
    ExpansionStep,
    GateCheck,
    GenerationFailure,
    GenerationSuccess,
    ScriptDraft,
    ScriptRecord,
)

__all__ = [
    "BoundaryViolation",
    "ChunkAssignment",
    "ChunkPlan",
    "ChunkResult",
    "ChunkState",
    "ContentBrief",
    "ContentPlan",
    "ContentPlanChunk",
    "ContentPoint",
    "CreditCost",
    "ExpansionStep",
    "GateCheck",
    "GenerationFailure",
    "GenerationSuccess",
    "ModelTier",
    "NarrativeFrame",
    "Outline",
    "OutlineChunk",
    "OutlineSection",
    "ScriptDraft",
    "ScriptRecord",
    "Source",
    "SponsorSegment",
    "VerificationStatus",
    "VoiceProfile",
]
