"""Content brief models: the immutable input to the pipeline."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ModelTier(str, Enum):
    """Model quality tier, which drives both model choice and price."""

    FAST = "fast"
    BALANCED = "balanced"
    PREMIUM = "premium"


class VerificationStatus(str, Enum):
    VERIFIED = "verified"
    DISPUTED = "disputed"
    UNVERIFIED = "unverified"


class BriefModel(BaseModel):
    """Base for brief models; instances are frozen once built."""

    model_config = ConfigDict(frozen=True)


class ContentPoint(BriefModel):
    """One ordered talking point of the script."""

    title: str = Field(..., description="Section title", min_length=1)
    description: str = Field("", description="What to cover")
    duration: int = Field(0, description="Suggested duration in seconds", ge=0)
    key_takeaway: str = Field("", description="What the viewer should remember")


class NarrativeFrame(BriefModel):
    """Problem / solution / transformation arc."""

    problem: str = Field("", description="Problem the video opens with")
    solution: str = Field("", description="Solution the video presents")
    transformation: str = Field("", description="Outcome for the viewer")


class SponsorSegment(BriefModel):
    """Optional sponsor read."""

    name: str = Field(..., description="Sponsor name")
    product: str = Field("", description="Sponsored product")
    placement: str = Field("mid-roll", description="Placement preference")
    duration: int = Field(60, description="Segment length in seconds", ge=0)
    message: str = Field("", description="Key sponsor message")


class VoiceProfile(BriefModel):
    """Narrator voice the script should be written in."""

    name: str = Field(..., description="Profile name")
    tone: str = Field("", description="Voice tone")
    style_notes: List[str] = Field(default_factory=list, description="Style guidance")
    sample_phrases: List[str] = Field(default_factory=list, description="Characteristic phrases")


class Source(BriefModel):
    """A research source used to ground generation."""

    title: str = Field(..., description="Source title")
    url: Optional[str] = Field(None, description="Source URL")
    content: str = Field("", description="Source text")
    verification_status: VerificationStatus = Field(
        VerificationStatus.UNVERIFIED, description="Fact-check status"
    )
    starred: bool = Field(False, description="Starred by the user")
    relevance: float = Field(0.75, description="Relevance score", ge=0.0, le=1.0)
    synthesized: bool = Field(False, description="Synthesized research summary")
    document: bool = Field(False, description="Uploaded document rather than web result")
    content_already_fetched: bool = Field(
        True, description="Whether content holds the full text or still needs fetching"
    )

    @property
    def is_verified(self) -> bool:
        return self.verification_status == VerificationStatus.VERIFIED

    @property
    def word_count(self) -> int:
        return len(self.content.split())


class ContentBrief(BriefModel):
    """Everything the pipeline needs to write one script."""

    title: str = Field("", description="Working title of the video")
    topic: str = Field(..., description="Script topic")
    audience: str = Field("", description="Target audience")
    tone: str = Field("", description="Desired tone")
    duration: Optional[int] = Field(None, description="Target duration in seconds", gt=0)
    frame: NarrativeFrame = Field(default_factory=NarrativeFrame)
    hook: str = Field("", description="Opening hook")
    content_points: List[ContentPoint] = Field(default_factory=list)
    sponsor: Optional[SponsorSegment] = Field(None)
    voice_profile: Optional[VoiceProfile] = Field(None)
    sources: List[Source] = Field(default_factory=list)

    @property
    def display_title(self) -> str:
        return self.title or self.topic
