"""Data models for generation calls."""

from typing import List, Optional

from pydantic import BaseModel, Field

from ..models import ContentPoint


class LLMRequest(BaseModel):
    """One text-generation call."""

    system: str = Field("", description="System instructions")
    prompt: str = Field(..., description="User prompt")
    max_output_tokens: int = Field(8192, description="Output token cap", ge=1)
    temperature: float = Field(0.7, ge=0.0, le=2.0)
    model: str = Field(..., description="Model identifier")
    purpose: str = Field("chunk", description="chunk, single, expansion, outline")
    target_words: Optional[int] = Field(None, description="Words the caller hopes to receive")


class LLMResponse(BaseModel):
    """Raw model output."""

    text: str = Field("", description="Generated text")
    stop_reason: Optional[str] = Field(None, description="Why generation stopped")
    input_tokens: int = Field(0, ge=0)
    output_tokens: int = Field(0, ge=0)


class ExpansionRequest(BaseModel):
    """Lengthen existing text toward a word target."""

    existing_text: str = Field(..., description="Text to expand")
    target_words: int = Field(..., description="Word count to reach", gt=0)
    content_points: List[ContentPoint] = Field(default_factory=list)
    research_context: str = Field("", description="Formatted research excerpts")
    model: str = Field(..., description="Model identifier")
    tier: int = Field(1, description="Expansion tier", ge=1, le=2)
