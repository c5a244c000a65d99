"""Configuration models."""

from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ..models.brief import ModelTier


class PostgresConfig(BaseModel):
    """Postgres configuration for the credit ledger and script store."""

    host: str = Field("localhost", description="Database host")
    port: int = Field(5432, description="Database port")
    database: str = Field("longscript", description="Database name")
    user: str = Field("longscript_user", description="Database user")
    password: Optional[str] = Field(None, description="Database password")
    password_env: Optional[str] = Field(None, description="Environment variable for password")


class GenerationPolicy(BaseModel):
    """Chunking, expansion and acceptance thresholds."""

    words_per_minute: int = Field(130, description="Narration pace used for word targets", ge=60, le=250)
    default_duration_seconds: int = Field(600, description="Duration used when the brief has none", ge=60)
    chunking_threshold_minutes: int = Field(30, description="Chunk when minutes exceed this", ge=1)
    outline_threshold_minutes: int = Field(30, description="Request an outline at or above this", ge=1)
    chunk_buffer: float = Field(1.10, description="Buffer applied to the per-chunk minimum", ge=1.0, le=2.0)

    tier1_expansion_target: float = Field(1.20, description="First expansion target (x minimum)")
    tier2_expansion_target: float = Field(1.50, description="Second expansion target (x minimum)")
    regeneration_threshold: float = Field(0.85, description="Regenerate below this ratio", gt=0.0, le=1.0)
    expansion_acceptance: float = Field(0.70, description="Accept ratio after expansion", gt=0.0, le=1.0)
    direct_acceptance: float = Field(0.75, description="Accept ratio without expansion", gt=0.0, le=1.0)

    max_retries: int = Field(2, description="Total generation attempts per chunk", ge=1, le=10)
    max_transport_retries: int = Field(3, description="Attempts per LLM call on transport errors", ge=1, le=10)
    backoff_base_seconds: float = Field(1.0, description="Initial transport backoff", ge=0.0)
    backoff_max_seconds: float = Field(20.0, description="Transport backoff cap", ge=0.0)
    request_timeout_seconds: float = Field(300.0, description="Wall-clock ceiling per request", gt=0.0)
    llm_call_timeout_seconds: float = Field(120.0, description="Timeout for one LLM call", gt=0.0)

    single_shot_upper_factor: float = Field(1.20, description="Upper bound of the single-shot word range", ge=1.0)
    completeness_ratio: float = Field(0.80, description="Minimum actual/expected word ratio", gt=0.0, le=1.0)
    dedup_grace_ratio: float = Field(0.75, description="Reduced ratio after dedup shrinkage", gt=0.0, le=1.0)
    dedup_grace_trigger: float = Field(1.10, description="Raw/stitched length ratio enabling the grace", ge=1.0)
    min_tags: int = Field(10, description="Minimum comma-separated tags", ge=1)
    min_tag_length: int = Field(2, description="Minimum characters per tag", ge=1)

    @model_validator(mode="after")
    def validate_ordering(self) -> "GenerationPolicy":
        """Expansion targets must escalate and grace must not exceed the base ratio."""
        if self.tier2_expansion_target <= self.tier1_expansion_target:
            raise ValueError("tier2_expansion_target must be greater than tier1_expansion_target")
        if self.tier1_expansion_target < 1.0:
            raise ValueError("tier1_expansion_target must be at least 1.0")
        if self.dedup_grace_ratio > self.completeness_ratio:
            raise ValueError("dedup_grace_ratio cannot exceed completeness_ratio")
        return self


class CreditPolicy(BaseModel):
    """Pricing used by the credit calculator."""

    base_rate: float = Field(0.33, description="Credits per minute", gt=0.0)
    model_multipliers: Dict[ModelTier, float] = Field(
        default_factory=lambda: {
            ModelTier.FAST: 1.0,
            ModelTier.BALANCED: 1.5,
            ModelTier.PREMIUM: 3.5,
        },
        description="Multiplier per model tier",
    )
    chunk_overhead: float = Field(1.20, description="Multiplier for chunked generation", ge=1.0)

    @field_validator("model_multipliers")
    @classmethod
    def validate_multipliers(cls, v: Dict[ModelTier, float]) -> Dict[ModelTier, float]:
        """Every tier needs a positive multiplier."""
        missing = [tier.value for tier in ModelTier if tier not in v]
        if missing:
            raise ValueError(f"Missing multipliers for tiers: {', '.join(missing)}")
        if any(value <= 0 for value in v.values()):
            raise ValueError("Model multipliers must be positive")
        return v


class ResearchRequirement(BaseModel):
    """Research a long-form script needs before it is outlined."""

    min_words: int = Field(..., description="Words across all sources", ge=0)
    min_sources: int = Field(..., description="Number of sources", ge=0)
    min_quality: float = Field(..., description="Minimum overall research score", ge=0.0, le=1.0)


def _default_long_form_requirements() -> Dict[int, ResearchRequirement]:
    return {
        35: ResearchRequirement(min_words=7000, min_sources=10, min_quality=0.70),
        40: ResearchRequirement(min_words=8500, min_sources=12, min_quality=0.72),
        45: ResearchRequirement(min_words=10000, min_sources=15, min_quality=0.75),
        50: ResearchRequirement(min_words=11500, min_sources=17, min_quality=0.77),
        60: ResearchRequirement(min_words=13000, min_sources=20, min_quality=0.80),
    }


class ResearchPolicy(BaseModel):
    """Research adequacy thresholds."""

    snippet_max_chars: int = Field(100, description="Content shorter than this is a search snippet", ge=0)
    substantive_min_chars: int = Field(500, description="Content longer than this is substantive", ge=0)
    min_substantive_sources: int = Field(2, description="Minimum substantive sources", ge=0)
    min_research_words: int = Field(300, description="Minimum words across substantive sources", ge=0)
    quality_min_verified: int = Field(2, description="Verified sources for the high-quality bar", ge=0)
    quality_min_starred: int = Field(2, description="Starred sources for the high-quality bar", ge=0)
    quality_min_synthesized: int = Field(1, description="Synthesized sources for the high-quality bar", ge=0)
    fetch_timeout_seconds: float = Field(30.0, description="Timeout when fetching source content", gt=0.0)
    fetch_max_concurrent: int = Field(3, description="Concurrent source fetches", ge=1)
    long_form_gate: bool = Field(True, description="Apply the duration table to outlined scripts")
    long_form_requirements: Dict[int, ResearchRequirement] = Field(
        default_factory=_default_long_form_requirements,
        description="Requirement by longest duration in minutes it covers",
    )
    baseline_requirement: ResearchRequirement = Field(
        default_factory=lambda: ResearchRequirement(min_words=3000, min_sources=5, min_quality=0.60),
        description="Requirement below the shortest duration in the table",
    )
    duplicate_similarity: float = Field(
        0.7, description="Word overlap above which two sources are reported as duplicates", ge=0.0, le=1.0
    )

    def requirement_for(self, minutes: int) -> ResearchRequirement:
        """Nearest table row at or above ``minutes``; the longest row past the end of the table."""
        thresholds = sorted(self.long_form_requirements)
        if not thresholds or minutes < thresholds[0]:
            return self.baseline_requirement
        for threshold in thresholds:
            if minutes <= threshold:
                return self.long_form_requirements[threshold]
        return self.long_form_requirements[thresholds[-1]]


class RateLimitConfig(BaseModel):
    """Per-user request limits."""

    max_requests: int = Field(10, description="Requests allowed per window", ge=1)
    window_seconds: float = Field(3600.0, description="Window length in seconds", gt=0.0)


class LLMConfig(BaseModel):
    """LLM provider configuration."""

    provider: str = Field("openai", description="LLM provider (openai, mock)")
    api_key_env: Optional[str] = Field("OPENAI_API_KEY", description="Environment variable for API key")
    api_key: Optional[str] = Field(None, description="API key (prefer api_key_env)")
    base_url: Optional[str] = Field(None, description="Base URL for API")
    models: Dict[ModelTier, str] = Field(
        default_factory=lambda: {
            ModelTier.FAST: "gpt-4o-mini",
            ModelTier.BALANCED: "gpt-4o",
            ModelTier.PREMIUM: "gpt-4.1",
        },
        description="Model identifier per tier",
    )
    planning_model: Optional[str] = Field(None, description="Model for outlines (defaults to balanced)")
    temperature: float = Field(0.7, ge=0.0, le=2.0)
    outline_temperature: float = Field(0.3, ge=0.0, le=2.0)
    max_output_tokens: int = Field(8192, description="Output token cap per call", ge=256)

    def model_for(self, tier: ModelTier) -> str:
        """Model identifier for a tier."""
        return self.models.get(tier) or self.models[ModelTier.BALANCED]


class ConfigModel(BaseModel):
    """Main configuration model."""

    workspace_root: str = Field("~/Longscript", description="Root directory for outputs")
    llm: LLMConfig = Field(default_factory=LLMConfig)
    generation: GenerationPolicy = Field(default_factory=GenerationPolicy)
    credits: CreditPolicy = Field(default_factory=CreditPolicy)
    research: ResearchPolicy = Field(default_factory=ResearchPolicy)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    postgres: Optional[PostgresConfig] = Field(
        None, description="Postgres settings; scripts and credits stay local when unset"
    )
