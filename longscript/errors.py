"""Error taxonomy for script generation.

Every failure that reaches the caller is a ``ScriptGenerationError`` carrying a
short title, a specific detail message, an HTTP-style status and a retry hint.
"""

from typing import Dict, List, Optional

ERROR_KIND_INPUT = "invalid_input"
ERROR_KIND_RESEARCH = "insufficient_research"
ERROR_KIND_CREDITS = "insufficient_credits"
ERROR_KIND_RATE_LIMIT = "rate_limit"
ERROR_KIND_TRANSPORT = "transport"
ERROR_KIND_CHUNK_SHORT = "chunk_too_short"
ERROR_KIND_INCOMPLETE = "script_incomplete"
ERROR_KIND_TIMEOUT = "timeout"
ERROR_KIND_CONFIGURATION = "configuration"
ERROR_KIND_PLANNING = "planning"
ERROR_KIND_UNKNOWN = "unknown"


class ScriptGenerationError(Exception):
    """Base class for all pipeline errors."""

    status: int = 500
    retry: bool = False
    kind: str = ERROR_KIND_UNKNOWN
    title: str = "Script generation failed"

    def __init__(self, details: str, *, title: Optional[str] = None) -> None:
        super().__init__(details)
        self.details = details
        if title:
            self.title = title

    def to_response(self) -> Dict[str, object]:
        """Caller-facing error payload."""
        return {
            "error": self.title,
            "details": self.details,
            "retry": self.retry,
        }


class InputValidationError(ScriptGenerationError):
    """The brief is missing required fields or is otherwise unusable."""

    status = 422
    kind = ERROR_KIND_INPUT
    title = "Invalid request"


class InsufficientResearchError(InputValidationError):
    """Research sources are too thin to ground a script of this length."""

    kind = ERROR_KIND_RESEARCH
    title = "Insufficient research"

    def __init__(
        self,
        details: str,
        gaps: Optional[List[str]] = None,
        recommendations: Optional[List[str]] = None,
    ) -> None:
        super().__init__(details)
        self.gaps = list(gaps or [])
        self.recommendations = list(recommendations or [])


class InsufficientCreditsError(ScriptGenerationError):
    status = 402
    kind = ERROR_KIND_CREDITS
    title = "Insufficient credits"


class RateLimitExceededError(ScriptGenerationError):
    status = 429
    kind = ERROR_KIND_RATE_LIMIT
    title = "Rate limit exceeded"


class ConfigurationError(ScriptGenerationError):
    """Missing credentials or an unusable service configuration."""

    status = 500
    retry = False
    kind = ERROR_KIND_CONFIGURATION
    title = "Service misconfigured"


class TransientLLMError(ScriptGenerationError):
    """Transport-level failure of a single LLM call (timeout, non-2xx)."""

    status = 500
    retry = True
    kind = ERROR_KIND_TRANSPORT
    title = "Generation service unavailable"

    def __init__(self, details: str, status_code: Optional[int] = None) -> None:
        super().__init__(details)
        self.status_code = status_code


class GenerationFailedError(ScriptGenerationError):
    """Transport retries were exhausted for one LLM call."""

    status = 500
    retry = True
    kind = ERROR_KIND_TRANSPORT
    title = "Generation failed"


class GenerationTimeoutError(ScriptGenerationError):
    """The request exceeded its wall-clock ceiling."""

    status = 504
    retry = True
    kind = ERROR_KIND_TIMEOUT
    title = "Generation timed out"


class ContentQualityError(ScriptGenerationError):
    status = 500
    retry = True
    title = "Generated script failed quality checks"


class ChunkTooShortError(ContentQualityError):
    kind = ERROR_KIND_CHUNK_SHORT
    title = "Chunk too short"

    def __init__(self, chunk_index: int, word_count: int, min_words: int) -> None:
        self.chunk_index = chunk_index
        self.word_count = word_count
        self.min_words = min_words
        self.shortfall_percent = round(100.0 * (1 - word_count / min_words), 1) if min_words else 0.0
        super().__init__(
            f"Chunk {chunk_index + 1} is {self.shortfall_percent}% short of its minimum "
            f"({word_count}/{min_words} words) after exhausting retries"
        )


class IncompleteScriptError(ContentQualityError):
    """The assembled script failed one or more completeness checks."""

    kind = ERROR_KIND_INCOMPLETE
    title = "Script incomplete"

    def __init__(self, failed_checks: List[str], details: str) -> None:
        self.failed_checks = list(failed_checks)
        super().__init__(details)


class PlanningError(ScriptGenerationError):
    """Outline generation failed; callers fall back to a content plan."""

    kind = ERROR_KIND_PLANNING
    title = "Planning failed"
