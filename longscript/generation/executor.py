"""Generation executor: one LLM round-trip per call, with transport retries only."""

import time
from typing import Callable, Optional

from rich.console import Console

from ..config.models import GenerationPolicy
from ..errors import GenerationFailedError, GenerationTimeoutError, TransientLLMError
from ..validation.text import insert_before_trailing_sections, word_count
from .llm_provider import LLMProvider
from .models import ExpansionRequest, LLMRequest
from .prompts import PromptBuilder

console = Console()


class Deadline:
    """Wall-clock ceiling for one generation request."""

    def __init__(self, seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.seconds = seconds
        self.clock = clock
        self.started_at = clock()

    @property
    def elapsed(self) -> float:
        return self.clock() - self.started_at

    @property
    def expired(self) -> bool:
        return self.elapsed >= self.seconds

    def check(self, stage: str) -> None:
        """Raise if the ceiling has passed. In-flight calls are never interrupted."""
        if self.expired:
            raise GenerationTimeoutError(
                f"Generation exceeded {self.seconds:.0f}s while {stage}; please retry"
            )


class GenerationExecutor:
    """Invoke the LLM provider and retry transport failures with exponential backoff."""

    def __init__(
        self,
        provider: LLMProvider,
        policy: Optional[GenerationPolicy] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        deadline: Optional[Deadline] = None,
        sleep: Callable[[float], None] = time.sleep,
        max_output_tokens: int = 8192,
    ) -> None:
        """
        Initialize generation executor.

        Args:
            provider: LLM provider
            policy: Generation policy (transport retries, backoff)
            prompt_builder: Builds expansion prompts
            deadline: Request-level wall-clock ceiling, checked before every attempt
            sleep: Sleep function, replaceable in tests
            max_output_tokens: Output token cap for expansion calls
        """
        self.provider = provider
        self.policy = policy or GenerationPolicy()
        self.prompt_builder = prompt_builder or PromptBuilder(self.policy)
        self.deadline = deadline
        self.sleep = sleep
        self.max_output_tokens = max_output_tokens
        self.calls = 0

    def backoff_delay(self, attempt: int) -> float:
        """Delay after the ``attempt``-th failure (1-based)."""
        delay = self.policy.backoff_base_seconds * (2 ** (attempt - 1))
        return min(delay, self.policy.backoff_max_seconds)

    def generate(self, request: LLMRequest) -> str:
        """
        Run one generation call.

        Returns:
            Raw generated text; an empty response comes back as an empty string

        Raises:
            GenerationFailedError: Transport retries exhausted
            GenerationTimeoutError: Request ceiling passed before an attempt
            ConfigurationError: Credentials rejected
        """
        attempts = self.policy.max_transport_retries
        last_error: Optional[TransientLLMError] = None

        for attempt in range(1, attempts + 1):
            if self.deadline:
                self.deadline.check(f"waiting to call the model ({request.purpose})")
            try:
                self.calls += 1
                response = self.provider.complete(request)
                return response.text or ""
            except TransientLLMError as e:
                last_error = e
                if attempt == attempts:
                    break
                delay = self.backoff_delay(attempt)
                console.print(
                    f"[yellow]LLM call failed ({e.details}); retry {attempt}/{attempts - 1} in {delay:.1f}s[/yellow]"
                )
                self.sleep(delay)

        raise GenerationFailedError(
            f"LLM call for {request.purpose} failed after {attempts} attempt(s): "
            f"{last_error.details if last_error else 'unknown error'}"
        )

    def expand(self, expansion: ExpansionRequest, system: str = "") -> str:
        """
        Lengthen existing text toward ``expansion.target_words``.

        The model writes only new material, which is inserted ahead of any trailing
        Description/Tags block. An empty or non-growing answer is an expansion
        declined and returns the text unchanged.
        """
        before = word_count(expansion.existing_text)
        needed = max(0, expansion.target_words - before)
        if needed == 0:
            return expansion.existing_text

        request = LLMRequest(
            system=system,
            prompt=self.prompt_builder.build_expansion_prompt(expansion),
            max_output_tokens=min(self.max_output_tokens, max(512, int(needed * 1.5))),
            temperature=0.7,
            model=expansion.model,
            purpose="expansion",
            target_words=needed,
        )
        addition = self.generate(request)
        if not addition.strip():
            console.print("[dim]Expansion declined: empty response[/dim]")
            return expansion.existing_text

        expanded = insert_before_trailing_sections(expansion.existing_text, addition)
        if word_count(expanded) <= before:
            return expansion.existing_text
        return expanded
