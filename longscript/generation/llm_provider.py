"""LLM provider interface and implementations."""

import re
from abc import ABC, abstractmethod
from typing import Callable, Dict, Iterable, List, Optional, Union

import openai
from openai import OpenAI
from rich.console import Console

from ..errors import ConfigurationError, TransientLLMError
from .models import LLMRequest, LLMResponse

console = Console()

ScriptedResponse = Union[str, Exception, Callable[[LLMRequest], str]]


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    @abstractmethod
    def complete(self, request: LLMRequest) -> LLMResponse:
        """
        Run one generation call.

        Args:
            request: System instructions, prompt, token cap, temperature and model

        Returns:
            Generated text and stop reason

        Raises:
            TransientLLMError: Timeouts, connection failures and non-2xx responses
            ConfigurationError: Rejected credentials
        """
        pass

    @abstractmethod
    def get_usage_stats(self) -> Dict:
        """Get usage statistics."""
        pass


class OpenAIProvider(LLMProvider):
    """OpenAI implementation of LLM provider."""

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        timeout: float = 120.0,
    ) -> None:
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            base_url: Custom base URL (for testing)
            timeout: Per-call timeout in seconds
        """
        if not api_key:
            raise ConfigurationError("No API key configured for the OpenAI provider")

        # Transport retries are owned by GenerationExecutor
        self.client = OpenAI(api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0)
        self.input_tokens = 0
        self.output_tokens = 0
        self.api_calls = 0
        self.models_used: Dict[str, int] = {}

        # Token cost estimates (per 1K tokens)
        self.cost_per_1k_tokens = {
            "gpt-4.1": {"input": 0.002, "output": 0.008},
            "gpt-4o": {"input": 0.0025, "output": 0.01},
            "gpt-4o-mini": {"input": 0.00015, "output": 0.0006},
        }

    def complete(self, request: LLMRequest) -> LLMResponse:
        """Generate text using OpenAI chat completions."""
        messages = []
        if request.system:
            messages.append({"role": "system", "content": request.system})
        messages.append({"role": "user", "content": request.prompt})

        self.api_calls += 1
        try:
            response = self.client.chat.completions.create(
                model=request.model,
                messages=messages,
                temperature=request.temperature,
                max_tokens=request.max_output_tokens,
            )
        except openai.AuthenticationError as e:
            raise ConfigurationError(f"OpenAI rejected the configured credentials: {e}")
        except openai.APITimeoutError as e:
            raise TransientLLMError(f"OpenAI call timed out: {e}")
        except openai.APIConnectionError as e:
            raise TransientLLMError(f"Could not reach OpenAI: {e}")
        except openai.APIStatusError as e:
            raise TransientLLMError(f"OpenAI returned HTTP {e.status_code}: {e}", status_code=e.status_code)

        # Update usage stats
        if response.usage:
            self.input_tokens += response.usage.prompt_tokens or 0
            self.output_tokens += response.usage.completion_tokens or 0
        self.models_used[request.model] = self.models_used.get(request.model, 0) + 1

        choice = response.choices[0] if response.choices else None
        text = (choice.message.content or "") if choice else ""
        return LLMResponse(
            text=text.strip(),
            stop_reason=choice.finish_reason if choice else None,
            input_tokens=response.usage.prompt_tokens if response.usage else 0,
            output_tokens=response.usage.completion_tokens if response.usage else 0,
        )

    def get_usage_stats(self) -> Dict:
        """Get usage statistics."""
        estimated_cost = 0.0
        for model, calls in self.models_used.items():
            if model in self.cost_per_1k_tokens:
                rates = self.cost_per_1k_tokens[model]
                share = calls / max(1, self.api_calls)
                estimated_cost += share * (
                    (self.input_tokens / 1000) * rates["input"]
                    + (self.output_tokens / 1000) * rates["output"]
                )

        return {
            "total_tokens": self.input_tokens + self.output_tokens,
            "api_calls": self.api_calls,
            "estimated_cost": estimated_cost,
            "models": dict(self.models_used),
        }


class MockLLMProvider(LLMProvider):
    """
    Scripted LLM provider for tests and dry runs.

    Responses are consumed in order. A string is returned as the generated text,
    an exception instance is raised, and a callable receives the request. Once the
    script runs out, ``fallback`` (or the built-in synthesizer) answers.
    """

    def __init__(
        self,
        responses: Iterable[ScriptedResponse] = (),
        fallback: Optional[Callable[[LLMRequest], str]] = None,
    ) -> None:
        """Initialize mock provider."""
        self.responses: List[ScriptedResponse] = list(responses)
        self.fallback = fallback or synthesize_response
        self.requests: List[LLMRequest] = []

    def complete(self, request: LLMRequest) -> LLMResponse:
        """Mock generation."""
        self.requests.append(request)

        if self.responses:
            scripted = self.responses.pop(0)
            if isinstance(scripted, Exception):
                raise scripted
            text = scripted(request) if callable(scripted) else scripted
        else:
            text = self.fallback(request)

        return LLMResponse(text=text, stop_reason="stop", output_tokens=len(text.split()))

    @property
    def calls(self) -> List[str]:
        return [request.purpose for request in self.requests]

    def get_usage_stats(self) -> Dict:
        """Get mock usage statistics."""
        return {
            "total_tokens": sum(len(r.prompt.split()) for r in self.requests),
            "api_calls": len(self.requests),
            "estimated_cost": 0.0,
            "models": {"mock": len(self.requests)},
        }


def synthesize_response(request: LLMRequest) -> str:
    """Deterministic filler that honours word targets and trailing-section requests."""
    if request.purpose == "outline":
        return ""

    target = request.target_words or 200
    sentence = "This part of the story keeps the narration moving with concrete detail."
    words_per_sentence = len(sentence.split())
    body = " ".join([sentence] * max(1, target // words_per_sentence + 1))

    if "## Tags" not in request.prompt or request.purpose == "expansion":
        return body

    topic_match = re.search(r"^- Topic: (.+)$", request.prompt, re.MULTILINE)
    topic = topic_match.group(1).strip() if topic_match else "video"
    tags = ", ".join(f"{topic} part {n}" for n in range(1, 13))
    return (
        f"{body}\n\n## Description\n"
        f"A full walkthrough of {topic}.\n\nTIMESTAMPS:\n0:00 Introduction\n1:00 Main story\n\n"
        f"## Tags\n{tags}"
    )
