"""Script generation: LLM providers, prompts, chunk engine and stitching."""

from .chunk_engine import ChunkEngine, resolve_state
from .executor import Deadline, GenerationExecutor
from .llm_provider import LLMProvider, MockLLMProvider, OpenAIProvider, synthesize_response
from .models import ExpansionRequest, LLMRequest, LLMResponse
from .prompts import PromptBuilder
from .script import GeneratedScript, ScriptGenerator, format_for_tts, save_script, save_tts_script
from .stitcher import StitchResult, remove_duplicate_sections, stitch_chunks

__all__ = [
    "ChunkEngine",
    "Deadline",
    "ExpansionRequest",
    "GeneratedScript",
    "GenerationExecutor",
    "LLMProvider",
    "LLMRequest",
    "LLMResponse",
    "MockLLMProvider",
    "OpenAIProvider",
    "PromptBuilder",
    "ScriptGenerator",
    "StitchResult",
    "format_for_tts",
    "remove_duplicate_sections",
    "resolve_state",
    "save_script",
    "save_tts_script",
    "stitch_chunks",
    "synthesize_response",
]
