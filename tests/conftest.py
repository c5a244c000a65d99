from __future__ import annotations

from typing import List

import pytest

from longscript.config import Config, ConfigModel, GenerationPolicy, LLMConfig
from longscript.generation import GenerationExecutor, MockLLMProvider
from longscript.models import ContentBrief, ContentPoint, Source, VerificationStatus


def words(n: int, word: str = "word") -> str:
    return " ".join([word] * n)


def research_sources(count: int = 3, length: int = 200) -> List[Source]:
    return [
        Source(
            title=f"Source {i}",
            url=f"https://example.com/{i}",
            content=words(length, "research"),
            relevance=0.8,
        )
        for i in range(1, count + 1)
    ]


def content_points(count: int) -> List[ContentPoint]:
    titles = [
        "Why Batteries Degrade",
        "Lithium Supply Chains",
        "Solid State Cells",
        "Recycling Economics",
        "Grid Storage Markets",
        "Policy And Subsidies",
        "What Comes Next",
    ]
    return [
        ContentPoint(title=titles[i], description=f"Explain {titles[i].lower()}", duration=300)
        for i in range(count)
    ]


@pytest.fixture
def policy() -> GenerationPolicy:
    return GenerationPolicy()


@pytest.fixture
def short_brief() -> ContentBrief:
    return ContentBrief(
        title="Battery Basics",
        topic="Batteries",
        audience="curious adults",
        tone="friendly",
        duration=300,
        hook="Your phone battery is lying to you.",
        content_points=content_points(3),
        sources=research_sources(),
    )


@pytest.fixture
def long_brief() -> ContentBrief:
    return ContentBrief(
        title="The Battery Century",
        topic="Energy storage",
        duration=2100,
        hook="Every revolution runs on stored energy.",
        content_points=content_points(6),
        sources=research_sources(),
    )


@pytest.fixture
def quality_sources() -> List[Source]:
    return [
        Source(title="Synthesis", content=words(400, "summary"), synthesized=True),
        Source(title="Paper", content=words(300, "paper"), verification_status=VerificationStatus.VERIFIED),
        Source(title="Report", content=words(300, "report"), verification_status=VerificationStatus.VERIFIED),
    ]


@pytest.fixture
def make_executor(policy):
    def _make(responses=(), fallback=None, **kwargs):
        provider = MockLLMProvider(responses, fallback=fallback)
        sleeps: List[float] = []
        executor = GenerationExecutor(provider, policy=policy, sleep=sleeps.append, **kwargs)
        executor.sleeps = sleeps
        return executor, provider

    return _make


@pytest.fixture
def mock_config(tmp_path) -> Config:
    model = ConfigModel(workspace_root=str(tmp_path / "workspace"), llm=LLMConfig(provider="mock"))
    return Config.from_model(model, tmp_path / "config.yaml")
