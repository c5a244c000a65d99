from __future__ import annotations

import pytest

from longscript.generation import ChunkEngine, resolve_state
from longscript.models import ChunkState, OutlineChunk, OutlineSection

from .conftest import words

MIN_WORDS = 1669


@pytest.mark.parametrize(
    "ratio, expanded, attempts_left, state",
    [
        (1.0, False, True, ChunkState.ACCEPTED),
        (0.75, False, True, ChunkState.ACCEPTED),
        (0.74, False, True, ChunkState.REGENERATING),
        (0.70, True, True, ChunkState.ACCEPTED),
        (0.69, True, True, ChunkState.REGENERATING),
        (0.69, True, False, ChunkState.REJECTED),
    ],
)
def test_resolve_state(policy, ratio, expanded, attempts_left, state):
    assert resolve_state(ratio, expanded, attempts_left, policy) == state


def test_full_length_chunk_accepted_without_expansion(make_executor):
    executor, provider = make_executor([words(MIN_WORDS)])
    result = ChunkEngine(executor, model="m").run(0, "prompt", MIN_WORDS)
    assert result.accepted
    assert result.states == [ChunkState.GENERATED, ChunkState.ACCEPTED]
    assert provider.calls == ["chunk"]


def test_scenario_b_72_percent_after_expansion_accepted(make_executor):
    # 1000 words, tier 1 adds 202 (1202 / 1669 = 72%), tier 2 declines
    executor, provider = make_executor([words(1000), words(202, "more"), ""])
    result = ChunkEngine(executor, model="m").run(1, "prompt", MIN_WORDS)
    assert result.accepted
    assert result.word_count == 1202
    assert result.attempts == 1
    assert result.expanded
    assert [step.tier for step in result.expansions] == [1, 2]
    assert result.expansions[1].declined
    assert result.states == [
        ChunkState.GENERATED,
        ChunkState.EXPANDING_TIER1,
        ChunkState.EXPANDING_TIER2,
        ChunkState.ACCEPTED,
    ]
    assert provider.calls == ["chunk", "expansion", "expansion"]


def test_scenario_b_68_percent_regenerated(make_executor):
    # 1135 / 1669 = 68%: below the expansion threshold, so the chunk is discarded
    executor, provider = make_executor([words(1000), words(135, "more"), "", words(1700)])
    result = ChunkEngine(executor, model="m").run(1, "prompt", MIN_WORDS)
    assert result.accepted
    assert result.attempts == 2
    assert result.word_count == 1700
    assert ChunkState.REGENERATING in result.states
    assert provider.calls == ["chunk", "expansion", "expansion", "chunk"]


def test_short_chunk_rejected_after_retries(make_executor):
    executor, _ = make_executor([words(1000), words(135), "", words(1000), words(135), ""])
    result = ChunkEngine(executor, model="m").run(2, "prompt", MIN_WORDS)
    assert not result.accepted
    assert result.attempts == 2
    assert result.states[-1] == ChunkState.REJECTED
    assert result.word_count == 1135


def test_outline_miss_earns_one_extra_attempt(make_executor):
    outline_chunk = OutlineChunk(
        chunk_number=1,
        title="Foundations",
        word_target=200,
        sections=[OutlineSection(title="Solid State Cells", content="ceramic electrolytes")],
    )
    on_outline = "### Solid State Cells\n" + words(200, "ceramic")
    executor, provider = make_executor([words(200), on_outline])
    result = ChunkEngine(executor, model="m").run(0, "prompt", 200, outline_chunk=outline_chunk)
    assert result.accepted
    assert result.attempts == 2
    assert result.outline_issues == []
    assert provider.calls == ["chunk", "chunk"]


def test_empty_response_is_regenerated_without_expansion(make_executor):
    executor, provider = make_executor(["", words(300)])
    result = ChunkEngine(executor, model="m").run(0, "prompt", 300)
    assert result.accepted
    assert provider.calls == ["chunk", "chunk"]


def test_expansion_history_kept_across_regenerations(make_executor):
    executor, _ = make_executor([words(1000), words(135), "", words(1000), words(135), ""])
    result = ChunkEngine(executor, model="m").run(2, "prompt", MIN_WORDS)
    assert [(step.attempt, step.tier) for step in result.expansions] == [(1, 1), (1, 2), (2, 1), (2, 2)]
    assert result.expansions[0].words_after == 1135
