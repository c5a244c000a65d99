from __future__ import annotations

import json

from longscript.config import Config, ConfigModel, LLMConfig
from longscript.generation import MockLLMProvider
from longscript.integrations import FileScriptStore, InMemoryLedger, InMemoryScriptStore, RequestRateLimiter
from longscript.models import GenerationFailure, GenerationSuccess, ModelTier, ScriptRecord, Source
from longscript.pipeline import PipelineOrchestrator

from .conftest import words

USER = "user-1"


def orchestrator(config, balance: int = 10, provider=None, **kwargs) -> PipelineOrchestrator:
    kwargs.setdefault("save_stats", False)
    return PipelineOrchestrator(
        config,
        ledger=InMemoryLedger({USER: balance}),
        store=InMemoryScriptStore(),
        provider=provider if provider is not None else MockLLMProvider(),
        sleep=lambda _: None,
        **kwargs,
    )


def test_scenario_a_short_script_charged_once(mock_config, short_brief):
    pipeline = orchestrator(mock_config)
    result = pipeline.run(short_brief, USER)

    assert isinstance(result, GenerationSuccess)
    assert result.credits_used == 2
    assert result.script_id == "script-1"
    assert pipeline.ledger.get_balance(USER) == 8
    assert len(pipeline.ledger.receipts) == 1
    assert pipeline.provider.calls == ["single"]
    assert "## Tags" in result.script

    record = pipeline.store.records["script-1"]
    assert record.credits_used == 2
    assert record.chunk_count == 1
    assert record.word_count == len(result.script.split())
    assert result.to_response() == {"script": result.script, "creditsUsed": 2, "scriptId": "script-1"}


def test_scenario_c_snippets_rejected_before_generation(mock_config, short_brief):
    snippets = [Source(title=f"Result {i}", content="A short search result.") for i in range(5)]
    pipeline = orchestrator(mock_config)
    result = pipeline.run(short_brief.model_copy(update={"sources": snippets}), USER)

    assert isinstance(result, GenerationFailure)
    assert result.status == 422
    assert not result.retry
    assert "5 search snippet(s) do not count" in result.details
    assert pipeline.provider.requests == []
    assert pipeline.ledger.get_balance(USER) == 10


def test_insufficient_credits(mock_config, short_brief):
    pipeline = orchestrator(mock_config, balance=1)
    result = pipeline.run(short_brief, USER)

    assert result.status == 402
    assert pipeline.provider.requests == []
    assert pipeline.ledger.receipts == []


def test_gate_failure_charges_nothing(mock_config, short_brief):
    provider = MockLLMProvider(fallback=lambda request: words(800) + " I'll continue in the next response")
    pipeline = orchestrator(mock_config, provider=provider)
    result = pipeline.run(short_brief, USER)

    assert isinstance(result, GenerationFailure)
    assert result.error == "Script incomplete"
    assert result.status == 500
    assert result.retry
    assert pipeline.ledger.get_balance(USER) == 10
    assert pipeline.store.records == {}
    assert not pipeline.last_stats["stages"]["gate"]["success"]
    assert pipeline.last_stats["stages"]["persist"]["duration"] == 0.0


def long_form_sources() -> list:
    return [Source(title=f"Study {i}", content=words(1100, f"finding{i}"), relevance=0.8) for i in range(10)]


def test_long_script_chunked_after_outline_fallback(mock_config, long_brief):
    pipeline = orchestrator(mock_config, balance=100)
    brief = long_brief.model_copy(update={"sources": long_form_sources()})
    result = pipeline.run(brief, USER, tier=ModelTier.PREMIUM, chunk_count=3)

    assert isinstance(result, GenerationSuccess)
    assert result.credits_used == 49
    assert pipeline.provider.calls == ["outline", "chunk", "chunk", "chunk"]
    assert result.script.count("## Tags") == 1
    assert len(result.script.split()) >= 4550

    planning = pipeline.last_stats["stages"]["planning"]["stats"]
    assert planning["chunks"] == 3
    assert planning["outline"] is False
    assert planning["min_words_per_chunk"] == 1669
    assert pipeline.last_stats["stages"]["research"]["stats"]["long_form_adequacy"] == 100


def test_long_script_needs_research_for_its_duration(mock_config, long_brief):
    pipeline = orchestrator(mock_config, balance=100)
    result = pipeline.run(long_brief, USER, chunk_count=3)

    assert isinstance(result, GenerationFailure)
    assert result.status == 422
    assert "35-minute script" in result.details
    assert "600 words of research, need 7000" in result.details
    assert "Add 13 more comprehensive sources" in result.details
    assert pipeline.provider.requests == []
    assert pipeline.ledger.get_balance(USER) == 100


def test_rate_limit(mock_config, short_brief):
    pipeline = orchestrator(mock_config, balance=100, rate_limiter=RequestRateLimiter(max_requests=1))
    assert isinstance(pipeline.run(short_brief, USER), GenerationSuccess)

    limited = pipeline.run(short_brief, USER)
    assert limited.status == 429
    assert limited.retry is False
    assert len(pipeline.provider.requests) == 1


def test_missing_api_key_is_a_configuration_failure(tmp_path, short_brief, monkeypatch):
    monkeypatch.delenv("LONGSCRIPT_TEST_KEY", raising=False)
    model = ConfigModel(
        workspace_root=str(tmp_path / "workspace"),
        llm=LLMConfig(provider="openai", api_key_env="LONGSCRIPT_TEST_KEY"),
    )
    pipeline = PipelineOrchestrator(
        Config.from_model(model),
        ledger=InMemoryLedger({USER: 10}),
        save_stats=False,
    )
    result = pipeline.run(short_brief, USER)

    assert result.error == "Service misconfigured"
    assert "LONGSCRIPT_TEST_KEY" in result.details
    assert not result.retry
    assert pipeline.ledger.get_balance(USER) == 10


def test_stage_stats_written(mock_config, short_brief):
    pipeline = orchestrator(mock_config, save_stats=True)
    result = pipeline.run(short_brief, USER)

    stats_files = list(mock_config.workspace_root.glob("runs/*/script-1/pipeline_stats.json"))
    assert len(stats_files) == 1
    stats = json.loads(stats_files[0].read_text())
    assert stats["topic"] == "Battery Basics"
    assert stats["stages"]["persist"]["stats"]["script_id"] == result.script_id


def test_failed_run_stats_written(mock_config, short_brief):
    pipeline = orchestrator(mock_config, balance=0, save_stats=True)
    pipeline.run(short_brief, USER)

    failed = list(mock_config.workspace_root.glob("runs/*/pipeline_stats_failed_*.json"))
    assert len(failed) == 1
    stats = json.loads(failed[0].read_text())
    assert stats["stages"]["credits"]["error"].startswith("This script costs 2 credits")


def test_single_shot_at_81_percent_reaches_the_gate(mock_config, short_brief):
    # 525 of 650 expected words: over the 80% gate but under 75% of the buffered chunk minimum (715)
    tags = ", ".join(f"battery tag {n}" for n in range(1, 13))
    script = words(481, "narration") + f"\n\n## Description\nA walkthrough of batteries.\n\n## Tags\n{tags}"
    provider = MockLLMProvider(fallback=lambda request: script if request.purpose == "single" else "")
    pipeline = orchestrator(mock_config, provider=provider)
    result = pipeline.run(short_brief, USER)

    assert isinstance(result, GenerationSuccess)
    assert len(result.script.split()) == 525
    assert pipeline.provider.calls == ["single", "expansion", "expansion"]
    assert pipeline.ledger.get_balance(USER) == 8


class ConcurrentSpendLedger(InMemoryLedger):
    """Another request spends the balance between the credit check and the debit."""

    def debit(self, user_id: str, credits: int, reference: str = ""):
        self.balances[user_id] = 0
        return super().debit(user_id, credits, reference)


def test_failed_debit_discards_saved_script(mock_config, short_brief):
    pipeline = PipelineOrchestrator(
        mock_config,
        ledger=ConcurrentSpendLedger({USER: 10}),
        store=InMemoryScriptStore(),
        provider=MockLLMProvider(),
        sleep=lambda _: None,
        save_stats=False,
    )
    result = pipeline.run(short_brief, USER)

    assert isinstance(result, GenerationFailure)
    assert result.status == 402
    assert pipeline.store.records == {}
    assert pipeline.ledger.receipts == []
    assert not pipeline.last_stats["stages"]["persist"]["success"]


def test_file_store_delete(mock_config):
    store = FileScriptStore(mock_config)
    record = ScriptRecord(
        user_id=USER,
        topic="Battery Basics",
        script="Narration.",
        word_count=1,
        model="gpt-4o",
        tier=ModelTier.BALANCED,
        duration_seconds=300,
        credits_used=2,
        research_source_count=3,
        generated_at="2025-03-14T09:30:00Z",
    )
    script_id = store.save(record)
    assert (mock_config.workspace_root / "runs" / "2025-03-14" / script_id / "record.json").exists()

    store.delete(script_id)
    assert list(mock_config.workspace_root.glob(f"runs/*/{script_id}")) == []
    store.delete("missing")
