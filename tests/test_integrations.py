from __future__ import annotations

import json

import pendulum
import pytest

from longscript.errors import (
    ChunkTooShortError,
    InsufficientCreditsError,
    InsufficientResearchError,
    RateLimitExceededError,
)
from longscript.integrations import FileScriptStore, InMemoryLedger, RequestRateLimiter
from longscript.models import ModelTier, ScriptRecord

SCRIPT = (
    "### Opening\nThe **first** line of narration.\n\n## Description\nAll about batteries.\n\n"
    "## Tags\nbatteries, energy"
)


def record() -> ScriptRecord:
    return ScriptRecord(
        user_id="user-1",
        topic="Battery Basics",
        script=SCRIPT,
        word_count=len(SCRIPT.split()),
        model="gpt-4o",
        tier=ModelTier.BALANCED,
        duration_seconds=300,
        credits_used=2,
        research_source_count=3,
        generated_at=pendulum.datetime(2025, 3, 14, 9, 30, tz="UTC").to_iso8601_string(),
    )


def test_file_store_writes_script_tts_and_record(mock_config):
    store = FileScriptStore(mock_config)
    script_id = store.save(record())

    script_dir = mock_config.workspace_root / "runs" / "2025-03-14" / script_id
    script_text = (script_dir / "script.txt").read_text()
    assert script_text.startswith("# Battery Basics")
    assert "Generated: Mar 14, 2025 at 09:30 UTC" in script_text
    assert script_text.endswith("batteries, energy")

    assert (script_dir / "script_tts.txt").read_text() == "The first line of narration."

    saved = json.loads((script_dir / "record.json").read_text())
    assert saved["script_id"] == script_id
    assert saved["tier"] == "balanced"


def test_ledger_debits_and_refuses_overdraft():
    ledger = InMemoryLedger({"user-1": 5})
    receipt = ledger.debit("user-1", 2, reference="script-1")
    assert receipt.balance_after == 3
    assert receipt.reference == "script-1"
    assert not ledger.check_balance("user-1", 4)

    with pytest.raises(InsufficientCreditsError):
        ledger.debit("user-1", 4)
    assert ledger.get_balance("user-1") == 3
    assert ledger.get_balance("someone-else") == 0


def test_rate_limiter_sliding_window():
    now = [0.0]
    limiter = RequestRateLimiter(max_requests=2, window_seconds=60, clock=lambda: now[0])
    limiter.check("a")
    now[0] = 10.0
    limiter.check("a")
    limiter.check("b")
    assert limiter.remaining("a") == 0

    with pytest.raises(RateLimitExceededError) as exc:
        limiter.check("a")
    assert exc.value.status == 429
    assert "retry in 50s" in exc.value.details

    now[0] = 60.0
    limiter.check("a")
    assert limiter.remaining("a") == 0


def test_chunk_too_short_message():
    error = ChunkTooShortError(1, 1135, 1669)
    assert error.shortfall_percent == 32.0
    assert error.details == "Chunk 2 is 32.0% short of its minimum (1135/1669 words) after exhausting retries"
    assert error.to_response() == {"error": "Chunk too short", "details": error.details, "retry": True}


def test_research_error_is_not_retryable():
    error = InsufficientResearchError("1 substantive source(s), need 2", gaps=["sources"])
    assert error.status == 422
    assert error.to_response()["retry"] is False
    assert error.gaps == ["sources"]
