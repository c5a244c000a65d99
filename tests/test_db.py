from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import pendulum
import pytest

from longscript.config import Config, ConfigModel, PostgresConfig
from longscript.db import PostgresLedger, PostgresScriptStore
from longscript.db.connection import DatabaseConfig
from longscript.errors import InsufficientCreditsError
from longscript.models import ModelTier, ScriptRecord


class FakeCursor:
    def __init__(self, conn: "FakeConnection") -> None:
        self.conn = conn

    def __enter__(self) -> "FakeCursor":
        return self

    def __exit__(self, *exc) -> None:
        return None

    def execute(self, sql: str, params: tuple = ()) -> None:
        self.conn.executed.append((" ".join(sql.split()), params))

    def fetchone(self) -> Optional[Dict[str, Any]]:
        return self.conn.rows.pop(0) if self.conn.rows else None

    def fetchall(self) -> List[Dict[str, Any]]:
        rows, self.conn.rows = self.conn.rows, []
        return rows


class FakeConnection:
    def __init__(self, rows: Optional[List[Dict[str, Any]]] = None) -> None:
        self.rows = list(rows or [])
        self.executed: List[tuple] = []
        self.commits = 0
        self.rollbacks = 0

    def cursor(self) -> FakeCursor:
        return FakeCursor(self)

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1


def factory(conn: FakeConnection):
    @contextmanager
    def connect():
        yield conn

    return connect


def test_debit_updates_balance_and_logs():
    conn = FakeConnection([{"balance": 10}, {"balance": 8}])
    receipt = PostgresLedger(connection_factory=factory(conn)).debit("user-1", 2, reference="abc")

    assert receipt.balance_after == 8
    assert conn.commits == 1
    statements = [sql for sql, _ in conn.executed]
    assert statements[0].endswith("FOR UPDATE")
    assert statements[2].startswith("INSERT INTO credit_transactions")
    assert conn.executed[2][1] == ("user-1", -2, 8, "abc")


def test_debit_refused_without_balance():
    conn = FakeConnection([{"balance": 1}])
    with pytest.raises(InsufficientCreditsError):
        PostgresLedger(connection_factory=factory(conn)).debit("user-1", 2)
    assert conn.rollbacks == 1
    assert conn.commits == 0
    assert len(conn.executed) == 1


def test_unknown_user_has_zero_balance():
    ledger = PostgresLedger(connection_factory=factory(FakeConnection()))
    assert ledger.get_balance("nobody") == 0
    assert not ledger.check_balance("nobody", 1)


def test_grant_upserts():
    conn = FakeConnection([{"balance": 150}])
    assert PostgresLedger(connection_factory=factory(conn)).grant("user-1", 50) == 150
    assert "ON CONFLICT (user_id) DO UPDATE" in conn.executed[0][0]
    with pytest.raises(ValueError):
        PostgresLedger(connection_factory=factory(conn)).grant("user-1", 0)


def test_script_store_insert_and_load():
    generated_at = pendulum.datetime(2025, 3, 14, 9, 30, tz="UTC")
    record = ScriptRecord(
        user_id="user-1",
        topic="Battery Basics",
        script="Narration.",
        word_count=1,
        model="gpt-4o",
        tier=ModelTier.BALANCED,
        duration_seconds=300,
        credits_used=2,
        research_source_count=3,
        generated_at=generated_at.to_iso8601_string(),
    )
    conn = FakeConnection()
    store = PostgresScriptStore(connection_factory=factory(conn))
    script_id = store.save(record)

    sql, params = conn.executed[0]
    assert sql.startswith("INSERT INTO scripts")
    assert params[0] == script_id
    assert params[6] == "balanced"
    assert conn.commits == 1

    row = {"id": script_id, "created_at": None, **record.model_dump(), "generated_at": generated_at}
    conn.rows = [row]
    loaded = store.get(script_id)
    assert loaded.topic == "Battery Basics"
    assert pendulum.parse(loaded.generated_at) == generated_at


def test_password_read_from_environment(monkeypatch):
    monkeypatch.setenv("LONGSCRIPT_DB_PASSWORD", "s3cret")
    model = ConfigModel(postgres=PostgresConfig(password_env="LONGSCRIPT_DB_PASSWORD"))
    db_config = Config.from_model(model).get_db_config()
    assert db_config["password"] == "s3cret"
    assert "password=s3cret" in DatabaseConfig(db_config).connection_string
    assert Config.from_model(ConfigModel()).get_db_config() is None


def test_store_requires_settings():
    with pytest.raises(ValueError):
        PostgresScriptStore()


def test_script_store_delete():
    conn = FakeConnection()
    PostgresScriptStore(connection_factory=factory(conn)).delete("abc123")
    assert conn.executed == [("DELETE FROM scripts WHERE id = %s", ("abc123",))]
    assert conn.commits == 1
