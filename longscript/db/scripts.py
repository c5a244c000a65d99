"""Script storage in Postgres."""

import uuid
from functools import partial
from typing import Any, Callable, ContextManager, Dict, List, Optional

from psycopg import Connection
from psycopg.types.json import Jsonb

from ..integrations.storage import ScriptStore
from ..models import ScriptRecord
from .connection import get_connection

ConnectionFactory = Callable[[], ContextManager[Connection]]


class PostgresScriptStore(ScriptStore):
    """Persist accepted scripts to the ``scripts`` table."""

    def __init__(
        self,
        db_config: Optional[Dict[str, Any]] = None,
        connection_factory: Optional[ConnectionFactory] = None,
    ) -> None:
        """
        Initialize script store.

        Args:
            db_config: Database settings from ``Config.get_db_config``
            connection_factory: Callable returning a connection context; defaults to the pool
        """
        if connection_factory is None:
            if db_config is None:
                raise ValueError("PostgresScriptStore needs db_config or connection_factory")
            connection_factory = partial(get_connection, db_config)
        self.connection_factory = connection_factory

    def save(self, record: ScriptRecord) -> str:
        script_id = uuid.uuid4().hex[:12]
        with self.connection_factory() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO scripts (
                        id, user_id, topic, script, word_count, model, tier,
                        duration_seconds, credits_used, research_source_count,
                        research_score, content_points, chunk_count, outline_used, generated_at
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                    """,
                    (
                        script_id,
                        record.user_id,
                        record.topic,
                        record.script,
                        record.word_count,
                        record.model,
                        record.tier.value,
                        record.duration_seconds,
                        record.credits_used,
                        record.research_source_count,
                        record.research_score,
                        Jsonb(record.content_points),
                        record.chunk_count,
                        record.outline_used,
                        record.generated_at,
                    ),
                )
            conn.commit()
        return script_id

    def delete(self, script_id: str) -> None:
        with self.connection_factory() as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM scripts WHERE id = %s", (script_id,))
            conn.commit()

    def get(self, script_id: str) -> Optional[ScriptRecord]:
        """Load one script by id."""
        with self.connection_factory() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT * FROM scripts WHERE id = %s", (script_id,))
                row = cur.fetchone()
        return self._to_record(row) if row else None

    def list_for_user(self, user_id: str, limit: int = 20) -> List[Dict[str, Any]]:
        """Newest scripts for a user, without the script text."""
        with self.connection_factory() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT id, topic, word_count, tier, credits_used, generated_at
                    FROM scripts
                    WHERE user_id = %s
                    ORDER BY generated_at DESC
                    LIMIT %s
                    """,
                    (user_id, limit),
                )
                return list(cur.fetchall())

    @staticmethod
    def _to_record(row: Dict[str, Any]) -> ScriptRecord:
        data = {key: value for key, value in row.items() if key not in ("id", "created_at")}
        generated_at = data.get("generated_at")
        if hasattr(generated_at, "isoformat"):
            data["generated_at"] = generated_at.isoformat()
        data["content_points"] = data.get("content_points") or []
        return ScriptRecord(**data)
