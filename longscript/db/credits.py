"""Credit ledger in Postgres."""

from functools import partial
from typing import Any, Callable, ContextManager, Dict, Optional

import pendulum
from psycopg import Connection

from ..errors import InsufficientCreditsError
from ..integrations.billing import BillingLedger, DebitReceipt
from .connection import get_connection

ConnectionFactory = Callable[[], ContextManager[Connection]]


class PostgresLedger(BillingLedger):
    """
    Credit balances in ``credit_balances`` with an append-only ``credit_transactions`` log.

    A debit locks the user's balance row, so two concurrent requests for the same
    user cannot both spend the last credits.
    """

    def __init__(
        self,
        db_config: Optional[Dict[str, Any]] = None,
        connection_factory: Optional[ConnectionFactory] = None,
    ) -> None:
        if connection_factory is None:
            if db_config is None:
                raise ValueError("PostgresLedger needs db_config or connection_factory")
            connection_factory = partial(get_connection, db_config)
        self.connection_factory = connection_factory

    def get_balance(self, user_id: str) -> int:
        with self.connection_factory() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT balance FROM credit_balances WHERE user_id = %s", (user_id,))
                row = cur.fetchone()
        return row["balance"] if row else 0

    def debit(self, user_id: str, credits: int, reference: str = "") -> DebitReceipt:
        with self.connection_factory() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "SELECT balance FROM credit_balances WHERE user_id = %s FOR UPDATE",
                    (user_id,),
                )
                row = cur.fetchone()
                balance = row["balance"] if row else 0
                if balance < credits:
                    conn.rollback()
                    raise InsufficientCreditsError(f"Need {credits} credits, balance is {balance}")

                cur.execute(
                    """
                    UPDATE credit_balances
                    SET balance = balance - %s
                    WHERE user_id = %s
                    RETURNING balance
                    """,
                    (credits, user_id),
                )
                balance_after = cur.fetchone()["balance"]
                self._log(cur, user_id, -credits, balance_after, reference)
            conn.commit()

        return DebitReceipt(
            user_id=user_id,
            credits=credits,
            balance_after=balance_after,
            reference=reference,
            debited_at=pendulum.now("UTC").to_iso8601_string(),
        )

    def grant(self, user_id: str, credits: int, reference: str = "grant") -> int:
        """
        Add credits to a user's balance, creating the balance row if needed.

        Returns:
            New balance
        """
        if credits <= 0:
            raise ValueError("Granted credits must be positive")
        with self.connection_factory() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO credit_balances (user_id, balance)
                    VALUES (%s, %s)
                    ON CONFLICT (user_id) DO UPDATE
                    SET balance = credit_balances.balance + EXCLUDED.balance
                    RETURNING balance
                    """,
                    (user_id, credits),
                )
                balance = cur.fetchone()["balance"]
                self._log(cur, user_id, credits, balance, reference)
            conn.commit()
        return balance

    @staticmethod
    def _log(cur, user_id: str, delta: int, balance_after: int, reference: str) -> None:
        cur.execute(
            """
            INSERT INTO credit_transactions (user_id, delta, balance_after, reference)
            VALUES (%s, %s, %s, %s)
            """,
            (user_id, delta, balance_after, reference),
        )
