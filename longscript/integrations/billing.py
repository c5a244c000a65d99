"""Credit ledger interface and in-memory implementation."""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional

import pendulum
from pydantic import BaseModel, Field

from ..errors import InsufficientCreditsError


class DebitReceipt(BaseModel):
    """Record of one debit."""

    user_id: str = Field(..., description="User charged")
    credits: int = Field(..., description="Credits debited", ge=1)
    balance_after: int = Field(..., description="Balance after the debit")
    reference: str = Field("", description="Script id or other reference")
    debited_at: str = Field(..., description="ISO-8601 timestamp")


class BillingLedger(ABC):
    """Abstract credit ledger."""

    @abstractmethod
    def get_balance(self, user_id: str) -> int:
        """Current credit balance."""
        pass

    def check_balance(self, user_id: str, credits: int) -> bool:
        """Whether the user can afford ``credits``."""
        return self.get_balance(user_id) >= credits

    @abstractmethod
    def debit(self, user_id: str, credits: int, reference: str = "") -> DebitReceipt:
        """
        Debit credits.

        Raises:
            InsufficientCreditsError: The balance no longer covers the debit
        """
        pass


class InMemoryLedger(BillingLedger):
    """Ledger backed by a dict, for the CLI and tests."""

    def __init__(self, balances: Optional[Dict[str, int]] = None, default_balance: int = 0) -> None:
        self.balances: Dict[str, int] = dict(balances or {})
        self.default_balance = default_balance
        self.receipts: List[DebitReceipt] = []

    def get_balance(self, user_id: str) -> int:
        return self.balances.get(user_id, self.default_balance)

    def debit(self, user_id: str, credits: int, reference: str = "") -> DebitReceipt:
        balance = self.get_balance(user_id)
        if balance < credits:
            raise InsufficientCreditsError(f"Need {credits} credits, balance is {balance}")
        self.balances[user_id] = balance - credits
        receipt = DebitReceipt(
            user_id=user_id,
            credits=credits,
            balance_after=self.balances[user_id],
            reference=reference,
            debited_at=pendulum.now("UTC").to_iso8601_string(),
        )
        self.receipts.append(receipt)
        return receipt
