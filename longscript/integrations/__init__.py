"""Billing, persistence and rate limiting."""

from .billing import BillingLedger, DebitReceipt, InMemoryLedger
from .rate_limit import RequestRateLimiter
from .storage import FileScriptStore, InMemoryScriptStore, ScriptStore

__all__ = [
    "BillingLedger",
    "DebitReceipt",
    "FileScriptStore",
    "InMemoryLedger",
    "InMemoryScriptStore",
    "RequestRateLimiter",
    "ScriptStore",
]
