"""Domain port definitions for adapters."""

from __future__ import annotations

from .remote import BestEffortOutcome, DeleteReceipt, QuoteStore
from .storage import KeyValueStore

__all__ = [
    "BestEffortOutcome",
    "DeleteReceipt",
    "KeyValueStore",
    "QuoteStore",
]
