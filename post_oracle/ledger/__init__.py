"""Ledger contract boundary."""

from post_oracle.ledger.base import (
    BaseLedger,
    DecisionStatus,
    LedgerDecision,
    LedgerError,
    LedgerEvent,
    LedgerReadError,
    LedgerTransactionError,
)

__all__ = [
    "BaseLedger",
    "DecisionStatus",
    "LedgerDecision",
    "LedgerError",
    "LedgerEvent",
    "LedgerReadError",
    "LedgerTransactionError",
]
