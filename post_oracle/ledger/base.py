"""Base classes and types for the ledger contract boundary."""

from abc import ABC, abstractmethod
from datetime import UTC, datetime
from enum import IntEnum
from typing import Any

from pydantic import BaseModel, Field


class LedgerError(Exception):
    """Base class for ledger failures."""


class LedgerTransactionError(LedgerError):
    """Raised when a transaction cannot be submitted or confirmed."""


class LedgerReadError(LedgerError):
    """Raised when a contract read or log query fails."""


class DecisionStatus(IntEnum):
    """Submission status as stored by the contract."""

    PENDING = 0
    REJECTED = 1
    APPROVED = 2
    FAILED = 3


class LedgerDecision(BaseModel):
    """Read-only view of a submission record held by the contract."""

    id: str
    author: str = ""
    username: str = ""
    status: DecisionStatus = DecisionStatus.PENDING
    similarity_score: int = 0
    most_similar_post_id: str = ""
    ipfs_cid: str = ""
    timestamp: datetime | None = None

    @property
    def is_final(self) -> bool:
        return self.status is not DecisionStatus.PENDING


class LedgerEvent(BaseModel):
    """A decoded contract event."""

    name: str
    submission_id: str
    block_number: int
    transaction_hash: str = ""
    args: dict[str, Any] = Field(default_factory=dict)


def timestamp_from_chain(value: int) -> datetime | None:
    """Convert a block timestamp in seconds to an aware datetime."""
    if not value:
        return None
    return datetime.fromtimestamp(int(value), tz=UTC)


class BaseLedger(ABC):
    """Contract operations the oracle depends on.

    Transaction methods block until the transaction is confirmed and raise
    :class:`LedgerTransactionError` on any submission or confirmation failure.
    Read methods raise :class:`LedgerReadError`.
    """

    @abstractmethod
    async def similarity_threshold(self) -> int:
        """Current rejection threshold on the percentage scale."""
        raise NotImplementedError

    @abstractmethod
    async def finalize_result(
        self,
        submission_id: str,
        score: int,
        most_similar_id: str,
        archival_id: str,
    ) -> str:
        """Record an Approved/Rejected decision.

        Returns:
            Transaction hash
        """
        raise NotImplementedError

    @abstractmethod
    async def mark_failed(self, submission_id: str, reason: str) -> str:
        """Record a Failed decision with a human-readable reason.

        Returns:
            Transaction hash
        """
        raise NotImplementedError

    @abstractmethod
    async def get_decision(self, submission_id: str) -> LedgerDecision:
        """Read the full record for a submission."""
        raise NotImplementedError

    @abstractmethod
    async def get_approved(self, offset: int = 0, limit: int = 20) -> list[LedgerDecision]:
        """Page through approved records."""
        raise NotImplementedError

    @abstractmethod
    async def latest_block(self) -> int:
        """Most recent block number."""
        raise NotImplementedError

    @abstractmethod
    async def poll_requests(
        self, from_block: int, to_block: int
    ) -> list[LedgerEvent]:
        """``SimilarityCheckRequested`` events in an inclusive block range."""
        raise NotImplementedError

    @abstractmethod
    async def poll_outcomes(
        self, from_block: int, to_block: int
    ) -> list[LedgerEvent]:
        """Submission lifecycle events in an inclusive block range."""
        raise NotImplementedError

    @abstractmethod
    async def set_oracle(self, address: str | None = None) -> str:
        """Register the oracle address with the contract.

        Returns:
            Transaction hash
        """
        raise NotImplementedError

    async def close(self) -> None:
        """Release network resources."""
        return None
