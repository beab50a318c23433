"""Data models for the pending content store."""

from dataclasses import dataclass, field
from datetime import UTC, datetime


@dataclass
class PendingContentEntry:
    """Content pushed by a client, waiting for its ledger trigger."""

    submission_id: str
    content: str
    username: str
    wallet_address: str
    received_at: datetime = field(default_factory=lambda: datetime.now(UTC))
