"""Ephemeral keyed buffer for content awaiting its similarity check."""

import asyncio
from collections.abc import Iterator

from post_oracle.core.logging import get_logger
from post_oracle.core.metrics import PENDING_CONTENT
from post_oracle.store.models import PendingContentEntry

logger = get_logger(__name__)


class PendingContentStore:
    """In-memory map of submission id to pushed content.

    Nothing here survives a restart. Writers overwrite (last write wins).
    Each key also owns an ``asyncio.Lock`` so that a single pipeline run at a
    time can hold a submission; intake writes never take the lock.
    """

    def __init__(self) -> None:
        self._entries: dict[str, PendingContentEntry] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, submission_id: object) -> bool:
        return str(submission_id) in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def put(
        self,
        submission_id: str,
        content: str,
        username: str,
        wallet_address: str,
    ) -> PendingContentEntry:
        """Insert or overwrite the entry for a submission.

        Args:
            submission_id: Ledger submission identifier
            content: Raw content text
            username: Submitter display name
            wallet_address: Submitter wallet address

        Returns:
            The stored entry
        """
        key = str(submission_id)
        entry = PendingContentEntry(
            submission_id=key,
            content=content,
            username=username,
            wallet_address=wallet_address,
        )
        replaced = key in self._entries
        self._entries[key] = entry
        PENDING_CONTENT.set(len(self._entries))
        logger.info(
            "content_stored",
            submission_id=key,
            replaced=replaced,
            content_length=len(content),
        )
        return entry

    def get(self, submission_id: str) -> PendingContentEntry | None:
        """Return the entry for a submission, if any."""
        return self._entries.get(str(submission_id))

    def delete(self, submission_id: str) -> bool:
        """Remove a submission's entry.

        Returns:
            True if an entry was removed
        """
        key = str(submission_id)
        removed = self._entries.pop(key, None) is not None
        if removed:
            PENDING_CONTENT.set(len(self._entries))
            logger.debug("content_removed", submission_id=key)
        return removed

    def prune_lock(self, submission_id: str) -> None:
        """Drop an idle lock once its submission has left the buffer."""
        key = str(submission_id)
        lock = self._locks.get(key)
        if lock is not None and not lock.locked() and key not in self._entries:
            del self._locks[key]

    def lock_for(self, submission_id: str) -> asyncio.Lock:
        """Return the lock that serializes pipeline runs for a submission."""
        key = str(submission_id)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock
