"""Pending content store."""

from post_oracle.store.models import PendingContentEntry
from post_oracle.store.pending import PendingContentStore

__all__ = ["PendingContentEntry", "PendingContentStore"]
