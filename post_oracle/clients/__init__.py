"""Clients for the external scoring and archival services."""

from post_oracle.clients.archival import ArchivalClient, ArchivalError
from post_oracle.clients.scoring import ScoringClient, ScoringServiceError

__all__ = [
    "ArchivalClient",
    "ArchivalError",
    "ScoringClient",
    "ScoringServiceError",
]
