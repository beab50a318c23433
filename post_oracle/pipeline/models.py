"""Pipeline models and types."""

import math
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from post_oracle.store.models import PendingContentEntry


class PipelineOutcome(str, Enum):
    """Result of a single pipeline run or scheduled task."""

    APPROVED = "approved"
    REJECTED = "rejected"
    FAILED = "failed"
    STUCK = "stuck"
    AWAITING_CONTENT = "awaiting_content"
    GAVE_UP = "gave_up"
    SKIPPED = "skipped"

    @property
    def is_terminal(self) -> bool:
        """Whether the scheduler should stop retrying."""
        return self is not PipelineOutcome.AWAITING_CONTENT


class SimilarDocument(BaseModel):
    """A candidate match returned by the classifier."""

    model_config = ConfigDict(extra="allow")

    id: str

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> str:
        """Classifiers may return numeric ids."""
        return str(value)


class ScoringResult(BaseModel):
    """Similarity score plus candidates, most similar first."""

    similarity_score: float = 0.0
    documents: list[SimilarDocument] = Field(default_factory=list)

    @property
    def most_similar_id(self) -> str:
        """First candidate id as ranked by the classifier, or empty."""
        return self.documents[0].id if self.documents else ""

    @property
    def rounded_score(self) -> int:
        """Score as the integer the ledger stores (half rounds up)."""
        return math.floor(self.similarity_score + 0.5)

    @classmethod
    def default(cls) -> "ScoringResult":
        """Result used when the classifier cannot be reached."""
        return cls(similarity_score=0.0, documents=[])


class SimilarityAnalysis(BaseModel):
    """Scoring output embedded in an archived record."""

    similarity_score: float
    most_similar_posts: list[SimilarDocument]


class ArchivalRecord(BaseModel):
    """Canonical approved-post payload pinned to IPFS."""

    post_id: str
    content: str
    username: str
    wallet_address: str
    timestamp: str
    similarity_analysis: SimilarityAnalysis

    @classmethod
    def build(
        cls,
        entry: PendingContentEntry,
        scoring: ScoringResult,
        processed_at: datetime | None = None,
    ) -> "ArchivalRecord":
        """Assemble the record for an approved submission.

        Args:
            entry: Buffered content and submitter metadata
            scoring: Classifier result for the content
            processed_at: Processing time, defaults to now (UTC)

        Returns:
            Record ready to archive
        """
        moment = processed_at or datetime.now(UTC)
        return cls(
            post_id=entry.submission_id,
            content=entry.content,
            username=entry.username,
            wallet_address=entry.wallet_address,
            timestamp=moment.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            similarity_analysis=SimilarityAnalysis(
                similarity_score=scoring.similarity_score,
                most_similar_posts=list(scoring.documents),
            ),
        )
