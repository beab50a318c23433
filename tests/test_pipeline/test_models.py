"""Tests for pipeline models."""

from datetime import UTC, datetime

import pytest

from post_oracle.pipeline.models import ArchivalRecord, PipelineOutcome, ScoringResult
from post_oracle.store.models import PendingContentEntry


@pytest.mark.parametrize(
    ("score", "expected"),
    [(0.0, 0), (42.4, 42), (42.5, 43), (69.5, 70), (99.99, 100)],
)
def test_rounded_score_rounds_half_up(score, expected):
    assert ScoringResult(similarity_score=score).rounded_score == expected


def test_most_similar_id_uses_classifier_order():
    result = ScoringResult.model_validate(
        {"similarity_score": 50, "documents": [{"id": "9"}, {"id": "2"}]}
    )

    assert result.most_similar_id == "9"


def test_default_result_is_not_similar():
    result = ScoringResult.default()

    assert result.similarity_score == 0.0
    assert result.most_similar_id == ""


def test_only_awaiting_content_is_non_terminal():
    non_terminal = [o for o in PipelineOutcome if not o.is_terminal]

    assert non_terminal == [PipelineOutcome.AWAITING_CONTENT]


def test_archival_record_build():
    entry = PendingContentEntry(
        submission_id="5", content="body", username="alice", wallet_address="0xabc"
    )
    scoring = ScoringResult.model_validate(
        {"similarity_score": 12.5, "documents": [{"id": 3, "score": 0.4}]}
    )

    record = ArchivalRecord.build(
        entry, scoring, datetime(2024, 5, 1, 8, 30, 15, 250000, tzinfo=UTC)
    )

    assert record.post_id == "5"
    assert record.timestamp == "2024-05-01T08:30:15.250Z"
    dumped = record.similarity_analysis.model_dump()
    assert dumped == {
        "similarity_score": 12.5,
        "most_similar_posts": [{"id": "3", "score": 0.4}],
    }
