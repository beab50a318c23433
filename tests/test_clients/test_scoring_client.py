"""Tests for the similarity classifier client."""

import httpx
import pytest

from post_oracle.clients.scoring import ScoringClient, ScoringServiceError
from tests.fixtures.services import (
    SCORING_URL,
    RecordingService,
    failing_service,
    scoring_service,
)


class TestScoringClient:
    """Successful classifier calls."""

    @pytest.mark.asyncio
    async def test_should_post_text_and_top_k(self):
        service = scoring_service(score=42.5, document_ids=["3", "9"])
        client = ScoringClient(SCORING_URL, top_k=5, transport=service.transport)

        result = await client.score("hello world")

        assert str(service.requests[0].url) == f"{SCORING_URL}/similarity"
        assert service.json_bodies() == [{"text": "hello world", "top_k": 5}]
        assert result.similarity_score == 42.5
        assert result.most_similar_id == "3"

    @pytest.mark.asyncio
    async def test_should_not_double_slash_endpoint(self):
        service = scoring_service()
        client = ScoringClient(SCORING_URL + "/", transport=service.transport)

        await client.score("text")

        assert str(service.requests[0].url) == f"{SCORING_URL}/similarity"

    @pytest.mark.asyncio
    async def test_should_coerce_numeric_document_ids(self):
        service = RecordingService(
            lambda request: httpx.Response(
                200,
                json={"similarity_score": 12, "documents": [{"id": 17, "text": "x"}]},
            )
        )
        client = ScoringClient(SCORING_URL, transport=service.transport)

        result = await client.score("text")

        assert result.most_similar_id == "17"

    @pytest.mark.asyncio
    async def test_should_default_missing_fields(self):
        service = RecordingService(lambda request: httpx.Response(200, json={}))
        client = ScoringClient(SCORING_URL, transport=service.transport)

        result = await client.score("text")

        assert result.similarity_score == 0.0
        assert result.most_similar_id == ""


class TestScoringFailurePolicy:
    """Failure handling under each policy."""

    @pytest.mark.asyncio
    async def test_should_fail_open_on_error_status(self):
        client = ScoringClient(SCORING_URL, transport=failing_service(503).transport)

        result = await client.score("text")

        assert result.similarity_score == 0.0
        assert result.documents == []

    @pytest.mark.asyncio
    async def test_should_fail_open_on_connection_error(self):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = ScoringClient(SCORING_URL, transport=httpx.MockTransport(refuse))

        result = await client.score("text")

        assert result.similarity_score == 0.0

    @pytest.mark.asyncio
    async def test_should_fail_open_on_malformed_body(self):
        service = RecordingService(lambda request: httpx.Response(200, text="not json"))
        client = ScoringClient(SCORING_URL, transport=service.transport)

        result = await client.score("text")

        assert result.similarity_score == 0.0

    @pytest.mark.asyncio
    async def test_should_raise_when_failing_closed(self):
        client = ScoringClient(
            SCORING_URL,
            failure_policy="fail_closed",
            transport=failing_service(500).transport,
        )

        with pytest.raises(ScoringServiceError):
            await client.score("text")

    def test_should_reject_unknown_policy(self):
        with pytest.raises(ValueError):
            ScoringClient(SCORING_URL, failure_policy="ignore")  # type: ignore[arg-type]
