"""Client for the external content-similarity classifier."""

from typing import Any, Literal

import httpx
from pydantic import ValidationError

from post_oracle.core.logging import get_logger
from post_oracle.pipeline.models import ScoringResult

logger = get_logger(__name__)

FailurePolicy = Literal["fail_open", "fail_closed"]


class ScoringServiceError(Exception):
    """Raised when the classifier fails and the policy is fail-closed."""


class ScoringClient:
    """Scores content against previously accepted documents.

    Under ``fail_open`` any failure (network error, timeout, non-success
    status, malformed body) yields :meth:`ScoringResult.default`, which reads
    as "not similar" and steers the pipeline toward approval. Under
    ``fail_closed`` the same failures raise :class:`ScoringServiceError`.
    """

    def __init__(
        self,
        base_url: str,
        top_k: int = 5,
        timeout: float = 30.0,
        failure_policy: FailurePolicy = "fail_open",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Classifier base URL; ``/similarity`` is appended
            top_k: Number of candidate documents to request
            timeout: Request timeout in seconds
            failure_policy: ``fail_open`` or ``fail_closed``
            transport: Optional httpx transport, used by tests
        """
        if failure_policy not in ("fail_open", "fail_closed"):
            raise ValueError(f"Unsupported scoring failure policy: {failure_policy}")
        self.endpoint = f"{base_url.rstrip('/')}/similarity"
        self.top_k = top_k
        self.timeout = timeout
        self.failure_policy: FailurePolicy = failure_policy
        self._transport = transport

    async def score(self, content: str) -> ScoringResult:
        """Score a piece of content.

        Args:
            content: Text to compare

        Returns:
            Classifier result, or the default result when failing open

        Raises:
            ScoringServiceError: If the call fails and the policy is fail-closed
        """
        payload: dict[str, Any] = {"text": content, "top_k": self.top_k}
        logger.info("scoring_requested", endpoint=self.endpoint, top_k=self.top_k)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self.endpoint,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
                response.raise_for_status()
                result = ScoringResult.model_validate(response.json())
        except httpx.HTTPStatusError as e:
            return self._degrade(
                e,
                status_code=e.response.status_code,
                response_body=e.response.text[:500],
            )
        except (httpx.HTTPError, ValueError, ValidationError) as e:
            return self._degrade(e)

        logger.info(
            "scoring_completed",
            score=result.similarity_score,
            candidates=len(result.documents),
        )
        return result

    def _degrade(self, error: Exception, **context: Any) -> ScoringResult:
        """Apply the failure policy to a classifier error."""
        if self.failure_policy == "fail_closed":
            logger.error(
                "scoring_failed",
                error=str(error),
                error_type=error.__class__.__name__,
                policy=self.failure_policy,
                **context,
            )
            raise ScoringServiceError(
                f"Similarity service unavailable: {error}"
            ) from error

        logger.warning(
            "scoring_failed_using_default",
            error=str(error),
            error_type=error.__class__.__name__,
            policy=self.failure_policy,
            **context,
        )
        return ScoringResult.default()
