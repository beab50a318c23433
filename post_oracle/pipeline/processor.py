"""Similarity check processing pipeline."""

from datetime import UTC, datetime

from post_oracle.clients.archival import ArchivalClient
from post_oracle.clients.scoring import ScoringClient
from post_oracle.core.logging import get_submission_logger
from post_oracle.core.metrics import PIPELINE_OUTCOMES, PIPELINE_SCORES
from post_oracle.ledger.base import BaseLedger
from post_oracle.pipeline.models import ArchivalRecord, PipelineOutcome, ScoringResult
from post_oracle.store.models import PendingContentEntry
from post_oracle.store.pending import PendingContentStore


class ProcessingPipeline:
    """Turns a buffered submission into a ledger decision.

    One call to :meth:`process` is one attempt:

    * no buffered content -> ``AWAITING_CONTENT`` (the scheduler retries)
    * ``score >= threshold`` -> reject with an empty archival id
    * otherwise archive first, then approve with the returned CID

    Errors while scoring, archiving or finalizing are escalated to
    ``mark_failed``. If that also fails the error is only logged and the
    submission stays pending on the ledger with its content still buffered.
    """

    def __init__(
        self,
        store: PendingContentStore,
        scorer: ScoringClient,
        archiver: ArchivalClient,
        ledger: BaseLedger,
        purge_on_failure: bool = False,
    ) -> None:
        """Initialize the pipeline.

        Args:
            store: Pending content buffer shared with the intake endpoint
            scorer: Similarity classifier client
            archiver: IPFS archival client
            ledger: Contract client used for the threshold and decisions
            purge_on_failure: Drop buffered content once mark-failed succeeds
        """
        self.store = store
        self.scorer = scorer
        self.archiver = archiver
        self.ledger = ledger
        self.purge_on_failure = purge_on_failure

    async def process(self, submission_id: str) -> PipelineOutcome:
        """Run one attempt for a submission.

        Args:
            submission_id: Ledger submission identifier

        Returns:
            Outcome of the attempt
        """
        submission_id = str(submission_id)
        log = get_submission_logger(submission_id, __name__)

        async with self.store.lock_for(submission_id):
            entry = self.store.get(submission_id)
            if entry is None:
                log.info("content_not_received")
                return PipelineOutcome.AWAITING_CONTENT

            log.info("similarity_check_started")
            try:
                outcome = await self._decide(entry)
            except Exception as e:
                outcome = await self._escalate(submission_id, e)
            else:
                self.store.delete(submission_id)

        self.store.prune_lock(submission_id)
        PIPELINE_OUTCOMES.labels(outcome=outcome.value).inc()
        return outcome

    async def _decide(self, entry: PendingContentEntry) -> PipelineOutcome:
        log = get_submission_logger(entry.submission_id, __name__)

        scoring = await self.scorer.score(entry.content)
        threshold = await self.ledger.similarity_threshold()
        PIPELINE_SCORES.observe(scoring.similarity_score)
        log.info(
            "similarity_scored",
            score=scoring.similarity_score,
            threshold=threshold,
            most_similar_id=scoring.most_similar_id,
        )

        if scoring.similarity_score >= threshold:
            return await self._reject(entry, scoring)
        return await self._approve(entry, scoring)

    async def _reject(
        self, entry: PendingContentEntry, scoring: ScoringResult
    ) -> PipelineOutcome:
        log = get_submission_logger(entry.submission_id, __name__)
        log.info("submission_rejected", reason="similarity_too_high")

        tx_hash = await self.ledger.finalize_result(
            entry.submission_id,
            scoring.rounded_score,
            scoring.most_similar_id,
            "",
        )
        log.info("rejection_confirmed", tx_hash=tx_hash)
        return PipelineOutcome.REJECTED

    async def _approve(
        self, entry: PendingContentEntry, scoring: ScoringResult
    ) -> PipelineOutcome:
        log = get_submission_logger(entry.submission_id, __name__)
        log.info("submission_approved_archiving")

        record = ArchivalRecord.build(entry, scoring, datetime.now(UTC))
        cid = await self.archiver.archive(record)

        tx_hash = await self.ledger.finalize_result(
            entry.submission_id,
            scoring.rounded_score,
            scoring.most_similar_id,
            cid,
        )
        log.info("approval_confirmed", tx_hash=tx_hash, cid=cid)
        return PipelineOutcome.APPROVED

    async def _escalate(self, submission_id: str, error: Exception) -> PipelineOutcome:
        log = get_submission_logger(submission_id, __name__)
        log.error(
            "similarity_check_failed",
            error=str(error),
            error_type=error.__class__.__name__,
            exc_info=error,
        )
        return await self.fail(submission_id, str(error) or error.__class__.__name__)

    async def fail(self, submission_id: str, reason: str) -> PipelineOutcome:
        """Mark a submission failed on the ledger.

        Args:
            submission_id: Ledger submission identifier
            reason: Human-readable failure reason

        Returns:
            ``FAILED`` if the ledger accepted it, ``STUCK`` otherwise
        """
        log = get_submission_logger(submission_id, __name__)
        try:
            tx_hash = await self.ledger.mark_failed(submission_id, reason)
        except Exception as mark_error:
            log.error(
                "mark_failed_failed",
                reason=reason,
                error=str(mark_error),
                error_type=mark_error.__class__.__name__,
            )
            return PipelineOutcome.STUCK

        log.warning("submission_marked_failed", reason=reason, tx_hash=tx_hash)
        if self.purge_on_failure:
            self.store.delete(submission_id)
        return PipelineOutcome.FAILED
