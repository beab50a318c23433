"""Supervised scheduling of similarity checks with bounded content retries."""

import asyncio
from collections import OrderedDict
from collections.abc import Awaitable, Callable

from post_oracle.core.logging import get_logger, get_submission_logger
from post_oracle.core.metrics import ACTIVE_TASKS, CONTENT_RETRIES, PIPELINE_OUTCOMES
from post_oracle.pipeline.models import PipelineOutcome
from post_oracle.pipeline.processor import ProcessingPipeline
from post_oracle.pipeline.retry import RetryPolicy

logger = get_logger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class TaskScheduler:
    """Runs one supervised task per triggered submission.

    A task waits ``initial_delay`` so the paired intake push can land, then
    calls the pipeline until it reports a terminal outcome or the retry
    policy is exhausted. Exhaustion is reported as ``GAVE_UP`` and, when
    ``mark_failed_on_give_up`` is set, recorded on the ledger as a failure.

    Each task is supervised on its own: an unexpected exception is logged and
    recorded as ``FAILED`` for that submission only. A trigger for a
    submission whose task is still running is skipped.
    """

    def __init__(
        self,
        pipeline: ProcessingPipeline,
        policy: RetryPolicy | None = None,
        initial_delay: float = 2.0,
        mark_failed_on_give_up: bool = True,
        history_size: int = 1000,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """Initialize the scheduler.

        Args:
            pipeline: Pipeline run for each attempt
            policy: Retry policy applied while content is missing
            initial_delay: Seconds to wait before the first attempt
            mark_failed_on_give_up: Mark the submission failed when retries run out
            history_size: Number of finished outcomes kept for inspection
            sleep: Awaitable sleep, replaceable in tests
        """
        self.pipeline = pipeline
        self.policy = policy or RetryPolicy()
        self.initial_delay = initial_delay
        self.mark_failed_on_give_up = mark_failed_on_give_up
        self.history_size = history_size
        self._sleep = sleep
        self._tasks: dict[str, asyncio.Task[PipelineOutcome]] = {}
        self._outcomes: OrderedDict[str, PipelineOutcome] = OrderedDict()

    @property
    def active_count(self) -> int:
        return len(self._tasks)

    def is_active(self, submission_id: str) -> bool:
        return str(submission_id) in self._tasks

    def outcome(self, submission_id: str) -> PipelineOutcome | None:
        """Last recorded outcome for a submission, if any."""
        return self._outcomes.get(str(submission_id))

    def schedule(self, submission_id: str) -> asyncio.Task[PipelineOutcome] | None:
        """Schedule a similarity check.

        Args:
            submission_id: Ledger submission identifier

        Returns:
            The created task, or None if one is already running for the id
        """
        key = str(submission_id)
        if key in self._tasks:
            get_submission_logger(key, __name__).warning("duplicate_trigger_skipped")
            PIPELINE_OUTCOMES.labels(outcome=PipelineOutcome.SKIPPED.value).inc()
            return None

        task = asyncio.create_task(self._supervise(key), name=f"similarity-check-{key}")
        self._tasks[key] = task
        ACTIVE_TASKS.set(len(self._tasks))
        task.add_done_callback(lambda _: self._forget(key, task))
        logger.info(
            "similarity_check_scheduled",
            submission_id=key,
            delay=self.initial_delay,
        )
        return task

    def _forget(self, key: str, task: asyncio.Task[PipelineOutcome]) -> None:
        if self._tasks.get(key) is task:
            del self._tasks[key]
        ACTIVE_TASKS.set(len(self._tasks))

    def _record(self, key: str, outcome: PipelineOutcome) -> None:
        self._outcomes[key] = outcome
        self._outcomes.move_to_end(key)
        while len(self._outcomes) > self.history_size:
            self._outcomes.popitem(last=False)

    async def _supervise(self, key: str) -> PipelineOutcome:
        log = get_submission_logger(key, __name__)
        try:
            outcome = await self.run(key)
        except asyncio.CancelledError:
            log.warning("similarity_check_cancelled")
            raise
        except Exception as e:
            log.error(
                "similarity_check_crashed",
                error=str(e),
                error_type=e.__class__.__name__,
                exc_info=e,
            )
            PIPELINE_OUTCOMES.labels(outcome=PipelineOutcome.FAILED.value).inc()
            outcome = PipelineOutcome.FAILED

        self._record(key, outcome)
        log.info("similarity_check_finished", outcome=outcome.value)
        return outcome

    async def run(self, submission_id: str) -> PipelineOutcome:
        """Drive the pipeline for one submission until it settles.

        Args:
            submission_id: Ledger submission identifier

        Returns:
            Terminal outcome
        """
        key = str(submission_id)
        log = get_submission_logger(key, __name__)

        await self._sleep(self.initial_delay)

        attempt = 0
        while True:
            attempt += 1
            outcome = await self.pipeline.process(key)
            if outcome.is_terminal:
                return outcome

            if not self.policy.should_retry(attempt):
                return await self._give_up(key, attempt)

            delay = self.policy.delay(attempt)
            CONTENT_RETRIES.inc()
            log.info(
                "content_retry_scheduled",
                attempt=attempt,
                max_attempts=self.policy.max_attempts or None,
                delay=delay,
            )
            await self._sleep(delay)

    async def _give_up(self, key: str, attempts: int) -> PipelineOutcome:
        log = get_submission_logger(key, __name__)
        log.error("content_wait_exhausted", attempts=attempts)
        PIPELINE_OUTCOMES.labels(outcome=PipelineOutcome.GAVE_UP.value).inc()

        if self.mark_failed_on_give_up:
            await self.pipeline.fail(
                key, f"Content not received after {attempts} attempts"
            )
        return PipelineOutcome.GAVE_UP

    async def join(self) -> None:
        """Wait for every running task, including ones scheduled meanwhile."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel and await all running tasks."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("scheduler_stopped", cancelled=len(tasks))
