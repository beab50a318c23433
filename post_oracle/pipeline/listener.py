"""Ledger event listener that feeds the scheduler."""

import asyncio

from post_oracle.core.logging import get_logger
from post_oracle.core.metrics import TRIGGERS_TOTAL
from post_oracle.ledger.base import BaseLedger, LedgerError
from post_oracle.pipeline.scheduler import TaskScheduler

logger = get_logger(__name__)


class EventListener:
    """Polls ``SimilarityCheckRequested`` logs and schedules each request."""

    def __init__(
        self,
        ledger: BaseLedger,
        scheduler: TaskScheduler,
        poll_interval: float = 2.0,
        start_block: int | None = None,
    ) -> None:
        """Initialize the listener.

        Args:
            ledger: Ledger to poll
            scheduler: Scheduler receiving triggers
            poll_interval: Seconds between polls
            start_block: First block to scan; defaults to the block after the
                chain head at startup
        """
        self.ledger = ledger
        self.scheduler = scheduler
        self.poll_interval = poll_interval
        self.next_block = start_block
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def poll_once(self) -> int:
        """Scan new blocks once and schedule any requests found.

        Returns:
            Number of requests scheduled
        """
        latest = await self.ledger.latest_block()
        if self.next_block is None:
            self.next_block = latest + 1
            logger.info("listener_started_at_block", block=self.next_block)
            return 0
        if latest < self.next_block:
            return 0

        events = await self.ledger.poll_requests(self.next_block, latest)
        scheduled = 0
        for event in events:
            TRIGGERS_TOTAL.inc()
            logger.info(
                "similarity_check_requested",
                submission_id=event.submission_id,
                block_number=event.block_number,
                tx_hash=event.transaction_hash,
            )
            if self.scheduler.schedule(event.submission_id) is not None:
                scheduled += 1

        self.next_block = latest + 1
        return scheduled

    async def run(self) -> None:
        """Poll until cancelled. Ledger errors are logged and retried."""
        logger.info("listener_running", poll_interval=self.poll_interval)
        while True:
            try:
                await self.poll_once()
            except LedgerError as e:
                logger.warning(
                    "listener_poll_failed",
                    error=str(e),
                    next_block=self.next_block,
                )
            await asyncio.sleep(self.poll_interval)

    def start(self) -> asyncio.Task[None]:
        """Start polling in the background."""
        if self.running:
            raise RuntimeError("Listener already running")
        self._task = asyncio.create_task(self.run(), name="ledger-listener")
        return self._task

    async def stop(self) -> None:
        """Stop polling."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("listener_stopped")
