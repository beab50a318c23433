"""Application startup and shutdown events."""

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, cast

from post_oracle.clients.archival import ArchivalClient
from post_oracle.clients.scoring import ScoringClient
from post_oracle.core.config import Settings, settings as default_settings
from post_oracle.core.logging import configure_logging, get_logger
from post_oracle.core.metrics import ACTIVE_TASKS
from post_oracle.ledger.base import BaseLedger
from post_oracle.pipeline.listener import EventListener
from post_oracle.pipeline.processor import ProcessingPipeline
from post_oracle.pipeline.retry import RetryPolicy
from post_oracle.pipeline.scheduler import TaskScheduler
from post_oracle.store.pending import PendingContentStore

logger = get_logger(__name__)


class OracleInitError(Exception):
    """Raised when the oracle cannot be wired from configuration."""


class OracleState:
    """Runtime components shared by the HTTP layer and background tasks."""

    def __init__(
        self,
        store: PendingContentStore,
        ledger: BaseLedger | None = None,
        pipeline: ProcessingPipeline | None = None,
        scheduler: TaskScheduler | None = None,
        listener: EventListener | None = None,
    ) -> None:
        self.store = store
        self.ledger = ledger
        self.pipeline = pipeline
        self.scheduler = scheduler
        self.listener = listener

    def health(self) -> dict[str, Any]:
        """Report intake health.

        Returns:
            Dict with status and buffered/active counts
        """
        pending = len(self.store)
        active = self.scheduler.active_count if self.scheduler is not None else 0
        ACTIVE_TASKS.set(active)
        return {
            "status": "healthy",
            "pendingPosts": pending,
            "activeTasks": active,
        }


def create_ledger(config: Settings) -> BaseLedger:
    """Create the web3-backed ledger from settings.

    Raises:
        OracleInitError: If connection settings are missing
    """
    if not config.ledger_configured:
        raise OracleInitError(
            "SEPOLIA_RPC_URL, ORACLE_PRIVATE_KEY and CONTRACT_ADDRESS are required"
        )

    from post_oracle.ledger.web3_ledger import Web3Ledger

    return Web3Ledger(
        rpc_url=cast(str, config.SEPOLIA_RPC_URL),
        private_key=cast(str, config.ORACLE_PRIVATE_KEY),
        contract_address=cast(str, config.CONTRACT_ADDRESS),
        abi_path=config.CONTRACT_ABI_PATH,
        confirmation_timeout=config.LEDGER_CONFIRMATION_TIMEOUT,
    )


def create_oracle_state(
    config: Settings,
    ledger: BaseLedger,
    store: PendingContentStore | None = None,
) -> OracleState:
    """Wire the pipeline, scheduler and listener around a ledger.

    Args:
        config: Oracle settings
        ledger: Ledger client
        store: Optional existing content store

    Returns:
        Fully wired state, listener not yet started
    """
    store = store if store is not None else PendingContentStore()
    scorer = ScoringClient(
        base_url=config.SIMILARITY_API_URL,
        top_k=config.SIMILARITY_TOP_K,
        timeout=config.SIMILARITY_TIMEOUT,
        failure_policy=config.SCORING_FAILURE_POLICY,
    )
    archiver = ArchivalClient(
        api_key=config.PINATA_API_KEY,
        secret_key=config.PINATA_SECRET_KEY,
        base_url=config.PINATA_API_URL,
        cid_version=config.PINATA_CID_VERSION,
        timeout=config.ARCHIVAL_TIMEOUT,
    )
    pipeline = ProcessingPipeline(
        store=store,
        scorer=scorer,
        archiver=archiver,
        ledger=ledger,
        purge_on_failure=config.PURGE_ON_FAILURE,
    )
    scheduler = TaskScheduler(
        pipeline=pipeline,
        policy=RetryPolicy.from_settings(config),
        initial_delay=config.PIPELINE_INITIAL_DELAY,
        mark_failed_on_give_up=config.MARK_FAILED_ON_GIVE_UP,
    )
    listener = EventListener(
        ledger=ledger,
        scheduler=scheduler,
        poll_interval=config.LEDGER_POLL_INTERVAL,
        start_block=config.LEDGER_START_BLOCK,
    )
    return OracleState(
        store=store,
        ledger=ledger,
        pipeline=pipeline,
        scheduler=scheduler,
        listener=listener,
    )


def create_start_app_handler(
    app: Any,
    config: Settings | None = None,
    ledger_factory: Callable[[Settings], BaseLedger] = create_ledger,
) -> Callable[[], Awaitable[None]]:
    """Create startup event handler.

    Args:
        app: FastAPI application instance
        config: Settings, defaults to the module settings
        ledger_factory: Builds the ledger client

    Returns:
        Startup handler function
    """
    config = config or default_settings

    async def start_app() -> None:
        configure_logging(level=config.LOG_LEVEL, json_logs=config.JSON_LOGS)

        ledger = ledger_factory(config)
        state = create_oracle_state(config, ledger)
        app.state.oracle = state

        if state.listener is not None:
            state.listener.start()

        logger.info(
            "oracle_startup_complete",
            similarity_api=config.SIMILARITY_API_URL,
            scoring_failure_policy=config.SCORING_FAILURE_POLICY,
            retry_max_attempts=config.CONTENT_RETRY_MAX_ATTEMPTS,
            port=config.ORACLE_PORT,
        )

    return start_app


def create_stop_app_handler(app: Any) -> Callable[[], Awaitable[None]]:
    """Create shutdown event handler with graceful shutdown logic.

    Args:
        app: FastAPI application instance

    Returns:
        Shutdown handler function
    """

    async def stop_app() -> None:
        state = cast(OracleState | None, getattr(app.state, "oracle", None))
        if state is None:
            return
        try:
            # Stop taking new triggers first
            if state.listener is not None:
                await state.listener.stop()
            if state.scheduler is not None:
                await state.scheduler.shutdown()
            if state.ledger is not None:
                await state.ledger.close()
            logger.info(
                "oracle_shutdown_complete",
                pending_posts=len(state.store),
            )
        except Exception as e:
            logger.error("oracle_shutdown_failed", error=str(e))
            raise

    return stop_app


def create_lifespan(
    config: Settings | None = None,
    ledger_factory: Callable[[Settings], BaseLedger] = create_ledger,
) -> Callable[[Any], Any]:
    """Combine the startup and shutdown handlers into an ASGI lifespan."""

    @asynccontextmanager
    async def lifespan(app: Any) -> AsyncIterator[None]:
        await create_start_app_handler(app, config, ledger_factory)()
        try:
            yield
        finally:
            await create_stop_app_handler(app)()

    return lifespan
