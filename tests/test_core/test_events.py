"""Tests for oracle wiring and lifecycle handlers."""

from types import SimpleNamespace

import pytest

from post_oracle.core.config import Settings
from post_oracle.core.events import (
    OracleInitError,
    OracleState,
    create_ledger,
    create_oracle_state,
    create_stop_app_handler,
)
from post_oracle.store.pending import PendingContentStore
from tests.fixtures.ledger import FakeLedger


def test_create_ledger_requires_connection_settings() -> None:
    config = Settings(_env_file=None, SEPOLIA_RPC_URL=None, CONTRACT_ADDRESS=None)

    with pytest.raises(OracleInitError):
        create_ledger(config)


def test_create_oracle_state_applies_settings(fake_ledger: FakeLedger) -> None:
    config = Settings(
        _env_file=None,
        SCORING_FAILURE_POLICY="fail_closed",
        PURGE_ON_FAILURE=True,
        CONTENT_RETRY_MAX_ATTEMPTS=4,
        PIPELINE_INITIAL_DELAY=1.5,
        LEDGER_START_BLOCK=100,
        SIMILARITY_TOP_K=3,
    )

    state = create_oracle_state(config, fake_ledger)

    assert state.ledger is fake_ledger
    assert state.pipeline.store is state.store
    assert state.pipeline.scorer.failure_policy == "fail_closed"
    assert state.pipeline.scorer.top_k == 3
    assert state.pipeline.purge_on_failure is True
    assert state.scheduler.policy.max_attempts == 4
    assert state.scheduler.initial_delay == 1.5
    assert state.listener.next_block == 100
    assert state.listener.scheduler is state.scheduler


def test_health_without_scheduler() -> None:
    state = OracleState(store=PendingContentStore())
    state.store.put("1", "a", "alice", "0xabc")

    assert state.health() == {"status": "healthy", "pendingPosts": 1, "activeTasks": 0}


@pytest.mark.asyncio
async def test_stop_handler_without_state_is_noop() -> None:
    app = SimpleNamespace(state=SimpleNamespace())

    await create_stop_app_handler(app)()


@pytest.mark.asyncio
async def test_stop_handler_closes_ledger(fake_ledger: FakeLedger) -> None:
    state = create_oracle_state(Settings(_env_file=None), fake_ledger)
    app = SimpleNamespace(state=SimpleNamespace(oracle=state))

    await create_stop_app_handler(app)()

    assert fake_ledger.closed


def test_create_oracle_state_keeps_empty_shared_store(fake_ledger: FakeLedger) -> None:
    shared = PendingContentStore()

    state = create_oracle_state(Settings(_env_file=None), fake_ledger, store=shared)
    shared.put("5", "text", "alice", "0xabc")

    assert state.store is shared
    assert state.pipeline.store is shared
    assert state.pipeline.store.get("5") is not None
