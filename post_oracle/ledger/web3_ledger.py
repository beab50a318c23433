"""Ledger implementation backed by an Ethereum JSON-RPC endpoint."""

import asyncio
from collections.abc import Sequence
from typing import Any

from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import TimeExhausted

from post_oracle.core.logging import get_logger
from post_oracle.ledger.abi import OUTCOME_EVENTS, REQUEST_EVENT, load_abi
from post_oracle.ledger.base import (
    BaseLedger,
    DecisionStatus,
    LedgerDecision,
    LedgerEvent,
    LedgerReadError,
    LedgerTransactionError,
    timestamp_from_chain,
)

logger = get_logger(__name__)


def decision_from_struct(raw: Sequence[Any]) -> LedgerDecision:
    """Convert a ``Post`` struct tuple returned by the contract."""
    (
        post_id,
        author,
        username,
        status,
        similarity_score,
        most_similar_post_id,
        ipfs_cid,
        timestamp,
    ) = raw
    return LedgerDecision(
        id=str(post_id),
        author=str(author),
        username=username,
        status=DecisionStatus(int(status)),
        similarity_score=int(similarity_score),
        most_similar_post_id=most_similar_post_id,
        ipfs_cid=ipfs_cid,
        timestamp=timestamp_from_chain(timestamp),
    )


def event_from_log(log: Any) -> LedgerEvent:
    """Convert a decoded web3 event log."""
    args = dict(log["args"])
    tx_hash = log.get("transactionHash")
    return LedgerEvent(
        name=log["event"],
        submission_id=str(args.get("postId", "")),
        block_number=int(log["blockNumber"]),
        transaction_hash=tx_hash.to_0x_hex() if tx_hash is not None else "",
        args={key: value for key, value in args.items() if key != "postId"},
    )


class Web3Ledger(BaseLedger):
    """Talks to the post manager contract with a locally held oracle key."""

    def __init__(
        self,
        rpc_url: str,
        private_key: str,
        contract_address: str,
        abi_path: str | None = None,
        confirmation_timeout: float = 120.0,
        w3: AsyncWeb3 | None = None,
    ) -> None:
        """Initialize the ledger client.

        Args:
            rpc_url: JSON-RPC endpoint
            private_key: Oracle wallet key used to sign transactions
            contract_address: Deployed contract address
            abi_path: Optional artifact/ABI file overriding the built-in ABI
            confirmation_timeout: Seconds to wait for a receipt
            w3: Optional preconfigured client, used by tests
        """
        self.w3 = w3 or AsyncWeb3(AsyncHTTPProvider(rpc_url))
        self.account = self.w3.eth.account.from_key(private_key)
        self.contract = self.w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(contract_address),
            abi=load_abi(abi_path),
        )
        self.confirmation_timeout = confirmation_timeout
        # Nonce allocation and broadcast must not interleave
        self._send_lock = asyncio.Lock()

        logger.info(
            "ledger_initialized",
            oracle_address=self.account.address,
            contract_address=self.contract.address,
        )

    @property
    def oracle_address(self) -> str:
        return str(self.account.address)

    async def _transact(self, label: str, function: Any) -> str:
        """Sign, broadcast and confirm a contract call."""
        try:
            async with self._send_lock:
                nonce = await self.w3.eth.get_transaction_count(
                    self.account.address, "pending"
                )
                tx = await function.build_transaction(
                    {"from": self.account.address, "nonce": nonce}
                )
                signed = self.account.sign_transaction(tx)
                tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
            hash_hex = tx_hash.to_0x_hex()
            logger.info("ledger_transaction_sent", operation=label, tx_hash=hash_hex)

            receipt = await self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.confirmation_timeout
            )
        except TimeExhausted as e:
            raise LedgerTransactionError(
                f"{label} not confirmed within {self.confirmation_timeout}s"
            ) from e
        except Exception as e:
            raise LedgerTransactionError(f"{label} failed: {e}") from e

        if receipt["status"] != 1:
            raise LedgerTransactionError(f"{label} reverted in transaction {hash_hex}")

        logger.info(
            "ledger_transaction_confirmed",
            operation=label,
            tx_hash=hash_hex,
            block_number=receipt["blockNumber"],
        )
        return hash_hex

    async def _read(self, label: str, call: Any) -> Any:
        try:
            return await call
        except Exception as e:
            raise LedgerReadError(f"{label} failed: {e}") from e

    async def similarity_threshold(self) -> int:
        value = await self._read(
            "similarityThreshold",
            self.contract.functions.similarityThreshold().call(),
        )
        return int(value)

    async def finalize_result(
        self,
        submission_id: str,
        score: int,
        most_similar_id: str,
        archival_id: str,
    ) -> str:
        function = self.contract.functions.processSimilarityResult(
            int(submission_id), int(score), most_similar_id, archival_id
        )
        return await self._transact("processSimilarityResult", function)

    async def mark_failed(self, submission_id: str, reason: str) -> str:
        function = self.contract.functions.markPostFailed(int(submission_id), reason)
        return await self._transact("markPostFailed", function)

    async def set_oracle(self, address: str | None = None) -> str:
        target = AsyncWeb3.to_checksum_address(address or self.account.address)
        return await self._transact(
            "setOracle", self.contract.functions.setOracle(target)
        )

    async def get_decision(self, submission_id: str) -> LedgerDecision:
        raw = await self._read(
            "getPost", self.contract.functions.getPost(int(submission_id)).call()
        )
        return decision_from_struct(raw)

    async def get_approved(self, offset: int = 0, limit: int = 20) -> list[LedgerDecision]:
        rows = await self._read(
            "getApprovedPosts",
            self.contract.functions.getApprovedPosts(offset, limit).call(),
        )
        return [decision_from_struct(row) for row in rows]

    async def latest_block(self) -> int:
        return int(await self._read("blockNumber", self.w3.eth.block_number))

    async def _logs(self, name: str, from_block: int, to_block: int) -> list[LedgerEvent]:
        event = getattr(self.contract.events, name)
        logs = await self._read(
            f"{name} logs",
            event.get_logs(from_block=from_block, to_block=to_block),
        )
        return [event_from_log(log) for log in logs]

    async def poll_requests(self, from_block: int, to_block: int) -> list[LedgerEvent]:
        return await self._logs(REQUEST_EVENT, from_block, to_block)

    async def poll_outcomes(self, from_block: int, to_block: int) -> list[LedgerEvent]:
        events: list[LedgerEvent] = []
        for name in OUTCOME_EVENTS:
            events.extend(await self._logs(name, from_block, to_block))
        events.sort(key=lambda event: event.block_number)
        return events

    async def close(self) -> None:
        disconnect = getattr(self.w3.provider, "disconnect", None)
        if disconnect is not None:
            await disconnect()
