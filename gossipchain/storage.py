"""In-memory stores for blocks, pending transactions and peer nodes."""

from __future__ import annotations

import threading
from dataclasses import replace

from gossipchain.block import Block
from gossipchain.transaction import MiningState, Transaction


class ChainTooShortError(LookupError):
    """More blocks were requested than the chain holds."""


class InMemoryChain:
    """Ordered list of blocks."""

    def __init__(self) -> None:
        self._blocks: list[Block] = []
        self._lock = threading.Lock()

    def save(self, block: Block) -> None:
        with self._lock:
            self._blocks.append(block)

    def get_all(self) -> list[Block]:
        with self._lock:
            return list(self._blocks)

    def last_block(self) -> Block:
        """The newest block, or an empty block when the chain is empty."""
        with self._lock:
            return self._blocks[-1] if self._blocks else Block()

    def get_blocks(self, count: int) -> list[Block]:
        """The first ``count`` blocks of the chain."""
        if count < 0:
            raise ValueError("number of requested blocks must not be negative")
        with self._lock:
            if len(self._blocks) < count:
                raise ChainTooShortError(
                    "chain length is less than the number of requested blocks"
                )
            return self._blocks[:count]

    def update_last_block(self, block: Block) -> None:
        with self._lock:
            if not self._blocks:
                raise IndexError("chain is empty")
            self._blocks[-1] = block


class InMemoryMemPool:
    """Pending transactions, handed out by fee in batches of a fixed size."""

    def __init__(self, max_transactions_per_block: int = 0) -> None:
        self.max_transactions_per_block = max_transactions_per_block
        self._pool: list[Transaction] = []
        self._lock = threading.RLock()

    def save(self, transaction: Transaction) -> None:
        with self._lock:
            self._pool.append(replace(transaction))

    def get(self) -> list[Transaction]:
        """A full batch of the highest-fee transactions ready for mining, or []."""
        with self._lock:
            eligible = [
                replace(txn)
                for txn in self._pool
                if txn.mining_status == MiningState.READY_FOR_MINING
            ]
        eligible.sort(key=lambda txn: txn.fee, reverse=True)
        limit = self.max_transactions_per_block
        if len(eligible) >= limit:
            return eligible[:limit]
        return []

    def get_all(self) -> list[Transaction]:
        with self._lock:
            return [replace(txn) for txn in self._pool]

    def delete(self, transaction_id: str) -> None:
        with self._lock:
            self._pool = [txn for txn in self._pool if txn.id != transaction_id]

    def update_mining_status(self, transaction_id: str, status: MiningState) -> None:
        with self._lock:
            for txn in self._pool:
                if txn.id == transaction_id:
                    txn.mining_status = status


class InMemoryNodeStore:
    """Addresses of known peer nodes."""

    def __init__(self) -> None:
        self._urls: list[str] = []
        self._lock = threading.Lock()

    def save(self, url: str) -> None:
        with self._lock:
            self._urls.append(url)

    def delete(self, url: str) -> None:
        with self._lock:
            self._urls = [known for known in self._urls if known != url]

    def get_all(self) -> list[str]:
        with self._lock:
            return list(self._urls)