"""Pool of pending transactions that signals the miner on changes."""

from __future__ import annotations

import queue
from typing import Iterable

from gossipchain.storage import InMemoryMemPool
from gossipchain.transaction import MiningState, Transaction


class MemPool:
    """Pending transactions.

    ``receiver`` gets ``True`` for every saved transaction and ``remover``
    gets the ids of every deleted batch, so a miner can react to both.
    """

    def __init__(self, database: InMemoryMemPool) -> None:
        self._database = database
        self.receiver: queue.Queue[bool] = queue.Queue()
        self.remover: queue.Queue[list[str]] = queue.Queue()

    def save(self, transaction: Transaction) -> None:
        self._database.save(transaction)
        self.receiver.put(True)

    def get(self) -> list[Transaction]:
        """The next batch of transactions to mine, or [] if none is ready."""
        return self._database.get()

    def delete(self, ids: Iterable[str]) -> None:
        removed = list(ids)
        for transaction_id in removed:
            self._database.delete(transaction_id)
        self.remover.put(removed)

    def mark(self, transactions: Iterable[Transaction]) -> None:
        """Record that the given transactions have been mined."""
        for txn in transactions:
            self._database.update_mining_status(txn.id, MiningState.MINING_DONE)