"""Background miner that turns pending transactions into blocks."""

from __future__ import annotations

import queue
import threading
from datetime import datetime, timezone

from gossipchain.block import Block
from gossipchain.blockchain import BlockChain
from gossipchain.config import Config
from gossipchain.logger import get_logger
from gossipchain.mempool import MemPool

_POLL_SECONDS = 0.1

_log = get_logger("gossipchain.miner")


class Miner:
    """Mines a block whenever the mem pool holds a full batch of transactions.

    Mining is triggered by every transaction saved to the pool and by every
    batch removed from it; after a block is mined the miner tries again
    until the pool has no full batch left. Only one block is mined at a time.
    """

    def __init__(self, mempool: MemPool, chain: BlockChain, config: Config) -> None:
        self._mempool = mempool
        self._chain = chain
        self._config = config
        self._lock = threading.Lock()
        self._wake = threading.Event()
        self._stop = threading.Event()
        self._threads: list[threading.Thread] = []

    def start(self) -> None:
        """Start listening for mem pool changes in background threads."""
        if self._threads:
            raise RuntimeError("miner is already running")
        self._stop.clear()
        self._wake.clear()
        self._threads = [
            threading.Thread(target=self._forward, args=(self._mempool.receiver,), daemon=True),
            threading.Thread(target=self._forward, args=(self._mempool.remover,), daemon=True),
            threading.Thread(target=self._work, daemon=True),
        ]
        for thread in self._threads:
            thread.start()

    def stop(self) -> None:
        """Interrupt any mining in progress and stop the background threads."""
        self._stop.set()
        self._wake.set()
        for thread in self._threads:
            thread.join()
        self._threads = []

    def mine_once(self) -> Block | None:
        """Mine one batch of transactions and add the block to the chain.

        Returns the mined block, or None when another mining run is in
        progress, no full batch is ready, or the miner was stopped.
        """
        if not self._lock.acquire(blocking=False):
            return None
        try:
            transactions = self._mempool.get()
            if not transactions:
                return None
            previous = self._chain.last_block()
            block = Block(
                data=transactions,
                previous_hash=previous.hash,
                timestamp=datetime.now(timezone.utc),
            )
            block.calculate_merkle_root()
            if block.mine(self._config.complexity, self._stop):
                return None
            self._chain.add_blocks([block])
            self._mempool.mark(transactions)
            return block
        finally:
            self._lock.release()

    def _forward(self, signals: queue.Queue) -> None:
        while not self._stop.is_set():
            try:
                signals.get(timeout=_POLL_SECONDS)
            except queue.Empty:
                continue
            self._wake.set()

    def _work(self) -> None:
        while not self._stop.is_set():
            if not self._wake.wait(_POLL_SECONDS):
                continue
            self._wake.clear()
            _log.info("Received mem pool signal, starting mining")
            while not self._stop.is_set() and self.mine_once() is not None:
                pass