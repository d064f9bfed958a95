"""The local chain: genesis, acceptance of new blocks and their distribution."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Iterable

from gossipchain.block import Block, hash_meets_complexity
from gossipchain.config import Config
from gossipchain.logger import get_logger
from gossipchain.messages import BlockPayload, BlockRequest
from gossipchain.node import NodeRegistry, Sender
from gossipchain.storage import InMemoryChain

GENESIS_DATA = "Genesis Block"

_log = get_logger("gossipchain.blockchain")


class BlockChain:
    """Chain of blocks kept in ``database`` and shared with peer ``nodes``.

    Blocks are sent with ``sender``, by default the one the node registry uses.
    """

    def __init__(
        self,
        database: InMemoryChain,
        config: Config,
        nodes: NodeRegistry,
        sender: Sender | None = None,
    ) -> None:
        self._database = database
        self._config = config
        self._nodes = nodes
        self._send = sender if sender is not None else nodes.sender

    @classmethod
    def create(
        cls, database: InMemoryChain, config: Config, nodes: NodeRegistry
    ) -> "BlockChain":
        """Build a chain whose first block is a freshly mined genesis block."""
        chain = cls(database, config, nodes)
        genesis = Block(
            data=GENESIS_DATA,
            previous_hash="",
            timestamp=datetime.now(timezone.utc),
        )
        genesis.calculate_merkle_root()
        genesis.mine(config.complexity)
        chain.add_blocks([genesis])
        return chain

    def get_chain(self) -> list[Block]:
        return self._database.get_all()

    def add_blocks(self, blocks: Iterable[Block]) -> list[Block]:
        """Append the blocks that extend the chain; return those that were saved.

        A block is accepted when it follows the last block's hash and its
        header hash meets the configured complexity. Accepted blocks are
        renumbered to follow the last block and sent to the other nodes.
        """
        added: list[Block] = []
        for candidate in blocks:
            blk = replace(candidate)
            previous = self._database.last_block()
            if previous.index == 0:
                blk.index = 1
                self._database.save(blk)
                added.append(blk)
                continue
            if not self.validate_block(blk):
                continue
            if blk.index > previous.index + 1:
                self._database.update_last_block(replace(blk))
            blk.index = previous.index + 1
            self._database.save(blk)
            added.append(blk)
            self.distribute_block(blk)
        return added

    def last_block(self) -> Block:
        return self._database.last_block()

    def validate_block(self, block: Block) -> bool:
        """Tell whether ``block`` follows the last block and meets the complexity."""
        previous = self._database.last_block()
        if previous.hash != block.previous_hash:
            return False
        return hash_meets_complexity(block.header_hash(), self._config.complexity)

    def distribute_block(self, block: Block) -> dict[str, str | None]:
        """Offer ``block`` to every known node except this one.

        Returns each node's response body, or None where the request failed.
        """
        my_address = self._config.node_address()
        payload = BlockRequest(
            block=BlockPayload.from_block(block),
            metadata={"caller_address": my_address},
        ).to_dict()
        results: dict[str, str | None] = {}
        for node in self._nodes.get_nodes():
            if node == my_address:
                continue
            data, error = None, None
            try:
                data = self._send(
                    node + "/block/add", payload, self._config.block_distribution_timeout
                )
            except (OSError, ValueError) as err:
                error = err
            results[node] = data
            _log.info(
                "Add Block Request to: %s, Response: %s, Error: %s", node, data or "", error
            )
        return results

    def get_blocks(self, count: int) -> list[Block]:
        return self._database.get_blocks(count)