"""Decides which blocks an incoming block request adds to the local chain."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable, Protocol

from gossipchain.block import Block
from gossipchain.config import Config
from gossipchain.messages import BlockPayload
from gossipchain.transport import get_json

Fetcher = Callable[[str, "float | None"], Any]


class BlockRejectedError(ValueError):
    """The incoming block cannot be added to the chain."""


class _Chain(Protocol):
    def last_block(self) -> Block: ...


def data_length(data: Any) -> int:
    """Length of list or string block data; 0 for anything else."""
    if isinstance(data, (list, str)):
        return len(data)
    return 0


class IndexValidator:
    """Compares an incoming block's index with the local chain's last block."""

    def __init__(self, chain: _Chain, config: Config, fetch: Fetcher = get_json) -> None:
        self._chain = chain
        self._config = config
        self._fetch = fetch

    def process_block(self, block: Block, caller_address: str) -> list[Block]:
        """Return the blocks to add for ``block``, sent from ``caller_address``.

        On an index conflict the block with more data wins. When the local
        chain is behind, the missing blocks are requested from the caller.
        """
        latest = self._chain.last_block()
        if block.index == latest.index:
            if data_length(latest.data) < data_length(block.data):
                return [block]
            raise BlockRejectedError("existing or outdated block")
        if block.index > latest.index + 1:
            return self._fetch_missing(caller_address, block.index - latest.index)
        if block.index == latest.index + 1:
            return [block]
        raise BlockRejectedError("block is already added or invalid block")

    def _fetch_missing(self, caller_address: str, count: int) -> list[Block]:
        url = f"{caller_address}/block/{count}"
        try:
            result = self._fetch(url, self._config.block_inquiry_timeout)
            if isinstance(result, Mapping):
                result = result.get("result")
            if not isinstance(result, list):
                raise ValueError(f"expected a list of blocks from {url}")
            return [BlockPayload.from_dict(item).to_block() for item in result]
        except (OSError, ValueError) as err:
            raise BlockRejectedError(str(err)) from err