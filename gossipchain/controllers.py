"""Handlers behind the node's HTTP API, returning Response objects."""

from __future__ import annotations

import json
import threading
from typing import Any, Protocol

from gossipchain.blockchain import BlockChain
from gossipchain.block import Block
from gossipchain.config import Config
from gossipchain.logger import get_logger
from gossipchain.mempool import MemPool
from gossipchain.messages import (
    AddNodeRequest,
    BlockPayload,
    BlockRequest,
    Response,
    TransactionRequest,
)
from gossipchain.node import NodeRegistry, Sender
from gossipchain.preprocessor import BlockRejectedError
from gossipchain.transaction import MiningState, Transaction
from gossipchain.transport import post_json

Body = "bytes | str"

_log = get_logger("gossipchain.controllers")


class _PreProcessor(Protocol):
    def process_block(self, block: Block, caller_address: str) -> list[Block]: ...


def _decode(body: bytes | str) -> Any:
    return json.loads(body)


class BlockController:
    """Accepts blocks offered by peers and serves the local chain's blocks."""

    def __init__(self, chain: BlockChain, preprocessor: _PreProcessor) -> None:
        self._chain = chain
        self._preprocessor = preprocessor

    def add_block(self, body: bytes | str) -> Response:
        try:
            request = BlockRequest.from_dict(_decode(body))
        except ValueError as err:
            _log.error("Add Block Request: %r Unmarshal error: %s", body, err)
            return Response.fail(str(err))
        _log.info("Add Block Request: %s", request)
        try:
            request.validate()
        except ValueError as err:
            return Response.fail(str(err))
        core_block = request.to_core_block()
        caller_address = request.metadata.get("caller_address")
        if not isinstance(caller_address, str):
            return Response.fail("caller address is not a string")
        try:
            blocks = self._preprocessor.process_block(core_block, caller_address)
        except BlockRejectedError as err:
            return Response.fail(str(err))
        try:
            self._chain.add_blocks(blocks)
        except (ValueError, LookupError) as err:
            return Response.fail(str(err))
        return Response.ok()

    def get_blocks(self, count_text: str) -> Response:
        try:
            count = int(count_text)
        except ValueError as err:
            return Response.fail(str(err))
        try:
            blocks = self._chain.get_blocks(count)
        except (ValueError, LookupError):
            return Response.fail()
        return Response.ok([BlockPayload.from_block(block) for block in blocks])


class ChainController:
    """Serves the whole local chain."""

    def __init__(self, chain: BlockChain) -> None:
        self._chain = chain

    def get_chain(self) -> Response:
        return Response.ok(self._chain.get_chain())


def nodes_to_inform(received_nodes: list[str], saved_nodes: list[str]) -> list[str]:
    """Saved nodes that are not among the already informed ``received_nodes``."""
    received = set(received_nodes)
    return [node for node in saved_nodes if node not in received]


class NodeController:
    """Registers announced nodes and gossips them on to the other peers."""

    def __init__(
        self,
        nodes: NodeRegistry,
        config: Config,
        sender: Sender = post_json,
        background: bool = True,
    ) -> None:
        self._nodes = nodes
        self._config = config
        self._send = sender
        self._background = background

    def add_node(self, body: bytes | str) -> Response:
        _log.info("AddNode Request %r", body)
        try:
            request = AddNodeRequest.from_dict(_decode(body))
        except ValueError as err:
            _log.error("Unmarshal error %s", err)
            return Response.fail(str(err))
        self._nodes.save_node(request.url)
        if self._background:
            threading.Thread(target=self._distribute, args=(request,), daemon=True).start()
        else:
            self._distribute(request)
        return Response.ok()

    def get_nodes(self) -> Response:
        return Response.ok(self._nodes.get_nodes())

    def _distribute(self, request: AddNodeRequest) -> dict[str, str | None]:
        targets = nodes_to_inform(request.informed_nodes, self._nodes.get_nodes())
        payload = AddNodeRequest(
            url=request.url, informed_nodes=request.informed_nodes + targets
        ).to_dict()
        results: dict[str, str | None] = {}
        for url in targets:
            try:
                data = self._send(
                    url + "/node/add", payload, self._config.node_distribution_timeout
                )
                error = None
            except (OSError, ValueError) as err:
                data, error = None, err
            results[url] = data
            _log.info("Request to: %s, Response: %s, Error: %s", url, data or "", error)
        return results


class TransactionController:
    """Accepts new transactions into the mem pool."""

    def __init__(self, mempool: MemPool) -> None:
        self._mempool = mempool

    def add_transaction(self, body: bytes | str) -> Response:
        _log.info("Add Transaction Request Body: %r", body)
        try:
            request = TransactionRequest.from_dict(_decode(body))
        except ValueError as err:
            _log.error("Unmarshal err: %s", err)
            return Response.fail(str(err))
        txn = Transaction.new(request.amount, request.receiver, request.sender, request.fee)
        txn.mining_status = MiningState.READY_FOR_MINING
        self._mempool.save(txn)
        return Response.ok()