"""Command that starts a blockchain node."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass

from gossipchain.blockchain import BlockChain
from gossipchain.config import Config, init_config
from gossipchain.controllers import (
    BlockController,
    ChainController,
    NodeController,
    TransactionController,
)
from gossipchain.mempool import MemPool
from gossipchain.miner import Miner
from gossipchain.node import NodeRegistry
from gossipchain.preprocessor import IndexValidator
from gossipchain.server import Api, serve
from gossipchain.storage import InMemoryChain, InMemoryMemPool, InMemoryNodeStore


@dataclass
class NodeApp:
    """The parts of one running node."""

    config: Config
    nodes: NodeRegistry
    chain: BlockChain
    mempool: MemPool
    miner: Miner
    api: Api


def build_node(config: Config) -> NodeApp:
    """Wire up a node with in-memory storage and a freshly mined genesis block."""
    nodes = NodeRegistry(InMemoryNodeStore(), config)
    chain = BlockChain.create(InMemoryChain(), config, nodes)
    mempool = MemPool(InMemoryMemPool(config.max_transactions_per_block))
    miner = Miner(mempool, chain, config)
    api = Api(
        TransactionController(mempool),
        ChainController(chain),
        NodeController(nodes, config),
        BlockController(chain, IndexValidator(chain, config)),
    )
    return NodeApp(
        config=config, nodes=nodes, chain=chain, mempool=mempool, miner=miner, api=api
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="gossipchain", description="Run a blockchain node."
    )
    parser.add_argument(
        "--config",
        help="path of the YAML configuration (default: the CONFIG_PATH variable)",
    )
    args = parser.parse_args(argv)
    try:
        config = init_config(args.config)
    except (OSError, ValueError) as err:
        parser.exit(1, f"gossipchain: cannot load configuration: {err}\n")
    app = build_node(config)
    app.miner.start()
    try:
        app.nodes.announce()
        serve(app.api, config.port)
    except KeyboardInterrupt:
        pass
    except OSError as err:
        print(f"gossipchain: {err}", file=sys.stderr)
        return 1
    finally:
        app.miner.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())