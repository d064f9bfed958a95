import pytest

from gossipchain.block import Block, hash_meets_complexity
from gossipchain.blockchain import GENESIS_DATA, BlockChain
from gossipchain.config import Config
from gossipchain.node import NodeRegistry
from gossipchain.storage import ChainTooShortError, InMemoryChain, InMemoryNodeStore
from gossipchain.transaction import Transaction


class RecordingSender:
    def __init__(self):
        self.calls = []

    def __call__(self, url, payload, timeout):
        self.calls.append((url, payload, timeout))
        return '{"success":true}'


def make_chain(complexity, known_nodes=()):
    config = Config(
        complexity=complexity,
        host="localhost",
        port=8080,
        block_distribution_timeout=3,
        known_nodes=tuple(known_nodes),
    )
    sender = RecordingSender()
    nodes = NodeRegistry(InMemoryNodeStore(), config, sender)
    chain = BlockChain.create(InMemoryChain(), config, nodes, sender)
    return chain, sender


def next_block(chain, data, mine_complexity):
    block = Block(data=data, previous_hash=chain.last_block().hash)
    block.calculate_merkle_root()
    block.mine(mine_complexity)
    return block


def test_genesis_block():
    chain, _ = make_chain(0)
    blocks = chain.get_chain()
    assert len(blocks) == 1
    genesis = blocks[0]
    assert genesis.index == 1
    assert genesis.data == GENESIS_DATA
    assert genesis.hash == genesis.header_hash()
    assert hash_meets_complexity(genesis.hash, 0)


def test_mined_transaction_block_is_accepted():
    chain, _ = make_chain(3)
    block = Block(
        index=0,
        data=[
            Transaction(
                id="504e914d-0b23-4091-a8d4-ba047cc67cc9",
                amount=300,
                receiver="287335e156a4d7b5e1252af50c6c5592286793f8a78a9c8d6eb69e9f1974e41c",
                sender="c7f243735dbb5eb0b9899567f0784dfc3684b1bdd8d7ce1500b3c56b337d4b8d",
                fee=5,
            ),
            Transaction(
                id="38dc2294-f940-47e9-bec5-2c316d1ffa2a",
                amount=300,
                receiver="287335e156a4d7b5e1252af50c6c5592286793f8a78a9c8d6eb69e9f1974e41c",
                sender="c7f243735dbb5eb0b9899567f0784dfc3684b1bdd8d7ce1500b3c56b337d4b8d",
                fee=5,
            ),
        ],
        previous_hash=chain.last_block().hash,
    )
    block.calculate_merkle_root()
    block.mine(3)
    assert hash_meets_complexity(block.header_hash(), 3)
    added = chain.add_blocks([block])
    assert [b.index for b in added] == [2]
    assert [b.index for b in chain.get_chain()] == [1, 2]


def test_wrong_previous_hash_is_ignored():
    chain, _ = make_chain(0)
    block = Block(data="x", previous_hash="not-the-last-hash")
    block.mine(0)
    assert chain.add_blocks([block]) == []
    assert len(chain.get_chain()) == 1


def test_hash_not_meeting_complexity_is_ignored():
    chain, _ = make_chain(1)
    block = next_block(chain, "x", 2)
    assert chain.add_blocks([block]) == []
    assert len(chain.get_chain()) == 1


def test_accepted_block_is_distributed_to_other_nodes():
    chain, sender = make_chain(0, known_nodes=["localhost:8080", "http://peer"])
    block = next_block(chain, "payload", 0)
    chain.add_blocks([block])
    assert len(sender.calls) == 1
    url, payload, timeout = sender.calls[0]
    assert url == "http://peer/block/add"
    assert timeout == 3
    assert payload["metadata"] == {"caller_address": "localhost:8080"}
    assert payload["block"]["index"] == 2
    assert payload["block"]["data"] == "payload"


def test_block_ahead_replaces_last_block_then_appends():
    chain, _ = make_chain(0)
    block = next_block(chain, "late", 0)
    block.index = 5
    chain.add_blocks([block])
    assert [b.index for b in chain.get_chain()] == [5, 2]
    assert block.index == 5


def test_get_blocks():
    chain, _ = make_chain(0)
    chain.add_blocks([next_block(chain, "b", 0)])
    assert [b.index for b in chain.get_blocks(1)] == [1]
    with pytest.raises(ChainTooShortError):
        chain.get_blocks(3)