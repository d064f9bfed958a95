import time

import pytest

from gossipchain.block import hash_meets_complexity, hash_transactions, merkle_root_from_hashes
from gossipchain.blockchain import BlockChain
from gossipchain.config import Config
from gossipchain.mempool import MemPool
from gossipchain.miner import Miner
from gossipchain.node import NodeRegistry
from gossipchain.storage import InMemoryChain, InMemoryMemPool, InMemoryNodeStore
from gossipchain.transaction import MiningState, Transaction


def _sender(url, payload, timeout):
    return ""


def _build(max_txn=2):
    config = Config(
        complexity=1, max_transactions_per_block=max_txn, host="localhost", port=9000
    )
    nodes = NodeRegistry(InMemoryNodeStore(), config, sender=_sender)
    chain = BlockChain.create(InMemoryChain(), config, nodes)
    storage = InMemoryMemPool(max_txn)
    pool = MemPool(storage)
    return config, chain, storage, pool


def _wait_for(predicate, timeout=10.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return predicate()


def _txns(count):
    return [Transaction.new(10 + i, "bob", "alice", i + 1) for i in range(count)]


def test_mine_once_adds_block_and_marks_transactions():
    config, chain, storage, pool = _build()
    txns = _txns(2)
    for txn in txns:
        pool.save(txn)
    miner = Miner(pool, chain, config)
    block = miner.mine_once()
    assert block is not None
    blocks = chain.get_chain()
    assert len(blocks) == 2
    assert blocks[1].previous_hash == blocks[0].hash
    assert blocks[1].index == 2
    assert hash_meets_complexity(blocks[1].hash, 1)
    assert {t.id for t in blocks[1].data} == {t.id for t in txns}
    assert block.merkle_root == merkle_root_from_hashes(hash_transactions(block.data))
    assert all(t.mining_status == MiningState.MINING_DONE for t in storage.get_all())


def test_mine_once_without_full_batch_does_nothing():
    config, chain, storage, pool = _build(max_txn=3)
    for txn in _txns(2):
        pool.save(txn)
    miner = Miner(pool, chain, config)
    assert miner.mine_once() is None
    assert len(chain.get_chain()) == 1
    assert all(t.mining_status == MiningState.READY_FOR_MINING for t in storage.get_all())


def test_stopped_miner_leaves_transactions_unmined():
    config, chain, storage, pool = _build()
    for txn in _txns(2):
        pool.save(txn)
    miner = Miner(pool, chain, config)
    miner.stop()
    assert miner.mine_once() is None
    assert len(chain.get_chain()) == 1
    assert all(t.mining_status == MiningState.READY_FOR_MINING for t in storage.get_all())


def test_background_mining_on_saved_transactions():
    config, chain, storage, pool = _build()
    miner = Miner(pool, chain, config)
    txns = _txns(2)
    miner.start()
    try:
        for txn in txns:
            pool.save(txn)
        assert _wait_for(lambda: len(chain.get_chain()) == 2)
    finally:
        miner.stop()
    blocks = chain.get_chain()
    assert blocks[1].index == 2
    assert blocks[1].previous_hash == blocks[0].hash
    assert {t.id for t in blocks[1].data} == {t.id for t in txns}
    assert _wait_for(
        lambda: all(t.mining_status == MiningState.MINING_DONE for t in storage.get_all())
    )


def test_background_mining_on_removal_signal():
    config, chain, storage, pool = _build()
    for txn in _txns(2):
        storage.save(txn)
    miner = Miner(pool, chain, config)
    miner.start()
    try:
        pool.delete([])
        assert _wait_for(lambda: len(chain.get_chain()) == 2)
    finally:
        miner.stop()
    assert chain.get_chain()[1].previous_hash == chain.get_chain()[0].hash


def test_start_twice_is_rejected():
    config, chain, storage, pool = _build()
    miner = Miner(pool, chain, config)
    miner.start()
    try:
        with pytest.raises(RuntimeError):
            miner.start()
    finally:
        miner.stop()