import hashlib
import threading

import pytest

from gossipchain.block import (
    ZERO_TIME,
    Block,
    calculate_hash,
    hash_meets_complexity,
    hash_transactions,
    merkle_root_from_hashes,
)
from gossipchain.transaction import Transaction


def test_complexity():
    block = Block(data="Hello World")
    block.previous_hash = "000ae3b121e4b73ea0aaef435a8c439740a6cd18406605f0cc132d68d8ae947b"
    interrupted = block.mine(3, threading.Event())
    assert interrupted is False
    assert block.hash[:3] == "000"


def test_mined_hash_matches_header_hash():
    block = Block(data="x", previous_hash="abc")
    block.calculate_merkle_root()
    block.mine(1)
    assert block.hash == block.header_hash()
    assert hash_meets_complexity(block.hash, 1)


def test_mine_stops_when_signalled():
    block = Block(data="x")
    stop = threading.Event()
    stop.set()
    assert block.mine(3, stop) is True
    assert block.hash == ""
    assert block.nonce == 0


def test_mine_rejects_impossible_complexity():
    with pytest.raises(ValueError):
        Block().mine(4)


def test_header_hash_depends_on_nonce():
    block = Block(merkle_root="m", previous_hash="p")
    first = block.header_hash()
    block.nonce += 1
    assert block.header_hash() != first


@pytest.mark.parametrize(
    "digest, complexity, expected",
    [
        ("000abc", 3, True),
        ("0a0bcd", 2, True),
        ("0a0bcd", 1, False),
        ("abc000", 0, True),
    ],
)
def test_hash_meets_complexity(digest, complexity, expected):
    assert hash_meets_complexity(digest, complexity) is expected


def test_string_merkle_root_hashes_json_literal():
    block = Block(data="Genesis Block")
    block.calculate_merkle_root()
    assert block.merkle_root == hashlib.sha256(b'"Genesis Block"').hexdigest()


def test_string_merkle_root_escapes_html():
    block = Block(data="a<b")
    block.calculate_merkle_root()
    assert block.merkle_root == hashlib.sha256(b'"a\\u003cb"').hexdigest()


def test_transaction_hash_uses_plain_number_format():
    txn = Transaction(id="id", amount=300, receiver="r", sender="s", fee=5)
    assert hash_transactions([txn]) == [hashlib.sha256(b'"idrs3005"').hexdigest()]


def test_merkle_root_of_transactions():
    txns = [
        Transaction(id="504e914d-0b23-4091-a8d4-ba047cc67cc9", amount=300, fee=5),
        Transaction(id="38dc2294-f940-47e9-bec5-2c316d1ffa2a", amount=300, fee=5),
    ]
    block = Block(data=txns)
    block.calculate_merkle_root()
    hashes = hash_transactions(txns)
    assert block.merkle_root == calculate_hash(hashes[0], hashes[1])


def test_merkle_root_of_empty_transaction_list_is_empty():
    block = Block(data=[], merkle_root="old")
    block.calculate_merkle_root()
    assert block.merkle_root == ""


def test_other_data_leaves_merkle_root_untouched():
    block = Block(data=[{"a": 1}], merkle_root="old")
    block.calculate_merkle_root()
    assert block.merkle_root == "old"


def test_merkle_root_edge_levels():
    assert merkle_root_from_hashes([]) == ""
    assert merkle_root_from_hashes(["a"]) == "a"
    assert merkle_root_from_hashes(["a", "b"]) == calculate_hash("a", "b")


def test_merkle_root_duplicates_odd_hash():
    expected = calculate_hash(calculate_hash("a", "b"), calculate_hash("c", "c"))
    assert merkle_root_from_hashes(["a", "b", "c"]) == expected


def test_default_block_has_zero_values():
    block = Block()
    assert (block.index, block.hash, block.nonce, block.timestamp) == (0, "", 0, ZERO_TIME)