"""Blocks, proof-of-work mining and Merkle roots."""

from __future__ import annotations

import hashlib
import math
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Iterable

from gossipchain.logger import get_logger
from gossipchain.transaction import Transaction

ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

_INT32_MAX = 2**31 - 1
_INT32_MIN = -(2**31)

_log = get_logger("gossipchain.block")


def _sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def _json_string(text: str) -> bytes:
    """Encode a string as a JSON literal with HTML-safe escaping."""
    parts = ['"']
    for ch in text:
        if ch == '"':
            parts.append('\\"')
        elif ch == "\\":
            parts.append("\\\\")
        elif ch == "\n":
            parts.append("\\n")
        elif ch == "\r":
            parts.append("\\r")
        elif ch == "\t":
            parts.append("\\t")
        elif ch < " " or ch in "<>&\u2028\u2029":
            parts.append(f"\\u{ord(ch):04x}")
        else:
            parts.append(ch)
    parts.append('"')
    return "".join(parts).encode("utf-8", errors="replace")


def _format_float(value: float) -> str:
    """Shortest decimal form of a float, never in exponent notation."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    return format(Decimal(repr(value)).normalize(), "f")


def hash_meets_complexity(hash_hex: str, complexity: int) -> bool:
    """True when the first three hex digits hold exactly ``complexity`` zeros."""
    return hash_hex[:3].count("0") == complexity


def calculate_hash(left: str, right: str) -> str:
    return _sha256_hex((left + right).encode("utf-8"))


def hash_transactions(transactions: Iterable[Transaction]) -> list[str]:
    """Hash each transaction from its id, parties, amount and fee."""
    return [
        _sha256_hex(
            _json_string(
                txn.id
                + txn.receiver
                + txn.sender
                + _format_float(txn.amount)
                + _format_float(txn.fee)
            )
        )
        for txn in transactions
    ]


def merkle_root_from_hashes(hashes: list[str]) -> str:
    """Fold hashes pairwise, duplicating the last one of an odd level."""
    level = list(hashes)
    if not level:
        return ""
    while len(level) > 1:
        if len(level) % 2:
            level.append(level[-1])
        pairs = zip(level[0::2], level[1::2])
        level = [calculate_hash(left, right) for left, right in pairs]
    return level[0]


def _next_int32(value: int) -> int:
    return _INT32_MIN if value >= _INT32_MAX else value + 1


@dataclass
class Block:
    index: int = 0
    data: Any = None
    merkle_root: str = ""
    hash: str = ""
    previous_hash: str = ""
    timestamp: datetime = field(default=ZERO_TIME)
    nonce: int = 0

    def header_hash(self) -> str:
        """Hash of the Merkle root, previous hash and nonce."""
        text = (
            f"merkleRoot: {self.merkle_root}, previousHash: {self.previous_hash}, "
            f"nonce: {self.nonce} "
        )
        return _sha256_hex(text.encode("utf-8"))

    def mine(self, complexity: int, stop: threading.Event | None = None) -> bool:
        """Search for a nonce; return True if ``stop`` interrupted the search."""
        if not 0 <= complexity <= 3:
            raise ValueError(f"complexity must be between 0 and 3, got {complexity}")
        while True:
            if stop is not None and stop.is_set():
                _log.info("Mining is interrupted")
                return True
            self.nonce = _next_int32(self.nonce)
            digest = self.header_hash()
            if hash_meets_complexity(digest, complexity):
                self.hash = digest
                _log.info("Mining is complete")
                return False

    def calculate_merkle_root(self) -> None:
        """Set the Merkle root for string data or a list of transactions."""
        data = self.data
        if isinstance(data, str):
            self.merkle_root = _sha256_hex(_json_string(data))
        elif isinstance(data, list) and all(isinstance(t, Transaction) for t in data):
            self.merkle_root = merkle_root_from_hashes(hash_transactions(data))