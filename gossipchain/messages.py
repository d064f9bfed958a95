"""Wire formats of the node's HTTP requests and responses."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

from gossipchain.block import ZERO_TIME, Block
from gossipchain.transaction import Transaction

_INT64 = (-(2**63), 2**63 - 1)
_INT32 = (-(2**31), 2**31 - 1)

_TIMESTAMP = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?(Z|([+-])(\d{2}):(\d{2}))"
)


def format_timestamp(value: datetime) -> str:
    """RFC 3339 text with trailing zeros of the fraction dropped."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.isoformat()
    fraction = text[19:-6].rstrip("0").rstrip(".")
    zone = text[-6:]
    return text[:19] + fraction + ("Z" if zone == "+00:00" else zone)


def parse_timestamp(text: str) -> datetime:
    """Parse RFC 3339 text; fractions finer than a microsecond are truncated."""
    match = _TIMESTAMP.fullmatch(text) if isinstance(text, str) else None
    if match is None:
        raise ValueError(f"invalid timestamp {text!r}")
    *parts, fraction, zone, sign, hours, minutes = match.groups()
    tz = timezone.utc
    if zone != "Z":
        offset = timedelta(hours=int(hours), minutes=int(minutes))
        tz = timezone(-offset if sign == "-" else offset)
    micros = int((fraction or "")[:6].ljust(6, "0"))
    return datetime(*map(int, parts), micros, tzinfo=tz)


def _mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError(f"{what} must be a JSON object, got {data!r}")
    return data


def _field(data: Mapping[str, Any], key: str, kinds: Any, default: Any, bounds=None) -> Any:
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, kinds):
        raise ValueError(f"field {key!r} has the wrong type: {value!r}")
    if bounds and not bounds[0] <= value <= bounds[1]:
        raise ValueError(f"field {key!r} is out of range: {value}")
    return value


def _jsonable(value: Any) -> Any:
    """Turn package objects inside ``value`` into plain JSON values."""
    if isinstance(value, (BlockPayload, Transaction)):
        return value.to_dict()
    if isinstance(value, Block):
        payload = BlockPayload.from_block(value).to_dict()
        keys = ("Index", "Data", "MerkleRoot", "Hash", "PreviousHash", "Timestamp", "Nonce")
        return dict(zip(keys, payload.values()))
    if isinstance(value, datetime):
        return format_timestamp(value)
    if isinstance(value, Mapping):
        return {str(key): _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


@dataclass
class BlockPayload:
    """A block as exchanged between nodes."""

    index: int = 0
    data: Any = None
    merkle_root: str = ""
    hash: str = ""
    previous_hash: str = ""
    timestamp: datetime = field(default=ZERO_TIME)
    nonce: int = 0

    @classmethod
    def from_block(cls, block: Block) -> "BlockPayload":
        return cls(
            block.index, block.data, block.merkle_root, block.hash,
            block.previous_hash, block.timestamp, block.nonce,
        )

    def to_block(self) -> Block:
        return Block(
            index=self.index,
            data=self.data,
            merkle_root=self.merkle_root,
            hash=self.hash,
            previous_hash=self.previous_hash,
            timestamp=self.timestamp,
            nonce=self.nonce,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "data": _jsonable(self.data),
            "merkle_root": self.merkle_root,
            "hash": self.hash,
            "previous_hash": self.previous_hash,
            "timestamp": format_timestamp(self.timestamp),
            "nonce": self.nonce,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "BlockPayload":
        data = _mapping(data, "block")
        stamp = data.get("timestamp")
        return cls(
            index=_field(data, "index", int, 0, _INT64),
            data=data.get("data"),
            merkle_root=_field(data, "merkle_root", str, ""),
            hash=_field(data, "hash", str, ""),
            previous_hash=_field(data, "previous_hash", str, ""),
            timestamp=ZERO_TIME if stamp is None else parse_timestamp(stamp),
            nonce=_field(data, "nonce", int, 0, _INT32),
        )


@dataclass
class BlockRequest:
    """A block offered by a peer, with metadata such as the caller's address."""

    block: BlockPayload = field(default_factory=BlockPayload)
    metadata: dict[str, Any] | None = None

    def validate(self) -> None:
        if self.metadata is None:
            raise ValueError("block metadata is required")

    def to_core_block(self) -> Block:
        return self.block.to_block()

    def to_dict(self) -> dict[str, Any]:
        return {"block": self.block.to_dict(), "metadata": _jsonable(self.metadata)}

    @classmethod
    def from_dict(cls, data: Any) -> "BlockRequest":
        data = _mapping(data, "block request")
        raw_block, metadata = data.get("block"), data.get("metadata")
        block = BlockPayload() if raw_block is None else BlockPayload.from_dict(raw_block)
        if metadata is not None:
            metadata = dict(_mapping(metadata, "metadata"))
        return cls(block=block, metadata=metadata)


@dataclass
class AddNodeRequest:
    """Announcement of a node, with the nodes already told about it."""

    url: str = ""
    informed_nodes: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"url": self.url, "informed_nodes": list(self.informed_nodes)}

    @classmethod
    def from_dict(cls, data: Any) -> "AddNodeRequest":
        data = _mapping(data, "node request")
        nodes = _field(data, "informed_nodes", list, [])
        if not all(isinstance(node, str) for node in nodes):
            raise ValueError("field 'informed_nodes' must be a list of strings")
        return cls(url=_field(data, "url", str, ""), informed_nodes=list(nodes))


@dataclass
class TransactionRequest:
    """A transaction submitted by a client."""

    amount: float = 0.0
    receiver: str = ""
    sender: str = ""
    fee: float = 0.0

    @classmethod
    def from_dict(cls, data: Any) -> "TransactionRequest":
        data = _mapping(data, "transaction request")
        return cls(
            amount=float(_field(data, "amount", (int, float), 0.0)),
            receiver=_field(data, "receiver", str, ""),
            sender=_field(data, "sender", str, ""),
            fee=float(_field(data, "fee", (int, float), 0.0)),
        )


@dataclass
class Response:
    """Outcome of an API call."""

    success: bool
    error: str | None = None
    result: Any = None

    @classmethod
    def ok(cls, result: Any = None) -> "Response":
        return cls(success=True, result=result)

    @classmethod
    def fail(cls, error: str = "") -> "Response":
        return cls(success=False, error=error)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"success": self.success}
        if self.error is not None:
            body["error"] = self.error
        if self.result is not None:
            body["result"] = _jsonable(self.result)
        return body