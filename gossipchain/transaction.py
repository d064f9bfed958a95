"""Transactions and their mining states."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Mapping


class MiningState(IntEnum):
    READY_FOR_MINING = 0
    MINING_DONE = 1
    READY_FOR_VALIDATION = 2


@dataclass
class Transaction:
    """A transfer of ``amount`` from ``sender`` to ``receiver``."""

    id: str = ""
    amount: float = 0.0
    receiver: str = ""
    sender: str = ""
    fee: float = 0.0
    size: int = 0
    mining_status: MiningState = MiningState.READY_FOR_MINING

    @classmethod
    def new(cls, amount: float, receiver: str, sender: str, fee: float) -> "Transaction":
        """Create a transaction with a freshly generated id."""
        return cls(
            id=str(uuid.uuid4()),
            amount=float(amount),
            receiver=receiver,
            sender=sender,
            fee=float(fee),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "amount": self.amount,
            "receiver": self.receiver,
            "sender": self.sender,
            "fee": self.fee,
            "size": self.size,
            "miningStatus": int(self.mining_status),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Transaction":
        if not isinstance(data, Mapping):
            raise ValueError("transaction must be a JSON object")
        return cls(
            id=str(data.get("id", "")),
            amount=float(data.get("amount", 0)),
            receiver=str(data.get("receiver", "")),
            sender=str(data.get("sender", "")),
            fee=float(data.get("fee", 0)),
            size=int(data.get("size", 0)),
            mining_status=MiningState(int(data.get("miningStatus", 0))),
        )