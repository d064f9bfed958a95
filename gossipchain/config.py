"""Node configuration loaded from a YAML file."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import yaml

CONFIG_PATH_ENV = "CONFIG_PATH"

_FIELDS = {
    "complexity": ("complexity", int),
    "maxTransactionsPerBlock": ("max_transactions_per_block", int),
    "host": ("host", str),
    "port": ("port", int),
    "nodeDistributionTimeOut": ("node_distribution_timeout", int),
    "blockDistributionTimeout": ("block_distribution_timeout", int),
    "blockInquiryTimeOut": ("block_inquiry_timeout", int),
    "knownNodes": ("known_nodes", list),
}


@dataclass(frozen=True)
class Config:
    """Settings of one node; unset values keep their zero defaults."""

    complexity: int = 0
    max_transactions_per_block: int = 0
    host: str = ""
    port: int = 0
    node_distribution_timeout: int = 0
    block_distribution_timeout: int = 0
    block_inquiry_timeout: int = 0
    known_nodes: tuple[str, ...] = ()

    def node_address(self) -> str:
        """The address this node announces to its peers."""
        return f"{self.host}:{self.port}"


def load_config(path: str | os.PathLike[str]) -> Config:
    """Read a YAML configuration file; unknown keys are ignored."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError("configuration must be a YAML mapping")
    values = {}
    for key, (attr, kind) in _FIELDS.items():
        value = data.get(key)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, kind):
            raise ValueError(f"config key {key!r} has the wrong type: {value!r}")
        values[attr] = value
    if not -128 <= values.get("complexity", 0) <= 127:
        raise ValueError("config key 'complexity' is out of range")
    if "known_nodes" in values:
        if not all(isinstance(node, str) for node in values["known_nodes"]):
            raise ValueError("config key 'knownNodes' must hold strings")
        values["known_nodes"] = tuple(values["known_nodes"])
    return Config(**values)


def init_config(path: str | os.PathLike[str] | None = None) -> Config:
    """Load the configuration from ``path`` or from the CONFIG_PATH variable."""
    chosen = path or os.environ.get(CONFIG_PATH_ENV, "")
    if not chosen:
        raise ValueError(f"{CONFIG_PATH_ENV} is not set")
    return load_config(chosen)