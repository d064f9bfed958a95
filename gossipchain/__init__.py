"""A proof-of-work blockchain node with in-memory storage, an HTTP API and gossip-based peer discovery."""

__version__ = "0.1.0"