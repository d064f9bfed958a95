"""Registry of peer nodes and announcement of this node to the cluster."""

from __future__ import annotations

from typing import Any, Callable

from gossipchain.config import Config
from gossipchain.logger import get_logger
from gossipchain.messages import AddNodeRequest
from gossipchain.storage import InMemoryNodeStore
from gossipchain.transport import post_json

Sender = Callable[[str, Any, "float | None"], str]

_log = get_logger("gossipchain.node")


class NodeRegistry:
    """Known peers; the configured known nodes are registered on creation."""

    def __init__(
        self, database: InMemoryNodeStore, config: Config, sender: Sender = post_json
    ) -> None:
        self._database = database
        self._config = config
        self.sender = sender
        for url in config.known_nodes:
            database.save(url)

    def save_node(self, url: str) -> None:
        """Register ``url`` unless it is already known."""
        if url not in self._database.get_all():
            self._database.save(url)

    def get_nodes(self) -> list[str]:
        return self._database.get_all()

    def remove_node(self, url: str) -> None:
        self._database.delete(url)

    def announce(self) -> dict[str, str | None]:
        """Tell every configured known node that this node exists.

        Returns each node's response body, or None where the request failed.
        """
        my_address = self._config.node_address()
        payload = AddNodeRequest(my_address, self.get_nodes() + [my_address]).to_dict()
        results: dict[str, str | None] = {}
        for node in self._config.known_nodes:
            data, error = None, None
            try:
                data = self.sender(
                    node + "/node/add", payload, self._config.node_distribution_timeout
                )
            except (OSError, ValueError) as err:
                error = err
            results[node] = data
            _log.info("Request to: %s, Response: %s, Error: %s", node, data or "", error)
        return results