"""HTTP routing of the node's API and the server that exposes it."""

from __future__ import annotations

import json
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any
from urllib.parse import unquote, urlsplit

from gossipchain.controllers import (
    BlockController,
    ChainController,
    NodeController,
    TransactionController,
)
from gossipchain.logger import get_logger
from gossipchain.messages import Response

ALLOWED_METHODS = ("GET", "POST", "PUT", "DELETE", "OPTIONS")
ALLOWED_HEADERS = ("Content-Type", "Authorization")
NOT_FOUND_BODY = b"404 page not found\n"

_BLOCK_PREFIX = "/block/"

_log = get_logger("gossipchain.server")


def _encode(response: Response) -> bytes:
    return json.dumps(
        response.to_dict(), separators=(",", ":"), ensure_ascii=False
    ).encode("utf-8")


class Api:
    """Routes API paths to the controllers and encodes their responses."""

    def __init__(
        self,
        transactions: TransactionController,
        chain: ChainController,
        nodes: NodeController,
        blocks: BlockController,
    ) -> None:
        self._transactions = transactions
        self._chain = chain
        self._nodes = nodes
        self._blocks = blocks

    def dispatch(self, method: str, path: str, body: bytes | str = b"") -> tuple[int, bytes]:
        """Handle one request; return the HTTP status and the response body.

        Routes accept any method. OPTIONS is answered as a CORS preflight
        with an empty body; unknown paths give 404.
        """
        if method.upper() == "OPTIONS":
            return 200, b""
        route = unquote(urlsplit(path).path)
        response = self._route(route, body)
        if response is None:
            return 404, NOT_FOUND_BODY
        return 200, _encode(response)

    def _route(self, route: str, body: bytes | str) -> Response | None:
        if route == "/chain":
            return self._chain.get_chain()
        if route == "/transaction":
            return self._transactions.add_transaction(body)
        if route == "/node/add":
            return self._nodes.add_node(body)
        if route == "/node/get":
            return self._nodes.get_nodes()
        if route == "/block/add":
            return self._blocks.add_block(body)
        if route.startswith(_BLOCK_PREFIX):
            count_text = route[len(_BLOCK_PREFIX):]
            if count_text and "/" not in count_text:
                return self._blocks.get_blocks(count_text)
        return None


class _ApiServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self, address: tuple[str, int], api: Api) -> None:
        self.api = api
        super().__init__(address, _Handler)


class _Handler(BaseHTTPRequestHandler):
    server: _ApiServer

    def _handle(self) -> None:
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length) if length > 0 else b""
        status, payload = self.server.api.dispatch(self.command, self.path, body)
        self.send_response(status)
        self.send_header("Access-Control-Allow-Origin", "*")
        if self.command == "OPTIONS":
            self.send_header("Access-Control-Allow-Methods", ", ".join(ALLOWED_METHODS))
            self.send_header("Access-Control-Allow-Headers", ", ".join(ALLOWED_HEADERS))
        if payload:
            content_type = (
                "application/json" if status == 200 else "text/plain; charset=utf-8"
            )
            self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(payload)

    do_GET = _handle
    do_POST = _handle
    do_PUT = _handle
    do_DELETE = _handle
    do_PATCH = _handle
    do_HEAD = _handle
    do_OPTIONS = _handle

    def log_message(self, format: str, *args: Any) -> None:
        _log.debug(format, *args)


def make_server(api: Api, port: int = 0) -> ThreadingHTTPServer:
    """Bind an HTTP server for ``api`` on every interface at ``port``."""
    return _ApiServer(("", port), api)


def serve(api: Api, port: int) -> None:
    """Serve ``api`` on ``port`` until interrupted."""
    with make_server(api, port) as server:
        _log.info("Listening on port %s", server.server_address[1])
        server.serve_forever()