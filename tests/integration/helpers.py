"""Node stand-ins and polling helpers for the integration tests.

Each script is run as ``python -u -c SCRIPT [run args...]``.
"""

import socket
import time
from collections.abc import Callable
from pathlib import Path
from typing import cast

import anyio
import pytest

ECHO_NODE = """
import os, sys, time
print("FOO=" + os.environ.get("FOO", ""))
print("BAR=" + os.environ.get("BAR", ""))
print("ARGS=" + " ".join(sys.argv[1:]))
print("CWD=" + os.getcwd())
print("to stderr", file=sys.stderr)
print("ready")
while True:
    time.sleep(0.1)
"""

STUBBORN_NODE = """
import signal, time
signal.signal(signal.SIGTERM, signal.SIG_IGN)
print("ready")
while True:
    time.sleep(0.1)
"""

SHORT_LIVED_NODE = """
print("bye")
"""

RPC_NODE = """
import json, sys
from http.server import BaseHTTPRequestHandler, HTTPServer

class Handler(BaseHTTPRequestHandler):
    def do_POST(self):
        length = int(self.headers["Content-Length"])
        request = json.loads(self.rfile.read(length))
        if request["method"] == "missing":
            reply = {"jsonrpc": "2.0", "error": {"code": -32601, "message": "Method not found"}, "id": request["id"]}
        elif request["method"] == "garbage":
            reply = None
        else:
            reply = {"jsonrpc": "2.0", "result": {"echo": request}, "id": request["id"]}
        body = b"not json" if reply is None else json.dumps(reply).encode()
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, *args):
        pass

server = HTTPServer(("127.0.0.1", int(sys.argv[1])), Handler)
print("listening")
server.serve_forever()
"""


def find_open_port() -> int:
    """Find an available port by binding to port 0."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        addr = cast("tuple[str, int]", s.getsockname())
        return addr[1]


def log_contains(path: Path, text: str) -> Callable[[], bool]:
    """Return a predicate that is true once path contains text."""

    def _check() -> bool:
        return path.exists() and text in path.read_text(errors="replace")

    return _check


async def wait_until(predicate: Callable[[], bool], timeout: float = 10.0) -> None:
    """Poll predicate on the event loop; fail the test after timeout."""
    with anyio.move_on_after(timeout):
        while not predicate():
            await anyio.sleep(0.05)
        return
    pytest.fail(f"Condition not met within {timeout}s")


def wait_until_blocking(predicate: Callable[[], bool], timeout: float = 10.0) -> None:
    """Poll predicate from a plain thread; fail the test after timeout."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return
        time.sleep(0.05)
    pytest.fail(f"Condition not met within {timeout}s")
