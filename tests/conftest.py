"""Shared fixtures: a throwaway HTTP server that records what it receives."""

import socket
import threading
import time
from dataclasses import dataclass, field
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Dict, List, Tuple

import pytest


@dataclass
class RecordedRequest:
    method: str
    path: str
    headers: object
    body: bytes


@dataclass
class Route:
    status: int
    body: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)
    delay: float = 0.0
    stall: float = 0.0


class AssetServer:
    """Serves canned responses keyed by ``(method, path)``."""

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], Route] = {}
        self.requests: List[RecordedRequest] = []
        self._httpd = ThreadingHTTPServer(("127.0.0.1", 0), self._handler_class())
        self._thread = threading.Thread(target=self._httpd.serve_forever, daemon=True)

    def _handler_class(self):
        server = self

        class Handler(BaseHTTPRequestHandler):
            def _handle(self) -> None:
                length = int(self.headers.get("Content-Length") or 0)
                body = self.rfile.read(length) if length else b""
                server.requests.append(RecordedRequest(self.command, self.path, self.headers, body))
                route = server.routes.get((self.command, self.path), Route(404, b"not found"))
                time.sleep(route.delay)
                try:
                    self._respond(route)
                except (BrokenPipeError, ConnectionResetError):
                    pass

            def _respond(self, route: Route) -> None:
                self.send_response(route.status)
                for key, value in route.headers.items():
                    self.send_header(key, value)
                if route.status != 204:
                    self.send_header("Content-Length", str(len(route.body)))
                self.end_headers()
                if not route.body or route.status == 204:
                    return
                if route.stall:
                    half = len(route.body) // 2
                    self.wfile.write(route.body[:half])
                    time.sleep(route.stall)
                    self.wfile.write(route.body[half:])
                else:
                    self.wfile.write(route.body)

            do_GET = _handle
            do_PUT = _handle

            def log_message(self, format, *args):  # noqa: A002
                pass

        return Handler

    def add(
        self,
        method: str,
        path: str,
        status: int,
        body: bytes = b"",
        *,
        delay: float = 0.0,
        stall: float = 0.0,
        **headers: str,
    ) -> str:
        """Register a response; ``delay`` holds it back, ``stall`` pauses halfway through the body."""
        self.routes[(method, path)] = Route(
            status, body, {k.replace("_", "-"): v for k, v in headers.items()}, delay, stall
        )
        return self.url(path)

    def url(self, path: str) -> str:
        host, port = self._httpd.server_address[:2]
        return f"http://{host}:{port}{path}"

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._httpd.shutdown()
        self._httpd.server_close()


@pytest.fixture
def asset_server():
    server = AssetServer()
    server.start()
    yield server
    server.stop()


@pytest.fixture
def closed_port_url():
    """URL pointing at a local port nothing listens on."""
    sock = socket.socket()
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return f"http://127.0.0.1:{port}/missing.png"
