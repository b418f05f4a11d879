"""Pytest configuration - loads .env for live tests and provides a local fake Voyager server."""

import json
import threading
import time
from dataclasses import dataclass, field
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any

import pytest
from dotenv import load_dotenv

from li_cli.core.client import APIClient
from li_cli.core.config import ClientConfig
from li_cli.core.credentials import Credentials
from li_cli.sdk import LinkedInClient

# Load .env from project root
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path)

FIXTURES = Path(__file__).parent / "fixtures"

TEST_CREDENTIALS = Credentials(li_at="liat", jsessionid="ajax:123")


def load_fixture(name: str) -> dict[str, Any]:
    """Load a JSON fixture from tests/fixtures."""
    return json.loads((FIXTURES / name).read_text(encoding="utf-8"))


# =============================================================================
# Fake Voyager server
# =============================================================================


@dataclass
class RecordedRequest:
    """A request as the server saw it."""

    method: str
    path: str
    headers: Any
    body: bytes

    def json(self) -> Any:
        return json.loads(self.body.decode("utf-8"))


@dataclass
class CannedResponse:
    status: int = 200
    body: bytes = b"{}"
    content_type: str = "application/json"
    delay: float = 0.0
    trickle: float = 0.0


class _Handler(BaseHTTPRequestHandler):
    def do_GET(self) -> None:
        self._handle()

    def do_POST(self) -> None:
        self._handle()

    def _handle(self) -> None:
        length = int(self.headers.get("content-length") or 0)
        body = self.rfile.read(length) if length else b""
        self.server.requests.append(RecordedRequest(self.command, self.path, self.headers, body))

        responses = self.server.responses
        canned = responses.pop(0) if responses else CannedResponse()
        if canned.delay:
            time.sleep(canned.delay)

        self.send_response(canned.status)
        self.send_header("content-type", canned.content_type)
        self.send_header("content-length", str(len(canned.body)))
        self.end_headers()
        if not canned.trickle:
            self.wfile.write(canned.body)
            return

        # One byte at a time, flushed, with a pause between bytes
        try:
            for i in range(len(canned.body)):
                self.wfile.write(canned.body[i : i + 1])
                self.wfile.flush()
                time.sleep(canned.trickle)
        except (BrokenPipeError, ConnectionResetError):
            return

    def log_message(self, format: str, *args: Any) -> None:
        pass


@dataclass
class FakeVoyager:
    """Handle on the running fake server."""

    server: ThreadingHTTPServer
    requests: list[RecordedRequest] = field(default_factory=list)

    @property
    def base_url(self) -> str:
        host, port = self.server.server_address[:2]
        return f"http://{host}:{port}/voyager/api"

    def respond(
        self,
        body: Any = None,
        status: int = 200,
        content_type: str = "application/json",
        delay: float = 0.0,
        trickle: float = 0.0,
    ) -> None:
        """
        Queue the next response. Dicts/lists are JSON-encoded, None means an empty body.

        delay pauses before the status line; trickle pauses after each body byte.
        """
        if body is None:
            raw = b""
        elif isinstance(body, bytes):
            raw = body
        elif isinstance(body, str):
            raw = body.encode("utf-8")
        else:
            raw = json.dumps(body).encode("utf-8")
        self.server.responses.append(CannedResponse(status, raw, content_type, delay, trickle))

    @property
    def last(self) -> RecordedRequest:
        return self.requests[-1]


@pytest.fixture
def voyager():
    """A local HTTP server standing in for the Voyager API."""
    server = ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
    server.daemon_threads = True
    server.requests = []
    server.responses = []
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    fake = FakeVoyager(server=server, requests=server.requests)
    yield fake

    server.shutdown()
    server.server_close()


@pytest.fixture
def config(voyager) -> ClientConfig:
    return ClientConfig(base_url=voyager.base_url, timeout=5)


@pytest.fixture
def api_client(config) -> APIClient:
    return APIClient(credentials=TEST_CREDENTIALS, config=config)


@pytest.fixture
def li(config) -> LinkedInClient:
    return LinkedInClient(credentials=TEST_CREDENTIALS, config=config)


@pytest.fixture
def load_json():
    """Loader for JSON documents under tests/fixtures."""
    return load_fixture
