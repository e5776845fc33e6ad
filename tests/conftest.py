"""
pytest configuration and fixtures.
"""

import socket
import threading
from typing import Callable, Generator, Tuple
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from passgen import PasswordServer, ProtocolConfig
from passgen.core import Connection
from passgen.protocol import RecordCodec


@pytest.fixture
def config() -> ProtocolConfig:
    """Default protocol configuration."""
    return ProtocolConfig(host="127.0.0.1", log_level="WARNING")


@pytest.fixture
def codec(config: ProtocolConfig) -> RecordCodec:
    return RecordCodec(config)


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


@pytest.fixture
def connection_pair() -> Generator[Tuple[Connection, Connection], None, None]:
    """
    Two connected Connections over socket.socketpair().

    The first plays the server, the second the client.
    """
    server_sock, client_sock = socket.socketpair()
    server_conn = Connection(socket=server_sock, address=("server", 0))
    client_conn = Connection(socket=client_sock, address=("client", 0))

    yield server_conn, client_conn

    client_conn.close()
    server_conn.close()


class BackgroundCall:
    """Runs a callable in a daemon thread and keeps its result or exception."""

    def __init__(self, target: Callable):
        self.result = None
        self.error = None
        self._thread = threading.Thread(target=self._run, args=(target,), daemon=True)
        self._thread.start()

    def _run(self, target: Callable):
        try:
            self.result = target()
        except Exception as e:
            self.error = e

    def join(self, timeout: float = 5.0):
        self._thread.join(timeout)
        assert not self._thread.is_alive(), "background call did not finish"
        return self


@pytest.fixture
def in_background() -> Callable[[Callable], BackgroundCall]:
    """Start a callable on a background thread: in_background(session.run)."""
    return BackgroundCall


class TestServer:
    """Test server helper that runs in a background thread."""

    def __init__(self, server: PasswordServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        """Start server in background thread and wait until it listens."""
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_listening(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server."""
        self.server.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


@pytest.fixture
def test_server(free_port: int) -> Generator[TestServer, None, None]:
    """Create a running password server on a free port."""
    server = PasswordServer(ProtocolConfig(
        host="127.0.0.1",
        port=free_port,
        log_level="WARNING",
    ))

    test_srv = TestServer(server)
    test_srv.start()

    yield test_srv

    test_srv.stop()
