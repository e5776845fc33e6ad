"""
=============================================================================
LOW-LEVEL TCP SOCKET SERVER
=============================================================================

This module owns the listening socket: it binds, listens, accepts, and
hands each accepted client to a callback as a Connection.

SOCKET LIFECYCLE (Server Side):
────────────────────────────────

    1. socket()    Create the listening socket
    2. bind()      Reserve host:port (default 127.0.0.1:8080)
    3. listen()    Let the OS queue up to `backlog` pending clients (5)
    4. accept()    Take the next client, get a NEW socket just for it
    5. close()     Release the listening socket on shutdown

                    ┌───────────────────────┐
                    │   Listening Socket    │ ◄── Created once at startup,
                    │                       │     held for process lifetime
                    └───────────┬───────────┘
                                │ accept()
                                ▼
                    ┌───────────────────────┐
                    │   Connection          │ ◄── One session, then closed;
                    │   (client socket)     │     back to accept()
                    └───────────────────────┘

The callback runs on the accept thread, so sessions are served one after
another, like the original design. A slow client delays the next one;
the OS backlog holds the queue meanwhile.

=============================================================================
SIGNAL HANDLING FOR GRACEFUL SHUTDOWN
=============================================================================

SIGINT (Ctrl+C) and SIGTERM stop the accept loop and close the listening
socket. Python only allows installing handlers from the main thread, so
when the server runs in a background thread (tests) signals are left
alone and shutdown() is called directly.

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ProtocolConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Low-level TCP socket server.

    Usage:
        def handle_connection(conn: Connection):
            with conn:
                ...

        server = SocketServer(config)
        server.start(handle_connection)  # Blocks until shutdown()
    """

    ACCEPT_POLL_INTERVAL = 1.0

    def __init__(self, config: ProtocolConfig):
        """
        Initialize the socket server.

        The socket is NOT created here, only in start().
        """
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._running = False

        # Set once listen() succeeded; cleared on cleanup.
        self._listening_event = threading.Event()
        self._shutdown_event = threading.Event()

        self._original_handlers: dict = {}

        # Session being served on the accept thread, aborted by shutdown()
        self._active_connection: Optional[Connection] = None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """
        The address actually bound, falling back to the configured one.

        With port=0 the OS picks a free port, and only getsockname() knows it.
        """
        if self._socket is not None:
            try:
                host, port = self._socket.getsockname()[:2]
                return (host, port)
            except OSError:
                pass
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        """
        Create and configure the listening socket.

        SO_REUSEADDR: rebind immediately after a restart instead of waiting
        out TIME_WAIT.

        TCP_NODELAY: records are small; send them now rather than letting
        Nagle's algorithm batch them.

        The 1 second timeout makes accept() return periodically so the loop
        can notice shutdown().
        """
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        sock.settimeout(self.ACCEPT_POLL_INTERVAL)
        return sock

    def _setup_signals(self):
        """Install SIGTERM/SIGINT handlers (main thread only)."""
        if threading.current_thread() is not threading.main_thread():
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Bind, listen and run the accept loop.

        This method BLOCKS until shutdown() is called.

        Args:
            connection_handler: Called with each accepted Connection. It owns
                                the connection and must close it.

        Raises:
            OSError: bind() or listen() failed. The socket is closed first.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
            self._socket.listen(self.config.backlog)
        except OSError as e:
            logger.error(f"Failed to listen on {self.config.host}:{self.config.port}: {e}")
            self._cleanup()
            raise

        self._running = True
        self._shutdown_event.clear()
        self._setup_signals()

        host, port = self.address
        logger.info(f"Server listening on {host}:{port}")
        self._listening_event.set()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        """
        Accept clients until shutdown.

            while self._running:
                accept()          (returns every second to re-check)
                Connection(...)
                connection_handler(conn)   (shutdown() aborts it)
        """
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                # Socket closed under us, usually shutdown in progress
                if self._running:
                    logger.error(f"Accept failed: {e}")
                break

            conn = Connection(
                socket=client_socket,
                address=client_address,
                timeout=self.config.timeout,
            )
            logger.info(f"[{conn.id}] New connection from {conn.peer}")

            self._active_connection = conn
            try:
                connection_handler(conn)
            finally:
                self._active_connection = None

    def shutdown(self):
        """
        Stop the accept loop. Safe to call from any thread, more than once.

        A session in progress is aborted: its connection is shut down in both
        directions, so a peer that has gone quiet cannot hold the accept
        thread (and a SIGINT/SIGTERM) hostage in a blocking recv().
        """
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False

        active = self._active_connection
        if active is not None:
            logger.info(f"[{active.id}] Aborting session with {active.peer}")
            active.abort()

        self._shutdown_event.set()

    def _cleanup(self):
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self._running = False
        self._listening_event.clear()
        self._shutdown_event.set()
        logger.info("Socket server stopped")

    def wait_until_listening(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is listening. Returns False on timeout."""
        return self._listening_event.wait(timeout)

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        """Block until the server has stopped. Returns False on timeout."""
        return self._shutdown_event.wait(timeout)
