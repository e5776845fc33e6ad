"""
=============================================================================
PASSWORD SERVER
=============================================================================

Ties the pieces together into the runnable server.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    PASSWORD SERVER ARCHITECTURE                     │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │                     ┌──────────────────┐                             │
    │                     │  PasswordServer  │                             │
    │                     └────────┬─────────┘                             │
    │              ┌───────────────┼────────────────┐                      │
    │              ▼               ▼                ▼                      │
    │      ┌──────────────┐ ┌─────────────┐ ┌──────────────┐               │
    │      │ SocketServer │ │ RecordCodec │ │ProtocolConfig│               │
    │      └──────┬───────┘ └─────────────┘ └──────────────┘               │
    │             │ accept()                                               │
    │             ▼                                                        │
    │      ┌──────────────┐     ┌─────────────────────────────┐            │
    │      │  Connection  │────►│ ServerSession               │            │
    │      └──────────────┘     │  validator → engine → codec │            │
    │                           └─────────────────────────────┘            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
FAULT ISOLATION
=============================================================================

A SessionFault ends THAT session only. It is logged, the connection is
closed, and the accept loop goes back to waiting for the next client. Only
failing to bind/listen stops the server.

=============================================================================
"""

import logging
import random
from typing import Optional, Tuple

from .config import ProtocolConfig
from .core import SocketServer, Connection
from .errors import SessionFault
from .exchange_log import ExchangeLogger
from .protocol.codec import RecordCodec
from .session import ServerSession


logger = logging.getLogger(__name__)


def setup_logging(log_level: str) -> None:
    """Configure root logging for the CLI entry points."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("passgen").setLevel(level)


class PasswordServer:
    """
    Sequential password generation server.

    Usage:
        server = PasswordServer(ProtocolConfig(port=8080))
        server.run()  # Blocks until Ctrl+C / SIGTERM
    """

    def __init__(
        self,
        config: Optional[ProtocolConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Args:
            config: Protocol configuration. Defaults if not provided.
            rng: Random source for the engine; None means the system CSPRNG.
        """
        self.config = config or ProtocolConfig()
        self.config.validate()  # Fail-fast on invalid config

        self.rng = rng
        self.codec = RecordCodec(self.config)
        self.exchange_logger = ExchangeLogger(self.config.log_format)

        self._socket_server = SocketServer(self.config)

        self.sessions_completed = 0
        self.sessions_faulted = 0

    @property
    def address(self) -> Tuple[str, int]:
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._socket_server.is_running

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def run(self, host: Optional[str] = None, port: Optional[int] = None):
        """
        Start the server (blocking).

        Args:
            host: Override config host.
            port: Override config port.

        Raises:
            OSError: The listening socket could not be set up.
        """
        if host is not None or port is not None:
            # Copy, so the caller's ProtocolConfig is left as it was
            self.config = self.config.with_overrides(host=host, port=port)
            self.config.validate()
            self._socket_server.config = self.config

        logger.info(f"Starting password server on {self.config.host}:{self.config.port}")
        logger.info(
            f"Accepting lengths {self.config.min_length}-{self.config.max_length}, "
            f"record sizes menu={self.codec.menu_size} request={self.codec.request_size} "
            f"response={self.codec.response_size}"
        )

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            logger.info(
                f"Server stopped ({self.sessions_completed} sessions completed, "
                f"{self.sessions_faulted} faulted)"
            )

    def shutdown(self):
        """Stop accepting clients. The session in progress, if any, finishes."""
        self._socket_server.shutdown()

    def wait_until_listening(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_listening(timeout)

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_for_shutdown(timeout)

    # =========================================================================
    # SESSION HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """
        Serve one client from menu to close.

        Runs on the accept thread. Nothing raised here may escape, or a
        single bad client would take the whole server down.
        """
        with conn:  # Context manager ensures the socket is released
            session = ServerSession(
                conn,
                self.codec,
                self.config,
                rng=self.rng,
                exchange_logger=self.exchange_logger,
            )
            try:
                answered = session.run()
            except SessionFault as e:
                self.sessions_faulted += 1
                if self.is_running:
                    logger.error(f"[{conn.id}] Session aborted: {e}")
                else:
                    logger.info(f"[{conn.id}] Session ended by shutdown: {e}")
                return
            except Exception as e:
                self.sessions_faulted += 1
                logger.exception(f"[{conn.id}] Session error: {e}")
                return

        self.sessions_completed += 1
        logger.info(
            f"[{conn.id}] Connection with {conn.peer} closed after {answered} requests "
            f"({session.passwords_generated} passwords) in {conn.age:.2f}s"
        )
