"""
=============================================================================
PASSWORD CLIENT
=============================================================================

Interactive client: connect, show the server's menu, forward what the user
types, print what comes back.

    ┌─────────────────────────────────────────────────────────────────────┐
    │  connect()  ──►  ClientSession.run()  ──►  close                     │
    │                    │                                                 │
    │                    ├── receive Menu                                  │
    │                    └── prompt / send / receive, until quit          │
    └─────────────────────────────────────────────────────────────────────┘

The client does not check lengths or selectors itself: whatever the user
types goes to the server, which owns the rules. The only local decisions
are re-prompting on malformed input and filling in the default length.

Any transport problem, including failing to connect, is a SessionFault
and ends the client.

=============================================================================
"""

import logging
import socket
from typing import Callable, Optional

from .config import ProtocolConfig
from .core.connection import Connection
from .errors import SessionFault
from .protocol.codec import RecordCodec
from .session import ClientSession


logger = logging.getLogger(__name__)


class PasswordClient:
    """
    Client for the password server.

    Usage:
        client = PasswordClient(ProtocolConfig(host="127.0.0.1", port=8080))
        client.run()   # Interactive, reads from stdin
    """

    def __init__(
        self,
        config: Optional[ProtocolConfig] = None,
        prompt: Callable[[str], str] = input,
        echo: Callable[[str], None] = print,
    ):
        self.config = config or ProtocolConfig()
        self.config.validate()

        self.codec = RecordCodec(self.config)
        self.prompt = prompt
        self.echo = echo

    def connect(self) -> Connection:
        """
        Open a TCP connection to the configured server.

        Raises:
            SessionFault: The connection could not be established.
        """
        address = (self.config.host, self.config.port)
        try:
            sock = socket.create_connection(address, timeout=self.config.timeout)
        except OSError as e:
            raise SessionFault(f"Connection to {address[0]}:{address[1]} failed: {e}", stage="connect") from e

        conn = Connection(socket=sock, address=address, timeout=self.config.timeout)
        logger.debug(f"[{conn.id}] Connected to {conn.peer}")
        return conn

    def run(self) -> int:
        """
        Connect and run one interactive session.

        Returns:
            Number of passwords received.
        """
        with self.connect() as conn:
            self.echo("Connection completed\n")
            return self.run_session(conn)

    def run_session(self, conn: Connection) -> int:
        """Run the client-side protocol over an already open connection."""
        session = ClientSession(
            conn,
            self.codec,
            self.config,
            prompt=self.prompt,
            echo=self.echo,
        )
        return session.run()
