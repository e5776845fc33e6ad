"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

This module wraps a connected socket with the one operation the password
protocol needs: move EXACTLY one fixed-size record in each direction.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

TCP does NOT preserve message boundaries. A 1025-byte request record sent
with one send() may show up as:

        recv() → 1025 bytes            (all at once)
        recv() → 512, recv() → 513     (split)

So "read one record" means: keep calling recv() until we hold exactly
`size` bytes. That loop is ONE logical read. If the peer closes before the
record is complete, the record is lost and the session is over:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    read_record(size) outcomes                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   got `size` bytes             ──► return them                      │
    │   recv() returned b""          ──► SessionFault (peer closed)       │
    │   socket error / timeout       ──► SessionFault                     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

There is no retry and no reassembly across faults. Framing is entirely
"both sides know the size", so nothing is ever buffered between records.

=============================================================================
CONNECTION LIFECYCLE
=============================================================================

    NEW ──► READING ◄──► WRITING ──► CLOSING ──► CLOSED
               │            │
               └── fault ───┴──────► CLOSING ──► CLOSED

close() is idempotent and the class is a context manager, so every exit
path (normal end, fault, unexpected exception) releases the socket.

=============================================================================
"""

import socket
import time
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional, Tuple

from ..errors import SessionFault


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection lifecycle states, used for logging and close()."""
    NEW = "new"              # Just accepted or connected
    READING = "reading"      # Waiting for a record
    WRITING = "writing"      # Sending a record
    CLOSING = "closing"      # Shutdown sequence in progress
    CLOSED = "closed"        # Socket released


@dataclass
class Connection:
    """
    Represents one peer connection.

    Attributes:
        socket: The connected socket.
        address: Peer (host, port). For socketpair() connections in tests
                 this is whatever the caller passes.
        id: Short identifier used in log lines.
        state: Current ConnectionState.
        records_read / records_sent: Counters for the close log line.
    """

    socket: socket.socket
    address: Tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    records_read: int = 0
    records_sent: int = 0

    timeout: Optional[float] = None  # None = block forever

    def __post_init__(self):
        # The listening socket polls with a timeout; an accepted socket can
        # inherit it on some platforms, so set the mode explicitly.
        self.socket.settimeout(self.timeout)

    @property
    def peer(self) -> str:
        """Printable "host:port" for log lines."""
        if isinstance(self.address, tuple) and len(self.address) >= 2:
            return f"{self.address[0]}:{self.address[1]}"
        return str(self.address)

    @property
    def is_closed(self) -> bool:
        return self.state == ConnectionState.CLOSED

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted or opened."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_record(self, size: int, stage: str = "record") -> bytes:
        """
        Read exactly `size` bytes.

        Args:
            size: Record size in bytes.
            stage: Name of the record, carried by any SessionFault raised.

        Returns:
            The record bytes.

        Raises:
            SessionFault: Peer closed, socket error or timeout.
        """
        self.state = ConnectionState.READING
        buffer = bytearray()

        while len(buffer) < size:
            try:
                chunk = self.socket.recv(size - len(buffer))
            except socket.timeout as e:
                raise SessionFault("recv() timed out", stage=stage) from e
            except OSError as e:
                raise SessionFault(f"recv() failed: {e}", stage=stage) from e

            if not chunk:
                raise SessionFault(
                    f"connection closed prematurely after {len(buffer)} of {size} bytes",
                    stage=stage,
                )
            buffer.extend(chunk)

        self.records_read += 1
        return bytes(buffer)

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_record(self, data: bytes, stage: str = "record") -> None:
        """
        Send one whole record.

        sendall() either sends everything or raises, so a short write always
        surfaces here as a SessionFault.
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
        except socket.timeout as e:
            raise SessionFault("send() timed out", stage=stage) from e
        except OSError as e:
            raise SessionFault(f"send() failed: {e}", stage=stage) from e
        self.records_sent += 1

    # =========================================================================
    # CLOSING
    # =========================================================================

    def abort(self):
        """
        Shut down both directions without closing the descriptor.

        Safe to call from a signal handler or another thread: a read blocked
        in recv() returns b"" and surfaces as a SessionFault, after which the
        owner closes the connection as usual.
        """
        if self.is_closed:
            return
        try:
            self.socket.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass  # Not connected any more
        logger.debug(f"[{self.id}] Connection aborted")

    def close(self):
        """
        Close the connection.

        1. shutdown(SHUT_WR): send FIN, we are done sending
        2. drain whatever the peer still sends, briefly
        3. close(): release the file descriptor
        """
        if self.is_closed:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Peer already gone

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:
            pass  # socket.timeout is an OSError too

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(
            f"[{self.id}] Connection closed after {self.records_read} records read, "
            f"{self.records_sent} sent"
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False  # Don't suppress exceptions
