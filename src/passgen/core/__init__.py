"""
=============================================================================
CORE NETWORKING COMPONENTS
=============================================================================

The transport plumbing under the password protocol:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         SOCKET SERVER                                │
    │  • Creates, binds and listens on the TCP socket                     │
    │  • Runs the accept() loop                                           │
    │  • Handles SIGTERM / SIGINT                                         │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ One Connection per accepted client
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          CONNECTION                                  │
    │  • Reads and writes exactly one fixed-size record at a time         │
    │  • Turns every transport failure into a SessionFault                │
    │  • Always releases the socket (context manager)                     │
    └─────────────────────────────────────────────────────────────────────┘

The client uses Connection directly over a socket it connected itself.

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState

__all__ = [
    "SocketServer",     # Listening socket and accept loop
    "Connection",       # Record-level I/O over one socket
    "ConnectionState",  # Connection lifecycle states
]
