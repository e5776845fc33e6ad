"""
=============================================================================
PASSGEN - Password Generation over a Fixed-Record TCP Protocol
=============================================================================

A client connects, receives a menu, asks for passwords by class and length
as many times as it likes, and leaves by sending the quit selector.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    passgen/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m passgen)
    ├── config.py            # ProtocolConfig dataclass
    ├── errors.py            # Exception hierarchy
    ├── server.py            # PasswordServer (accept loop + sessions)
    ├── client.py            # PasswordClient (interactive)
    ├── session.py           # Server and client session state machines
    ├── exchange_log.py      # Structured per-exchange logging
    ├── core/                # Transport
    │   ├── socket_server.py # Listening socket, accept loop, signals
    │   └── connection.py    # Exact-size record I/O
    ├── protocol/            # Wire format
    │   ├── selectors.py     # Selector / PasswordType / Rejection enums
    │   ├── messages.py      # Menu, request, response values
    │   └── codec.py         # Fixed-size struct records
    └── password/            # Pure logic
        ├── generator.py     # Password engine
        └── validator.py     # Request validator

=============================================================================
QUICK START
=============================================================================

    # Terminal 1
    python -m passgen server

    # Terminal 2
    python -m passgen client
    ? s 16
    Password generated: q7#Kd!...

    # In code
    from passgen import PasswordServer, ProtocolConfig
    PasswordServer(ProtocolConfig(port=9000)).run()

=============================================================================
"""

__version__ = "1.0.0"

from .config import ProtocolConfig
from .server import PasswordServer
from .client import PasswordClient

__all__ = ["PasswordServer", "PasswordClient", "ProtocolConfig", "__version__"]
