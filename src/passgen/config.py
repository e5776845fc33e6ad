"""
=============================================================================
PROTOCOL CONFIGURATION
=============================================================================

Centralized configuration for both peers of the password protocol.

=============================================================================
WHY A CONFIG OBJECT INSTEAD OF CONSTANTS?
=============================================================================

The record layout (field capacities) and the length range are contracts
that BOTH peers must agree on. Keeping them in one dataclass that is passed
into the codec, the validator and the sessions means:

1. Tests can run the whole protocol with different limits
2. Server and client are built from the same value
3. Inconsistent limits are caught at startup, not mid-session

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m passgen server --port 9000                      │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── PASSGEN_PORT=9000 python -m passgen server                │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import os
from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

from .errors import ConfigError
from .protocol.messages import build_menu_text
from .protocol.selectors import PasswordType, Rejection


@dataclass
class ProtocolConfig:
    """
    Configuration shared by the password server and client.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, timeout

    RECORD LAYOUT (must match on both peers)
    - menu_size, length_field_size, password_size, error_size

    PASSWORD POLICY (enforced by the server)
    - min_length, max_length, allowed_types

    CLIENT BEHAVIOUR
    - default_length

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """Address the server binds to and the client connects to."""

    port: int = 8080

    backlog: int = 5
    """Pending connections the OS queues while a session is being served."""

    timeout: Optional[float] = None
    """
    Socket timeout in seconds for a connected peer.
    None = block forever, which is what the protocol specifies. Setting a
    value turns a stalled read or write into a SessionFault.
    """

    # ─────────────────────────────────────────────────────────────────────
    # RECORD LAYOUT
    # ─────────────────────────────────────────────────────────────────────
    # Capacities include the null terminator, so a field of N bytes holds
    # at most N - 1 bytes of text.

    menu_size: int = 1024
    length_field_size: int = 1024
    password_size: int = 33
    error_size: int = 50

    # ─────────────────────────────────────────────────────────────────────
    # PASSWORD POLICY
    # ─────────────────────────────────────────────────────────────────────

    min_length: int = 6
    max_length: int = 32

    allowed_types: Tuple[PasswordType, ...] = field(
        default_factory=lambda: tuple(PasswordType)
    )
    """Generation classes the validator accepts. The sentinel is never one."""

    # ─────────────────────────────────────────────────────────────────────
    # CLIENT BEHAVIOUR
    # ─────────────────────────────────────────────────────────────────────

    default_length: int = 8
    """Length the client substitutes when the user types only a selector."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"

    log_format: str = "text"
    """Exchange log format: 'text' (one line per exchange) or 'json'."""

    @property
    def menu_text(self) -> str:
        """Menu shown to every client, built from the configured range."""
        return build_menu_text(self.min_length, self.max_length)

    @classmethod
    def from_env(cls) -> "ProtocolConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        PASSGEN_HOST        Host (default: 127.0.0.1)
        PASSGEN_PORT        Port (default: 8080)
        PASSGEN_BACKLOG     Listen backlog (default: 5)
        PASSGEN_TIMEOUT     Socket timeout in seconds (default: none)
        PASSGEN_MIN_LENGTH  Shortest password accepted (default: 6)
        PASSGEN_MAX_LENGTH  Longest password accepted (default: 32)
        PASSGEN_LOG_LEVEL   Logging level (default: INFO)
        PASSGEN_LOG_FORMAT  Exchange log format (default: text)

        =====================================================================
        """
        timeout = os.getenv("PASSGEN_TIMEOUT")
        return cls(
            host=os.getenv("PASSGEN_HOST", "127.0.0.1"),
            port=int(os.getenv("PASSGEN_PORT", "8080")),
            backlog=int(os.getenv("PASSGEN_BACKLOG", "5")),
            timeout=float(timeout) if timeout else None,
            min_length=int(os.getenv("PASSGEN_MIN_LENGTH", "6")),
            max_length=int(os.getenv("PASSGEN_MAX_LENGTH", "32")),
            log_level=os.getenv("PASSGEN_LOG_LEVEL", "INFO"),
            log_format=os.getenv("PASSGEN_LOG_FORMAT", "text"),
        )

    def with_overrides(self, **overrides) -> "ProtocolConfig":
        """
        Return a copy with the given fields replaced.

        None values are ignored so argparse defaults can be passed straight
        through without clobbering environment settings.
        """
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes)

    def validate(self) -> None:
        """
        Validate configuration values.

        Fail fast: a layout that cannot carry the longest password or the
        rejection messages would only show up as a CodecError mid-session.
        """
        if not 0 <= self.port < 65536:
            raise ConfigError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ConfigError("backlog must be >= 1")

        if self.timeout is not None and self.timeout <= 0:
            raise ConfigError("timeout must be > 0")

        if self.min_length < 1:
            raise ConfigError("min_length must be >= 1")

        if self.max_length < self.min_length:
            raise ConfigError("max_length must be >= min_length")

        if self.max_length >= self.password_size:
            raise ConfigError(
                f"password_size ({self.password_size}) cannot hold "
                f"max_length ({self.max_length}) plus terminator"
            )

        if self.default_length < 1:
            raise ConfigError("default_length must be >= 1")

        if self.length_field_size < 2:
            raise ConfigError("length_field_size must be >= 2")

        for rejection in Rejection:
            if len(rejection.message.encode("utf-8")) >= self.error_size:
                raise ConfigError(
                    f"error_size ({self.error_size}) cannot hold {rejection.name} message"
                )

        if len(self.menu_text.encode("utf-8")) >= self.menu_size:
            raise ConfigError(f"menu_size ({self.menu_size}) cannot hold the menu text")

        if not self.allowed_types:
            raise ConfigError("allowed_types must not be empty")

        if self.log_format not in ("text", "json"):
            raise ConfigError(f"Invalid log_format: {self.log_format!r}")
