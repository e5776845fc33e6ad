"""
=============================================================================
EXCHANGE LOGGING
=============================================================================

One structured log line per request/response exchange on the server.

=============================================================================
LOG FORMATS
=============================================================================

    TEXT (default):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ 127.0.0.1:51514 [a1b2c3d4] "s 12" ok 0.21ms                          │
    │ ─────────────── ────────── ────── ── ──────                          │
    │ peer            session    request outcome duration                 │
    └─────────────────────────────────────────────────────────────────────┘

    JSON (for log aggregators):
    {"session_id": "a1b2c3d4", "peer": "127.0.0.1:51514", "selector": "s",
     "length_text": "12", "outcome": "ok", "duration_ms": 0.21,
     "timestamp": "18/Oct/2026:10:55:36 +0000"}

Outcomes: "ok", "invalid_type", "invalid_length", "terminate".

The generated password is NEVER part of the record. Log files tend to
outlive the sessions they describe.

=============================================================================
"""

import json
import logging
import time
from dataclasses import dataclass

from .protocol.messages import PasswordRequest, PasswordResponse
from .protocol.selectors import Rejection


# Namespaced so it can be routed separately:
#   logging.getLogger("passgen.exchange").addHandler(file_handler)
logger = logging.getLogger("passgen.exchange")

# Requested length text is echoed into logs; cap what a client can inject.
MAX_LOGGED_LENGTH_TEXT = 16


def outcome_of(response: PasswordResponse) -> str:
    """Classify a response for the log without looking at the password."""
    if not response.keep_going:
        return "terminate"
    if response.is_error:
        for rejection in Rejection:
            if rejection.message == response.error_message:
                return rejection.value
        return "error"
    return "ok"


def _escape(text: str) -> str:
    """Render client-supplied text on one line, with quotes escaped."""
    return text.encode("unicode_escape").decode("ascii").replace('"', '\\"')


@dataclass
class ExchangeLog:
    """Structured log entry for one request/response exchange."""

    session_id: str
    peer: str
    selector: str
    length_text: str
    outcome: str
    duration_ms: float
    timestamp: str

    @classmethod
    def build(
        cls,
        session_id: str,
        peer: str,
        request: PasswordRequest,
        response: PasswordResponse,
        duration_ms: float,
    ) -> "ExchangeLog":
        length_text = request.length_text
        if len(length_text) > MAX_LOGGED_LENGTH_TEXT:
            length_text = length_text[:MAX_LOGGED_LENGTH_TEXT] + "..."
        return cls(
            session_id=session_id,
            peer=peer,
            selector=request.selector,
            length_text=length_text,
            outcome=outcome_of(response),
            duration_ms=duration_ms,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "peer": self.peer,
            "selector": self.selector,
            "length_text": self.length_text,
            "outcome": self.outcome,
            "duration_ms": round(self.duration_ms, 2),
            "timestamp": self.timestamp,
        }

    def to_text(self) -> str:
        request = _escape(f"{self.selector} {self.length_text}".strip())
        return (
            f'{self.peer} [{self.session_id}] "{request}" '
            f"{self.outcome} {self.duration_ms:.2f}ms"
        )


class ExchangeLogger:
    """
    Emits ExchangeLog records in the configured format.

    Usage:
        exchange_logger = ExchangeLogger(log_format="json")
        exchange_logger.log(ExchangeLog.build(...))
    """

    def __init__(self, log_format: str = "text", log_level: int = logging.INFO):
        self.log_format = log_format
        self.log_level = log_level

    def log(self, entry: ExchangeLog) -> None:
        if self.log_format == "json":
            logger.log(self.log_level, json.dumps(entry.to_dict()))
        else:
            logger.log(self.log_level, entry.to_text())
