"""
=============================================================================
SESSION STATE MACHINE
=============================================================================

One session = one connection, from menu to close. Both peers run the same
machine from opposite ends.

=============================================================================
SERVER ROLE
=============================================================================

    ┌──────────────────────┐
    │ AWAITING_MENU_SENT   │── send Menu record (exactly once)
    └──────────┬───────────┘
               ▼
    ┌──────────────────────┐
    │ AWAITING_REQUEST     │◄─────────────────────────────┐
    └──────────┬───────────┘                              │
               │ read one Request record                  │
               ▼                                          │
    ┌──────────────────────┐                              │
    │ PROCESSING           │                              │
    │   sentinel?          │── yes: Response(keep_going=False) ──► CLOSED
    │   validate           │                              │
    │     ok  → generate   │── Response(password) ────────┤
    │     bad → reject     │── Response(error) ───────────┘
    └──────────────────────┘

Rejections never end the session, only the sentinel does. Any transport
fault (SessionFault) at any step abandons the session on the spot.

=============================================================================
CLIENT ROLE
=============================================================================

    receive Menu
    loop:
        prompt user with the menu text
        bad input          → complain locally, prompt again (no traffic)
        selector only      → use default length
        send Request, receive Response, show password or error
    until a Response says keep_going=False

=============================================================================
"""

import logging
import random
import time
from enum import Enum
from typing import Callable, Optional, Tuple

from .config import ProtocolConfig
from .core.connection import Connection
from .errors import CodecError
from .exchange_log import ExchangeLog, ExchangeLogger
from .password.generator import generate_password
from .password.validator import validate
from .protocol.codec import RecordCodec
from .protocol.messages import (
    MenuMessage,
    PasswordRequest,
    PasswordResponse,
    ValidatedRequest,
)
from .protocol.selectors import Selector


logger = logging.getLogger(__name__)


class SessionState(Enum):
    AWAITING_MENU_SENT = "awaiting_menu_sent"
    AWAITING_REQUEST = "awaiting_request"
    PROCESSING = "processing"
    CLOSED = "closed"


# =============================================================================
# SERVER ROLE
# =============================================================================


class ServerSession:
    """
    Drives one accepted connection through the protocol.

    The session does not close the connection itself; the caller owns it
    (normally with `with conn:`), so the socket is released on every path.

    Usage:
        with conn:
            ServerSession(conn, codec, config).run()
    """

    def __init__(
        self,
        connection: Connection,
        codec: RecordCodec,
        config: ProtocolConfig,
        rng: Optional[random.Random] = None,
        exchange_logger: Optional[ExchangeLogger] = None,
    ):
        self.connection = connection
        self.codec = codec
        self.config = config
        self.rng = rng
        self.exchange_logger = exchange_logger or ExchangeLogger(config.log_format)

        self.state = SessionState.AWAITING_MENU_SENT
        self.passwords_generated = 0
        self.requests_answered = 0

    def run(self) -> int:
        """
        Run the session to completion.

        Returns:
            Number of requests answered before the sentinel.

        Raises:
            SessionFault: The transport failed; the session is abandoned.
        """
        try:
            self._send_menu()

            while self.state is not SessionState.CLOSED:
                request = self._receive_request()

                self.state = SessionState.PROCESSING
                started = time.time()
                response = self.respond(request)
                self._log_exchange(request, response, started)

                self._send_response(response)

                if response.keep_going:
                    self.requests_answered += 1
                    self.state = SessionState.AWAITING_REQUEST
                else:
                    self.state = SessionState.CLOSED
        except Exception:
            self.state = SessionState.CLOSED
            raise

        return self.requests_answered

    def respond(self, request: PasswordRequest) -> PasswordResponse:
        """
        Build the response for one request. No I/O.

        The sentinel is classified here, before validation; everything else
        goes through the validator.
        """
        if request.kind is Selector.TERMINATE:
            return PasswordResponse.closing()

        result = validate(
            request,
            self.config.allowed_types,
            self.config.min_length,
            self.config.max_length,
        )
        if not isinstance(result, ValidatedRequest):
            return PasswordResponse.rejected(result)

        password = generate_password(result.password_type, result.length, self.rng)
        self.passwords_generated += 1
        return PasswordResponse.success(password)

    def _send_menu(self):
        menu = MenuMessage(text=self.config.menu_text)
        self.connection.send_record(self.codec.encode_menu(menu), stage="menu")
        self.state = SessionState.AWAITING_REQUEST

    def _receive_request(self) -> PasswordRequest:
        data = self.connection.read_record(self.codec.request_size, stage="request")
        return self.codec.decode_request(data)

    def _send_response(self, response: PasswordResponse):
        self.connection.send_record(self.codec.encode_response(response), stage="response")

    def _log_exchange(self, request: PasswordRequest, response: PasswordResponse, started: float):
        self.exchange_logger.log(ExchangeLog.build(
            session_id=self.connection.id,
            peer=self.connection.peer,
            request=request,
            response=response,
            duration_ms=(time.time() - started) * 1000,
        ))


# =============================================================================
# CLIENT ROLE
# =============================================================================


def parse_user_input(
    line: str,
    default_length: int,
    max_length_text: Optional[int] = None,
) -> Optional[Tuple[PasswordRequest, bool]]:
    """
    Parse one line typed by the user into a request.

    Grammar: optional leading whitespace, ONE selector character, then
    whitespace-separated tokens. The selector does not need a space after
    it, so "n8" means selector "n", length "8".

        "n 8"     → (n, "8"),  default not used
        "s"       → (s, default_length), default used
        "n8"      → (n, "8"),  default not used
        ""        → None   (nothing typed)
        "n 8 9"   → None   (too many arguments)

    The selector is NOT checked here; that is the server's job.

    Args:
        line: Raw input line.
        default_length: Length substituted when only a selector is given.
        max_length_text: Truncate the length text to this many characters
                         (the record slot's capacity).

    Returns:
        (request, used_default), or None when the line must be re-prompted.
    """
    stripped = line.lstrip()
    if not stripped:
        return None

    selector = stripped[0]
    tokens = stripped[1:].split()

    if len(tokens) > 1:
        return None

    if not tokens:
        return PasswordRequest(selector=selector, length_text=str(default_length)), True

    length_text = tokens[0]
    if max_length_text is not None:
        length_text = length_text[:max_length_text]
    return PasswordRequest(selector=selector, length_text=length_text), False


class ClientSession:
    """
    Drives the client side of one connection.

    Input and output are injected so the loop can be tested without a
    terminal: `prompt` behaves like input(), `echo` like print().
    """

    INVALID_INPUT = "Invalid input. Please enter a valid type and length."
    DEFAULT_LENGTH_NOTICE = "(The length is absent, a default value is used: {length})"

    def __init__(
        self,
        connection: Connection,
        codec: RecordCodec,
        config: ProtocolConfig,
        prompt: Callable[[str], str] = input,
        echo: Callable[[str], None] = print,
    ):
        self.connection = connection
        self.codec = codec
        self.config = config
        self.prompt = prompt
        self.echo = echo

        self.state = SessionState.AWAITING_MENU_SENT
        self.menu: Optional[MenuMessage] = None
        self.passwords: list[str] = []

    def run(self) -> int:
        """
        Run until the server acknowledges the sentinel.

        Returns:
            Number of passwords received.

        Raises:
            SessionFault: The transport failed.
        """
        try:
            self.menu = self._receive_menu()
            self.state = SessionState.AWAITING_REQUEST

            while self.state is not SessionState.CLOSED:
                request = self._next_request()

                self.state = SessionState.PROCESSING
                response = self.exchange(request)
                self._show(response)

                if response.keep_going:
                    self.state = SessionState.AWAITING_REQUEST
                else:
                    self.state = SessionState.CLOSED
        except Exception:
            self.state = SessionState.CLOSED
            raise

        return len(self.passwords)

    def exchange(self, request: PasswordRequest) -> PasswordResponse:
        """Send one request record and read back its response record."""
        self.connection.send_record(self.codec.encode_request(request), stage="request")
        data = self.connection.read_record(self.codec.response_size, stage="response")
        return self.codec.decode_response(data)

    def _receive_menu(self) -> MenuMessage:
        data = self.connection.read_record(self.codec.menu_size, stage="menu")
        return self.codec.decode_menu(data)

    def _next_request(self) -> PasswordRequest:
        """
        Prompt until the user types something sendable.

        End of input counts as asking to quit, so piping a file into the
        client still ends the session cleanly.
        """
        while True:
            try:
                line = self.prompt(self.menu.text)
            except EOFError:
                return PasswordRequest(selector=Selector.TERMINATE.value)

            parsed = parse_user_input(
                line,
                self.config.default_length,
                max_length_text=self.config.length_field_size - 1,
            )
            if parsed is None:
                self.echo(self.INVALID_INPUT)
                continue

            request, used_default = parsed
            try:
                self.codec.encode_request(request)
            except CodecError:
                # Not representable in the record (e.g. a non-Latin-1 selector)
                self.echo(self.INVALID_INPUT)
                continue

            if used_default:
                self.echo(self.DEFAULT_LENGTH_NOTICE.format(length=self.config.default_length))
            return request

    def _show(self, response: PasswordResponse):
        if not response.keep_going:
            return
        if response.is_error:
            self.echo(f"Bad request: {response.error_message}")
        else:
            self.passwords.append(response.password)
            self.echo(f"Password generated: {response.password}\n")
