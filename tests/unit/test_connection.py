"""
Unit tests for record-level connection I/O.
"""

import socket
import time

import pytest

from passgen.core import Connection, ConnectionState
from passgen.errors import SessionFault


class TestReadRecord:
    """read_record() returns exactly one record or faults."""

    def test_reassembles_chunks(self, connection_pair):
        server_conn, client_conn = connection_pair
        for piece in (b"abc", b"defg", b"hij"):
            client_conn.socket.sendall(piece)
        assert server_conn.read_record(10) == b"abcdefghij"
        assert server_conn.records_read == 1

    def test_leaves_next_record_alone(self, connection_pair):
        server_conn, client_conn = connection_pair
        client_conn.send_record(b"1111")
        client_conn.send_record(b"2222")
        assert server_conn.read_record(4) == b"1111"
        assert server_conn.read_record(4) == b"2222"

    def test_timeout(self):
        a, b = socket.socketpair()
        with Connection(socket=a, address=("a", 0), timeout=0.1) as conn, b:
            with pytest.raises(SessionFault) as excinfo:
                conn.read_record(4, stage="menu")
        assert "timed out" in str(excinfo.value)
        assert excinfo.value.stage == "menu"


class TestLifecycle:
    """close(), abort() and bookkeeping."""

    def test_close_is_idempotent(self, connection_pair):
        server_conn, _ = connection_pair
        assert not server_conn.is_closed
        server_conn.close()
        server_conn.close()
        assert server_conn.is_closed
        assert server_conn.state is ConnectionState.CLOSED

    def test_age(self, connection_pair):
        server_conn, _ = connection_pair
        time.sleep(0.05)
        assert server_conn.age >= 0.05

    def test_abort_unblocks_read(self, connection_pair, in_background):
        """A read waiting on a silent peer ends as soon as abort() runs."""
        server_conn, _ = connection_pair
        call = in_background(lambda: server_conn.read_record(1025, stage="request"))

        time.sleep(0.1)
        server_conn.abort()

        call.join()
        assert isinstance(call.error, SessionFault)
        assert call.error.stage == "request"

    def test_abort_after_close_is_noop(self, connection_pair):
        server_conn, _ = connection_pair
        server_conn.close()
        server_conn.abort()
        assert server_conn.is_closed
