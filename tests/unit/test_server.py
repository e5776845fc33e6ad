"""
End-to-end tests: PasswordServer on a real TCP port, PasswordClient and the CLI.
"""

import os
import signal
import socket
import subprocess
import sys
import threading
import time
from pathlib import Path

import pytest

from passgen import PasswordClient, PasswordServer, ProtocolConfig
from passgen.__main__ import build_parser, config_from_args, main
from passgen.errors import SessionFault


def scripted_client(port: int, lines):
    """Client whose prompt replays `lines` and whose echo is captured."""
    output = []
    script = iter(lines)
    client = PasswordClient(
        ProtocolConfig(host="127.0.0.1", port=port, timeout=5.0),
        prompt=lambda _: next(script),
        echo=output.append,
    )
    return client, output


def wait_for(condition, timeout: float = 5.0) -> bool:
    deadline = time.time() + timeout
    while time.time() < deadline:
        if condition():
            return True
        time.sleep(0.01)
    return False


def read_menu(sock: socket.socket, size: int) -> bytes:
    data = b""
    while len(data) < size:
        chunk = sock.recv(size - len(data))
        assert chunk, "server closed before sending the menu"
        data += chunk
    return data


def connect_when_ready(port: int, timeout: float = 10.0) -> socket.socket:
    deadline = time.time() + timeout
    while True:
        try:
            return socket.create_connection(("127.0.0.1", port), timeout=5.0)
        except ConnectionRefusedError:
            if time.time() > deadline:
                raise
            time.sleep(0.05)


class TestEndToEnd:
    """Client and server over a real socket."""

    def test_session(self, test_server):
        client, output = scripted_client(test_server.port, ["n 8", "s abc", "s 32", "q 0"])
        received = client.run()

        assert received == 2
        assert output[0] == "Connection completed\n"
        assert output[1].startswith("Password generated: ")
        assert output[2] == "Bad request: The length for the password is not valid.\n"
        assert output[3].startswith("Password generated: ")
        assert len(output) == 4

        numeric = output[1][len("Password generated: "):].rstrip("\n")
        assert len(numeric) == 8 and numeric.isdigit()

        assert wait_for(lambda: test_server.server.sessions_completed == 1)

    def test_clients_served_one_after_another(self, test_server):
        for _ in range(3):
            client, _ = scripted_client(test_server.port, ["m 12", "q 0"])
            assert client.run() == 1
        assert wait_for(lambda: test_server.server.sessions_completed == 3)

    def test_survives_abrupt_disconnect(self, test_server, codec):
        """A client vanishing mid-session only ends its own session."""
        with socket.create_connection(("127.0.0.1", test_server.port), timeout=5.0) as sock:
            received = 0
            while received < codec.menu_size:
                chunk = sock.recv(codec.menu_size - received)
                assert chunk
                received += len(chunk)
            sock.sendall(b"n")  # partial request record

        assert wait_for(lambda: test_server.server.sessions_faulted == 1)
        assert test_server.server.is_running

        client, _ = scripted_client(test_server.port, ["a 6", "q 0"])
        assert client.run() == 1

    def test_shutdown(self, test_server):
        server = test_server.server
        assert server.is_running
        test_server.stop()
        assert server.wait_for_shutdown(timeout=5.0)
        assert not server.is_running

    def test_shutdown_with_idle_client(self, test_server, codec):
        """shutdown() does not wait for a client that never sends a request."""
        with socket.create_connection(("127.0.0.1", test_server.port), timeout=5.0) as sock:
            read_menu(sock, codec.menu_size)

            test_server.stop()

            assert not test_server._thread.is_alive()
            assert test_server.server.sessions_faulted == 1
            assert sock.recv(1) == b""

    def test_run_with_overrides_keeps_config(self, free_port):
        """Overrides apply to this run only; port 0 is honoured."""
        config = ProtocolConfig(port=free_port, log_level="WARNING")
        server = PasswordServer(config)
        thread = threading.Thread(target=lambda: server.run(port=0), daemon=True)
        thread.start()
        try:
            assert server.wait_until_listening(timeout=5.0)
            assert server.config.port == 0
            assert server.address[1] != 0
            assert config.port == free_port
        finally:
            server.shutdown()
            thread.join(timeout=5.0)


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")
class TestSignals:
    """python -m passgen server stops on SIGINT/SIGTERM."""

    @pytest.mark.parametrize("signum", [signal.SIGINT, signal.SIGTERM])
    def test_signal_with_idle_client(self, free_port, codec, signum):
        src = str(Path(__file__).resolve().parents[2] / "src")
        env = dict(os.environ)
        env["PYTHONPATH"] = os.pathsep.join(filter(None, [src, env.get("PYTHONPATH")]))

        proc = subprocess.Popen(
            [sys.executable, "-m", "passgen", "server", "--port", str(free_port)],
            env=env,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
        try:
            with connect_when_ready(free_port) as sock:
                read_menu(sock, codec.menu_size)
                proc.send_signal(signum)
                assert proc.wait(timeout=10) == 0
        finally:
            if proc.poll() is None:
                proc.kill()
                proc.wait()


class TestClientErrors:
    """Client-side faults."""

    def test_connect_refused(self, free_port):
        client, _ = scripted_client(free_port, [])
        with pytest.raises(SessionFault) as excinfo:
            client.run()
        assert excinfo.value.stage == "connect"

    def test_invalid_config_fails_fast(self):
        with pytest.raises(ValueError):
            PasswordClient(ProtocolConfig(max_length=40))


class TestCLI:
    """python -m passgen argument handling."""

    def test_parser(self):
        args = build_parser().parse_args(["server", "--port", "9000", "--max-length", "20"])
        assert args.command == "server"
        config = config_from_args(args)
        assert config.port == 9000
        assert config.max_length == 20
        assert config.min_length == 6

    def test_client_without_server(self, free_port, monkeypatch):
        monkeypatch.setattr("builtins.input", lambda _: "q")
        assert main(["client", "--port", str(free_port)]) == 1

    def test_bad_lengths(self):
        assert main(["server", "--min-length", "10", "--max-length", "5"]) == 1

    def test_port_in_use(self):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
            blocker.bind(("127.0.0.1", 0))
            blocker.listen(1)
            port = blocker.getsockname()[1]
            assert main(["server", "--host", "127.0.0.1", "--port", str(port)]) == 1
