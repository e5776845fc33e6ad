"""
=============================================================================
PASSGEN CLI ENTRY POINT
=============================================================================

    # Run the server with defaults (127.0.0.1:8080, lengths 6-32)
    python -m passgen server

    # Listen on all interfaces, custom port
    python -m passgen server --host 0.0.0.0 --port 9000

    # JSON exchange logs
    python -m passgen server --log-format json

    # Connect a client
    python -m passgen client --port 9000

Settings come from PASSGEN_* environment variables first (see
config.py); flags given on the command line override them.

Exit codes: 0 on a clean finish, 1 on a transport fault or a bad setup.

=============================================================================
"""

import argparse
import logging
import sys

from . import __version__
from .client import PasswordClient
from .config import ProtocolConfig
from .errors import ConfigError, SessionFault
from .server import PasswordServer, setup_logging


logger = logging.getLogger("passgen.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="passgen",
        description="Password generation over a fixed-record TCP protocol",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m passgen server                      # Run with defaults
  python -m passgen server --port 9000          # Custom port
  python -m passgen server --min-length 8       # Stricter policy
  python -m passgen client                      # Interactive client
        """
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"passgen {__version__}",
    )

    # Shared flags. Defaults are None so unset flags keep env/config values.
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--host", "-H", default=None, help="Server address (default: 127.0.0.1)")
    common.add_argument("--port", "-p", type=int, default=None, help="Server port (default: 8080)")
    common.add_argument(
        "--timeout", "-t",
        type=float,
        default=None,
        help="Socket timeout in seconds (default: none, block forever)",
    )
    common.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    server = subparsers.add_parser("server", parents=[common], help="Run the password server")
    server.add_argument("--backlog", "-b", type=int, default=None, help="Listen backlog (default: 5)")
    server.add_argument("--min-length", type=int, default=None, help="Shortest password (default: 6)")
    server.add_argument("--max-length", type=int, default=None, help="Longest password (default: 32)")
    server.add_argument(
        "--log-format",
        choices=["text", "json"],
        default=None,
        help="Exchange log format (default: text)",
    )

    subparsers.add_parser("client", parents=[common], help="Run the interactive client")

    return parser


def config_from_args(args: argparse.Namespace) -> ProtocolConfig:
    """Environment config with command-line flags layered on top."""
    return ProtocolConfig.from_env().with_overrides(
        host=args.host,
        port=args.port,
        timeout=args.timeout,
        log_level=args.log_level,
        backlog=getattr(args, "backlog", None),
        min_length=getattr(args, "min_length", None),
        max_length=getattr(args, "max_length", None),
        log_format=getattr(args, "log_format", None),
    )


def run_server(config: ProtocolConfig) -> int:
    server = PasswordServer(config)
    try:
        server.run()
    except OSError as e:
        logger.error(f"Server failed to start: {e}")
        return 1
    return 0


def run_client(config: ProtocolConfig) -> int:
    client = PasswordClient(config)
    try:
        client.run()
    except SessionFault as e:
        logger.error(f"Session failed: {e}")
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted, connection closed.", file=sys.stderr)
        return 1
    return 0


def main(argv=None) -> int:
    """Main CLI entry point. Returns the process exit code."""
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
        config.validate()
    except (ConfigError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    # Client output is the conversation itself; keep its logs quiet unless asked.
    if args.command == "client" and args.log_level is None:
        setup_logging("WARNING")
    else:
        setup_logging(config.log_level)

    if args.command == "server":
        return run_server(config)
    return run_client(config)


if __name__ == "__main__":
    sys.exit(main())
