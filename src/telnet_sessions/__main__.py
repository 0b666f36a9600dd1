"""CLI entry point: open a telnet session, send commands, print responses."""

import argparse
import asyncio
import sys

import structlog

from telnet_sessions.config import get_settings
from telnet_sessions.errors import TelnetSessionError
from telnet_sessions.logging_config import configure_logging
from telnet_sessions.network.client import SUPPORTED_ENCODINGS
from telnet_sessions.network.session import SessionManager

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    settings = get_settings()
    argparser = argparse.ArgumentParser(
        prog="telnet-sessions", description="Send commands to a telnet server"
    )
    argparser.add_argument("host", help="Server host")
    argparser.add_argument("port", type=int, help="Server port")
    argparser.add_argument(
        "--command", "-c", action="append", default=[], help="Command to send (repeatable)"
    )
    argparser.add_argument(
        "--wait-ms", "-w", type=int, default=500, help="Delay before each read in milliseconds"
    )
    argparser.add_argument(
        "--timeout-ms",
        "-t",
        type=int,
        default=settings.connect_timeout_ms,
        help="Connect timeout in milliseconds",
    )
    argparser.add_argument(
        "--encoding",
        "-e",
        choices=SUPPORTED_ENCODINGS,
        default=settings.default_encoding,
        help="Encoding used to print responses",
    )
    return argparser


async def run(args: argparse.Namespace) -> None:
    """Connect, run every command, and always clean up the session."""
    manager = SessionManager()
    wait = args.wait_ms / 1000

    try:
        session_id = await manager.create_session(
            args.host, args.port, timeout=args.timeout_ms / 1000
        )
        session = manager.require_session(session_id)

        banner = await session.read_response(wait, args.encoding)
        if banner:
            print(banner, end="" if banner.endswith("\n") else "\n")

        for command in args.command:
            await session.send_command(command)
            response = await session.read_response(wait, args.encoding)
            print(response, end="" if response.endswith("\n") else "\n")
    finally:
        await manager.close_all()


def main(argv: list[str] | None = None) -> int:
    """Run the CLI and return its exit status."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)

    args = build_parser().parse_args(argv)

    try:
        asyncio.run(run(args))
    except TelnetSessionError as e:
        logger.error("cli_failed", error=str(e))
        print(f"error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.info("cli_interrupted")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
