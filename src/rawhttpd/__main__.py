"""
=============================================================================
RAWHTTPD CLI ENTRY POINT
=============================================================================

    # Run with defaults (127.0.0.1:8080)
    python -m rawhttpd

    # Custom address
    python -m rawhttpd --ip_addr 0.0.0.0 --port 3000

    # See every parsed header and every byte written
    python -m rawhttpd --log-level DEBUG

    # Machine-readable access log
    python -m rawhttpd --log-format json

=============================================================================
EXIT STATUS
=============================================================================

    0   stopped by Ctrl+C (SIGINT) or SIGTERM
    1   the listening socket could not be set up (socket/bind/listen)
    2   bad command line (argparse)

=============================================================================
"""

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .config import ServerConfig
from .errors import SetupError
from .handlers import default_routes
from .server import HTTPServer


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rawhttpd",
        description="Minimal sequential HTTP/1.0 server on raw sockets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m rawhttpd                           # 127.0.0.1:8080
  python -m rawhttpd --port 3000               # Custom port
  python -m rawhttpd --ip_addr 0.0.0.0         # Listen on all interfaces
  python -m rawhttpd --log-level DEBUG         # Log raw writes
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--ip_addr",
        default="127.0.0.1",
        help="IPv4 address to bind to (default: 127.0.0.1)"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=8080,
        help="Port to listen on (default: 8080)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LIMITS AND LOGGING
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--max-body-size",
        type=int,
        default=1024,
        help="Largest request body accepted in bytes (default: 1024)"
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default="text",
        help="Access log format (default: text)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"rawhttpd {__version__}"
    )

    return parser


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def main(argv: Optional[List[str]] = None) -> int:
    """
    Parse arguments, build the server, run it until interrupted.

    Returns the process exit status.
    """
    args = build_parser().parse_args(argv)

    config = ServerConfig(
        host=args.ip_addr,
        port=args.port,
        max_body_size=args.max_body_size,
        log_level=args.log_level,
        log_format=args.log_format,
    )
    setup_logging(config.log_level)

    try:
        server = HTTPServer(default_routes(), config)
        server.run()
    except (SetupError, ValueError) as e:
        logger.error(f"Server setup failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
