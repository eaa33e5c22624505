"""
=============================================================================
STATICSERVER CLI ENTRY POINT
=============================================================================

    # Serve the directory that contains index.html on localhost:9980
    python -m staticserver ./www/index.html

    # Different port, more verbose logs
    python -m staticserver ./www/index.html --port 8000 --log-level DEBUG

The positional argument is a file path; its containing directory, made
absolute, becomes the server root. Every option falls back to its
STATICSERVER_* environment variable (see ServerConfig.from_env), then to
the ServerConfig default.

Exit status is 1 when the root is not a directory, the configuration is
invalid, the port cannot be bound, or accept() fails.

=============================================================================
"""

import argparse
import logging
import os
import sys
from dataclasses import replace
from typing import Optional, Sequence

from . import __version__
from .config import ServerConfig
from .errors import StartupError
from .server import HTTPServer


def root_from_path(path: str) -> str:
    """
    Directory served for a path argument.

        "www/index.html"  → "/abs/cwd/www"
        "index.html"      → "/abs/cwd"
    """
    return os.path.abspath(os.path.dirname(path))


def build_parser(defaults: Optional[ServerConfig] = None) -> argparse.ArgumentParser:
    """
    Build the argument parser. Option defaults come from `defaults`,
    normally ServerConfig.from_env(), so flags override the environment.
    """
    defaults = defaults or ServerConfig()

    parser = argparse.ArgumentParser(
        prog="staticserver",
        description="Minimal HTTP/1.1 static file server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m staticserver www/index.html               # Serve ./www
  python -m staticserver www/index.html --port 8000   # Custom port
        """,
    )

    parser.add_argument(
        "path",
        help="A file path; its containing directory is served",
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=defaults.host,
        help=f"Host to bind to (default: {defaults.host})",
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=defaults.port,
        help=f"Port to listen on (default: {defaults.port})",
    )

    # ─────────────────────────────────────────────────────────────────────
    # LIMITS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=defaults.max_workers,
        help=f"Maximum worker threads (default: {defaults.max_workers or 'no limit'})",
    )

    parser.add_argument(
        "--max-line-length",
        type=int,
        default=defaults.max_line_length,
        help=f"Maximum request/header line length in bytes (default: {defaults.max_line_length})",
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=defaults.log_level,
        help=f"Logging level (default: {defaults.log_level})",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"staticserver {__version__}",
    )

    return parser


def setup_logging(level_name: str):
    """
    Configure logging for the process.

    Done once here, not per HTTPServer: log levels are process-wide, and
    servers embedded side by side must not reset each other's.
    """
    level = getattr(logging, level_name.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("staticserver").setLevel(level)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Parse arguments, build the server and run it.

    Returns:
        Process exit status.
    """
    try:
        env = ServerConfig.from_env()
    except ValueError as e:
        print(f"Error in environment: {e}", file=sys.stderr)
        return 1

    args = build_parser(env).parse_args(argv)

    root = root_from_path(args.path)
    if not os.path.isdir(root):
        print(f"Error in file path: {root} is not a directory", file=sys.stderr)
        return 1

    min_workers = env.min_workers
    if args.workers is not None:
        min_workers = min(min_workers, args.workers)

    config = replace(
        env,
        host=args.host,
        port=args.port,
        root_dir=root,
        min_workers=min_workers,
        max_workers=args.workers,
        max_line_length=args.max_line_length,
        log_level=args.log_level,
    )

    try:
        server = HTTPServer(config)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    setup_logging(config.log_level)
    server.print_banner()

    try:
        server.run()
    except StartupError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
