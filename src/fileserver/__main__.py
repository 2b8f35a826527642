"""
=============================================================================
FILE SERVER CLI ENTRY POINT
=============================================================================

    # Serve the current directory on 127.0.0.1:7878
    python -m fileserver

    # Serve ./public on all interfaces
    fileserver ./public --host 0.0.0.0

    # Four worker threads, JSON access log
    fileserver ./public --workers 4 --log-format json

Settings come from, in order of priority: command-line flags, then
FILESERVER_* environment variables, then ServerConfig defaults.

=============================================================================
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .config import ServerConfig
from .server import FileServer


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser. Flags left unset default to None."""
    parser = argparse.ArgumentParser(
        prog="fileserver",
        description="Serve a directory over HTTP with browsable listings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  fileserver                          # Serve . on 127.0.0.1:7878
  fileserver ./public --port 3000     # Custom root and port
  fileserver --host 0.0.0.0           # Listen on all interfaces
  fileserver --workers 4              # Handle clients concurrently
        """
    )

    parser.add_argument(
        "root",
        nargs="?",
        default=None,
        help="Directory to serve (default: current directory)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────
    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 127.0.0.1)"
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: 7878)"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Client socket timeout in seconds (default: 30)"
    )
    parser.add_argument(
        "--buffer-size",
        type=int,
        default=None,
        help="Bytes read from each request (default: 1024)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # SERVING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────
    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Worker threads; 0 handles one client at a time (default: 0)"
    )
    parser.add_argument(
        "--max-file-size",
        type=int,
        default=None,
        help="Refuse files larger than this many bytes with 413 (default: no limit)"
    )
    parser.add_argument(
        "--no-sort",
        action="store_true",
        help="List directory entries in filesystem order instead of by name"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────
    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)"
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default=None,
        help="Access log format (default: text)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """
    Build the configuration: environment first, then explicit flags.

    Raises:
        ValueError: If an environment variable holds a malformed number.
    """
    config = ServerConfig.from_env()

    overrides = {
        "root_dir": args.root,
        "host": args.host,
        "port": args.port,
        "timeout": args.timeout,
        "buffer_size": args.buffer_size,
        "workers": args.workers,
        "max_file_size": args.max_file_size,
        "log_level": args.log_level,
        "log_format": args.log_format,
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(config, name, value)

    if args.no_sort:
        config.sort_listing = False

    return config


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
        server = FileServer(config)
        server.run()
    except (ValueError, OSError) as e:
        print(f"fileserver: error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
