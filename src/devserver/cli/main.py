"""
Command-line interface for the devserver supervisor.

This module provides the main CLI entry point: it parses arguments, assembles
the run configuration and hands over to DevServer. It can be invoked directly
(``devserver``) or as a cargo subcommand (``cargo devserver``).
"""

import argparse
import logging
import sys
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional

from .. import __version__
from ..config import load_config
from ..validation import DevServerError, handle_cli_error
from .orchestrator import DevServer

# --- Logging Setup ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser. Unset options stay None so lower layers apply."""
    parser = argparse.ArgumentParser(
        prog="devserver",
        description=(
            "Build a cargo project, run the binary with an inherited listening "
            "socket, and rebuild/restart it when files change."
        ),
    )
    parser.add_argument(
        "-o", "--host",
        help="Local host or IP to listen on (env HOST, default localhost).",
    )
    parser.add_argument(
        "-p", "--port",
        help="Local port to listen on (env PORT, default 8080).",
    )
    parser.add_argument(
        "-w", "--watch",
        action="append",
        help="File or directory triggering a rebuild; repeatable. Directories "
             "are watched recursively (env WATCH, default src).",
    )
    parser.add_argument(
        "-b", "--bin",
        help="Binary to execute (env BIN). Defaults to what cargo would build.",
    )
    parser.add_argument(
        "-c", "--cwd",
        help="Working directory for cargo and the binary. Defaults to the current directory.",
    )
    parser.add_argument(
        "-r", "--release",
        action="store_true",
        default=None,
        help="Build with --release.",
    )
    parser.add_argument(
        "-t", "--target",
        help="Binary target to build and run (cargo --bin).",
    )
    parser.add_argument(
        "-s", "--signal",
        help="Signal sent to the child when the binary was rebuilt (default SIGTERM).",
    )
    parser.add_argument(
        "--coalesce",
        action="store_true",
        default=None,
        help="Drop duplicate events that queued up while a build was running.",
    )
    parser.add_argument(
        "--debounce",
        help="Quiet period in seconds used to group file notifications (default 1.0).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="TOML file with a [devserver] table. Defaults to ./devserver.toml if present.",
    )
    parser.add_argument(
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ERROR).",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def cli_values(args: argparse.Namespace) -> Dict[str, Any]:
    """Map parsed arguments onto configuration keys."""
    return {
        "host": args.host,
        "port": args.port,
        "watch": args.watch,
        "bin": args.bin,
        "cwd": args.cwd,
        "release": args.release,
        "target": args.target,
        "signal": args.signal,
        "coalesce": args.coalesce,
        "debounce": args.debounce,
        "log_level": args.log_level,
    }


def main_cli(argv: Optional[List[str]] = None) -> None:
    """
    Main command-line interface for the devserver application.

    Raises:
        SystemExit: On configuration errors or fatal startup failures.
    """
    argv = list(sys.argv[1:] if argv is None else argv)
    # cargo runs subcommands as `cargo-devserver devserver ...`.
    if argv and argv[0] == "devserver":
        argv = argv[1:]

    args = build_parser().parse_args(argv)

    try:
        config = load_config(cli_values(args), config_path=args.config)
    except (DevServerError, FileNotFoundError, KeyError, tomllib.TOMLDecodeError) as e:
        handle_cli_error(
            error=e,
            context="configuration loading",
            exit_code=1,
            logger=logger,
        )

    logging.getLogger().setLevel(config.log_level)

    try:
        DevServer(config).run()
    except KeyboardInterrupt:
        logger.info("Interrupted by user (KeyboardInterrupt)")
        sys.exit(130)
    except DevServerError as e:
        handle_cli_error(
            error=e,
            context="startup",
            exit_code=1,
            logger=logger,
        )


if __name__ == "__main__":
    main_cli()
