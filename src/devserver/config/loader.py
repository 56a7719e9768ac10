"""
Configuration file loading utilities.

This module handles the low-level loading and parsing of the optional TOML
configuration file. Only the ``[devserver]`` table is read.
"""

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, Mapping

from ..validation import ErrorSeverity, handle_config_error

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "devserver.toml"

# Environment variables consulted when a setting is not given on the command line.
ENV_VARS = {
    "host": "HOST",
    "port": "PORT",
    "watch": "WATCH",
    "bin": "BIN",
}


def load_toml_file(file_path: Path, description: str = "configuration file") -> Dict[str, Any]:
    """
    Load and parse a TOML file with error handling.

    Args:
        file_path: Path to the TOML file to load
        description: Human-readable description for error messages

    Returns:
        Parsed TOML data as a dictionary

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the file is malformed
    """
    logger.info(f"Loading {description} from: {file_path}")

    if not file_path.exists():
        logger.error(f"{description} not found: {file_path}")
        raise FileNotFoundError(f"{description} not found: {file_path}")

    try:
        with open(file_path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        handle_config_error(
            error=e,
            context=f"parsing {description}",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )
        raise


def load_devserver_section(file_path: Path) -> Dict[str, Any]:
    """Return the ``[devserver]`` table of a configuration file, or an empty dict."""
    data = load_toml_file(file_path, "devserver configuration file")
    section = data.get("devserver", {})
    if not isinstance(section, dict):
        raise KeyError(f"[devserver] in {file_path} must be a table")
    return section


def load_environment(environ: Mapping[str, str]) -> Dict[str, Any]:
    """Collect the settings that may come from environment variables."""
    values = {}
    for key, var in ENV_VARS.items():
        raw = environ.get(var)
        if raw:
            values[key] = raw
    return values
