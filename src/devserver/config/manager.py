"""
Configuration assembly.

Merges command-line values, environment variables and the optional TOML file
into one validated DevServerConfig. Precedence, highest first: command line,
environment, file, built-in defaults.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from ..models.config import DevServerConfig
from ..validation import ErrorSeverity, handle_config_error
from .loader import DEFAULT_CONFIG_NAME, load_devserver_section, load_environment
from .validators import validate_devserver_config

logger = logging.getLogger(__name__)


def find_config_file(config_path: Optional[Path], search_dir: Optional[Path] = None) -> Optional[Path]:
    """
    Pick the configuration file to load.

    An explicit path is always returned (missing files fail later, loudly).
    Otherwise ``devserver.toml`` in ``search_dir`` is used when present.
    """
    if config_path is not None:
        return Path(config_path)
    candidate = (search_dir or Path.cwd()) / DEFAULT_CONFIG_NAME
    return candidate if candidate.is_file() else None


def load_config(
    cli_values: Dict[str, Any],
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> DevServerConfig:
    """
    Build the run configuration.

    Args:
        cli_values: Settings given on the command line; None values are unset
        config_path: Explicit TOML file, or None to look for the default one
        environ: Environment to read, defaults to os.environ

    Returns:
        Validated DevServerConfig

    Raises:
        FileNotFoundError: If an explicit configuration file is missing
        ValidationError: If the merged settings are invalid
    """
    environ = os.environ if environ is None else environ

    search_dir = Path(cli_values["cwd"]) if cli_values.get("cwd") else None
    file_path = find_config_file(config_path, search_dir)

    merged: Dict[str, Any] = {}
    if file_path is not None:
        try:
            merged.update(load_devserver_section(file_path))
        except (FileNotFoundError, KeyError) as e:
            handle_config_error(
                error=e,
                context="loading configuration file",
                severity=ErrorSeverity.CRITICAL,
                reraise=True,
                logger=logger
            )
    merged.update(load_environment(environ))
    merged.update({key: value for key, value in cli_values.items() if value is not None})

    config = validate_devserver_config(merged)
    logger.debug(f"Effective configuration: {config}")
    return config
