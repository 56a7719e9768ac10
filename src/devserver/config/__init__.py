"""
Configuration management for the devserver package.

This module provides a clean interface for assembling the immutable run
configuration from the command line, the environment and TOML files.
"""

from .manager import find_config_file, load_config
from .loader import (
    DEFAULT_CONFIG_NAME,
    ENV_VARS,
    load_devserver_section,
    load_environment,
    load_toml_file,
)
from .validators import validate_devserver_config

__all__ = [
    # Main interface
    "load_config",
    "find_config_file",
    # Advanced interface
    "DEFAULT_CONFIG_NAME",
    "ENV_VARS",
    "load_toml_file",
    "load_devserver_section",
    "load_environment",
    "validate_devserver_config",
]
