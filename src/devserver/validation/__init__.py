"""
Validation and error handling for the devserver package.

This module provides input validation and the exception taxonomy with
consistent error reporting across the application.
"""

from .exceptions import (
    ArtifactResolutionError,
    DevServerError,
    ErrorSeverity,
    SocketBindError,
    SpawnError,
    StartupInterruptedError,
    ValidationError,
    handle_cli_error,
    handle_config_error,
    handle_error,
)

from .validators import (
    validate_bool,
    validate_directory,
    validate_enum_choice,
    validate_host,
    validate_non_negative_float,
    validate_path_exists,
    validate_port,
    validate_positive_integer,
    validate_signal,
    validate_target_name,
    validate_watch_paths,
)

__all__ = [
    # Exceptions
    "ArtifactResolutionError",
    "DevServerError",
    "ErrorSeverity",
    "SocketBindError",
    "SpawnError",
    "StartupInterruptedError",
    "ValidationError",
    # Error handling
    "handle_cli_error",
    "handle_config_error",
    "handle_error",
    # Validators
    "validate_bool",
    "validate_directory",
    "validate_enum_choice",
    "validate_host",
    "validate_non_negative_float",
    "validate_path_exists",
    "validate_port",
    "validate_positive_integer",
    "validate_signal",
    "validate_target_name",
    "validate_watch_paths",
]
