"""
Exception types and error management for the supervisor.

This module defines the error taxonomy used throughout the application:
configuration problems, the fatal startup failures that abort a run before
any background thread exists, and the helpers that log errors consistently.
"""

import logging
import sys
from enum import Enum
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for error handling."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class DevServerError(Exception):
    """Base class for all errors raised by the supervisor."""


class ValidationError(DevServerError):
    """
    Exception raised when validation fails.

    This is the main exception type used by the configuration layer.
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


class SocketBindError(DevServerError):
    """No candidate address for the listening socket could be bound."""

    def __init__(self, host: str, port: int, errors: Optional[list] = None):
        self.host = host
        self.port = port
        self.errors = errors or []
        detail = "; ".join(str(e) for e in self.errors) or "no addresses resolved"
        super().__init__(f"Unable to bind a listening socket on {host}:{port}: {detail}")


class ArtifactResolutionError(DevServerError):
    """The path of the binary to supervise could not be determined."""


class SpawnError(DevServerError):
    """The supervised binary could not be launched."""

    def __init__(self, artifact: Any, cause: Exception):
        self.artifact = artifact
        self.cause = cause
        super().__init__(f"Failed to launch {artifact}: {cause}")


class StartupInterruptedError(DevServerError):
    """An interrupt or terminate signal arrived before the first child was started."""


def handle_error(
    error: Exception,
    context: str,
    severity: Union[ErrorSeverity, str] = ErrorSeverity.ERROR,
    reraise: bool = True,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Handle errors with consistent logging and optional re-raising.

    Args:
        error: The exception that occurred
        context: Context description of where the error occurred
        severity: Severity level for logging
        reraise: Whether to re-raise the exception after logging
        logger: Logger instance to use (defaults to module logger)
    """
    effective_logger = logger or globals()['logger']

    error_msg = f"Error in {context}: {error}"

    if isinstance(severity, str):
        severity_str = severity.lower()
    else:
        severity_str = severity.value

    if severity_str == "debug":
        effective_logger.debug(error_msg, exc_info=True)
    elif severity_str == "info":
        effective_logger.info(error_msg)
    elif severity_str == "warning":
        effective_logger.warning(error_msg)
    elif severity_str == "error":
        effective_logger.error(error_msg)
    elif severity_str == "critical":
        effective_logger.critical(error_msg, exc_info=True)

    if reraise:
        raise error


def handle_config_error(error: Exception, context: str, **kwargs) -> None:
    """Handle configuration-related errors."""
    handle_error(error, f"config {context}", **kwargs)


def handle_cli_error(error: Exception, context: str, **kwargs) -> None:
    """Log an error at the CLI boundary and exit the process."""
    exit_code = kwargs.pop('exit_code', 1)
    include_traceback = kwargs.pop('include_traceback', False)

    severity = kwargs.pop('severity', ErrorSeverity.ERROR)
    if include_traceback:
        severity = ErrorSeverity.CRITICAL
    handle_error(error, f"CLI {context}", severity=severity, reraise=False, **kwargs)

    sys.exit(exit_code)
