"""
Validation functions for configuration values.

Each validator accepts a raw value (from the command line, the environment or
a TOML file), returns it in its canonical type and raises ValidationError
otherwise.
"""

import os
import re
import signal
from pathlib import Path
from typing import Any, List, Optional, Union

from .exceptions import ValidationError


def validate_positive_integer(
    value: Any,
    min_value: int = 1,
    max_value: Optional[int] = None,
    field_name: str = "value"
) -> int:
    """
    Validate that a value is an integer within bounds.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated integer value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        int_value = int(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    if int_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and int_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    return int_value


def validate_port(value: Any, field_name: str = "port") -> int:
    """Validate a TCP port number. Port 0 asks the OS for an ephemeral port."""
    return validate_positive_integer(value, min_value=0, max_value=65535, field_name=field_name)


def validate_host(value: Any, field_name: str = "host") -> str:
    """Validate a host name or address literal."""
    if not value or not isinstance(value, str) or not value.strip():
        raise ValidationError(
            f"{field_name} must be a non-empty string",
            field_name=field_name,
            value=value
        )
    return value.strip()


def validate_path_exists(path: Union[str, Path], field_name: str = "path") -> str:
    """
    Validate that a path exists.

    Args:
        path: Path to validate
        field_name: Name of the field being validated

    Returns:
        Validated path string

    Raises:
        ValidationError: If path doesn't exist
    """
    path_str = str(path)
    if not os.path.exists(path_str):
        raise ValidationError(
            f"{field_name} does not exist: {path_str}",
            field_name=field_name,
            value=path_str
        )
    return path_str


def validate_directory(path: Union[str, Path], field_name: str = "directory") -> Path:
    """Validate that a path is an existing directory and return it canonicalized."""
    validate_path_exists(path, field_name=field_name)
    resolved = Path(path).resolve()
    if not resolved.is_dir():
        raise ValidationError(
            f"{field_name} is not a directory: {path}",
            field_name=field_name,
            value=str(path)
        )
    return resolved


def validate_target_name(name: Any, field_name: str = "target") -> str:
    """
    Validate a build sub-target (binary) name.

    Raises:
        ValidationError: If name is empty or contains characters cargo rejects
    """
    if not name or not isinstance(name, str):
        raise ValidationError(
            f"{field_name} must be a non-empty string",
            field_name=field_name,
            value=name
        )

    if not re.match(r'^[a-zA-Z0-9_-]+$', name):
        raise ValidationError(
            f"{field_name} must contain only alphanumeric characters, underscores, and hyphens: {name}",
            field_name=field_name,
            value=name
        )

    return name


def validate_signal(value: Any, field_name: str = "signal") -> signal.Signals:
    """
    Validate a signal given by name ("SIGTERM", "term", "HUP") or number.

    Returns:
        The matching signal.Signals member
    """
    if isinstance(value, signal.Signals):
        return value

    if isinstance(value, int) and not isinstance(value, bool):
        try:
            return signal.Signals(value)
        except ValueError:
            raise ValidationError(
                f"{field_name} is not a valid signal number: {value}",
                field_name=field_name,
                value=value
            )

    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.isdigit():
            return validate_signal(int(text), field_name=field_name)
        name = text.upper()
        if not name.startswith("SIG"):
            name = f"SIG{name}"
        try:
            return signal.Signals[name]
        except KeyError:
            pass

    raise ValidationError(
        f"{field_name} must be a signal name or number, got {value}",
        field_name=field_name,
        value=value
    )


def validate_watch_paths(value: Any, field_name: str = "watch") -> List[str]:
    """
    Validate the list of paths to watch.

    Accepts a list of strings or a single string using the platform path
    separator (``src:assets`` on POSIX).
    """
    if isinstance(value, (str, Path)):
        value = [p for p in str(value).split(os.pathsep) if p]

    if not isinstance(value, (list, tuple)):
        raise ValidationError(
            f"{field_name} must be a list of paths, got {value}",
            field_name=field_name,
            value=value
        )

    paths = []
    for item in value:
        if not isinstance(item, (str, Path)) or not str(item).strip():
            raise ValidationError(
                f"{field_name} entries must be non-empty paths, got {item!r}",
                field_name=field_name,
                value=value
            )
        paths.append(str(item).strip())
    return paths


def validate_enum_choice(
    value: Any,
    choices: List[str],
    field_name: str = "value",
    case_sensitive: bool = True
) -> str:
    """
    Validate that a value is one of the allowed choices.

    Args:
        value: Value to validate
        choices: List of allowed choices
        field_name: Name of the field being validated
        case_sensitive: Whether the comparison should be case-sensitive

    Returns:
        Validated choice, in the spelling used by ``choices``

    Raises:
        ValidationError: If value is not in choices
    """
    str_value = str(value)

    if case_sensitive:
        if str_value not in choices:
            raise ValidationError(
                f"{field_name} must be one of {choices}, got {value}",
                field_name=field_name,
                value=value
            )
        return str_value

    lower_choices = [choice.lower() for choice in choices]
    lower_value = str_value.lower()
    if lower_value not in lower_choices:
        raise ValidationError(
            f"{field_name} must be one of {choices}, got {value}",
            field_name=field_name,
            value=value
        )
    return choices[lower_choices.index(lower_value)]


def validate_bool(value: Any, field_name: str = "value") -> bool:
    """Validate a boolean flag, accepting the usual string spellings."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off", ""):
            return False
    raise ValidationError(
        f"{field_name} must be a boolean, got {value}",
        field_name=field_name,
        value=value
    )


def validate_non_negative_float(
    value: Any,
    max_value: Optional[float] = None,
    field_name: str = "value"
) -> float:
    """
    Validate that a value is a float >= 0.

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        float_value = float(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    if float_value < 0:
        raise ValidationError(
            f"{field_name} must be >= 0, got {float_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and float_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    return float_value
