"""
Configuration validation.

Turns the merged raw settings into a validated DevServerConfig.
"""

import logging
from pathlib import Path
from typing import Any, Dict

from ..models.config import DevServerConfig
from ..validation import (
    ValidationError,
    validate_bool,
    validate_directory,
    validate_enum_choice,
    validate_host,
    validate_non_negative_float,
    validate_port,
    validate_signal,
    validate_target_name,
    validate_watch_paths,
)

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

KNOWN_KEYS = {
    "host", "port", "watch", "bin", "cwd", "release", "target",
    "signal", "build_program", "coalesce", "debounce", "log_level",
}


def validate_devserver_config(raw: Dict[str, Any]) -> DevServerConfig:
    """
    Validate and create a DevServerConfig from raw settings.

    Args:
        raw: Merged settings keyed like the ``[devserver]`` TOML table

    Returns:
        Validated DevServerConfig instance

    Raises:
        ValidationError: If validation fails
    """
    unknown = set(raw) - KNOWN_KEYS
    if unknown:
        logger.warning(f"Ignoring unknown configuration keys: {', '.join(sorted(unknown))}")

    defaults = DevServerConfig()

    working_dir = validate_directory(raw.get("cwd") or Path.cwd(), field_name="cwd")

    artifact_path = None
    if raw.get("bin"):
        artifact_path = Path(raw["bin"])
        if not artifact_path.is_absolute():
            artifact_path = working_dir / artifact_path

    target = raw.get("target")
    if target is not None:
        target = validate_target_name(target, field_name="target")

    build_program = raw.get("build_program", defaults.build_program)
    if not isinstance(build_program, str) or not build_program.strip():
        raise ValidationError(
            "build_program must be a non-empty string",
            field_name="build_program",
            value=build_program
        )

    return DevServerConfig(
        host=validate_host(raw.get("host", defaults.host)),
        port=validate_port(raw.get("port", defaults.port)),
        watch_paths=tuple(validate_watch_paths(raw.get("watch", list(defaults.watch_paths)))),
        artifact_path=artifact_path,
        working_dir=working_dir,
        release=validate_bool(raw.get("release", defaults.release), field_name="release"),
        target=target,
        restart_signal=validate_signal(raw.get("signal", defaults.restart_signal)),
        build_program=build_program.strip(),
        debounce_seconds=validate_non_negative_float(
            raw.get("debounce", defaults.debounce_seconds), max_value=60.0, field_name="debounce"
        ),
        coalesce_events=validate_bool(raw.get("coalesce", defaults.coalesce_events), field_name="coalesce"),
        log_level=validate_enum_choice(
            raw.get("log_level", defaults.log_level),
            choices=LOG_LEVELS,
            field_name="log_level",
            case_sensitive=False,
        ),
    )
