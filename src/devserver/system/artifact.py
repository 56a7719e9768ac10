"""
Artifact path resolution.

Determines which compiled binary the supervisor runs. An explicitly
configured path wins; otherwise the cargo workspace metadata is queried for
the target directory and the root package's binary name.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from ..models.config import DevServerConfig
from ..validation import ArtifactResolutionError
from .commands import run_command

logger = logging.getLogger(__name__)


def _root_package(metadata: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    resolve = metadata.get("resolve") or {}
    root_id = resolve.get("root")
    if not root_id:
        return None
    for package in metadata.get("packages", []):
        if package.get("id") == root_id:
            return package
    return None


def binary_name(metadata: Dict[str, Any], target: Optional[str] = None) -> str:
    """
    Pick the binary name from ``cargo metadata`` output.

    A requested sub-target is used as-is. Otherwise the root package's only
    ``bin`` target is used, falling back to the package name.

    Raises:
        ArtifactResolutionError: If the metadata has no root package
    """
    if target:
        return target

    package = _root_package(metadata)
    if package is None:
        raise ArtifactResolutionError(
            "cargo metadata has no root package; pass the binary path explicitly"
        )

    bins = [
        t["name"] for t in package.get("targets", [])
        if "bin" in t.get("kind", [])
    ]
    if len(bins) == 1:
        return bins[0]
    return package["name"]


def artifact_from_metadata(metadata: Dict[str, Any], config: DevServerConfig) -> Path:
    """Compute the artifact path from parsed ``cargo metadata`` output."""
    target_dir = metadata.get("target_directory")
    if not target_dir:
        raise ArtifactResolutionError("cargo metadata did not report a target_directory")
    return Path(target_dir) / config.profile / binary_name(metadata, config.target)


def query_cargo_metadata(config: DevServerConfig) -> Dict[str, Any]:
    """Run ``cargo metadata`` in the working directory and parse its JSON."""
    command = [config.build_program, "metadata", "--format-version", "1"]
    returncode, stdout, stderr = run_command(command, config.working_dir)
    if returncode != 0:
        raise ArtifactResolutionError(
            f"'{' '.join(command)}' failed with exit code {returncode}: {stderr.strip()}"
        )
    try:
        return json.loads(stdout)
    except json.JSONDecodeError as e:
        raise ArtifactResolutionError(f"cargo metadata returned invalid JSON: {e}") from e


def resolve_artifact_path(config: DevServerConfig) -> Path:
    """
    Return the absolute path of the binary to supervise.

    The path may not exist yet when nothing has been built; callers that need
    it to exist use ``canonical_artifact_path``.

    Raises:
        ArtifactResolutionError: If the path cannot be determined
    """
    if config.artifact_path is not None:
        path = Path(config.artifact_path)
        if not path.is_absolute():
            path = config.working_dir / path
    else:
        path = artifact_from_metadata(query_cargo_metadata(config), config)

    logger.debug(f"Resolved artifact path: {path}")
    return path


def canonical_artifact_path(path: Path) -> Path:
    """
    Canonicalize an artifact path, following symlinks.

    Raises:
        ArtifactResolutionError: If the artifact does not exist
    """
    try:
        return path.resolve(strict=True)
    except (OSError, RuntimeError) as e:
        raise ArtifactResolutionError(f"Artifact {path} does not exist: {e}") from e
