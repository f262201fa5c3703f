"""Centralized path utilities for SnapShare config and temp files."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Optional
from uuid import uuid4

from snapshare.schemas.artifact import ArtifactKind

CONFIG_ENV_VAR = "SNAPSHARE_CONFIG_DIR"
CONFIG_FILE_NAME = "snapshare.config.json"
TEMP_DIR_NAME = "snapshare"

_EXTENSIONS = {
    ArtifactKind.IMAGE: ".png",
    ArtifactKind.VIDEO: ".mp4",
}


def resolve_config_dir(config_dir: Optional[str] = None) -> Path:
    """Return the directory holding the targets file.

    Priority:
        1. Explicit ``config_dir`` argument.
        2. SNAPSHARE_CONFIG_DIR environment variable.
        3. ``~/.config/snapshare``.
    """
    if config_dir:
        return Path(config_dir).expanduser().resolve()
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser().resolve()
    return Path.home() / ".config" / "snapshare"


def config_file_path(config_dir: Optional[str] = None) -> Path:
    return resolve_config_dir(config_dir) / CONFIG_FILE_NAME


def ensure_directory(path: Path) -> Path:
    """Create the directory if it does not exist and return it."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def temp_dir(base: Optional[Path] = None) -> Path:
    """Directory where fresh captures are written."""
    root = Path(base) if base else Path(tempfile.gettempdir())
    return ensure_directory(root / TEMP_DIR_NAME)


def new_artifact_path(kind: ArtifactKind, base: Optional[Path] = None) -> Path:
    """Return a unique, not-yet-existing temp path for a new capture."""
    prefix = "screenshot" if kind == ArtifactKind.IMAGE else "recording"
    return temp_dir(base) / f"{prefix}-{uuid4().hex[:12]}{_EXTENSIONS[kind]}"
