"""Upload target file loader.

Reads and writes the list of upload targets kept in ``snapshare.config.json``.
JSON is the format written; YAML files (``.yaml``/``.yml``) are accepted on load.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List, Optional

import yaml
from pydantic import ValidationError

from .exceptions import ConfigLoadError
from .schemas import HeaderConfig, UploadTarget

logger = logging.getLogger(__name__)


def default_target() -> UploadTarget:
    """Built-in target created when no configuration exists yet."""
    headers = [
        HeaderConfig(key="Authorization", value="YOUR_AUTH_TOKEN"),
        HeaderConfig(key="x-zipline-max-views", value=""),
        HeaderConfig(key="x-zipline-original-name", value="false"),
        HeaderConfig(key="x-zipline-domain", value="Override Domain"),
        HeaderConfig(key="x-zipline-format", value="empty or gfycat/name/uuid/date/random/"),
    ]
    return UploadTarget(
        name="Zipline Default",
        request_url="https://zipline.domain.com/api/upload",
        file_form_name="file",
        response_url="{{files[0]}}",
        headers=headers,
        is_default=True,
    )


def _read_payload(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return None
    try:
        if path.suffix.lower() in {".yaml", ".yml"}:
            return yaml.safe_load(text)
        return json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigLoadError(path.name, f"Failed to parse: {exc}")


def parse_target(data: Any, file_name: str = "<target>") -> UploadTarget:
    """Validate one raw target record."""
    if not isinstance(data, dict):
        raise ConfigLoadError(file_name, "Target entry must be a mapping")
    try:
        return UploadTarget.model_validate(data)
    except ValidationError as exc:
        raise ConfigLoadError(file_name, f"Invalid target: {exc}")


def load_targets(path: Path) -> List[UploadTarget]:
    """Load all upload targets from ``path``.

    Args:
        path: Targets file (JSON or YAML)

    Returns:
        List of targets, empty when the file does not exist

    Raises:
        ConfigLoadError: If the file exists but cannot be parsed or validated
    """
    path = Path(path)
    if not path.exists():
        logger.info("Targets file %s does not exist", path)
        return []

    try:
        payload = _read_payload(path)
    except OSError as exc:
        raise ConfigLoadError(path.name, str(exc))

    if payload is None:
        return []
    if not isinstance(payload, list):
        raise ConfigLoadError(path.name, "Root must be a list of targets")

    targets: List[UploadTarget] = []
    for i, item in enumerate(payload):
        try:
            targets.append(parse_target(item, path.name))
        except ConfigLoadError as exc:
            raise ConfigLoadError(path.name, f"Invalid target at index {i}: {exc.message}")
    logger.info("Loaded %d upload targets from %s", len(targets), path)
    return targets


def save_targets(path: Path, targets: List[UploadTarget]) -> None:
    """Persist targets as JSON with the camelCase keys of the file format."""
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        data = [target.to_file_dict() for target in targets]
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    except OSError as exc:
        raise ConfigLoadError(path.name, f"Failed to write: {exc}")
    logger.debug("Saved %d upload targets to %s", len(targets), path)


def export_target(target: UploadTarget, path: Path) -> None:
    """Write a single target to its own JSON file."""
    path = Path(path)
    try:
        path.write_text(json.dumps(target.to_file_dict(), indent=2), encoding="utf-8")
    except OSError as exc:
        raise ConfigLoadError(path.name, f"Failed to write: {exc}")


def import_target(path: Path) -> UploadTarget:
    """Read a single exported target; the caller decides its new identity."""
    path = Path(path)
    if not path.exists():
        raise ConfigLoadError(path.name, "File not found")
    try:
        payload: Optional[Any] = _read_payload(path)
    except OSError as exc:
        raise ConfigLoadError(path.name, str(exc))
    return parse_target(payload, path.name)
