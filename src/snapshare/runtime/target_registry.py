"""Target registry: the configuration collaborator of the upload pipeline."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from snapshare.config_loader import (
    default_target,
    export_target,
    import_target,
    load_targets,
    save_targets,
)
from snapshare.schemas import UploadTarget
from snapshare.schemas.upload import new_record_id

logger = logging.getLogger(__name__)


class TargetRegistry:
    """Owns the list of upload targets and the currently selected one.

    Every mutation is persisted immediately. At most one target carries the
    default flag; marking a target default clears it on all others.
    """

    def __init__(self, config_path: Path):
        self.config_path = Path(config_path)
        self.targets: List[UploadTarget] = load_targets(self.config_path)
        if not self.targets:
            logger.info("No upload targets configured; creating default target")
            self.targets = [default_target()]
            self._persist()
        self.selected: Optional[UploadTarget] = self._initial_selection()
        logger.info(
            "Selected upload target: %s (%d configured)",
            self.selected.name if self.selected else "none",
            len(self.targets),
        )

    def _initial_selection(self) -> Optional[UploadTarget]:
        for target in self.targets:
            if target.is_default:
                return target
        return self.targets[0] if self.targets else None

    def _persist(self) -> None:
        save_targets(self.config_path, self.targets)

    def _index_of(self, target_id: str) -> Optional[int]:
        for i, target in enumerate(self.targets):
            if target.id == target_id:
                return i
        return None

    def _clear_other_defaults(self, keep_id: str) -> None:
        self.targets = [
            t if t.id == keep_id or not t.is_default else t.model_copy(update={"is_default": False})
            for t in self.targets
        ]

    def get(self, target_id: str) -> Optional[UploadTarget]:
        index = self._index_of(target_id)
        return self.targets[index] if index is not None else None

    def current(self) -> Optional[UploadTarget]:
        """Return the selected target (used as the pipeline's target provider)."""
        return self.selected

    def add(self, target: UploadTarget) -> UploadTarget:
        self.targets.append(target)
        if target.is_default:
            self._clear_other_defaults(target.id)
        if target.is_default or len(self.targets) == 1:
            self.selected = target
        self._persist()
        return target

    def update(self, target: UploadTarget) -> bool:
        index = self._index_of(target.id)
        if index is None:
            logger.warning("Cannot update unknown upload target %s", target.id)
            return False
        self.targets[index] = target
        if target.is_default:
            self._clear_other_defaults(target.id)
            self.selected = target
        elif self.selected is not None and self.selected.id == target.id:
            self.selected = target
        self._persist()
        return True

    def delete(self, target_id: str) -> bool:
        index = self._index_of(target_id)
        if index is None:
            return False
        del self.targets[index]
        if self.selected is not None and self.selected.id == target_id:
            self.selected = self.targets[0] if self.targets else None
        self._persist()
        return True

    def select(self, target_id: str) -> UploadTarget:
        target = self.get(target_id)
        if target is None:
            raise KeyError(f"Upload target '{target_id}' is not configured")
        self.selected = target
        return target

    def export_target(self, target_id: str, path: Path) -> None:
        target = self.get(target_id)
        if target is None:
            raise KeyError(f"Upload target '{target_id}' is not configured")
        export_target(target, path)

    def import_target(self, path: Path) -> UploadTarget:
        """Import a target file under a fresh id to avoid clashes."""
        imported = import_target(path).model_copy(update={"id": new_record_id()})
        return self.add(imported)
