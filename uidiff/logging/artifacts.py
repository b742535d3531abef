from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from uidiff.config.schema import OutputSettings
from uidiff.core.exceptions import SnapshotFormatError
from uidiff.core.models import Change, ElementSnapshot, assign_ids

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Reads and writes element snapshots and change lists as JSON files."""

    def __init__(self, root: str | Path = "artifacts", output: OutputSettings | None = None) -> None:
        self.root = Path(root)
        self.output = output or OutputSettings()
        self.root.mkdir(parents=True, exist_ok=True)

    @property
    def baseline_path(self) -> Path:
        return self.root / self.output.baseline_file

    @property
    def current_path(self) -> Path:
        return self.root / self.output.current_file

    @property
    def changes_path(self) -> Path:
        return self.root / self.output.changes_file

    def write_snapshot(self, name: str, elements: list[ElementSnapshot]) -> Path:
        path = self.root / name
        path.write_text(json.dumps([element.to_dict() for element in elements], indent=2), encoding="utf-8")
        logger.info("Saved %d elements to %s", len(elements), path)
        return path

    def read_snapshot(self, name: str, prefix: str = "e") -> list[ElementSnapshot]:
        path = self.root / name
        records = self._read_array(path)
        elements = assign_ids([record for record in records if isinstance(record, dict)], prefix)
        if len(elements) != len(records):
            logger.warning("Skipped %d non-object records in %s", len(records) - len(elements), path)
        logger.info("Loaded %d elements from %s", len(elements), path)
        return elements

    def read_baseline(self) -> list[ElementSnapshot]:
        return self.read_snapshot(self.output.baseline_file, prefix="b")

    def read_current(self) -> list[ElementSnapshot]:
        return self.read_snapshot(self.output.current_file, prefix="c")

    def write_changes(self, changes: list[Change]) -> Path:
        self.changes_path.write_text(
            json.dumps([change.to_dict() for change in changes], indent=2),
            encoding="utf-8",
        )
        logger.info("Saved %d changes to %s", len(changes), self.changes_path)
        return self.changes_path

    def read_changes(self) -> list[Change]:
        records = self._read_array(self.changes_path)
        try:
            return [Change.from_dict(record) for record in records]
        except (KeyError, ValueError, TypeError, AttributeError) as exc:
            raise SnapshotFormatError(f"Malformed change record in {self.changes_path}: {exc}") from exc

    @staticmethod
    def _read_array(path: Path) -> list[Any]:
        if not path.exists():
            raise SnapshotFormatError(f"Snapshot file not found: {path}")
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise SnapshotFormatError(f"Invalid JSON in {path}: {exc}") from exc
        if not isinstance(payload, list):
            raise SnapshotFormatError(f"Expected a JSON array in {path}, got {type(payload).__name__}")
        return payload
