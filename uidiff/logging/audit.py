from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from uidiff.core.comparator import ComparisonResult


class ComparisonAuditLogger:
    """Appends one JSON line per comparison run."""

    def __init__(self, root: str | Path = "artifacts", filename: str = "comparisons.jsonl") -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self.comparisons_path = self.root / filename

    def write(self, result: ComparisonResult, label: str | None = None) -> dict[str, Any]:
        summary = result.summary()
        seconds = result.processing_seconds
        payload = {
            "timestamp": datetime.now(UTC).isoformat(),
            "label": label,
            **summary,
            "processing_ms": round(seconds * 1000, 3),
            "changes_per_second": round(summary["total_changes"] / seconds, 2) if seconds > 0 else None,
        }
        with self.comparisons_path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(payload) + "\n")
        return payload

    def read(self) -> list[dict[str, Any]]:
        if not self.comparisons_path.exists():
            return []
        with self.comparisons_path.open("r", encoding="utf-8") as handle:
            return [json.loads(line) for line in handle if line.strip()]
