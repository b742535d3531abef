from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any

from uidiff.config.schema import DiffConfig
from uidiff.core.classifier import ChangeClassifier, rank_changes
from uidiff.core.matcher import ElementMatcher
from uidiff.core.models import Change, Classification, ElementSnapshot, MatchResult
from uidiff.core.structure import StructuralAnalysis, StructuralAnalyzer
from uidiff.logging.artifacts import SnapshotStore
from uidiff.logging.audit import ComparisonAuditLogger

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ComparisonResult:
    match_result: MatchResult
    changes: list[Change] = field(default_factory=list)
    baseline_analysis: StructuralAnalysis | None = None
    current_analysis: StructuralAnalysis | None = None
    processing_seconds: float = 0.0

    def changes_of(self, classification: Classification) -> list[Change]:
        return [change for change in self.changes if change.classification == classification]

    def summary(self) -> dict[str, Any]:
        counts = {label.value: len(self.changes_of(label)) for label in Classification}
        return {
            "baseline_elements": len(self.match_result.baseline),
            "current_elements": len(self.match_result.current),
            "matched": len(self.match_result.pairs),
            "added": len(self.match_result.added),
            "removed": len(self.match_result.removed),
            "total_changes": len(self.changes),
            **counts,
        }


class SnapshotComparator:
    """Runs matching, classification, structural context and ranking in order."""

    def __init__(self, config: DiffConfig | None = None) -> None:
        self.config = config or DiffConfig()
        self.matcher = ElementMatcher(self.config)
        self.classifier = ChangeClassifier(self.config)
        self.analyzer = StructuralAnalyzer(self.config)

    def compare(self, baseline: list[ElementSnapshot], current: list[ElementSnapshot]) -> ComparisonResult:
        started = time.perf_counter()
        match_result = self.matcher.match_elements(baseline, current)
        changes = self.classifier.classify(match_result)

        result = ComparisonResult(match_result=match_result)
        if self.config.flags.enable_structural_analysis:
            result.baseline_analysis = self.analyzer.analyze_structure(list(match_result.baseline.values()))
            result.current_analysis = self.analyzer.analyze_structure(list(match_result.current.values()))
            changes = self.analyzer.contextualize(changes, result.baseline_analysis, result.current_analysis)
        else:
            logger.info("Structural analysis disabled, keeping classifier labels")

        result.changes = rank_changes(changes, self.config.classification.severity_order)
        result.processing_seconds = time.perf_counter() - started
        logger.info(
            "Comparison finished in %.1f ms: %s",
            result.processing_seconds * 1000,
            ", ".join(f"{key}={value}" for key, value in result.summary().items()),
        )
        return result


def compare_snapshot_files(
    store: SnapshotStore,
    config: DiffConfig | None = None,
    audit_logger: ComparisonAuditLogger | None = None,
) -> ComparisonResult:
    """Compares the persisted baseline and current snapshots and saves the changes."""

    config = config or DiffConfig()
    baseline = store.read_baseline()
    current = store.read_current()
    result = SnapshotComparator(config).compare(baseline, current)
    store.write_changes(result.changes)
    if audit_logger is not None:
        audit_logger.write(result, label="compare-only")
    return result
