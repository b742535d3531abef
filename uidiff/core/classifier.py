from __future__ import annotations

import logging

from uidiff.config.schema import DiffConfig
from uidiff.core.models import Change, ChangeType, Classification, ElementSnapshot, MatchResult
from uidiff.utils.scoring import edit_similarity, map_difference

logger = logging.getLogger(__name__)

STRUCTURAL_CHANGE_MAGNITUDE = 0.9
ATTRIBUTE_CHANGE_MAGNITUDE = 0.5
VISIBILITY_PROPERTIES = ("display", "visibility")

_DIMENSION_KEYWORDS = ("width", "height", "margin", "padding", "border")
_DIMENSION_PROPERTIES = ("top", "left", "bottom", "right", "position")
_TYPOGRAPHY_KEYWORDS = ("font", "text", "line-height", "letter-spacing")
_COLOR_KEYWORDS = ("color", "background")


def style_category(name: str) -> str:
    if any(keyword in name for keyword in _DIMENSION_KEYWORDS) or name in _DIMENSION_PROPERTIES:
        return "layout"
    if any(keyword in name for keyword in _TYPOGRAPHY_KEYWORDS):
        return "typography"
    if any(keyword in name for keyword in _COLOR_KEYWORDS):
        return "color"
    if name in ("opacity", "display", "visibility", "z-index"):
        return "visibility"
    return "other"


class ChangeClassifier:
    """Turns a match result into typed, severity-labelled change records."""

    def __init__(self, config: DiffConfig | None = None) -> None:
        self.config = config or DiffConfig()
        self.settings = self.config.classification
        self.thresholds = self.settings.thresholds

    def classify(self, match_result: MatchResult) -> list[Change]:
        changes: list[Change] = []
        for baseline, current, confidence in match_result.matched_pairs():
            changes.extend(self.detect_pair_changes(baseline, current, confidence))
        for element in match_result.removed:
            changes.append(self._structural_change(element, ChangeType.ELEMENT_REMOVED))
        for element in match_result.added:
            changes.append(self._structural_change(element, ChangeType.ELEMENT_ADDED))

        for change in changes:
            change.classification = self.classify_change(change)
        logger.info(
            "Detected %d changes (%d critical, %d cosmetic, %d noise)",
            len(changes),
            sum(1 for change in changes if change.classification == Classification.CRITICAL),
            sum(1 for change in changes if change.classification == Classification.COSMETIC),
            sum(1 for change in changes if change.classification == Classification.NOISE),
        )
        return changes

    def detect_pair_changes(
        self,
        baseline: ElementSnapshot,
        current: ElementSnapshot,
        confidence: float,
    ) -> list[Change]:
        changes: list[Change] = []
        selector = baseline.selector or current.selector or ""

        style_keys = map_difference(baseline.styles, current.styles)
        if style_keys:
            largest = max(len(baseline.styles), len(current.styles))
            changes.append(
                Change(
                    element=selector,
                    property="styles",
                    change_type=ChangeType.CSS_MODIFICATION,
                    old_value=_serialize(baseline.styles, style_keys),
                    new_value=_serialize(current.styles, style_keys),
                    magnitude=min(1.0, len(style_keys) / largest),
                    match_confidence=confidence,
                    element_id=baseline.element_id,
                    changed_properties=tuple(style_keys),
                )
            )

        old_text = baseline.text or ""
        new_text = current.text or ""
        if old_text != new_text:
            changes.append(
                Change(
                    element=selector,
                    property="text",
                    change_type=ChangeType.TEXT_MODIFICATION,
                    old_value=baseline.text,
                    new_value=current.text,
                    magnitude=1.0 - edit_similarity(old_text, new_text),
                    match_confidence=confidence,
                    element_id=baseline.element_id,
                )
            )

        attribute_keys = map_difference(baseline.attributes, current.attributes)
        if attribute_keys:
            changes.append(
                Change(
                    element=selector,
                    property="attributes",
                    change_type=ChangeType.ATTRIBUTE_MODIFICATION,
                    old_value=_serialize(baseline.attributes, attribute_keys),
                    new_value=_serialize(current.attributes, attribute_keys),
                    magnitude=ATTRIBUTE_CHANGE_MAGNITUDE,
                    match_confidence=confidence,
                    element_id=baseline.element_id,
                    changed_properties=tuple(attribute_keys),
                )
            )
        return changes

    @staticmethod
    def _structural_change(element: ElementSnapshot, change_type: ChangeType) -> Change:
        removed = change_type == ChangeType.ELEMENT_REMOVED
        return Change(
            element=element.selector or "",
            property="element",
            change_type=change_type,
            old_value=element.tag_name if removed else None,
            new_value=None if removed else element.tag_name,
            magnitude=STRUCTURAL_CHANGE_MAGNITUDE,
            match_confidence=1.0,
            element_id=element.element_id,
        )

    def classify_change(self, change: Change) -> Classification:
        """Applies the severity policies in order; the first one that applies wins."""

        if change.change_type.is_structural:
            return Classification.CRITICAL

        names = [change.property, *change.changed_properties]
        if change.change_type == ChangeType.ATTRIBUTE_MODIFICATION and any(
            self._is_accessibility_attribute(name) for name in change.changed_properties
        ):
            return Classification.CRITICAL

        if any(name.lower() in VISIBILITY_PROPERTIES for name in names):
            return Classification.CRITICAL

        if change.magnitude >= self._critical_threshold(change):
            return Classification.CRITICAL

        for rule in self.settings.rules:
            if rule.matches(change):
                return rule.classification

        if change.magnitude >= self._cosmetic_threshold(change):
            return Classification.COSMETIC
        return Classification.NOISE

    def _is_accessibility_attribute(self, name: str) -> bool:
        # Whole name, or a dashed family such as aria-*.
        normalized = name.lower()
        return any(
            normalized == keyword or normalized.startswith(f"{keyword}-")
            for keyword in (keyword.lower() for keyword in self.settings.accessibility_keywords)
        )

    def _critical_threshold(self, change: Change) -> float:
        if change.change_type == ChangeType.TEXT_MODIFICATION:
            return self.thresholds.text_critical
        if change.change_type == ChangeType.ATTRIBUTE_MODIFICATION:
            return self.thresholds.attribute_critical
        return self.thresholds.style_critical

    def _cosmetic_threshold(self, change: Change) -> float:
        if change.change_type == ChangeType.TEXT_MODIFICATION:
            return self.thresholds.text_cosmetic
        if change.change_type == ChangeType.ATTRIBUTE_MODIFICATION:
            return self.thresholds.attribute_cosmetic
        categories = {style_category(name) for name in change.changed_properties}
        if categories == {"color"}:
            return self.thresholds.color_cosmetic
        if "layout" in categories:
            return self.thresholds.layout_cosmetic
        return self.thresholds.style_cosmetic


def rank_changes(changes: list[Change], severity_order: list[Classification] | None = None) -> list[Change]:
    """Orders changes by severity, then by magnitude; ties keep detection order."""

    order = severity_order or list(Classification)
    position = {label: index for index, label in enumerate(order)}
    return sorted(changes, key=lambda change: (position.get(change.classification, len(order)), -change.magnitude))


def _serialize(values: dict[str, str], keys: list[str]) -> str | None:
    present = [f"{key}={values[key]}" for key in keys if key in values]
    return "; ".join(present) if present else None
