from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterator

from uidiff.core.exceptions import MatchingInvariantError


class ChangeType(str, Enum):
    CSS_MODIFICATION = "CSS_MODIFICATION"
    TEXT_MODIFICATION = "TEXT_MODIFICATION"
    ATTRIBUTE_MODIFICATION = "ATTRIBUTE_MODIFICATION"
    ELEMENT_ADDED = "ELEMENT_ADDED"
    ELEMENT_REMOVED = "ELEMENT_REMOVED"

    @property
    def is_structural(self) -> bool:
        return self in (ChangeType.ELEMENT_ADDED, ChangeType.ELEMENT_REMOVED)


class Classification(str, Enum):
    CRITICAL = "critical"
    COSMETIC = "cosmetic"
    NOISE = "noise"


@dataclass(slots=True, frozen=True)
class BoundingBox:
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_dict(cls, payload: dict[str, Any] | None) -> BoundingBox | None:
        if not payload:
            return None
        try:
            return cls(
                x=float(payload.get("x", 0.0)),
                y=float(payload.get("y", 0.0)),
                width=float(payload.get("width", 0.0)),
                height=float(payload.get("height", 0.0)),
            )
        except (TypeError, ValueError):
            return None

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(slots=True, frozen=True)
class Fingerprint:
    identity: str | None
    structural: str | None
    content: str | None
    confidence: float


@dataclass(slots=True, frozen=True)
class ElementSnapshot:
    """One captured element. Immutable for the duration of a comparison."""

    element_id: str
    tag_name: str | None
    text: str | None
    selector: str | None
    attributes: dict[str, str] = field(default_factory=dict)
    styles: dict[str, str] = field(default_factory=dict)
    position: BoundingBox | None = None
    in_viewport: bool = False
    fingerprint: Fingerprint | None = None

    @classmethod
    def from_dict(cls, payload: dict[str, Any], element_id: str) -> ElementSnapshot:
        return cls(
            element_id=str(payload.get("id") or element_id),
            tag_name=payload.get("tagName"),
            text=payload.get("text"),
            selector=payload.get("selector"),
            attributes=dict(payload.get("attributes") or {}),
            styles=dict(payload.get("styles") or {}),
            position=BoundingBox.from_dict(payload.get("position")),
            in_viewport=bool(payload.get("inViewport", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.element_id,
            "tagName": self.tag_name,
            "text": self.text,
            "selector": self.selector,
            "attributes": self.attributes,
            "styles": self.styles,
            "position": self.position.to_dict() if self.position else None,
            "inViewport": self.in_viewport,
        }

    def with_fingerprint(self, fingerprint: Fingerprint) -> ElementSnapshot:
        return replace(self, fingerprint=fingerprint)

    def __str__(self) -> str:
        text = self.text or ""
        preview = text[:27] + "..." if len(text) > 30 else text
        return f"{self.tag_name}[selector={self.selector}, text={preview}]"


def assign_ids(records: list[dict[str, Any]], prefix: str) -> list[ElementSnapshot]:
    """Builds snapshots from raw records, giving each a stable opaque id."""

    elements: list[ElementSnapshot] = []
    seen: set[str] = set()
    for index, record in enumerate(records):
        element = ElementSnapshot.from_dict(record, f"{prefix}-{index}")
        if element.element_id in seen:
            element = replace(element, element_id=f"{prefix}-{index}")
        seen.add(element.element_id)
        elements.append(element)
    return elements


@dataclass(slots=True)
class MatchResult:
    """Partial injective mapping from baseline elements to current elements."""

    baseline: dict[str, ElementSnapshot]
    current: dict[str, ElementSnapshot]
    pairs: dict[str, str] = field(default_factory=dict)
    confidences: dict[str, float] = field(default_factory=dict)
    _claimed: set[str] = field(default_factory=set, repr=False)

    def pair(self, baseline_id: str, current_id: str, confidence: float) -> None:
        if baseline_id in self.pairs:
            raise MatchingInvariantError(f"Baseline element {baseline_id} is already matched")
        if current_id in self._claimed:
            raise MatchingInvariantError(f"Current element {current_id} is already claimed")
        self.pairs[baseline_id] = current_id
        self.confidences[baseline_id] = max(0.0, min(1.0, confidence))
        self._claimed.add(current_id)

    def is_matched(self, baseline_id: str) -> bool:
        return baseline_id in self.pairs

    def is_claimed(self, current_id: str) -> bool:
        return current_id in self._claimed

    def matched_pairs(self) -> Iterator[tuple[ElementSnapshot, ElementSnapshot, float]]:
        for baseline_id, element in self.baseline.items():
            current_id = self.pairs.get(baseline_id)
            if current_id is not None:
                yield element, self.current[current_id], self.confidences[baseline_id]

    @property
    def removed(self) -> list[ElementSnapshot]:
        return [element for element_id, element in self.baseline.items() if element_id not in self.pairs]

    @property
    def added(self) -> list[ElementSnapshot]:
        return [element for element_id, element in self.current.items() if element_id not in self._claimed]

    def to_dict(self) -> dict[str, Any]:
        return {
            "pairs": [
                {"baseline": baseline_id, "current": current_id, "confidence": self.confidences[baseline_id]}
                for baseline_id, current_id in self.pairs.items()
            ],
            "added": [element.element_id for element in self.added],
            "removed": [element.element_id for element in self.removed],
        }


@dataclass(slots=True)
class Change:
    element: str
    property: str
    change_type: ChangeType
    old_value: str | None
    new_value: str | None
    magnitude: float
    match_confidence: float | None = None
    classification: Classification = Classification.NOISE
    element_id: str | None = None
    changed_properties: tuple[str, ...] = ()

    @property
    def confidence(self) -> float:
        return 1.0 if self.match_confidence is None else self.match_confidence

    def to_dict(self) -> dict[str, Any]:
        return {
            "element": self.element,
            "property": self.property,
            "changeType": self.change_type.value,
            "oldValue": self.old_value,
            "newValue": self.new_value,
            "magnitude": self.magnitude,
            "matchConfidence": self.match_confidence,
            "classification": self.classification.value,
            "elementId": self.element_id,
            "changedProperties": list(self.changed_properties),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> Change:
        return cls(
            element=payload.get("element", ""),
            property=payload.get("property", ""),
            change_type=ChangeType(payload["changeType"]),
            old_value=payload.get("oldValue"),
            new_value=payload.get("newValue"),
            magnitude=float(payload.get("magnitude", 0.0)),
            match_confidence=payload.get("matchConfidence"),
            classification=Classification(payload.get("classification", Classification.NOISE.value)),
            element_id=payload.get("elementId"),
            changed_properties=tuple(payload.get("changedProperties") or ()),
        )

    def __str__(self) -> str:
        return (
            f"{self.element}: {self.property} changed from '{_truncate(self.old_value)}' "
            f"to '{_truncate(self.new_value)}' ({self.classification.value}, magnitude: {self.magnitude:.2f})"
        )


def _truncate(value: str | None) -> str:
    if value is None:
        return "null"
    return value[:17] + "..." if len(value) > 20 else value
