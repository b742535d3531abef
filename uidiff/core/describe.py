from __future__ import annotations

import re
from dataclasses import dataclass

from uidiff.core.models import Change, ChangeType
from uidiff.utils.selectors import split_compounds

RGB_PATTERN = re.compile(r"rgba?\(\s*(\d+),\s*(\d+),\s*(\d+)")
TAG_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9-]*")

COLOR_NAMES = {
    (66, 133, 244): "Blue",
    (52, 168, 83): "Green",
    (255, 0, 0): "Red",
    (255, 255, 255): "White",
    (0, 0, 0): "Black",
    (255, 165, 0): "Orange",
    (255, 255, 0): "Yellow",
    (128, 0, 128): "Purple",
}
TAG_KINDS = {
    "h1": "heading",
    "h2": "heading",
    "h3": "heading",
    "p": "paragraph",
    "a": "link",
    "img": "image",
    "button": "button",
    "div": "div",
    "header": "header",
    "footer": "footer",
    "nav": "navigation",
    "input": "input",
}
DEFAULT_CONFIDENCE = {
    ChangeType.CSS_MODIFICATION: 0.9,
    ChangeType.TEXT_MODIFICATION: 0.95,
    ChangeType.ELEMENT_ADDED: 1.0,
    ChangeType.ELEMENT_REMOVED: 1.0,
}
NAMED_STYLES = (
    ("font-size", "Font size"),
    ("border-radius", "Border radius"),
    ("width", "Width"),
    ("height", "Height"),
)


@dataclass(slots=True, frozen=True)
class ChangeSummary:
    element: str
    summary: str
    details: str
    impact: str
    confidence: float
    change_type: ChangeType


def describe_change(change: Change) -> ChangeSummary:
    """Builds a readable description of one detected change."""

    confidence = _confidence(change)
    kind = element_kind(change.element)
    if change.change_type == ChangeType.CSS_MODIFICATION:
        summary, details, impact = _describe_styles(change, kind)
    elif change.change_type == ChangeType.TEXT_MODIFICATION:
        summary = "Text content changed"
        details = f"Text changed from '{_truncate(change.old_value)}' to '{_truncate(change.new_value)}'"
        impact = "Content change - may affect user understanding"
    elif change.change_type == ChangeType.ATTRIBUTE_MODIFICATION:
        names = ", ".join(change.changed_properties) or change.property
        summary = f"Attributes changed: {names}"
        details = f"Attributes of the {kind} changed from '{change.old_value or ''}' to '{change.new_value or ''}'"
        impact = "Markup change - may affect behaviour or accessibility"
    elif change.change_type == ChangeType.ELEMENT_ADDED:
        summary = "New element added"
        details = f"A new {kind} element was added to the page"
        impact = "Content addition - may affect layout"
    else:
        summary = "Element removed"
        details = f"The {kind} element was removed from the page"
        impact = "Content removal - may affect layout"
    return ChangeSummary(change.element, summary, details, impact, confidence, change.change_type)


def _describe_styles(change: Change, kind: str) -> tuple[str, str, str]:
    old_styles = parse_declarations(change.old_value)
    new_styles = parse_declarations(change.new_value)
    descriptions: list[str] = []
    impact = "Visual change"

    old_color = describe_color(old_styles.get("background-color"))
    new_color = describe_color(new_styles.get("background-color"))
    if old_color != new_color:
        descriptions.append(f"Background color changed from {old_color} to {new_color}")
        impact = "Color change - high visual impact"

    for name, label in NAMED_STYLES:
        old = old_styles.get(name, "unknown")
        new = new_styles.get(name, "unknown")
        if old != new:
            descriptions.append(f"{label} changed from {old} to {new}")
            if name == "font-size":
                impact = "Typography change - affects readability"

    old_shadow = _has_shadow(old_styles)
    new_shadow = _has_shadow(new_styles)
    if new_shadow and not old_shadow:
        descriptions.append("Box shadow effect added")
        impact = "Visual enhancement - shadow effect added"
    elif old_shadow and not new_shadow:
        descriptions.append("Box shadow effect removed")

    if not descriptions:
        names = ", ".join(change.changed_properties)
        return "Style modified", f"CSS properties changed: {names}" if names else "CSS properties changed", impact
    if len(descriptions) == 1:
        return descriptions[0], f"Single style change detected in {kind}", impact
    return f"{len(descriptions)} style changes", "Multiple changes: " + ", ".join(descriptions), impact


def parse_declarations(value: str | None) -> dict[str, str]:
    """Parses the "name=value; name=value" form used by style and attribute changes."""

    declarations: dict[str, str] = {}
    if not value:
        return declarations
    for part in value.split("; "):
        name, separator, rest = part.partition("=")
        if separator:
            declarations[name.strip()] = rest.strip()
    return declarations


def describe_color(value: str | None) -> str:
    if not value:
        return "unknown"
    match = RGB_PATTERN.search(value)
    if match is None:
        return value
    rgb = tuple(int(channel) for channel in match.groups())
    hex_value = "#{:02X}{:02X}{:02X}".format(*rgb)
    name = COLOR_NAMES.get(rgb)
    return f"{name} ({hex_value})" if name else hex_value


def element_kind(selector: str | None) -> str:
    compounds = split_compounds(selector)
    if not compounds:
        return "element"
    match = TAG_PATTERN.match(compounds[-1])
    if match is None:
        return "element"
    return TAG_KINDS.get(match.group(0).lower(), "element")


def _has_shadow(styles: dict[str, str]) -> bool:
    shadow = styles.get("box-shadow")
    return bool(shadow) and shadow != "none"


def _confidence(change: Change) -> float:
    if change.match_confidence is not None and change.match_confidence > 0.1:
        return change.match_confidence
    return DEFAULT_CONFIDENCE.get(change.change_type, 0.7)


def _truncate(text: str | None) -> str:
    if text is None:
        return ""
    return text[:47] + "..." if len(text) > 50 else text
