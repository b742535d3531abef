from __future__ import annotations

from uidiff.core.models import BoundingBox, ElementSnapshot, MatchResult


def make_element(
    element_id: str,
    tag: str | None = "div",
    text: str | None = None,
    selector: str | None = None,
    attributes: dict[str, str] | None = None,
    styles: dict[str, str] | None = None,
    position: BoundingBox | None = None,
) -> ElementSnapshot:
    return ElementSnapshot(
        element_id=element_id,
        tag_name=tag,
        text=text,
        selector=selector,
        attributes=dict(attributes or {}),
        styles=dict(styles or {}),
        position=position,
        in_viewport=position is not None,
    )


def renumber(elements: list[ElementSnapshot], prefix: str) -> list[ElementSnapshot]:
    """Copies of ``elements`` carrying fresh ids, for comparing a list with itself."""

    return [
        make_element(
            f"{prefix}-{index}",
            tag=element.tag_name,
            text=element.text,
            selector=element.selector,
            attributes=element.attributes,
            styles=element.styles,
            position=element.position,
        )
        for index, element in enumerate(elements)
    ]


def paired(baseline: ElementSnapshot, current: ElementSnapshot, confidence: float = 1.0) -> MatchResult:
    result = MatchResult(baseline={baseline.element_id: baseline}, current={current.element_id: current})
    result.pair(baseline.element_id, current.element_id, confidence)
    return result


def list_page(prefix: str, items: int) -> list[ElementSnapshot]:
    elements = [make_element(f"{prefix}-0", tag="ul", selector="ul.items", attributes={"class": "items"})]
    for index in range(1, items + 1):
        elements.append(
            make_element(
                f"{prefix}-{index}",
                tag="li",
                text=f"Item {index}",
                selector=f"ul.items > li:nth-of-type({index})",
            )
        )
    return elements
