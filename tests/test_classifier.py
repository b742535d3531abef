from __future__ import annotations

import pytest

from uidiff.config.schema import DiffConfig
from uidiff.core.classifier import ChangeClassifier, rank_changes, style_category
from uidiff.core.models import Change, ChangeType, Classification, MatchResult

from tests.helpers import make_element, paired

TEN_STYLES = {
    "width": "100px",
    "height": "40px",
    "color": "rgb(0, 0, 0)",
    "background-color": "rgb(255, 255, 255)",
    "font-size": "14px",
    "font-weight": "400",
    "margin": "0px",
    "padding": "8px",
    "opacity": "1",
    "cursor": "pointer",
}


def button(element_id: str, **overrides):
    fields = {
        "tag": "button",
        "text": "Continue",
        "selector": "div.actions > button.primary",
        "attributes": {"class": "primary"},
        "styles": {"background-color": "rgb(66, 133, 244)", "color": "rgb(255, 255, 255)"},
    }
    fields.update(overrides)
    return make_element(element_id, **fields)


def classify(baseline, current, config=None, confidence=1.0):
    return ChangeClassifier(config or DiffConfig()).classify(paired(baseline, current, confidence))


def test_unchanged_pair_yields_nothing():
    assert classify(button("b-0"), button("c-0")) == []


def test_background_color_change_is_cosmetic():
    changes = classify(
        button("b-0"),
        button("c-0", styles={"background-color": "rgb(52, 168, 83)", "color": "rgb(255, 255, 255)"}),
    )
    assert len(changes) == 1
    change = changes[0]
    assert change.change_type == ChangeType.CSS_MODIFICATION
    assert change.property == "styles"
    assert change.magnitude == 0.5
    assert change.changed_properties == ("background-color",)
    assert change.old_value == "background-color=rgb(66, 133, 244)"
    assert change.new_value == "background-color=rgb(52, 168, 83)"
    assert change.classification == Classification.COSMETIC
    assert change.element_id == "b-0"


def test_style_magnitude_uses_larger_map():
    baseline = button("b-0", styles={"color": "red", "width": "10px", "height": "10px"})
    current = button("c-0", styles={"color": "blue", "width": "10px", "height": "10px", "margin": "4px"})
    (change,) = classify(baseline, current)
    assert change.changed_properties == ("color", "margin")
    assert change.magnitude == pytest.approx(0.5)


def test_display_change_is_critical_regardless_of_magnitude():
    baseline = button("b-0", styles={**TEN_STYLES, "display": "block"})
    current = button("c-0", styles={**TEN_STYLES, "display": "none"})
    (change,) = classify(baseline, current)
    assert change.magnitude < 0.1
    assert change.classification == Classification.CRITICAL


def test_layout_threshold_is_inclusive():
    current = button("c-0", styles={**TEN_STYLES, "width": "120px"})
    for _ in range(3):
        (change,) = classify(button("b-0", styles=TEN_STYLES), current)
        assert change.magnitude == 0.1
        assert change.classification == Classification.COSMETIC


def test_small_color_change_is_noise():
    current = button("c-0", styles={**TEN_STYLES, "color": "rgb(10, 10, 10)"})
    (change,) = classify(button("b-0", styles=TEN_STYLES), current)
    assert change.classification == Classification.NOISE


def test_large_style_change_is_critical():
    baseline = button("b-0", styles={"color": "red", "font-size": "12px"})
    current = button("c-0", styles={"color": "blue", "font-size": "16px"})
    (change,) = classify(baseline, current)
    assert change.magnitude == 1.0
    assert change.classification == Classification.CRITICAL


def test_text_change_magnitude_follows_edit_distance():
    heading = {"tag": "h1", "selector": "header > h1", "attributes": {}, "styles": {}}
    (change,) = classify(button("b-0", text="Welcome", **heading), button("c-0", text="Welcome Back", **heading), confidence=0.7)
    assert change.change_type == ChangeType.TEXT_MODIFICATION
    assert change.magnitude == pytest.approx(5 / 12)
    assert change.match_confidence == 0.7
    assert change.classification == Classification.COSMETIC

    strict = DiffConfig.model_validate({"classification": {"thresholds": {"text_critical": 0.4}}})
    (change,) = classify(button("b-0", text="Welcome", **heading), button("c-0", text="Welcome Back", **heading), strict)
    assert change.classification == Classification.CRITICAL


def test_text_threshold_equality_is_stable():
    config = DiffConfig.model_validate({"classification": {"thresholds": {"text_critical": 0.25}}})
    labels = {classify(button("b-0", text="abcd"), button("c-0", text="abce"), config)[0].classification for _ in range(5)}
    assert labels == {Classification.CRITICAL}


def test_missing_text_equals_empty_text():
    assert classify(button("b-0", text=None), button("c-0", text="")) == []


def test_aria_attribute_change_is_critical():
    baseline = button("b-0", attributes={"class": "primary", "aria-label": "Close"})
    current = button("c-0", attributes={"class": "primary", "aria-label": "Close dialog"})
    (change,) = classify(baseline, current)
    assert change.change_type == ChangeType.ATTRIBUTE_MODIFICATION
    assert change.changed_properties == ("aria-label",)
    assert change.magnitude == 0.5
    assert change.classification == Classification.CRITICAL


def test_plain_attribute_change_is_cosmetic():
    (change,) = classify(button("b-0"), button("c-0", attributes={"class": "primary large"}))
    assert change.classification == Classification.COSMETIC


def test_configured_rules_apply_before_cosmetic_threshold():
    baseline = button("b-0", styles={**TEN_STYLES})
    current = button("c-0", styles={**TEN_STYLES, "font-size": "16px", "font-weight": "700"})
    (change,) = classify(baseline, current)
    assert change.classification == Classification.COSMETIC

    config = DiffConfig.model_validate(
        {"classification": {"rules": [{"kind": "property_contains", "value": "font", "classification": "critical"}]}}
    )
    (change,) = classify(baseline, current, config)
    assert change.classification == Classification.CRITICAL


def test_rules_do_not_override_critical_policies():
    config = DiffConfig.model_validate(
        {"classification": {"rules": [{"kind": "change_type_equals", "change_type": "ELEMENT_ADDED", "classification": "noise"}]}}
    )
    result = MatchResult(baseline={}, current={"c-0": button("c-0")})
    (change,) = ChangeClassifier(config).classify(result)
    assert change.classification == Classification.CRITICAL


def test_unmatched_elements_become_structural_changes():
    removed = make_element("b-0", tag="p", text="Old", selector="main > p")
    added = make_element("c-0", tag="img", selector="main > img.hero")
    result = MatchResult(baseline={"b-0": removed}, current={"c-0": added})
    changes = ChangeClassifier(DiffConfig()).classify(result)
    assert [change.change_type for change in changes] == [ChangeType.ELEMENT_REMOVED, ChangeType.ELEMENT_ADDED]
    for change in changes:
        assert change.magnitude == 0.9
        assert change.confidence == 1.0
        assert change.classification == Classification.CRITICAL
    assert changes[0].old_value == "p"
    assert changes[1].new_value == "img"


def test_rank_changes_orders_by_severity_then_magnitude():
    def change(label, magnitude, name):
        return Change(name, "text", ChangeType.TEXT_MODIFICATION, "a", "b", magnitude, classification=label)

    changes = [
        change(Classification.NOISE, 0.05, "n"),
        change(Classification.COSMETIC, 0.2, "c1"),
        change(Classification.CRITICAL, 0.6, "x1"),
        change(Classification.COSMETIC, 0.4, "c2"),
        change(Classification.CRITICAL, 0.6, "x2"),
    ]
    assert [item.element for item in rank_changes(changes)] == ["x1", "x2", "c2", "c1", "n"]
    reversed_order = [Classification.NOISE, Classification.COSMETIC, Classification.CRITICAL]
    assert [item.element for item in rank_changes(changes, reversed_order)] == ["n", "c2", "c1", "x1", "x2"]


def test_style_category():
    assert style_category("margin-top") == "layout"
    assert style_category("font-size") == "typography"
    assert style_category("background-color") == "color"
    assert style_category("opacity") == "visibility"
    assert style_category("cursor") == "other"


@pytest.mark.parametrize("name", ["data-alternate", "data-role-id", "altitude"])
def test_lookalike_attribute_names_are_not_accessibility(name):
    baseline = button("b-0", attributes={"class": "primary", name: "1"})
    current = button("c-0", attributes={"class": "primary", name: "2"})
    (change,) = classify(baseline, current)
    assert change.classification == Classification.COSMETIC


@pytest.mark.parametrize("name", ["alt", "role", "aria-hidden", "ARIA-Label"])
def test_accessibility_attribute_names(name):
    baseline = button("b-0", attributes={"class": "primary", name: "1"})
    current = button("c-0", attributes={"class": "primary", name: "2"})
    (change,) = classify(baseline, current)
    assert change.classification == Classification.CRITICAL
