from __future__ import annotations

import pytest

from uidiff.config.schema import DiffConfig
from uidiff.core.exceptions import MatchingInvariantError, MissingInputError
from uidiff.core.matcher import ElementMatcher, extract_price, priced_element_ids
from uidiff.core.models import MatchResult

from tests.helpers import make_element, renumber


def price_tag(element_id: str, text: str):
    return make_element(
        element_id,
        tag="span",
        text=text,
        selector="#product-1 > span.price",
        attributes={"class": "price"},
    )


def test_missing_element_list_fails_fast(default_config):
    with pytest.raises(MissingInputError):
        ElementMatcher(default_config).match_elements(None, [])


def test_identical_elements_match_exactly(default_config):
    baseline = [
        make_element("b-0", tag="h1", text="Welcome", selector="header > h1"),
        make_element("b-1", tag="button", text="Start", selector="header > button.cta", attributes={"class": "cta"}),
    ]
    current = renumber(baseline, "c")
    result = ElementMatcher(default_config).match_elements(baseline, current)
    assert result.pairs == {"b-0": "c-0", "b-1": "c-1"}
    assert set(result.confidences.values()) == {1.0}
    assert result.added == []
    assert result.removed == []


def test_duplicate_fingerprints_pair_in_list_order(default_config):
    baseline = [make_element(f"b-{index}", tag="li", text="Same", selector="ul > li") for index in range(2)]
    current = renumber(baseline, "c")
    result = ElementMatcher(default_config).match_elements(baseline, current)
    assert result.pairs == {"b-0": "c-0", "b-1": "c-1"}


def test_moved_element_is_matched_fuzzily(default_config):
    baseline = [make_element("b-0", tag="button", text="Buy now", selector="div.actions > button.buy", attributes={"class": "buy"})]
    current = [
        make_element(
            "c-0",
            tag="button",
            text="Buy now",
            selector="section.hero > div.actions > button.buy",
            attributes={"class": "buy"},
        )
    ]
    result = ElementMatcher(default_config).match_elements(baseline, current)
    assert result.pairs == {"b-0": "c-0"}
    assert result.confidences["b-0"] == pytest.approx(0.9)


def test_unrelated_elements_stay_unmatched(default_config):
    baseline = [make_element("b-0", tag="p", text="Legacy disclaimer", selector="main > p.legal")]
    current = [make_element("c-0", tag="span", text="Copyright 2026", selector="footer > span")]
    result = ElementMatcher(default_config).match_elements(baseline, current)
    assert result.pairs == {}
    assert [element.element_id for element in result.removed] == ["b-0"]
    assert [element.element_id for element in result.added] == ["c-0"]


def test_missing_signals_are_excluded_from_weighting(default_config):
    matcher = ElementMatcher(default_config)
    assert matcher.match_confidence(make_element("b-0", tag="img"), make_element("c-0", tag="img")) == 1.0
    assert matcher.match_confidence(make_element("b-0", tag="img"), make_element("c-0", tag="svg")) == 0.0
    assert matcher.match_confidence(make_element("b-0", tag=None), make_element("c-0", tag=None)) == 0.0


def test_changed_price_is_matched_semantically(default_config):
    result = ElementMatcher(default_config).match_elements([price_tag("b-0", "$199.99")], [price_tag("c-0", "$149.99")])
    assert result.pairs == {"b-0": "c-0"}
    assert result.confidences["b-0"] == 0.75


def test_semantic_matching_respects_flag():
    config = DiffConfig.model_validate({"flags": {"enable_semantic_matching": False}})
    result = ElementMatcher(config).match_elements([price_tag("b-0", "$199.99")], [price_tag("c-0", "$149.99")])
    assert result.pairs == {}


def test_semantic_matching_requires_same_ancestor_context(default_config):
    other = make_element(
        "c-0",
        tag="span",
        text="$149.99",
        selector="#product-2 > span.price",
        attributes={"class": "price"},
    )
    result = ElementMatcher(default_config).match_elements([price_tag("b-0", "$199.99")], [other])
    assert result.pairs == {}


def test_matching_is_deterministic(default_config):
    baseline = [
        make_element("b-0", tag="nav", selector="nav.main", attributes={"class": "main"}),
        make_element("b-1", tag="a", text="Home", selector="nav.main > a:nth-of-type(1)"),
        make_element("b-2", tag="a", text="About", selector="nav.main > a:nth-of-type(2)"),
        price_tag("b-3", "$10.00"),
    ]
    current = [
        make_element("c-0", tag="nav", selector="nav.main", attributes={"class": "main"}),
        make_element("c-1", tag="a", text="About us", selector="nav.main > a:nth-of-type(1)"),
        price_tag("c-2", "$12.00"),
    ]
    matcher = ElementMatcher(default_config)
    first = matcher.match_elements(baseline, current).to_dict()
    second = matcher.match_elements(baseline, current).to_dict()
    assert first == second


def test_match_result_refuses_reuse():
    result = MatchResult(
        baseline={"b-0": make_element("b-0"), "b-1": make_element("b-1")},
        current={"c-0": make_element("c-0")},
    )
    result.pair("b-0", "c-0", 1.4)
    assert result.confidences["b-0"] == 1.0
    with pytest.raises(MatchingInvariantError):
        result.pair("b-1", "c-0", 0.9)
    with pytest.raises(MatchingInvariantError):
        result.pair("b-0", "c-0", 0.9)


def test_extract_price():
    assert extract_price("Now only $1,299.50!") == "1,299.50"
    assert extract_price("€ 15") == "15"
    assert extract_price("Free") is None
    assert extract_price(None) is None


def test_price_is_not_paired_with_a_priceless_price_control(default_config):
    baseline = [
        make_element("b-0", tag="span", text="$19.00", selector="div.card > span.price", attributes={"class": "price"})
    ]
    current = [
        make_element(
            "c-0",
            tag="button",
            text="Sort by price",
            selector="div.toolbar > button.price-sort",
            attributes={"class": "price-sort"},
        )
    ]
    result = ElementMatcher(default_config).match_elements(baseline, current)
    assert result.pairs == {}
    assert [element.element_id for element in result.removed] == ["b-0"]
    assert [element.element_id for element in result.added] == ["c-0"]


def test_baseline_without_price_value_is_not_matched_semantically(default_config):
    baseline = [price_tag("b-0", "Call for pricing")]
    current = [price_tag("c-0", "$149.99")]
    result = ElementMatcher(default_config).match_elements(baseline, current)
    assert result.pairs == {}


def test_priced_element_ids_include_parents_of_prices():
    elements = [
        make_element("c-0", tag="div", selector="#product-1 > div.price-box"),
        make_element("c-1", tag="span", text="$149.99", selector="#product-1 > div.price-box > span"),
        make_element("c-2", tag="div", selector="#product-1 > div.rating"),
        make_element("c-3", tag="div", selector="#product-1 > div.price"),
    ]
    assert priced_element_ids(elements) == {"c-0", "c-1"}
