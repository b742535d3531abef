from __future__ import annotations

import logging
import re

from uidiff.config.schema import DiffConfig
from uidiff.core.exceptions import MissingInputError
from uidiff.core.fingerprint import fingerprint_all
from uidiff.core.models import ElementSnapshot, MatchResult
from uidiff.utils.scoring import word_similarity
from uidiff.utils.selectors import ancestor_id_context, split_compounds

logger = logging.getLogger(__name__)

PRICE_PATTERN = re.compile(r"[$€£¥]\s?([0-9][0-9,]*(?:\.[0-9]+)?)")


class ElementMatcher:
    """Pairs baseline elements with current elements in three ordered phases."""

    def __init__(self, config: DiffConfig | None = None) -> None:
        self.config = config or DiffConfig()
        self.weights = self.config.matching.normalized_weights()
        logger.info(
            "ElementMatcher weights -> tag: %.2f, text: %.2f, structural: %.2f, content: %.2f; "
            "fuzzyMinConfidence: %.2f, semanticPriceConfidence: %.2f, semanticEnabled: %s",
            self.weights["tag"],
            self.weights["text"],
            self.weights["structural"],
            self.weights["content"],
            self.config.matching.fuzzy_min_confidence,
            self.config.matching.semantic_price_confidence,
            self.config.semantic_matching_enabled,
        )

    def match_elements(
        self,
        baseline_elements: list[ElementSnapshot],
        current_elements: list[ElementSnapshot],
    ) -> MatchResult:
        if baseline_elements is None or current_elements is None:
            raise MissingInputError("Both baseline and current element lists are required")
        logger.info(
            "Starting fingerprint-based element matching: %d baseline -> %d current",
            len(baseline_elements),
            len(current_elements),
        )
        baseline = fingerprint_all(baseline_elements, self.config.fingerprint)
        current = fingerprint_all(current_elements, self.config.fingerprint)
        result = MatchResult(
            baseline={element.element_id: element for element in baseline},
            current={element.element_id: element for element in current},
        )

        exact = self._match_exact(baseline, current, result)
        fuzzy = self._match_fuzzy(baseline, current, result)
        semantic = self._match_semantic(baseline, current, result) if self.config.semantic_matching_enabled else 0

        logger.info(
            "Element matching complete: %d matched (%d exact, %d fuzzy, %d semantic), %d removed, %d added",
            len(result.pairs),
            exact,
            fuzzy,
            semantic,
            len(result.removed),
            len(result.added),
        )
        return result

    def _match_exact(
        self,
        baseline: list[ElementSnapshot],
        current: list[ElementSnapshot],
        result: MatchResult,
    ) -> int:
        # First unclaimed current element wins among duplicate fingerprints.
        by_identity: dict[str, list[ElementSnapshot]] = {}
        for element in current:
            identity = element.fingerprint.identity if element.fingerprint else None
            if identity is not None:
                by_identity.setdefault(identity, []).append(element)

        matched = 0
        for element in baseline:
            identity = element.fingerprint.identity if element.fingerprint else None
            if identity is None:
                continue
            for candidate in by_identity.get(identity, []):
                if not result.is_claimed(candidate.element_id):
                    result.pair(element.element_id, candidate.element_id, 1.0)
                    matched += 1
                    logger.debug("Exact fingerprint match: %s -> %s", element.selector, candidate.selector)
                    break
        return matched

    def _match_fuzzy(
        self,
        baseline: list[ElementSnapshot],
        current: list[ElementSnapshot],
        result: MatchResult,
    ) -> int:
        threshold = self.config.matching.fuzzy_min_confidence
        matched = 0
        for element in baseline:
            if result.is_matched(element.element_id):
                continue
            best: ElementSnapshot | None = None
            best_score = 0.0
            for candidate in current:
                if result.is_claimed(candidate.element_id):
                    continue
                score = self.match_confidence(element, candidate)
                if score > best_score:
                    best, best_score = candidate, score
            if best is not None and best_score >= threshold:
                result.pair(element.element_id, best.element_id, best_score)
                matched += 1
                logger.debug(
                    "Fuzzy match (confidence: %.2f): %s -> %s", best_score, element.selector, best.selector
                )
        return matched

    def match_confidence(self, baseline: ElementSnapshot, candidate: ElementSnapshot) -> float:
        """Weighted average of the signals both elements can provide."""

        total_weight = 0.0
        weighted_score = 0.0

        if baseline.tag_name and candidate.tag_name:
            score = 1.0 if baseline.tag_name.lower() == candidate.tag_name.lower() else 0.0
            weighted_score += score * self.weights["tag"]
            total_weight += self.weights["tag"]

        if baseline.text is not None and candidate.text is not None:
            weighted_score += word_similarity(baseline.text, candidate.text) * self.weights["text"]
            total_weight += self.weights["text"]

        left = baseline.fingerprint
        right = candidate.fingerprint
        if left and right and left.structural and right.structural:
            score = 1.0 if left.structural == right.structural else self.config.matching.structural_partial_credit
            weighted_score += score * self.weights["structural"]
            total_weight += self.weights["structural"]

        if left and right and left.content and right.content:
            score = 1.0 if left.content == right.content else 0.0
            weighted_score += score * self.weights["content"]
            total_weight += self.weights["content"]

        return weighted_score / total_weight if total_weight > 0 else 0.0

    def _match_semantic(
        self,
        baseline: list[ElementSnapshot],
        current: list[ElementSnapshot],
        result: MatchResult,
    ) -> int:
        confidence = self.config.matching.semantic_price_confidence
        baseline_priced = priced_element_ids(baseline)
        current_priced = priced_element_ids(current)
        matched = 0
        for element in baseline:
            if result.is_matched(element.element_id) or element.element_id not in baseline_priced:
                continue
            if not self._is_price_like(element):
                continue
            context = ancestor_id_context(element.selector)
            for candidate in current:
                if result.is_claimed(candidate.element_id) or candidate.element_id not in current_priced:
                    continue
                if ancestor_id_context(candidate.selector) != context:
                    continue
                result.pair(element.element_id, candidate.element_id, confidence)
                matched += 1
                logger.info(
                    "Semantic content match: %s ('%s') -> %s ('%s') [conf=%.2f]",
                    element.selector,
                    element.text,
                    candidate.selector,
                    candidate.text,
                    confidence,
                )
                break
        return matched

    def _is_price_like(self, element: ElementSnapshot) -> bool:
        if extract_price(element.text) is not None:
            return True
        haystacks = ((element.selector or "").lower(), (element.attributes.get("class") or "").lower())
        return any(keyword.lower() in haystack for keyword in self.config.matching.semantic_keywords for haystack in haystacks)


def priced_element_ids(elements: list[ElementSnapshot]) -> set[str]:
    """Ids of elements carrying a price, directly or through a child.

    Selectors extending another element's compound path are treated as its children.
    """

    ancestor_paths: set[tuple[str, ...]] = set()
    for element in elements:
        if extract_price(element.text) is not None:
            compounds = tuple(split_compounds(element.selector))
            ancestor_paths.update(compounds[:end] for end in range(1, len(compounds)))
    return {
        element.element_id
        for element in elements
        if extract_price(element.text) is not None or tuple(split_compounds(element.selector)) in ancestor_paths
    }


def extract_price(text: str | None) -> str | None:
    """Numeric part of the first currency amount in ``text`` ("$199.99" -> "199.99")."""

    if not text:
        return None
    match = PRICE_PATTERN.search(text)
    return match.group(1) if match else None
