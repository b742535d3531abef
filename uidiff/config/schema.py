from __future__ import annotations

import logging
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, ValidationInfo, field_validator, model_validator

from uidiff.core.models import Change, ChangeType, Classification

logger = logging.getLogger(__name__)

PATTERN_TYPES = ("navigation", "list", "form", "table", "css-grid")


def _unit_or_default(model: type[BaseModel], value: Any, info: ValidationInfo) -> Any:
    """Keeps a [0, 1] number, otherwise substitutes the field default."""

    default = model.model_fields[info.field_name].default
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not 0.0 <= value <= 1.0:
        logger.warning("Invalid %s=%r, using default %s", info.field_name, value, default)
        return default
    return float(value)


def _positive_or_default(model: type[BaseModel], value: Any, info: ValidationInfo) -> Any:
    default = model.model_fields[info.field_name].default
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        logger.warning("Invalid %s=%r, using default %s", info.field_name, value, default)
        return default
    return value


class FingerprintSettings(BaseModel):
    use_tag_name: bool = True
    use_text_content: bool = True
    use_attributes: list[str] = Field(default_factory=lambda: ["id", "class", "name", "data-testid"])
    text_max_length: int = 100
    normalize_whitespace: bool = True
    case_sensitive: bool = False
    include_selector_path: bool = True
    include_parent_context: bool = True
    parent_context_depth: int = 2
    hash_algorithm: str = "sha256"
    hash_length: int = 16

    @field_validator("text_max_length", "parent_context_depth", "hash_length", mode="before")
    @classmethod
    def validate_counts(cls, value: Any, info: ValidationInfo) -> Any:
        return _positive_or_default(cls, value, info)


class MatchingSettings(BaseModel):
    tag_weight: float = 0.3
    text_weight: float = 0.4
    structural_weight: float = 0.2
    content_weight: float = 0.1
    structural_partial_credit: float = 0.5
    fuzzy_min_confidence: float = 0.6
    semantic_price_confidence: float = 0.75
    enable_semantic_price: bool = True
    semantic_keywords: list[str] = Field(default_factory=lambda: ["price"])

    @field_validator(
        "tag_weight",
        "text_weight",
        "structural_weight",
        "content_weight",
        "structural_partial_credit",
        "fuzzy_min_confidence",
        "semantic_price_confidence",
        mode="before",
    )
    @classmethod
    def validate_unit_interval(cls, value: Any, info: ValidationInfo) -> Any:
        return _unit_or_default(cls, value, info)

    @model_validator(mode="after")
    def restore_weights_when_empty(self) -> MatchingSettings:
        total = self.tag_weight + self.text_weight + self.structural_weight + self.content_weight
        if total <= 0:
            logger.warning("Matching weights sum to %.2f, restoring defaults", total)
            for name in ("tag_weight", "text_weight", "structural_weight", "content_weight"):
                setattr(self, name, type(self).model_fields[name].default)
        elif abs(total - 1.0) > 0.05:
            logger.warning("Matching weight sum ~= %.2f (recommended 1.0), weights will be normalized", total)
        return self

    def normalized_weights(self) -> dict[str, float]:
        weights = {
            "tag": self.tag_weight,
            "text": self.text_weight,
            "structural": self.structural_weight,
            "content": self.content_weight,
        }
        total = sum(weights.values())
        return {name: weight / total for name, weight in weights.items()}


class MagnitudeThresholds(BaseModel):
    text_critical: float = 0.5
    text_cosmetic: float = 0.1
    style_critical: float = 0.6
    style_cosmetic: float = 0.2
    color_cosmetic: float = 0.3
    layout_cosmetic: float = 0.1
    attribute_critical: float = 0.6
    attribute_cosmetic: float = 0.3

    @field_validator("*", mode="before")
    @classmethod
    def validate_unit_interval(cls, value: Any, info: ValidationInfo) -> Any:
        return _unit_or_default(cls, value, info)


class PropertyContainsRule(BaseModel):
    kind: Literal["property_contains"] = "property_contains"
    value: str
    classification: Classification

    def matches(self, change: Change) -> bool:
        needle = self.value.lower()
        names = (change.property, *change.changed_properties)
        return any(needle in name.lower() for name in names)


class ChangeTypeRule(BaseModel):
    kind: Literal["change_type_equals"] = "change_type_equals"
    change_type: ChangeType
    classification: Classification

    def matches(self, change: Change) -> bool:
        return change.change_type == self.change_type


class MagnitudeRule(BaseModel):
    kind: Literal["magnitude_at_least"] = "magnitude_at_least"
    value: float = Field(ge=0.0, le=1.0)
    classification: Classification

    def matches(self, change: Change) -> bool:
        return change.magnitude >= self.value


ClassificationRule = Annotated[
    Union[PropertyContainsRule, ChangeTypeRule, MagnitudeRule],
    Field(discriminator="kind"),
]


class ClassificationSettings(BaseModel):
    accessibility_keywords: list[str] = Field(default_factory=lambda: ["aria", "alt", "role"])
    thresholds: MagnitudeThresholds = Field(default_factory=MagnitudeThresholds)
    rules: list[ClassificationRule] = Field(default_factory=list)
    severity_order: list[Classification] = Field(
        default_factory=lambda: [Classification.CRITICAL, Classification.COSMETIC, Classification.NOISE]
    )

    @field_validator("severity_order")
    @classmethod
    def validate_severity_order(cls, value: list[Classification]) -> list[Classification]:
        ordered = list(dict.fromkeys(value))
        for label in Classification:
            if label not in ordered:
                ordered.append(label)
        return ordered


class StructuralSettings(BaseModel):
    list_min_items: int = 3
    grid_min_items: int = 4
    table_min_rows: int = 2
    form_min_controls: int = 2
    max_parent_search_depth: int = 10
    pattern_confidence: dict[str, float] = Field(
        default_factory=lambda: {
            "navigation": 0.8,
            "list": 0.9,
            "form": 0.85,
            "table": 0.9,
            "css-grid": 0.7,
        }
    )

    @field_validator(
        "list_min_items",
        "grid_min_items",
        "table_min_rows",
        "form_min_controls",
        "max_parent_search_depth",
        mode="before",
    )
    @classmethod
    def validate_counts(cls, value: Any, info: ValidationInfo) -> Any:
        return _positive_or_default(cls, value, info)

    @field_validator("pattern_confidence", mode="before")
    @classmethod
    def merge_pattern_confidence(cls, value: Any) -> dict[str, float]:
        merged = cls.model_fields["pattern_confidence"].default_factory()
        if not isinstance(value, dict):
            return merged
        for pattern_type, confidence in value.items():
            if pattern_type not in PATTERN_TYPES:
                logger.warning("Ignoring confidence for unknown pattern type %r", pattern_type)
                continue
            if isinstance(confidence, bool) or not isinstance(confidence, (int, float)) or not 0.0 <= confidence <= 1.0:
                logger.warning("Invalid confidence %r for pattern %s, using default", confidence, pattern_type)
                continue
            merged[pattern_type] = float(confidence)
        return merged


class FeatureFlags(BaseModel):
    enable_structural_analysis: bool = True
    enable_semantic_matching: bool = True


class CaptureSettings(BaseModel):
    attributes_to_capture: list[str] = Field(
        default_factory=lambda: [
            "id",
            "class",
            "name",
            "type",
            "href",
            "src",
            "role",
            "alt",
            "title",
            "placeholder",
            "aria-label",
            "data-testid",
        ]
    )
    styles_to_capture: list[str] = Field(
        default_factory=lambda: [
            "color",
            "background-color",
            "font-size",
            "font-family",
            "font-weight",
            "display",
            "visibility",
            "opacity",
            "width",
            "height",
            "margin",
            "padding",
            "border-radius",
            "box-shadow",
        ]
    )
    browser: str = "chrome"
    max_elements: int = 500
    max_text_length: int = 200
    capture_only_viewport: bool = False
    headless: bool = True
    window_width: int = 1440
    window_height: int = 1200
    page_load_timeout_seconds: int = 30
    parallel_capture: bool = True

    @field_validator("browser")
    @classmethod
    def validate_browser(cls, value: str) -> str:
        normalized = value.lower()
        if normalized not in {"chrome", "firefox"}:
            raise ValueError(f"Unsupported browser: {value}")
        return normalized


class OutputSettings(BaseModel):
    baseline_file: str = "baseline.json"
    current_file: str = "current.json"
    changes_file: str = "changes.json"
    audit_file: str = "comparisons.jsonl"


class DiffConfig(BaseModel):
    fingerprint: FingerprintSettings = Field(default_factory=FingerprintSettings)
    matching: MatchingSettings = Field(default_factory=MatchingSettings)
    classification: ClassificationSettings = Field(default_factory=ClassificationSettings)
    structural: StructuralSettings = Field(default_factory=StructuralSettings)
    flags: FeatureFlags = Field(default_factory=FeatureFlags)
    capture: CaptureSettings = Field(default_factory=CaptureSettings)
    output: OutputSettings = Field(default_factory=OutputSettings)

    @property
    def semantic_matching_enabled(self) -> bool:
        return self.matching.enable_semantic_price and self.flags.enable_semantic_matching
