"""
Fingerprint generation.

Derives three short deterministic hashes per element so that the same
logical element can be recognised across captures whose selectors differ:

- identity: the configured mix of tag, text, attributes and selector shape
- structural: tag, id and selector shape, insensitive to text and styles
- content: text and content-bearing attributes, insensitive to position
"""

from __future__ import annotations

import hashlib
import logging
import zlib

from uidiff.config.schema import FingerprintSettings
from uidiff.core.models import ElementSnapshot, Fingerprint
from uidiff.utils.scoring import normalize_text
from uidiff.utils.selectors import parent_context, simplify_selector

logger = logging.getLogger(__name__)

CONTENT_ATTRIBUTES = ("alt", "title", "placeholder", "aria-label")
FALLBACK_TEXT_LENGTH = 50
SEPARATOR = "|"


def hash_components(components: list[str], algorithm: str = "sha256", length: int = 16) -> str:
    payload = SEPARATOR.join(components).encode("utf-8")
    try:
        digest = hashlib.new(algorithm, payload).hexdigest()
    except (ValueError, TypeError) as exc:
        logger.warning("Hash algorithm %r unavailable (%s), using crc32/adler32 fallback", algorithm, exc)
        digest = f"{zlib.crc32(payload):08x}{zlib.adler32(payload):08x}"
    return digest[:length]


def generate_fingerprint(element: ElementSnapshot, settings: FingerprintSettings | None = None) -> Fingerprint:
    """Computes identity, structural and content fingerprints for one element."""

    if settings is None:
        identity, confidence = _fallback_identity(element)
        algorithm, length = "sha256", 16
    else:
        identity, confidence = _identity(element, settings)
        algorithm, length = settings.hash_algorithm, settings.hash_length
    return Fingerprint(
        identity=identity,
        structural=_structural(element, algorithm, length),
        content=_content(element, algorithm, length),
        confidence=confidence,
    )


def fingerprint_all(
    elements: list[ElementSnapshot],
    settings: FingerprintSettings | None = None,
) -> list[ElementSnapshot]:
    return [element.with_fingerprint(generate_fingerprint(element, settings)) for element in elements]


def _identity(element: ElementSnapshot, settings: FingerprintSettings) -> tuple[str | None, float]:
    components: list[str] = []
    if settings.use_tag_name and element.tag_name:
        components.append(f"tag:{element.tag_name.lower()}")
    if settings.use_text_content:
        text = normalize_text(
            element.text,
            collapse_whitespace=settings.normalize_whitespace,
            case_sensitive=settings.case_sensitive,
            max_length=settings.text_max_length,
        )
        if text:
            components.append(f"text:{text}")
    for name in settings.use_attributes:
        value = element.attributes.get(name)
        if value:
            components.append(f"{name}:{value.strip()}")
    if settings.include_selector_path:
        signature = simplify_selector(element.selector)
        if signature:
            components.append(f"path:{signature}")
    if settings.include_parent_context:
        context = parent_context(element.selector, settings.parent_context_depth)
        if context:
            components.append(f"parent:{context}")

    if not components:
        return None, 0.0
    identity = hash_components(components, settings.hash_algorithm, settings.hash_length)
    return identity, min(1.0, len(components) / 5)


def _fallback_identity(element: ElementSnapshot) -> tuple[str | None, float]:
    components: list[str] = []
    if element.tag_name:
        components.append(f"tag:{element.tag_name.lower()}")
    text = normalize_text(element.text, max_length=FALLBACK_TEXT_LENGTH)
    if text:
        components.append(f"text:{text}")
    element_id = element.attributes.get("id")
    if element_id:
        components.append(f"id:{element_id.strip()}")
    classes = (element.attributes.get("class") or "").split()
    if classes:
        components.append(f"class:{classes[0]}")

    if not components:
        return None, 0.0
    return hash_components(components), min(1.0, len(components) / 3)


def _structural(element: ElementSnapshot, algorithm: str, length: int) -> str | None:
    components: list[str] = []
    if element.tag_name:
        components.append(f"tag:{element.tag_name.lower()}")
    element_id = element.attributes.get("id")
    if element_id:
        components.append(f"id:{element_id.strip()}")
    path = simplify_selector(element.selector)
    if path:
        components.append(f"path:{path}")
    return hash_components(components, algorithm, length) if components else None


def _content(element: ElementSnapshot, algorithm: str, length: int) -> str | None:
    components: list[str] = []
    text = normalize_text(element.text, case_sensitive=False, max_length=FALLBACK_TEXT_LENGTH * 4)
    if text:
        components.append(f"text:{text}")
    for name in CONTENT_ATTRIBUTES:
        value = element.attributes.get(name)
        if value:
            components.append(f"{name}:{value.strip()}")
    return hash_components(components, algorithm, length) if components else None
