from __future__ import annotations

import logging
from typing import Any

from uidiff.config.schema import CaptureSettings
from uidiff.core.models import ElementSnapshot, assign_ids

logger = logging.getLogger(__name__)

COLLECT_ELEMENTS_SCRIPT = r"""
const [attributeNames, styleNames, maxElements, maxTextLength, onlyViewport] = arguments;

const directText = (node) => {
  let text = "";
  for (const child of node.childNodes) {
    if (child.nodeType === Node.TEXT_NODE) text += child.textContent;
  }
  return text.trim().slice(0, maxTextLength);
};

const compound = (node) => {
  let part = node.tagName.toLowerCase();
  if (node.id) part += `#${CSS.escape(node.id)}`;
  if (node.classList.length) part += "." + Array.from(node.classList).slice(0, 2).map((name) => CSS.escape(name)).join(".");
  return part;
};

const selectorPath = (node) => {
  const parts = [];
  let current = node;
  while (current && current.nodeType === Node.ELEMENT_NODE && current !== document.documentElement) {
    let part = compound(current);
    const parent = current.parentElement;
    if (parent && !current.id) {
      const sameTag = Array.from(parent.children).filter((child) => child.tagName === current.tagName);
      if (sameTag.length > 1) part += `:nth-of-type(${sameTag.indexOf(current) + 1})`;
    }
    parts.unshift(part);
    if (current.id) break;
    current = parent;
  }
  return parts.join(" > ");
};

const viewportWidth = window.innerWidth || document.documentElement.clientWidth;
const viewportHeight = window.innerHeight || document.documentElement.clientHeight;
const skipped = new Set(["script", "style", "noscript", "meta", "link", "head", "title"]);

const items = [];
for (const node of document.body ? document.body.querySelectorAll("*") : []) {
  if (items.length >= maxElements) break;
  const tag = node.tagName.toLowerCase();
  if (skipped.has(tag)) continue;
  const rect = node.getBoundingClientRect();
  const inViewport = rect.bottom > 0 && rect.right > 0 && rect.top < viewportHeight && rect.left < viewportWidth;
  if (onlyViewport && !inViewport) continue;
  const style = window.getComputedStyle(node);
  const attributes = {};
  for (const name of attributeNames) {
    const value = node.getAttribute(name);
    if (value !== null) attributes[name] = value;
  }
  const styles = {};
  for (const name of styleNames) {
    const value = style.getPropertyValue(name);
    if (value) styles[name] = value;
  }
  items.push({
    tagName: tag,
    text: directText(node),
    selector: selectorPath(node),
    attributes: attributes,
    styles: styles,
    position: { x: rect.x, y: rect.y, width: rect.width, height: rect.height },
    inViewport: inViewport,
  });
}
return items;
"""


def extract_elements(driver, settings: CaptureSettings | None = None, prefix: str = "e") -> list[ElementSnapshot]:
    settings = settings or CaptureSettings()
    raw_elements: list[Any] = driver.execute_script(
        COLLECT_ELEMENTS_SCRIPT,
        settings.attributes_to_capture,
        settings.styles_to_capture,
        settings.max_elements,
        settings.max_text_length,
        settings.capture_only_viewport,
    ) or []
    records = [item for item in raw_elements if isinstance(item, dict)]
    elements = assign_ids(records, prefix)
    logger.info("Extracted %d elements", len(elements))
    return elements
