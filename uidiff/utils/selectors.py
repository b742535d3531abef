from __future__ import annotations

import re

_COMBINATORS = re.compile(r"\s*[>+~]\s*|\s+")
_PSEUDO = re.compile(r"::?[\w-]+(?:\([^)]*\))?")
_ID_FRAGMENT = re.compile(r"#[\w-]+")


def split_compounds(selector: str | None) -> list[str]:
    """Splits a selector path into its compound parts, dropping combinators."""

    if not selector:
        return []
    return [part for part in _COMBINATORS.split(selector.strip()) if part]


def _strip_compound(compound: str) -> str:
    return _ID_FRAGMENT.sub("", _PSEUDO.sub("", compound))


def simplify_selector(selector: str | None) -> str:
    """Selector path with pseudo-selectors and id fragments removed."""

    stripped = (_strip_compound(part) for part in split_compounds(selector))
    return " ".join(part for part in stripped if part)


def parent_context(selector: str | None, depth: int, max_length: int = 60) -> str:
    """First ancestor compounds of a selector, simplified and truncated."""

    ancestors = split_compounds(selector)[:-1][:depth]
    stripped = [_strip_compound(part) for part in ancestors]
    return ">".join(part for part in stripped if part)[:max_length]


def ancestor_id_context(selector: str | None) -> str:
    """The first id fragment found among the ancestors of a selector, or ''."""

    for part in split_compounds(selector)[:-1]:
        match = _ID_FRAGMENT.search(part)
        if match:
            return match.group(0)
    return ""


def selector_complexity(selector: str | None) -> int:
    """Counts descendant, child, sibling, pseudo and attribute tokens."""

    if not selector:
        return 0
    complexity = len(selector.split())
    for token in (">", "+", "~", ":", "["):
        complexity += selector.count(token)
    return complexity


def selector_fragments(selector: str | None) -> list[str]:
    if not selector:
        return []
    return [part for part in re.split(r"[\s>+~]", selector) if part]


def shared_fragment_count(selector: str | None, other: str | None) -> int:
    """Number of fragments of ``selector`` that also occur in ``other``."""

    other_fragments = set(selector_fragments(other))
    if not other_fragments:
        return 0
    return sum(1 for fragment in selector_fragments(selector) if fragment in other_fragments)
