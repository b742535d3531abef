"""
Structural analysis of a flat element list.

The capture gives no real parent/child relationships, so an approximate
tree is rebuilt from selector strings: elements are inserted from the
simplest selector to the most complex and each one is attached under the
already inserted node sharing the most selector fragments with it. UI
patterns found on that tree give changes a structural context, which can
only ever raise their severity.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from uidiff.config.schema import DiffConfig
from uidiff.core.exceptions import MissingInputError
from uidiff.core.models import Change, ChangeType, Classification, ElementSnapshot
from uidiff.utils.selectors import selector_complexity, selector_fragments, shared_fragment_count

logger = logging.getLogger(__name__)

NAVIGATION_KEYWORDS = ("nav", "menu")
NAVIGATION_ROLES = ("navigation", "menubar", "menu")
FORM_CONTROLS = ("input", "select", "textarea", "button")
GRID_DISPLAYS = ("grid", "flex")

TAG_CONTEXTS = {
    "nav": "navigation",
    "header": "navigation",
    "footer": "navigation",
    "main": "content",
    "article": "content",
    "section": "content",
    "form": "form",
    "input": "form",
    "button": "form",
    "aside": "sidebar",
}
ESCALATING_CONTEXTS = ("navigation", "form")


@dataclass(slots=True, eq=False)
class StructuralNode:
    element: ElementSnapshot | None
    parent: StructuralNode | None = None
    children: list[StructuralNode] = field(default_factory=list)
    depth: int = 0
    path: str = "/"

    @property
    def tag(self) -> str:
        if self.element is None or not self.element.tag_name:
            return ""
        return self.element.tag_name.lower()

    def add_child(self, child: StructuralNode) -> None:
        self.children.append(child)
        child.parent = self
        child.depth = self.depth + 1
        child.path = f"{self.path.rstrip('/')}/{_path_segment(child.element)}"

    def siblings(self) -> list[StructuralNode]:
        if self.parent is None:
            return []
        return [node for node in self.parent.children if node is not self]

    def is_ancestor_of(self, other: StructuralNode) -> bool:
        current = other.parent
        while current is not None:
            if current is self:
                return True
            current = current.parent
        return False

    def descendants(self) -> list[StructuralNode]:
        found: list[StructuralNode] = []
        stack = list(reversed(self.children))
        while stack:
            node = stack.pop()
            found.append(node)
            stack.extend(reversed(node.children))
        return found


@dataclass(slots=True)
class StructuralPattern:
    pattern_type: str
    nodes: list[StructuralNode]
    description: str
    confidence: float


@dataclass(slots=True)
class StructuralMetrics:
    total_nodes: int = 0
    max_depth: int = 0
    average_depth: float = 0.0
    tag_counts: dict[str, int] = field(default_factory=dict)
    leaf_nodes: int = 0
    branching_factor: float = 0.0


@dataclass(slots=True)
class StructuralAnalysis:
    root: StructuralNode
    nodes: dict[str, StructuralNode]
    metrics: StructuralMetrics
    patterns: list[StructuralPattern] = field(default_factory=list)

    def node_for(self, element_id: str | None) -> StructuralNode | None:
        if element_id is None:
            return None
        return self.nodes.get(element_id)

    def patterns_of_type(self, pattern_type: str) -> list[StructuralPattern]:
        return [pattern for pattern in self.patterns if pattern.pattern_type == pattern_type]


class StructuralAnalyzer:
    """Rebuilds an approximate tree, measures it and detects UI patterns."""

    def __init__(self, config: DiffConfig | None = None) -> None:
        self.config = config or DiffConfig()
        self.settings = self.config.structural

    def analyze_structure(self, elements: list[ElementSnapshot]) -> StructuralAnalysis:
        if elements is None:
            raise MissingInputError("An element list is required for structural analysis")
        logger.info("Starting structural analysis of %d elements", len(elements))
        root, nodes = self._build_tree(elements)
        analysis = StructuralAnalysis(root=root, nodes=nodes, metrics=self._metrics(nodes))
        analysis.patterns.extend(self._patterns(nodes))
        logger.info(
            "Structural analysis complete: %d nodes, max depth %d, %d patterns identified",
            analysis.metrics.total_nodes,
            analysis.metrics.max_depth,
            len(analysis.patterns),
        )
        return analysis

    def _build_tree(self, elements: list[ElementSnapshot]) -> tuple[StructuralNode, dict[str, StructuralNode]]:
        root = StructuralNode(element=None)
        nodes: dict[str, StructuralNode] = {}
        # Candidate parents indexed by fragment, so only nodes sharing one are scored.
        by_fragment: dict[str, list[tuple[int, StructuralNode]]] = {}

        for sequence, element in enumerate(sorted(elements, key=lambda item: selector_complexity(item.selector))):
            node = StructuralNode(element=element)
            self._find_parent(node, by_fragment, root).add_child(node)
            nodes[element.element_id] = node
            for fragment in dict.fromkeys(selector_fragments(element.selector)):
                by_fragment.setdefault(fragment, []).append((sequence, node))
        return root, nodes

    def _find_parent(
        self,
        node: StructuralNode,
        by_fragment: dict[str, list[tuple[int, StructuralNode]]],
        root: StructuralNode,
    ) -> StructuralNode:
        selector = node.element.selector if node.element else None
        candidates: dict[int, StructuralNode] = {}
        for fragment in selector_fragments(selector):
            for sequence, candidate in by_fragment.get(fragment, []):
                candidates.setdefault(sequence, candidate)

        best_parent = root
        best_similarity = 0
        # Earliest inserted candidate wins ties.
        for _, candidate in sorted(candidates.items()):
            if candidate.depth >= self.settings.max_parent_search_depth:
                continue
            similarity = shared_fragment_count(selector, candidate.element.selector)
            if similarity > best_similarity:
                best_parent, best_similarity = candidate, similarity
        return best_parent

    @staticmethod
    def _metrics(nodes: dict[str, StructuralNode]) -> StructuralMetrics:
        metrics = StructuralMetrics(total_nodes=len(nodes))
        depth_sum = 0
        branches = 0
        parents = 0
        for node in nodes.values():
            metrics.max_depth = max(metrics.max_depth, node.depth)
            depth_sum += node.depth
            if node.children:
                branches += len(node.children)
                parents += 1
            else:
                metrics.leaf_nodes += 1
            if node.tag:
                metrics.tag_counts[node.tag] = metrics.tag_counts.get(node.tag, 0) + 1
        metrics.average_depth = depth_sum / len(nodes) if nodes else 0.0
        metrics.branching_factor = branches / parents if parents else 0.0
        return metrics

    def _patterns(self, nodes: dict[str, StructuralNode]) -> list[StructuralPattern]:
        ordered = list(nodes.values())
        patterns: list[StructuralPattern] = []
        patterns.extend(self._navigation_patterns(ordered))
        patterns.extend(self._list_patterns(ordered))
        patterns.extend(self._form_patterns(ordered))
        patterns.extend(self._table_patterns(ordered))
        patterns.extend(self._grid_patterns(ordered))
        return patterns

    def _confidence(self, pattern_type: str) -> float:
        return self.settings.pattern_confidence.get(pattern_type, 0.5)

    def _navigation_patterns(self, nodes: list[StructuralNode]) -> list[StructuralPattern]:
        nav_nodes = [node for node in nodes if _is_navigation(node)]
        if not nav_nodes:
            return []
        return [
            StructuralPattern(
                pattern_type="navigation",
                nodes=nav_nodes,
                description=f"Navigation elements detected with {len(nav_nodes)} components",
                confidence=self._confidence("navigation"),
            )
        ]

    def _list_patterns(self, nodes: list[StructuralNode]) -> list[StructuralPattern]:
        patterns = []
        for node in nodes:
            if node.tag not in ("ul", "ol"):
                continue
            items = sum(1 for child in node.children if child.tag == "li")
            if items >= self.settings.list_min_items:
                patterns.append(
                    StructuralPattern("list", [node], f"{node.tag.upper()} with {items} items", self._confidence("list"))
                )
        return patterns

    def _form_patterns(self, nodes: list[StructuralNode]) -> list[StructuralPattern]:
        patterns = []
        for node in nodes:
            if node.tag != "form":
                continue
            controls = sum(1 for child in node.descendants() if child.tag in FORM_CONTROLS)
            if controls >= self.settings.form_min_controls:
                patterns.append(
                    StructuralPattern("form", [node], f"Form with {controls} controls", self._confidence("form"))
                )
        return patterns

    def _table_patterns(self, nodes: list[StructuralNode]) -> list[StructuralPattern]:
        patterns = []
        for node in nodes:
            if node.tag != "table":
                continue
            rows = sum(1 for child in node.descendants() if child.tag == "tr")
            if rows >= self.settings.table_min_rows:
                patterns.append(
                    StructuralPattern("table", [node], f"Table with {rows} rows", self._confidence("table"))
                )
        return patterns

    def _grid_patterns(self, nodes: list[StructuralNode]) -> list[StructuralPattern]:
        patterns = []
        for node in nodes:
            display = (node.element.styles.get("display") or "").strip().lower() if node.element else ""
            if display not in GRID_DISPLAYS:
                continue
            if len(node.children) >= self.settings.grid_min_items:
                patterns.append(
                    StructuralPattern(
                        "css-grid",
                        [node],
                        f"{display.upper()} layout with {len(node.children)} items",
                        self._confidence("css-grid"),
                    )
                )
        return patterns

    def contextualize(
        self,
        changes: list[Change],
        old_analysis: StructuralAnalysis,
        new_analysis: StructuralAnalysis,
    ) -> list[Change]:
        """Raises classifications of changes found in navigation or form context."""

        logger.info("Analyzing %d changes in structural context", len(changes))
        escalated = 0
        for change in changes:
            node = old_analysis.node_for(change.element_id)
            analysis = old_analysis
            if node is None and change.change_type == ChangeType.ELEMENT_ADDED:
                node, analysis = new_analysis.node_for(change.element_id), new_analysis
            if node is None:
                continue
            context = structural_context(node, analysis)
            if context in ESCALATING_CONTEXTS and change.classification != Classification.CRITICAL:
                logger.debug(
                    "Escalating %s change on %s from %s to critical (%s context)",
                    change.property,
                    change.element,
                    change.classification.value,
                    context,
                )
                change.classification = Classification.CRITICAL
                escalated += 1
        logger.info("Structural context escalated %d changes", escalated)
        return changes


def structural_context(node: StructuralNode, analysis: StructuralAnalysis) -> str:
    """Type of the first pattern containing the node, else a tag-based guess."""

    for pattern in analysis.patterns:
        if any(member is node or member.is_ancestor_of(node) for member in pattern.nodes):
            return pattern.pattern_type
    return TAG_CONTEXTS.get(node.tag, "general")


def _is_navigation(node: StructuralNode) -> bool:
    if node.element is None:
        return False
    if node.tag == "nav":
        return True
    classes = (node.element.attributes.get("class") or "").lower()
    role = (node.element.attributes.get("role") or "").lower()
    return any(keyword in classes for keyword in NAVIGATION_KEYWORDS) or role in NAVIGATION_ROLES


def _path_segment(element: ElementSnapshot | None) -> str:
    if element is None or not element.tag_name:
        return "*"
    segment = element.tag_name.lower()
    classes = (element.attributes.get("class") or "").split()
    if classes:
        segment += f".{classes[0]}"
    element_id = element.attributes.get("id")
    if element_id:
        segment += f"#{element_id}"
    return segment
