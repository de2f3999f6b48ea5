"""Graph Builder: the traversable view of a model.

``outgoing`` and ``incoming`` are two indexes over one edge set. Every edge
object appended to ``outgoing[e.from_id]`` is the same object appended to
``incoming[e.to_id]``. Edge lists follow the model's relationship order.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from typing import Any, Literal

from archtrace.engine.directedness import AnalysisAdapter, resolve_undirected
from archtrace.engine.model import Element, Model, Relationship

logger = logging.getLogger(__name__)

Direction = Literal["outgoing", "incoming", "both"]
DIRECTIONS: tuple[str, ...] = ("outgoing", "incoming", "both")

MAX_HOPS_LIMIT = 16
DEFAULT_MAX_HOPS = 6


@dataclass(frozen=True)
class AnalysisEdge:
    """One traversable edge.

    Attributes:
        relationship_id: Id of the relationship this edge realizes
        relationship_type: Type of that relationship
        from_id: Element the edge leaves
        to_id: Element the edge enters
        reversed: True for the synthetic reverse edge of an undirected relationship
        undirected: True on both halves of an undirected relationship
        relationship: The source relationship (not part of equality)
    """

    relationship_id: str
    relationship_type: str
    from_id: str
    to_id: str
    reversed: bool = False
    undirected: bool = False
    relationship: Relationship | None = field(default=None, compare=False, repr=False)

    @property
    def key(self) -> str:
        return step_key(self.relationship_id, self.from_id, self.to_id)


@dataclass
class AnalysisGraph:
    """Adjacency-indexed view of a model's elements and relationships."""

    nodes: dict[str, Element] = field(default_factory=dict)
    outgoing: dict[str, list[AnalysisEdge]] = field(default_factory=dict)
    incoming: dict[str, list[AnalysisEdge]] = field(default_factory=dict)

    def has_node(self, node_id: str | None) -> bool:
        return node_id is not None and node_id in self.nodes

    def edges(self) -> list[AnalysisEdge]:
        """All edges, grouped by source node in node order."""
        return [e for node_id in self.nodes for e in self.outgoing.get(node_id, [])]

    def stats(self) -> dict[str, Any]:
        all_edges = self.edges()
        return {
            "num_nodes": len(self.nodes),
            "num_edges": len(all_edges),
            "num_synthetic_edges": sum(1 for e in all_edges if e.reversed),
        }


@dataclass(frozen=True)
class TraversalStep:
    """One hop as walked, regardless of the stored relationship direction.

    ``reversed`` is True when the hop runs against the relationship's
    source->target orientation.
    """

    relationship_id: str
    relationship_type: str
    from_id: str
    to_id: str
    reversed: bool = False

    @property
    def key(self) -> str:
        return step_key(self.relationship_id, self.from_id, self.to_id)


def step_key(relationship_id: str, from_id: str, to_id: str) -> str:
    """Stable identity of a walked hop: ``relationshipId:from->to``."""
    return f"{relationship_id}:{from_id}->{to_id}"


def _push(index: dict[str, list[AnalysisEdge]], key: str, edge: AnalysisEdge) -> None:
    bucket = index.get(key)
    if bucket is None:
        index[key] = [edge]
    else:
        bucket.append(edge)


def build_analysis_graph(model: Model, adapter: AnalysisAdapter | None = None) -> AnalysisGraph:
    """Build the traversal graph for ``model``.

    Relationships with a missing endpoint are skipped. Undirected
    relationships get a synthetic reverse edge in addition to the forward one.

    Args:
        model: The model to index
        adapter: Optional notation adapter consulted for directedness

    Returns:
        A fresh AnalysisGraph; the model is not modified
    """
    graph = AnalysisGraph(nodes=dict(model.elements))
    skipped = 0

    for r in model.relationships.values():
        source, target = r.source_element_id, r.target_element_id
        if not graph.has_node(source) or not graph.has_node(target):
            skipped += 1
            continue

        forward = AnalysisEdge(
            relationship_id=r.id,
            relationship_type=r.type,
            from_id=source,
            to_id=target,
            relationship=r,
        )
        undirected = resolve_undirected(forward, model, adapter)
        if undirected:
            forward = replace(forward, undirected=True)

        _push(graph.outgoing, forward.from_id, forward)
        _push(graph.incoming, forward.to_id, forward)

        if undirected:
            reverse = AnalysisEdge(
                relationship_id=r.id,
                relationship_type=r.type,
                from_id=target,
                to_id=source,
                reversed=True,
                undirected=True,
                relationship=r,
            )
            _push(graph.outgoing, reverse.from_id, reverse)
            _push(graph.incoming, reverse.to_id, reverse)

    if skipped:
        logger.debug("Skipped %d relationship(s) with missing endpoints", skipped)
    return graph


def get_traversal_steps(
    graph: AnalysisGraph,
    node_id: str,
    direction: str,
    relationship_types: set[str] | frozenset[str] | None = None,
) -> list[TraversalStep]:
    """Ordered hops leaving ``node_id`` under ``direction``.

    ``incoming`` walks relationships backwards, so each step is flipped to
    start at ``node_id``. ``both`` lists outgoing steps first. A hop already
    produced (same relationship, same endpoints) is not repeated.
    """
    steps: list[TraversalStep] = []
    seen: set[str] = set()

    def _add(step: TraversalStep) -> None:
        if step.key in seen:
            return
        seen.add(step.key)
        steps.append(step)

    if direction in ("outgoing", "both"):
        for e in graph.outgoing.get(node_id, []):
            if relationship_types is not None and e.relationship_type not in relationship_types:
                continue
            _add(
                TraversalStep(
                    relationship_id=e.relationship_id,
                    relationship_type=e.relationship_type,
                    from_id=e.from_id,
                    to_id=e.to_id,
                    reversed=e.reversed,
                )
            )
    if direction in ("incoming", "both"):
        for e in graph.incoming.get(node_id, []):
            if relationship_types is not None and e.relationship_type not in relationship_types:
                continue
            _add(
                TraversalStep(
                    relationship_id=e.relationship_id,
                    relationship_type=e.relationship_type,
                    from_id=e.to_id,
                    to_id=e.from_id,
                    reversed=not e.reversed,
                )
            )
    return steps


# ========== Restricted adjacency for path search ==========


@dataclass(frozen=True)
class Neighbor:
    to: str
    type: str
    relationship_id: str


@dataclass
class Adjacency:
    """Neighbour lists restricted to an allowed relationship-type set.

    ``out[a]`` lists nodes reachable from ``a`` along an edge; ``in_[a]``
    lists nodes reachable from ``a`` by walking an edge backwards.
    """

    out: dict[str, list[Neighbor]] = field(default_factory=dict)
    in_: dict[str, list[Neighbor]] = field(default_factory=dict)
    node_ids: set[str] = field(default_factory=set)

    def has_node(self, node_id: object) -> bool:
        return isinstance(node_id, str) and node_id in self.node_ids

    def neighbors(self, node_id: str, direction: str) -> list[str]:
        """Distinct neighbour ids in discovery order."""
        result: list[str] = []
        seen: set[str] = set()
        sources: list[list[Neighbor]] = []
        if direction in ("outgoing", "both"):
            sources.append(self.out.get(node_id, []))
        if direction in ("incoming", "both"):
            sources.append(self.in_.get(node_id, []))
        for bucket in sources:
            for nb in bucket:
                if nb.to not in seen:
                    seen.add(nb.to)
                    result.append(nb.to)
        return result


def build_adjacency(
    graph: AnalysisGraph,
    relationship_types: set[str] | frozenset[str] | None = None,
) -> Adjacency:
    """Project ``graph`` onto neighbour lists, keeping only allowed types.

    ``None`` allows every relationship type.
    """
    adjacency = Adjacency(node_ids=set(graph.nodes))
    for node_id in graph.nodes:
        for e in graph.outgoing.get(node_id, []):
            if relationship_types is None or e.relationship_type in relationship_types:
                adjacency.out.setdefault(node_id, []).append(
                    Neighbor(
                        to=e.to_id, type=e.relationship_type, relationship_id=e.relationship_id
                    )
                )
        for e in graph.incoming.get(node_id, []):
            if relationship_types is None or e.relationship_type in relationship_types:
                adjacency.in_.setdefault(node_id, []).append(
                    Neighbor(
                        to=e.from_id, type=e.relationship_type, relationship_id=e.relationship_id
                    )
                )
    return adjacency


# ========== Bounds ==========


def clamp_int(value: Any, default: int, lower: int, upper: int) -> int:
    """Coerce ``value`` into an int within ``[lower, upper]``.

    ``None``, NaN, booleans and non-numbers become ``default``; infinities
    saturate; floats are truncated.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        result = default
    elif isinstance(value, float) and math.isnan(value):
        result = default
    elif isinstance(value, float) and math.isinf(value):
        result = upper if value > 0 else lower
    else:
        result = int(value)
    return max(lower, min(upper, result))


def normalize_direction(direction: Any, default: str = "both") -> str:
    """Map unknown direction values to ``default``."""
    if isinstance(direction, str) and direction.strip().lower() in DIRECTIONS:
        return direction.strip().lower()
    return default
