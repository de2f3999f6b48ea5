"""Traceability Graph State.

The explorer graph is an immutable value. It is created once per session
from seed ids and then advanced only by :func:`apply_expansion`, which
returns a new state and leaves the old one untouched. Merging is
idempotent: depths only go down, flags only go from False to True, edges
are added once per id and frontier parents are unique per node.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from archtrace.engine.graph import Direction, step_key

DEFAULT_TRACE_DEPTH = 3

TraceFrontier = Mapping[str, tuple[str, ...]]


@dataclass(frozen=True)
class TraceNode:
    """Explorer node. ``depth`` is the minimum distance from any seed."""

    id: str
    depth: int = 0
    pinned: bool = False
    expanded: bool = False
    hidden: bool = False


@dataclass(frozen=True)
class TraceEdge:
    """Explorer edge; ``id`` is derived from relationship id and endpoints."""

    id: str
    from_id: str
    to_id: str
    relationship_id: str | None = None
    type: str | None = None


@dataclass(frozen=True)
class TraceFilters:
    direction: Direction = "both"
    relationship_types: tuple[str, ...] | None = None
    layers: tuple[str, ...] | None = None
    element_types: tuple[str, ...] | None = None


@dataclass(frozen=True)
class TraceSelection:
    selected_node_id: str | None = None
    selected_edge_id: str | None = None


@dataclass(frozen=True)
class StopConditions:
    """Where expansion stops going further (matched nodes are still included)."""

    stop_at_depth: int | None = None
    stop_at_layer: tuple[str, ...] | None = None
    stop_at_type: tuple[str, ...] | None = None


@dataclass(frozen=True)
class ExpandRequest:
    node_id: str
    direction: Direction = "both"
    depth: int = 1
    relationship_types: tuple[str, ...] | None = None
    layers: tuple[str, ...] | None = None
    element_types: tuple[str, ...] | None = None
    stop_conditions: StopConditions | None = None


@dataclass(frozen=True)
class TraceExpansionPatch:
    """Additive result of one expansion call."""

    root_node_id: str
    added_nodes: tuple[TraceNode, ...] = ()
    added_edges: tuple[TraceEdge, ...] = ()
    frontier_by_node_id: TraceFrontier | None = None


@dataclass(frozen=True)
class TraceGraphState:
    nodes_by_id: Mapping[str, TraceNode] = field(default_factory=dict)
    edges_by_id: Mapping[str, TraceEdge] = field(default_factory=dict)
    frontier_by_node_id: TraceFrontier = field(default_factory=dict)
    selection: TraceSelection = field(default_factory=TraceSelection)
    filters: TraceFilters = field(default_factory=TraceFilters)
    max_depth_default: int = DEFAULT_TRACE_DEPTH


def trace_edge_id(relationship_id: str, from_id: str, to_id: str) -> str:
    return step_key(relationship_id, from_id, to_id)


# ========== Merge ==========


def merge_node(existing: TraceNode | None, incoming: TraceNode) -> TraceNode:
    """Combine two views of one node: OR the flags, keep the smaller depth."""
    if existing is None:
        return incoming
    return replace(
        existing,
        pinned=existing.pinned or incoming.pinned,
        expanded=existing.expanded or incoming.expanded,
        hidden=existing.hidden or incoming.hidden,
        depth=min(existing.depth, incoming.depth),
    )


def merge_frontier(base: TraceFrontier, extra: TraceFrontier | None) -> dict[str, tuple[str, ...]]:
    """Union parent lists per node id, keeping first-seen order."""
    merged: dict[str, tuple[str, ...]] = dict(base)
    if not extra:
        return merged
    for node_id, parents in extra.items():
        current = list(merged.get(node_id, ()))
        for parent in parents:
            if parent not in current:
                current.append(parent)
        merged[node_id] = tuple(current)
    return merged


def apply_expansion(state: TraceGraphState, patch: TraceExpansionPatch) -> TraceGraphState:
    """Return a new state with ``patch`` merged in.

    The root is marked expanded (and created at depth 0 if it was unknown),
    nodes are merged by id, edges are added only if their id is new.
    Applying the same patch twice gives the same state as applying it once.
    """
    nodes = dict(state.nodes_by_id)
    edges = dict(state.edges_by_id)

    root = nodes.get(patch.root_node_id)
    if root is not None:
        nodes[patch.root_node_id] = replace(root, expanded=True)
    else:
        nodes[patch.root_node_id] = TraceNode(id=patch.root_node_id, depth=0, expanded=True)

    for node in patch.added_nodes:
        nodes[node.id] = merge_node(nodes.get(node.id), node)
    for edge in patch.added_edges:
        edges.setdefault(edge.id, edge)

    return replace(
        state,
        nodes_by_id=nodes,
        edges_by_id=edges,
        frontier_by_node_id=merge_frontier(state.frontier_by_node_id, patch.frontier_by_node_id),
    )


# ========== Construction ==========


def create_initial_trace_graph(
    seed_ids: Iterable[str],
    *,
    pinned_seeds: bool = True,
    expanded_seeds: bool = False,
    max_depth_default: int = DEFAULT_TRACE_DEPTH,
    filters: TraceFilters | Mapping[str, Any] | None = None,
    selection: TraceSelection | None = None,
) -> TraceGraphState:
    """Create an explorer state seeded by one or more element ids.

    Seeds start at depth 0, pinned unless ``pinned_seeds`` is False. The
    first seed is selected unless ``selection`` is given. ``filters`` may be
    a TraceFilters or a partial mapping of its fields.
    """
    seeds = list(dict.fromkeys(seed_ids))
    nodes = {
        sid: TraceNode(id=sid, depth=0, pinned=pinned_seeds, expanded=expanded_seeds)
        for sid in seeds
    }
    if selection is None:
        selection = TraceSelection(selected_node_id=seeds[0] if seeds else None)
    return TraceGraphState(
        nodes_by_id=nodes,
        edges_by_id={},
        frontier_by_node_id={},
        selection=selection,
        filters=_coerce_filters(TraceFilters(), filters),
        max_depth_default=max_depth_default,
    )


def _coerce_filters(
    base: TraceFilters, update: TraceFilters | Mapping[str, Any] | None
) -> TraceFilters:
    if update is None:
        return base
    if isinstance(update, TraceFilters):
        return update
    changes: dict[str, Any] = {}
    for key, value in update.items():
        if key == "direction":
            changes[key] = value
        elif key in ("relationship_types", "layers", "element_types"):
            changes[key] = tuple(value) if value is not None else None
        else:
            raise ValueError(f"Unknown trace filter: {key!r}")
    return replace(base, **changes)


# ========== Session helpers (each returns a new state) ==========


def with_filters(
    state: TraceGraphState, update: TraceFilters | Mapping[str, Any]
) -> TraceGraphState:
    return replace(state, filters=_coerce_filters(state.filters, update))


def with_selection(
    state: TraceGraphState,
    *,
    node_id: str | None = None,
    edge_id: str | None = None,
) -> TraceGraphState:
    """Select a node or an edge; selecting one clears the other."""
    selection = TraceSelection(selected_node_id=node_id, selected_edge_id=edge_id)
    return replace(state, selection=selection)


def with_node_flags(state: TraceGraphState, node_id: str, **flags: bool) -> TraceGraphState:
    """Set ``pinned``/``expanded``/``hidden`` directly (user actions, not merges).

    Unknown nodes leave the state unchanged.
    """
    node = state.nodes_by_id.get(node_id)
    if node is None:
        return state
    unknown = set(flags) - {"pinned", "expanded", "hidden"}
    if unknown:
        raise ValueError(f"Unknown node flags: {sorted(unknown)}")
    nodes = dict(state.nodes_by_id)
    nodes[node_id] = replace(node, **flags)
    return replace(state, nodes_by_id=nodes)


def parents_of(state: TraceGraphState, node_id: str) -> tuple[str, ...]:
    """Nodes whose expansion introduced ``node_id``, oldest first."""
    return tuple(state.frontier_by_node_id.get(node_id, ()))


# ========== Serialization ==========


def trace_node_to_dict(node: TraceNode) -> dict[str, Any]:
    return {
        "id": node.id,
        "depth": node.depth,
        "pinned": node.pinned,
        "expanded": node.expanded,
        "hidden": node.hidden,
    }


def trace_edge_to_dict(edge: TraceEdge) -> dict[str, Any]:
    return {
        "id": edge.id,
        "relationshipId": edge.relationship_id,
        "from": edge.from_id,
        "to": edge.to_id,
        "type": edge.type,
    }


def patch_to_dict(patch: TraceExpansionPatch) -> dict[str, Any]:
    return {
        "rootNodeId": patch.root_node_id,
        "addedNodes": [trace_node_to_dict(n) for n in patch.added_nodes],
        "addedEdges": [trace_edge_to_dict(e) for e in patch.added_edges],
        "frontierByNodeId": {k: list(v) for k, v in (patch.frontier_by_node_id or {}).items()},
    }


def trace_state_to_dict(state: TraceGraphState) -> dict[str, Any]:
    """JSON-ready view of an explorer state."""
    return {
        "nodesById": {k: trace_node_to_dict(n) for k, n in state.nodes_by_id.items()},
        "edgesById": {k: trace_edge_to_dict(e) for k, e in state.edges_by_id.items()},
        "frontierByNodeId": {k: list(v) for k, v in state.frontier_by_node_id.items()},
        "selection": {
            "selectedNodeId": state.selection.selected_node_id,
            "selectedEdgeId": state.selection.selected_edge_id,
        },
        "filters": {
            "direction": state.filters.direction,
            "relationshipTypes": _maybe_list(state.filters.relationship_types),
            "layers": _maybe_list(state.filters.layers),
            "elementTypes": _maybe_list(state.filters.element_types),
        },
        "maxDepthDefault": state.max_depth_default,
    }


def _maybe_list(values: tuple[str, ...] | None) -> list[str] | None:
    return list(values) if values is not None else None
