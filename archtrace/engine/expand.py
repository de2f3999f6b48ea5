"""Expansion Algorithm for the traceability explorer.

One call explores breadth-first from a single root and returns an additive
patch; it never touches an explorer state. Semantics:

- relationship-type and direction filters decide which hops are walked;
- layer and element-type filters apply to both inclusion and traversal,
  so a filtered-out element is neither added nor expanded;
- ``stop_at_layer`` / ``stop_at_type`` keep a matched element but do not
  expand past it;
- the effective depth is ``min(depth, stop_at_depth)``, never below 0.
"""

from __future__ import annotations

import logging
from collections import deque

from archtrace.engine.directedness import AnalysisAdapter
from archtrace.engine.filters import (
    element_passes_layer_filter,
    element_passes_type_filter,
    normalize_element_type_filter,
    normalize_layer_filter,
    normalize_relationship_type_filter,
    normalize_string_list,
)
from archtrace.engine.graph import (
    MAX_HOPS_LIMIT,
    build_analysis_graph,
    clamp_int,
    get_traversal_steps,
    normalize_direction,
)
from archtrace.engine.model import Model
from archtrace.engine.traceability import (
    ExpandRequest,
    TraceEdge,
    TraceExpansionPatch,
    TraceNode,
    trace_edge_id,
)

logger = logging.getLogger(__name__)


def effective_depth(request: ExpandRequest) -> int:
    """Requested depth capped by ``stop_at_depth``, clamped to 0..16."""
    depth = clamp_int(request.depth, 1, 0, MAX_HOPS_LIMIT)
    stop = request.stop_conditions
    if stop is not None and stop.stop_at_depth is not None:
        depth = min(depth, clamp_int(stop.stop_at_depth, depth, 0, MAX_HOPS_LIMIT))
    return depth


def expand_from_node(
    model: Model,
    adapter: AnalysisAdapter | None,
    request: ExpandRequest,
) -> TraceExpansionPatch:
    """Expand the explorer graph from ``request.node_id``.

    Args:
        model: Model to traverse
        adapter: Notation adapter for directedness (optional)
        request: Root, direction, depth, filters and stop conditions

    Returns:
        A patch with the discovered nodes (root excluded), the walked edges
        and, for each discovered node, the parents that reached it. An
        unknown root yields an empty patch.
    """
    graph = build_analysis_graph(model, adapter)
    root_id = request.node_id
    if not graph.has_node(root_id):
        logger.debug("Expansion root %r is not in the model", root_id)
        return TraceExpansionPatch(root_node_id=root_id, frontier_by_node_id={})

    max_depth = effective_depth(request)
    direction = normalize_direction(request.direction)
    rel_types = normalize_relationship_type_filter(request.relationship_types)
    layers = normalize_layer_filter(request.layers)
    el_types = normalize_element_type_filter(request.element_types)

    stop = request.stop_conditions
    stop_layers = set(normalize_string_list(stop.stop_at_layer if stop else None) or ())
    stop_types = set(normalize_string_list(stop.stop_at_type if stop else None) or ())

    added_nodes: dict[str, TraceNode] = {}
    added_edges: dict[str, TraceEdge] = {}
    frontier: dict[str, list[str]] = {}

    # Minimum depth at which each node was enqueued in this call
    seen_depth: dict[str, int] = {root_id: 0}
    queue: deque[tuple[str, int]] = deque([(root_id, 0)])

    while queue:
        current, depth = queue.popleft()
        if depth >= max_depth:
            continue

        for step in get_traversal_steps(graph, current, direction, rel_types):
            next_id = step.to_id
            element = graph.nodes.get(next_id)
            if element is None:
                continue
            if not element_passes_layer_filter(element, layers):
                continue
            if not element_passes_type_filter(element, el_types):
                continue

            eid = trace_edge_id(step.relationship_id, step.from_id, step.to_id)
            if eid not in added_edges:
                added_edges[eid] = TraceEdge(
                    id=eid,
                    from_id=step.from_id,
                    to_id=step.to_id,
                    relationship_id=step.relationship_id,
                    type=step.relationship_type,
                )

            next_depth = depth + 1
            if next_id != root_id and next_id not in added_nodes:
                added_nodes[next_id] = TraceNode(id=next_id, depth=next_depth)

            parents = frontier.setdefault(next_id, [])
            if current not in parents:
                parents.append(current)

            if next_depth >= max_depth:
                continue
            if (element.layer and element.layer in stop_layers) or element.type in stop_types:
                continue

            prev = seen_depth.get(next_id)
            if prev is None or next_depth < prev:
                seen_depth[next_id] = next_depth
                queue.append((next_id, next_depth))

    return TraceExpansionPatch(
        root_node_id=root_id,
        added_nodes=tuple(added_nodes.values()),
        added_edges=tuple(added_edges.values()),
        frontier_by_node_id={k: tuple(v) for k, v in frontier.items()},
    )
