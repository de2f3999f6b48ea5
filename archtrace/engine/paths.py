"""Path Search over the analysis graph.

All searches count hops, never weights, and are bounded by a hop limit.
Ties are broken by edge iteration order, which follows the model's
relationship order, so results are reproducible for a given model.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable, Collection
from dataclasses import dataclass, field
from typing import Any

from archtrace.engine.directedness import AnalysisAdapter
from archtrace.engine.filters import (
    element_passes_filters,
    element_passes_layer_filter,
    normalize_element_type_filter,
    normalize_layer_filter,
    normalize_relationship_type_filter,
)
from archtrace.engine.graph import (
    DEFAULT_MAX_HOPS,
    MAX_HOPS_LIMIT,
    Adjacency,
    AnalysisGraph,
    TraversalStep,
    build_analysis_graph,
    clamp_int,
    get_traversal_steps,
    normalize_direction,
)
from archtrace.engine.model import Model

logger = logging.getLogger(__name__)

DEFAULT_K = 3
MAX_K = 50
DEFAULT_MAX_PATHS = 10

# Work caps for k-shortest enumeration on dense graphs
MAX_EXPANSIONS = 20_000
MAX_QUEUE = 6_000


def bfs_shortest_path(
    start_id: str,
    target_id: str,
    adjacency: Adjacency,
    direction: str = "both",
    max_hops: int = DEFAULT_MAX_HOPS,
) -> list[str] | None:
    """First-discovered shortest path from ``start_id`` to ``target_id``.

    Args:
        start_id: Node to start from
        target_id: Node to reach
        adjacency: Restricted neighbour lists (see build_adjacency)
        direction: "outgoing", "incoming" or "both"
        max_hops: Maximum number of edges in the path (clamped to 0..16)

    Returns:
        Node ids from start to target inclusive, or None if the target is
        unknown or not reachable within ``max_hops``
    """
    if not adjacency.has_node(start_id) or not adjacency.has_node(target_id):
        return None
    if start_id == target_id:
        return [start_id]

    direction = normalize_direction(direction)
    max_hops = clamp_int(max_hops, DEFAULT_MAX_HOPS, 0, MAX_HOPS_LIMIT)

    parent: dict[str, str | None] = {start_id: None}
    depth: dict[str, int] = {start_id: 0}
    queue: deque[str] = deque([start_id])
    found = False

    while queue and not found:
        current = queue.popleft()
        d = depth[current]
        if d >= max_hops:
            continue
        for nb in adjacency.neighbors(current, direction):
            if nb in parent:
                continue
            parent[nb] = current
            depth[nb] = d + 1
            if nb == target_id:
                found = True
                break
            queue.append(nb)

    if not found:
        return None

    path: list[str] = []
    node: str | None = target_id
    while node is not None:
        path.append(node)
        node = parent[node]
    path.reverse()
    return path


def bfs_k_shortest_paths(
    start_id: str,
    target_id: str,
    adjacency: Adjacency,
    direction: str = "both",
    max_hops: int = DEFAULT_MAX_HOPS,
    k: int = DEFAULT_K,
) -> list[list[str]]:
    """Up to ``k`` loopless paths in non-decreasing length order.

    Partial paths are extended breadth-first; a node already on a partial
    path is never appended to it again, so cycles in the graph cannot
    produce repeated nodes. Enumeration stops at ``k`` results or when the
    hop-bounded search space is exhausted.
    """
    k = clamp_int(k, DEFAULT_K, 0, MAX_K)
    if k == 0:
        return []
    if not adjacency.has_node(start_id) or not adjacency.has_node(target_id):
        return []
    if start_id == target_id:
        return [[start_id]]

    direction = normalize_direction(direction)
    max_hops = clamp_int(max_hops, DEFAULT_MAX_HOPS, 0, MAX_HOPS_LIMIT)

    results: list[list[str]] = []
    queue: deque[list[str]] = deque([[start_id]])
    expansions = 0

    while queue and len(results) < k:
        path = queue.popleft()
        expansions += 1
        if expansions > MAX_EXPANSIONS:
            logger.debug("k-shortest search hit the expansion cap (%d)", MAX_EXPANSIONS)
            break

        last = path[-1]
        if last == target_id:
            results.append(path)
            continue
        if len(path) - 1 >= max_hops:
            continue

        for nb in adjacency.neighbors(last, direction):
            if nb in path:
                continue
            if len(queue) >= MAX_QUEUE:
                logger.debug("k-shortest search queue is full (%d)", MAX_QUEUE)
                break
            queue.append([*path, nb])

    return results


# ========== Model-level queries ==========


@dataclass
class RelatedHit:
    element_id: str
    distance: int
    via: TraversalStep | None = None


@dataclass
class RelatedElementsResult:
    start_element_id: str
    hits: list[RelatedHit] = field(default_factory=list)


@dataclass
class AnalysisPath:
    element_ids: list[str]
    steps: list[TraversalStep]


@dataclass
class PathsBetweenResult:
    source_element_id: str
    target_element_id: str
    shortest_distance: int | None = None
    paths: list[AnalysisPath] = field(default_factory=list)


def query_related_elements(
    model: Model,
    start_id: str,
    *,
    adapter: AnalysisAdapter | None = None,
    direction: str = "both",
    max_depth: Any = 3,
    relationship_types: Any = None,
    layers: Any = None,
    element_types: Any = None,
) -> RelatedElementsResult:
    """Elements reachable from ``start_id`` within ``max_depth`` hops.

    Layer and element-type filters select which reachable elements are
    reported; traversal still passes through elements they exclude.
    Hits are in breadth-first discovery order with the step that first
    reached them.
    """
    graph = build_analysis_graph(model, adapter)
    result = RelatedElementsResult(start_element_id=start_id)
    if not graph.has_node(start_id):
        return result

    direction = normalize_direction(direction)
    max_depth = clamp_int(max_depth, 3, 0, MAX_HOPS_LIMIT)
    type_set = normalize_relationship_type_filter(relationship_types)
    layer_set = normalize_layer_filter(layers)
    el_type_set = normalize_element_type_filter(element_types)

    distance: dict[str, int] = {start_id: 0}
    queue: deque[str] = deque([start_id])

    while queue:
        current = queue.popleft()
        d = distance[current]
        if d >= max_depth:
            continue
        for step in get_traversal_steps(graph, current, direction, type_set):
            nxt = step.to_id
            if nxt in distance:
                continue
            distance[nxt] = d + 1
            queue.append(nxt)
            if element_passes_filters(graph.nodes[nxt], layer_set, el_type_set):
                result.hits.append(RelatedHit(element_id=nxt, distance=d + 1, via=step))

    return result


def _pred_sort_key(pred: tuple[str, TraversalStep]) -> str:
    prev_id, step = pred
    return f"{prev_id}:{step.relationship_id}:{step.relationship_type}"


def query_paths_between(
    model: Model,
    source_id: str,
    target_id: str,
    *,
    adapter: AnalysisAdapter | None = None,
    direction: str = "both",
    relationship_types: Any = None,
    layers: Any = None,
    max_path_length: Any = None,
    max_paths: Any = DEFAULT_MAX_PATHS,
) -> PathsBetweenResult:
    """All shortest paths between two elements, up to ``max_paths``.

    Builds a breadth-first predecessor DAG and enumerates it. Intermediate
    elements must pass the layer filter; the two endpoints always do.
    Predecessors are sorted so the enumeration order is stable.
    """
    graph = build_analysis_graph(model, adapter)
    result = PathsBetweenResult(source_element_id=source_id, target_element_id=target_id)
    if not graph.has_node(source_id) or not graph.has_node(target_id):
        return result

    direction = normalize_direction(direction)
    max_paths = clamp_int(max_paths, DEFAULT_MAX_PATHS, 0, 1000)
    max_length = clamp_int(max_path_length, MAX_HOPS_LIMIT, 0, MAX_HOPS_LIMIT)
    type_set = normalize_relationship_type_filter(relationship_types)
    layer_set = normalize_layer_filter(layers)

    if source_id == target_id:
        result.shortest_distance = 0
        result.paths.append(AnalysisPath(element_ids=[source_id], steps=[]))
        return result

    def _allowed(node_id: str) -> bool:
        if node_id in (source_id, target_id):
            return True
        return element_passes_layer_filter(graph.nodes[node_id], layer_set)

    dist: dict[str, int] = {source_id: 0}
    preds: dict[str, list[tuple[str, TraversalStep]]] = {}
    queue: deque[str] = deque([source_id])
    found: int | None = None

    while queue:
        current = queue.popleft()
        d = dist[current]
        if found is not None and d >= found:
            continue
        for step in get_traversal_steps(graph, current, direction, type_set):
            nxt = step.to_id
            nd = d + 1
            if nd > max_length or not _allowed(nxt):
                continue
            prev = dist.get(nxt)
            if prev is None:
                dist[nxt] = nd
                preds[nxt] = [(current, step)]
                queue.append(nxt)
            elif prev == nd:
                preds[nxt].append((current, step))
            if nxt == target_id:
                found = dist[target_id]

    shortest = dist.get(target_id)
    if shortest is None:
        return result
    result.shortest_distance = shortest

    for bucket in preds.values():
        bucket.sort(key=_pred_sort_key)

    # Depth-first from the target; push in reverse so the smallest key pops first.
    # Equal-length paths therefore come out in ascending predecessor-key order.
    stack: list[tuple[str, list[TraversalStep], list[str]]] = [(target_id, [], [target_id])]
    while stack and len(result.paths) < max_paths:
        node_id, steps_rev, ids_rev = stack.pop()
        if node_id == source_id:
            result.paths.append(
                AnalysisPath(element_ids=ids_rev[::-1], steps=steps_rev[::-1])
            )
            continue
        for prev_id, step in reversed(preds.get(node_id, [])):
            stack.append((prev_id, [*steps_rev, step], [*ids_rev, prev_id]))

    return result


# ========== Yen-style k-shortest paths between two elements ==========

MAX_KSHORTEST_PATHS = 25
MAX_KSHORTEST_PATH_LENGTH = 50


def _single_path_with_bans(
    graph: AnalysisGraph,
    source_id: str,
    target_id: str,
    direction: str,
    type_set: frozenset[str] | None,
    allowed: Callable[[str], bool],
    max_length: int,
    banned_step_keys: Collection[str],
    banned_node_ids: Collection[str],
) -> AnalysisPath | None:
    if source_id in banned_node_ids or target_id in banned_node_ids:
        return None
    if source_id == target_id:
        return AnalysisPath(element_ids=[source_id], steps=[])

    parent: dict[str, TraversalStep | None] = {source_id: None}
    depth: dict[str, int] = {source_id: 0}
    queue: deque[str] = deque([source_id])

    while queue and target_id not in parent:
        current = queue.popleft()
        d = depth[current]
        if d >= max_length:
            continue
        for step in get_traversal_steps(graph, current, direction, type_set):
            nxt = step.to_id
            if nxt in parent or nxt in banned_node_ids or step.key in banned_step_keys:
                continue
            if not allowed(nxt):
                continue
            parent[nxt] = step
            depth[nxt] = d + 1
            if nxt == target_id:
                break
            queue.append(nxt)

    if target_id not in parent:
        return None

    steps: list[TraversalStep] = []
    via = parent[target_id]
    while via is not None:
        steps.append(via)
        via = parent[via.from_id]
    steps.reverse()
    return AnalysisPath(element_ids=[source_id, *(s.to_id for s in steps)], steps=steps)


def find_shortest_single_path_with_bans(
    model: Model,
    source_id: str,
    target_id: str,
    *,
    adapter: AnalysisAdapter | None = None,
    direction: str = "both",
    relationship_types: Any = None,
    layers: Any = None,
    max_path_length: Any = None,
    banned_step_keys: Collection[str] = (),
    banned_node_ids: Collection[str] = (),
) -> AnalysisPath | None:
    """One shortest path, avoiding banned hops and elements.

    The first path found breadth-first wins, so among equal-length paths
    the one reached through earlier relationships is returned.

    Args:
        model: Model to search
        source_id: Element to start from
        target_id: Element to reach
        adapter: Notation adapter deciding which relationships are undirected
        direction: "outgoing", "incoming" or "both"
        relationship_types: Only walk these relationship types
        layers: Intermediate elements must be in these layers
        max_path_length: Maximum number of hops (clamped to 0..50)
        banned_step_keys: Hop keys (``relationshipId:from->to``) not to walk
        banned_node_ids: Elements the path may not touch

    Returns:
        The path, or None when the endpoints are unknown or unreachable
    """
    graph = build_analysis_graph(model, adapter)
    if not graph.has_node(source_id) or not graph.has_node(target_id):
        return None
    layer_set = normalize_layer_filter(layers)

    def _allowed(node_id: str) -> bool:
        return node_id == target_id or element_passes_layer_filter(graph.nodes[node_id], layer_set)

    return _single_path_with_bans(
        graph,
        source_id,
        target_id,
        normalize_direction(direction),
        normalize_relationship_type_filter(relationship_types),
        _allowed,
        clamp_int(max_path_length, MAX_KSHORTEST_PATH_LENGTH, 0, MAX_KSHORTEST_PATH_LENGTH),
        frozenset(banned_step_keys),
        frozenset(banned_node_ids),
    )


def _path_key(path: AnalysisPath) -> tuple[str, ...]:
    return tuple(s.key for s in path.steps)


def query_k_shortest_paths_between(
    model: Model,
    source_id: str,
    target_id: str,
    *,
    adapter: AnalysisAdapter | None = None,
    direction: str = "both",
    relationship_types: Any = None,
    layers: Any = None,
    max_path_length: Any = None,
    max_paths: Any = DEFAULT_MAX_PATHS,
) -> PathsBetweenResult:
    """Up to ``max_paths`` loopless paths, shortest first (Yen's algorithm).

    Unlike query_paths_between this keeps going past the shortest length:
    once the equal-length paths are used up, longer alternatives follow.
    Each accepted path spawns spur searches that ban the hops already used
    after a shared prefix and the prefix elements themselves.
    """
    graph = build_analysis_graph(model, adapter)
    result = PathsBetweenResult(source_element_id=source_id, target_element_id=target_id)
    if not graph.has_node(source_id) or not graph.has_node(target_id):
        return result

    direction = normalize_direction(direction)
    max_paths = clamp_int(max_paths, DEFAULT_MAX_PATHS, 0, MAX_KSHORTEST_PATHS)
    max_length = clamp_int(
        max_path_length, MAX_KSHORTEST_PATH_LENGTH, 0, MAX_KSHORTEST_PATH_LENGTH
    )
    type_set = normalize_relationship_type_filter(relationship_types)
    layer_set = normalize_layer_filter(layers)
    if max_paths == 0:
        return result

    def _allowed(node_id: str) -> bool:
        if node_id in (source_id, target_id):
            return True
        return element_passes_layer_filter(graph.nodes[node_id], layer_set)

    def _search(start: str, limit: int, steps: Collection[str], nodes: Collection[str]):
        return _single_path_with_bans(
            graph, start, target_id, direction, type_set, _allowed, limit, steps, nodes
        )

    first = _search(source_id, max_length, (), ())
    if first is None:
        return result

    accepted: list[AnalysisPath] = [first]
    seen: set[tuple[str, ...]] = {_path_key(first)}
    candidates: list[AnalysisPath] = []

    while len(accepted) < max_paths:
        last = accepted[-1]
        for i in range(len(last.steps)):
            spur_id = last.element_ids[i]
            root_ids = last.element_ids[: i + 1]
            banned_steps = {
                p.steps[i].key
                for p in accepted
                if len(p.steps) > i and p.element_ids[: i + 1] == root_ids
            }
            spur = _search(spur_id, max_length - i, banned_steps, set(root_ids[:-1]))
            if spur is None:
                continue
            total = AnalysisPath(
                element_ids=root_ids[:-1] + spur.element_ids,
                steps=last.steps[:i] + spur.steps,
            )
            key = _path_key(total)
            if key in seen:
                continue
            seen.add(key)
            candidates.append(total)

        if not candidates:
            break
        # min() keeps the earliest candidate among equal lengths
        best = min(candidates, key=lambda p: len(p.steps))
        candidates.remove(best)
        accepted.append(best)

    result.shortest_distance = len(first.steps)
    result.paths = accepted
    return result
