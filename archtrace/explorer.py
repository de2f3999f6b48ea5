"""Traceability explorer session.

A TraceExplorer owns one TraceGraphState and replaces it wholesale on every
change. Callers that keep a reference to an earlier ``state`` keep seeing
that earlier value.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from archtrace.engine.directedness import AnalysisAdapter
from archtrace.engine.expand import expand_from_node
from archtrace.engine.filters import normalize_string_list
from archtrace.engine.model import Model
from archtrace.engine.traceability import (
    ExpandRequest,
    StopConditions,
    TraceExpansionPatch,
    TraceFilters,
    TraceGraphState,
    apply_expansion,
    create_initial_trace_graph,
    parents_of,
    trace_state_to_dict,
    with_filters,
    with_node_flags,
    with_selection,
)
from archtrace.models import ExpandOptions


def _as_tuple(values: Iterable[str] | None) -> tuple[str, ...] | None:
    cleaned = normalize_string_list(values)
    return tuple(cleaned) if cleaned is not None else None


class TraceExplorer:
    """Interactive, incrementally expanded traceability graph.

    Example:
        ```python
        explorer = client.explorer(["app_crm"])
        explorer.expand("app_crm", direction="outgoing", depth=2)
        explorer.parents_of("db_customers")   # ("app_crm",)
        ```
    """

    def __init__(
        self,
        model: Model,
        adapter: AnalysisAdapter | None,
        seed_ids: Iterable[str],
        **options: Any,
    ) -> None:
        self._model = model
        self._adapter = adapter
        self._options = options
        self._state = create_initial_trace_graph(seed_ids, **options)

    @property
    def state(self) -> TraceGraphState:
        return self._state

    def reset(self, seed_ids: Iterable[str], **options: Any) -> TraceGraphState:
        """Discard the session graph and re-seed it."""
        self._options = options or self._options
        self._state = create_initial_trace_graph(seed_ids, **self._options)
        return self._state

    def build_request(self, node_id: str, options: ExpandOptions | None = None) -> ExpandRequest:
        """Fill an ExpandRequest from ``options`` and the session defaults."""
        opts = options or ExpandOptions()
        filters = self._state.filters
        stop = None
        if (
            opts.stop_at_depth is not None
            or opts.stop_at_layer is not None
            or opts.stop_at_type is not None
        ):
            stop = StopConditions(
                stop_at_depth=opts.stop_at_depth,
                stop_at_layer=_as_tuple(opts.stop_at_layer),
                stop_at_type=_as_tuple(opts.stop_at_type),
            )
        return ExpandRequest(
            node_id=node_id,
            direction=opts.direction or filters.direction,
            depth=opts.depth if opts.depth is not None else self._state.max_depth_default,
            relationship_types=(
                _as_tuple(opts.relationship_types)
                if opts.relationship_types is not None
                else filters.relationship_types
            ),
            layers=_as_tuple(opts.layers) if opts.layers is not None else filters.layers,
            element_types=(
                _as_tuple(opts.element_types)
                if opts.element_types is not None
                else filters.element_types
            ),
            stop_conditions=stop,
        )

    def compute(self, node_id: str, **options: Any) -> TraceExpansionPatch:
        """Compute the patch for an expansion without applying it."""
        request = self.build_request(node_id, ExpandOptions(**options))
        return expand_from_node(self._model, self._adapter, request)

    def apply(self, patch: TraceExpansionPatch) -> TraceGraphState:
        self._state = apply_expansion(self._state, patch)
        return self._state

    def expand(self, node_id: str, **options: Any) -> TraceGraphState:
        """Expand from ``node_id`` and merge the result into the session.

        Keyword options are those of :class:`archtrace.models.ExpandOptions`;
        anything left out comes from the session filters and default depth.
        """
        return self.apply(self.compute(node_id, **options))

    # --- user actions ---

    def select_node(self, node_id: str | None) -> TraceGraphState:
        self._state = with_selection(self._state, node_id=node_id)
        return self._state

    def select_edge(self, edge_id: str | None) -> TraceGraphState:
        self._state = with_selection(self._state, edge_id=edge_id)
        return self._state

    def set_filters(self, filters: TraceFilters | Mapping[str, Any]) -> TraceGraphState:
        self._state = with_filters(self._state, filters)
        return self._state

    def toggle_pin(self, node_id: str) -> TraceGraphState:
        node = self._state.nodes_by_id.get(node_id)
        if node is not None:
            self._state = with_node_flags(self._state, node_id, pinned=not node.pinned)
        return self._state

    def toggle_expanded(self, node_id: str) -> TraceGraphState:
        """Flip the expanded flag without computing or dropping any neighbours."""
        node = self._state.nodes_by_id.get(node_id)
        if node is not None:
            self._state = with_node_flags(self._state, node_id, expanded=not node.expanded)
        return self._state

    def collapse(self, node_id: str) -> TraceGraphState:
        """Mark a node as not expanded; its discovered neighbours stay."""
        self._state = with_node_flags(self._state, node_id, expanded=False)
        return self._state

    def hide(self, node_id: str, hidden: bool = True) -> TraceGraphState:
        self._state = with_node_flags(self._state, node_id, hidden=hidden)
        return self._state

    # --- queries ---

    def parents_of(self, node_id: str) -> tuple[str, ...]:
        return parents_of(self._state, node_id)

    def visible_node_ids(self) -> list[str]:
        return [n.id for n in self._state.nodes_by_id.values() if not n.hidden]

    def to_dict(self) -> dict[str, Any]:
        return trace_state_to_dict(self._state)
