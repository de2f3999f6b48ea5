"""Directedness Resolver: may a relationship be walked against its arrow?

The baseline rule is notation-agnostic: a relationship whose attributes carry
``isDirected`` set to ``False`` is undirected, anything else is directed. A
notation adapter may additionally declare an edge not directed; it can only
widen traversal, never narrow it.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from archtrace.engine.graph import AnalysisEdge
    from archtrace.engine.model import Model

logger = logging.getLogger(__name__)


@runtime_checkable
class AnalysisAdapter(Protocol):
    """Notation-specific directedness capability."""

    def is_edge_directed(self, edge: AnalysisEdge, model: Model) -> bool: ...


def is_explicitly_undirected(attrs: Any) -> bool:
    """True only when ``attrs`` structurally contains ``isDirected is False``.

    Missing attrs, a missing flag, or a non-boolean value all mean directed.
    """
    if not isinstance(attrs, Mapping):
        return False
    return attrs.get("isDirected") is False


def resolve_undirected(edge: AnalysisEdge, model: Model, adapter: AnalysisAdapter | None) -> bool:
    """Final undirectedness of ``edge``: baseline OR adapter says not directed."""
    attrs = edge.relationship.attrs if edge.relationship is not None else None
    if is_explicitly_undirected(attrs):
        return True
    if adapter is None:
        return False
    return not adapter.is_edge_directed(edge, model)


def _attrs_of(edge: AnalysisEdge) -> Mapping[str, Any]:
    attrs = edge.relationship.attrs if edge.relationship is not None else None
    return attrs if isinstance(attrs, Mapping) else {}


class GenericAdapter:
    """Every edge is directed; only the baseline ``isDirected`` flag applies."""

    notation = "generic"

    def is_edge_directed(self, edge: AnalysisEdge, model: Model) -> bool:
        return True


class ArchimateAdapter:
    """ArchiMate associations are undirected unless flagged ``isDirected: true``."""

    notation = "archimate"

    def is_edge_directed(self, edge: AnalysisEdge, model: Model) -> bool:
        if edge.relationship_type != "Association":
            return True
        return _attrs_of(edge).get("isDirected") is True


class UmlAdapter:
    """UML associations and links are navigable both ways by default."""

    notation = "uml"

    UNDIRECTED_TYPES = frozenset({"uml.association", "uml.link"})

    def is_edge_directed(self, edge: AnalysisEdge, model: Model) -> bool:
        if edge.relationship_type not in self.UNDIRECTED_TYPES:
            return True
        return _attrs_of(edge).get("isDirected") is True


class BpmnAdapter:
    """BPMN associations follow their ``associationDirection`` attribute."""

    notation = "bpmn"

    def is_edge_directed(self, edge: AnalysisEdge, model: Model) -> bool:
        if edge.relationship_type != "bpmn.association":
            return True
        return _attrs_of(edge).get("associationDirection") not in ("None", "Both")


_ADAPTERS: dict[str, type] = {
    "generic": GenericAdapter,
    "archimate": ArchimateAdapter,
    "uml": UmlAdapter,
    "bpmn": BpmnAdapter,
}


def get_adapter(notation: str | None) -> AnalysisAdapter:
    """Return the adapter for a notation name (case-insensitive).

    Unknown or empty names fall back to :class:`GenericAdapter`.
    """
    key = (notation or "generic").strip().lower()
    cls = _ADAPTERS.get(key)
    if cls is None:
        logger.debug("No analysis adapter for notation %r, using generic", notation)
        cls = GenericAdapter
    adapter: AnalysisAdapter = cls()
    return adapter


def available_notations() -> list[str]:
    return sorted(_ADAPTERS)
