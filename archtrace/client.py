"""ArchTrace client: the primary interface for analysing a model."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

from archtrace.engine.directedness import AnalysisAdapter, get_adapter
from archtrace.engine.filters import normalize_relationship_type_filter
from archtrace.engine.graph import (
    AnalysisGraph,
    TraversalStep,
    build_adjacency,
    build_analysis_graph,
)
from archtrace.engine.matrix import build_relationship_matrix
from archtrace.engine.model import Element as CoreElement
from archtrace.engine.model import Model, Relationship
from archtrace.engine.paths import (
    DEFAULT_K,
    bfs_k_shortest_paths,
    bfs_shortest_path,
    query_k_shortest_paths_between,
    query_paths_between,
    query_related_elements,
)
from archtrace.engine.persistence import load_model, save_model
from archtrace.explorer import TraceExplorer
from archtrace.models import (
    AnalysisPath,
    Element,
    MatrixAxisItem,
    MatrixCell,
    ModelStats,
    PathQuery,
    PathsBetweenResult,
    PathStep,
    RelatedElementsResult,
    RelatedHit,
    RelationshipMatrixResult,
    ValidationResult,
)

PATH_MODES = ("shortest", "k-shortest")

# --- Conversion helpers: engine types <-> pydantic models ---


def _core_element_to_model(el: CoreElement) -> Element:
    return Element(id=el.id, type=el.type, layer=el.layer, name=el.name, properties=el.properties)


def _step_to_model(step: TraversalStep) -> PathStep:
    return PathStep(
        relationship_id=step.relationship_id,
        relationship_type=step.relationship_type,
        from_id=step.from_id,
        to_id=step.to_id,
        reversed=step.reversed,
    )


class ArchTrace:
    """Analysis client over one model.

    The analysis graph is rebuilt for every query, so edits made to the model
    between calls are always picked up.

    Constructor patterns:
        - ``ArchTrace()``: empty model, built up with ``element()`` / ``relationship()``
        - ``ArchTrace(model, notation="archimate")``: existing model
        - ``ArchTrace.from_file("model.json")``: JSON model file

    Example:
        ```python
        at = ArchTrace(notation="archimate")
        at.element("crm", type="ApplicationComponent", layer="Application")
        at.element("db", type="Node", layer="Technology")
        at.relationship("r1", "crm", "db", type="Serving")
        at.shortest_path("crm", "db", direction="outgoing")   # ["crm", "db"]
        ```
    """

    def __init__(
        self,
        model: Model | None = None,
        *,
        notation: str = "generic",
        adapter: AnalysisAdapter | None = None,
    ) -> None:
        self._model = model if model is not None else Model()
        self._adapter = adapter if adapter is not None else get_adapter(notation)

    @classmethod
    def from_file(cls, path: str | Path, *, notation: str = "generic") -> ArchTrace:
        """Load a JSON model file."""
        return cls(load_model(path), notation=notation)

    @classmethod
    def from_dict(cls, data: dict[str, Any], *, notation: str = "generic") -> ArchTrace:
        return cls(Model.from_dict(data), notation=notation)

    def save(self, path: str | Path) -> Path:
        """Write the model as JSON."""
        return save_model(self._model, path)

    @property
    def model(self) -> Model:
        return self._model

    @property
    def adapter(self) -> AnalysisAdapter:
        return self._adapter

    # --- Model building ---

    def element(
        self,
        id: str,
        *,
        type: str,
        layer: str | None = None,
        name: str | None = None,
        **properties: Any,
    ) -> Element:
        """Create or replace an element."""
        el = self._model.add_element(
            CoreElement(id=id, type=type, layer=layer, name=name, properties=properties)
        )
        return _core_element_to_model(el)

    def relationship(
        self,
        id: str,
        source: str,
        target: str,
        *,
        type: str,
        directed: bool = True,
        **attrs: Any,
    ) -> str:
        """Create or replace a relationship and return its id.

        ``directed=False`` stores ``isDirected: False`` in the attributes.
        """
        if not directed:
            attrs["isDirected"] = False
        self._model.add_relationship(
            Relationship(
                id=id,
                type=type,
                source_element_id=source,
                target_element_id=target,
                attrs=attrs,
            )
        )
        return id

    def get_element(self, id: str) -> Element | None:
        el = self._model.get_element(id)
        return _core_element_to_model(el) if el is not None else None

    def elements(self, *, type: str | None = None, layer: str | None = None) -> list[Element]:
        return [
            _core_element_to_model(el)
            for el in self._model.elements.values()
            if (type is None or el.type == type) and (layer is None or el.layer == layer)
        ]

    # --- Graph ---

    def graph(self) -> AnalysisGraph:
        """Build the analysis graph for the current model."""
        return build_analysis_graph(self._model, self._adapter)

    # --- Queries ---

    def related(
        self,
        start: str,
        *,
        direction: str = "both",
        max_depth: int = 3,
        relationship_types: list[str] | None = None,
        layers: list[str] | None = None,
        element_types: list[str] | None = None,
    ) -> RelatedElementsResult:
        """Find elements reachable from ``start``.

        Layer and element-type filters choose which elements are returned;
        traversal may pass through elements they exclude.
        """
        res = query_related_elements(
            self._model,
            start,
            adapter=self._adapter,
            direction=direction,
            max_depth=max_depth,
            relationship_types=relationship_types,
            layers=layers,
            element_types=element_types,
        )
        return RelatedElementsResult(
            start_element_id=res.start_element_id,
            hits=[
                RelatedHit(
                    element_id=h.element_id,
                    distance=h.distance,
                    via=_step_to_model(h.via) if h.via is not None else None,
                )
                for h in res.hits
            ],
        )

    def shortest_path(self, start: str, target: str, **params: Any) -> list[str] | None:
        """First-found shortest path as element ids, or None.

        Keyword parameters are those of :class:`archtrace.models.PathQuery`.
        """
        query = PathQuery(start_id=start, target_id=target, **params)
        adjacency = build_adjacency(
            self.graph(), normalize_relationship_type_filter(query.relationship_types)
        )
        return bfs_shortest_path(
            query.start_id, query.target_id, adjacency, query.direction, query.max_hops
        )

    def k_shortest_paths(
        self, start: str, target: str, *, k: int = DEFAULT_K, **params: Any
    ) -> list[list[str]]:
        """Up to ``k`` loopless paths, shortest first."""
        query = PathQuery(start_id=start, target_id=target, k=k, **params)
        adjacency = build_adjacency(
            self.graph(), normalize_relationship_type_filter(query.relationship_types)
        )
        return bfs_k_shortest_paths(
            query.start_id, query.target_id, adjacency, query.direction, query.max_hops, query.k
        )

    def paths_between(
        self,
        source: str,
        target: str,
        *,
        direction: str = "both",
        relationship_types: list[str] | None = None,
        layers: list[str] | None = None,
        max_path_length: int | None = None,
        max_paths: int = 10,
        mode: str = "shortest",
    ) -> PathsBetweenResult:
        """Paths between two elements, with the walked steps.

        ``mode="shortest"`` returns every path of the shortest length;
        ``mode="k-shortest"`` keeps going with longer loopless alternatives.
        """
        if mode not in PATH_MODES:
            raise ValueError(f"Unknown paths mode {mode!r}; expected one of {PATH_MODES}")
        query = (
            query_k_shortest_paths_between if mode == "k-shortest" else query_paths_between
        )
        res = query(
            self._model,
            source,
            target,
            adapter=self._adapter,
            direction=direction,
            relationship_types=relationship_types,
            layers=layers,
            max_path_length=max_path_length,
            max_paths=max_paths,
        )
        return PathsBetweenResult(
            source_element_id=res.source_element_id,
            target_element_id=res.target_element_id,
            shortest_distance=res.shortest_distance,
            paths=[
                AnalysisPath(
                    element_ids=p.element_ids, steps=[_step_to_model(s) for s in p.steps]
                )
                for p in res.paths
            ],
        )

    def matrix(
        self,
        rows: Iterable[str],
        cols: Iterable[str],
        *,
        relationship_types: list[str] | None = None,
        direction: str = "both",
        include_self: bool = False,
    ) -> RelationshipMatrixResult:
        """Relationship counts between two element sets."""
        m = build_relationship_matrix(
            self._model,
            rows,
            cols,
            relationship_types=relationship_types,
            direction=direction,
            include_self=include_self,
        )
        return RelationshipMatrixResult(
            rows=[MatrixAxisItem(id=i, label=label) for i, label in m.rows],
            cols=[MatrixAxisItem(id=i, label=label) for i, label in m.cols],
            cells=[
                [MatrixCell(count=c.count, relationship_ids=list(c.relationship_ids)) for c in row]
                for row in m.cells
            ],
            row_totals=m.row_totals,
            col_totals=m.col_totals,
            grand_total=m.grand_total,
        )

    def explorer(self, seed_ids: Iterable[str], **options: Any) -> TraceExplorer:
        """Open a traceability explorer session seeded by ``seed_ids``.

        Options are those of
        :func:`archtrace.engine.traceability.create_initial_trace_graph`.
        """
        return TraceExplorer(self._model, self._adapter, seed_ids, **options)

    # --- Statistics & validation ---

    def stats(self) -> ModelStats:
        s = self._model.stats()
        g = self.graph().stats()
        return ModelStats(
            element_count=s["num_elements"],
            relationship_count=s["num_relationships"],
            edge_count=g["num_edges"],
            synthetic_edge_count=g["num_synthetic_edges"],
            elements_by_type=s["elements_by_type"],
            elements_by_layer=s["elements_by_layer"],
            relationships_by_type=s["relationships_by_type"],
        )

    def validate(self) -> ValidationResult:
        """Check the model for relationships analysis will leave out."""
        result = self._model.validate()
        return ValidationResult(
            valid=result["valid"],
            errors=result.get("errors", []),
            warnings=result.get("warnings", []),
            dangling_relationships=result.get("dangling_relationships", []),
        )
