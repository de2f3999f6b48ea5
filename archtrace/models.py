"""Pydantic models for the ArchTrace public API.

These are thin wrappers over the engine types (archtrace.engine), providing
validation and serialization for the client-facing API. Numeric limits are
clamped rather than rejected, matching the engine.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from archtrace.engine.graph import (
    DEFAULT_MAX_HOPS,
    MAX_HOPS_LIMIT,
    clamp_int,
    normalize_direction,
)
from archtrace.engine.paths import DEFAULT_K, MAX_K
from archtrace.engine.traceability import DEFAULT_TRACE_DEPTH

DirectionName = Literal["outgoing", "incoming", "both"]


class Element(BaseModel):
    """A model element as seen by analysis clients."""

    id: str
    type: str
    layer: str | None = None
    name: str | None = None
    properties: dict[str, Any] = Field(default_factory=dict)

    def __repr__(self) -> str:
        parts = [f"Element({self.id!r}, type={self.type!r}"]
        if self.layer:
            parts.append(f", layer={self.layer!r}")
        parts.append(")")
        return "".join(parts)


class PathStep(BaseModel):
    """One walked hop: a relationship and the orientation it was walked in."""

    relationship_id: str
    relationship_type: str
    from_id: str
    to_id: str
    reversed: bool = False


class RelatedHit(BaseModel):
    element_id: str
    distance: int
    via: PathStep | None = None


class RelatedElementsResult(BaseModel):
    """Elements reachable from a start element, in discovery order."""

    start_element_id: str
    hits: list[RelatedHit] = Field(default_factory=list)

    @property
    def element_ids(self) -> list[str]:
        return [h.element_id for h in self.hits]


class AnalysisPath(BaseModel):
    element_ids: list[str]
    steps: list[PathStep] = Field(default_factory=list)

    @property
    def hops(self) -> int:
        return len(self.element_ids) - 1


class PathsBetweenResult(BaseModel):
    source_element_id: str
    target_element_id: str
    shortest_distance: int | None = None
    paths: list[AnalysisPath] = Field(default_factory=list)


class MatrixAxisItem(BaseModel):
    id: str
    label: str


class MatrixCell(BaseModel):
    count: int = 0
    relationship_ids: list[str] = Field(default_factory=list)


class RelationshipMatrixResult(BaseModel):
    """Relationship counts between a row set and a column set of elements.

    ``cells[row][col]`` holds the matching relationships for that pair.
    """

    rows: list[MatrixAxisItem]
    cols: list[MatrixAxisItem]
    cells: list[list[MatrixCell]]
    row_totals: list[int]
    col_totals: list[int]
    grand_total: int


class ModelStats(BaseModel):
    """Summary counts for a model and its analysis graph."""

    element_count: int
    relationship_count: int
    edge_count: int
    synthetic_edge_count: int
    elements_by_type: dict[str, int]
    elements_by_layer: dict[str, int]
    relationships_by_type: dict[str, int]


class ValidationResult(BaseModel):
    """Result of a model consistency check.

    Dangling relationships are warnings: analysis leaves them out.
    """

    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    dangling_relationships: list[str] = Field(default_factory=list)


# --- Request models ---


class PathQuery(BaseModel):
    """Parameters of a shortest / k-shortest path query."""

    start_id: str
    target_id: str
    direction: DirectionName = "both"
    relationship_types: list[str] | None = None
    max_hops: int = DEFAULT_MAX_HOPS
    k: int = DEFAULT_K

    @field_validator("direction", mode="before")
    @classmethod
    def _direction(cls, v: Any) -> str:
        return normalize_direction(v)

    @field_validator("max_hops", mode="before")
    @classmethod
    def _max_hops(cls, v: Any) -> int:
        return clamp_int(v, DEFAULT_MAX_HOPS, 0, MAX_HOPS_LIMIT)

    @field_validator("k", mode="before")
    @classmethod
    def _k(cls, v: Any) -> int:
        return clamp_int(v, DEFAULT_K, 0, MAX_K)


class ExpandOptions(BaseModel):
    """Parameters of one explorer expansion (everything but the root)."""

    direction: DirectionName | None = None
    depth: int | None = None
    relationship_types: list[str] | None = None
    layers: list[str] | None = None
    element_types: list[str] | None = None
    stop_at_depth: int | None = None
    stop_at_layer: list[str] | None = None
    stop_at_type: list[str] | None = None

    @field_validator("direction", mode="before")
    @classmethod
    def _direction(cls, v: Any) -> str | None:
        return None if v is None else normalize_direction(v)

    @field_validator("depth", "stop_at_depth", mode="before")
    @classmethod
    def _depth(cls, v: Any) -> int | None:
        return None if v is None else clamp_int(v, DEFAULT_TRACE_DEPTH, 0, MAX_HOPS_LIMIT)
