"""Relationship matrix between two element sets."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from archtrace.engine.directedness import is_explicitly_undirected
from archtrace.engine.filters import (
    normalize_relationship_type_filter,
    relationship_passes_type_filter,
)
from archtrace.engine.model import Model

MATRIX_DIRECTIONS: tuple[str, ...] = ("rowToCol", "colToRow", "both")


@dataclass
class MatrixCell:
    relationship_ids: list[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.relationship_ids)


@dataclass
class RelationshipMatrix:
    rows: list[tuple[str, str]]
    cols: list[tuple[str, str]]
    cells: list[list[MatrixCell]]

    @property
    def row_totals(self) -> list[int]:
        return [sum(c.count for c in row) for row in self.cells]

    @property
    def col_totals(self) -> list[int]:
        return [sum(row[ci].count for row in self.cells) for ci in range(len(self.cols))]

    @property
    def grand_total(self) -> int:
        return sum(self.row_totals)


def _pair_matches(
    direction: str, src_row: bool, tgt_col: bool, src_col: bool, tgt_row: bool
) -> bool:
    if direction == "rowToCol":
        return src_row and tgt_col
    if direction == "colToRow":
        return src_col and tgt_row
    return (src_row and tgt_col) or (src_col and tgt_row)


def build_relationship_matrix(
    model: Model,
    row_ids: Iterable[str],
    col_ids: Iterable[str],
    *,
    relationship_types: Any = None,
    direction: str = "both",
    include_self: bool = False,
) -> RelationshipMatrix:
    """Count the relationships linking each (row, column) element pair.

    Relationships flagged ``isDirected: False`` match either orientation,
    once per cell.
    Cell relationship ids follow model order.

    Args:
        model: Source model
        row_ids: Row element ids (order kept)
        col_ids: Column element ids (order kept)
        relationship_types: Allowed relationship types (empty means all)
        direction: "rowToCol", "colToRow" or "both"
        include_self: Count relationships whose endpoints are the same element
    """
    if direction not in MATRIX_DIRECTIONS:
        direction = "both"
    type_set = normalize_relationship_type_filter(relationship_types)

    rows = [(rid, model.label_for(rid)) for rid in row_ids]
    cols = [(cid, model.label_for(cid)) for cid in col_ids]
    row_index = {rid: i for i, (rid, _) in enumerate(rows)}
    col_index = {cid: i for i, (cid, _) in enumerate(cols)}
    cells = [[MatrixCell() for _ in cols] for _ in rows]

    def _count(a: str, b: str, rel_id: str) -> None:
        a_row, b_col = a in row_index, b in col_index
        a_col, b_row = a in col_index, b in row_index
        if not _pair_matches(direction, a_row, b_col, a_col, b_row):
            return
        if a_row and b_col and direction != "colToRow":
            cells[row_index[a]][col_index[b]].relationship_ids.append(rel_id)
        else:
            cells[row_index[b]][col_index[a]].relationship_ids.append(rel_id)

    for r in model.relationships.values():
        if not relationship_passes_type_filter(r, type_set):
            continue
        a, b = r.source_element_id, r.target_element_id
        if not a or not b:
            continue
        if not include_self and a == b:
            continue
        _count(a, b, r.id)
        # "both" already matches either orientation
        if direction != "both" and is_explicitly_undirected(r.attrs):
            _count(b, a, r.id)

    return RelationshipMatrix(rows=rows, cols=cols, cells=cells)
