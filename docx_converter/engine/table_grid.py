"""
Table grid reconstruction.

Turns sparse span/merge markup into a dense grid where every row is
partitioned, left to right and without overlap, into visible cells, merge
continuations and fillers covering exactly ``column_count`` columns.

The builder is format neutral: WML tables are read with :func:`build_grid`,
and the HTML importer feeds :class:`CellSpec` rows straight into
:class:`GridBuilder`.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..styles.properties import is_header_row
from ..utils.xml_utils import element_children, first_child_w, is_w, to_int, w, w_attr, w_val

logger = logging.getLogger(__name__)

CELL = "cell"
CONTINUATION = "continuation"
FILLER = "filler"


@dataclass
class CellSpec:
    """
    One explicit cell as it appears in the source row.

    Attributes:
        source: Source cell element.
        colspan: Number of grid columns covered.
        vmerge: ``"restart"``, ``"continue"`` or ``None`` (WML markers).
        rowspan: Explicit row span (HTML); ``1`` for WML.
    """

    source: Any = None
    colspan: int = 1
    vmerge: Optional[str] = None
    rowspan: int = 1


@dataclass
class RowSpec:
    cells: List[CellSpec] = field(default_factory=list)
    grid_before: int = 0
    grid_after: int = 0
    source: Any = None
    is_header: bool = False


@dataclass(eq=False)
class GridCell:
    row: int
    col: int
    colspan: int = 1
    rowspan: int = 1
    kind: str = CELL
    source: Any = None
    origin: Optional["GridCell"] = None

    @property
    def is_visible(self) -> bool:
        return self.kind == CELL

    @property
    def end(self) -> int:
        return self.col + self.colspan


@dataclass
class GridRow:
    cells: List[GridCell] = field(default_factory=list)
    source: Any = None
    is_header: bool = False

    @property
    def visible_cells(self) -> List[GridCell]:
        return [cell for cell in self.cells if cell.is_visible]


@dataclass
class TableGrid:
    rows: List[GridRow] = field(default_factory=list)
    column_count: int = 0
    anomalies: List[str] = field(default_factory=list)


@dataclass
class _PendingSpan:
    origin: GridCell
    width: int
    remaining: Optional[int] = None  # None: open-ended, extended by continuation markers


class GridBuilder:
    """
    Builds a :class:`TableGrid` row by row.

    The pending map (start column -> in-progress vertical span) lives on the
    builder and is discarded with it; one builder serves one table.
    """

    def __init__(self, declared_columns: int = 0):
        self.declared_columns = declared_columns
        self.rows: List[GridRow] = []
        self.anomalies: List[str] = []
        self._pending: Dict[int, _PendingSpan] = {}

    def add_row(self, spec: RowSpec) -> GridRow:
        r = len(self.rows)
        cells: List[GridCell] = []
        continued = set()
        cursor = 0

        if spec.grid_before > 0:
            cells.append(GridCell(r, 0, spec.grid_before, kind=FILLER))
            cursor = spec.grid_before

        for cell_spec in spec.cells:
            colspan = max(1, int(cell_spec.colspan or 1))
            cursor = self._emit_finite(r, cursor, cells, continued)

            if cell_spec.vmerge == "continue":
                span = self._pending.get(cursor)
                if span is not None:
                    cells.append(self._continue(r, span))
                    continued.add(cursor)
                    if colspan > span.width:
                        cells.append(GridCell(r, cursor + span.width, colspan - span.width, kind=FILLER))
                    cursor += max(colspan, span.width)
                    continue
                self.anomalies.append(
                    f"Row {r + 1}, column {cursor + 1}: merge continuation without an open span"
                )

            self._close_covered(r, cursor, colspan)
            rowspan = max(1, int(cell_spec.rowspan or 1))
            cell = GridCell(r, cursor, colspan, rowspan, CELL, cell_spec.source)
            cells.append(cell)
            if cell_spec.vmerge == "restart":
                self._pending[cursor] = _PendingSpan(cell, colspan, None)
                continued.add(cursor)
            elif rowspan > 1:
                self._pending[cursor] = _PendingSpan(cell, colspan, rowspan - 1)
                continued.add(cursor)
            cursor += colspan

        # flush finite spans to the right of the last explicit cell
        for start in sorted(self._pending):
            span = self._pending[start]
            if start >= cursor and span.remaining is not None and start not in continued:
                cells.append(self._continue(r, span))
                continued.add(start)
                cursor = start + span.width

        if spec.grid_after > 0:
            end = max((cell.end for cell in cells), default=0)
            cells.append(GridCell(r, end, spec.grid_after, kind=FILLER))

        self._advance_pending(r, continued)
        row = GridRow(cells=sorted(cells, key=lambda item: item.col), source=spec.source, is_header=spec.is_header)
        self.rows.append(row)
        return row

    def _emit_finite(self, r: int, cursor: int, cells: List[GridCell], continued: set) -> int:
        while True:
            span = self._pending.get(cursor)
            if span is None or span.remaining is None or cursor in continued:
                return cursor
            cells.append(self._continue(r, span))
            continued.add(cursor)
            cursor += span.width

    def _continue(self, r: int, span: _PendingSpan) -> GridCell:
        if span.remaining is None:
            span.origin.rowspan += 1
        return GridCell(
            r,
            span.origin.col,
            span.width,
            span.origin.rowspan,
            CONTINUATION,
            span.origin.source,
            span.origin,
        )

    def _close_covered(self, r: int, start: int, width: int) -> None:
        for col in [c for c in self._pending if start <= c < start + width]:
            span = self._pending.pop(col)
            if span.remaining is not None:
                span.origin.rowspan = r - span.origin.row

    def _advance_pending(self, r: int, continued: set) -> None:
        for col in list(self._pending):
            span = self._pending[col]
            if col not in continued:
                if span.remaining is None:
                    del self._pending[col]
                continue
            if span.remaining is not None and span.origin.row != r:
                span.remaining -= 1
                if span.remaining <= 0:
                    del self._pending[col]

    def finish(self) -> TableGrid:
        """Close open spans and pad every row to the table's column count."""
        for span in self._pending.values():
            if span.remaining:
                span.origin.rowspan -= span.remaining
        self._pending.clear()

        widest = max((max((cell.end for cell in row.cells), default=0) for row in self.rows), default=0)
        column_count = max(self.declared_columns, widest)
        for r, row in enumerate(self.rows):
            padded: List[GridCell] = []
            cursor = 0
            for cell in row.cells:
                if cell.col > cursor:
                    padded.append(GridCell(r, cursor, cell.col - cursor, kind=FILLER))
                padded.append(cell)
                cursor = max(cursor, cell.end)
            if cursor < column_count:
                padded.append(GridCell(r, cursor, column_count - cursor, kind=FILLER))
            row.cells = padded
        for row in self.rows:
            for cell in row.cells:
                if cell.kind == CONTINUATION and cell.origin is not None:
                    cell.rowspan = cell.origin.rowspan

        return TableGrid(rows=self.rows, column_count=column_count, anomalies=list(self.anomalies))


def build_grid_from_specs(rows: List[RowSpec], declared_columns: int = 0) -> TableGrid:
    builder = GridBuilder(declared_columns)
    for row in rows:
        builder.add_row(row)
    return builder.finish()


def _row_cells(tr):
    for child in element_children(tr):
        if is_w(child, "tc"):
            yield child
        elif is_w(child, "sdt") or is_w(child, "customXml"):
            content = first_child_w(child, "sdtContent") if is_w(child, "sdt") else child
            if content is not None:
                yield from _row_cells(content)


def _table_rows(tbl):
    for child in element_children(tbl):
        if is_w(child, "tr"):
            yield child
        elif is_w(child, "sdt") or is_w(child, "customXml"):
            content = first_child_w(child, "sdtContent") if is_w(child, "sdt") else child
            if content is not None:
                yield from _table_rows(content)


def cell_spec(tc) -> CellSpec:
    tcpr = first_child_w(tc, "tcPr")
    colspan = 1
    vmerge = None
    if tcpr is not None:
        colspan = to_int(w_val(first_child_w(tcpr, "gridSpan")), 1) or 1
        vmerge_node = first_child_w(tcpr, "vMerge")
        if vmerge_node is not None:
            vmerge = "restart" if w_val(vmerge_node) == "restart" else "continue"
    return CellSpec(source=tc, colspan=colspan, vmerge=vmerge)


def row_spec(tr) -> RowSpec:
    trpr = first_child_w(tr, "trPr")
    grid_before = to_int(w_val(first_child_w(trpr, "gridBefore")), 0) if trpr is not None else 0
    grid_after = to_int(w_val(first_child_w(trpr, "gridAfter")), 0) if trpr is not None else 0
    return RowSpec(
        cells=[cell_spec(tc) for tc in _row_cells(tr)],
        grid_before=grid_before or 0,
        grid_after=grid_after or 0,
        source=tr,
        is_header=is_header_row(tr),
    )


def build_grid(tbl) -> TableGrid:
    """
    Reconstruct the cell grid of a ``w:tbl``.

    Args:
        tbl: Table element

    Returns:
        Dense grid; ``anomalies`` lists orphan merge continuations
    """
    tbl_grid = first_child_w(tbl, "tblGrid")
    declared = len(tbl_grid.findall(w("gridCol"))) if tbl_grid is not None else 0
    grid = build_grid_from_specs([row_spec(tr) for tr in _table_rows(tbl)], declared)
    if grid.anomalies:
        logger.debug(f"Table grid anomalies: {grid.anomalies}")
    return grid


def grid_column_widths(tbl) -> List[int]:
    tbl_grid = first_child_w(tbl, "tblGrid")
    if tbl_grid is None:
        return []
    return [to_int(w_attr(col, "w"), 0) for col in tbl_grid.findall(w("gridCol"))]
