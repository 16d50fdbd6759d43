"""
Rectangular range extraction between two table cells.

The range between an anchor cell and a focus cell is the smallest logical
rectangle holding both cells' full spans. It is swept row-major; every
cell found is placed once, at the slot where it is first met.
"""

from __future__ import annotations

import logging
from copy import deepcopy
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, NamedTuple

from lxml import etree

from ..indices import GridCell, TableGrid

if TYPE_CHECKING:
    from ..config import TableOptions
    from ..document import Path, TableDocument

logger = logging.getLogger(__name__)


class CellEntry(NamedTuple):
    """A cell element together with its document path."""

    element: etree._Element
    path: Path


@dataclass
class GridRange:
    """Cells of a rectangular logical range of one table.

    Attributes:
        table_path: Path of the source table
        start_row: First logical row of the range
        end_row: Last logical row of the range (inclusive)
        start_col: First logical column of the range
        end_col: Last logical column of the range (inclusive)
        rows: One list per logical row; slots consumed by a span from an
            earlier slot are dropped when trimmed, or kept as None
        cells: Every cell of the range once, in row-major discovery order
        complete: False if the sweep stopped early at a coordinate no cell
            covers (malformed table)
    """

    table_path: Path
    start_row: int
    end_row: int
    start_col: int
    end_col: int
    rows: list[list[CellEntry | None]] = field(default_factory=list)
    cells: list[CellEntry] = field(default_factory=list)
    complete: bool = True

    @property
    def row_count(self) -> int:
        return self.end_row - self.start_row + 1

    @property
    def col_count(self) -> int:
        return self.end_col - self.start_col + 1

    def to_element(self, options: TableOptions) -> etree._Element:
        """Build a detached table element holding copies of the range's cells."""
        table = etree.Element(options.table_type)
        for row in self.rows:
            row_element = etree.SubElement(table, options.row_type)
            for entry in row:
                if entry is not None:
                    row_element.append(deepcopy(entry.element))
        return table

    def __repr__(self) -> str:
        return (
            f"<GridRange ({self.start_row}, {self.start_col})-({self.end_row}, {self.end_col}): "
            f"{len(self.cells)} cells>"
        )


def _resolve_endpoints(
    document: TableDocument, anchor: Path | None, focus: Path | None
) -> tuple[Path, TableGrid, GridCell, GridCell] | None:
    if anchor is None and document.selection is not None:
        anchor = document.selection.anchor
        if focus is None:
            focus = document.selection.focus
    if focus is None:
        focus = anchor

    start_entry = document.find_cell_at(anchor) if anchor is not None else None
    end_entry = document.find_cell_at(focus) if focus is not None else None
    if start_entry is None or end_entry is None:
        return None

    start = document.grid_cell(start_entry[1])
    end = document.grid_cell(end_entry[1])
    if start is None or end is None:
        return None
    if start[0] != end[0]:
        logger.debug("Range endpoints %s and %s are not in the same table", anchor, focus)
        return None

    table_path = start[0]
    return table_path, document.grid(table_path), start[1], end[1]


def _sweep(
    document: TableDocument,
    table_path: Path,
    grid: TableGrid,
    start: GridCell,
    end: GridCell,
) -> GridRange:
    start_row = min(start.row, end.row)
    end_row = max(start.end_row, end.end_row)
    start_col = min(start.col, end.col)
    end_col = max(start.end_col, end.end_col)

    result = GridRange(table_path, start_row, end_row, start_col, end_col)
    result.rows = [[None] * result.col_count for _ in range(result.row_count)]
    placed: set[tuple[int, int]] = set()

    for row in range(start_row, end_row + 1):
        for col in range(start_col, end_col + 1):
            cell = grid.locate(row, col)
            if cell is None:
                logger.warning(
                    "No cell covers (%d, %d) in table %s; returning partial range",
                    row,
                    col,
                    table_path,
                )
                result.complete = False
                return result

            if cell.key in placed:
                continue
            placed.add(cell.key)

            entry = CellEntry(cell.element, document.path_of(cell.element))
            result.rows[row - start_row][col - start_col] = entry
            result.cells.append(entry)

    return result


def extract_grid(
    document: TableDocument,
    anchor: Path | None = None,
    focus: Path | None = None,
    *,
    trim: bool = True,
) -> GridRange | None:
    """Get the sub-grid between two cells.

    Args:
        document: The document holding the table
        anchor: Path inside the first cell (default: selection anchor)
        focus: Path inside the second cell (default: selection focus)
        trim: Drop the slots of each row that no cell was placed in

    Returns:
        The GridRange, or None when the endpoints are not cells of one table

    Example:
        >>> grid_range = extract_grid(doc, doc.cell_path(0, 0, 0), doc.cell_path(0, 1, 1))
        >>> [[entry.element.text for entry in row] for row in grid_range.rows]
    """
    endpoints = _resolve_endpoints(document, anchor, focus)
    if endpoints is None:
        return None

    result = _sweep(document, *endpoints)
    if trim:
        result.rows = [[entry for entry in row if entry is not None] for row in result.rows]
    return result


def extract_cells(
    document: TableDocument,
    anchor: Path | None = None,
    focus: Path | None = None,
) -> list[CellEntry]:
    """Get every cell between two cells as a flat list, each exactly once."""
    endpoints = _resolve_endpoints(document, anchor, focus)
    if endpoints is None:
        return []
    return _sweep(document, *endpoints).cells
