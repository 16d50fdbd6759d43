"""
Logical cell indices for tables with merged cells.

A table is stored as rows of cells in document order, but cells may span
several rows and columns. This module maps every cell onto the dense
logical (row, column) grid:

- ``compute_table_grid()`` walks the rows once and assigns every cell its
  top-left logical origin, skipping columns already claimed by row spans
  from earlier rows.
- ``TableGrid.locate()`` performs the inverse lookup and returns the cell
  whose span rectangle covers a coordinate, origin or not.
- ``IndexResolver`` caches one grid per table and drops it as soon as the
  document revision changes.

Cells are identified by a structural key ``(row index, position in row)``
captured during the walk, never by object identity.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

from lxml import etree

from .config import TableOptions
from .constants import COL_SIZES_ATTR, COLSPAN_ATTR, ROWSPAN_ATTR

if TYPE_CHECKING:
    from .document import Path, TableDocument

logger = logging.getLogger(__name__)

CellKey = tuple[int, int]


def _span_value(element: etree._Element, attr: str) -> int:
    raw = element.get(attr)
    if raw is None:
        return 1
    try:
        value = int(raw)
    except ValueError:
        return 1
    return value if value >= 1 else 1


def get_col_span(element: etree._Element) -> int:
    """Column span of a cell element (1 when absent or invalid)."""
    return _span_value(element, COLSPAN_ATTR)


def get_row_span(element: etree._Element) -> int:
    """Row span of a cell element (1 when absent or invalid)."""
    return _span_value(element, ROWSPAN_ATTR)


def get_col_sizes(table: etree._Element) -> list[float] | None:
    """Column widths stored on a table, or None when the table has none."""
    raw = table.get(COL_SIZES_ATTR)
    if raw is None:
        return None
    sizes: list[float] = []
    for token in raw.split():
        try:
            value = float(token)
        except ValueError:
            logger.warning("Ignoring invalid column size %r", token)
            continue
        sizes.append(int(value) if value.is_integer() else value)
    return sizes


def table_rows(table: etree._Element, options: TableOptions) -> list[etree._Element]:
    """Row elements of a table, in document order."""
    return [child for child in table if child.tag == options.row_type]


def row_cells(row: etree._Element, options: TableOptions) -> list[etree._Element]:
    """Cell elements of a row, in document order."""
    return [child for child in row if options.is_cell(child)]


@dataclass(frozen=True)
class CellIndex:
    """Logical origin of a cell."""

    row: int
    col: int


@dataclass(frozen=True)
class GridCell:
    """A cell placed on the logical grid.

    Attributes:
        element: The cell element
        key: Structural identity ``(row index, position in row)``
        row: Logical origin row
        col: Logical origin column
        row_span: Number of logical rows covered (clipped to the table)
        col_span: Number of logical columns covered
    """

    element: etree._Element
    key: CellKey
    row: int
    col: int
    row_span: int
    col_span: int

    @property
    def index(self) -> CellIndex:
        return CellIndex(self.row, self.col)

    @property
    def end_row(self) -> int:
        return self.row + self.row_span - 1

    @property
    def end_col(self) -> int:
        return self.col + self.col_span - 1

    @property
    def position(self) -> int:
        """Position of the cell among its row's cells."""
        return self.key[1]

    def covers(self, row: int, col: int) -> bool:
        return self.row <= row <= self.end_row and self.col <= col <= self.end_col


class TableGrid:
    """Logical grid of one table snapshot.

    Build instances with ``compute_table_grid()``. The grid is a derived
    value: it is never written back to the document and must be rebuilt
    after any structural edit.
    """

    def __init__(self, table: etree._Element, row_count: int) -> None:
        self.table = table
        self.row_count = row_count
        self.col_count = 0
        self.cells: list[GridCell] = []
        self.problems: list[str] = []
        self._by_key: dict[CellKey, GridCell] = {}
        self._coverage: dict[tuple[int, int], CellKey] = {}

    def _place(self, cell: GridCell) -> None:
        self.cells.append(cell)
        self._by_key[cell.key] = cell
        for row in range(cell.row, cell.row + cell.row_span):
            for col in range(cell.col, cell.col + cell.col_span):
                owner = self._coverage.get((row, col))
                if owner is not None:
                    self.problems.append(
                        f"cell {cell.key} overlaps cell {owner} at ({row}, {col})"
                    )
                    continue
                self._coverage[(row, col)] = cell.key
                if col + 1 > self.col_count:
                    self.col_count = col + 1

    def _check_gaps(self) -> None:
        for row in range(self.row_count):
            for col in range(self.col_count):
                if (row, col) not in self._coverage:
                    self.problems.append(f"no cell covers ({row}, {col})")

    @property
    def is_valid(self) -> bool:
        """True when every coordinate is covered by exactly one cell."""
        return not self.problems

    def locate(self, row: int, col: int) -> GridCell | None:
        """Return the cell whose span rectangle covers ``(row, col)``."""
        key = self._coverage.get((row, col))
        if key is None:
            return None
        return self._by_key[key]

    def cell_for(self, key: CellKey) -> GridCell | None:
        return self._by_key.get(key)

    def origins(self) -> dict[CellKey, CellIndex]:
        """Map every cell key to its logical origin."""
        return {cell.key: cell.index for cell in self.cells}

    def row(self, row_index: int) -> list[GridCell]:
        """Cells whose origin lies in ``row_index``, in document order."""
        return [cell for cell in self.cells if cell.key[0] == row_index]

    def __iter__(self) -> Iterator[GridCell]:
        return iter(self.cells)

    def __len__(self) -> int:
        return len(self.cells)

    def __repr__(self) -> str:
        return f"<TableGrid: {self.row_count} rows × {self.col_count} cols, {len(self.cells)} cells>"


def compute_table_grid(table: etree._Element, options: TableOptions | None = None) -> TableGrid:
    """Compute the logical origin of every cell of ``table``.

    Rows are walked in document order. Each row keeps the set of columns
    already claimed by row spans from earlier rows; the column cursor skips
    those before assigning a cell its origin.

    Args:
        table: The table element
        options: Element vocabulary (defaults to ``TableOptions()``)

    Returns:
        The table's TableGrid
    """
    options = options or TableOptions()
    rows = table_rows(table, options)
    grid = TableGrid(table, len(rows))
    occupied: dict[int, set[int]] = {}

    for row_index, row in enumerate(rows):
        row_occupied = occupied.setdefault(row_index, set())
        col = 0
        for position, element in enumerate(row_cells(row, options)):
            while col in row_occupied:
                col += 1

            col_span = get_col_span(element)
            row_span = min(get_row_span(element), len(rows) - row_index)
            for dr in range(row_span):
                claimed = occupied.setdefault(row_index + dr, set())
                claimed.update(range(col, col + col_span))

            grid._place(
                GridCell(
                    element=element,
                    key=(row_index, position),
                    row=row_index,
                    col=col,
                    row_span=row_span,
                    col_span=col_span,
                )
            )
            col += col_span

    grid._check_gaps()
    if grid.problems:
        logger.debug("Table grid has %d problem(s): %s", len(grid.problems), grid.problems)
    return grid


def key_for_element(cell: etree._Element, options: TableOptions | None = None) -> CellKey | None:
    """Structural key of a cell element, or None if it is not inside a table row."""
    options = options or TableOptions()
    row = cell.getparent()
    if row is None or row.tag != options.row_type:
        return None
    table = row.getparent()
    if table is None or table.tag != options.table_type:
        return None

    row_index = table_rows(table, options).index(row)
    position = row_cells(row, options).index(cell)
    return (row_index, position)


class IndexResolver:
    """Caches table grids per table path for one document.

    A cached grid is reused only while the document revision is unchanged,
    so any mutation through the document invalidates every entry.
    """

    def __init__(self, document: TableDocument) -> None:
        self._document = document
        self._cache: dict[Path, tuple[int, TableGrid]] = {}

    def resolve(self, table_path: Path) -> TableGrid:
        """Grid of the table at ``table_path``."""
        revision = self._document.revision
        cached = self._cache.get(table_path)
        if cached is not None and cached[0] == revision:
            return cached[1]

        table = self._document.node(table_path)
        grid = compute_table_grid(table, self._document.options)
        self._cache[table_path] = (revision, grid)
        logger.debug("Resolved %r at %s (revision %d)", grid, table_path, revision)
        return grid

    def invalidate(self) -> None:
        self._cache.clear()


def resolve(document: TableDocument, table_path: Path) -> dict[CellKey, CellIndex]:
    """Logical origin of every cell of the table at ``table_path``."""
    return document.grid(table_path).origins()


def locate(document: TableDocument, table_path: Path, row: int, col: int) -> GridCell | None:
    """Cell covering logical ``(row, col)`` of the table at ``table_path``."""
    return document.grid(table_path).locate(row, col)
