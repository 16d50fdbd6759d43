"""
Table wrapper classes for convenient access to table elements.

Unlike raw row/cell iteration, these wrappers report logical positions:
a cell's ``col_index`` is its column on the merged grid, not its position
among the row's children.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from lxml import etree

from ..errors import CellNotFoundError
from ..indices import GridCell, TableGrid, get_col_sizes, table_rows

if TYPE_CHECKING:
    from ..document import Path, TableDocument


class TableCell:
    """Wrapper around a cell placed on its table's logical grid."""

    def __init__(self, grid_cell: GridCell, document: TableDocument):
        """Initialize TableCell wrapper.

        Args:
            grid_cell: The cell's placement on the grid
            document: Document holding the cell
        """
        self._cell = grid_cell
        self._document = document

    @property
    def element(self) -> etree._Element:
        """Get the underlying XML element."""
        return self._cell.element

    @property
    def path(self) -> Path:
        return self._document.path_of(self._cell.element)

    @property
    def row_index(self) -> int:
        """Logical row of the cell's origin (0-based)."""
        return self._cell.row

    @property
    def col_index(self) -> int:
        """Logical column of the cell's origin (0-based)."""
        return self._cell.col

    @property
    def row_span(self) -> int:
        return self._cell.row_span

    @property
    def col_span(self) -> int:
        return self._cell.col_span

    @property
    def is_header(self) -> bool:
        return self._document.options.is_header(self._cell.element)

    @property
    def text(self) -> str:
        """Get all text content from the cell."""
        return "".join(self._cell.element.itertext())

    def contains(self, text: str, case_sensitive: bool = True) -> bool:
        """Check if cell contains specific text.

        Args:
            text: Text to search for
            case_sensitive: Whether search should be case sensitive

        Returns:
            True if text is found in cell
        """
        cell_text = self.text
        if not case_sensitive:
            cell_text = cell_text.lower()
            text = text.lower()
        return text in cell_text

    def __repr__(self) -> str:
        """String representation of the cell."""
        text_preview = self.text[:30] + "..." if len(self.text) > 30 else self.text
        span = ""
        if self.row_span > 1 or self.col_span > 1:
            span = f" {self.row_span}×{self.col_span}"
        return f"<TableCell[{self.row_index},{self.col_index}]{span}: {text_preview!r}>"


class TableRow:
    """Wrapper around a table row."""

    def __init__(self, element: etree._Element, index: int, table: Table):
        self._element = element
        self._index = index
        self._table = table

    @property
    def element(self) -> etree._Element:
        """Get the underlying XML element."""
        return self._element

    @property
    def index(self) -> int:
        """Get the row index (0-based)."""
        return self._index

    @property
    def cells(self) -> list[TableCell]:
        """Cells whose origin lies in this row, in document order.

        Cells reaching into this row from a row span above are not included;
        use ``Table.get_cell()`` to resolve covered positions.
        """
        return [TableCell(cell, self._table.document) for cell in self._table.grid.row(self._index)]

    def contains(self, text: str, case_sensitive: bool = True) -> bool:
        """Check if any cell in row contains specific text."""
        return any(cell.contains(text, case_sensitive) for cell in self.cells)

    def __repr__(self) -> str:
        """String representation of the row."""
        return f"<TableRow[{self._index}]: {len(self.cells)} cells>"


class Table:
    """Wrapper around a table element with logical-grid access."""

    def __init__(self, element: etree._Element, document: TableDocument):
        """Initialize Table wrapper.

        Args:
            element: The table element to wrap
            document: Document holding the table

        Raises:
            ValueError: If the element is not a table
        """
        if element.tag != document.options.table_type:
            raise ValueError(
                f"Expected <{document.options.table_type}> element, got <{element.tag}>"
            )
        self._element = element
        self._document = document

    @property
    def element(self) -> etree._Element:
        """Get the underlying XML element."""
        return self._element

    @property
    def document(self) -> TableDocument:
        return self._document

    @property
    def path(self) -> Path:
        return self._document.path_of(self._element)

    @property
    def grid(self) -> TableGrid:
        """Logical grid of the table (recomputed after edits)."""
        return self._document.grid(self.path)

    @property
    def rows(self) -> list[TableRow]:
        """Get all rows in the table."""
        return [
            TableRow(element, index, self)
            for index, element in enumerate(table_rows(self._element, self._document.options))
        ]

    @property
    def row_count(self) -> int:
        return self.grid.row_count

    @property
    def col_count(self) -> int:
        """Logical column count, counting spanned columns."""
        return self.grid.col_count

    @property
    def col_sizes(self) -> list[float] | None:
        """Column widths, or None when the table stores none."""
        return get_col_sizes(self._element)

    @property
    def problems(self) -> list[str]:
        """Gaps and overlaps of the logical grid (empty for a valid table)."""
        return self.grid.problems

    def get_cell(self, row: int, col: int) -> TableCell:
        """Get the cell covering logical position ``(row, col)``.

        Raises:
            CellNotFoundError: If no cell covers the position
        """
        cell = self.grid.locate(row, col)
        if cell is None:
            raise CellNotFoundError(row, col)
        return TableCell(cell, self._document)

    def find_cell(self, text: str, case_sensitive: bool = True) -> TableCell | None:
        """Find first cell containing text, in document order."""
        for cell in self.grid:
            wrapped = TableCell(cell, self._document)
            if wrapped.contains(text, case_sensitive):
                return wrapped
        return None

    def contains(self, text: str, case_sensitive: bool = True) -> bool:
        return self.find_cell(text, case_sensitive) is not None

    def to_text_grid(self) -> list[list[str | None]]:
        """Text of the covering cell at every logical position.

        Positions covered by a span repeat the owning cell's text; gaps of a
        malformed table are None.
        """
        grid = self.grid
        result: list[list[str | None]] = []
        for row in range(grid.row_count):
            texts: list[str | None] = []
            for col in range(grid.col_count):
                cell = grid.locate(row, col)
                texts.append("".join(cell.element.itertext()) if cell is not None else None)
            result.append(texts)
        return result

    def __repr__(self) -> str:
        """String representation of the table."""
        return f"<Table: {self.row_count} rows × {self.col_count} cols>"
