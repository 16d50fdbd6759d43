"""
tablegrid - logical grid model and structural edits for tables with merged cells.

Tables are stored as rows of cells in document order, while cells may span
several rows and columns. This package maps such tables onto their dense
logical (row, column) grid, extracts rectangular ranges, and deletes or
inserts columns while keeping every span consistent.

Example:
    >>> from tablegrid import TableDocument, delete_column
    >>> doc = TableDocument("report.xml")
    >>> doc.select(doc.cell_path(0, row=1, col=0))
    >>> delete_column(doc)
    >>> doc.save("report_edited.xml")
"""

__version__ = "0.2.0"
__all__ = [
    "TableDocument",
    "Selection",
    "TableOptions",
    "TableGridError",
    "ValidationError",
    "TableNotFoundError",
    "CellNotFoundError",
    "EditResult",
    "CellIndex",
    "GridCell",
    "TableGrid",
    "IndexResolver",
    "compute_table_grid",
    "resolve",
    "locate",
    "CellEntry",
    "GridRange",
    "extract_grid",
    "extract_cells",
    "delete_column",
    "insert_column",
    "BatchOperations",
    "Table",
    "TableRow",
    "TableCell",
]

from .config import TableOptions
from .document import Selection, TableDocument
from .errors import CellNotFoundError, TableGridError, TableNotFoundError, ValidationError
from .indices import CellIndex, GridCell, IndexResolver, TableGrid, compute_table_grid, locate, resolve
from .models.table import Table, TableCell, TableRow
from .operations import (
    BatchOperations,
    CellEntry,
    GridRange,
    delete_column,
    extract_cells,
    extract_grid,
    insert_column,
)
from .results import EditResult
