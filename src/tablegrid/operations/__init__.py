"""
Operations package for table manipulation.

Structural edits and range queries on the logical grid of a table, plus
batch application of edits from lists or files.
"""

from .batch import BatchOperations
from .columns import delete_column, insert_column
from .grid import CellEntry, GridRange, extract_cells, extract_grid

__all__ = [
    "BatchOperations",
    "CellEntry",
    "GridRange",
    "delete_column",
    "extract_cells",
    "extract_grid",
    "insert_column",
]
