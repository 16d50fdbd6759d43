"""
Model classes for tablegrid.

These classes provide convenient wrappers around table elements.
"""

from tablegrid.models.table import Table, TableCell, TableRow

__all__ = [
    "Table",
    "TableRow",
    "TableCell",
]
