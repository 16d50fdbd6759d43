"""
Custom exception classes for the tablegrid package.

Only the convenience and I/O surface raises these. The grid operations
themselves never raise for "not inside a table" or "malformed grid"
situations: they no-op or return best-effort results.
"""


class TableGridError(Exception):
    """Base exception for all tablegrid errors."""

    pass


class ValidationError(TableGridError):
    """Raised when a document, option set or edit specification is invalid.

    Attributes:
        errors: List of specific validation error messages (optional)
    """

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        self.errors = errors or []
        super().__init__(message)


class TableNotFoundError(TableGridError):
    """Raised when a table index does not exist in the document.

    Attributes:
        table_index: The requested table index
        table_count: Number of tables in the document
    """

    def __init__(self, table_index: int, table_count: int) -> None:
        self.table_index = table_index
        self.table_count = table_count
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.table_count == 0:
            return f"Table {self.table_index} not found: the document has no tables"
        return (
            f"Table {self.table_index} not found "
            f"(valid indices: 0-{self.table_count - 1})"
        )


class CellNotFoundError(TableGridError):
    """Raised when no cell covers a logical coordinate.

    This happens for coordinates outside the table bounds, or inside a
    gap of a malformed table.

    Attributes:
        row: Logical row index
        col: Logical column index
        reason: Explanation of why resolution failed
    """

    def __init__(self, row: int, col: int, reason: str | None = None) -> None:
        self.row = row
        self.col = col
        self.reason = reason
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"No cell covers logical position ({self.row}, {self.col})"
        if self.reason:
            msg += f": {self.reason}"
        return msg
