"""
Result classes for table edit operations.
"""

from dataclasses import dataclass


@dataclass
class EditResult:
    """Result of applying a single edit from a batch.

    Attributes:
        success: Whether the edit changed the document
        edit_type: Type of edit (e.g., "delete_column")
        message: Human-readable message about the result
        error: Optional exception that occurred during the edit
    """

    success: bool
    edit_type: str
    message: str
    error: Exception | None = None

    def __str__(self) -> str:
        """Get string representation of the result."""
        status = "✓" if self.success else "✗"
        return f"{status} {self.edit_type}: {self.message}"
