"""
BatchOperations class for applying table edits from lists or files.

Edits address cells by logical position, so an edit file stays readable
without knowing the document's element paths.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from ..errors import CellNotFoundError, TableNotFoundError, ValidationError
from ..results import EditResult
from .columns import delete_column, insert_column

if TYPE_CHECKING:
    from ..document import TableDocument


class BatchOperations:
    """Handles batch edit operations.

    Each edit is a dictionary with a ``type`` and the logical position of
    its reference cell (``table`` defaults to 0).

    Example:
        >>> edits = [
        ...     {"type": "delete_column", "table": 0, "row": 1, "col": 0},
        ...     {"type": "insert_column", "row": 0, "col": 1, "header": True},
        ... ]
        >>> results = BatchOperations(doc).apply_edits(edits)
    """

    def __init__(self, document: TableDocument) -> None:
        """Initialize BatchOperations with a TableDocument reference.

        Args:
            document: The TableDocument instance to operate on
        """
        self._document = document

    def apply_edits(
        self, edits: list[dict[str, Any]], stop_on_error: bool = False
    ) -> list[EditResult]:
        """Apply multiple edits in sequence.

        An edit that leaves the document unchanged (outside a table, or the
        empty-row guard) is reported as unsuccessful.

        Args:
            edits: List of edit dictionaries
            stop_on_error: If True, stop processing on first failed edit

        Returns:
            List of EditResult objects, one per applied edit
        """
        results = []

        for i, edit in enumerate(edits):
            edit_type = edit.get("type") if isinstance(edit, dict) else None
            if not edit_type:
                results.append(
                    EditResult(
                        success=False,
                        edit_type="unknown",
                        message=f"Edit {i}: Missing 'type' field",
                        error=ValidationError("Missing 'type' field"),
                    )
                )
                if stop_on_error:
                    break
                continue

            result = self._apply_single_edit(edit_type, edit)
            results.append(result)
            if not result.success and stop_on_error:
                break

        return results

    def _apply_single_edit(self, edit_type: str, edit: dict[str, Any]) -> EditResult:
        handlers: dict[str, Callable[[str, dict[str, Any]], EditResult]] = {
            "delete_column": self._handle_delete_column,
            "insert_column": self._handle_insert_column,
        }

        handler = handlers.get(edit_type)
        if handler is None:
            return EditResult(
                success=False,
                edit_type=edit_type,
                message=f"Unknown edit type: {edit_type}",
                error=ValidationError(f"Unknown edit type: {edit_type}"),
            )

        try:
            return handler(edit_type, edit)
        except (TableNotFoundError, CellNotFoundError) as e:
            return EditResult(
                success=False,
                edit_type=edit_type,
                message=f"Cell not found: {e}",
                error=e,
            )
        except ValidationError as e:
            return EditResult(success=False, edit_type=edit_type, message=str(e), error=e)

    def _cell_path(self, edit: dict[str, Any]) -> tuple[int, ...]:
        try:
            table = int(edit.get("table", 0))
            row = int(edit["row"])
            col = int(edit["col"])
        except KeyError as e:
            raise ValidationError(f"Missing required parameter: {e.args[0]!r}") from e
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid cell position: {e}") from e
        return self._document.cell_path(table, row, col)

    def _handle_delete_column(self, edit_type: str, edit: dict[str, Any]) -> EditResult:
        cell_path = self._cell_path(edit)
        before = self._document.revision
        delete_column(self._document, cell_path)

        if self._document.revision == before:
            return EditResult(
                success=False,
                edit_type=edit_type,
                message=f"Column at ({edit['row']}, {edit['col']}) was not deleted "
                "(a row would be left without cells)",
            )
        return EditResult(
            success=True,
            edit_type=edit_type,
            message=f"Deleted column at ({edit['row']}, {edit['col']})",
        )

    def _handle_insert_column(self, edit_type: str, edit: dict[str, Any]) -> EditResult:
        cell_path = self._cell_path(edit)
        header = edit.get("header")
        if header is not None and not isinstance(header, bool):
            raise ValidationError("'header' must be true or false")

        before = self._document.revision
        insert_column(self._document, cell_path, header=header)
        return EditResult(
            success=self._document.revision != before,
            edit_type=edit_type,
            message=f"Inserted column after ({edit['row']}, {edit['col']})",
        )

    def apply_edit_file(
        self, path: str | Path, format: str | None = None, stop_on_error: bool = False
    ) -> list[EditResult]:
        """Apply edits from a YAML or JSON file.

        The file must contain an ``edits`` key with a list of edit dictionaries.

        Args:
            path: Path to the edit specification file
            format: "yaml" or "json" (default: inferred from the suffix, else YAML)
            stop_on_error: If True, stop processing on first failed edit

        Returns:
            List of EditResult objects, one per applied edit

        Raises:
            ValidationError: If file cannot be parsed or has invalid format
            FileNotFoundError: If file does not exist

        Example YAML file:
            ```yaml
            edits:
              - type: delete_column
                row: 1
                col: 0
              - type: insert_column
                table: 1
                row: 0
                col: 2
            ```
        """
        file_path = Path(path)

        if not file_path.exists():
            raise FileNotFoundError(f"Edit file not found: {path}")

        if format is None:
            format = "json" if file_path.suffix.lower() == ".json" else "yaml"

        try:
            with open(file_path, encoding="utf-8") as f:
                if format == "yaml":
                    data = yaml.safe_load(f)
                elif format == "json":
                    data = json.load(f)
                else:
                    raise ValidationError(f"Unsupported format: {format}")
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ValidationError(f"Failed to parse {format.upper()} file: {e}") from e

        if not isinstance(data, dict):
            raise ValidationError("Edit file must contain a dictionary/object")
        if "edits" not in data:
            raise ValidationError("Edit file must contain an 'edits' key")

        edits = data["edits"]
        if not isinstance(edits, list):
            raise ValidationError("'edits' must be a list")

        return self.apply_edits(edits, stop_on_error=stop_on_error)
