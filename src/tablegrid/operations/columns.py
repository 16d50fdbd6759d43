"""
Column operations for tables with merged cells.

Both operations work on the logical grid: they resolve which cells touch
the target column range, decide per cell whether its span shrinks, grows,
moves or disappears, and then write all changes inside one
``without_normalizing()`` batch so the repair pass never sees a
half-edited table.
"""

from __future__ import annotations

import logging
from copy import deepcopy
from typing import TYPE_CHECKING

from ..constants import COL_SIZES_ATTR, COLSPAN_ATTR
from ..indices import CellKey, GridCell, get_col_sizes, row_cells, table_rows

if TYPE_CHECKING:
    from ..document import Path, TableDocument

logger = logging.getLogger(__name__)


def delete_column(document: TableDocument, at: Path | None = None) -> None:
    """Delete the logical column(s) of the cell at ``at``.

    The columns deleted are those covered by the reference cell, so a cell
    spanning two columns deletes both. Every cell touching those columns is
    handled by where its span starts:

    - starts before the range: its ``colspan`` shrinks by the overlap
    - starts inside but ends after the range: it moves to the first
      surviving column of its row and its ``colspan`` shrinks
    - lies entirely inside the range: it is removed

    Nothing happens when ``at`` (default: the selection anchor) is not
    inside a table cell, or when the deletion would leave any row (the
    reference cell's row included) without cells.

    Args:
        document: The document holding the table
        at: Path inside the reference cell
    """
    options = document.options
    cell_entry = document.find_cell_at(at)
    if cell_entry is None:
        return
    placement = document.grid_cell(cell_entry[1])
    if placement is None:
        return
    table_path, selected = placement

    row_entry = document.find_ancestor_of_type(cell_entry[1], {options.row_type})
    if row_entry is None:
        return
    if len(row_cells(row_entry[0], options)) <= 1:
        logger.warning(
            "Not deleting column %d of table %s: row %d has a single cell",
            selected.col,
            table_path,
            selected.row,
        )
        return

    table = document.node(table_path)
    grid = document.grid(table_path)
    deleting_col = selected.col
    ending_col = selected.end_col

    # Row-major discovery fixes the processing order of the affected cells
    affected: list[GridCell] = []
    seen: set[CellKey] = set()
    for row in range(grid.row_count):
        for col in range(deleting_col, ending_col + 1):
            cell = grid.locate(row, col)
            if cell is not None and cell.key not in seen:
                seen.add(cell.key)
                affected.append(cell)

    shrink_cells: list[GridCell] = []
    move_cells: list[GridCell] = []
    for cell in affected:
        if cell.col < deleting_col and cell.col_span > 1:
            shrink_cells.append(cell)
        elif cell.col_span > 1 and cell.end_col > ending_col:
            move_cells.append(cell)

    rows = table_rows(table, options)

    moves: list[tuple[Path, int, GridCell]] = []
    if grid.col_count > ending_col + 1:
        for cell in move_cells:
            target = next((c for c in grid.row(cell.row) if c.col > ending_col), None)
            if target is not None:
                insert_path = document.path_of(target.element)
            else:
                row_element = rows[cell.row]
                insert_path = document.path_of(row_element) + (len(row_element),)
            moves.append((insert_path, cell.col_span - (ending_col - cell.col + 1), cell))

    shrinks: list[tuple[Path, int]] = []
    for cell in shrink_cells:
        overlap = min(cell.end_col, ending_col) - deleting_col + 1
        shrinks.append((document.path_of(cell.element), cell.col_span - overlap))

    removals: dict[int, list[Path]] = {}
    for cell in affected:
        if deleting_col <= cell.col <= ending_col:
            removals.setdefault(cell.row, []).append(document.path_of(cell.element))

    # No row may end up without cells, including rows other than the reference row
    for row_index, cell_paths in removals.items():
        remaining = (
            len(row_cells(rows[row_index], options))
            - len(cell_paths)
            + sum(1 for _, _, cell in moves if cell.row == row_index)
        )
        if remaining < 1:
            logger.warning(
                "Not deleting column(s) %d-%d of table %s: row %d would have no cells left",
                deleting_col,
                ending_col,
                table_path,
                row_index,
            )
            return

    col_sizes = get_col_sizes(table)

    with document.without_normalizing():
        for insert_path, col_span, cell in moves:
            moved = deepcopy(cell.element)
            moved.set(COLSPAN_ATTR, str(col_span))
            document.insert_node(moved, insert_path)

        for cell_path, col_span in shrinks:
            document.set_node_properties(cell_path, {COLSPAN_ATTR: col_span})

        # Cells of one row are contiguous in the deleted range, so removing
        # the first path repeatedly removes all of them.
        for cell_paths in removals.values():
            path_to_delete = cell_paths[0]
            for _ in cell_paths:
                document.remove_node(path_to_delete)

        if col_sizes is not None:
            new_col_sizes = col_sizes[:deleting_col] + col_sizes[ending_col + 1 :]
            document.set_node_properties(table_path, {COL_SIZES_ATTR: new_col_sizes})

    logger.debug(
        "Deleted column(s) %d-%d of table %s: %d moved, %d shrunk, %d removed",
        deleting_col,
        ending_col,
        table_path,
        len(moves),
        len(shrinks),
        sum(len(paths) for paths in removals.values()),
    )


def insert_column(
    document: TableDocument,
    at: Path | None = None,
    *,
    header: bool | None = None,
    select: bool = False,
) -> None:
    """Insert an empty column right after the column(s) of the cell at ``at``.

    Rows whose cell spans across the insertion point get that cell widened
    by one column instead of a new cell. Every other row receives a new
    empty cell.

    Args:
        document: The document holding the table
        at: Path inside the reference cell (default: the selection anchor)
        header: Create header cells; None infers it per row from the
            row's first cell
        select: Select the new cell in the reference cell's row
    """
    options = document.options
    cell_entry = document.find_cell_at(at)
    if cell_entry is None:
        return
    placement = document.grid_cell(cell_entry[1])
    if placement is None:
        return
    table_path, reference = placement

    table = document.node(table_path)
    grid = document.grid(table_path)
    rows = table_rows(table, options)
    boundary_col = reference.end_col

    widened: list[GridCell] = []
    seen: set[CellKey] = set()
    inserts: list[tuple[Path, bool, int]] = []
    for row_index in range(grid.row_count):
        boundary = grid.locate(row_index, boundary_col)
        if boundary is not None and boundary.end_col > boundary_col:
            if boundary.key not in seen:
                seen.add(boundary.key)
                widened.append(boundary)
            continue

        cells = grid.row(row_index)
        position = sum(1 for cell in cells if cell.col <= boundary_col)
        if position < len(cells):
            insert_path = document.path_of(cells[position].element)
        else:
            insert_path = document.path_of(rows[row_index]) + (len(rows[row_index]),)

        is_header = header
        if is_header is None:
            is_header = bool(cells) and options.is_header(cells[0].element)
        inserts.append((insert_path, is_header, row_index))

    widen_paths = [(document.path_of(cell.element), cell.col_span + 1) for cell in widened]
    col_sizes = get_col_sizes(table)

    with document.without_normalizing():
        for insert_path, is_header, row_index in inserts:
            document.insert_node(
                options.create_empty_cell(header=is_header),
                insert_path,
                select=select and row_index == reference.row,
            )

        for cell_path, col_span in widen_paths:
            document.set_node_properties(cell_path, {COLSPAN_ATTR: col_span})

        if col_sizes is not None:
            width = col_sizes[boundary_col] if boundary_col < len(col_sizes) else 0
            new_col_sizes = col_sizes[: boundary_col + 1] + [width] + col_sizes[boundary_col + 1 :]
            document.set_node_properties(table_path, {COL_SIZES_ATTR: new_col_sizes})

    logger.debug(
        "Inserted column %d into table %s: %d new cell(s), %d widened",
        boundary_col + 1,
        table_path,
        len(inserts),
        len(widen_paths),
    )
