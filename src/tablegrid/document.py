"""
TableDocument - an editable XML document holding tables.

The document is the host for all table operations. It exposes a small
path-addressed tree API (find, insert, remove, set properties), a
selection, and a ``without_normalizing()`` scope that batches several
mutations into one all-or-nothing edit before the structural repair pass
runs.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Collection, Iterator, Mapping
from contextlib import contextmanager
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path as FilePath
from typing import TYPE_CHECKING, Any, BinaryIO

from lxml import etree

from .config import TableOptions
from .constants import COL_SIZES_ATTR, COLSPAN_ATTR, LIST_PROPERTIES, ROWSPAN_ATTR
from .errors import CellNotFoundError, TableNotFoundError, ValidationError
from .indices import (
    GridCell,
    IndexResolver,
    TableGrid,
    compute_table_grid,
    get_col_sizes,
    key_for_element,
    row_cells,
    table_rows,
)
from .operations.batch import BatchOperations
from .results import EditResult

if TYPE_CHECKING:
    from .models.table import Table

logger = logging.getLogger(__name__)

Path = tuple[int, ...]
NodeEntry = tuple[etree._Element, Path]


@dataclass(frozen=True)
class Selection:
    """A range between two node paths.

    Attributes:
        anchor: Path where the selection started
        focus: Path where the selection ended
    """

    anchor: Path
    focus: Path

    @property
    def is_collapsed(self) -> bool:
        return self.anchor == self.focus


def format_number(value: float) -> str:
    """Format a size value, dropping a redundant ``.0``."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _encode_property(name: str, value: Any) -> str:
    if name in LIST_PROPERTIES or isinstance(value, (list, tuple)):
        return " ".join(format_number(item) for item in value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return format_number(value)
    return str(value)


def _shift_path(path: Path, at: Path, delta: int) -> Path | None:
    """Transform ``path`` for an insertion (+1) or removal (-1) at ``at``.

    Returns None when ``path`` pointed into a removed node.
    """
    depth = len(at) - 1
    if len(path) <= depth or path[:depth] != at[:depth]:
        return path
    if delta < 0 and path[: depth + 1] == at:
        return None
    shifts = path[depth] >= at[depth] if delta > 0 else path[depth] > at[depth]
    if shifts:
        return path[:depth] + (path[depth] + delta,) + path[depth + 1 :]
    return path


class TableDocument:
    """An XML document whose tables can be edited structurally.

    Example:
        >>> doc = TableDocument("report.xml")
        >>> doc.select(doc.cell_path(0, row=1, col=2))
        >>> delete_column(doc)
        >>> doc.save("report_edited.xml")
    """

    def __init__(
        self,
        source: str | FilePath | bytes | BinaryIO | etree._Element,
        options: TableOptions | None = None,
        auto_normalize: bool = True,
    ) -> None:
        """Initialize a TableDocument.

        Args:
            source: Document source - can be:
                    - Path to an XML file (str or Path)
                    - Raw bytes of an XML document
                    - Open file object in binary mode
                    - An lxml element used as the document root
            options: Element vocabulary for tables (default: TableOptions())
            auto_normalize: Run the structural repair pass after every
                mutation made outside a ``without_normalizing()`` scope

        Raises:
            ValidationError: If the document cannot be loaded or parsed
        """
        self.options = options or TableOptions()
        self.auto_normalize = auto_normalize
        self.path: FilePath | None = None
        self.selection: Selection | None = None
        self.revision = 0

        self._pause_depth = 0
        self._resolver = IndexResolver(self)
        self._batch_ops = BatchOperations(self)

        parser = etree.XMLParser(remove_blank_text=True, remove_comments=True, remove_pis=True)
        try:
            if isinstance(source, etree._Element):
                self._root = source
            elif isinstance(source, bytes):
                self._root = etree.fromstring(source, parser)
            elif hasattr(source, "read"):
                self._root = etree.parse(source, parser).getroot()
            else:
                self.path = FilePath(source)
                self._root = etree.parse(str(self.path), parser).getroot()
        except (etree.XMLSyntaxError, OSError) as e:
            raise ValidationError(f"Failed to load document: {e}") from e

    @classmethod
    def from_string(cls, xml: str, options: TableOptions | None = None, **kwargs: Any) -> TableDocument:
        """Create a document from an XML string."""
        return cls(xml.encode("utf-8"), options=options, **kwargs)

    # ------------------------------------------------------------------
    # Tree access
    # ------------------------------------------------------------------

    @property
    def root(self) -> etree._Element:
        """Get the root XML element."""
        return self._root

    def node(self, path: Path) -> etree._Element:
        """Return the element at ``path``.

        Raises:
            IndexError: If no element exists at ``path``
        """
        current = self._root
        for depth, index in enumerate(path):
            if index < 0 or index >= len(current):
                raise IndexError(f"No node at path {path} (failed at depth {depth})")
            current = current[index]
        return current

    def has_node(self, path: Path) -> bool:
        try:
            self.node(path)
        except IndexError:
            return False
        return True

    def path_of(self, element: etree._Element) -> Path:
        """Return the path of ``element``.

        Raises:
            ValueError: If the element is not part of this document
        """
        indices: list[int] = []
        current = element
        while current is not self._root:
            parent = current.getparent()
            if parent is None:
                raise ValueError(f"Element <{element.tag}> is not part of this document")
            indices.append(parent.index(current))
            current = parent
        return tuple(reversed(indices))

    def find_above(self, at: Path | None, types: Collection[str]) -> NodeEntry | None:
        """Find the closest element at or above ``at`` whose tag is in ``types``."""
        if at is None or not self.has_node(at):
            return None
        path = tuple(at)
        while True:
            element = self.node(path)
            if element.tag in types:
                return element, path
            if not path:
                return None
            path = path[:-1]

    def find_cell_at(self, at: Path | None = None) -> NodeEntry | None:
        """Find the cell at or above ``at`` (default: the selection anchor)."""
        if at is None:
            at = self.selection.anchor if self.selection else None
        return self.find_above(at, self.options.cell_types)

    def find_ancestor_of_type(self, at: Path | None, types: Collection[str]) -> NodeEntry | None:
        """Find the nearest element strictly above ``at`` whose tag is in ``types``."""
        if not at:
            return None
        return self.find_above(tuple(at)[:-1], types)

    def iter_tables(self) -> Iterator[NodeEntry]:
        """Iterate over ``(table, path)`` entries in document order."""
        for element in self._root.iter(self.options.table_type):
            yield element, self.path_of(element)

    @property
    def tables(self) -> list[Table]:
        """Get all tables in the document."""
        from .models.table import Table

        return [Table(element, self) for element, _ in self.iter_tables()]

    def table_path(self, table_index: int) -> Path:
        """Path of the ``table_index``-th table.

        Raises:
            TableNotFoundError: If the index is out of range
        """
        paths = [path for _, path in self.iter_tables()]
        if table_index < 0 or table_index >= len(paths):
            raise TableNotFoundError(table_index, len(paths))
        return paths[table_index]

    def grid(self, table_path: Path) -> TableGrid:
        """Logical grid of the table at ``table_path`` (cached per revision)."""
        return self._resolver.resolve(table_path)

    def grid_cell(self, cell_path: Path) -> tuple[Path, GridCell] | None:
        """Table path and grid placement of the cell at ``cell_path``."""
        table_entry = self.find_ancestor_of_type(cell_path, {self.options.table_type})
        if table_entry is None:
            return None
        key = key_for_element(self.node(cell_path), self.options)
        if key is None:
            return None
        cell = self.grid(table_entry[1]).cell_for(key)
        if cell is None:
            return None
        return table_entry[1], cell

    def cell_path(self, table_index: int, row: int, col: int) -> Path:
        """Path of the cell covering logical ``(row, col)`` of a table.

        Raises:
            TableNotFoundError: If the table does not exist
            CellNotFoundError: If no cell covers the coordinate
        """
        grid = self.grid(self.table_path(table_index))
        if row < 0 or col < 0 or row >= grid.row_count or col >= grid.col_count:
            raise CellNotFoundError(
                row, col, f"table is {grid.row_count} rows × {grid.col_count} cols"
            )
        cell = grid.locate(row, col)
        if cell is None:
            raise CellNotFoundError(row, col, "the table grid has a gap here")
        return self.path_of(cell.element)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select(self, anchor: Path, focus: Path | None = None) -> None:
        """Set the selection (collapsed when ``focus`` is omitted)."""
        anchor = tuple(anchor)
        self.selection = Selection(anchor, tuple(focus) if focus is not None else anchor)

    def deselect(self) -> None:
        self.selection = None

    def _shift_selection(self, at: Path, delta: int) -> None:
        if self.selection is None:
            return
        anchor = _shift_path(self.selection.anchor, at, delta)
        focus = _shift_path(self.selection.focus, at, delta)
        if anchor is None or focus is None:
            logger.debug("Selection pointed into removed node %s; clearing it", at)
            self.selection = None
        else:
            self.selection = Selection(anchor, focus)

    # ------------------------------------------------------------------
    # Mutation primitives
    # ------------------------------------------------------------------

    def insert_node(self, node: etree._Element, at: Path, select: bool = False) -> None:
        """Insert ``node`` so that it ends up at path ``at``.

        Args:
            node: Detached element to insert
            at: Target path; siblings from ``at[-1]`` on shift right
            select: Move the selection to the inserted node
        """
        if not at:
            raise ValueError("Cannot insert at the document root")
        parent = self.node(at[:-1])
        index = at[-1]
        if index < 0 or index > len(parent):
            raise IndexError(f"Cannot insert at path {at}: parent has {len(parent)} children")

        parent.insert(index, node)
        self._shift_selection(at, +1)
        if select:
            self.select(at)
        logger.debug("Inserted <%s> at %s", node.tag, at)
        self._changed()

    def remove_node(self, at: Path) -> None:
        """Remove the element at ``at``; later siblings shift into its path."""
        if not at:
            raise ValueError("Cannot remove the document root")
        element = self.node(at)
        element.getparent().remove(element)
        self._shift_selection(at, -1)
        logger.debug("Removed <%s> at %s", element.tag, at)
        self._changed()

    def set_node_properties(self, at: Path, properties: Mapping[str, Any]) -> None:
        """Set attributes on the element at ``at``; ``None`` removes one."""
        element = self.node(at)
        for name, value in properties.items():
            if value is None:
                element.attrib.pop(name, None)
            else:
                element.set(name, _encode_property(name, value))
        logger.debug("Set %s on <%s> at %s", dict(properties), element.tag, at)
        self._changed()

    def _changed(self) -> None:
        self.revision += 1
        if self._pause_depth == 0 and self.auto_normalize:
            self.normalize()

    @property
    def is_normalizing(self) -> bool:
        """False while inside a ``without_normalizing()`` scope."""
        return self._pause_depth == 0

    @contextmanager
    def without_normalizing(self) -> Iterator[TableDocument]:
        """Batch several mutations into one atomic edit.

        The structural repair pass is suspended until the outermost scope
        exits, then runs once. If the body raises, the tree and selection
        are restored to their state at scope entry and the error propagates.
        Scopes nest.

        The root element survives a rollback, but everything below it is
        replaced by restored copies: elements and ``Table`` wrappers taken
        before the failed batch no longer belong to the document and must
        be fetched again.

        Example:
            >>> with doc.without_normalizing():
            ...     doc.remove_node(path)
            ...     doc.set_node_properties(other, {"colspan": 1})
        """
        outermost = self._pause_depth == 0
        if outermost:
            snapshot = deepcopy(self._root)
            saved_selection = self.selection
            start_revision = self.revision

        self._pause_depth += 1
        try:
            yield self
        except BaseException:
            if outermost:
                logger.debug("Batch failed; restoring document to its state before the batch")
                self._restore(snapshot)
                self.selection = saved_selection
                self._resolver.invalidate()
                self.revision += 1
            raise
        finally:
            self._pause_depth -= 1

        if outermost and self.auto_normalize and self.revision != start_revision:
            self.normalize()

    def _restore(self, snapshot: etree._Element) -> None:
        """Replace the root's content with ``snapshot``, keeping the root element itself."""
        root = self._root
        root.clear(keep_tail=True)
        root.text = snapshot.text
        for name, value in snapshot.attrib.items():
            root.set(name, value)
        root.extend(list(snapshot))

    # ------------------------------------------------------------------
    # Structural repair
    # ------------------------------------------------------------------

    def normalize(self) -> bool:
        """Repair every table so it forms a dense rectangular grid.

        - Invalid ``colspan``/``rowspan`` values are dropped (span 1)
        - Rows short of the table's column count get empty cells appended
        - ``col-sizes`` is trimmed or padded to the column count

        Returns:
            True if anything was repaired
        """
        repaired = False
        for table, path in list(self.iter_tables()):
            if self._normalize_table(table, path):
                repaired = True
        if repaired:
            self.revision += 1
        return repaired

    def _normalize_table(self, table: etree._Element, path: Path) -> bool:
        options = self.options
        repaired = False

        for row in table_rows(table, options):
            for cell in row_cells(row, options):
                for attr in (COLSPAN_ATTR, ROWSPAN_ATTR):
                    raw = cell.get(attr)
                    if raw is None:
                        continue
                    try:
                        valid = int(raw) >= 1
                    except ValueError:
                        valid = False
                    if not valid:
                        logger.debug("Dropping invalid %s=%r in table %s", attr, raw, path)
                        del cell.attrib[attr]
                        repaired = True

        grid = compute_table_grid(table, options)
        for row_index, row in enumerate(table_rows(table, options)):
            missing = sum(
                1 for col in range(grid.col_count) if grid.locate(row_index, col) is None
            )
            if not missing:
                continue
            cells = row_cells(row, options)
            header = bool(cells) and options.is_header(cells[0])
            for _ in range(missing):
                row.append(options.create_empty_cell(header=header))
            logger.debug(
                "Padded row %d of table %s with %d empty cell(s)", row_index, path, missing
            )
            repaired = True

        col_sizes = get_col_sizes(table)
        if col_sizes is not None:
            col_count = grid.col_count
            if len(col_sizes) != col_count:
                if len(col_sizes) > col_count:
                    col_sizes = col_sizes[:col_count]
                else:
                    filler = col_sizes[-1] if col_sizes else 0
                    col_sizes = col_sizes + [filler] * (col_count - len(col_sizes))
                table.set(COL_SIZES_ATTR, _encode_property(COL_SIZES_ATTR, col_sizes))
                logger.debug("Resized col-sizes of table %s to %d entries", path, col_count)
                repaired = True

        return repaired

    # ------------------------------------------------------------------
    # Batch edits
    # ------------------------------------------------------------------

    def apply_edits(
        self, edits: list[dict[str, Any]], stop_on_error: bool = False
    ) -> list[EditResult]:
        """Apply multiple edits in sequence.

        See BatchOperations.apply_edits() for the edit format.
        """
        return self._batch_ops.apply_edits(edits, stop_on_error=stop_on_error)

    def apply_edit_file(
        self, path: str | FilePath, format: str | None = None, stop_on_error: bool = False
    ) -> list[EditResult]:
        """Apply edits from a YAML or JSON file with an ``edits`` list."""
        return self._batch_ops.apply_edit_file(path, format=format, stop_on_error=stop_on_error)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_string(self, pretty_print: bool = True) -> str:
        """Serialize the document to an XML string."""
        return etree.tostring(self._root, encoding="unicode", pretty_print=pretty_print)

    def save(self, output_path: str | FilePath | BinaryIO | None = None) -> None:
        """Save the document.

        Args:
            output_path: File path or binary stream (default: the load path)

        Raises:
            ValidationError: If no output path is known
        """
        if output_path is None:
            if self.path is None:
                raise ValidationError("No output path given and document was not loaded from a file")
            output_path = self.path

        data = etree.tostring(
            self._root, xml_declaration=True, encoding="UTF-8", pretty_print=True
        )
        if isinstance(output_path, (str, FilePath)):
            FilePath(output_path).write_bytes(data)
        else:
            output_path.write(data)
        logger.debug("Saved document to %s", output_path)

    def save_to_bytes(self) -> bytes:
        buffer = io.BytesIO()
        self.save(buffer)
        return buffer.getvalue()

    def __repr__(self) -> str:
        source = self.path or "<memory>"
        return f"<TableDocument {source}: {sum(1 for _ in self.iter_tables())} table(s)>"
