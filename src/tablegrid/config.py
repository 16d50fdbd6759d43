"""
Table configuration: which element types make up a table and how new cells look.

TableOptions is passed explicitly to every operation instead of being
looked up from ambient state.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from copy import deepcopy
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml
from lxml import etree

from .constants import (
    CELL_TYPE,
    DEFAULT_NEW_CELL_CHILDREN,
    HEADER_CELL_TYPE,
    ROW_TYPE,
    TABLE_TYPE,
)
from .errors import ValidationError

logger = logging.getLogger(__name__)

CellFactory = Callable[[bool, "etree._Element | None"], etree._Element]


@dataclass(frozen=True)
class TableOptions:
    """Element vocabulary and empty-cell factory for table operations.

    Attributes:
        table_type: Tag of table elements
        row_type: Tag of row elements
        cell_type: Tag of regular cells
        header_cell_type: Tag of header cells
        new_cell_children: Tags of the (empty) child elements placed in new cells
        cell_factory: Optional callable ``(header, initial_content) -> element``
            replacing the default empty-cell construction
    """

    table_type: str = TABLE_TYPE
    row_type: str = ROW_TYPE
    cell_type: str = CELL_TYPE
    header_cell_type: str = HEADER_CELL_TYPE
    new_cell_children: tuple[str, ...] = DEFAULT_NEW_CELL_CHILDREN
    cell_factory: CellFactory | None = field(default=None, compare=False, repr=False)

    @property
    def cell_types(self) -> frozenset[str]:
        """Tags considered table cells (regular and header)."""
        return frozenset({self.cell_type, self.header_cell_type})

    def is_cell(self, element: etree._Element) -> bool:
        return element.tag in self.cell_types

    def is_header(self, element: etree._Element) -> bool:
        return element.tag == self.header_cell_type

    def create_empty_cell(
        self,
        header: bool = False,
        initial_content: etree._Element | None = None,
    ) -> etree._Element:
        """Create a new, detached cell element.

        Args:
            header: Create a header cell instead of a regular one
            initial_content: Element copied into the cell instead of the
                default ``new_cell_children``

        Returns:
            The new cell element
        """
        if self.cell_factory is not None:
            return self.cell_factory(header, initial_content)

        cell = etree.Element(self.header_cell_type if header else self.cell_type)
        if initial_content is not None:
            cell.append(deepcopy(initial_content))
        else:
            for tag in self.new_cell_children:
                etree.SubElement(cell, tag)
        return cell

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> TableOptions:
        """Build options from a plain mapping (e.g. parsed YAML).

        Raises:
            ValidationError: If the mapping contains unknown keys or bad values
        """
        if not data:
            return cls()

        allowed = {f.name for f in fields(cls)} - {"cell_factory"}
        unknown = sorted(set(data) - allowed)
        if unknown:
            raise ValidationError(
                f"Unknown table option(s): {', '.join(unknown)}",
                errors=[f"unknown key '{key}'" for key in unknown],
            )

        values: dict[str, Any] = {}
        for key, value in data.items():
            if key == "new_cell_children":
                if isinstance(value, str):
                    value = (value,)
                if not isinstance(value, (list, tuple)) or not all(
                    isinstance(tag, str) for tag in value
                ):
                    raise ValidationError("new_cell_children must be a list of tag names")
                values[key] = tuple(value)
            else:
                if not isinstance(value, str) or not value:
                    raise ValidationError(f"Table option '{key}' must be a non-empty string")
                values[key] = value

        options = cls(**values)
        logger.debug("Loaded table options: %s", options)
        return options

    @classmethod
    def from_yaml(cls, path: str | Path) -> TableOptions:
        """Load options from a YAML file.

        The file may hold the options at the top level or under a
        ``table`` key.
        """
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValidationError(f"Options file {path} must contain a mapping")
        if isinstance(data.get("table"), dict):
            data = data["table"]
        return cls.from_dict(data)
