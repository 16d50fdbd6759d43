"""
Centralized constants for table element names and attributes.

Import from here to keep the element vocabulary consistent between the
document host, the grid resolver and the structural operations.
"""

# =============================================================================
# Default element types
# =============================================================================

TABLE_TYPE = "table"
ROW_TYPE = "tr"
CELL_TYPE = "td"
HEADER_CELL_TYPE = "th"

# Markup placed inside a freshly created empty cell
DEFAULT_NEW_CELL_CHILDREN = ("p",)


# =============================================================================
# Attributes
# =============================================================================

COLSPAN_ATTR = "colspan"
ROWSPAN_ATTR = "rowspan"
COL_SIZES_ATTR = "col-sizes"

# Property names accepted by TableDocument.set_node_properties() that need
# encoding beyond str()
LIST_PROPERTIES = frozenset({COL_SIZES_ATTR})
