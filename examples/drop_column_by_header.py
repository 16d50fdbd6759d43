"""
Example: Remove a column by its header text and report merged-cell problems.

Usage:
    python drop_column_by_header.py report.xml "Internal notes" published.xml
"""

import logging
import sys

from tablegrid import TableDocument, delete_column


def print_table(table) -> None:
    for row in table.to_text_grid():
        print("  " + " | ".join("?" if text is None else text.strip() for text in row))
    for problem in table.problems:
        print(f"  ! {problem}")


def drop_column(doc: TableDocument, header_text: str) -> int:
    """Delete, in every table, the column whose header cell contains ``header_text``.

    Returns:
        Number of tables that lost a column
    """
    dropped = 0
    for table in doc.tables:
        header = table.find_cell(header_text, case_sensitive=False)
        if header is None or header.row_index != 0:
            continue

        # A spanning header would delete several columns; use a body cell instead
        reference = header.element
        for row in range(1, table.row_count):
            cell = table.grid.locate(row, header.col_index)
            if cell is not None and cell.col_span == 1:
                reference = cell.element
                break

        before = doc.revision
        delete_column(doc, doc.path_of(reference))
        if doc.revision != before:
            dropped += 1
    return dropped


def main() -> None:
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    source, header_text, output = sys.argv[1:4]

    doc = TableDocument(source)
    for index, table in enumerate(doc.tables):
        print(f"Table {index} before ({table.row_count} × {table.col_count}):")
        print_table(table)

    print(f"\nDropped '{header_text}' from {drop_column(doc, header_text)} table(s)\n")

    for index, table in enumerate(doc.tables):
        print(f"Table {index} after ({table.row_count} × {table.col_count}):")
        print_table(table)

    doc.save(output)


if __name__ == "__main__":
    main()
