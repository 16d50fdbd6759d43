"""Command-line interface for tablegrid.

Provides commands for inspecting and structurally editing tables with
merged cells from the terminal.
"""

from pathlib import Path
from typing import Annotated

import typer
from lxml import etree

from . import TableDocument, TableOptions, __version__
from .operations import delete_column, extract_grid, insert_column

app = typer.Typer(
    name="tablegrid",
    help="Inspect and edit tables with merged cells from the command line.",
    no_args_is_help=True,
)

OptionsFile = Annotated[
    Path | None,
    typer.Option("--options", help="YAML file with table element names"),
]
TableIndex = Annotated[int, typer.Option("--table", "-T", help="Table index (0-based)")]
Output = Annotated[Path | None, typer.Option("--output", "-o", help="Output file path")]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"tablegrid version {__version__}")
        raise typer.Exit()


def _load(file: Path, options_file: Path | None) -> TableDocument:
    options = TableOptions.from_yaml(options_file) if options_file else None
    return TableDocument(file, options=options)


def _parse_position(value: str) -> tuple[int, int]:
    try:
        row, col = (int(part) for part in value.split(","))
    except ValueError:
        raise typer.BadParameter(f"Expected ROW,COL but got {value!r}") from None
    return row, col


def _format_grid(rows: list[list[str]]) -> list[str]:
    if not rows:
        return []
    widths = [max(len(row[i]) for row in rows if i < len(row)) for i in range(max(map(len, rows)))]
    return [" | ".join(text.ljust(widths[i]) for i, text in enumerate(row)).rstrip() for row in rows]


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Inspect and edit tables with merged cells from the command line."""
    pass


@app.command()
def info(
    file: Annotated[Path, typer.Argument(help="Path to the XML document")],
    options: OptionsFile = None,
) -> None:
    """Show the logical size of every table and any grid problems."""
    try:
        doc = _load(file, options)
        tables = doc.tables
        typer.echo(f"File: {file}")
        typer.echo(f"Tables: {len(tables)}")
        for index, table in enumerate(tables):
            typer.echo(
                f"  [{index}] {table.row_count} rows × {table.col_count} cols, "
                f"{len(table.grid)} cells"
            )
            for problem in table.problems:
                typer.echo(f"      problem: {problem}")
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def show(
    file: Annotated[Path, typer.Argument(help="Path to the XML document")],
    table: TableIndex = 0,
    options: OptionsFile = None,
) -> None:
    """Print a table as its logical grid.

    Positions covered by a span of a cell to the left show '<', positions
    covered from above show '^'.
    """
    try:
        doc = _load(file, options)
        grid = doc.grid(doc.table_path(table))
        rows: list[list[str]] = []
        for row in range(grid.row_count):
            texts = []
            for col in range(grid.col_count):
                cell = grid.locate(row, col)
                if cell is None:
                    texts.append("?")
                elif (cell.row, cell.col) == (row, col):
                    texts.append("".join(cell.element.itertext()).strip() or "·")
                elif cell.row == row:
                    texts.append("<")
                else:
                    texts.append("^")
            rows.append(texts)
        for line in _format_grid(rows):
            typer.echo(line)
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command("delete-column")
def delete_column_command(
    file: Annotated[Path, typer.Argument(help="Path to the XML document")],
    row: Annotated[int, typer.Option("--row", "-r", help="Logical row of the reference cell")],
    col: Annotated[int, typer.Option("--col", "-c", help="Logical column of the reference cell")],
    table: TableIndex = 0,
    output: Output = None,
    options: OptionsFile = None,
) -> None:
    """Delete the column(s) covered by the cell at ROW, COL."""
    try:
        doc = _load(file, options)
        before = doc.revision
        delete_column(doc, doc.cell_path(table, row, col))
        if doc.revision == before:
            typer.echo(
                "Error: Cannot delete the column: a row would be left without cells", err=True
            )
            raise typer.Exit(1)
        output_path = output or file
        doc.save(output_path)
        typer.echo(f"Deleted column and saved to {output_path}")
    except typer.Exit:
        raise
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command("insert-column")
def insert_column_command(
    file: Annotated[Path, typer.Argument(help="Path to the XML document")],
    row: Annotated[int, typer.Option("--row", "-r", help="Logical row of the reference cell")],
    col: Annotated[int, typer.Option("--col", "-c", help="Logical column of the reference cell")],
    table: TableIndex = 0,
    header: Annotated[
        bool | None,
        typer.Option("--header/--no-header", help="Force header or regular cells"),
    ] = None,
    output: Output = None,
    options: OptionsFile = None,
) -> None:
    """Insert an empty column after the cell at ROW, COL."""
    try:
        doc = _load(file, options)
        insert_column(doc, doc.cell_path(table, row, col), header=header)
        output_path = output or file
        doc.save(output_path)
        typer.echo(f"Inserted column and saved to {output_path}")
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def extract(
    file: Annotated[Path, typer.Argument(help="Path to the XML document")],
    start: Annotated[str, typer.Option("--start", "-s", help="First cell as ROW,COL")],
    end: Annotated[str, typer.Option("--end", "-e", help="Second cell as ROW,COL")],
    table: TableIndex = 0,
    cells: Annotated[bool, typer.Option("--cells", help="List cells instead of a grid")] = False,
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Write the range as a table XML file")
    ] = None,
    options: OptionsFile = None,
) -> None:
    """Extract the rectangular range between two cells."""
    start_row, start_col = _parse_position(start)
    end_row, end_col = _parse_position(end)
    try:
        doc = _load(file, options)
        grid_range = extract_grid(
            doc,
            doc.cell_path(table, start_row, start_col),
            doc.cell_path(table, end_row, end_col),
        )
        if grid_range is None:
            typer.echo("Error: Range endpoints are not in one table", err=True)
            raise typer.Exit(1)

        if cells:
            for entry in grid_range.cells:
                text = "".join(entry.element.itertext()).strip()
                typer.echo(f"{'/'.join(map(str, entry.path))}\t{text}")
        else:
            rows = [
                ["".join(entry.element.itertext()).strip() or "·" for entry in row]
                for row in grid_range.rows
            ]
            for line in _format_grid(rows):
                typer.echo(line)

        if not grid_range.complete:
            typer.echo("Warning: the table grid has gaps; the range is incomplete", err=True)

        if output is not None:
            element = grid_range.to_element(doc.options)
            output.write_bytes(
                etree.tostring(element, xml_declaration=True, encoding="UTF-8", pretty_print=True)
            )
            typer.echo(f"Saved range to {output}")
    except typer.Exit:
        raise
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def apply(
    file: Annotated[Path, typer.Argument(help="Path to the XML document")],
    edits: Annotated[Path, typer.Argument(help="Path to YAML/JSON edits file")],
    output: Output = None,
    options: OptionsFile = None,
) -> None:
    """Apply edits from a YAML or JSON file."""
    try:
        doc = _load(file, options)
        results = doc.apply_edit_file(edits)
        output_path = output or file
        doc.save(output_path)

        success_count = sum(1 for r in results if r.success)
        fail_count = len(results) - success_count
        typer.echo(f"Applied {success_count} edits ({fail_count} failed), saved to {output_path}")

        if fail_count > 0:
            for r in results:
                if not r.success:
                    typer.echo(f"  Failed: {r.message}", err=True)
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
