"""
Tests for rectangular range extraction between two cells.
"""

import itertools

from tablegrid import TableDocument, extract_cells, extract_grid

# A spans rows 0-1 at column 0
ROWSPAN_3X3 = """<doc>
  <table>
    <tr><td rowspan="2">A</td><td>B</td><td>C</td></tr>
    <tr><td>D</td><td>E</td></tr>
    <tr><td>F</td><td>G</td><td>H</td></tr>
  </table>
</doc>"""

# A spans columns 0-1
COLSPAN_2X3 = """<doc>
  <table>
    <tr><td colspan="2">A</td><td>B</td></tr>
    <tr><td>C</td><td>D</td><td>E</td></tr>
  </table>
</doc>"""

#   A A B C
#   D E B F
#   G E H I
MIXED = """<doc>
  <table>
    <tr><td colspan="2">A</td><td rowspan="2">B</td><td>C</td></tr>
    <tr><td>D</td><td rowspan="2">E</td><td>F</td></tr>
    <tr><td>G</td><td>H</td><td>I</td></tr>
  </table>
</doc>"""

TWO_TABLES = """<doc>
  <p>Intro</p>
  <table><tr><td>A</td><td>B</td></tr></table>
  <table><tr><td>X</td><td>Y</td></tr></table>
</doc>"""


def make_doc(xml: str) -> TableDocument:
    return TableDocument.from_string(xml)


def texts(entries) -> list[str]:
    return ["".join(entry.element.itertext()) for entry in entries]


def grid_texts(grid_range) -> list[list[str | None]]:
    return [
        [None if entry is None else "".join(entry.element.itertext()) for entry in row]
        for row in grid_range.rows
    ]


class TestExtractGrid:
    def test_row_span_cell_is_not_duplicated(self):
        doc = make_doc(ROWSPAN_3X3)
        result = extract_grid(doc, doc.cell_path(0, 0, 0), doc.cell_path(0, 1, 1))

        assert (result.row_count, result.col_count) == (2, 2)
        assert grid_texts(result) == [["A", "B"], ["D"]]
        assert texts(result.cells) == ["A", "B", "D"]
        assert result.complete

    def test_untrimmed_rows_keep_consumed_slots(self):
        doc = make_doc(ROWSPAN_3X3)
        result = extract_grid(doc, doc.cell_path(0, 0, 0), doc.cell_path(0, 1, 1), trim=False)

        assert grid_texts(result) == [["A", "B"], [None, "D"]]

    def test_direction_is_irrelevant(self):
        doc = make_doc(ROWSPAN_3X3)
        forward = extract_grid(doc, doc.cell_path(0, 0, 0), doc.cell_path(0, 1, 1))
        backward = extract_grid(doc, doc.cell_path(0, 1, 1), doc.cell_path(0, 0, 0))

        assert texts(forward.cells) == texts(backward.cells)
        assert (backward.start_row, backward.end_row) == (0, 1)
        assert (backward.start_col, backward.end_col) == (0, 1)

    def test_range_grows_to_focus_span(self):
        """Selecting A alone still covers both rows it spans."""
        doc = make_doc(ROWSPAN_3X3)
        result = extract_grid(doc, doc.cell_path(0, 0, 0), doc.cell_path(0, 0, 0))

        assert (result.start_row, result.end_row) == (0, 1)
        assert texts(result.cells) == ["A"]

    def test_range_contains_anchor_span(self):
        doc = make_doc(COLSPAN_2X3)
        result = extract_grid(doc, doc.cell_path(0, 1, 0), doc.cell_path(0, 0, 0))

        assert (result.start_col, result.end_col) == (0, 1)
        assert grid_texts(result) == [["A"], ["C", "D"]]

    def test_cell_crossing_range_boundary_is_included_once(self):
        doc = make_doc(MIXED)
        # E (1,1)-(2,1) and H (2,2): rectangle rows 1-2, cols 1-2 holds B's lower half
        result = extract_grid(doc, doc.cell_path(0, 1, 1), doc.cell_path(0, 2, 2))

        assert texts(result.cells) == ["E", "B", "H"]
        assert grid_texts(result) == [["E", "B"], ["H"]]

    def test_entries_carry_document_paths(self):
        doc = make_doc(COLSPAN_2X3)
        result = extract_grid(doc, doc.cell_path(0, 0, 0), doc.cell_path(0, 1, 2))

        assert [entry.path for entry in result.cells] == [
            (0, 0, 0),
            (0, 0, 1),
            (0, 1, 0),
            (0, 1, 1),
            (0, 1, 2),
        ]
        for entry in result.cells:
            assert doc.node(entry.path) is entry.element

    def test_paths_inside_cells_resolve_to_cells(self):
        doc = make_doc(
            "<doc><table><tr><td><p>A</p></td><td><p>B</p></td></tr></table></doc>"
        )
        result = extract_grid(doc, (0, 0, 0, 0), (0, 0, 1, 0))
        assert texts(result.cells) == ["A", "B"]

    def test_defaults_to_selection(self):
        doc = make_doc(MIXED)
        doc.select(doc.cell_path(0, 0, 3), doc.cell_path(0, 1, 3))

        result = extract_grid(doc)
        assert texts(result.cells) == ["C", "F"]

    def test_to_element_copies_cells(self):
        doc = make_doc(ROWSPAN_3X3)
        result = extract_grid(doc, doc.cell_path(0, 0, 0), doc.cell_path(0, 1, 1))
        table = result.to_element(doc.options)

        assert table.tag == "table"
        assert [len(row) for row in table] == [2, 1]
        assert table[0][0].get("rowspan") == "2"
        assert table[0][0] is not doc.node((0, 0, 0))
        # The source table is untouched
        assert len(doc.node((0, 0))) == 3


class TestExtractCells:
    def test_flat_list(self):
        doc = make_doc(MIXED)
        cells = extract_cells(doc, doc.cell_path(0, 0, 0), doc.cell_path(0, 2, 3))
        assert texts(cells) == ["A", "B", "C", "D", "E", "F", "G", "H", "I"]

    def test_every_pair_of_cells(self):
        """Any range holds both endpoint spans and lists each cell once."""
        doc = make_doc(MIXED)
        grid = doc.grid((0,))

        for first, second in itertools.product(grid.cells, repeat=2):
            result = extract_grid(doc, doc.path_of(first.element), doc.path_of(second.element))
            for cell in (first, second):
                assert result.start_row <= cell.row and cell.end_row <= result.end_row
                assert result.start_col <= cell.col and cell.end_col <= result.end_col

            paths = [entry.path for entry in result.cells]
            assert len(paths) == len(set(paths))
            assert sum(len(row) for row in result.rows) == len(result.cells)


class TestNotFound:
    def test_outside_table(self):
        doc = make_doc(TWO_TABLES)
        assert extract_grid(doc, (0,), (1, 0, 0)) is None
        assert extract_cells(doc, (0,), (1, 0, 0)) == []

    def test_endpoints_in_different_tables(self):
        doc = make_doc(TWO_TABLES)
        assert extract_grid(doc, (1, 0, 0), (2, 0, 1)) is None

    def test_no_selection(self):
        doc = make_doc(TWO_TABLES)
        assert extract_grid(doc) is None

    def test_invalid_path(self):
        doc = make_doc(TWO_TABLES)
        assert extract_grid(doc, (9, 9), (1, 0, 0)) is None


class TestMalformedGrid:
    def test_stops_at_gap_and_returns_partial_range(self):
        doc = make_doc(
            "<doc><table><tr><td>A</td><td>B</td><td>C</td></tr>"
            "<tr><td>D</td></tr></table></doc>"
        )
        result = extract_grid(doc, (0, 0, 1), (0, 1, 0))

        assert not result.complete
        assert texts(result.cells) == ["A", "B", "D"]
