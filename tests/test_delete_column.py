"""
Tests for deleting columns from tables with merged cells.
"""

import pytest

from tablegrid import TableDocument, delete_column


def make_doc(xml: str) -> TableDocument:
    return TableDocument.from_string(xml)


def table_state(doc: TableDocument, table_path=(0,)) -> list[list[tuple[str, int, int]]]:
    """Rows as (text, colspan, rowspan) tuples in document order."""
    table = doc.node(table_path)
    return [
        [
            (
                "".join(cell.itertext()),
                int(cell.get("colspan", "1")),
                int(cell.get("rowspan", "1")),
            )
            for cell in row
        ]
        for row in table
    ]


def delete_at(doc: TableDocument, row: int, col: int) -> None:
    delete_column(doc, doc.cell_path(0, row, col))


class TestBasicDeletion:
    def test_plain_table(self):
        doc = make_doc(
            "<doc><table col-sizes='100 200'>"
            "<tr><td>A</td><td>B</td></tr>"
            "<tr><td>C</td><td>D</td></tr>"
            "</table></doc>"
        )
        delete_at(doc, 0, 0)

        assert table_state(doc) == [[("B", 1, 1)], [("D", 1, 1)]]
        assert doc.node((0,)).get("col-sizes") == "200"
        assert doc.grid((0,)).col_count == 1

    def test_last_column(self):
        doc = make_doc(
            "<doc><table><tr><td>A</td><td>B</td><td>C</td></tr>"
            "<tr><td>D</td><td>E</td><td>F</td></tr></table></doc>"
        )
        delete_at(doc, 1, 2)

        assert table_state(doc) == [
            [("A", 1, 1), ("B", 1, 1)],
            [("D", 1, 1), ("E", 1, 1)],
        ]

    def test_without_col_sizes(self):
        doc = make_doc(
            "<doc><table><tr><td>A</td><td>B</td></tr></table></doc>"
        )
        delete_at(doc, 0, 1)
        assert doc.node((0,)).get("col-sizes") is None

    def test_defaults_to_selection(self):
        doc = make_doc(
            "<doc><table><tr><td>A</td><td>B</td></tr>"
            "<tr><td>C</td><td>D</td></tr></table></doc>"
        )
        doc.select((0, 1, 1))
        delete_column(doc)

        assert table_state(doc) == [[("A", 1, 1)], [("C", 1, 1)]]

    def test_selection_inside_cell_content(self):
        doc = make_doc(
            "<doc><table><tr><td><p>A</p></td><td><p>B</p></td></tr></table></doc>"
        )
        delete_column(doc, (0, 0, 0, 0))
        assert table_state(doc) == [[("B", 1, 1)]]


class TestSpanningCells:
    def test_span_starting_at_deleted_column_shrinks(self):
        """Row 0's two-column cell keeps one column; row 1 loses its first cell."""
        doc = make_doc(
            "<doc><table>"
            "<tr><td colspan='2'>A</td></tr>"
            "<tr><td>B</td><td>C</td></tr>"
            "</table></doc>"
        )
        delete_at(doc, 1, 0)

        assert table_state(doc) == [[("A", 1, 1)], [("C", 1, 1)]]
        assert doc.grid((0,)).col_count == 1

    def test_three_column_span_with_single_cell_row(self):
        doc = make_doc(
            "<doc><table>"
            "<tr><td colspan='3'>A</td></tr>"
            "<tr><td>B</td><td>C</td><td>D</td></tr>"
            "</table></doc>"
        )
        delete_at(doc, 1, 0)

        assert table_state(doc) == [[("A", 2, 1)], [("C", 1, 1), ("D", 1, 1)]]
        assert doc.grid((0,)).col_count == 2

    def test_span_from_left_shrinks_in_place(self):
        doc = make_doc(
            "<doc><table>"
            "<tr><td colspan='2'>A</td><td>B</td></tr>"
            "<tr><td>C</td><td>D</td><td>E</td></tr>"
            "</table></doc>"
        )
        delete_at(doc, 1, 1)

        assert table_state(doc) == [
            [("A", 1, 1), ("B", 1, 1)],
            [("C", 1, 1), ("E", 1, 1)],
        ]

    def test_moved_cell_lands_before_first_surviving_cell(self):
        doc = make_doc(
            "<doc><table>"
            "<tr><td>A</td><td colspan='2' class='wide'><p>B</p></td><td>C</td></tr>"
            "<tr><td>D</td><td>E</td><td>F</td><td>G</td></tr>"
            "</table></doc>"
        )
        delete_at(doc, 1, 1)

        assert table_state(doc) == [
            [("A", 1, 1), ("B", 1, 1), ("C", 1, 1)],
            [("D", 1, 1), ("F", 1, 1), ("G", 1, 1)],
        ]
        moved = doc.node((0, 0, 1))
        assert moved.get("class") == "wide"
        assert moved[0].tag == "p"

    def test_row_span_cell_is_removed_once(self):
        doc = make_doc(
            "<doc><table>"
            "<tr><td rowspan='2'>A</td><td>B</td></tr>"
            "<tr><td>C</td></tr>"
            "</table></doc>"
        )
        delete_at(doc, 0, 0)

        assert table_state(doc) == [[("B", 1, 1)], [("C", 1, 1)]]
        assert doc.grid((0,)).is_valid

    def test_block_span_shrinks_across_its_rows(self):
        doc = make_doc(
            "<doc><table>"
            "<tr><td colspan='2' rowspan='2'>A</td><td>B</td></tr>"
            "<tr><td>C</td></tr>"
            "<tr><td>D</td><td>E</td><td>F</td></tr>"
            "</table></doc>"
        )
        delete_at(doc, 2, 1)

        assert table_state(doc) == [
            [("A", 1, 2), ("B", 1, 1)],
            [("C", 1, 1)],
            [("D", 1, 1), ("F", 1, 1)],
        ]
        grid = doc.grid((0,))
        assert grid.is_valid
        assert grid.col_count == 2


class TestMultiColumnDeletion:
    def test_spanning_reference_cell_deletes_all_its_columns(self):
        doc = make_doc(
            "<doc><table col-sizes='10 20 30 40'>"
            "<tr><td colspan='2'>A</td><td>B</td><td>C</td></tr>"
            "<tr><td>D</td><td>E</td><td>F</td><td>G</td></tr>"
            "</table></doc>"
        )
        delete_at(doc, 0, 0)

        assert table_state(doc) == [
            [("B", 1, 1), ("C", 1, 1)],
            [("F", 1, 1), ("G", 1, 1)],
        ]
        assert doc.node((0,)).get("col-sizes") == "30 40"

    def test_overlap_is_subtracted_from_left_span(self):
        doc = make_doc(
            "<doc><table>"
            "<tr><td colspan='3'>A</td><td>B</td></tr>"
            "<tr><td>C</td><td colspan='2'>D</td><td>E</td></tr>"
            "<tr><td>F</td><td>G</td><td>H</td><td>I</td></tr>"
            "</table></doc>"
        )
        delete_at(doc, 1, 1)

        assert table_state(doc) == [
            [("A", 1, 1), ("B", 1, 1)],
            [("C", 1, 1), ("E", 1, 1)],
            [("F", 1, 1), ("I", 1, 1)],
        ]


class TestGuard:
    SINGLE_CELL_ROW = (
        "<doc><table col-sizes='50 50'>"
        "<tr><td colspan='2'>A</td></tr>"
        "<tr><td>B</td><td>C</td></tr>"
        "</table></doc>"
    )

    def test_single_cell_row_leaves_table_unchanged(self):
        doc = make_doc(self.SINGLE_CELL_ROW)
        before = doc.to_string()
        revision = doc.revision

        delete_at(doc, 0, 0)

        assert doc.to_string() == before
        assert doc.revision == revision

    def test_no_mutation_calls(self, monkeypatch):
        doc = make_doc(self.SINGLE_CELL_ROW)
        calls = []
        for name in ("insert_node", "remove_node", "set_node_properties"):
            monkeypatch.setattr(doc, name, lambda *args, _name=name, **kwargs: calls.append(_name))

        delete_at(doc, 0, 0)
        assert calls == []

    def test_row_with_single_cell_under_row_span(self):
        doc = make_doc(
            "<doc><table><tr><td rowspan='2'>A</td><td>B</td></tr>"
            "<tr><td>C</td></tr></table></doc>"
        )
        before = doc.to_string()

        delete_at(doc, 1, 1)
        assert doc.to_string() == before

    def test_other_row_would_lose_its_only_cell(self, monkeypatch):
        """Row 1 holds only C, which sits in the deleted column."""
        doc = make_doc(
            "<doc><table><tr><td>A</td><td rowspan='2'>B</td></tr>"
            "<tr><td>C</td></tr></table></doc>"
        )
        before = doc.to_string()
        reference = doc.cell_path(0, 0, 0)
        calls = []
        for name in ("insert_node", "remove_node", "set_node_properties"):
            monkeypatch.setattr(doc, name, lambda *args, _name=name, **kwargs: calls.append(_name))

        delete_column(doc, reference)

        assert calls == []
        assert doc.to_string() == before
        assert all(len(row) > 0 for row in doc.node((0,)))

    def test_moved_cell_keeps_row_populated(self):
        """A moved copy counts toward its row's remaining cells."""
        doc = make_doc(
            "<doc><table>"
            "<tr><td colspan='2'>A</td></tr>"
            "<tr><td>B</td><td>C</td></tr>"
            "<tr><td>D</td><td>E</td></tr>"
            "</table></doc>"
        )
        delete_at(doc, 2, 0)

        assert table_state(doc) == [[("A", 1, 1)], [("C", 1, 1)], [("E", 1, 1)]]


class TestNoOp:
    def test_outside_table(self):
        doc = make_doc("<doc><p>text</p><table><tr><td>A</td><td>B</td></tr></table></doc>")
        before = doc.to_string()

        delete_column(doc, (0,))
        assert doc.to_string() == before

    def test_without_selection(self):
        doc = make_doc("<doc><table><tr><td>A</td><td>B</td></tr></table></doc>")
        delete_column(doc)
        assert doc.revision == 0


class TestBatching:
    def test_repair_pass_runs_once_after_edit(self, monkeypatch):
        doc = make_doc(
            "<doc><table><tr><td>A</td><td>B</td></tr>"
            "<tr><td>C</td><td>D</td></tr></table></doc>"
        )
        calls = []
        original = doc.normalize

        def normalize():
            calls.append(doc.is_normalizing)
            return original()

        monkeypatch.setattr(doc, "normalize", normalize)
        delete_at(doc, 0, 0)

        assert calls == [True]

    def test_selection_in_removed_cell_is_cleared(self):
        doc = make_doc(
            "<doc><table><tr><td>A</td><td>B</td></tr></table></doc>"
        )
        doc.select((0, 0, 0))
        delete_column(doc)
        assert doc.selection is None


#   A A B C
#   D E B F
#   G E H I
MIXED = """<doc>
  <table col-sizes="1 2 3 4">
    <tr><td colspan="2">A</td><td rowspan="2">B</td><td>C</td></tr>
    <tr><td>D</td><td rowspan="2">E</td><td>F</td></tr>
    <tr><td>G</td><td>H</td><td>I</td></tr>
  </table>
</doc>"""


@pytest.mark.parametrize(
    "row, col",
    [(r, c) for r in range(3) for c in range(4)],
)
def test_single_column_deletion_keeps_grid_dense(row, col):
    """Deleting through any one-column cell removes exactly one column."""
    doc = make_doc(MIXED)
    grid = doc.grid((0,))
    reference = grid.locate(row, col)
    if reference.col_span != 1:
        pytest.skip("reference cell spans several columns")

    spans_before = {
        "".join(cell.element.itertext()): (cell.col, cell.col_span) for cell in grid
    }
    delete_at(doc, row, col)

    after = doc.grid((0,))
    assert after.is_valid
    assert after.col_count == 3
    assert after.row_count == 3
    assert len(doc.node((0,)).get("col-sizes").split()) == 3

    for cell in after:
        name = "".join(cell.element.itertext())
        start, span = spans_before[name]
        overlap = 1 if start <= reference.col <= start + span - 1 else 0
        assert cell.col_span == span - overlap
        assert cell.col_span >= 1
