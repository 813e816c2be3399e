"""Console table and results-frame tests."""

from __future__ import annotations

import polars as pl
import pytest

from gridcalc.cell_graph import CellGraph
from gridcalc.formulas import format_number
from gridcalc.grid import parse_grid
from gridcalc.render import render_result_table, render_source_table, results_frame


@pytest.fixture
def grid():
    return parse_grid("A,B\n1,=A1+1\n2.5,=B1*A2")


class TestFormatNumber:
    def test_integral_float(self) -> None:
        assert format_number(2.0) == "2"

    def test_fraction(self) -> None:
        assert format_number(2.5) == "2.5"

    def test_negative(self) -> None:
        assert format_number(-3.0) == "-3"


class TestSourceTable:
    def test_plain(self, grid) -> None:
        cells, header = grid
        lines = render_source_table(cells, header, color=False).splitlines()
        assert lines[0] == "A".ljust(18) + "B".ljust(18)
        assert lines[1] == "1".ljust(18) + "=A1+1".ljust(18)
        assert lines[2] == "2.5".ljust(18) + "=B1*A2".ljust(18)

    def test_custom_width(self, grid) -> None:
        cells, header = grid
        lines = render_source_table(cells, header, width=8, color=False).splitlines()
        assert lines[1] == "1".ljust(8) + "=A1+1".ljust(8)

    def test_colored_output_has_escape_codes(self, grid) -> None:
        cells, header = grid
        out = render_source_table(cells, header)
        assert "\x1b[" in out

    def test_header_only(self) -> None:
        cells, header = parse_grid("A,B")
        assert render_source_table(cells, header, color=False) == "A".ljust(18) + "B".ljust(18)


class TestResultTable:
    def test_plain(self, grid) -> None:
        cells, header = grid
        results = CellGraph(cells).evaluate_all()
        lines = render_result_table(results, header, color=False).splitlines()
        assert lines[1] == "1".ljust(18) + "2".ljust(18)
        assert lines[2] == "2.5".ljust(18) + "5".ljust(18)


class TestResultsFrame:
    def test_shape_matches_grid(self, grid) -> None:
        cells, header = grid
        results = CellGraph(cells).evaluate_all()
        frame = results_frame(results, header)
        assert frame.columns == ["A", "B"]
        assert frame.shape == (len(cells) // len(header), len(header))
        assert frame["B"].to_list() == [2.0, 5.0]
        assert frame.schema["A"] == pl.Float64

    def test_empty(self) -> None:
        assert results_frame([], []).is_empty()
