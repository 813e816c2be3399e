"""Evaluator tests: reference resolution, cycles, and full-grid passes."""

from __future__ import annotations

import pytest

from gridcalc.cell_graph import CellGraph, evaluate
from gridcalc.formulas import (
    CannotEvaluateIdentifierError,
    Cell,
    CyclicReferenceError,
    GridArithmeticError,
    IdentifierContent,
    UnresolvedReferenceError,
)
from gridcalc.grid import classify, parse_grid


def _graph(text: str) -> CellGraph:
    cells, _ = parse_grid(text)
    return CellGraph(cells)


# ────────────────────────────────────────────────────────────────
# Reference resolution
# ────────────────────────────────────────────────────────────────


class TestEvaluate:
    def test_reference_to_first_data_row(self) -> None:
        assert _graph("A,B\n1,=A1+1").evaluate_identifier("B1") == 2

    def test_value_cell(self) -> None:
        assert _graph("A\n4.25").evaluate_identifier("A1") == 4.25

    def test_precedence_through_references(self) -> None:
        assert _graph("A,B,C\n2,3,=A1+B1*4").evaluate_identifier("C1") == 14

    def test_chained_references(self) -> None:
        graph = _graph("A,B,C\n1,=A1*10,=B1+A1\n=C1*2,=A2/4,=B2-A1")
        assert graph.evaluate_identifier("A2") == 22
        assert graph.evaluate_identifier("B2") == 5.5
        assert graph.evaluate_identifier("C2") == 4.5

    def test_sign_folded_literal_after_reference(self) -> None:
        """'=A1-1' lexes as [A1, -1]; the reducer sums what remains."""
        assert _graph("A,B\n5,=A1-1").evaluate_identifier("B1") == 4

    def test_same_reference_twice(self) -> None:
        assert _graph("A,B\n3,=A1*A1").evaluate_identifier("B1") == 9

    def test_diamond_is_not_a_cycle(self) -> None:
        graph = _graph("A,B,C,D\n1,=A1+1,=A1+2,=B1+C1")
        assert graph.evaluate_identifier("D1") == 5

    def test_module_level_evaluate(self) -> None:
        cells, _ = parse_grid("A,B\n1,=A1+1")
        assert evaluate(cells[1], cells) == 2

    def test_unresolved_reference(self) -> None:
        with pytest.raises(UnresolvedReferenceError) as exc_info:
            _graph("A\n=Z9").evaluate_identifier("A1")
        assert exc_info.value.ref_name == "Z9"
        assert exc_info.value.referrer == "A1"

    def test_header_name_is_not_a_data_cell(self) -> None:
        with pytest.raises(UnresolvedReferenceError):
            _graph("A,B\n1,=A").evaluate_identifier("B1")

    def test_lookup_unknown_identifier(self) -> None:
        with pytest.raises(UnresolvedReferenceError):
            _graph("A\n1").evaluate_identifier("A2")

    def test_cannot_evaluate_identifier(self) -> None:
        header_cell = Cell(content=IdentifierContent(value="A", src="A"), identifier="A")
        with pytest.raises(CannotEvaluateIdentifierError, match="A"):
            evaluate(header_cell, [header_cell])

    def test_reference_to_identifier_cell(self) -> None:
        header_cell = Cell(content=IdentifierContent(value="A", src="A"), identifier="A")
        formula = Cell(content=classify("=A+1"), identifier="B1")
        with pytest.raises(CannotEvaluateIdentifierError):
            evaluate(formula, [header_cell, formula])

    def test_long_acyclic_chain(self) -> None:
        rows = [f"=X{i + 1}+1" for i in range(1, 600)] + ["0"]
        cells, _ = parse_grid("X\n" + "\n".join(rows))
        graph = CellGraph(cells)
        assert graph.evaluate_identifier("X1") == 599
        results = graph.evaluate_all()
        assert results[0] == 599
        assert results[-1] == 0

    def test_very_long_chain_without_cache_warmup(self) -> None:
        rows = [f"=X{i + 1}*1" for i in range(1, 3000)] + ["7"]
        cells, _ = parse_grid("X\n" + "\n".join(rows))
        assert evaluate(cells[0], cells) == 7

    def test_division_by_zero_through_reference(self) -> None:
        with pytest.raises(GridArithmeticError):
            _graph("A,B\n0,=1/A1").evaluate_identifier("B1")


# ────────────────────────────────────────────────────────────────
# Cycle detection
# ────────────────────────────────────────────────────────────────


class TestCycles:
    def test_self_reference(self) -> None:
        with pytest.raises(CyclicReferenceError) as exc_info:
            _graph("A\n=A1").evaluate_identifier("A1")
        assert exc_info.value.chain == ["A1", "A1"]
        assert str(exc_info.value) == "Cyclic reference: A1 -> A1"

    def test_two_cell_cycle(self) -> None:
        with pytest.raises(CyclicReferenceError) as exc_info:
            _graph("A,B\n=B1,=A1").evaluate_identifier("A1")
        assert exc_info.value.chain == ["A1", "B1", "A1"]

    def test_cycle_not_containing_root(self) -> None:
        with pytest.raises(CyclicReferenceError) as exc_info:
            _graph("A,B,C\n=B1,=C1,=B1").evaluate_identifier("A1")
        assert exc_info.value.chain == ["B1", "C1", "B1"]

    def test_cycle_in_later_sibling_reference(self) -> None:
        with pytest.raises(CyclicReferenceError) as exc_info:
            _graph("A,B\n1,=A1+B1").evaluate_identifier("B1")
        assert exc_info.value.chain == ["B1", "B1"]

    def test_cycle_spanning_sibling_references(self) -> None:
        graph = _graph("A,B,C\n=B1+C1,2,=A1")
        with pytest.raises(CyclicReferenceError) as exc_info:
            graph.evaluate_identifier("A1")
        assert exc_info.value.chain == ["A1", "C1", "A1"]

    def test_failure_does_not_leak_into_next_request(self) -> None:
        graph = _graph("A,B,C\n=A1,1,=B1*3")
        with pytest.raises(CyclicReferenceError):
            graph.evaluate_identifier("A1")
        assert graph.evaluate_identifier("C1") == 3

    def test_long_cycle_terminates(self) -> None:
        rows = [f"=X{i + 1}" for i in range(1, 1000)] + ["=X1"]
        cells, _ = parse_grid("X\n" + "\n".join(rows))
        with pytest.raises(CyclicReferenceError) as exc_info:
            CellGraph(cells).evaluate_all()
        assert len(exc_info.value.chain) == 1001
        assert exc_info.value.chain[0] == exc_info.value.chain[-1] == "X1"

    def test_long_chain_terminates(self) -> None:
        header = ",".join(f"C{chr(65 + i)}" for i in range(20))
        formulas = [f"=C{chr(65 + i + 1)}1" for i in range(19)] + ["=CA1"]
        with pytest.raises(CyclicReferenceError) as exc_info:
            _graph(header + "\n" + ",".join(formulas)).evaluate_identifier("CA1")
        assert len(exc_info.value.chain) == 21


# ────────────────────────────────────────────────────────────────
# Full pass
# ────────────────────────────────────────────────────────────────


class TestEvaluateAll:
    def test_results_parallel_to_cells(self) -> None:
        cells, header = parse_grid("A,B\n1,=A1+1\n=B1*2,=A2-B1")
        results = CellGraph(cells).evaluate_all()
        assert results == [1, 2, 4, 2]
        assert len(results) // len(header) == 2

    def test_identifier_cells_pass_through(self) -> None:
        ident = IdentifierContent(value="A", src="A")
        cells = [Cell(content=ident, identifier="A")]
        assert CellGraph(cells).evaluate_all() == [ident]

    def test_one_bad_cell_fails_the_pass(self) -> None:
        cells, _ = parse_grid("A,B\n1,=Z1")
        with pytest.raises(UnresolvedReferenceError):
            CellGraph(cells).evaluate_all()

    def test_empty_grid(self) -> None:
        assert CellGraph([]).evaluate_all() == []
