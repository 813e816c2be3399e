"""Memoized cell evaluator with cycle detection.

Formulas are resolved on demand: referenced cells are evaluated first,
depth-first on an explicit work stack, then the literal-only token
sequence is handed to the reducer.  Results are cached for the
lifetime of the graph; the cell set itself is never modified.

Each top-level request gets a fresh reference trace which mirrors the
work stack.  A cell is pushed before its references are resolved and
popped once its value is cached, so a reference back into the trace is a
cycle and is reported with the chain that closes it.
"""

from __future__ import annotations

from typing import Iterator, Sequence

from gridcalc.formulas.errors import (
    CannotEvaluateIdentifierError,
    CyclicReferenceError,
    UnresolvedReferenceError,
)
from gridcalc.formulas.reducer import reduce_tokens
from gridcalc.formulas.tokens import (
    Cell,
    ExpressionContent,
    IdentifierContent,
    Ref,
    Token,
    Value,
    ValueContent,
)


class CellGraph:
    """On-demand evaluator over an immutable cell set.

    Usage::

        cells, header = parse_grid(text)
        graph = CellGraph(cells)
        value = graph.evaluate_identifier("B1")
        results = graph.evaluate_all()
    """

    def __init__(self, cells: Sequence[Cell]) -> None:
        self._cells = list(cells)
        self._index: dict[str, Cell] = {c.identifier: c for c in self._cells}
        self._cache: dict[str, float] = {}

    def lookup(self, identifier: str, referrer: str | None = None) -> Cell:
        """Return the cell named *identifier*.

        Raises:
            UnresolvedReferenceError: If no such cell exists.
        """
        cell = self._index.get(identifier)
        if cell is None:
            raise UnresolvedReferenceError(identifier, referrer)
        return cell

    def evaluate(self, cell: Cell) -> float:
        """Evaluate *cell* to a number.

        Raises:
            CannotEvaluateIdentifierError: If *cell* holds an identifier.
            UnresolvedReferenceError: If a reference names no cell.
            CyclicReferenceError: If a reference chain loops.
            GridArithmeticError, MalformedExpressionError: From the reducer.
        """
        return self._evaluate(cell, [cell.identifier])

    def evaluate_identifier(self, identifier: str) -> float:
        """Evaluate the cell named *identifier*."""
        return self.evaluate(self.lookup(identifier))

    def evaluate_all(self) -> list[float | IdentifierContent]:
        """Evaluate every cell, in order.

        Identifier cells are passed through unevaluated; any other
        failure aborts the whole pass.
        """
        results: list[float | IdentifierContent] = []
        for cell in self._cells:
            if isinstance(cell.content, IdentifierContent):
                results.append(cell.content)
            else:
                results.append(self.evaluate(cell))
        return results

    def _evaluate(self, cell: Cell, trace: list[str]) -> float:
        content = cell.content
        if isinstance(content, IdentifierContent):
            raise CannotEvaluateIdentifierError(content.value)
        if isinstance(content, ValueContent):
            return content.value
        if not isinstance(content, ExpressionContent):
            raise TypeError(f"Could not evaluate cell: {cell.identifier}")

        # Depth-first over an explicit stack; the trace mirrors it.
        stack: list[tuple[Cell, Iterator[str]]] = [(cell, _ref_names(content))]
        while stack:
            current, pending = stack[-1]
            if current.identifier in self._cache:
                stack.pop()
                trace.pop()
                continue
            for name in pending:
                target = self._descend(name, current, trace)
                if target is not None:
                    stack.append((target, _ref_names(target.content)))
                    break
            else:
                stack.pop()
                trace.pop()
                self._cache[current.identifier] = reduce_tokens(self._substitute(current))
        return self._cache[cell.identifier]

    def _descend(self, name: str, referrer: Cell, trace: list[str]) -> Cell | None:
        """Return the referenced cell if it still needs evaluating, else None."""
        target = self.lookup(name, referrer.identifier)
        content = target.content
        if isinstance(content, IdentifierContent):
            raise CannotEvaluateIdentifierError(content.value)
        if not isinstance(content, ExpressionContent) or target.identifier in self._cache:
            return None
        if target.identifier in trace:
            start = trace.index(target.identifier)
            raise CyclicReferenceError(trace[start:] + [target.identifier])
        trace.append(target.identifier)
        return target

    def _substitute(self, cell: Cell) -> list[Token]:
        resolved: list[Token] = []
        for tok in cell.content.tokens:
            if isinstance(tok, Ref):
                target = self.lookup(tok.name, cell.identifier)
                if isinstance(target.content, ValueContent):
                    resolved.append(Value(value=target.content.value))
                else:
                    resolved.append(Value(value=self._cache[target.identifier]))
            else:
                resolved.append(tok)
        return resolved


def _ref_names(content: ExpressionContent) -> Iterator[str]:
    return (tok.name for tok in content.tokens if isinstance(tok, Ref))


def evaluate(cell: Cell, all_cells: Sequence[Cell]) -> float:
    """Evaluate a single *cell* against *all_cells*."""
    return CellGraph(all_cells).evaluate(cell)
