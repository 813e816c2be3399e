"""Error types for grid parsing and formula evaluation."""

from __future__ import annotations


class GridError(Exception):
    """Base class for all grid and formula errors."""


class MalformedExpressionError(GridError):
    """Formula without a leading ``=``, or one that reduces to a dangling operator."""


class InvalidNumberLiteralError(GridError):
    """A numeric literal scan produced text that is not a number.

    Attributes:
        literal: The offending text.
        position: Column (1-based, within the formula) where it starts.
    """

    def __init__(self, literal: str, position: int | None = None) -> None:
        self.literal = literal
        self.position = position
        msg = f"Invalid number literal: {literal}"
        if position is not None:
            msg += f" (at position {position})"
        super().__init__(msg)


class InvalidCellValueError(GridError):
    """Raw cell text is neither an identifier, a formula, nor a number."""

    def __init__(self, raw: str) -> None:
        self.raw = raw
        super().__init__(f"Invalid cell value: {raw!r}")


class RaggedGridError(GridError):
    """Rows have inconsistent field counts.

    Attributes:
        expected: Field count of the first row.
        actual: Field count of the offending row.
        line: 1-based line number of the offending row in the source text.
    """

    def __init__(self, expected: int, actual: int, line: int) -> None:
        self.expected = expected
        self.actual = actual
        self.line = line
        super().__init__(
            f"Invalid grid: line {line} has {actual} fields, expected {expected}"
        )


class HeaderMustBeIdentifiersError(GridError):
    """A header field is not a bare alphabetic identifier."""

    def __init__(self, raw: str) -> None:
        self.raw = raw
        super().__init__(f"Only identifiers allowed in first row, got {raw!r}")


class DuplicateIdentifierError(GridError):
    """Two cells would share the same identifier."""

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(f"Duplicate identifier: {identifier}")


class IdentifierOutsideHeaderError(GridError):
    """A data-row cell is a bare identifier."""

    def __init__(self, raw: str, slot: str) -> None:
        self.raw = raw
        self.slot = slot
        super().__init__(
            f"Identifiers allowed only in first row: {raw!r} at {slot}"
        )


class CannotEvaluateIdentifierError(GridError):
    """Evaluation was requested directly on an identifier cell."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Cannot evaluate identifier: {name}")


class UnresolvedReferenceError(GridError):
    """A reference names no existing cell.

    Attributes:
        ref_name: The unresolved reference.
        referrer: Identifier of the cell whose formula holds the reference.
    """

    def __init__(self, ref_name: str, referrer: str | None = None) -> None:
        self.ref_name = ref_name
        self.referrer = referrer
        msg = f"Could not find ref to {ref_name}"
        if referrer is not None:
            msg += f" (referenced from {referrer})"
        super().__init__(msg)


class CyclicReferenceError(GridError):
    """A reference chain returns to a cell already being evaluated.

    Attributes:
        chain: Ordered identifiers, first and last entries equal.
    """

    def __init__(self, chain: list[str]) -> None:
        self.chain = chain
        super().__init__(f"Cyclic reference: {' -> '.join(chain)}")


class GridArithmeticError(GridError, ArithmeticError):
    """An arithmetic step yields a non-finite result."""

    def __init__(self, left: float, op: str, right: float) -> None:
        self.left = left
        self.op = op
        self.right = right
        super().__init__(f"Can't evaluate {left:g} {op} {right:g}")

