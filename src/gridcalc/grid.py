"""Cell classification and grid parsing.

A grid is comma-separated text.  The first non-empty row names the
columns; every later row holds values or formulas.  Data cells are
addressed as ``<column><row>`` with rows counted from 1, so ``A1`` is
the first data cell under column ``A``.
"""

from __future__ import annotations

import math
import re
from pathlib import Path
from typing import Iterator, NamedTuple

from gridcalc.formulas.errors import (
    DuplicateIdentifierError,
    HeaderMustBeIdentifiersError,
    IdentifierOutsideHeaderError,
    InvalidCellValueError,
    RaggedGridError,
)
from gridcalc.formulas.lexer import tokenize
from gridcalc.formulas.tokens import (
    Cell,
    CellContent,
    ExpressionContent,
    IdentifierContent,
    ValueContent,
)

_IDENTIFIER_RE = re.compile(r"^[A-Za-z]+$")


class ParsedGrid(NamedTuple):
    """Data cells in row-major order plus the header identifiers."""

    cells: list[Cell]
    header: list[IdentifierContent]

    def rows(self) -> Iterator[list[Cell]]:
        """Yield data cells one row at a time."""
        width = len(self.header)
        for i in range(0, len(self.cells), width):
            yield self.cells[i : i + width]


def classify(raw: str) -> CellContent:
    """Decide whether *raw* is an identifier, a formula, or a number.

    Checks run in that order, so a bare word is always an identifier,
    even in a data row; rejecting that case is up to the grid parser.

    Raises:
        InvalidCellValueError: If *raw* fits none of the three shapes.
        MalformedExpressionError, InvalidNumberLiteralError: From the tokenizer.
    """
    if _IDENTIFIER_RE.match(raw):
        return IdentifierContent(value=raw, src=raw)
    if raw.startswith("="):
        return ExpressionContent(tokens=tuple(tokenize(raw)), src=raw)
    # float() also takes digit-group underscores, which formulas never lex
    if "_" in raw:
        raise InvalidCellValueError(raw)
    try:
        number = float(raw)
    except ValueError:
        raise InvalidCellValueError(raw) from None
    if not math.isfinite(number):
        raise InvalidCellValueError(raw)
    return ValueContent(value=number, src=raw)


def _split_rows(source: str) -> list[tuple[int, list[str]]]:
    """Split *source* into (line number, trimmed non-empty fields) pairs."""
    rows: list[tuple[int, list[str]]] = []
    for lineno, line in enumerate(source.splitlines(), start=1):
        fields = [f.strip() for f in line.split(",") if f.strip()]
        if fields:
            rows.append((lineno, fields))
    return rows


def parse_grid(source: str) -> ParsedGrid:
    """Parse grid text into cells and header.

    Args:
        source: Raw grid text, rows separated by line breaks.

    Returns:
        A :class:`ParsedGrid`; empty input gives empty cells and header.

    Raises:
        RaggedGridError: If rows differ in field count.
        HeaderMustBeIdentifiersError: If a header field is not an identifier.
        DuplicateIdentifierError: If header names (or synthesized
            identifiers) repeat.
        IdentifierOutsideHeaderError: If a data cell is a bare word.
    """
    rows = _split_rows(source)
    if not rows:
        return ParsedGrid([], [])

    width = len(rows[0][1])
    for lineno, fields in rows:
        if len(fields) != width:
            raise RaggedGridError(width, len(fields), lineno)

    header: list[IdentifierContent] = []
    for raw in rows[0][1]:
        content = classify(raw)
        if not isinstance(content, IdentifierContent):
            raise HeaderMustBeIdentifiersError(raw)
        header.append(content)

    names = [h.value for h in header]
    if len(set(names)) != len(names):
        dup = next(n for n in names if names.count(n) > 1)
        raise DuplicateIdentifierError(dup)

    cells: list[Cell] = []
    seen: set[str] = set()
    for row_index, (_, fields) in enumerate(rows[1:], start=1):
        for name, raw in zip(names, fields):
            identifier = f"{name}{row_index}"
            content = classify(raw)
            if isinstance(content, IdentifierContent):
                raise IdentifierOutsideHeaderError(raw, identifier)
            if identifier in seen:
                raise DuplicateIdentifierError(identifier)
            seen.add(identifier)
            cells.append(Cell(content=content, identifier=identifier))

    return ParsedGrid(cells, header)


def load_grid(path: Path) -> ParsedGrid:
    """Read a UTF-8 grid file and parse it."""
    return parse_grid(Path(path).read_text(encoding="utf-8"))
