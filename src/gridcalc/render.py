"""Console tables for the source grid and the evaluated grid.

Both tables use a fixed column width with trailing-space padding.
Colors come from ``click.style``; ``color=False`` renders plain text.
"""

from __future__ import annotations

from typing import Sequence

import click
import polars as pl

from gridcalc.formulas.tokens import (
    Cell,
    ExpressionContent,
    IdentifierContent,
    Operator,
    Ref,
    ValueContent,
    format_number,
)

DEFAULT_WIDTH = 18


def _style(text: str, color: bool, **styles) -> str:
    return click.style(text, **styles) if color else text


def _header_line(header: Sequence[IdentifierContent], width: int, color: bool) -> str:
    return "".join(
        _style(h.value.ljust(width), color, fg="blue", bold=True) for h in header
    )


def _source_cell(cell: Cell, width: int, color: bool) -> str:
    content = cell.content
    if isinstance(content, ValueContent):
        return format_number(content.value).ljust(width)
    if isinstance(content, IdentifierContent):
        return _style(content.value.ljust(width), color, fg="blue")
    if isinstance(content, ExpressionContent):
        parts = [_style("=", color, fg="yellow", bold=True)]
        plain_len = 1
        for tok in content.tokens:
            text = tok.display()
            plain_len += len(text)
            if isinstance(tok, Operator):
                parts.append(_style(text, color, fg="red", bold=True))
            elif isinstance(tok, Ref):
                parts.append(_style(text, color, fg="blue", bold=True))
            else:
                parts.append(_style(text, color, bold=True))
        # Padding counts the visible text, not the escape codes
        parts.append(" " * max(width - plain_len, 0))
        return "".join(parts)
    raise TypeError(f"Unknown cell content: {content!r}")


def render_source_table(
    cells: Sequence[Cell],
    header: Sequence[IdentifierContent],
    *,
    width: int = DEFAULT_WIDTH,
    color: bool = True,
) -> str:
    """Render the parsed grid, formulas shown token by token."""
    lines = [_header_line(header, width, color)]
    n = len(header)
    for i in range(0, len(cells), n):
        lines.append("".join(_source_cell(c, width, color) for c in cells[i : i + n]))
    return "\n".join(lines)


def render_result_table(
    results: Sequence[float | IdentifierContent],
    header: Sequence[IdentifierContent],
    *,
    width: int = DEFAULT_WIDTH,
    color: bool = True,
) -> str:
    """Render evaluated values under the same header."""
    lines = [_header_line(header, width, color)]
    n = len(header)
    for i in range(0, len(results), n):
        row = []
        for r in results[i : i + n]:
            text = r.value if isinstance(r, IdentifierContent) else format_number(r)
            row.append(text.ljust(width))
        lines.append("".join(row))
    return "\n".join(lines)


def results_frame(
    results: Sequence[float | IdentifierContent],
    header: Sequence[IdentifierContent],
) -> pl.DataFrame:
    """Arrange evaluated results as a DataFrame, one Float64 column per header name.

    Identifier positions become nulls.
    """
    names = [h.value for h in header]
    if not names:
        return pl.DataFrame()
    n = len(names)
    columns: dict[str, list[float | None]] = {name: [] for name in names}
    for i, r in enumerate(results):
        columns[names[i % n]].append(None if isinstance(r, IdentifierContent) else r)
    return pl.DataFrame(columns, schema={name: pl.Float64 for name in names})
