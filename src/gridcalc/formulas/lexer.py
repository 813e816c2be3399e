"""Lark-based tokenizer for grid formulas.

A formula is ``=`` followed by a flat infix sequence of numbers,
operators and cell references.  There is no grouping at the lexical
level; precedence is applied later by the reducer.

Lexical classes:
- Number run: starts with a digit, ``.`` or ``-`` and greedily takes
  further digits and dots.  A run that is exactly ``-`` is the minus
  operator, so ``-`` doubles as a sign marker (``=10-2-3`` lexes as
  ``10, -2, -3``).
- Operators ``+ * /`` (``-`` arrives through the number run).
- Reference: a letter followed by letters and digits, e.g. ``A1``.
- Whitespace and any other character are dropped.
"""

from __future__ import annotations

import math

from lark import Lark, LarkError
from lark import Token as LarkToken

from gridcalc.formulas.errors import InvalidNumberLiteralError, MalformedExpressionError
from gridcalc.formulas.tokens import Expression, Operator, Ref, Token, Value

# Terminal order inside the basic lexer is by max width, so the single
# character catch-all is only tried after every other class fails.
GRAMMAR = r"""
start: (NUMBER | OPERATOR | REF)*

NUMBER: /[0-9.\-][0-9.]*/
OPERATOR: "+" | "*" | "/"
REF: /[A-Za-z][A-Za-z0-9]*/

%import common.WS
%ignore WS
%ignore /./
"""

_lexer = Lark(GRAMMAR, parser="lalr", lexer="basic", start="start")


def tokenize(source: str) -> Expression:
    """Convert a formula source string into its token sequence.

    Args:
        source: The formula text; its first character must be ``=``.

    Returns:
        The ordered list of tokens following the ``=``.

    Raises:
        MalformedExpressionError: If *source* does not start with ``=``.
        InvalidNumberLiteralError: If a number run is not a valid float.
    """
    if not source.startswith("="):
        raise MalformedExpressionError(f"Invalid expression: {source}")
    try:
        raw_tokens = list(_lexer.lex(source[1:]))
    except LarkError as exc:
        raise MalformedExpressionError(f"Invalid expression: {source}") from exc
    return [_convert(tok) for tok in raw_tokens]


def _convert(tok: LarkToken) -> Token:
    text = str(tok)
    if tok.type == "REF":
        return Ref(name=text)
    if tok.type == "OPERATOR":
        return Operator(op=text)
    if text == "-":
        return Operator(op="-")
    # Offset by one for the stripped leading "="
    position = tok.column + 1 if tok.column is not None else None
    try:
        number = float(text)
    except ValueError:
        raise InvalidNumberLiteralError(text, position=position) from None
    if not math.isfinite(number):
        raise InvalidNumberLiteralError(text, position=position)
    return Value(value=number)
