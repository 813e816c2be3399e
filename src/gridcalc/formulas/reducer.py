"""Two-tier arithmetic reduction of a flat, fully-resolved token sequence."""

from __future__ import annotations

import math
from typing import Sequence

from gridcalc.formulas.errors import GridArithmeticError, MalformedExpressionError
from gridcalc.formulas.tokens import Operator, Ref, Token, Value


def _apply(left: float, op: str, right: float) -> float:
    if op == "*":
        result = left * right
    elif op == "/":
        if right == 0:
            raise GridArithmeticError(left, op, right)
        result = left / right
    elif op == "+":
        result = left + right
    else:
        result = left - right
    if not math.isfinite(result):
        raise GridArithmeticError(left, op, right)
    return result


def _collapse(work: list[Token], ops: frozenset[str]) -> None:
    """Collapse ``[left, op, right]`` windows for *ops*, leftmost first."""
    while True:
        i = next(
            (
                idx
                for idx, tok in enumerate(work)
                if isinstance(tok, Operator) and tok.op in ops
            ),
            None,
        )
        if i is None:
            return
        if i == 0 or i == len(work) - 1:
            raise MalformedExpressionError(
                f"Operator {work[i].op!r} is missing an operand"
            )
        left, right = work[i - 1], work[i + 1]
        if not isinstance(left, Value) or not isinstance(right, Value):
            raise MalformedExpressionError(
                f"Operator {work[i].op!r} is missing an operand"
            )
        work[i - 1 : i + 2] = [Value(value=_apply(left.value, work[i].op, right.value))]


def reduce_tokens(tokens: Sequence[Token]) -> float:
    """Reduce a sequence of Value/Operator tokens to a single number.

    ``*`` and ``/`` are applied left to right first, then ``+`` and ``-``.
    Whatever Values remain afterwards are summed, which is how sign-folded
    literals such as ``10, -2, -3`` combine.

    Args:
        tokens: Tokens with every reference already substituted.

    Returns:
        The computed value.

    Raises:
        MalformedExpressionError: On a dangling operator or leftover reference.
        GridArithmeticError: On division by zero or a non-finite result.
    """
    work = list(tokens)
    _collapse(work, frozenset("*/"))
    _collapse(work, frozenset("+-"))

    total = 0.0
    for tok in work:
        if isinstance(tok, Ref):
            raise MalformedExpressionError(f"Unresolved reference token: {tok.name}")
        if isinstance(tok, Operator):
            raise MalformedExpressionError(
                f"Error during execution: Invalid token {tok.op}"
            )
        total = _apply(total, "+", tok.value)
    return total
