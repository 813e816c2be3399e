"""Formula tokenizing and arithmetic reduction.

Public API::

    from gridcalc.formulas import tokenize, reduce_tokens
"""

from gridcalc.formulas.errors import (
    CannotEvaluateIdentifierError,
    CyclicReferenceError,
    DuplicateIdentifierError,
    GridArithmeticError,
    GridError,
    HeaderMustBeIdentifiersError,
    IdentifierOutsideHeaderError,
    InvalidCellValueError,
    InvalidNumberLiteralError,
    MalformedExpressionError,
    RaggedGridError,
    UnresolvedReferenceError,
)
from gridcalc.formulas.lexer import tokenize
from gridcalc.formulas.reducer import reduce_tokens
from gridcalc.formulas.tokens import (
    Cell,
    CellContent,
    Expression,
    ExpressionContent,
    IdentifierContent,
    Operator,
    Ref,
    Token,
    Value,
    ValueContent,
    format_number,
)

__all__ = [
    "CannotEvaluateIdentifierError",
    "Cell",
    "CellContent",
    "CyclicReferenceError",
    "DuplicateIdentifierError",
    "Expression",
    "ExpressionContent",
    "GridArithmeticError",
    "GridError",
    "HeaderMustBeIdentifiersError",
    "IdentifierContent",
    "IdentifierOutsideHeaderError",
    "InvalidCellValueError",
    "InvalidNumberLiteralError",
    "MalformedExpressionError",
    "Operator",
    "RaggedGridError",
    "Ref",
    "Token",
    "UnresolvedReferenceError",
    "Value",
    "ValueContent",
    "format_number",
    "reduce_tokens",
    "tokenize",
]
