"""Token and cell-content types.

Both are closed sum types expressed as Pydantic models sharing a literal
``type`` discriminator, so consumers dispatch with ``isinstance``.
"""

from __future__ import annotations

import math
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


OperatorSymbol = Literal["+", "-", "*", "/"]


def format_number(value: float) -> str:
    """Format a float cleanly: integral values without a trailing ``.0``."""
    if not math.isfinite(value):
        return str(value)
    if value == int(value):
        return str(int(value))
    return f"{value:.10g}"


# ────────────────────────────────────────────────────────────────
# Tokens
# ────────────────────────────────────────────────────────────────


class Operator(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["operator"] = "operator"
    op: OperatorSymbol

    def display(self) -> str:
        return self.op


class Value(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["value"] = "value"
    value: float

    def display(self) -> str:
        return format_number(self.value)


class Ref(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["ref"] = "ref"
    name: str

    def display(self) -> str:
        return self.name


Token = Annotated[Union[Operator, Value, Ref], Field(discriminator="type")]
Expression = list[Token]


# ────────────────────────────────────────────────────────────────
# Cell content
# ────────────────────────────────────────────────────────────────


class ValueContent(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["value"] = "value"
    value: float
    src: str


class IdentifierContent(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["identifier"] = "identifier"
    value: str
    src: str


class ExpressionContent(BaseModel):
    """A formula; ``src`` always begins with ``=``."""

    model_config = ConfigDict(frozen=True)

    type: Literal["expression"] = "expression"
    tokens: tuple[Token, ...]
    src: str


CellContent = Annotated[
    Union[ValueContent, IdentifierContent, ExpressionContent],
    Field(discriminator="type"),
]


class Cell(BaseModel):
    """One addressable grid entry."""

    model_config = ConfigDict(frozen=True)

    content: CellContent
    identifier: str
