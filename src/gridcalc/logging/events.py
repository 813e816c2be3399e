"""Unified event schema and module-level emit helpers.

All timestamps use UTC ISO-8601 with ``Z`` suffix.  The ``emit()``
family of functions is safe to call from any context -- failures are
swallowed and printed to stderr.
"""

from __future__ import annotations

import sys
import time
import traceback
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from gridcalc.formulas import errors as _errors


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class EventLevel(str, Enum):
    info = "info"
    warning = "warning"
    error = "error"


class EventType(str, Enum):
    run_started = "run_started"
    run_completed = "run_completed"
    run_failed = "run_failed"
    parse_failed = "parse_failed"
    eval_failed = "eval_failed"


# ---------------------------------------------------------------------------
# Error codes
# ---------------------------------------------------------------------------

MALFORMED_EXPRESSION = "malformed_expression"
INVALID_NUMBER_LITERAL = "invalid_number_literal"
INVALID_CELL_VALUE = "invalid_cell_value"
RAGGED_GRID = "ragged_grid"
HEADER_MUST_BE_IDENTIFIERS = "header_must_be_identifiers"
DUPLICATE_IDENTIFIER = "duplicate_identifier"
IDENTIFIER_OUTSIDE_HEADER = "identifier_outside_header"
CANNOT_EVALUATE_IDENTIFIER = "cannot_evaluate_identifier"
UNRESOLVED_REFERENCE = "unresolved_reference"
CYCLIC_REFERENCE = "cyclic_reference"
ARITHMETIC_ERROR = "arithmetic_error"
IO_ERROR = "io_error"

_ERROR_CODES: dict[type, str] = {
    _errors.MalformedExpressionError: MALFORMED_EXPRESSION,
    _errors.InvalidNumberLiteralError: INVALID_NUMBER_LITERAL,
    _errors.InvalidCellValueError: INVALID_CELL_VALUE,
    _errors.RaggedGridError: RAGGED_GRID,
    _errors.HeaderMustBeIdentifiersError: HEADER_MUST_BE_IDENTIFIERS,
    _errors.DuplicateIdentifierError: DUPLICATE_IDENTIFIER,
    _errors.IdentifierOutsideHeaderError: IDENTIFIER_OUTSIDE_HEADER,
    _errors.CannotEvaluateIdentifierError: CANNOT_EVALUATE_IDENTIFIER,
    _errors.UnresolvedReferenceError: UNRESOLVED_REFERENCE,
    _errors.CyclicReferenceError: CYCLIC_REFERENCE,
    _errors.GridArithmeticError: ARITHMETIC_ERROR,
}


def error_code_for(exc: BaseException) -> str:
    """Map an exception to its stable error code."""
    for cls in type(exc).__mro__:
        if cls in _ERROR_CODES:
            return _ERROR_CODES[cls]
    if isinstance(exc, OSError):
        return IO_ERROR
    return type(exc).__name__


# ---------------------------------------------------------------------------
# Event model
# ---------------------------------------------------------------------------


def _utc_now() -> str:
    """Return current UTC timestamp in ISO-8601 with Z suffix."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


class GridEvent(BaseModel):
    """A single structured log event."""

    schema_version: int = 1
    ts: str = Field(default_factory=_utc_now)
    level: EventLevel
    event_type: EventType
    context: dict[str, Any] = Field(default_factory=dict)
    message: str = ""
    error_code: str | None = None


# ---------------------------------------------------------------------------
# Module-level sink reference
# ---------------------------------------------------------------------------

# Lazily initialised when ``set_log_dir`` is called.
_sink: Any = None  # EventSink | None


def set_log_dir(log_dir: Path, config: dict[str, Any] | None = None) -> None:
    """Configure the module-level event sink to write under *log_dir*.

    If it is never called, ``emit()`` silently discards events.  Reads
    ``logging_fsync`` and ``logging_tail_bytes`` from *config*.
    """
    global _sink
    from gridcalc.logging.sink import EventSink

    cfg = config or {}
    tail_bytes = cfg.get("logging_tail_bytes")
    _sink = EventSink(
        Path(log_dir),
        fsync=bool(cfg.get("logging_fsync", False)),
        tail_bytes=int(tail_bytes) if tail_bytes is not None else None,
    )


def _get_sink() -> Any:
    """Return the module-level sink, or None."""
    return _sink


# ---------------------------------------------------------------------------
# Rate-limited stderr warnings
# ---------------------------------------------------------------------------

_last_stderr_ts: float = 0.0
_STDERR_INTERVAL_SECS = 60.0


def _stderr_warning(msg: str) -> None:
    """Print a warning to stderr, rate-limited to one per 60 seconds."""
    global _last_stderr_ts
    now = time.monotonic()
    if now - _last_stderr_ts < _STDERR_INTERVAL_SECS:
        return
    _last_stderr_ts = now
    try:
        print(f"[gridcalc] {msg}", file=sys.stderr)
    except Exception:
        pass


# ---------------------------------------------------------------------------
# Safe emit helpers
# ---------------------------------------------------------------------------


def emit(event: GridEvent, *, run_id: str | None = None) -> None:
    """Write an event to the global log and optionally to a per-run log.

    **Never raises.**  On failure, prints a rate-limited warning to stderr.
    """
    try:
        sink = _get_sink()
        if sink is None:
            return
        sink.write(event, run_id=run_id)
    except Exception:
        _stderr_warning(f"logging failed: {traceback.format_exc()}")


def emit_info(
    event_type: EventType,
    message: str,
    context: dict[str, Any] | None = None,
    *,
    run_id: str | None = None,
) -> None:
    """Convenience: emit an info-level event."""
    emit(
        GridEvent(
            level=EventLevel.info,
            event_type=event_type,
            message=message,
            context=context or {},
        ),
        run_id=run_id,
    )


def emit_error(
    event_type: EventType,
    message: str,
    context: dict[str, Any] | None = None,
    *,
    error_code: str | None = None,
    run_id: str | None = None,
) -> None:
    """Convenience: emit an error-level event."""
    emit(
        GridEvent(
            level=EventLevel.error,
            event_type=event_type,
            message=message,
            context=context or {},
            error_code=error_code,
        ),
        run_id=run_id,
    )
