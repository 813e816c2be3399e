"""Command-line interface for gridcalc."""

from __future__ import annotations

import json
import uuid
from pathlib import Path

import click

from gridcalc import __version__


@click.group()
@click.version_option(version=__version__, prog_name="gridcalc")
def main() -> None:
    """gridcalc -- evaluate a grid of numbers and formulas.

    The first row names the columns; ``=A1+B1`` refers to the first data
    row of columns A and B.
    """


# ---------------------------------------------------------------------------
# Run
# ---------------------------------------------------------------------------


@main.command()
@click.argument("path", type=click.Path(dir_okay=False))
@click.option("--config", "config_path", default=None, type=click.Path(exists=True, dir_okay=False), help="Config file (default: ./gridcalc.yaml).")
@click.option("--no-color", is_flag=True, help="Disable colored output.")
@click.option("--log-dir", default=None, type=click.Path(file_okay=False), help="Write structured events under this directory.")
@click.option("--output", "output_path", default=None, type=click.Path(dir_okay=False), help="Export results as .csv or .json.")
def run(
    path: str,
    config_path: str | None,
    no_color: bool,
    log_dir: str | None,
    output_path: str | None,
) -> None:
    """Parse and evaluate the grid in PATH."""
    from gridcalc.cell_graph import CellGraph
    from gridcalc.config import load_config
    from gridcalc.formulas.errors import GridError
    from gridcalc.grid import load_grid
    from gridcalc.logging import EventType, emit_error, emit_info, error_code_for, set_log_dir
    from gridcalc.render import render_result_table, render_source_table, results_frame

    try:
        config = load_config(Path(config_path) if config_path else None)
    except (OSError, ValueError) as e:
        raise click.ClickException(str(e))

    if log_dir:
        set_log_dir(Path(log_dir), config)
    run_id = uuid.uuid4().hex[:12]
    width = config["column_width"]
    color = bool(config["color"]) and not no_color

    export_format = None
    if output_path:
        export_format = Path(output_path).suffix.lower()
        if export_format not in (".csv", ".json"):
            raise click.ClickException(
                f"Unsupported output format: {export_format or output_path!r}. Use .csv or .json."
            )

    emit_info(EventType.run_started, f"Evaluating {path}", {"run_id": run_id, "path": path}, run_id=run_id)

    try:
        cells, header = load_grid(Path(path))
    except (GridError, OSError, UnicodeDecodeError) as e:
        emit_error(EventType.parse_failed, str(e), {"run_id": run_id, "path": path}, error_code=error_code_for(e), run_id=run_id)
        raise click.ClickException(str(e))

    click.echo(render_source_table(cells, header, width=width, color=color), color=color)

    try:
        results = CellGraph(cells).evaluate_all()
    except GridError as e:
        emit_error(EventType.eval_failed, str(e), {"run_id": run_id, "path": path}, error_code=error_code_for(e), run_id=run_id)
        raise click.ClickException(str(e))

    click.echo("-" * int(config["separator_width"]))
    click.echo(render_result_table(results, header, width=width, color=color), color=color)

    if output_path:
        frame = results_frame(results, header)
        out = Path(output_path)
        if export_format == ".json":
            text = json.dumps(frame.to_dicts(), indent=2) + "\n"
        else:
            text = frame.write_csv()
        try:
            out.write_text(text, encoding="utf-8")
        except OSError as e:
            emit_error(EventType.run_failed, str(e), {"run_id": run_id, "path": path}, error_code=error_code_for(e), run_id=run_id)
            raise click.ClickException(f"Could not write results to {out}: {e}")
        click.echo(f"Results written to {out}")

    emit_info(
        EventType.run_completed,
        f"Evaluated {len(cells)} cells",
        {"run_id": run_id, "path": path, "cells": len(cells), "columns": len(header)},
        run_id=run_id,
    )


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


@main.command()
@click.argument("formula")
def tokens(formula: str) -> None:
    """Show the tokens of FORMULA (e.g. "=A1+2*B1")."""
    from gridcalc.formulas import GridError, tokenize

    try:
        toks = tokenize(formula)
    except GridError as e:
        raise click.ClickException(str(e))

    for tok in toks:
        click.echo(f"{tok.type.upper():9s}{tok.display()}")


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@main.command("events")
@click.argument("directory", type=click.Path(exists=True, file_okay=False))
@click.option("--level", default=None, type=click.Choice(["info", "warning", "error"]), help="Filter by level.")
@click.option("--type", "event_type", default=None, help="Filter by event type.")
@click.option("--run-id", default=None, help="Filter by run ID.")
@click.option("--limit", default=100, type=int, help="Maximum events to show.")
def events_cmd(
    directory: str,
    level: str | None,
    event_type: str | None,
    run_id: str | None,
    limit: int,
) -> None:
    """Show the structured event log in DIRECTORY."""
    from gridcalc.logging.sink import EventSink

    sink = EventSink(Path(directory))
    events = sink.read_global(
        level=level,
        event_type=event_type,
        run_id=run_id,
        limit=limit,
    )

    if not events:
        click.echo("No events found.")
        return

    for evt in events:
        click.echo(_format_event(evt))


@main.command("run-log")
@click.argument("directory", type=click.Path(exists=True, file_okay=False))
@click.argument("run_id")
def run_log_cmd(directory: str, run_id: str) -> None:
    """Show the event log for a specific run."""
    from gridcalc.logging.sink import EventSink

    events = EventSink(Path(directory)).read_run_log(run_id)

    if not events:
        click.echo(f"No events found for run {run_id}.")
        return

    for evt in events:
        click.echo(_format_event(evt))


def _format_event(evt: dict) -> str:
    ts = evt.get("ts", "")
    lvl = evt.get("level", "").upper()
    etype = evt.get("event_type", "")
    msg = evt.get("message", "")
    line = f"[{ts}] {lvl:7s} {etype}: {msg}"
    run_id = evt.get("context", {}).get("run_id")
    if run_id:
        line += f"  run={run_id}"
    err = evt.get("error_code")
    if err:
        line += f"  ({err})"
    return line
