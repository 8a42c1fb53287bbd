"""CLI entry point for the TBT trace report."""

import typer
from pathlib import Path
from rich.console import Console
from rich.table import Table
from tbt_report.analyzer import DEFAULT_LONG_TASK_MS, aggregate_tasks
from tbt_report.report import merge_report, read_report, write_report
from tbt_report.trace import collect_trace_metadata, load_trace_events

app = typer.Typer(
    help="TBT Trace Report - Track Total Blocking Time tasks across trace runs",
    no_args_is_help=True
)
console = Console()


@app.callback()
def main():
    """TBT Trace Report - Track Total Blocking Time tasks across trace runs."""


def _check_trace_path(trace: Path) -> None:
    if not trace.exists():
        console.print(f"[red]Error:[/red] Input file not found: {trace}")
        raise typer.Exit(code=1)

    if not trace.is_file():
        console.print(f"[red]Error:[/red] Path is not a file: {trace}")
        raise typer.Exit(code=1)


def _print_trace_metadata(events: list) -> None:
    categories, task_types = collect_trace_metadata(events)

    category_table = Table(title="Unique Categories Found")
    category_table.add_column("Category")
    category_table.add_column("Occurrences", justify="right")
    for name in sorted(categories):
        category_table.add_row(name, str(categories[name]))

    task_table = Table(title="Unique Task Types Found")
    task_table.add_column("Task Type")
    task_table.add_column("Occurrences", justify="right")
    for name in sorted(task_types):
        task_table.add_row(name, str(task_types[name]))

    console.print(category_table)
    console.print(task_table)
    console.print(f"[blue]Total unique categories:[/blue] {len(categories)}")
    console.print(f"[blue]Total unique task types:[/blue] {len(task_types)}")


@app.command()
def analyze(
    input_path: Path = typer.Option(..., "--input", help="Path to Chrome trace JSON file"),
    output: Path = typer.Option(..., "--output", help="Tab-separated report file to update"),
    debug: bool = typer.Option(False, "--debug", help="List trace categories and task types"),
    long_task_ms: int = typer.Option(
        DEFAULT_LONG_TASK_MS, "--long-task-ms", help="Threshold for long tasks in milliseconds"
    ),
):
    """Analyze a trace and append its TBT tasks as a new run in the report."""
    _check_trace_path(input_path)

    console.print(f"[blue]Input file:[/blue] {input_path}")
    console.print(f"[blue]Output file:[/blue] {output}")
    console.print(f"[blue]Long task threshold:[/blue] {long_task_ms}ms")

    # Nothing is written until the merge completes
    try:
        console.print(f"[blue]Read {input_path.stat().st_size} bytes from trace file[/blue]")
        events = load_trace_events(input_path)
        console.print(f"[blue]Found {len(events)} events to process[/blue]")

        if debug:
            _print_trace_metadata(events)

        existing = read_report(output)
        if not existing.is_empty:
            console.print(f"[blue]Existing report has {existing.run_count} runs[/blue]")

        tasks = aggregate_tasks(events, long_task_ms=long_task_ms)
        console.print(f"[blue]Identified {len(tasks)} tasks[/blue]")

        updated = merge_report(existing, tasks)
        console.print(f"[blue]Report updated with {len(updated.rows) + 1} rows[/blue]")
    except Exception as e:
        console.print(f"[red]Error analyzing trace:[/red] {e}")
        raise typer.Exit(code=1)

    try:
        written = write_report(output, updated)
    except OSError as e:
        console.print(f"[red]Error writing report:[/red] {e}")
        raise typer.Exit(code=1)

    if written:
        console.print(f"[green]✓[/green] Wrote {len(updated.rows) + 1} rows to {output}")
        console.print(f"[blue]Report file size:[/blue] {output.stat().st_size} bytes")
    else:
        console.print("[yellow]No changes to write to report file[/yellow]")


@app.command()
def inspect(
    input_path: Path = typer.Option(..., "--input", help="Path to Chrome trace JSON file"),
):
    """List the categories and task types found in a trace."""
    _check_trace_path(input_path)

    try:
        events = load_trace_events(input_path)
    except Exception as e:
        console.print(f"[red]Error reading trace:[/red] {e}")
        raise typer.Exit(code=1)

    _print_trace_metadata(events)


if __name__ == "__main__":
    app()
