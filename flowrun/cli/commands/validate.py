"""flowrun validate — Structural checks on a workflow file."""

import typer
from rich.console import Console

console = Console()


def validate_workflow(
    path: str = typer.Argument(..., help="Workflow file (.yaml, .yml or .json)"),
    strict: bool = typer.Option(False, "--strict", help="Treat warnings as errors"),
):
    """Validate a workflow file without running it.

    Exit code 1 when the file cannot be loaded or has hard errors
    (or any warning, with --strict).

    Example:
        flowrun validate order.yaml
    """
    from flowrun.config import config, load_workflow_graph
    from flowrun.exceptions import WorkflowFileError
    from flowrun.core.runtime import build_runtime
    from flowrun.workflows.validator import WorkflowValidator

    try:
        graph = load_workflow_graph(path)
    except WorkflowFileError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1)

    issues = WorkflowValidator().validate(
        graph, registry=build_runtime().registry, max_nodes=config.max_workflow_nodes,
    )
    warnings = [i for i in issues if i.startswith("WARNING:")]
    errors = [i for i in issues if not i.startswith("WARNING:")]

    for err in errors:
        console.print(f"[bold red]✗[/bold red] {err}")
    for warn in warnings:
        console.print(f"[yellow]⚠[/yellow] {warn.removeprefix('WARNING:').strip()}")

    if errors or (strict and warnings):
        console.print(f"\n[red]{path}: {len(errors)} error(s), {len(warnings)} warning(s)[/red]")
        raise typer.Exit(1)

    console.print(
        f"[bold green]✓[/bold green] {path}: {len(graph.nodes)} node(s), {len(graph.edges)} edge(s)"
        + (f", [yellow]{len(warnings)} warning(s)[/yellow]" if warnings else "")
    )
