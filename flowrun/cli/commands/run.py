"""flowrun run — Execute a workflow file from the command line."""

import asyncio
import json
import logging
import uuid
from typing import Any, Optional

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

console = Console()

_STATUS_COLOR = {"success": "green", "error": "red", "running": "yellow"}


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _parse_input(raw: Optional[str]) -> Optional[Any]:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        console.print(f"[red]--input is not valid JSON:[/red] {exc}")
        raise typer.Exit(2)


def _preview(value: Any, limit: int = 60) -> str:
    if value is None:
        return ""
    text = value if isinstance(value, str) else json.dumps(value, default=str)
    return text if len(text) <= limit else text[: limit - 1] + "…"


async def _execute(path: str, trigger_input: Optional[Any], execution_id: str, show_logs: bool) -> bool:
    from flowrun.config import load_workflow_file
    from flowrun.core.runtime import build_runtime

    workflow = load_workflow_file(path)
    graph = workflow.to_graph()
    if trigger_input is None:
        trigger_input = workflow.trigger_input

    runtime = build_runtime()
    with console.status(f"[blue]Running:[/blue] {workflow.name}"):
        result = await runtime.executor.execute(
            graph, trigger_input=trigger_input, execution_id=execution_id, workflow_id=workflow.name,
        )

    color = "green" if result.success else "red"
    summary = (
        f"[bold]Workflow:[/bold] {workflow.name}\n"
        f"[bold]Execution:[/bold] [dim]{execution_id}[/dim]\n"
        f"[bold]Status:[/bold] [{color}]{'SUCCESS' if result.success else 'ERROR'}[/{color}]  "
        f"[dim]{len(result.results)} of {len(graph.nodes)} node(s) ran[/dim]"
    )
    if result.error:
        summary += f"\n[bold]First error:[/bold] [red]{result.error}[/red]"
    console.print()
    console.print(Panel(summary, title="[bold blue]flowrun Execution Summary[/bold blue]", border_style="blue"))

    table = Table(box=box.SIMPLE, header_style="bold dim", padding=(0, 1))
    table.add_column("Node", style="cyan")
    table.add_column("Label")
    table.add_column("Result", width=9)
    table.add_column("Output / Error")
    labels = {n.id: n.label for n in graph.nodes}
    for node_id, node_result in result.results.items():
        status = "success" if node_result.success else "error"
        table.add_row(
            node_id,
            labels.get(node_id, ""),
            f"[{_STATUS_COLOR[status]}]{status}[/{_STATUS_COLOR[status]}]",
            f"[red]{node_result.error}[/red]" if node_result.error else f"[dim]{_preview(node_result.data)}[/dim]",
        )
    console.print(table)

    if show_logs:
        entries = await runtime.log_sink.get_logs(execution_id)
        log_table = Table(box=box.ROUNDED, header_style="bold dim", title="[bold]Execution Log[/bold]")
        log_table.add_column("Node", style="cyan")
        log_table.add_column("Type", style="dim")
        log_table.add_column("Status", width=9)
        log_table.add_column("Duration", justify="right", style="dim")
        log_table.add_column("Input", style="dim")
        for entry in entries:
            status = entry.status.value
            log_table.add_row(
                entry.node_name,
                entry.node_type,
                f"[{_STATUS_COLOR.get(status, 'white')}]{status}[/{_STATUS_COLOR.get(status, 'white')}]",
                f"{entry.duration_ms}ms" if entry.duration_ms is not None else "-",
                _preview(entry.input),
            )
        console.print(log_table)

    return result.success


def run_workflow(
    path: str = typer.Argument(..., help="Workflow file (.yaml, .yml or .json)"),
    input: Optional[str] = typer.Option(None, "--input", "-i", help="Trigger input as a JSON value"),
    execution_id: Optional[str] = typer.Option(None, "--execution-id", help="Execution id to log under"),
    show_logs: bool = typer.Option(False, "--logs", help="Print the redacted execution log"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override FLOWRUN_LOG_LEVEL"),
):
    """Execute a workflow file and print per-node results.

    Runs fully in-memory. Integration credentials are not persisted between
    runs, so integration-backed steps need their credentials supplied by a
    host application.

    Example:
        flowrun run examples/hello.yaml
        flowrun run order.yaml --input '{"orderId": 42}' --logs
    """
    from flowrun.config import config
    from flowrun.exceptions import FlowrunError

    _configure_logging(log_level or config.log_level)
    trigger_input = _parse_input(input)

    try:
        ok = asyncio.run(_execute(path, trigger_input, execution_id or str(uuid.uuid4()), show_logs))
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
        raise typer.Exit(1)
    except FlowrunError as exc:
        console.print(f"\n[red]Error:[/red] {exc}")
        raise typer.Exit(1)

    if not ok:
        raise typer.Exit(1)
