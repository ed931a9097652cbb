"""flowrun steps — List registered step types."""

from rich import box
from rich.console import Console
from rich.table import Table

console = Console()


def steps_list():
    """List every registered step type and its legacy aliases.

    Example:
        flowrun steps
    """
    from flowrun.core.runtime import build_runtime

    registry = build_runtime().registry
    definitions = registry.list_steps()

    if not definitions:
        console.print("[yellow]No steps registered.[/yellow]")
        return

    aliases_by_target: dict[str, list[str]] = {}
    for alias, target in registry.list_aliases().items():
        aliases_by_target.setdefault(target, []).append(alias)

    table = Table(
        box=box.ROUNDED,
        header_style="bold dim",
        title=f"[bold]{len(definitions)} Registered Steps[/bold]",
    )
    table.add_column("Action Type", style="cyan", width=20)
    table.add_column("Description", width=42)
    table.add_column("Integration", width=12)
    table.add_column("Config Fields", style="dim", width=26)
    table.add_column("Aliases", style="dim")

    for definition in sorted(definitions, key=lambda d: d.name):
        table.add_row(
            definition.name,
            f"[dim]{definition.description}[/dim]",
            definition.integration.value if definition.integration else "-",
            ", ".join(definition.config_fields),
            ", ".join(sorted(aliases_by_target.get(definition.name, []))),
        )

    console.print()
    console.print(table)
    console.print()
    console.print("[dim]Add custom steps with the [cyan]@step[/cyan] decorator from flowrun.steps.[/dim]")
