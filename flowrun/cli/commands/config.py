"""flowrun config — Show resolved flowrun configuration."""

from rich import box
from rich.console import Console
from rich.table import Table

console = Console()

_SENSITIVE = {"integration_encryption_key"}


def _mask(val: str) -> str:
    s = str(val)
    if len(s) <= 8:
        return "***"
    return s[:4] + "…" + "***"


def config_show():
    """Show the resolved configuration.

    Reads from environment variables and .env file. The encryption key
    is masked.

    Example:
        flowrun config
    """
    from flowrun.config import FlowrunConfig
    cfg = FlowrunConfig()

    table = Table(
        box=box.ROUNDED,
        header_style="bold dim",
        title="[bold]flowrun Configuration[/bold]",
    )
    table.add_column("Key", style="cyan", width=28)
    table.add_column("Value", width=40)
    table.add_column("Env Var", style="dim", width=38)

    for attr in FlowrunConfig.model_fields:
        val = getattr(cfg, attr)
        if val in (None, ""):
            display = "[dim](not set)[/dim]"
        elif attr in _SENSITIVE:
            display = _mask(val)
        else:
            display = str(val)
        table.add_row(attr, display, f"FLOWRUN_{attr.upper()}")

    console.print()
    console.print(table)
    console.print()
    console.print("[dim]Source: environment variables + .env file (prefix: FLOWRUN_)[/dim]")
