"""Typer application for the flowrun command."""

import typer
from rich.console import Console

from flowrun.version import __version__

app = typer.Typer(
    name="flowrun",
    help="Run trigger/action workflow graphs from the command line.",
    no_args_is_help=True,
    invoke_without_command=True,
)
console = Console()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", "-v", is_eager=True, help="Show version"),
):
    """flowrun CLI."""
    if version:
        console.print(f"flowrun v{__version__}")
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


# ── Workflow commands ──────────────────────────────────────────────────────────
from flowrun.cli.commands import run, validate  # noqa: E402

app.command(name="run")(run.run_workflow)
app.command(name="validate", help="Check a workflow file without running it")(validate.validate_workflow)

# ── Introspection ──────────────────────────────────────────────────────────────
from flowrun.cli.commands import config, keygen, steps  # noqa: E402

app.command(name="steps", help="List registered step types and aliases")(steps.steps_list)
app.command(name="config", help="Show resolved configuration")(config.config_show)
app.command(name="keygen", help="Generate an integration encryption key")(keygen.keygen)


if __name__ == "__main__":
    app()
