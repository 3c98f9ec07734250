"""CLI for the employee directory demo app.

Commands::

    uv run directory-demo        # Run the Reflex demo app
    uv run directory-demo run    # Same as above
"""

import os
from pathlib import Path

import typer

app = typer.Typer(
    name="directory-demo",
    help="Login-gated employee directory demo.",
    invoke_without_command=True,
)


def _run_app() -> None:
    """Start the Reflex demo app."""
    app_dir = Path(__file__).resolve().parent.parent
    os.chdir(app_dir)

    from reflex.reflex import cli

    cli(["run"])


@app.callback(invoke_without_command=True)
def default(ctx: typer.Context) -> None:
    """Run the demo app (default when no subcommand is given)."""
    if ctx.invoked_subcommand is None:
        _run_app()


@app.command()
def run() -> None:
    """Run the Reflex demo app."""
    _run_app()


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
