"""Main CLI entry point for the studio proxy."""

from typing import Annotated

import typer
from rich.console import Console

from studio_proxy import __version__
from studio_proxy.cli.commands.credentials import check_credentials, list_credentials
from studio_proxy.cli.commands.serve import serve


console = Console()

app = typer.Typer(
    name="studio-proxy",
    help="GenAI content-studio proxy with API-key rotation",
    no_args_is_help=True,
)

credentials_app = typer.Typer(name="credentials", help="Inspect the API-key pool")
credentials_app.command(name="list")(list_credentials)
credentials_app.command(name="check")(check_credentials)

app.command(name="serve")(serve)
app.add_typer(credentials_app)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"studio-proxy {__version__}")
        raise typer.Exit()


@app.callback()
def app_main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """GenAI content-studio proxy."""


def main() -> None:
    """Console script entry point."""
    app()
