"""Server command."""

import os
from typing import Annotated, Any

import orjson
import typer
import uvicorn
from rich.console import Console
from rich.markup import escape

from studio_proxy.config.settings import CONFIG_OVERRIDES_ENV, get_settings
from studio_proxy.exceptions import ConfigurationError


console = Console()


def _server_overrides(**cli_args: Any) -> dict[str, Any]:
    """Extract non-None CLI arguments as server configuration overrides."""
    server = {key: value for key, value in cli_args.items() if value is not None}
    return {"server": server} if server else {}


def serve(
    host: Annotated[
        str | None, typer.Option("--host", help="Interface to bind")
    ] = None,
    port: Annotated[int | None, typer.Option("--port", "-p", help="Port")] = None,
    log_level: Annotated[
        str | None, typer.Option("--log-level", help="DEBUG, INFO, WARNING, ERROR")
    ] = None,
    reload: Annotated[
        bool | None, typer.Option("--reload/--no-reload", help="Auto-reload")
    ] = None,
) -> None:
    """Run the studio proxy HTTP server."""
    overrides = _server_overrides(
        host=host, port=port, log_level=log_level, reload=reload
    )
    if overrides:
        # Reloaded workers rebuild settings from the environment
        os.environ[CONFIG_OVERRIDES_ENV] = orjson.dumps(overrides).decode()

    try:
        settings = get_settings()
    except ConfigurationError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1) from e

    uvicorn.run(
        "studio_proxy.api.app:get_app",
        factory=True,
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.server.reload,
        log_level=settings.server.log_level.lower(),
    )
