"""CLI commands for inspecting and checking the API-key pool."""

import asyncio
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from studio_proxy.backend.gemini import GeminiClient, extract_text
from studio_proxy.config.credentials import CREDENTIAL_SLOTS
from studio_proxy.config.settings import Settings, get_settings
from studio_proxy.exceptions import (
    ConfigurationError,
    EmptyBackendResponseError,
    StudioProxyError,
)
from studio_proxy.rotation.pool import mask_credential
from studio_proxy.rotation.rotator import CredentialRotator
from studio_proxy.rotation.startup import create_credential_rotator


console = Console()


def _load_settings() -> Settings:
    try:
        return get_settings()
    except ConfigurationError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1) from e


def _require_credentials(rotator: CredentialRotator) -> None:
    if not rotator.pool:
        console.print("[red]No API key configured.[/red]")
        console.print(f"Set at least one of {', '.join(CREDENTIAL_SLOTS)}.")
        raise typer.Exit(1)


def list_credentials() -> None:
    """Show configured credential slots (masked)."""
    settings = _load_settings()

    table = Table(title="API Keys")
    table.add_column("Slot", style="cyan")
    table.add_column("Key")
    table.add_column("Status")

    for slot, value in zip(
        CREDENTIAL_SLOTS, settings.credentials.candidates(), strict=True
    ):
        if value and value.strip():
            table.add_row(slot, mask_credential(value), "[green]Configured[/green]")
        else:
            table.add_row(slot, "-", "[yellow]Empty[/yellow]")

    console.print(table)

    rotator = create_credential_rotator(settings)
    _require_credentials(rotator)
    console.print(f"[bold]{len(rotator.pool)}[/bold] key(s) in rotation order.")


async def _check(settings: Settings, rotator: CredentialRotator, prompt: str) -> str:
    client = GeminiClient(
        base_url=settings.backend.base_url,
        api_version=settings.backend.api_version,
        timeout=settings.backend.http_timeout_seconds,
    )

    async def call(api_key: str) -> str:
        response = await client.generate_content(
            api_key,
            settings.backend.chat_model,
            [{"role": "user", "parts": [{"text": prompt}]}],
        )
        text = extract_text(response)
        if not text:
            raise EmptyBackendResponseError("text")
        return text

    try:
        return await rotator.execute(
            call, timeout=settings.rotation.request_timeout_seconds
        )
    finally:
        await client.aclose()


def check_credentials(
    prompt: Annotated[
        str, typer.Option("--prompt", help="Prompt sent to the chat model")
    ] = "Reply with the single word: ok",
) -> None:
    """Send one small request through the rotator to verify the keys."""
    settings = _load_settings()
    rotator = create_credential_rotator(settings)
    _require_credentials(rotator)

    try:
        text = asyncio.run(_check(settings, rotator, prompt))
    except StudioProxyError as e:
        console.print(f"[red]Check failed:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    current = rotator.current_credential
    console.print(
        f"[green]OK[/green] via key {mask_credential(current) if current else '-'}: "
        f"{escape(text.strip()[:200])}"
    )
