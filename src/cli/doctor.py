"""Doctor command: diagnóstico de proveedores y configuración.

A diferencia de `resolve`, prueba *todos* los proveedores (uno tras otro) para
ver qué mirrors siguen vivos. No aplica la política de fallback.
"""

from __future__ import annotations

import asyncio

import httpx
import typer
from rich.console import Console
from rich.table import Table

from adapters.http_client import build_async_client
from adapters.providers import build_provider
from core.config import AppSettings
from core.domain.models import AttemptOutcome, ResolutionAttempt
from core.log import configure_logging
from core.services.registry import ProviderRegistry

app = typer.Typer(no_args_is_help=True, help="Provider diagnostics and configuration checks.")

_console = Console()

DEFAULT_PROBE_QUERY = "Daft Punk One More Time official audio"


async def probe_providers(
    *,
    settings: AppSettings,
    registry: ProviderRegistry,
    query: str,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[ResolutionAttempt]:
    attempts: list[ResolutionAttempt] = []
    async with build_async_client(settings, transport=transport) as client:
        for descriptor in registry:
            provider = build_provider(descriptor, client)
            timeout = descriptor.timeout_seconds or settings.per_attempt_timeout_seconds
            attempts.append(await provider.search(query, timeout=timeout))
    return attempts


@app.command()
def run(
    query: str = typer.Option(DEFAULT_PROBE_QUERY, "--query", "-q", help="Query de prueba."),
) -> None:
    """Prueba cada proveedor configurado y muestra el estado."""

    settings = AppSettings()
    configure_logging(settings.log_level)
    registry = ProviderRegistry.from_settings(settings)

    table = Table(title="tunelink Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    table.add_row("Primary", "ON" if registry.primary() else "OFF", settings.primary_base_url)
    table.add_row("Mirrors", str(len(registry.mirrors())), f"try {settings.mirror_try_count} per call")
    table.add_row("Timeout", "OK", f"{settings.per_attempt_timeout_seconds}s per attempt")

    attempts = asyncio.run(probe_providers(settings=settings, registry=registry, query=query))
    healthy = 0
    for attempt in attempts:
        ok = attempt.outcome is AttemptOutcome.SUCCESS
        healthy += int(ok)
        detail = attempt.video_id if ok else (attempt.detail or attempt.outcome.value)
        table.add_row(
            attempt.provider,
            "OK" if ok else "FAIL",
            f"{detail} ({attempt.elapsed_ms:.0f} ms)",
        )

    _console.print(table)

    if healthy == 0:
        _console.print("\n[red]No provider answered.[/red] Check network access or update the instance lists.")
        raise typer.Exit(code=1)
    if healthy < settings.mirror_try_count:
        _console.print(
            "\n[yellow]Note:[/yellow] fewer healthy providers than `mirror_try_count`; "
            "consider refreshing TUNELINK_INVIDIOUS_INSTANCES / TUNELINK_PIPED_INSTANCES."
        )
