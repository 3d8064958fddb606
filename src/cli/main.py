"""CLI principal (Typer).

Comandos:
- `resolve`: query (o `--artist/--title`) -> videoId, con traza opcional.
- `providers`: lista el registry configurado.
- `serve`: levanta la API HTTP con uvicorn.
- `doctor run`: diagnóstico de cada proveedor.

La CLI es un consumidor fino: toda la política vive en `core.services`.
"""

from __future__ import annotations

import asyncio
import json
from typing import Optional

import typer
import uvicorn
from rich.console import Console

from adapters.http_client import build_async_client
from cli.doctor import app as doctor_app
from cli.ui_components import build_attempts_table, build_providers_table, print_banner
from core.config import AppSettings
from core.domain.errors import InvalidRequestError
from core.domain.models import ResolutionResult
from core.log import configure_logging
from core.services.entry import build_track_query, resolve_query
from core.services.registry import ProviderRegistry
from core.services.resolution import build_orchestrator

app = typer.Typer(no_args_is_help=True, help="Resolve track queries to playable YouTube video ids.")
app.add_typer(doctor_app, name="doctor")

_console = Console()


async def _resolve(settings: AppSettings, raw: str | None) -> ResolutionResult:
    async with build_async_client(settings) as client:
        orchestrator = build_orchestrator(settings=settings, client=client)
        return await resolve_query(raw, orchestrator)


def _raw_query(query: str | None, artist: str | None, title: str | None) -> str | None:
    if artist is None and title is None:
        return query
    if query:
        raise typer.BadParameter("Use either QUERY or --artist/--title, not both.")
    if not artist or not title:
        raise typer.BadParameter("--artist and --title must be given together.")
    return build_track_query(artist, title)


@app.command()
def resolve(
    query: Optional[str] = typer.Argument(None, help="Texto libre, p.ej. 'Daft Punk One More Time'."),
    artist: Optional[str] = typer.Option(None, "--artist", "-a", help="Artista (compone la query)."),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="Título del track."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Muestra cada intento."),
    json_output: bool = typer.Option(False, "--json", help="Salida JSON (como la API)."),
) -> None:
    """Resuelve una query a un videoId (exit 1 si no hay resultado)."""

    settings = AppSettings()
    configure_logging("DEBUG" if verbose else settings.log_level)

    raw = _raw_query(query, artist, title)
    try:
        result = asyncio.run(_resolve(settings, raw))
    except InvalidRequestError as exc:
        raise typer.BadParameter(str(exc), param_hint="QUERY") from exc

    if json_output:
        payload = {"videoId": result.video_id} if result.found else {"error": "Video not found"}
        typer.echo(json.dumps(payload))
    else:
        if verbose:
            _console.print(build_attempts_table(result))
        if result.found:
            _console.print(f"[green]{result.video_id}[/green] [dim](via {result.provider})[/dim]")
        else:
            _console.print("[yellow]Video not found[/yellow]")

    if not result.found:
        raise typer.Exit(code=1)


@app.command()
def providers() -> None:
    """Lista los proveedores configurados (primario + mirrors)."""

    settings = AppSettings()
    registry = ProviderRegistry.from_settings(settings)
    print_banner(_console)
    _console.print(build_providers_table(registry))
    _console.print(
        f"[dim]mirror_try_count={settings.mirror_try_count} "
        f"per_attempt_timeout={settings.per_attempt_timeout_seconds}s[/dim]"
    )


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Host (por defecto TUNELINK_API_HOST)."),
    port: Optional[int] = typer.Option(None, help="Puerto (por defecto TUNELINK_API_PORT)."),
) -> None:
    """Levanta `GET /api/youtube` con uvicorn."""

    settings = AppSettings()
    configure_logging(settings.log_level, rich_output=False)
    uvicorn.run(
        "api.app:create_app",
        factory=True,
        host=host or settings.api_host,
        port=port or settings.api_port,
        log_config=None,
    )


def run() -> None:
    app()


if __name__ == "__main__":
    run()
