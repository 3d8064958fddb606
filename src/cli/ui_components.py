"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en `resolve`, `providers` y `doctor`.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import AttemptOutcome, ResolutionResult
from core.services.registry import ProviderRegistry

_OUTCOME_STYLES = {
    AttemptOutcome.SUCCESS: "green",
    AttemptOutcome.EMPTY: "yellow",
    AttemptOutcome.TIMEOUT: "magenta",
    AttemptOutcome.TRANSPORT_ERROR: "red",
}


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida."""

    title = Text("tunelink", style="bold cyan")
    subtitle = Text("query -> videoId • primario + mirrors", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_attempts_table(result: ResolutionResult) -> Table:
    table = Table(title=f"Attempts for {result.query!r}")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Provider", style="cyan", no_wrap=True)
    table.add_column("Outcome")
    table.add_column("Video ID", style="white")
    table.add_column("ms", justify="right", style="dim")
    table.add_column("Detail", style="dim")
    for index, attempt in enumerate(result.attempts, start=1):
        style = _OUTCOME_STYLES.get(attempt.outcome, "white")
        table.add_row(
            str(index),
            attempt.provider,
            Text(attempt.outcome.value, style=style),
            attempt.video_id or "",
            f"{attempt.elapsed_ms:.0f}",
            attempt.detail or "",
        )
    return table


def build_providers_table(registry: ProviderRegistry) -> Table:
    table = Table(title="Providers")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Dialect", style="white")
    table.add_column("Role", style="green")
    table.add_column("Base URL", style="magenta")
    for descriptor in registry:
        role = "mirror" if descriptor.is_mirror else "primary"
        table.add_row(descriptor.name, descriptor.dialect.value, role, descriptor.base_url)
    return table
