"""Punto de entrada de la resolución (independiente de HTTP/CLI).

Valida la query cruda y delega en el orquestador. Tanto la API como la CLI
son consumidores finos de `resolve_query`: la política de fallback vive en un
único sitio.
"""

from __future__ import annotations

from core.domain.errors import InvalidRequestError
from core.domain.models import ResolutionResult
from core.services.resolution import ResolutionOrchestrator

DEFAULT_QUERY_SUFFIX = "official audio"


def require_query(raw: str | None) -> str:
    """Devuelve la query tal cual o lanza `InvalidRequestError` si está vacía.

    El strip solo decide si hay texto; a los proveedores llega sin tocar.
    """

    if raw is None or not raw.strip():
        raise InvalidRequestError("Query required")
    return raw


def build_track_query(artist: str, title: str, *, suffix: str = DEFAULT_QUERY_SUFFIX) -> str:
    """Compone la query de un track: `"<artist> <title> official audio"`."""

    parts = [artist.strip(), title.strip(), suffix.strip()]
    return " ".join(part for part in parts if part)


async def resolve_query(raw: str | None, orchestrator: ResolutionOrchestrator) -> ResolutionResult:
    query = require_query(raw)
    return await orchestrator.resolve(query)
