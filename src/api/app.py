"""Superficie HTTP (FastAPI).

Un único endpoint:

    GET /api/youtube?q=<texto>

- 200 `{"videoId": "..."}` si se resolvió
- 400 `{"error": "Query required"}` si falta `q` o está vacía
- 404 `{"error": "Video not found"}` si se agotaron los proveedores

El 404 no es un error del servidor: "no hay resultado" es un estado terminal
esperado con una federación de mirrors poco fiable.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.errors import InvalidRequestError
from core.services.entry import resolve_query
from core.services.resolution import ResolutionOrchestrator, build_orchestrator

logger = logging.getLogger(__name__)


def create_app(
    settings: AppSettings | None = None,
    *,
    orchestrator: ResolutionOrchestrator | None = None,
) -> FastAPI:
    """Crea la app. Si no se inyecta orquestador, se cablea en el lifespan
    con un `httpx.AsyncClient` compartido que se cierra al apagar."""

    settings = settings or AppSettings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if orchestrator is not None:
            app.state.orchestrator = orchestrator
            yield
            return
        async with build_async_client(settings) as client:
            app.state.orchestrator = build_orchestrator(settings=settings, client=client)
            logger.info(
                "resolver ready: %d providers, policy=%s",
                len(app.state.orchestrator.registry),
                app.state.orchestrator.policy,
            )
            yield

    app = FastAPI(title="tunelink", version="0.1.0", lifespan=lifespan)

    @app.get("/api/youtube")
    async def resolve_youtube(
        request: Request,
        q: str | None = Query(default=None, description="Texto de búsqueda (artista + título)."),
    ) -> JSONResponse:
        service: ResolutionOrchestrator = request.app.state.orchestrator
        try:
            result = await resolve_query(q, service)
        except InvalidRequestError as exc:
            return JSONResponse({"error": str(exc)}, status_code=400)

        if not result.found:
            return JSONResponse({"error": "Video not found"}, status_code=404)
        return JSONResponse({"videoId": result.video_id}, status_code=200)

    return app
