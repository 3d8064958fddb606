"""Base común de los clientes de proveedor.

Cada subclase conoce exactamente un dialecto:
- qué path/params pedir (`search_path`, `search_params`)
- cómo extraer el identificador de la respuesta (`extract`)

La base se encarga de lo que es igual para todos: deadline por intento,
normalización de errores y medición de latencia. Nada de lo que ocurre aquí
sale como excepción: el orquestador solo ve `ResolutionAttempt`.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from typing import Any

import httpx

from adapters.http_client import describe_status
from core.domain.errors import ProviderUnavailableError
from core.domain.models import AttemptOutcome, ProviderDescriptor, ResolutionAttempt

logger = logging.getLogger(__name__)

_WATCH_TOKEN_RE = re.compile(r"(?:^|[?&/])v=([^&#/]+)")


def clean_video_id(value: Any) -> str | None:
    """Normaliza un identificador candidato (strip); vacío => None."""

    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def extract_watch_token(url: Any) -> str | None:
    """Extrae el token que sigue a `v=` (p.ej. `/watch?v=abc123XYZ&t=3`)."""

    if not isinstance(url, str):
        return None
    match = _WATCH_TOKEN_RE.search(url)
    if not match:
        return None
    return clean_video_id(match.group(1))


class BaseProvider:
    """Cliente stateless de un proveedor (un GET, un parseo)."""

    search_path: str = ""

    def __init__(self, descriptor: ProviderDescriptor, client: httpx.AsyncClient) -> None:
        self.descriptor = descriptor
        self._client = client

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def search_url(self) -> str:
        return f"{self.descriptor.base_url}{self.search_path}"

    def search_params(self, query: str) -> dict[str, str]:
        raise NotImplementedError

    def extract(self, response: httpx.Response) -> str | None:
        raise NotImplementedError

    async def search(self, query: str, *, timeout: float) -> ResolutionAttempt:
        started = time.perf_counter()
        try:
            # wait_for cancela la request en vuelo al vencer el deadline.
            raw = await asyncio.wait_for(self._fetch(query), timeout=timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return self._attempt(
                AttemptOutcome.TIMEOUT,
                started,
                detail=f"no response within {timeout:.1f}s",
            )
        except ProviderUnavailableError as exc:
            return self._attempt(AttemptOutcome.TRANSPORT_ERROR, started, detail=exc.reason)
        except httpx.HTTPError as exc:
            return self._attempt(
                AttemptOutcome.TRANSPORT_ERROR,
                started,
                detail=f"{exc.__class__.__name__}: {exc}",
            )

        video_id = clean_video_id(raw)
        if video_id is None:
            return self._attempt(AttemptOutcome.EMPTY, started, detail="no results")
        return self._attempt(AttemptOutcome.SUCCESS, started, video_id=video_id)

    async def lookup(self, query: str, *, timeout: float) -> str | None:
        """Vista `Some/None` de `search`."""

        attempt = await self.search(query, timeout=timeout)
        return attempt.video_id if attempt.succeeded else None

    async def _fetch(self, query: str) -> str | None:
        response = await self._client.get(
            self.search_url,
            params=self.search_params(query),
            headers=self.descriptor.headers or None,
        )
        if not response.is_success:
            raise ProviderUnavailableError(self.name, describe_status(response))
        return self.extract(response)

    def _json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderUnavailableError(self.name, f"malformed JSON: {exc}") from exc

    def _attempt(
        self,
        outcome: AttemptOutcome,
        started: float,
        *,
        video_id: str | None = None,
        detail: str | None = None,
    ) -> ResolutionAttempt:
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        logger.debug(
            "provider=%s outcome=%s elapsed_ms=%.0f detail=%s",
            self.name,
            outcome.value,
            elapsed_ms,
            detail,
        )
        return ResolutionAttempt(
            provider=self.name,
            outcome=outcome,
            video_id=video_id,
            elapsed_ms=elapsed_ms,
            detail=detail,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.descriptor.base_url!r})"
