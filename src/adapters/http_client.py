"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza timeouts, headers y redirects para todos los proveedores.
- Un único `AsyncClient` por proceso (API) o por comando (CLI) comparte el pool
  de conexiones; los proveedores no abren clientes propios.
- Facilita testeo: se puede inyectar un `httpx.MockTransport`.
"""

from __future__ import annotations

import httpx

from core.config import AppSettings


def build_async_client(
    settings: AppSettings | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` con defaults seguros.

    El timeout de transporte es solo un techo: el deadline real de cada intento
    lo impone el proveedor con `asyncio.wait_for`.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json, text/html;q=0.9, */*;q=0.8",
        "Accept-Language": "en-US,en;q=0.8",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )


def describe_status(response: httpx.Response) -> str:
    """Texto corto para logs/diagnóstico (`HTTP 503 Service Unavailable`)."""

    phrase = response.reason_phrase or ""
    return f"HTTP {response.status_code} {phrase}".strip()
