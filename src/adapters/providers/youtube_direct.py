"""Proveedor primario: búsqueda directa en YouTube (dialecto `primary-direct`).

Implementación:
- `GET {base}/results?search_query=<query>` (HTML).
- La página embebe `var ytInitialData = {...};` en un <script>; lo localizamos
  con BeautifulSoup y decodificamos el JSON.
- El identificador es el primer `videoRenderer.videoId` en orden de documento
  (los primeros nodos suelen ser anuncios/estantes sin `videoRenderer`).

Nota:
- Es más rápido que los mirrors pero también más frágil (bloqueos por IP de
  datacenter, páginas de consentimiento). Por eso el orquestador nunca
  propaga su fallo.
"""

from __future__ import annotations

import json
from typing import Any

import httpx
from bs4 import BeautifulSoup

from adapters.providers.base import BaseProvider
from core.domain.errors import ProviderUnavailableError

_MARKER = "ytInitialData"


def find_initial_data(html: str) -> dict[str, Any] | None:
    """Devuelve el objeto `ytInitialData` embebido en la página, si existe."""

    if not html:
        return None
    soup = BeautifulSoup(html, "html.parser")
    decoder = json.JSONDecoder()
    for script in soup.find_all("script"):
        text = script.string or script.get_text() or ""
        pos = text.find(_MARKER)
        if pos < 0:
            continue
        start = text.find("{", pos)
        if start < 0:
            continue
        try:
            data, _ = decoder.raw_decode(text, start)
        except ValueError:
            continue
        if isinstance(data, dict):
            return data
    return None


def first_video_id(node: Any) -> str | None:
    """Primer `videoRenderer.videoId` (DFS, orden de inserción de claves)."""

    stack: list[Any] = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, dict):
            renderer = current.get("videoRenderer")
            if isinstance(renderer, dict) and isinstance(renderer.get("videoId"), str):
                return renderer["videoId"]
            stack.extend(reversed(list(current.values())))
        elif isinstance(current, list):
            stack.extend(reversed(current))
    return None


class YouTubeDirectProvider(BaseProvider):
    search_path = "/results"

    def search_params(self, query: str) -> dict[str, str]:
        return {"search_query": query}

    def extract(self, response: httpx.Response) -> str | None:
        data = find_initial_data(response.text or "")
        if data is None:
            raise ProviderUnavailableError(self.name, "ytInitialData not found in page")
        return first_video_id(data)
