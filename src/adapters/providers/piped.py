"""Proveedor: Piped (dialecto `items-list`).

Implementación:
- `GET {base}/search?q=<query>&filter=videos`
- Respuesta: `{"items": [{"url": "/watch?v=<id>", ...}], ...}`
- El identificador es el token tras `v=` en `items[0].url`.
"""

from __future__ import annotations

import httpx

from adapters.providers.base import BaseProvider, extract_watch_token


class PipedProvider(BaseProvider):
    search_path = "/search"

    def search_params(self, query: str) -> dict[str, str]:
        return {"q": query, "filter": "videos"}

    def extract(self, response: httpx.Response) -> str | None:
        data = self._json(response)
        if not isinstance(data, dict):
            return None
        items = data.get("items")
        if not isinstance(items, list) or not items:
            return None
        first = items[0]
        if not isinstance(first, dict):
            return None
        return extract_watch_token(first.get("url"))
