"""Proveedor: Invidious (dialecto `search-api-v1`).

Implementación:
- `GET {base}/api/v1/search?q=<query>&type=video`
- Respuesta: array JSON; el identificador es `data[0].videoId`.
"""

from __future__ import annotations

import httpx

from adapters.providers.base import BaseProvider


class InvidiousProvider(BaseProvider):
    search_path = "/api/v1/search"

    def search_params(self, query: str) -> dict[str, str]:
        return {"q": query, "type": "video"}

    def extract(self, response: httpx.Response) -> str | None:
        data = self._json(response)
        if not isinstance(data, list) or not data:
            return None
        first = data[0]
        if not isinstance(first, dict):
            return None
        return first.get("videoId")
