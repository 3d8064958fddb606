"""Clientes de proveedor (uno por dialecto).

Por qué un paquete:
- Agrupa módulos por familia (YouTube directo, Invidious, Piped).
- Cada clase implementa `core.interfaces.provider.SearchProvider`.
"""

from __future__ import annotations

import httpx

from adapters.providers.base import BaseProvider, clean_video_id, extract_watch_token
from adapters.providers.invidious import InvidiousProvider
from adapters.providers.piped import PipedProvider
from adapters.providers.youtube_direct import YouTubeDirectProvider
from core.domain.models import ProviderDescriptor, ResponseDialect

PROVIDER_CLASSES: dict[ResponseDialect, type[BaseProvider]] = {
	ResponseDialect.PRIMARY_DIRECT: YouTubeDirectProvider,
	ResponseDialect.SEARCH_API_V1: InvidiousProvider,
	ResponseDialect.ITEMS_LIST: PipedProvider,
}


def build_provider(descriptor: ProviderDescriptor, client: httpx.AsyncClient) -> BaseProvider:
	"""Instancia el cliente que habla el dialecto del descriptor."""

	return PROVIDER_CLASSES[descriptor.dialect](descriptor, client)


__all__ = [
	"BaseProvider",
	"InvidiousProvider",
	"PROVIDER_CLASSES",
	"PipedProvider",
	"YouTubeDirectProvider",
	"build_provider",
	"clean_video_id",
	"extract_watch_token",
]
