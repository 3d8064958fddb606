"""Registry de proveedores.

Conjunto inmutable de `ProviderDescriptor`, particionado por dialecto:
- una familia "primary-direct" (opcional)
- una o más familias de mirrors que se mezclan al barajar

El registry solo contiene configuración; no conoce httpx ni la política de
fallback. Es seguro para lectores concurrentes ilimitados.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from types import MappingProxyType
from typing import Mapping
from urllib.parse import urlsplit

from core.config import AppSettings
from core.domain.models import ProviderDescriptor, ResponseDialect
from core.interfaces.provider import RandomSource


def _descriptor_name(dialect: ResponseDialect, base_url: str) -> str:
    family = {
        ResponseDialect.PRIMARY_DIRECT: "youtube",
        ResponseDialect.SEARCH_API_V1: "invidious",
        ResponseDialect.ITEMS_LIST: "piped",
    }[dialect]
    host = urlsplit(base_url).netloc or base_url
    return f"{family}:{host}"


class ProviderRegistry:
    def __init__(self, descriptors: Iterable[ProviderDescriptor]) -> None:
        items = tuple(descriptors)
        seen: set[str] = set()
        for descriptor in items:
            if descriptor.name in seen:
                raise ValueError(f"duplicate provider name: {descriptor.name}")
            seen.add(descriptor.name)

        families: dict[ResponseDialect, tuple[ProviderDescriptor, ...]] = {}
        for dialect in ResponseDialect:
            family = tuple(d for d in items if d.dialect is dialect)
            if family:
                families[dialect] = family

        self._descriptors = items
        self._families = MappingProxyType(families)

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "ProviderRegistry":
        """Registry por defecto: YouTube directo + Invidious + Piped."""

        ua_headers = {"User-Agent": settings.user_agent}
        descriptors: list[ProviderDescriptor] = []

        if settings.primary_enabled:
            descriptors.append(
                ProviderDescriptor(
                    name=_descriptor_name(ResponseDialect.PRIMARY_DIRECT, settings.primary_base_url),
                    base_url=settings.primary_base_url,
                    dialect=ResponseDialect.PRIMARY_DIRECT,
                    headers=ua_headers,
                )
            )
        for url in settings.invidious_instances:
            descriptors.append(
                ProviderDescriptor(
                    name=_descriptor_name(ResponseDialect.SEARCH_API_V1, url),
                    base_url=url,
                    dialect=ResponseDialect.SEARCH_API_V1,
                )
            )
        for url in settings.piped_instances:
            # Algunas instancias Piped rechazan requests sin UA de navegador.
            descriptors.append(
                ProviderDescriptor(
                    name=_descriptor_name(ResponseDialect.ITEMS_LIST, url),
                    base_url=url,
                    dialect=ResponseDialect.ITEMS_LIST,
                    headers=ua_headers,
                )
            )
        return cls(descriptors)

    def __iter__(self) -> Iterator[ProviderDescriptor]:
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    @property
    def descriptors(self) -> tuple[ProviderDescriptor, ...]:
        return self._descriptors

    def families(self) -> Mapping[ResponseDialect, tuple[ProviderDescriptor, ...]]:
        return self._families

    def primary(self) -> ProviderDescriptor | None:
        family = self._families.get(ResponseDialect.PRIMARY_DIRECT)
        return family[0] if family else None

    def mirrors(self) -> tuple[ProviderDescriptor, ...]:
        return tuple(d for d in self._descriptors if d.is_mirror)

    def shuffled_mirrors(self, rng: RandomSource) -> list[ProviderDescriptor]:
        """Copia barajada (uniforme) del pool de mirrors, familias mezcladas."""

        pool = list(self.mirrors())
        rng.shuffle(pool)
        return pool

    def get(self, name: str) -> ProviderDescriptor:
        for descriptor in self._descriptors:
            if descriptor.name == name:
                return descriptor
        raise KeyError(name)
