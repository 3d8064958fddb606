"""Contratos de proveedores de búsqueda.

Por qué Protocol:
- Define un contrato estructural (duck typing) sin herencia rígida.
- Permite que el orquestador trate igual al resolvedor directo y a los mirrors,
  y que los tests sustituyan cualquier proveedor por un stub.
"""

from __future__ import annotations

from typing import Any, MutableSequence, Protocol, runtime_checkable

from core.domain.models import ProviderDescriptor, ResolutionAttempt


@runtime_checkable
class SearchProvider(Protocol):
    """Contrato mínimo para un proveedor.

    Reglas de diseño:
    - `search` es asíncrono porque hace I/O (HTTP).
    - Nunca lanza: cualquier fallo se devuelve como intento no exitoso.
    - `timeout` es el deadline de este intento; el proveedor cancela la request
      en vuelo cuando vence.
    """

    descriptor: ProviderDescriptor

    async def search(self, query: str, *, timeout: float) -> ResolutionAttempt:
        ...


class RandomSource(Protocol):
    """Fuente de aleatoriedad inyectable (`random.Random` la cumple)."""

    def shuffle(self, x: MutableSequence[Any]) -> None:
        ...
