"""Errores del dominio.

- `InvalidRequestError`: el caller no dio query (o solo espacios). Se expone.
- `ProviderUnavailableError`: fallo de un proveedor concreto. Es interno: el
  cliente del proveedor lo convierte en un intento fallido y nunca sale de ahí.

"Exhausted" no es una excepción: es un `ResolutionResult` sin `video_id`.
"""

from __future__ import annotations


class InvalidRequestError(ValueError):
    """Query ausente o vacía."""


class ProviderUnavailableError(Exception):
    def __init__(self, provider: str, reason: str) -> None:
        super().__init__(f"{provider}: {reason}")
        self.provider = provider
        self.reason = reason
