"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación estricta y documentación autocontenida (Field) sin acoplar
  el Core a librerías de I/O.
- Los descriptores de proveedores son inmutables (`frozen=True`): se definen al
  arrancar el proceso y se comparten entre llamadas concurrentes sin locks.

Nota:
- Estos modelos describen *qué* es la información, no *cómo* se obtiene.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict


class ResponseDialect(str, Enum):
    """Forma de la respuesta JSON/HTML de una familia de proveedores."""

    PRIMARY_DIRECT = "primary-direct"
    SEARCH_API_V1 = "search-api-v1"
    ITEMS_LIST = "items-list"


class AttemptOutcome(str, Enum):
    SUCCESS = "success"
    EMPTY = "empty"
    TIMEOUT = "timeout"
    TRANSPORT_ERROR = "transport-error"


class ProviderDescriptor(BaseModel):
    """Un endpoint upstream configurado (directo o mirror).

    Por qué existe:
    - Separa la *configuración* de un proveedor (URL, dialecto, headers) del
      cliente que sabe hablar ese dialecto.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(
        ...,
        min_length=1,
        max_length=128,
        description="Identificador único dentro del registry (p.ej. 'invidious:yewtu.be').",
    )
    base_url: str = Field(
        ...,
        min_length=8,
        description="Base URL del proveedor, sin barra final.",
    )
    dialect: ResponseDialect = Field(
        ...,
        description="Dialecto de respuesta que gobierna la extracción del identificador.",
    )
    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Headers estáticos requeridos por el proveedor (p.ej. User-Agent).",
    )
    timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Deadline propio por intento; si es None se usa el de la política.",
    )

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip("/")

    @property
    def is_mirror(self) -> bool:
        return self.dialect is not ResponseDialect.PRIMARY_DIRECT


class ResolutionAttempt(BaseModel):
    """Resultado efímero de un intento contra un proveedor."""

    provider: str = Field(..., min_length=1)
    outcome: AttemptOutcome
    video_id: str | None = Field(
        default=None,
        description="Identificador extraído (solo si outcome == success).",
    )
    elapsed_ms: float = Field(default=0.0, ge=0)
    detail: str | None = Field(
        default=None,
        description="Motivo del fallo (status code, error de parseo, etc.).",
    )

    @property
    def succeeded(self) -> bool:
        return self.outcome is AttemptOutcome.SUCCESS and bool(self.video_id)


class ResolutionResult(BaseModel):
    """Salida del orquestador: identificador encontrado o "not found".

    `attempts` es traza diagnóstica (logs/CLI); la API solo expone `video_id`.
    """

    query: str
    video_id: str | None = None
    provider: str | None = None
    attempts: list[ResolutionAttempt] = Field(default_factory=list)

    @property
    def found(self) -> bool:
        return bool(self.video_id)
