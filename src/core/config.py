"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI ni la API.
- Permite que adaptadores (HTTP) y servicios (resolución) lean config de forma consistente.
- Las listas de instancias y los timeouts son configuración estática de arranque:
  cambian con el tiempo (mirrors que mueren) sin tocar código.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_INVIDIOUS_INSTANCES: tuple[str, ...] = (
    "https://inv.tux.pizza",
    "https://yt.artemislena.eu",
    "https://invidious.projectsegfau.lt",
    "https://vid.puffyan.us",
    "https://invidious.slipfox.xyz",
    "https://yewtu.be",
)

DEFAULT_PIPED_INSTANCES: tuple[str, ...] = (
    "https://pipedapi.kavin.rocks",
    "https://pipedapi.adminforge.de",
    "https://api.piped.projectsegfau.lt",
)


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "tunelink"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "tunelink"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "tunelink"
    return Path.home() / ".config" / "tunelink"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/API/adapters.

    Las listas se pueden pasar como JSON (`TUNELINK_PIPED_INSTANCES='["https://..."]'`).
    """

    model_config = SettingsConfigDict(
        env_prefix="TUNELINK_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    http_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout de transporte del cliente HTTP compartido (segundos).",
    )
    user_agent: str = Field(
        default=(
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
        ),
        min_length=1,
        description="User-Agent enviado a proveedores que lo exigen.",
    )

    primary_enabled: bool = Field(
        default=True,
        description="Intentar primero la búsqueda directa (sin proxy).",
    )
    primary_base_url: str = Field(
        default="https://www.youtube.com",
        min_length=8,
        description="Base URL del resolvedor directo.",
    )
    invidious_instances: list[str] = Field(
        default_factory=lambda: list(DEFAULT_INVIDIOUS_INSTANCES),
        description="Mirrors con dialecto `search-api-v1`.",
    )
    piped_instances: list[str] = Field(
        default_factory=lambda: list(DEFAULT_PIPED_INSTANCES),
        description="Mirrors con dialecto `items-list`.",
    )

    mirror_try_count: int = Field(
        default=4,
        ge=1,
        le=20,
        description="Cuántos mirrors (prefijo del orden aleatorio) se prueban por llamada.",
    )
    per_attempt_timeout_seconds: float = Field(
        default=4.0,
        gt=0,
        le=60,
        description="Deadline duro por intento de proveedor (segundos).",
    )
    total_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Presupuesto total opcional por llamada de resolución (segundos).",
    )
    shuffle_seed: int | None = Field(
        default=None,
        description="Semilla fija para el orden de mirrors (solo tests/diagnóstico).",
    )

    log_level: str = Field(
        default="INFO",
        description="Nivel de logging (DEBUG, INFO, WARNING, ERROR).",
    )
    api_host: str = Field(default="127.0.0.1", min_length=1)
    api_port: int = Field(default=8000, ge=1, le=65535)

    @field_validator("invidious_instances", "piped_instances")
    @classmethod
    def _strip_instances(cls, value: list[str]) -> list[str]:
        out: list[str] = []
        for raw in value:
            url = raw.strip().rstrip("/")
            if url and url not in out:
                out.append(url)
        return out

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"
