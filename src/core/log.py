"""Configuración de logging.

Por qué Rich:
- La CLI ya usa Rich para tablas/paneles; el handler de Rich mantiene el mismo
  estilo en los warnings de proveedores.
- En modo servidor se usa un formato plano (una línea por evento) apto para
  agregadores de logs.
"""

from __future__ import annotations

import logging
import sys

from rich.console import Console
from rich.logging import RichHandler

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str = "INFO", *, rich_output: bool = True) -> None:
    """Configura handlers de logging a nivel aplicación.

    Se puede llamar varias veces (CLI -> serve): `force=True` reemplaza handlers.
    """

    handler: logging.Handler
    if rich_output:
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        fmt = "%(message)s"
    else:
        handler = logging.StreamHandler(sys.stdout)
        fmt = LOG_FORMAT

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=fmt,
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
    # httpx loguea cada request a INFO; demasiado ruido con mirrors.
    logging.getLogger("httpx").setLevel(logging.WARNING)
