"""Orquestación de la resolución query -> videoId.

Máquina de estados por llamada:

    Init -> TryPrimary -> TryMirrors -> Found | Exhausted

- El primario (búsqueda directa) se intenta primero si está configurado; su
  fallo se registra y se ignora.
- Los mirrors se barajan por llamada (familias mezcladas) y se prueban en
  secuencia, como mucho `mirror_try_count`. Nunca en paralelo: las instancias
  públicas son frágiles y compartidas.
- El primer éxito corta la iteración. Agotar el prefijo no es un error: es un
  `ResolutionResult` sin `video_id`.

Cota de latencia por llamada:
    primary_timeout + mirror_try_count * per_attempt_timeout
(más estricta si hay `total_timeout_seconds`).
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from dataclasses import dataclass
from typing import Callable

import httpx

from adapters.providers import build_provider
from core.config import AppSettings
from core.domain.models import (
    AttemptOutcome,
    ProviderDescriptor,
    ResolutionAttempt,
    ResolutionResult,
)
from core.interfaces.provider import RandomSource, SearchProvider
from core.services.registry import ProviderRegistry

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[ProviderDescriptor], SearchProvider]


@dataclass(frozen=True)
class ResolutionPolicy:
    """Única política configurable de fallback.

    Los valores históricos (4.0-4.5 s por intento, 3-4 mirrors) son defaults,
    no variantes de diseño.
    """

    primary_enabled: bool = True
    mirror_try_count: int = 4
    per_attempt_timeout: float = 4.0
    total_timeout_seconds: float | None = None
    shuffle_seed: int | None = None

    def __post_init__(self) -> None:
        if self.mirror_try_count < 0:
            raise ValueError("mirror_try_count must be >= 0")
        if self.per_attempt_timeout <= 0:
            raise ValueError("per_attempt_timeout must be > 0")
        if self.total_timeout_seconds is not None and self.total_timeout_seconds <= 0:
            raise ValueError("total_timeout_seconds must be > 0")

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "ResolutionPolicy":
        return cls(
            primary_enabled=settings.primary_enabled,
            mirror_try_count=settings.mirror_try_count,
            per_attempt_timeout=settings.per_attempt_timeout_seconds,
            total_timeout_seconds=settings.total_timeout_seconds,
            shuffle_seed=settings.shuffle_seed,
        )

    def make_rng(self) -> RandomSource:
        if self.shuffle_seed is not None:
            return random.Random(self.shuffle_seed)
        return random.SystemRandom()

    def max_attempts(self, *, has_primary: bool) -> int:
        return (1 if has_primary and self.primary_enabled else 0) + self.mirror_try_count


class ResolutionOrchestrator:
    def __init__(
        self,
        registry: ProviderRegistry,
        provider_factory: ProviderFactory,
        *,
        policy: ResolutionPolicy | None = None,
        rng: RandomSource | None = None,
    ) -> None:
        self._registry = registry
        self._policy = policy or ResolutionPolicy()
        self._rng = rng or self._policy.make_rng()
        # Los clientes son stateless: se crean una vez por descriptor.
        self._providers: dict[str, SearchProvider] = {
            descriptor.name: provider_factory(descriptor) for descriptor in registry
        }

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    @property
    def policy(self) -> ResolutionPolicy:
        return self._policy

    async def resolve(self, query: str) -> ResolutionResult:
        attempts: list[ResolutionAttempt] = []
        deadline = None
        if self._policy.total_timeout_seconds is not None:
            deadline = time.monotonic() + self._policy.total_timeout_seconds

        primary = self._registry.primary() if self._policy.primary_enabled else None
        if primary is not None:
            attempt = await self._attempt(primary, query, deadline)
            if attempt is not None:
                attempts.append(attempt)
                if attempt.succeeded:
                    return self._found(query, attempt, attempts)
                logger.info(
                    "primary resolver %s failed (%s: %s); falling back to mirrors",
                    primary.name,
                    attempt.outcome.value,
                    attempt.detail,
                )

        candidates = self._registry.shuffled_mirrors(self._rng)[: self._policy.mirror_try_count]
        for descriptor in candidates:
            attempt = await self._attempt(descriptor, query, deadline)
            if attempt is None:
                logger.warning("resolution budget spent after %d attempts", len(attempts))
                break
            attempts.append(attempt)
            if attempt.succeeded:
                return self._found(query, attempt, attempts)
            logger.warning(
                "mirror %s gave no candidate (%s: %s)",
                descriptor.name,
                attempt.outcome.value,
                attempt.detail,
            )

        logger.info("no video found for %r after %d attempts", query, len(attempts))
        return ResolutionResult(query=query, attempts=attempts)

    async def _attempt(
        self,
        descriptor: ProviderDescriptor,
        query: str,
        deadline: float | None,
    ) -> ResolutionAttempt | None:
        timeout = descriptor.timeout_seconds or self._policy.per_attempt_timeout
        if deadline is not None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return None
            timeout = min(timeout, remaining)

        provider = self._providers[descriptor.name]
        started = time.perf_counter()
        try:
            # Doble deadline: los proveedores propios ya cortan, pero uno
            # inyectado que ignore `timeout` no puede bloquear la llamada.
            return await asyncio.wait_for(provider.search(query, timeout=timeout), timeout=timeout)
        except asyncio.TimeoutError:
            outcome, detail = AttemptOutcome.TIMEOUT, f"no response within {timeout:.1f}s"
        except Exception as exc:  # proveedor que rompe su contrato
            outcome, detail = AttemptOutcome.TRANSPORT_ERROR, f"{exc.__class__.__name__}: {exc}"
        return ResolutionAttempt(
            provider=descriptor.name,
            outcome=outcome,
            elapsed_ms=(time.perf_counter() - started) * 1000.0,
            detail=detail,
        )

    def _found(
        self,
        query: str,
        attempt: ResolutionAttempt,
        attempts: list[ResolutionAttempt],
    ) -> ResolutionResult:
        logger.info("resolved %r -> %s via %s", query, attempt.video_id, attempt.provider)
        return ResolutionResult(
            query=query,
            video_id=attempt.video_id,
            provider=attempt.provider,
            attempts=attempts,
        )


def build_orchestrator(
    *,
    settings: AppSettings,
    client: httpx.AsyncClient,
    registry: ProviderRegistry | None = None,
    rng: RandomSource | None = None,
) -> ResolutionOrchestrator:
    """Cablea registry + clientes httpx + política desde la configuración."""

    if registry is None:
        registry = ProviderRegistry.from_settings(settings)
    return ResolutionOrchestrator(
        registry,
        lambda descriptor: build_provider(descriptor, client),
        policy=ResolutionPolicy.from_settings(settings),
        rng=rng,
    )
