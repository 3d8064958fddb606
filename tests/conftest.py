"""
Pytest configuration and shared fixtures.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable

import pytest

from core.config import AppSettings
from core.domain.models import (
    AttemptOutcome,
    ProviderDescriptor,
    ResolutionAttempt,
    ResponseDialect,
)
from core.services.registry import ProviderRegistry
from core.services.resolution import ResolutionOrchestrator, ResolutionPolicy


class StubProvider:
    """Proveedor falso: cuenta llamadas y devuelve un resultado fijo."""

    def __init__(
        self,
        descriptor: ProviderDescriptor,
        video_id: str | None = None,
        *,
        delay: float = 0.0,
        error: Exception | None = None,
    ) -> None:
        self.descriptor = descriptor
        self.video_id = video_id
        self.delay = delay
        self.error = error
        self.calls: list[str] = []

    async def search(self, query: str, *, timeout: float) -> ResolutionAttempt:
        self.calls.append(query)
        if self.error is not None:
            raise self.error
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.video_id:
            return ResolutionAttempt(
                provider=self.descriptor.name,
                outcome=AttemptOutcome.SUCCESS,
                video_id=self.video_id,
            )
        return ResolutionAttempt(provider=self.descriptor.name, outcome=AttemptOutcome.EMPTY)


class KeepOrder:
    """Fuente aleatoria que deja el orden tal cual (orden de test fijo)."""

    def shuffle(self, x: Any) -> None:
        return None


def make_primary() -> ProviderDescriptor:
    return ProviderDescriptor(
        name="youtube:www.youtube.com",
        base_url="https://www.youtube.com",
        dialect=ResponseDialect.PRIMARY_DIRECT,
    )


def make_mirrors(count: int) -> list[ProviderDescriptor]:
    mirrors: list[ProviderDescriptor] = []
    for index in range(1, count + 1):
        dialect = ResponseDialect.SEARCH_API_V1 if index % 2 else ResponseDialect.ITEMS_LIST
        mirrors.append(
            ProviderDescriptor(
                name=f"mirror-{index}",
                base_url=f"https://mirror-{index}.example",
                dialect=dialect,
            )
        )
    return mirrors


@pytest.fixture
def settings() -> AppSettings:
    """Settings aislados del entorno (.env) para tests."""

    return AppSettings(
        _env_file=None,
        invidious_instances=["https://inv.example", "https://yt.example/"],
        piped_instances=["https://piped.example"],
    )


@pytest.fixture
def build_stub_orchestrator() -> Callable[..., tuple[ResolutionOrchestrator, dict[str, StubProvider]]]:
    """Construye un orquestador sobre stubs.

    `answers` mapea nombre de proveedor -> videoId (o None); `delays` y
    `errors` permiten simular proveedores lentos o que lanzan.
    """

    def _build(
        *,
        mirror_count: int = 4,
        with_primary: bool = True,
        answers: dict[str, str | None] | None = None,
        delays: dict[str, float] | None = None,
        errors: dict[str, Exception] | None = None,
        policy: ResolutionPolicy | None = None,
        rng: Any = None,
    ) -> tuple[ResolutionOrchestrator, dict[str, StubProvider]]:
        answers = answers or {}
        delays = delays or {}
        errors = errors or {}
        descriptors = ([make_primary()] if with_primary else []) + make_mirrors(mirror_count)
        stubs = {
            d.name: StubProvider(
                d,
                answers.get(d.name),
                delay=delays.get(d.name, 0.0),
                error=errors.get(d.name),
            )
            for d in descriptors
        }
        orchestrator = ResolutionOrchestrator(
            ProviderRegistry(descriptors),
            lambda descriptor: stubs[descriptor.name],
            policy=policy or ResolutionPolicy(mirror_try_count=3, per_attempt_timeout=0.2),
            rng=rng if rng is not None else KeepOrder(),
        )
        return orchestrator, stubs

    return _build
