from __future__ import annotations

import logging
import random
import time
from collections import Counter

import httpx
import pytest

from conftest import KeepOrder, StubProvider, make_mirrors, make_primary
from core.config import AppSettings
from core.domain.errors import InvalidRequestError
from core.domain.models import AttemptOutcome
from core.services.entry import resolve_query
from core.services.registry import ProviderRegistry
from core.services.resolution import (
    ResolutionOrchestrator,
    ResolutionPolicy,
    build_orchestrator,
)

QUERY = "Daft Punk One More Time official audio"
PRIMARY = "youtube:www.youtube.com"


def _calls(stubs: dict[str, StubProvider]) -> dict[str, int]:
    return {name: len(stub.calls) for name, stub in stubs.items()}


class TestPrimaryPath:
    @pytest.mark.asyncio
    async def test_primary_hit_short_circuits_mirrors(self, build_stub_orchestrator) -> None:
        orchestrator, stubs = build_stub_orchestrator(
            answers={PRIMARY: "primaryID", "mirror-1": "mirrorID"}
        )

        result = await orchestrator.resolve(QUERY)

        assert result.found
        assert result.video_id == "primaryID"
        assert result.provider == PRIMARY
        assert stubs[PRIMARY].calls == [QUERY]
        assert all(not stub.calls for name, stub in stubs.items() if name != PRIMARY)

    @pytest.mark.asyncio
    async def test_primary_exception_is_swallowed(self, build_stub_orchestrator) -> None:
        orchestrator, stubs = build_stub_orchestrator(
            answers={"mirror-1": "mirrorID"},
            errors={PRIMARY: RuntimeError("blocked by origin policy")},
        )

        result = await orchestrator.resolve(QUERY)

        assert result.video_id == "mirrorID"
        assert result.attempts[0].outcome is AttemptOutcome.TRANSPORT_ERROR
        assert "RuntimeError" in (result.attempts[0].detail or "")

    @pytest.mark.asyncio
    async def test_primary_disabled_by_policy(self, build_stub_orchestrator) -> None:
        orchestrator, stubs = build_stub_orchestrator(
            answers={PRIMARY: "primaryID", "mirror-1": "mirrorID"},
            policy=ResolutionPolicy(primary_enabled=False, mirror_try_count=3, per_attempt_timeout=0.2),
        )

        result = await orchestrator.resolve(QUERY)

        assert result.video_id == "mirrorID"
        assert stubs[PRIMARY].calls == []

    @pytest.mark.asyncio
    async def test_no_primary_configured_goes_straight_to_mirrors(self, build_stub_orchestrator) -> None:
        orchestrator, stubs = build_stub_orchestrator(with_primary=False, answers={"mirror-2": "m2"})

        result = await orchestrator.resolve(QUERY)

        assert result.video_id == "m2"
        assert [a.provider for a in result.attempts] == ["mirror-1", "mirror-2"]


class TestMirrorPath:
    @pytest.mark.asyncio
    async def test_first_success_stops_iteration(self, build_stub_orchestrator) -> None:
        # Orden fijo de test: mirror-1, mirror-2, mirror-3, mirror-4.
        orchestrator, stubs = build_stub_orchestrator(
            answers={"mirror-2": "abc123XYZ"},
            policy=ResolutionPolicy(mirror_try_count=4, per_attempt_timeout=0.2),
        )

        result = await orchestrator.resolve(QUERY)

        assert result.video_id == "abc123XYZ"
        assert result.provider == "mirror-2"
        assert _calls(stubs) == {PRIMARY: 1, "mirror-1": 1, "mirror-2": 1, "mirror-3": 0, "mirror-4": 0}
        assert [a.outcome for a in result.attempts] == [
            AttemptOutcome.EMPTY,
            AttemptOutcome.EMPTY,
            AttemptOutcome.SUCCESS,
        ]

    @pytest.mark.asyncio
    async def test_seeded_ordering_scenario(self) -> None:
        descriptors = [make_primary(), *make_mirrors(4)]
        registry = ProviderRegistry(descriptors)
        order = [d.name for d in registry.shuffled_mirrors(random.Random(2024))]
        winner = order[1]

        stubs = {d.name: StubProvider(d, "abc123XYZ" if d.name == winner else None) for d in descriptors}
        orchestrator = ResolutionOrchestrator(
            registry,
            lambda d: stubs[d.name],
            policy=ResolutionPolicy(mirror_try_count=4, per_attempt_timeout=0.2, shuffle_seed=2024),
        )

        result = await orchestrator.resolve(QUERY)

        assert result.video_id == "abc123XYZ"
        assert len(stubs[order[0]].calls) == 1
        assert len(stubs[order[2]].calls) == 0
        assert len(stubs[order[3]].calls) == 0

    @pytest.mark.asyncio
    async def test_exhausted_is_a_result_not_an_error(self, build_stub_orchestrator) -> None:
        orchestrator, stubs = build_stub_orchestrator(
            mirror_count=6,
            policy=ResolutionPolicy(mirror_try_count=3, per_attempt_timeout=0.2),
        )

        result = await orchestrator.resolve(QUERY)

        assert not result.found
        assert result.video_id is None
        assert len(result.attempts) == 1 + 3
        assert sum(_calls(stubs).values()) == orchestrator.policy.max_attempts(has_primary=True) == 4

    @pytest.mark.asyncio
    async def test_bound_larger_than_pool_tries_every_mirror_once(self, build_stub_orchestrator) -> None:
        orchestrator, stubs = build_stub_orchestrator(
            mirror_count=2,
            policy=ResolutionPolicy(mirror_try_count=5, per_attempt_timeout=0.2),
        )

        result = await orchestrator.resolve(QUERY)

        assert not result.found
        assert _calls(stubs) == {PRIMARY: 1, "mirror-1": 1, "mirror-2": 1}

    @pytest.mark.asyncio
    async def test_mirror_exception_is_contained(self, build_stub_orchestrator) -> None:
        orchestrator, stubs = build_stub_orchestrator(
            answers={"mirror-2": "ok"},
            errors={"mirror-1": ValueError("garbage payload")},
        )

        result = await orchestrator.resolve(QUERY)

        assert result.video_id == "ok"

    @pytest.mark.asyncio
    async def test_raising_mirror_is_logged_once(self, build_stub_orchestrator, caplog) -> None:
        orchestrator, _ = build_stub_orchestrator(
            answers={"mirror-2": "ok"},
            errors={"mirror-1": ValueError("garbage payload")},
        )

        with caplog.at_level(logging.WARNING, logger="core.services.resolution"):
            await orchestrator.resolve(QUERY)

        warnings = [r for r in caplog.records if "mirror-1" in r.getMessage()]
        assert len(warnings) == 1
        assert "ValueError" in warnings[0].getMessage()


class TestTimeouts:
    @pytest.mark.asyncio
    async def test_slow_provider_behaves_like_empty_one(self, build_stub_orchestrator) -> None:
        policy = ResolutionPolicy(mirror_try_count=3, per_attempt_timeout=0.05)
        slow, slow_stubs = build_stub_orchestrator(
            answers={"mirror-2": "abc123XYZ"}, delays={"mirror-1": 5.0}, policy=policy
        )
        empty, empty_stubs = build_stub_orchestrator(answers={"mirror-2": "abc123XYZ"}, policy=policy)

        slow_result = await slow.resolve(QUERY)
        empty_result = await empty.resolve(QUERY)

        assert slow_result.video_id == empty_result.video_id == "abc123XYZ"
        assert _calls(slow_stubs) == _calls(empty_stubs)
        assert slow_result.attempts[1].outcome is AttemptOutcome.TIMEOUT
        assert empty_result.attempts[1].outcome is AttemptOutcome.EMPTY

    @pytest.mark.asyncio
    async def test_termination_is_bounded(self, build_stub_orchestrator) -> None:
        names = [PRIMARY] + [f"mirror-{i}" for i in range(1, 5)]
        orchestrator, stubs = build_stub_orchestrator(
            delays={name: 30.0 for name in names},
            policy=ResolutionPolicy(mirror_try_count=3, per_attempt_timeout=0.05),
        )

        started = time.monotonic()
        result = await orchestrator.resolve(QUERY)
        elapsed = time.monotonic() - started

        assert not result.found
        assert len(result.attempts) == 4
        assert all(a.outcome is AttemptOutcome.TIMEOUT for a in result.attempts)
        assert elapsed < (1 + 3) * 0.05 + 1.0

    @pytest.mark.asyncio
    async def test_total_budget_stops_early(self, build_stub_orchestrator) -> None:
        names = [PRIMARY] + [f"mirror-{i}" for i in range(1, 5)]
        orchestrator, stubs = build_stub_orchestrator(
            delays={name: 30.0 for name in names},
            policy=ResolutionPolicy(
                mirror_try_count=4,
                per_attempt_timeout=0.1,
                total_timeout_seconds=0.15,
            ),
        )

        result = await orchestrator.resolve(QUERY)

        assert not result.found
        assert 1 <= len(result.attempts) < 5
        assert sum(_calls(stubs).values()) == len(result.attempts)


class TestRandomizedOrdering:
    @pytest.mark.asyncio
    async def test_first_mirror_is_roughly_uniform(self, build_stub_orchestrator) -> None:
        answers = {f"mirror-{i}": f"id-{i}" for i in range(1, 5)}
        orchestrator, _ = build_stub_orchestrator(
            with_primary=False,
            answers=answers,
            rng=random.Random(99),
        )
        rounds = 2000

        winners = Counter()
        for _ in range(rounds):
            result = await orchestrator.resolve(QUERY)
            winners[result.provider] += 1

        assert set(winners) == set(answers)
        for count in winners.values():
            assert 0.18 < count / rounds < 0.32

    def test_policy_seed_builds_deterministic_rng(self) -> None:
        a = ResolutionPolicy(shuffle_seed=5).make_rng()
        b = ResolutionPolicy(shuffle_seed=5).make_rng()
        first, second = list(range(10)), list(range(10))
        a.shuffle(first)
        b.shuffle(second)
        assert first == second

    def test_policy_without_seed_uses_system_entropy(self) -> None:
        assert isinstance(ResolutionPolicy().make_rng(), random.SystemRandom)


class TestPolicy:
    def test_from_settings(self) -> None:
        settings = AppSettings(
            _env_file=None,
            primary_enabled=False,
            mirror_try_count=3,
            per_attempt_timeout_seconds=4.5,
            total_timeout_seconds=12,
            shuffle_seed=7,
        )
        policy = ResolutionPolicy.from_settings(settings)
        assert policy == ResolutionPolicy(
            primary_enabled=False,
            mirror_try_count=3,
            per_attempt_timeout=4.5,
            total_timeout_seconds=12,
            shuffle_seed=7,
        )
        assert policy.max_attempts(has_primary=True) == 3

    @pytest.mark.parametrize(
        "kwargs",
        [{"mirror_try_count": -1}, {"per_attempt_timeout": 0}, {"total_timeout_seconds": -2}],
    )
    def test_invalid_values_are_rejected(self, kwargs) -> None:
        with pytest.raises(ValueError):
            ResolutionPolicy(**kwargs)


class TestEntryPoint:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["", "   ", None])
    async def test_empty_query_is_rejected_without_outbound_calls(self, build_stub_orchestrator, raw) -> None:
        orchestrator, stubs = build_stub_orchestrator(answers={PRIMARY: "x"})

        with pytest.raises(InvalidRequestError):
            await resolve_query(raw, orchestrator)

        assert sum(_calls(stubs).values()) == 0

    @pytest.mark.asyncio
    async def test_query_is_forwarded_verbatim(self, build_stub_orchestrator) -> None:
        orchestrator, stubs = build_stub_orchestrator(answers={PRIMARY: "x"})
        raw = f"  {QUERY}\n"

        result = await resolve_query(raw, orchestrator)

        assert result.query == raw
        assert stubs[PRIMARY].calls == [raw]


@pytest.mark.asyncio
async def test_build_orchestrator_end_to_end_with_http_mirrors() -> None:
    """Primario bloqueado (403) y mirrors HTTP reales sobre MockTransport."""

    hits: list[str] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        hits.append(request.url.host)
        if request.url.host == "www.youtube.com":
            return httpx.Response(403, text="blocked")
        if request.url.host == "inv.example":
            return httpx.Response(200, json=[{"videoId": "invID"}])
        return httpx.Response(200, json={"items": [{"url": "/watch?v=pipedID"}]})

    settings = AppSettings(
        _env_file=None,
        invidious_instances=["https://inv.example"],
        piped_instances=["https://piped.example"],
        mirror_try_count=2,
    )
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        orchestrator = build_orchestrator(settings=settings, client=client, rng=KeepOrder())
        result = await orchestrator.resolve(QUERY)

    assert hits == ["www.youtube.com", "inv.example"]
    assert result.video_id == "invID"
    assert [a.outcome for a in result.attempts] == [AttemptOutcome.TRANSPORT_ERROR, AttemptOutcome.SUCCESS]


@pytest.mark.asyncio
async def test_build_orchestrator_keeps_an_empty_registry(settings: AppSettings) -> None:
    hits: list[str] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        hits.append(request.url.host)
        return httpx.Response(200, json=[{"videoId": "never"}])

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        orchestrator = build_orchestrator(settings=settings, client=client, registry=ProviderRegistry([]))
        result = await orchestrator.resolve(QUERY)

    assert len(orchestrator.registry) == 0
    assert not result.found
    assert result.attempts == []
    assert hits == []
