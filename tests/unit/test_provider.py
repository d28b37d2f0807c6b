"""Tests for the shared backend provider."""

from __future__ import annotations

import asyncio

import pytest

from kbmcp.backend.provider import ClientProvider
from kbmcp.errors import ConfigurationError
from tests.fakes import FakeBackend

pytestmark = pytest.mark.unit


class CountingFactory:
    def __init__(self, *, failures: int = 0) -> None:
        self.calls = 0
        self.failures = failures
        self.created: list[FakeBackend] = []

    async def __call__(self) -> FakeBackend:
        self.calls += 1
        # Give every concurrent caller a chance to reach the lock.
        await asyncio.sleep(0.01)
        if self.calls <= self.failures:
            raise ConfigurationError("credentials missing")
        backend = FakeBackend()
        self.created.append(backend)
        return backend


def test_concurrent_callers_share_one_initialisation() -> None:
    factory = CountingFactory()
    provider = ClientProvider(factory)

    async def scenario():
        return await asyncio.gather(*(provider.get() for _ in range(5)))

    backends = asyncio.run(scenario())
    assert factory.calls == 1
    assert all(backend is factory.created[0] for backend in backends)


def test_failed_initialisation_is_retried() -> None:
    factory = CountingFactory(failures=1)
    provider = ClientProvider(factory)

    async def scenario():
        with pytest.raises(ConfigurationError):
            await provider.get()
        return await provider.get()

    backend = asyncio.run(scenario())
    assert factory.calls == 2
    assert backend is factory.created[0]


def test_aclose_closes_and_forgets_backend() -> None:
    factory = CountingFactory()
    provider = ClientProvider(factory)

    async def scenario():
        first = await provider.get()
        await provider.aclose()
        second = await provider.get()
        return first, second

    first, second = asyncio.run(scenario())
    assert first.closed is True
    assert second is not first
    assert factory.calls == 2
