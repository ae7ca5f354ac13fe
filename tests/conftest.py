"""Shared fixtures for pactverify tests."""
from __future__ import annotations

from collections.abc import Callable, Generator

import httpx
import pytest

from src.pactverify.models import ContractFile, Interaction
from src.pactverify.transport import HttpxTransport
from tests.builders import PROVIDER_BASE_URL, FakeProvider


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def transport(fake_provider: FakeProvider) -> Generator[HttpxTransport, None, None]:
    """HttpxTransport wired to the fake provider."""
    client = httpx.Client(
        base_url=PROVIDER_BASE_URL,
        transport=httpx.MockTransport(fake_provider.handle),
    )
    with client:
        yield HttpxTransport(client=client)


@pytest.fixture
def make_contract() -> Callable[..., ContractFile]:
    """Build a ContractFile between a stable consumer/provider pair."""

    def build(
        *interactions: Interaction,
        consumer: str = "billing-web",
        provider: str = "user-service",
    ) -> ContractFile:
        return ContractFile(consumer_name=consumer, provider_name=provider, interactions=interactions)

    return build
