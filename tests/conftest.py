"""Test configuration for the Shallot package."""

from __future__ import annotations

import pytest

from shallot.config import Config
from shallot.crypto import rsa_generate_keypair
from shallot.directory import InMemoryDirectory
from shallot.relay import OnionRelay
from shallot.transport import InMemoryNetwork


@pytest.fixture(scope="session")
def keypairs():
    """RSA-2048 key pairs shared by the whole session; generation is slow."""
    return [rsa_generate_keypair() for _ in range(6)]


@pytest.fixture
def config():
    return Config()


@pytest.fixture
def network():
    return InMemoryNetwork()


@pytest.fixture
def directory():
    return InMemoryDirectory()


@pytest.fixture
def make_relays(keypairs, network, config):
    """Create relays with ids ``0..count-1`` attached to the in-memory network."""

    def _make(count: int) -> list[OnionRelay]:
        relays = []
        for node_id in range(count):
            relay = OnionRelay(node_id, network, config, keypair=keypairs[node_id])
            network.attach(relay.address, relay.process)
            relays.append(relay)
        return relays

    return _make


class RecordingTransport:
    """Transport that only records what would have been sent."""

    def __init__(self) -> None:
        self.sent: list[tuple[int, str]] = []

    async def deliver(self, address: int, message: str) -> None:
        self.sent.append((address, message))


@pytest.fixture
def recording_transport():
    return RecordingTransport()
