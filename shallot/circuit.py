"""Sender-side circuit selection and onion construction."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Optional, Sequence

from cryptography.hazmat.primitives.asymmetric import rsa

from shallot.config import ADDRESS_WIDTH, CIRCUIT_LENGTH, Config
from shallot.crypto import InvalidKeyError, import_public_key
from shallot.directory.interfaces import NodeDirectory, NodeRecord
from shallot.envelope import wrap_layer
from shallot.errors import InsufficientNodesError, UnknownNodeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Hop:
    node_id: int
    address: int
    public_key: rsa.RSAPublicKey


@dataclass(frozen=True)
class Circuit:
    """Ordered relays a message traverses, entry first."""

    hops: tuple[Hop, ...]

    def __post_init__(self) -> None:
        if not self.hops:
            raise ValueError("circuit must have at least one hop")
        ids = [hop.node_id for hop in self.hops]
        if len(set(ids)) != len(ids):
            raise ValueError("circuit contains a repeated node")

    def __len__(self) -> int:
        return len(self.hops)

    @property
    def node_ids(self) -> list[int]:
        return [hop.node_id for hop in self.hops]

    @property
    def entry(self) -> Hop:
        return self.hops[0]

    @property
    def exit(self) -> Hop:
        return self.hops[-1]


@dataclass(frozen=True)
class BuiltOnion:
    circuit: Circuit
    envelope: str
    destination: int


def select_circuit(
    snapshot: Sequence[NodeRecord],
    *,
    length: int = CIRCUIT_LENGTH,
    rng: Optional[random.Random] = None,
) -> list[int]:
    """Pick ``length`` distinct node ids uniformly at random.

    Raises:
        InsufficientNodesError: If the snapshot has fewer than ``length`` nodes.
    """
    if length < 1:
        raise ValueError("circuit length must be >= 1")
    rng = rng or random.SystemRandom()

    candidates = list(dict.fromkeys(record.node_id for record in snapshot))
    if len(candidates) < length:
        raise InsufficientNodesError(available=len(candidates), required=length)
    return rng.sample(candidates, length)


def resolve_circuit(node_ids: Sequence[int], snapshot: Sequence[NodeRecord], config: Config) -> Circuit:
    """Attach addresses and public keys from the same snapshot used for selection.

    Raises:
        UnknownNodeError: If an id has no entry in ``snapshot``.
        InvalidKeyError: If a listed key cannot be used with this network.
    """
    keys = {record.node_id: record.public_key for record in snapshot}
    hops = []
    for node_id in node_ids:
        if node_id not in keys:
            raise UnknownNodeError(node_id)
        public_key = import_public_key(keys[node_id])
        if public_key.key_size != config.protocol.rsa_key_size:
            raise InvalidKeyError(f"node {node_id} publishes a {public_key.key_size}-bit key")
        hops.append(Hop(node_id=node_id, address=config.relay_address(node_id), public_key=public_key))
    return Circuit(tuple(hops))


def build_onion(
    circuit: Circuit,
    destination: int,
    message: str,
    *,
    address_width: int = ADDRESS_WIDTH,
) -> str:
    """Nest ``message`` in one layer per hop, innermost (exit) layer first.

    The exit layer points at ``destination``; every other layer points at the
    following relay and carries that relay's envelope.
    """
    payload = message
    next_hop = destination
    for hop in reversed(circuit.hops):
        payload = wrap_layer(hop.public_key, next_hop, payload, address_width=address_width)
        next_hop = hop.address
    return payload


class CircuitBuilder:
    """
    Builds per-message circuits from a node directory.

    Each build takes exactly one directory snapshot; selection and key lookup
    both use it.
    """

    def __init__(
        self,
        directory: NodeDirectory,
        config: Optional[Config] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.directory = directory
        self.config = config or Config()
        self.rng = rng or random.SystemRandom()

    async def build(self, destination: int, message: str) -> BuiltOnion:
        """
        Select a circuit and wrap ``message`` for it.

        Args:
            destination: Address of the final recipient.
            message: Plaintext to deliver.

        Returns:
            The circuit and the envelope for its entry relay.

        Raises:
            InsufficientNodesError: Too few relays registered.
            UnknownNodeError: A selected relay has no key in the snapshot.
        """
        snapshot = await self.directory.list_nodes()
        node_ids = select_circuit(snapshot, length=self.config.protocol.circuit_length, rng=self.rng)
        circuit = resolve_circuit(node_ids, snapshot, self.config)
        envelope = build_onion(
            circuit, destination, message, address_width=self.config.protocol.address_width
        )
        logger.debug("built circuit %s towards %d", circuit.node_ids, destination)
        return BuiltOnion(circuit=circuit, envelope=envelope, destination=destination)
