"""Relay node for the Shallot overlay.

A relay performs one transition per received envelope: strip its own layer
with its private key, then hand the remaining payload to the address found
inside that layer. It never needs to know whether it is the entry, a middle
or the exit hop of a circuit.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from shallot.config import Config
from shallot.crypto import DecryptionError, RsaKeyPair, rsa_generate_keypair
from shallot.directory.interfaces import NodeDirectory
from shallot.envelope import PeeledLayer, peel_layer
from shallot.errors import ForwardingError
from shallot.transport import MessageTransport

logger = logging.getLogger(__name__)


@dataclass
class RelayDiagnostics:
    """Last values seen by a relay, for introspection only.

    Written once per message, last write wins; protocol logic never reads it.
    """

    last_received_encrypted: Optional[str] = None
    last_received_decrypted: Optional[str] = None
    last_destination: Optional[int] = None
    last_error: Optional[str] = None


class OnionRelay:
    """
    A single onion router.

    The key pair is generated when the relay is created and lives as long as
    the object; only the public half is ever exported.
    """

    def __init__(
        self,
        node_id: int,
        transport: MessageTransport,
        config: Optional[Config] = None,
        keypair: Optional[RsaKeyPair] = None,
    ) -> None:
        """
        Initialize a relay.

        Args:
            node_id: Directory id; also determines the listening address.
            transport: Used to forward peeled payloads.
            config: Shared network configuration.
            keypair: Existing key pair. A new one is generated if omitted.
        """
        self.node_id = node_id
        self.config = config or Config()
        self.transport = transport
        self._keypair = keypair or rsa_generate_keypair(
            self.config.protocol.rsa_key_size, self.config.protocol.rsa_public_exponent
        )
        if self._keypair.key_size != self.config.protocol.rsa_key_size:
            raise ValueError("keypair size does not match the configured RSA key size")
        self.public_key: str = self._keypair.export_public()
        self.diagnostics = RelayDiagnostics()

    @property
    def address(self) -> int:
        return self.config.relay_address(self.node_id)

    async def register(self, directory: NodeDirectory) -> None:
        """Publish this relay's public key."""
        await directory.register(self.node_id, self.public_key)
        logger.info("relay %d registered (address %d)", self.node_id, self.address)

    def peel(self, envelope: str) -> PeeledLayer:
        """Remove this relay's layer from ``envelope``.

        Raises:
            DecryptionError: The envelope is not for this relay or was altered.
        """
        return peel_layer(
            envelope,
            self._keypair.private,
            wrapped_key_length=self.config.protocol.wrapped_key_length,
            address_width=self.config.protocol.address_width,
        )

    async def process(self, envelope: str) -> PeeledLayer:
        """
        Peel one layer and forward the rest, once.

        Args:
            envelope: Onion layer addressed to this relay.

        Returns:
            The peeled layer that was forwarded.

        Raises:
            DecryptionError: If the layer cannot be removed.
            ForwardingError: If the next hop is unreachable.
        """
        self.diagnostics.last_received_encrypted = envelope
        self.diagnostics.last_error = None

        try:
            # RSA decryption is CPU bound; keep it off the event loop.
            layer = await asyncio.to_thread(self.peel, envelope)
        except DecryptionError as e:
            self.diagnostics.last_error = f"decryption failed: {e}"
            logger.warning("relay %d: dropping message: %s", self.node_id, e)
            raise

        self.diagnostics.last_received_decrypted = layer.body
        self.diagnostics.last_destination = layer.destination

        try:
            await self.transport.deliver(layer.destination, layer.payload)
        except ForwardingError as e:
            self.diagnostics.last_error = str(e)
            logger.warning("relay %d: %s", self.node_id, e)
            raise

        logger.debug("relay %d forwarded %d chars to %d", self.node_id, len(layer.payload), layer.destination)
        return layer

    def get_status(self) -> Dict[str, Any]:
        return {
            "node_id": self.node_id,
            "address": self.address,
            "last_destination": self.diagnostics.last_destination,
            "last_error": self.diagnostics.last_error,
        }


__all__ = ["OnionRelay", "RelayDiagnostics"]
