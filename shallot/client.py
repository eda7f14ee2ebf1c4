"""User endpoint: sends messages through circuits and receives plaintext."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from shallot.circuit import BuiltOnion, CircuitBuilder
from shallot.config import Config
from shallot.directory.interfaces import NodeDirectory
from shallot.transport import MessageTransport

logger = logging.getLogger(__name__)


@dataclass
class UserDiagnostics:
    """Last values seen by a user; last write wins."""

    last_sent: Optional[str] = None
    last_received: Optional[str] = None
    last_circuit: List[int] = field(default_factory=list)


class OnionUser:
    """
    A sender and recipient of onion-routed messages.

    Example:
        >>> user = OnionUser(0, directory, transport)
        >>> await user.send_message("hello", destination_user_id=1)
    """

    def __init__(
        self,
        user_id: int,
        directory: NodeDirectory,
        transport: MessageTransport,
        config: Optional[Config] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.user_id = user_id
        self.config = config or Config()
        self.transport = transport
        self.builder = CircuitBuilder(directory, self.config, rng=rng)
        self.diagnostics = UserDiagnostics()

    @property
    def address(self) -> int:
        return self.config.user_address(self.user_id)

    async def send_message(self, message: str, destination_user_id: int) -> BuiltOnion:
        """Send ``message`` to another user through a fresh circuit."""
        return await self.send_to_address(message, self.config.user_address(destination_user_id))

    async def send_to_address(self, message: str, destination: int) -> BuiltOnion:
        """
        Build a circuit and hand the onion to its entry relay.

        Success only means the entry relay accepted the envelope.

        Args:
            message: Plaintext for the recipient.
            destination: Recipient's address.

        Returns:
            The circuit used and the envelope sent.

        Raises:
            CircuitError: No circuit could be built; nothing was sent.
            ForwardingError: The entry relay could not be reached.
        """
        self.diagnostics.last_sent = message
        onion = await self.builder.build(destination, message)
        self.diagnostics.last_circuit = onion.circuit.node_ids

        await self.transport.deliver(onion.circuit.entry.address, onion.envelope)
        logger.info("user %d sent message via circuit %s", self.user_id, onion.circuit.node_ids)
        return onion

    async def receive(self, message: str) -> None:
        self.diagnostics.last_received = message
        logger.debug("user %d received %d chars", self.user_id, len(message))

    def get_status(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "address": self.address,
            "last_circuit": list(self.diagnostics.last_circuit),
        }
