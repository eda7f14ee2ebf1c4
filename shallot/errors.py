"""Exceptions raised by circuit construction, relaying and forwarding."""

from __future__ import annotations

from shallot.crypto.errors import DecryptionError


class OnionError(Exception):
    """Base exception for onion routing operations."""


class CircuitError(OnionError):
    """Raised when a circuit cannot be built. Nothing has been sent."""


class InsufficientNodesError(CircuitError):
    """The directory lists fewer relays than the circuit length."""

    def __init__(self, available: int, required: int) -> None:
        super().__init__(f"need {required} relays, directory lists {available}")
        self.available = available
        self.required = required


class UnknownNodeError(CircuitError):
    """A selected node id has no public key in the directory snapshot."""

    def __init__(self, node_id: int) -> None:
        super().__init__(f"node {node_id} not found in directory snapshot")
        self.node_id = node_id


class DirectoryError(OnionError):
    """The registry could not be reached or returned a malformed listing."""


class ForwardingError(OnionError):
    """The next hop could not be reached or refused the message."""

    def __init__(self, address: int, reason: str) -> None:
        super().__init__(f"forward to {address} failed: {reason}")
        self.address = address
        self.reason = reason


class MalformedEnvelopeError(DecryptionError):
    """An envelope or decrypted body does not have the expected layout."""


class AddressError(ValueError):
    """An address does not fit the fixed-width next-hop field."""
