"""Configuration management for Shallot nodes."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from shallot.crypto.rsa import DEFAULT_KEY_SIZE, DEFAULT_PUBLIC_EXPONENT, wrapped_key_length

CIRCUIT_LENGTH = 3
ADDRESS_WIDTH = 10
WRAPPED_KEY_LENGTH = wrapped_key_length(DEFAULT_KEY_SIZE)

ENV_PREFIX = "SHALLOT_"


@dataclass
class ProtocolConfig:
    """Wire protocol settings. Every node of one network must agree on these."""

    circuit_length: int = CIRCUIT_LENGTH
    address_width: int = ADDRESS_WIDTH
    rsa_key_size: int = DEFAULT_KEY_SIZE
    rsa_public_exponent: int = DEFAULT_PUBLIC_EXPONENT

    @property
    def wrapped_key_length(self) -> int:
        """Fixed offset at which an envelope splits into key and body."""
        return wrapped_key_length(self.rsa_key_size)


@dataclass
class NetworkConfig:
    """Where nodes listen and how they reach each other."""

    host: str = "localhost"
    registry_port: int = 8080
    base_relay_port: int = 4000
    base_user_port: int = 3000
    forward_timeout: Optional[float] = None


_ENV_FIELDS: Dict[str, tuple[str, str, Callable[[str], Any]]] = {
    "CIRCUIT_LENGTH": ("protocol", "circuit_length", int),
    "RSA_KEY_SIZE": ("protocol", "rsa_key_size", int),
    "HOST": ("network", "host", str),
    "REGISTRY_PORT": ("network", "registry_port", int),
    "BASE_RELAY_PORT": ("network", "base_relay_port", int),
    "BASE_USER_PORT": ("network", "base_user_port", int),
    "FORWARD_TIMEOUT": ("network", "forward_timeout", float),
}


@dataclass
class Config:
    """
    Top-level configuration shared by the registry, relays and users.

    Provides address resolution for node and user ids, plus environment
    overrides for deployment.
    """

    protocol: ProtocolConfig = field(default_factory=ProtocolConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)

    @classmethod
    def from_environment(cls, environ: Optional[Dict[str, str]] = None) -> Config:
        """
        Build a configuration from ``SHALLOT_*`` environment variables.

        Args:
            environ: Mapping to read instead of :data:`os.environ`.

        Returns:
            Configuration with defaults for every unset variable.

        Raises:
            ValueError: If a variable cannot be parsed.
        """
        environ = os.environ if environ is None else environ
        config = cls()
        for suffix, (section, attr, parse) in _ENV_FIELDS.items():
            raw = environ.get(ENV_PREFIX + suffix)
            if raw is None:
                continue
            try:
                value = parse(raw)
            except ValueError as e:
                raise ValueError(f"invalid {ENV_PREFIX}{suffix}: {raw!r}") from e
            setattr(getattr(config, section), attr, value)
        return config

    def relay_address(self, node_id: int) -> int:
        """Port of the relay with the given node id."""
        return self.network.base_relay_port + node_id

    def user_address(self, user_id: int) -> int:
        """Port of the user with the given id."""
        return self.network.base_user_port + user_id

    @property
    def registry_url(self) -> str:
        return f"http://{self.network.host}:{self.network.registry_port}"

    def validate(self) -> List[str]:
        """
        Validate current configuration.

        Returns:
            List of validation errors. Empty if valid.
        """
        errors = []
        protocol = self.protocol
        network = self.network

        if protocol.circuit_length < 1:
            errors.append("circuit_length must be at least 1")
        if protocol.address_width < 1:
            errors.append("address_width must be positive")
        if protocol.rsa_key_size < 2048 or protocol.rsa_key_size % 8:
            errors.append("rsa_key_size must be a multiple of 8 and at least 2048")

        for name in ("registry_port", "base_relay_port", "base_user_port"):
            port = getattr(network, name)
            if not 0 < port <= 65535:
                errors.append(f"{name} must be between 1 and 65535")
        if network.forward_timeout is not None and network.forward_timeout <= 0:
            errors.append("forward_timeout must be positive")

        return errors
