"""Unit tests for shallot.config module."""

from dataclasses import fields

import pytest

from shallot.config import (
    ADDRESS_WIDTH,
    CIRCUIT_LENGTH,
    WRAPPED_KEY_LENGTH,
    Config,
    NetworkConfig,
    ProtocolConfig,
)


class TestProtocolConfig:
    """Test ProtocolConfig dataclass."""

    def test_default_config(self):
        config = ProtocolConfig()
        assert config.circuit_length == 3
        assert config.address_width == 10
        assert config.rsa_key_size == 2048
        assert config.rsa_public_exponent == 65537

    def test_protocol_fields(self):
        # the AEAD fixes the symmetric key length; only these are tunable
        assert [f.name for f in fields(ProtocolConfig)] == [
            "circuit_length",
            "address_width",
            "rsa_key_size",
            "rsa_public_exponent",
        ]

    def test_wrapped_key_length_follows_key_size(self):
        assert ProtocolConfig().wrapped_key_length == 344
        assert ProtocolConfig(rsa_key_size=3072).wrapped_key_length == 512

    def test_module_constants(self):
        assert CIRCUIT_LENGTH == 3
        assert ADDRESS_WIDTH == 10
        assert WRAPPED_KEY_LENGTH == 344


class TestNetworkConfig:
    """Test NetworkConfig dataclass."""

    def test_default_config(self):
        config = NetworkConfig()
        assert config.host == "localhost"
        assert config.registry_port == 8080
        assert config.base_relay_port == 4000
        assert config.base_user_port == 3000
        assert config.forward_timeout is None


class TestConfig:
    """Test Config class."""

    def test_addresses(self):
        config = Config()
        assert config.relay_address(0) == 4000
        assert config.relay_address(7) == 4007
        assert config.user_address(1) == 3001
        assert config.registry_url == "http://localhost:8080"

    def test_from_environment(self):
        config = Config.from_environment(
            {
                "SHALLOT_HOST": "127.0.0.1",
                "SHALLOT_BASE_RELAY_PORT": "5000",
                "SHALLOT_FORWARD_TIMEOUT": "2.5",
                "SHALLOT_CIRCUIT_LENGTH": "4",
                "UNRELATED": "x",
            }
        )
        assert config.network.host == "127.0.0.1"
        assert config.network.base_relay_port == 5000
        assert config.network.forward_timeout == 2.5
        assert config.protocol.circuit_length == 4
        assert config.network.registry_port == 8080

    def test_from_environment_empty(self):
        assert Config.from_environment({}) == Config()

    def test_from_environment_invalid_value(self):
        with pytest.raises(ValueError, match="SHALLOT_REGISTRY_PORT"):
            Config.from_environment({"SHALLOT_REGISTRY_PORT": "eighty"})

    def test_validate_defaults(self):
        assert Config().validate() == []

    def test_validate_errors(self):
        config = Config(
            protocol=ProtocolConfig(circuit_length=0, rsa_key_size=1024),
            network=NetworkConfig(registry_port=70000, forward_timeout=0),
        )
        errors = config.validate()
        assert "circuit_length must be at least 1" in errors
        assert "rsa_key_size must be a multiple of 8 and at least 2048" in errors
        assert "registry_port must be between 1 and 65535" in errors
        assert "forward_timeout must be positive" in errors
